"""
viewer.py

Purpose:
  The historical-data viewer session: owns the active range class, the display
  tab, the ZoomWindow and the RefreshScheduler, and turns user intents into
  state transitions.

Contract:
  - Range change -> zoom reset + scheduler reconfigure (immediate fetch).
  - Tab change   -> zoom reset + scheduler restart (previous cycle superseded).
  - Zoom / pan   -> ZoomWindow only; the display is recomputed from the buffer
                    already held, nothing is refetched.
  - `state()` is what the renderer sees: downsampled series of the active tab
    plus loading/update/zoom metadata. Raw buffers never leave this object.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from histview.errors import UnknownChannel
from histview.models.domain import (
    RANGE_POLICIES,
    TAB_CHANNELS,
    Channel,
    DisplayTab,
    TimeRangeClass,
)
from histview.services.downsampler import DisplaySeries, DownsampleCache, downsample
from histview.services.scheduler import RefreshScheduler
from histview.services.series_buffer import SeriesBuffer
from histview.services.transport import CsvExport, HistoricalTransport
from histview.services.zoom_window import ZoomWindow


@dataclass(frozen=True)
class ViewerState:
    range_class: TimeRangeClass
    tab: DisplayTab
    is_loading: bool
    last_updated: Optional[datetime]
    last_error: Optional[str]
    zoom: ZoomWindow
    total_points: int
    visible_points: int
    series: Dict[Channel, DisplaySeries] = field(default_factory=dict)

    @property
    def range_label(self) -> str:
        return RANGE_POLICIES[self.range_class].label


class HistoricalViewer:
    def __init__(
        self,
        transport: HistoricalTransport,
        *,
        scheduler: Optional[RefreshScheduler] = None,
        range_class: TimeRangeClass = TimeRangeClass.REALTIME,
        tab: DisplayTab = DisplayTab.TEMPERATURE,
        cache_size: int = 64,
    ):
        self.transport = transport
        self.scheduler = scheduler or RefreshScheduler(transport)
        self.range_class = range_class
        self.tab = tab
        self.zoom = ZoomWindow()
        self.cache = DownsampleCache(maxsize=cache_size)

    # ---------------- lifecycle ----------------

    def start(self) -> None:
        self.scheduler.set_range_class(self.range_class)

    async def close(self) -> None:
        await self.scheduler.close()
        self.cache.clear()

    # ---------------- intents ----------------

    def select_range(self, range_class: TimeRangeClass) -> None:
        self.range_class = TimeRangeClass.parse(range_class)
        self.zoom = self.zoom.reset()
        self.scheduler.set_range_class(self.range_class)

    def select_tab(self, tab: DisplayTab) -> None:
        self.tab = DisplayTab(tab)
        self.zoom = self.zoom.reset()
        if self.scheduler.range_class is None:
            self.scheduler.set_range_class(self.range_class)
        else:
            self.scheduler.restart()

    def zoom_in(self) -> ZoomWindow:
        self.zoom = self.zoom.zoom_in()
        return self.zoom

    def zoom_out(self) -> ZoomWindow:
        self.zoom = self.zoom.zoom_out(self.total_points())
        return self.zoom

    def pan(self, delta: int) -> ZoomWindow:
        self.zoom = self.zoom.pan(delta, self.total_points())
        return self.zoom

    def reset_zoom(self) -> ZoomWindow:
        self.zoom = self.zoom.reset()
        return self.zoom

    def refresh(self) -> bool:
        return self.scheduler.refresh()

    async def export_csv(
        self,
        tab: Optional[DisplayTab] = None,
        range_class: Optional[TimeRangeClass] = None,
    ) -> CsvExport:
        # full-fidelity export straight from the transport, never downsampled
        return await self.transport.export_csv(tab or self.tab, range_class or self.range_class)

    # ---------------- views ----------------

    def buffer(self, channel: Channel) -> Optional[SeriesBuffer]:
        snapshot = self.scheduler.snapshot
        if snapshot is None or snapshot.range_class != self.range_class:
            return None
        return snapshot.get(channel)

    def total_points(self) -> int:
        # point counts follow the first channel of the tab
        buf = self.buffer(TAB_CHANNELS[self.tab][0])
        return len(buf) if buf is not None else 0

    def display(self, channel: Channel) -> DisplaySeries:
        try:
            channel = Channel(channel)
        except ValueError:
            raise UnknownChannel(str(channel)) from None
        buf = self.buffer(channel)
        if buf is None:
            buf = SeriesBuffer(channel=channel, range_class=self.range_class)
        return downsample(buf, self.zoom, self.range_class, cache=self.cache)

    def state(self) -> ViewerState:
        total = self.total_points()
        return ViewerState(
            range_class=self.range_class,
            tab=self.tab,
            is_loading=self.scheduler.is_loading,
            last_updated=self.scheduler.last_updated,
            last_error=self.scheduler.last_error,
            zoom=self.zoom,
            total_points=total,
            visible_points=self.zoom.visible_points(total),
            series={ch: self.display(ch) for ch in TAB_CHANNELS[self.tab]},
        )
