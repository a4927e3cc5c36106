"""
routes_viewer.py

Purpose:
  Renderer-facing API of the historical viewer.

Endpoints:
  - **GET  /viewer/state**: downsampled series of the active tab + loading/zoom metadata.
  - **PUT  /viewer/range**: select a range class (resets zoom, refetches immediately).
  - **PUT  /viewer/tab**: select a display tab (resets zoom, restarts the polling cycle).
  - **POST /viewer/zoom/in | /zoom/out | /zoom/reset**, **POST /viewer/pan**:
    recompute from the held buffer, never refetch.
  - **POST /viewer/refresh**: manual fetch, dropped while one is in flight.
  - **GET  /viewer/series/{channel}**: one channel, even if not on the active tab.

Raw buffers are never serialized; only DisplaySeries.
"""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException, Query

from histview.deps import get_viewer
from histview.errors import UnknownChannel
from histview.models.domain import (
    RANGE_POLICIES,
    DisplaySeriesResponse,
    DisplayTab,
    RefreshResponse,
    TimeRangeClass,
    ViewerStateResponse,
    ZoomWindowResponse,
)
from histview.services.downsampler import DisplaySeries
from histview.services.viewer import HistoricalViewer

router = APIRouter()


def series_response(series: DisplaySeries) -> DisplaySeriesResponse:
    return DisplaySeriesResponse(
        channel=series.channel,
        range_class=series.range_class,
        total_points=series.total_points,
        target_points=series.target_points,
        visible_points=series.visible_points,
        offset=series.offset,
        viewport_start=series.viewport_start.isoformat() if series.viewport_start else None,
        viewport_end=series.viewport_end.isoformat() if series.viewport_end else None,
        points=[s.to_record() for s in series.samples],
    )


def state_response(viewer: HistoricalViewer) -> ViewerStateResponse:
    state = viewer.state()
    return ViewerStateResponse(
        ts=datetime.now().isoformat(),
        range_class=state.range_class,
        range_label=state.range_label,
        refresh_period_s=RANGE_POLICIES[state.range_class].refresh_period_s,
        tab=state.tab,
        is_loading=state.is_loading,
        last_updated=state.last_updated.isoformat() if state.last_updated else None,
        last_error=state.last_error,
        zoom=ZoomWindowResponse(
            factor=state.zoom.factor,
            offset=state.zoom.effective_offset(state.total_points),
            is_identity=state.zoom.is_identity,
            can_zoom_in=state.zoom.can_zoom_in,
            can_zoom_out=state.zoom.can_zoom_out,
        ),
        total_points=state.total_points,
        visible_points=state.visible_points,
        series={ch.value: series_response(s) for ch, s in state.series.items()},
    )


@router.get("/state", response_model=ViewerStateResponse)
async def viewer_state() -> ViewerStateResponse:
    return state_response(get_viewer())


@router.put("/range", response_model=ViewerStateResponse)
async def viewer_select_range(
    range_class: TimeRangeClass = Query(..., description="realtime | 1h | 24h | 7d | 30d"),
) -> ViewerStateResponse:
    viewer = get_viewer()
    viewer.select_range(range_class)
    return state_response(viewer)


@router.put("/tab", response_model=ViewerStateResponse)
async def viewer_select_tab(
    tab: DisplayTab = Query(..., description="temperature | humidity | electrical"),
) -> ViewerStateResponse:
    viewer = get_viewer()
    viewer.select_tab(tab)
    return state_response(viewer)


@router.post("/zoom/in", response_model=ViewerStateResponse)
async def viewer_zoom_in() -> ViewerStateResponse:
    viewer = get_viewer()
    viewer.zoom_in()
    return state_response(viewer)


@router.post("/zoom/out", response_model=ViewerStateResponse)
async def viewer_zoom_out() -> ViewerStateResponse:
    viewer = get_viewer()
    viewer.zoom_out()
    return state_response(viewer)


@router.post("/zoom/reset", response_model=ViewerStateResponse)
async def viewer_zoom_reset() -> ViewerStateResponse:
    viewer = get_viewer()
    viewer.reset_zoom()
    return state_response(viewer)


@router.post("/pan", response_model=ViewerStateResponse)
async def viewer_pan(
    delta: int = Query(..., ge=-1_000_000, le=1_000_000, description="Offset change in samples"),
) -> ViewerStateResponse:
    viewer = get_viewer()
    viewer.pan(delta)
    return state_response(viewer)


@router.post("/refresh", response_model=RefreshResponse)
async def viewer_refresh() -> RefreshResponse:
    viewer = get_viewer()
    started = viewer.refresh()
    return RefreshResponse(started=started, in_flight=viewer.scheduler.in_flight)


@router.get("/series/{channel}", response_model=DisplaySeriesResponse)
async def viewer_series(channel: str) -> DisplaySeriesResponse:
    viewer = get_viewer()
    try:
        series = viewer.display(channel)
    except UnknownChannel as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return series_response(series)
