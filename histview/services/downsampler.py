"""
downsampler.py

Purpose:
  Reduces a SeriesBuffer to a point budget for display.

Budget:
  - `target = max(min_points, floor(base_points / factor))` from RANGE_POLICIES.
  - realtime at factor 1.0 skips the budget and keeps the last 1000 samples.

Sampling:
  Stride sampling on raw samples (no averaging), so spikes survive. Output index i
  maps to buffer index floor(i * total / target); for totals that are a multiple
  of the target this is plain every-Nth selection from index 0.

Freshness:
  The buffer's last sample is always present. Appending it can push the output one
  point over the target.

Pure and deterministic; never raises.
"""
from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from histview.models.domain import (
    RANGE_POLICIES,
    REALTIME_SAMPLE_CAP,
    Channel,
    TimeRangeClass,
)
from histview.services.series_buffer import Sample, SeriesBuffer
from histview.services.zoom_window import ZoomWindow


@dataclass(frozen=True)
class DisplaySeries:
    channel: Optional[Channel]
    range_class: TimeRangeClass
    samples: Tuple[Sample, ...] = ()

    total_points: int = 0
    target_points: int = 0
    visible_points: int = 0
    offset: int = 0

    viewport_start: Optional[datetime] = None
    viewport_end: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def is_empty(self) -> bool:
        return not self.samples


def target_points(range_class: TimeRangeClass, factor: float) -> int:
    policy = RANGE_POLICIES[range_class]
    return max(policy.min_points, int(math.floor(policy.base_points / factor)))


def is_fast_path(range_class: TimeRangeClass, factor: float) -> bool:
    return factor == 1.0 and range_class == TimeRangeClass.REALTIME


def stride_sample(samples: Tuple[Sample, ...], target: int) -> Tuple[Sample, ...]:
    total = len(samples)
    if total == 0:
        return ()
    if total <= target:
        return tuple(samples)

    indices = [i * total // target for i in range(target)]
    picked = [samples[i] for i in indices]
    if indices[-1] != total - 1:
        picked.append(samples[-1])
    return tuple(picked)


def sample_buffer(buffer: Optional[SeriesBuffer], factor: float, range_class: TimeRangeClass) -> Tuple[Sample, ...]:
    if buffer is None or len(buffer) == 0:
        return ()
    if is_fast_path(range_class, factor):
        return buffer.samples[-REALTIME_SAMPLE_CAP:]
    return stride_sample(buffer.samples, target_points(range_class, factor))


def _budget(range_class: TimeRangeClass, factor: float) -> int:
    if is_fast_path(range_class, factor):
        return REALTIME_SAMPLE_CAP
    return target_points(range_class, factor)


def downsample(
    buffer: Optional[SeriesBuffer],
    zoom: ZoomWindow,
    range_class: TimeRangeClass,
    *,
    cache: Optional["DownsampleCache"] = None,
) -> DisplaySeries:
    channel = buffer.channel if buffer is not None else None
    total = len(buffer) if buffer is not None else 0
    budget = _budget(range_class, zoom.factor)
    if total == 0:
        return DisplaySeries(channel=channel, range_class=range_class, target_points=budget)

    if cache is not None:
        samples = cache.get_or_compute(buffer, zoom.factor, range_class)
    else:
        samples = sample_buffer(buffer, zoom.factor, range_class)

    visible = zoom.visible_points(total)
    offset = zoom.effective_offset(total)
    start = buffer.samples[offset].timestamp
    end = buffer.samples[min(total, offset + visible) - 1].timestamp

    return DisplaySeries(
        channel=channel,
        range_class=range_class,
        samples=samples,
        total_points=total,
        target_points=budget,
        visible_points=visible,
        offset=offset,
        viewport_start=start,
        viewport_end=end,
    )


class DownsampleCache:
    """
    Bounded LRU of sampled sequences keyed on (buffer identity, factor, range class).
    Entries keep their buffer alive so an identity key is never reused while cached.
    """

    def __init__(self, maxsize: int = 64):
        self.maxsize = max(1, int(maxsize))
        self._entries: "OrderedDict[Tuple[int, float, TimeRangeClass], Tuple[SeriesBuffer, Tuple[Sample, ...]]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_compute(self, buffer: SeriesBuffer, factor: float, range_class: TimeRangeClass) -> Tuple[Sample, ...]:
        key = (id(buffer), float(factor), range_class)
        entry = self._entries.get(key)
        if entry is not None and entry[0] is buffer:
            self._entries.move_to_end(key)
            self.hits += 1
            return entry[1]

        self.misses += 1
        samples = sample_buffer(buffer, factor, range_class)
        self._entries[key] = (buffer, samples)
        self._entries.move_to_end(key)
        while len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)
        return samples

    def clear(self) -> None:
        self._entries.clear()
