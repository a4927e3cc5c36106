"""
zoom_window.py

Zoom factor + pan offset over a series, as an immutable value.

Every transition returns a new window; the window holds no buffer reference, so
callers pass the current point count wherever a bound depends on it. Offsets are
re-clamped on every use because the point count changes across buffer swaps.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace

ZOOM_STEP = 0.5
MIN_ZOOM = 0.5
MAX_ZOOM = 5.0


def visible_points_for(factor: float, total_points: int) -> int:
    total = max(0, int(total_points))
    if total == 0:
        return 0
    # a non-empty buffer always shows at least one sample
    return max(1, min(total, int(math.floor(total / factor))))


def max_offset_for(factor: float, total_points: int) -> int:
    total = max(0, int(total_points))
    return max(0, total - visible_points_for(factor, total))


@dataclass(frozen=True)
class ZoomWindow:
    factor: float = 1.0
    offset: int = 0

    @property
    def is_identity(self) -> bool:
        return self.factor == 1.0 and self.offset == 0

    @property
    def can_zoom_in(self) -> bool:
        return self.factor < MAX_ZOOM

    @property
    def can_zoom_out(self) -> bool:
        return self.factor > MIN_ZOOM

    def zoom_in(self) -> "ZoomWindow":
        return replace(self, factor=min(self.factor + ZOOM_STEP, MAX_ZOOM))

    def zoom_out(self, total_points: int) -> "ZoomWindow":
        factor = max(self.factor - ZOOM_STEP, MIN_ZOOM)
        offset = min(self.offset, max_offset_for(factor, total_points))
        return ZoomWindow(factor=factor, offset=max(0, offset))

    def pan(self, delta: int, total_points: int) -> "ZoomWindow":
        ceiling = max_offset_for(self.factor, total_points)
        offset = min(max(self.offset + int(delta), 0), ceiling)
        return replace(self, offset=offset)

    def reset(self) -> "ZoomWindow":
        return ZoomWindow()

    def visible_points(self, total_points: int) -> int:
        return visible_points_for(self.factor, total_points)

    def effective_offset(self, total_points: int) -> int:
        return min(max(self.offset, 0), max_offset_for(self.factor, total_points))
