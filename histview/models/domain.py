from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from histview.errors import InvalidRangeClass


# ============================================================
# 0) ENUMS (Type Safety)
# ============================================================

class TimeRangeClass(str, Enum):
    REALTIME = "realtime"
    LAST_HOUR = "1h"
    LAST_DAY = "24h"
    LAST_WEEK = "7d"
    LAST_MONTH = "30d"

    @classmethod
    def parse(cls, value: Any) -> "TimeRangeClass":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            raise InvalidRangeClass(value) from None


class DisplayTab(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    ELECTRICAL = "electrical"


class Channel(str, Enum):
    TEMPERATURE_NOC = "temperature.noc"
    TEMPERATURE_UPS = "temperature.ups"
    HUMIDITY_NOC = "humidity.noc"
    HUMIDITY_UPS = "humidity.ups"
    ELECTRICAL = "electrical"


TAB_CHANNELS: Dict[DisplayTab, Tuple[Channel, ...]] = {
    DisplayTab.TEMPERATURE: (Channel.TEMPERATURE_NOC, Channel.TEMPERATURE_UPS),
    DisplayTab.HUMIDITY: (Channel.HUMIDITY_NOC, Channel.HUMIDITY_UPS),
    DisplayTab.ELECTRICAL: (Channel.ELECTRICAL,),
}

# Fields carried by each record of a channel, besides its timestamp
CHANNEL_FIELDS: Dict[Channel, Tuple[str, ...]] = {
    Channel.TEMPERATURE_NOC: ("value",),
    Channel.TEMPERATURE_UPS: ("value",),
    Channel.HUMIDITY_NOC: ("value",),
    Channel.HUMIDITY_UPS: ("value",),
    Channel.ELECTRICAL: ("phase_r", "phase_s", "phase_t"),
}


# ============================================================
# 1) RANGE POLICY (poll cadence + point budget)
# ============================================================

class RangePolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    refresh_period_s: float
    base_points: int
    min_points: int
    label: str


RANGE_POLICIES: Dict[TimeRangeClass, RangePolicy] = {
    TimeRangeClass.REALTIME: RangePolicy(
        refresh_period_s=5.0, base_points=1000, min_points=100, label="Real-time (1 min intervals)"
    ),
    TimeRangeClass.LAST_HOUR: RangePolicy(
        refresh_period_s=30.0, base_points=300, min_points=60, label="Last Hour"
    ),
    TimeRangeClass.LAST_DAY: RangePolicy(
        refresh_period_s=300.0, base_points=200, min_points=50, label="Last 24 Hours"
    ),
    TimeRangeClass.LAST_WEEK: RangePolicy(
        refresh_period_s=600.0, base_points=150, min_points=40, label="Last 7 Days"
    ),
    TimeRangeClass.LAST_MONTH: RangePolicy(
        refresh_period_s=1800.0, base_points=100, min_points=30, label="Last 30 Days"
    ),
}

# realtime at identity zoom shows the most recent samples verbatim
REALTIME_SAMPLE_CAP = 1000


# ============================================================
# 2) API RESPONSE SCHEMAS (renderer contract)
# ============================================================

class ZoomWindowResponse(BaseModel):
    factor: float
    offset: int
    is_identity: bool
    can_zoom_in: bool
    can_zoom_out: bool


class DisplaySeriesResponse(BaseModel):
    channel: Channel
    range_class: TimeRangeClass

    total_points: int
    target_points: int
    visible_points: int
    offset: int

    viewport_start: Optional[str] = None
    viewport_end: Optional[str] = None

    # flattened records: {"timestamp": iso, <field>: value, ...}
    points: List[Dict[str, Any]] = Field(default_factory=list)


class ViewerStateResponse(BaseModel):
    ts: str
    range_class: TimeRangeClass
    range_label: str
    refresh_period_s: float
    tab: DisplayTab

    is_loading: bool
    last_updated: Optional[str] = None
    last_error: Optional[str] = None

    zoom: ZoomWindowResponse
    total_points: int
    visible_points: int

    series: Dict[str, DisplaySeriesResponse] = Field(default_factory=dict)


class RefreshResponse(BaseModel):
    started: bool
    in_flight: bool


class SchedulerStatsResponse(BaseModel):
    fetches_started: int
    ticks_skipped: int
    stale_discarded: int
    in_flight: bool


class HealthResponse(BaseModel):
    status: str
    ts: str
    scheduler: Optional[SchedulerStatsResponse] = None
