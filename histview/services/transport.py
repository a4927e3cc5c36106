"""
transport.py

Purpose:
  Data sources the viewer pulls historical payloads from.

Implementations:
  - `HttpHistoricalTransport`: httpx client against the dashboard server.
      GET {base}/api/historical?timeRange=<rc>          -> JSON payload
      GET {base}/api/export/<tab>?timeRange=<rc>        -> CSV (full fidelity)
  - `DemoHistoricalTransport`: deterministic synthetic payloads for offline/demo runs.

Payload shape (both):
  { "temperature": {"noc": [{timestamp, value}], "ups": [...]},
    "humidity":    {"noc": [...], "ups": [...]},
    "electrical":  [{timestamp, phase_r, phase_s, phase_t}] }

Export is a pass-through: downsampling is never applied to exported data.
Reconnects, retries and duplicate suppression belong to the upstream server.
"""
from __future__ import annotations

import csv
import io
import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

import httpx

from histview.errors import AuthenticationExpired, ExportFailure, FetchFailure
from histview.models.domain import CHANNEL_FIELDS, TAB_CHANNELS, DisplayTab, TimeRangeClass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: bytes
    media_type: str = "text/csv"


def export_filename(tab: DisplayTab, range_class: TimeRangeClass, now: datetime) -> str:
    return f"{tab.value}_data_{range_class.value}_{now.strftime('%Y%m%d_%H%M%S')}.csv"


class HistoricalTransport(Protocol):
    async def fetch_historical_data(self, range_class: TimeRangeClass) -> Dict[str, Any]:
        ...

    async def export_csv(self, tab: DisplayTab, range_class: TimeRangeClass) -> CsvExport:
        ...

    async def aclose(self) -> None:
        ...


# ============================================================
# 1) HTTP TRANSPORT (httpx)
# ============================================================

class HttpHistoricalTransport:
    def __init__(
        self,
        base_url: str,
        *,
        auth_token: Optional[str] = None,
        timeout_s: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.clock = clock
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout_s)

    def _headers(self, **extra: str) -> Dict[str, str]:
        headers = dict(extra)
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def fetch_historical_data(self, range_class: TimeRangeClass) -> Dict[str, Any]:
        try:
            resp = await self._client.get(
                "/api/historical",
                params={"timeRange": range_class.value},
                headers=self._headers(Accept="application/json"),
            )
        except httpx.HTTPError as exc:
            raise FetchFailure(f"Historical fetch failed: {exc}") from exc

        if resp.status_code != 200:
            raise FetchFailure(
                f"Historical fetch failed: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise FetchFailure("Historical fetch returned a non-JSON body") from exc

    async def export_csv(self, tab: DisplayTab, range_class: TimeRangeClass) -> CsvExport:
        if not self.auth_token:
            raise ExportFailure("Authentication token not found", status_code=401)

        try:
            resp = await self._client.get(
                f"/api/export/{tab.value}",
                params={"timeRange": range_class.value},
                headers=self._headers(**{"Cache-Control": "no-cache", "Accept": "text/csv"}),
            )
        except httpx.HTTPError as exc:
            raise ExportFailure(f"Export failed: {exc}") from exc

        if resp.status_code == 401:
            raise AuthenticationExpired()
        if resp.status_code != 200:
            raise ExportFailure(f"Export failed: {resp.reason_phrase}", status_code=resp.status_code)

        return CsvExport(filename=export_filename(tab, range_class, self.clock()), content=resp.content)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# ============================================================
# 2) DEMO TRANSPORT (deterministic synthetic data)
# ============================================================

@dataclass(frozen=True)
class DemoSpan:
    points: int
    spacing_s: int


DEMO_SPANS: Dict[TimeRangeClass, DemoSpan] = {
    TimeRangeClass.REALTIME: DemoSpan(points=1200, spacing_s=1),
    TimeRangeClass.LAST_HOUR: DemoSpan(points=720, spacing_s=5),
    TimeRangeClass.LAST_DAY: DemoSpan(points=1440, spacing_s=60),
    TimeRangeClass.LAST_WEEK: DemoSpan(points=2016, spacing_s=300),
    TimeRangeClass.LAST_MONTH: DemoSpan(points=2880, spacing_s=900),
}


class DemoHistoricalTransport:
    """
    Synthetic room telemetry: NOC/UPS temperature around 22/26 °C, humidity
    around 50/45 %RH with a daily swing, three phases around 220 V.
    Same clock reading + seed -> same payload.
    """

    def __init__(self, seed: int = 7, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.seed = seed
        self.clock = clock

    def _timestamps(self, range_class: TimeRangeClass) -> List[datetime]:
        span = DEMO_SPANS[range_class]
        now = self.clock()
        # align to the spacing so consecutive fetches share timestamps
        epoch = int(now.timestamp())
        end = datetime.fromtimestamp(epoch - epoch % span.spacing_s, tz=timezone.utc)
        start = end - timedelta(seconds=span.spacing_s * (span.points - 1))
        return [start + timedelta(seconds=span.spacing_s * i) for i in range(span.points)]

    def build_payload(self, range_class: TimeRangeClass) -> Dict[str, Any]:
        stamps = self._timestamps(range_class)
        rng = random.Random(f"{self.seed}:{range_class.value}:{stamps[-1].isoformat()}")

        def daily(ts: datetime) -> float:
            hour = ts.hour + ts.minute / 60.0
            return math.sin((hour - 9.0) / 24.0 * 2.0 * math.pi)

        def single(base: float, amp: float, noise: float) -> List[Dict[str, Any]]:
            return [
                {"timestamp": ts.isoformat(), "value": round(base + amp * daily(ts) + rng.uniform(-noise, noise), 2)}
                for ts in stamps
            ]

        electrical = [
            {
                "timestamp": ts.isoformat(),
                "phase_r": round(220.0 + rng.uniform(-3.0, 3.0), 1),
                "phase_s": round(219.0 + rng.uniform(-3.0, 3.0), 1),
                "phase_t": round(221.0 + rng.uniform(-3.0, 3.0), 1),
            }
            for ts in stamps
        ]
        return {
            "temperature": {"noc": single(22.0, 1.5, 0.3), "ups": single(26.0, 2.0, 0.4)},
            "humidity": {"noc": single(50.0, 6.0, 1.0), "ups": single(45.0, 5.0, 1.0)},
            "electrical": electrical,
        }

    async def fetch_historical_data(self, range_class: TimeRangeClass) -> Dict[str, Any]:
        return self.build_payload(range_class)

    async def export_csv(self, tab: DisplayTab, range_class: TimeRangeClass) -> CsvExport:
        payload = self.build_payload(range_class)
        channels = TAB_CHANNELS[tab]

        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["channel", "timestamp", *CHANNEL_FIELDS[channels[0]]])
        for channel in channels:
            group, _, site = channel.value.partition(".")
            records = payload[group][site] if site else payload[group]
            for rec in records:
                writer.writerow([channel.value, rec["timestamp"], *(rec[f] for f in CHANNEL_FIELDS[channel])])

        logger.debug("Demo export for %s/%s: %d channels", tab.value, range_class.value, len(channels))
        return CsvExport(
            filename=export_filename(tab, range_class, self.clock()),
            content=buf.getvalue().encode("utf-8"),
        )

    async def aclose(self) -> None:
        return None
