"""
series_buffer.py

Purpose:
  Immutable in-memory holders for the historical series delivered by the transport.

Shapes:
  - `Sample`: one timestamped record with one or more named numeric fields
    (`value` for temperature/humidity, `phase_r/phase_s/phase_t` for electrical).
  - `SeriesBuffer`: ordered samples of ONE channel, tagged with the range class
    it was fetched for. Never mutated; a refresh builds a new one.
  - `HistoricalSnapshot`: every channel of one transport payload. This is the
    unit the scheduler swaps in atomically.

Ordering:
  Timestamps are assumed non-decreasing and unique within a buffer. The producer
  enforces that (last-write-wins upstream); nothing here re-sorts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from histview.models.domain import CHANNEL_FIELDS, Channel, TimeRangeClass


def parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    raise ValueError(f"Unparsable timestamp: {raw!r}")


@dataclass(frozen=True)
class Sample:
    timestamp: datetime
    values: Mapping[str, float] = field(default_factory=dict)

    def to_record(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"timestamp": self.timestamp.isoformat()}
        out.update(self.values)
        return out


@dataclass(frozen=True, eq=False)
class SeriesBuffer:
    channel: Channel
    range_class: TimeRangeClass
    samples: Tuple[Sample, ...] = ()

    @classmethod
    def from_records(
        cls,
        channel: Channel,
        range_class: TimeRangeClass,
        records: Optional[Iterable[Mapping[str, Any]]],
    ) -> "SeriesBuffer":
        fields = CHANNEL_FIELDS[channel]
        samples = []
        for rec in records or ():
            ts = parse_timestamp(rec.get("timestamp"))
            values = {}
            for name in fields:
                raw = rec.get(name)
                if raw is None:
                    raise ValueError(f"{channel.value}: record at {ts.isoformat()} is missing '{name}'")
                values[name] = float(raw)
            samples.append(Sample(timestamp=ts, values=values))
        return cls(channel=channel, range_class=range_class, samples=tuple(samples))

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    @property
    def latest(self) -> Optional[Sample]:
        return self.samples[-1] if self.samples else None


@dataclass(frozen=True, eq=False)
class HistoricalSnapshot:
    range_class: TimeRangeClass
    buffers: Mapping[Channel, SeriesBuffer]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], range_class: TimeRangeClass) -> "HistoricalSnapshot":
        """
        Builds every channel buffer from the transport payload:

          { "temperature": {"noc": [...], "ups": [...]},
            "humidity":    {"noc": [...], "ups": [...]},
            "electrical":  [...] }

        Missing groups become empty buffers. Malformed records raise ValueError.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"Historical payload must be an object, got {type(payload).__name__}")

        buffers: Dict[Channel, SeriesBuffer] = {}
        for channel in Channel:
            group, _, site = channel.value.partition(".")
            records = payload.get(group)
            if site:
                records = (records or {}).get(site)
            buffers[channel] = SeriesBuffer.from_records(channel, range_class, records)
        return cls(range_class=range_class, buffers=buffers)

    def get(self, channel: Channel) -> SeriesBuffer:
        buf = self.buffers.get(channel)
        if buf is None:
            return SeriesBuffer(channel=channel, range_class=self.range_class)
        return buf
