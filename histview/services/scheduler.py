"""
scheduler.py

Purpose:
  Keeps the historical snapshot fresh with a range-dependent polling loop.

Key Responsibilities:
  - **Cadence**: one repeating timer per configuration; the period comes from
    RANGE_POLICIES (5s realtime .. 30min for 30d).
  - **One in flight**: a tick that fires while a fetch is outstanding is dropped,
    not queued. Bounds memory and prevents out-of-order swaps.
  - **Generations**: every range change bumps `generation`. Completions are
    reduced through `handle()` as `BufferReady` / `FetchFailed` messages tagged
    with the generation they were issued for; superseded ones are discarded.
  - **Failure**: a failed fetch keeps the previous snapshot on screen, clears the
    loading flag and goes to the error reporter. Nothing raises out of here.

Flow:
  1. `set_range_class()`: cancel timer + in-flight fetch, `is_loading = True`,
     fetch immediately, arm a new timer.
  2. timer -> `tick()`: fetch unless one is outstanding.
  3. fetch task -> `handle(message)`: swap snapshot or record the failure.
  4. `close()`: cancel everything; late results are ignored.

All state is owned by the event loop the scheduler runs on.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

from histview.errors import FetchFailure, InvalidRangeClass
from histview.models.domain import RANGE_POLICIES, TimeRangeClass
from histview.services.series_buffer import HistoricalSnapshot
from histview.services.transport import HistoricalTransport

logger = logging.getLogger(__name__)


# ============================================================
# MESSAGES
# ============================================================

@dataclass(frozen=True)
class BufferReady:
    range_class: TimeRangeClass
    snapshot: HistoricalSnapshot
    generation: Optional[int] = None


@dataclass(frozen=True)
class FetchFailed:
    range_class: TimeRangeClass
    reason: str
    error: Optional[BaseException] = None
    generation: Optional[int] = None


SchedulerMessage = Union[BufferReady, FetchFailed]
ErrorReporter = Callable[[FetchFailed], None]


def log_fetch_failure(message: FetchFailed) -> None:
    logger.warning("Historical fetch for %s failed: %s", message.range_class.value, message.reason)


# ============================================================
# SCHEDULER
# ============================================================

class RefreshScheduler:
    def __init__(
        self,
        transport: HistoricalTransport,
        *,
        error_reporter: ErrorReporter = log_fetch_failure,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.transport = transport
        self.error_reporter = error_reporter
        self.clock = clock
        self._sleep = sleep

        self.range_class: Optional[TimeRangeClass] = None
        self.snapshot: Optional[HistoricalSnapshot] = None
        self.is_loading = False
        self.last_updated: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self.generation = 0
        self.fetches_started = 0
        self.ticks_skipped = 0
        self.stale_discarded = 0

        self._inflight: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.Task] = None
        self._closed = False

    # ---------------- state queries ----------------

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def period_s(self) -> Optional[float]:
        if self.range_class is None:
            return None
        return RANGE_POLICIES[self.range_class].refresh_period_s

    # ---------------- configuration ----------------

    def set_range_class(self, range_class: TimeRangeClass) -> None:
        """
        Switches the polling configuration. Must be called from the owning loop.
        """
        if not isinstance(range_class, TimeRangeClass):
            raise InvalidRangeClass(range_class)
        if self._closed:
            return

        self._cancel_pending()
        self.generation += 1
        self.range_class = range_class
        self.is_loading = True

        self._start_fetch()
        self._timer = asyncio.get_running_loop().create_task(
            self._run_timer(self.generation, RANGE_POLICIES[range_class].refresh_period_s)
        )
        logger.info("Polling %s every %.0fs", range_class.value, RANGE_POLICIES[range_class].refresh_period_s)

    def restart(self) -> None:
        """Supersedes the current cycle with a fresh one at the same range class."""
        if self.range_class is not None:
            self.set_range_class(self.range_class)

    def tick(self) -> bool:
        """
        Timer callback. Returns True when a fetch was started, False when the tick
        was dropped (fetch outstanding, nothing configured, or closed).
        """
        if self._closed or self.range_class is None:
            return False
        if self.in_flight:
            self.ticks_skipped += 1
            logger.debug("Tick dropped: fetch for %s still in flight", self.range_class.value)
            return False
        self._start_fetch()
        return True

    def refresh(self) -> bool:
        """Manual refresh; same one-in-flight rule as a tick."""
        return self.tick()

    # ---------------- message reduction ----------------

    def handle(self, message: SchedulerMessage) -> bool:
        """
        Reduces a completion into owned state. Returns False when the message was
        discarded as stale (closed, superseded generation or other range class).
        """
        if self._closed:
            return False
        stale_generation = message.generation is not None and message.generation != self.generation
        if stale_generation or message.range_class != self.range_class:
            self.stale_discarded += 1
            logger.debug("Discarded stale %s result for %s", type(message).__name__, message.range_class.value)
            return False

        if isinstance(message, BufferReady):
            self.snapshot = message.snapshot
            self.is_loading = False
            self.last_updated = self.clock()
            self.last_error = None
            return True

        self.is_loading = False
        self.last_error = message.reason
        try:
            self.error_reporter(message)
        except Exception:
            logger.exception("Error reporter raised while reporting a fetch failure")
        return True

    # ---------------- teardown ----------------

    async def close(self) -> None:
        self._closed = True
        tasks = [t for t in (self._timer, self._inflight) if t is not None]
        self._cancel_pending()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ---------------- internals ----------------

    def _cancel_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._inflight is not None:
            self._inflight.cancel()
            self._inflight = None

    def _start_fetch(self) -> None:
        loop = asyncio.get_running_loop()
        self.fetches_started += 1
        self._inflight = loop.create_task(self._fetch(self.generation, self.range_class))

    async def _fetch(self, generation: int, range_class: TimeRangeClass) -> None:
        try:
            try:
                payload = await self.transport.fetch_historical_data(range_class)
                snapshot = HistoricalSnapshot.from_payload(payload, range_class)
                message: SchedulerMessage = BufferReady(range_class, snapshot, generation)
            except asyncio.CancelledError:
                raise
            except FetchFailure as exc:
                message = FetchFailed(range_class, str(exc), exc, generation)
            except Exception as exc:
                message = FetchFailed(range_class, f"{type(exc).__name__}: {exc}", exc, generation)
            self.handle(message)
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

    async def _run_timer(self, generation: int, period_s: float) -> None:
        while not self._closed and generation == self.generation:
            await self._sleep(period_s)
            if self._closed or generation != self.generation:
                return
            self.tick()
