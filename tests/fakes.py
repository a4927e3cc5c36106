import asyncio
from datetime import datetime, timedelta, timezone

T0 = datetime(2026, 10, 19, 10, 0, 0, tzinfo=timezone.utc)


def build_payload(n: int, *, value: float = 20.0, spacing_s: int = 1, start: datetime = T0) -> dict:
    stamps = [(start + timedelta(seconds=spacing_s * i)).isoformat() for i in range(n)]
    single = [{"timestamp": ts, "value": value + i * 0.01} for i, ts in enumerate(stamps)]
    return {
        "temperature": {"noc": single, "ups": list(single)},
        "humidity": {"noc": list(single), "ups": list(single)},
        "electrical": [
            {"timestamp": ts, "phase_r": 220.0, "phase_s": 219.5, "phase_t": 221.0} for ts in stamps
        ],
    }


class GatedTransport:
    """
    Fetches block until the test releases them; tracks concurrency.
    """

    def __init__(self):
        self.calls = []
        self.pending = []
        self.active = 0
        self.max_active = 0

    async def fetch_historical_data(self, range_class):
        self.calls.append(range_class)
        fut = asyncio.get_running_loop().create_future()
        self.pending.append(fut)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            return await fut
        finally:
            self.active -= 1

    def release(self, index, payload=None, error=None):
        fut = self.pending[index]
        if fut.done():
            return False
        if error is not None:
            fut.set_exception(error)
        else:
            fut.set_result(payload)
        return True

    async def export_csv(self, tab, range_class):
        raise NotImplementedError

    async def aclose(self):
        return None


class InstantTransport:
    """Answers every fetch immediately from a payload factory (or raises)."""

    def __init__(self, payload_for=None, error=None):
        self.calls = []
        self.payload_for = payload_for or (lambda rc: build_payload(10))
        self.error = error

    async def fetch_historical_data(self, range_class):
        self.calls.append(range_class)
        if self.error is not None:
            raise self.error
        return self.payload_for(range_class)

    async def export_csv(self, tab, range_class):
        raise NotImplementedError

    async def aclose(self):
        return None


class ManualSleep:
    """Replaces asyncio.sleep in the scheduler timer; each fire() wakes one sleeper."""

    def __init__(self):
        self.periods = []
        self._wakeups = None

    async def __call__(self, period):
        if self._wakeups is None:
            self._wakeups = asyncio.Queue()
        self.periods.append(period)
        await self._wakeups.get()

    def fire(self):
        if self._wakeups is None:
            self._wakeups = asyncio.Queue()
        self._wakeups.put_nowait(None)


async def never_sleep(_period):
    await asyncio.Event().wait()


async def settle(rounds: int = 10):
    for _ in range(rounds):
        await asyncio.sleep(0)
