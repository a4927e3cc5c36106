import time

import pytest
from fastapi.testclient import TestClient

from fakes import build_payload
from histview import deps
from histview.models.domain import Channel, TimeRangeClass
from histview.services.series_buffer import SeriesBuffer


@pytest.fixture
def make_buffer():
    def _make(n: int, channel: Channel = Channel.TEMPERATURE_NOC, range_class: TimeRangeClass = TimeRangeClass.LAST_HOUR):
        return SeriesBuffer.from_records(channel, range_class, build_payload(n)["temperature"]["noc"])

    return _make


@pytest.fixture(autouse=True)
def _fresh_singletons(monkeypatch):
    monkeypatch.setenv("HISTVIEW_DEMO_MODE", "1")
    monkeypatch.setenv("HISTVIEW_DEFAULT_RANGE", "realtime")
    deps.reset_singletons()
    yield
    deps.reset_singletons()


@pytest.fixture
def client():
    from histview.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def wait_loaded():
    def _wait(client: TestClient, timeout_s: float = 3.0) -> dict:
        deadline = time.time() + timeout_s
        data = client.get("/viewer/state").json()
        while time.time() < deadline:
            if not data["is_loading"] and data["total_points"] > 0:
                return data
            time.sleep(0.02)
            data = client.get("/viewer/state").json()
        return data

    return _wait
