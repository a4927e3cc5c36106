import pytest

from histview import deps
from histview.config import env_flag, env_float, env_int, load_settings
from histview.errors import InvalidRangeClass
from histview.models.domain import TimeRangeClass
from histview.services.transport import DemoHistoricalTransport, HttpHistoricalTransport


def test_env_helpers_fall_back_on_garbage(monkeypatch):
    monkeypatch.setenv("X_INT", "twelve")
    monkeypatch.setenv("X_FLOAT", "")
    monkeypatch.setenv("X_FLAG", " Yes ")
    assert env_int("X_INT", 7) == 7
    assert env_float("X_FLOAT", 1.5) == 1.5
    assert env_flag("X_FLAG") is True
    assert env_flag("X_MISSING", default=True) is True


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("HISTVIEW_UPSTREAM_URL", "http://dash.local:3000/")
    monkeypatch.setenv("HISTVIEW_AUTH_TOKEN", "tok")
    monkeypatch.setenv("HISTVIEW_HTTP_TIMEOUT_S", "2.5")
    monkeypatch.setenv("HISTVIEW_LOG_LEVEL", "debug")
    monkeypatch.setenv("HISTVIEW_CACHE_SIZE", "0")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test")

    s = load_settings()
    assert s.upstream_url == "http://dash.local:3000"
    assert s.auth_token == "tok"
    assert s.http_timeout_s == 2.5
    assert s.log_level == "DEBUG"
    assert s.cache_size == 1
    assert s.origins == ["http://a.test", "http://b.test"]


def test_deps_pick_transport_by_mode(monkeypatch):
    assert isinstance(deps.get_transport(), DemoHistoricalTransport)

    monkeypatch.setenv("HISTVIEW_DEMO_MODE", "0")
    deps.reset_singletons()
    assert isinstance(deps.get_transport(), HttpHistoricalTransport)


def test_viewer_singleton_uses_default_range(monkeypatch):
    monkeypatch.setenv("HISTVIEW_DEFAULT_RANGE", "7d")
    deps.reset_singletons()
    viewer = deps.get_viewer()
    assert viewer.range_class == TimeRangeClass.LAST_WEEK
    assert deps.get_viewer() is viewer


def test_bad_default_range_is_rejected(monkeypatch):
    monkeypatch.setenv("HISTVIEW_DEFAULT_RANGE", "forever")
    deps.reset_singletons()
    with pytest.raises(InvalidRangeClass):
        deps.get_viewer()
