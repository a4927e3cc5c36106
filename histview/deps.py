"""
deps.py

Purpose:
  Dependency container for the application. Holds singleton instances so the
  viewer session (and its polling loop) persists across requests.

Services Managed:
  - `ViewerSettings` (environment configuration)
  - `HistoricalTransport` (HTTP upstream, or synthetic data in demo mode)
  - `HistoricalViewer` (zoom/tab/range state + RefreshScheduler)

Pattern:
  - `lru_cache(maxsize=1)` singletons; tests call `cache_clear()` or patch the getters.
"""
from __future__ import annotations

from functools import lru_cache

from histview.config import ViewerSettings, load_settings
from histview.models.domain import TimeRangeClass
from histview.services.transport import (
    DemoHistoricalTransport,
    HistoricalTransport,
    HttpHistoricalTransport,
)
from histview.services.viewer import HistoricalViewer


@lru_cache(maxsize=1)
def get_settings() -> ViewerSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_transport() -> HistoricalTransport:
    settings = get_settings()
    if settings.demo_mode:
        return DemoHistoricalTransport()
    return HttpHistoricalTransport(
        settings.upstream_url,
        auth_token=settings.auth_token,
        timeout_s=settings.http_timeout_s,
    )


@lru_cache(maxsize=1)
def get_viewer() -> HistoricalViewer:
    settings = get_settings()
    return HistoricalViewer(
        get_transport(),
        range_class=TimeRangeClass.parse(settings.default_range),
        cache_size=settings.cache_size,
    )


def reset_singletons() -> None:
    get_viewer.cache_clear()
    get_transport.cache_clear()
    get_settings.cache_clear()
