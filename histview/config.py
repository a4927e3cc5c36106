from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

_TRUE = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in _TRUE


def env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return float(val.strip())
    except ValueError:
        return default


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip()


@dataclass(frozen=True)
class ViewerSettings:
    upstream_url: str = "http://10.10.1.25:3000"
    auth_token: Optional[str] = None
    http_timeout_s: float = 15.0
    demo_mode: bool = False
    default_range: str = "realtime"
    log_level: str = "INFO"
    cache_size: int = 64
    ws_push_interval_s: float = 1.0
    allowed_origins: str = "*"

    @property
    def origins(self) -> List[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


def load_settings() -> ViewerSettings:
    defaults = ViewerSettings()
    return ViewerSettings(
        upstream_url=env_str("HISTVIEW_UPSTREAM_URL", defaults.upstream_url).rstrip("/"),
        auth_token=env_str("HISTVIEW_AUTH_TOKEN"),
        http_timeout_s=env_float("HISTVIEW_HTTP_TIMEOUT_S", defaults.http_timeout_s),
        demo_mode=env_flag("HISTVIEW_DEMO_MODE", defaults.demo_mode),
        default_range=env_str("HISTVIEW_DEFAULT_RANGE", defaults.default_range),
        log_level=env_str("HISTVIEW_LOG_LEVEL", defaults.log_level).upper(),
        cache_size=max(1, env_int("HISTVIEW_CACHE_SIZE", defaults.cache_size)),
        ws_push_interval_s=env_float("HISTVIEW_WS_PUSH_INTERVAL_S", defaults.ws_push_interval_s),
        allowed_origins=env_str("ALLOWED_ORIGINS", defaults.allowed_origins),
    )
