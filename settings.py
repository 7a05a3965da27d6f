from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_BACKEND_URL_ENV = "SENSOR_BACKEND_URL"
_LOCAL_SENSOR_URL_ENV = "LOCAL_SENSOR_URL"
_POLL_INTERVAL_ENV = "POLL_INTERVAL_SECONDS"
_DEBOUNCE_ENV = "DEBOUNCE_MS"
_READ_TIMEOUT_ENV = "SENSOR_READ_TIMEOUT"
_POST_TIMEOUT_ENV = "POST_TIMEOUT"
_NEARBY_TIMEOUT_ENV = "NEARBY_TIMEOUT"
_INITIAL_ZOOM_ENV = "INITIAL_ZOOM"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    backend_url: str
    local_sensor_url: str
    poll_interval: float
    debounce_ms: int
    read_timeout: float
    post_timeout: float
    nearby_timeout: float
    initial_zoom: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_url_env(name: str, default: str) -> str:
    return _read_str_env(name, default).rstrip("/")


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_debounce_ms(default: int) -> int:
    value = os.getenv(_DEBOUNCE_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_zoom(default: float) -> float:
    value = os.getenv(_INITIAL_ZOOM_ENV)
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        backend_url=_read_url_env(_BACKEND_URL_ENV, "http://localhost:5000/api/sensor"),
        local_sensor_url=_read_url_env(_LOCAL_SENSOR_URL_ENV, "http://192.168.4.1/sensor"),
        poll_interval=_read_positive_float(_POLL_INTERVAL_ENV, 3.0),
        debounce_ms=_read_debounce_ms(800),
        read_timeout=_read_positive_float(_READ_TIMEOUT_ENV, 8.0),
        post_timeout=_read_positive_float(_POST_TIMEOUT_ENV, 8.0),
        nearby_timeout=_read_positive_float(_NEARBY_TIMEOUT_ENV, 5.0),
        initial_zoom=_read_zoom(15.0),
        log_level=_read_log_level("INFO"),
    )
