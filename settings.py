from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_PATH_ENV = "REALTIME_STORE_PATH"
_WEATHER_API_KEY_ENV = "WEATHER_API_KEY"
_WEATHER_CITY_ENV = "WEATHER_CITY"
_WEATHER_BASE_URL_ENV = "WEATHER_BASE_URL"
_TIMEZONE_ENV = "DISPLAY_TIMEZONE"
_LIVENESS_TIMEOUT_ENV = "LIVENESS_TIMEOUT_MS"
_LIVENESS_INTERVAL_ENV = "LIVENESS_POLL_INTERVAL"
_HISTORY_CAPACITY_ENV = "HISTORY_CAPACITY"
_HISTORY_MODE_ENV = "HISTORY_MODE"
_HISTORY_RETENTION_ENV = "HISTORY_RETENTION"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_SESSION_SECRET_ENV = "SESSION_SECRET"

HISTORY_MODES = ("snapshot", "stream")


@dataclass(frozen=True)
class Settings:
    store_persistence_path: Optional[str]
    weather_api_key: Optional[str]
    weather_city: str
    weather_base_url: str
    display_timezone: str
    liveness_timeout_ms: int
    liveness_poll_interval: float
    history_capacity: int
    history_mode: str
    history_retention: int
    log_level: str
    session_secret: Optional[str]


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


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


def _read_history_mode(default: str) -> str:
    candidate = _read_str_env(_HISTORY_MODE_ENV, default).lower()
    return candidate if candidate in HISTORY_MODES else default


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
        store_persistence_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/realtime_db.json"),
        weather_api_key=_read_optional_env(_WEATHER_API_KEY_ENV, None),
        weather_city=_read_str_env(_WEATHER_CITY_ENV, "Indore,IN"),
        weather_base_url=_read_str_env(
            _WEATHER_BASE_URL_ENV, "https://api.openweathermap.org/data/2.5"
        ).rstrip("/"),
        display_timezone=_read_str_env(_TIMEZONE_ENV, "UTC"),
        liveness_timeout_ms=_read_positive_int(_LIVENESS_TIMEOUT_ENV, 5000),
        liveness_poll_interval=_read_positive_float(_LIVENESS_INTERVAL_ENV, 1.0),
        history_capacity=_read_positive_int(_HISTORY_CAPACITY_ENV, 15),
        history_mode=_read_history_mode("snapshot"),
        history_retention=_read_positive_int(_HISTORY_RETENTION_ENV, 200),
        log_level=_read_log_level("INFO"),
        session_secret=_read_optional_env(_SESSION_SECRET_ENV, None),
    )
