"""Application settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parents[2]
_ENV_PATH = _ROOT / ".env"
load_dotenv(_ENV_PATH)

MANUAL_COUNTER_MODES = ("timestamp", "day")
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_path: Path
    session_cookie_name: str
    session_ttl_seconds: int
    session_cookie_secure: bool
    manual_counter_mode: str
    tracking_utc_offset_hours: int
    cors_allow_origins: tuple[str, ...]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer") from exc


@lru_cache()
def get_settings() -> Settings:
    database_path = Path(os.getenv("APP_DATABASE_PATH", str(_ROOT / "data" / "portal.db")))

    session_ttl_seconds = _int_env("SESSION_TTL_SECONDS", 60 * 60 * 24)
    if session_ttl_seconds <= 0:
        raise RuntimeError("SESSION_TTL_SECONDS must be positive")

    manual_counter_mode = os.getenv("MANUAL_COUNTER_MODE", "timestamp").strip().lower()
    if manual_counter_mode not in MANUAL_COUNTER_MODES:
        raise RuntimeError(
            f"MANUAL_COUNTER_MODE must be one of {', '.join(MANUAL_COUNTER_MODES)}"
        )

    offset_hours = _int_env("TRACKING_UTC_OFFSET_HOURS", 0)
    if not -23 <= offset_hours <= 23:
        raise RuntimeError("TRACKING_UTC_OFFSET_HOURS must be between -23 and 23")

    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    cors_allow_origins = tuple(origin.strip() for origin in origins_env.split(",") if origin.strip())

    return Settings(
        database_path=database_path,
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "session_id").strip() or "session_id",
        session_ttl_seconds=session_ttl_seconds,
        session_cookie_secure=os.getenv("SESSION_COOKIE_SECURE", "false").strip().lower() in _TRUE_VALUES,
        manual_counter_mode=manual_counter_mode,
        tracking_utc_offset_hours=offset_hours,
        cors_allow_origins=cors_allow_origins,
    )
