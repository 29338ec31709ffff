from pathlib import Path

import pytest

from backend.app.config import get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch, tmp_path):
    for name in (
        "SESSION_COOKIE_NAME",
        "SESSION_TTL_SECONDS",
        "SESSION_COOKIE_SECURE",
        "MANUAL_COUNTER_MODE",
        "TRACKING_UTC_OFFSET_HOURS",
        "CORS_ALLOW_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("APP_DATABASE_PATH", str(tmp_path / "x.db"))
    settings = get_settings()
    assert settings.database_path == Path(tmp_path / "x.db")
    assert settings.session_cookie_name == "session_id"
    assert settings.session_ttl_seconds == 86400
    assert settings.session_cookie_secure is False
    assert settings.manual_counter_mode == "timestamp"
    assert settings.tracking_utc_offset_hours == 0
    assert settings.cors_allow_origins == ()


def test_overrides(monkeypatch):
    monkeypatch.setenv("SESSION_TTL_SECONDS", "3600")
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "true")
    monkeypatch.setenv("MANUAL_COUNTER_MODE", "DAY")
    monkeypatch.setenv("TRACKING_UTC_OFFSET_HOURS", "9")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
    settings = get_settings()
    assert settings.session_ttl_seconds == 3600
    assert settings.session_cookie_secure is True
    assert settings.manual_counter_mode == "day"
    assert settings.tracking_utc_offset_hours == 9
    assert settings.cors_allow_origins == ("http://a.test", "http://b.test")


@pytest.mark.parametrize(
    "name,value",
    [
        ("MANUAL_COUNTER_MODE", "hourly"),
        ("SESSION_TTL_SECONDS", "0"),
        ("SESSION_TTL_SECONDS", "soon"),
        ("TRACKING_UTC_OFFSET_HOURS", "30"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        get_settings()
