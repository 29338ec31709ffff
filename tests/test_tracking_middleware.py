"""Tests for PageViewMiddleware."""
import logging
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from backend.app.analytics.middleware import day_key
from backend.app.analytics.store import CounterStore
from backend.app.errors import StorageError
from backend.app.main import create_app


class FailingCounterStore(CounterStore):
    def increment(self, day, field, delta=1):
        raise StorageError("database is locked")


class ExplodingCounterStore(CounterStore):
    def increment(self, day, field, delta=1):
        raise RuntimeError("unexpected")


def _today(app):
    return app.state.counter_store.get_day(date(2024, 3, 15))


def test_first_request_creates_counter(app, client):
    assert _today(app) is None
    assert client.get("/api/ping").status_code == 200
    assert _today(app)["page_views"] == 1
    client.get("/api/ping")
    assert _today(app)["page_views"] == 2


def test_counts_requests_that_are_redirected_or_rejected(app, client):
    assert client.get("/admin").status_code == 302
    assert client.get("/does-not-exist").status_code == 404
    assert _today(app)["page_views"] == 2


def test_new_day_gets_new_bucket(app, client, clock):
    client.get("/api/ping")
    clock.advance(days=1)
    client.get("/api/ping")
    client.get("/api/ping")
    rows = app.state.counter_store.list_daily()
    assert [(row["date"], row["page_views"]) for row in rows] == [("2024-03-15", 1), ("2024-03-16", 2)]


def test_static_assets_are_not_counted(app, client):
    response = client.get("/static/css/site.css")
    assert response.status_code == 200
    assert _today(app) is None


@pytest.mark.parametrize("store_cls", [FailingCounterStore, ExplodingCounterStore])
def test_tracking_failure_does_not_fail_request(settings, clock, caplog, store_cls):
    app = create_app(settings, clock=clock, counter_store=store_cls(settings.database_path))
    with caplog.at_level(logging.ERROR, logger="uvicorn.error"):
        with TestClient(app) as client:
            response = client.get("/api/ping")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "Error tracking page views" in caplog.text


class TestDayKey:
    def test_truncates_to_utc_date(self):
        assert day_key(datetime(2024, 3, 15, 23, 59, 59, tzinfo=timezone.utc)) == date(2024, 3, 15)

    def test_applies_offset(self):
        now = datetime(2024, 3, 15, 20, 0, tzinfo=timezone.utc)
        assert day_key(now, utc_offset_hours=9) == date(2024, 3, 16)
        assert day_key(now, utc_offset_hours=-21) == date(2024, 3, 14)

    def test_naive_datetime_is_treated_as_utc(self):
        assert day_key(datetime(2024, 3, 15, 0, 30)) == date(2024, 3, 15)

    def test_converts_aware_datetimes(self):
        tokyo = timezone(timedelta(hours=9))
        assert day_key(datetime(2024, 3, 16, 5, 0, tzinfo=tokyo)) == date(2024, 3, 15)
