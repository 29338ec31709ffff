import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

# main.py builds a module-level app on import; keep its database out of the repo.
os.environ.setdefault("APP_DATABASE_PATH", str(Path(tempfile.mkdtemp(prefix="portal-tests-")) / "portal.db"))

import pytest
from fastapi.testclient import TestClient

from backend.app.config import Settings
from backend.app.main import create_app
from backend.app.models import Role


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 15, 10, 30, 0, 123456, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_path=tmp_path / "portal.db",
        session_cookie_name="session_id",
        session_ttl_seconds=60 * 60 * 24,
        session_cookie_secure=False,
        manual_counter_mode="timestamp",
        tracking_utc_offset_hours=0,
        cors_allow_origins=(),
    )


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def make_user(app):
    def _make_user(username: str, role: Role = Role.MEMBER, password: str = "secret-pass") -> dict:
        return app.state.user_store.create_user(
            username=username,
            email=f"{username}@example.com",
            password=password,
            role=role,
        )

    return _make_user


@pytest.fixture
def login():
    def _login(client: TestClient, email: str, password: str = "secret-pass"):
        return client.post("/login", data={"email": email, "password": password})

    return _login
