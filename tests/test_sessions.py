"""Tests for SessionStore."""
from datetime import datetime, timezone

import pytest

from backend.app.models import Role, UserSnapshot
from backend.app.sessions import SessionStore


class _Clock:
    def __init__(self):
        self.now = datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return _Clock()


@pytest.fixture
def store(clock):
    return SessionStore(ttl_seconds=60 * 60 * 24, clock=clock)


@pytest.fixture
def member():
    return UserSnapshot(id=1, username="alice", email="alice@example.com", role=Role.MEMBER)


def test_create_and_get(store, member):
    session = store.create(member)
    assert session.token
    assert store.get(session.token) is session
    assert session.user == member


def test_tokens_are_unique(store, member):
    tokens = {store.create(member).token for _ in range(50)}
    assert len(tokens) == 50


def test_unknown_or_missing_token(store):
    assert store.get("nope") is None
    assert store.get(None) is None
    assert store.get("") is None


def test_destroy(store, member):
    session = store.create(member)
    assert store.destroy(session.token) is True
    assert store.get(session.token) is None
    assert store.destroy(session.token) is False


def test_expires_after_ttl(store, clock, member):
    session = store.create(member)
    clock.now = session.expires_at
    assert store.get(session.token) is None
    assert len(store) == 0


def test_valid_just_before_expiry(store, clock, member):
    session = store.create(member)
    clock.now = datetime(2024, 3, 16, 9, 59, 59, tzinfo=timezone.utc)
    assert store.get(session.token) is session


def test_purge_expired(store, clock, member):
    store.create(member)
    clock.now = datetime(2024, 3, 15, 22, 0, tzinfo=timezone.utc)
    fresh = store.create(member)
    clock.now = datetime(2024, 3, 16, 12, 0, tzinfo=timezone.utc)
    assert store.purge_expired() == 1
    assert len(store) == 1
    assert store.get(fresh.token) is fresh


def test_snapshot_is_frozen(member):
    with pytest.raises(AttributeError):
        member.role = Role.ADMIN


def test_create_drops_sessions_past_their_ttl(store, clock, member):
    for _ in range(50):
        store.create(member)
    assert len(store) == 50
    clock.now = datetime(2024, 3, 17, 10, 0, tzinfo=timezone.utc)
    latest = store.create(member)
    assert len(store) == 1
    assert store.get(latest.token) is latest
