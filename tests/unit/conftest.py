"""Shared fixtures for unit tests."""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from tablebook.core.intelligence.session.manager import SessionStore
from tablebook.core.intelligence.slots.extractor import RegexSlotExtractor
from tablebook.core.scheduling.finalizer import BookingFinalizer
from tablebook.core.scheduling.flow import ConversationFlow
from tablebook.core.scheduling.response import ResponseGenerator
from tablebook.infra.redis import SlotReservationStore


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the store uses.

    Expiry follows a manual clock; call advance() to move it.
    """

    def __init__(self):
        self.now = 0.0
        self.data: dict[str, str] = {}
        self.expires_at: dict[str, float] = {}
        self.set_calls: list[str] = []

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def ttl(self, key: str) -> Optional[float]:
        self._purge(key)
        if key not in self.expires_at:
            return None
        return self.expires_at[key] - self.now

    def _purge(self, key: str) -> None:
        expiry = self.expires_at.get(key)
        if expiry is not None and expiry <= self.now:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    async def get(self, key):
        self._purge(key)
        return self.data.get(key)

    async def set(self, key, value, nx=False, ex=None):
        self.set_calls.append(key)
        self._purge(key)
        if nx and key in self.data:
            return None
        self.data[key] = str(value)
        if ex is not None:
            self.expires_at[key] = self.now + ex
        else:
            self.expires_at.pop(key, None)
        return True

    async def expire(self, key, seconds):
        self._purge(key)
        if key not in self.data:
            return False
        self.expires_at[key] = self.now + seconds
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            self._purge(key)
            if key in self.data:
                del self.data[key]
                self.expires_at.pop(key, None)
                removed += 1
        return removed

    async def incr(self, key):
        self._purge(key)
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return SlotReservationStore(fake_redis, lock_ttl=300)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sessions(clock):
    """Session store handing out session-1, session-2, ..."""
    counter = itertools.count(1)
    return SessionStore(id_factory=lambda: f"session-{next(counter)}", clock=clock)


@pytest.fixture
def sink():
    mock = AsyncMock()
    mock.append = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def finalizer(store, sink, clock):
    return BookingFinalizer(store, sink=sink, clock=clock)


@pytest.fixture
def flow(sessions, store, finalizer):
    return ConversationFlow(
        sessions,
        store,
        finalizer,
        extractor=RegexSlotExtractor(),
        responses=ResponseGenerator("Test Kitchen"),
        capacity=10,
    )
