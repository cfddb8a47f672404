# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed ValkeyCache and ValkeyEventStore instances
- A controllable clock shared by the session manager and the engine
- Clean Redis state per test (automatic flush)
"""

from datetime import datetime, timedelta, timezone

import fakeredis
import pytest

from sitestats.core.models import Location, VisitorContext
from sitestats.core.session_manager import SessionManager
from sitestats.core.summary import AnalyticsEngine
from sitestats.infrastructure import StaticLocationResolver, ValkeyCache, ValkeyEventStore

CHROME_WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# A Sunday, so week buckets start on the same day
START = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, minutes: float = 0) -> None:
        self.now += timedelta(seconds=seconds, minutes=minutes)


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real ValkeyCache behavior.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def fake_cache(fake_redis):
    """A ValkeyCache backed by fakeredis instead of a real server."""
    return ValkeyCache(client=fake_redis)


@pytest.fixture()
def event_store(fake_cache):
    """A ValkeyEventStore on the fake cache with the default key prefix."""
    return ValkeyEventStore(fake_cache, key_prefix="sitestats")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def visitor_context():
    return VisitorContext(user_agent=CHROME_WINDOWS_UA, referrer="https://www.google.com/")


@pytest.fixture()
def location_resolver():
    return StaticLocationResolver(Location(country="Germany", city="Berlin"))


@pytest.fixture()
def make_manager(event_store, location_resolver, visitor_context, clock):
    """Factory for SessionManagers sharing the store and the clock."""

    def _make(visitor_id=None, context=None, bounce_threshold_seconds=30):
        return SessionManager(
            event_store,
            location_resolver,
            context=context or visitor_context,
            visitor_id=visitor_id,
            clock=clock,
            bounce_threshold_seconds=bounce_threshold_seconds,
        )

    return _make


@pytest.fixture()
def manager(make_manager):
    return make_manager(visitor_id="visitor-1")


@pytest.fixture()
def engine(event_store, clock):
    return AnalyticsEngine(event_store, clock=clock)
