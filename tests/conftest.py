import pytest

from backend.cmp_tracker.services.cache_service import CacheStore
from backend.cmp_tracker.services.tba_client import TBAClient

from .factories import FakeClock, FakeTBA


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_tba(clock) -> FakeTBA:
    return FakeTBA(clock=clock)


@pytest.fixture
def make_client(fake_tba, clock):
    """Factory for a real TBAClient wired to the fake server and fake clock."""

    def _make(**kwargs) -> TBAClient:
        kwargs.setdefault("api_key", "test-key")
        kwargs.setdefault("cache", CacheStore(clock=clock))
        kwargs.setdefault("rate_limit", 1000)
        kwargs.setdefault("cache_ttl", 3600)
        return TBAClient(transport=fake_tba.transport(), clock=clock, sleep=clock.sleep, **kwargs)

    return _make


@pytest.fixture
def client(make_client) -> TBAClient:
    return make_client()
