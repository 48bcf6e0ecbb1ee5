from backend.cmp_tracker.services.cache_service import CacheStore

from .factories import FakeClock


def test_set_and_get_until_expiry():
    clock = FakeClock()
    store = CacheStore(clock=clock)
    store.set("tba:/event/2025casj", {"key": "2025casj"}, ttl_seconds=60)

    clock.now += 59
    assert store.get("tba:/event/2025casj") == {"key": "2025casj"}

    clock.now += 1
    assert store.get("tba:/event/2025casj") is None
    # expired entries are evicted on read
    assert len(store) == 0


def test_default_distinguishes_cached_null_from_miss():
    store = CacheStore(clock=FakeClock())
    sentinel = object()
    store.set("tba:/event/2025casj/rankings", None, ttl_seconds=60)

    assert store.get("tba:/event/2025casj/rankings", sentinel) is None
    assert store.get("tba:/event/2025nope/rankings", sentinel) is sentinel
    assert "tba:/event/2025casj/rankings" in store
    assert "tba:/event/2025nope/rankings" not in store


def test_delete_prefix_counts_removed_entries():
    store = CacheStore(clock=FakeClock())
    for key in ("tba:/event/2025casj/teams", "tba:/event/2025casj/rankings", "tba:/event/2025cada/teams"):
        store.set(key, [], ttl_seconds=60)

    assert store.delete_prefix("tba:/event/2025casj/") == 2
    assert len(store) == 1

    store.clear()
    assert len(store) == 0
