"""Process-wide in-memory TTL cache for upstream API responses."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

_MISSING = object()


@dataclass
class CacheEntry:
    data: Any
    expires_at: float


class CacheStore:
    """Key -> JSON blob with per-entry expiry.

    Expired entries are dropped lazily when read; nothing sweeps in the
    background and there is no size cap (TTL bounds growth). All callers run
    on one asyncio loop and no method awaits, so there is no locking.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for *key*, or *default* if absent or expired.

        TBA legitimately answers ``null`` for some resources, so callers that
        need to tell a cached null from a miss pass a sentinel *default*.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return default
        return entry.data

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = CacheEntry(data=value, expires_at=self._clock() + ttl_seconds)

    def delete(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with *prefix*; return how many."""
        doomed = [k for k in self._entries if k.startswith(prefix)]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING


# ── Singleton ───────────────────────────────────────────────
_store: Optional[CacheStore] = None


def get_cache_store() -> CacheStore:
    global _store
    if _store is None:
        _store = CacheStore()
    return _store
