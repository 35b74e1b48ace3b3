"""Age-evicted in-memory mapping used for lookup memoization and live sessions."""
from __future__ import annotations

import time
from collections.abc import Callable, Hashable, Iterator
from typing import Any

_MISSING = object()


class TTLCache:
    """Mapping whose entries expire ``ttl_seconds`` after they were written.

    Expired entries are dropped lazily on read and in bulk by ``evict_expired``,
    which every write triggers so the cache never grows without bound.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl_seconds

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._expired(stored_at, self._clock()):
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self.evict_expired()
        self._entries[key] = (self._clock(), value)

    def touch(self, key: Hashable) -> bool:
        """Restart the age of a live entry. Returns False if it is absent or expired."""
        value = self.get(key, _MISSING)
        if value is _MISSING:
            return False
        self._entries[key] = (self._clock(), value)
        return True

    def pop(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.pop(key, None)
        return default if entry is None else entry[1]

    def evict_expired(self) -> int:
        now = self._clock()
        stale = [k for k, (t, _) in self._entries.items() if self._expired(t, now)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def values(self) -> Iterator[Any]:
        now = self._clock()
        return iter([v for t, v in self._entries.values() if not self._expired(t, now)])

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        self.evict_expired()
        return len(self._entries)
