"""Short-lived memoization of machine state for orbstack-provider."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Hashable, NamedTuple, Optional

from orbstack_provider.constants import DEFAULT_CACHE_TTL


class CacheLookup(NamedTuple):
    hit: bool
    value: Any = None


class _Entry(NamedTuple):
    value: Any
    timestamp: float


class StateCache:
    """TTL cache for state queries.

    An entry is valid while ``now <= written_at + ttl``. Expiry is checked on
    read only; nothing sweeps the cache in the background and ``get`` never
    refills a missing entry.
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL, clock: Optional[Callable[[], float]] = None) -> None:
        self.ttl = ttl
        self._clock = clock or time.time
        self._entries: Dict[Hashable, _Entry] = {}

    def lookup(self, key: Hashable) -> CacheLookup:
        entry = self._entries.get(key)
        if entry is None:
            return CacheLookup(False)
        if self._clock() - entry.timestamp > self.ttl:
            del self._entries[key]
            return CacheLookup(False)
        return CacheLookup(True, entry.value)

    def get(self, key: Hashable, default: Any = None) -> Any:
        found = self.lookup(key)
        return found.value if found.hit else default

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = _Entry(value, self._clock())

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def invalidate_all(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
