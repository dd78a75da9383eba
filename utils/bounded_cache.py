"""
Bounded in-memory cache with LRU eviction and TTL expiration.

Single-process, owned by the service that creates it.
"""

from collections import OrderedDict
from typing import Any, Callable, Hashable
import time

# Returned by get() on a miss, so a cached None stays distinguishable
MISSING = object()


class BoundedTTLCache:
    """
    LRU cache whose entries also expire after ttl_seconds.

    Features:
    - LRU eviction when max_size reached
    - TTL-based expiration
    - Hit/miss statistics
    """

    def __init__(
        self,
        max_size: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        # key -> (expires_at, value); insertion order is recency order
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()

        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        """Return the cached value, or default if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return default

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self.misses += 1
            return default

        # Move to end (LRU: most recently used)
        self._entries.move_to_end(key)
        self.hits += 1
        return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store value, evicting the least recently used entry if full."""
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)
            self.evictions += 1

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry[0]
