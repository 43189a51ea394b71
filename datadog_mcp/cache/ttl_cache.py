"""
Datadog MCP — TTL Cache

In-memory cache with per-cache TTL, LRU eviction and copy-on-write entries.

Entries are immutable snapshots. ``set`` never edits an entry in place: it
builds a new CacheEntry and points the index at it, so a reader holding the
previous value keeps a consistent snapshot. Readers receive the stored object
itself (a reference), never a copy.

Expired entries are reported as misses but are only removed lazily: when the
index is full at ``set`` time, or through ``cleanup_expired()``.
"""

import asyncio
import itertools
import logging
import time
from collections import Counter, OrderedDict
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .interface import CacheInterface

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_SIZE = 100


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """One immutable version of a cached value."""

    value: T
    created_at: float
    version: int

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.age(now) < ttl


class TTLCache(CacheInterface[T]):
    """
    Keyed store of shared, versioned entries with expiry and LRU eviction.

    Features:
    - Hit only while ``now - created_at < ttl``
    - LRU eviction once the number of keys exceeds ``max_size``
    - Keys pinned by ``refreshing()`` are evicted last
    - Injectable clock for deterministic expiry in tests
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Entry time-to-live in seconds
            max_size: Maximum number of keys kept in the index
            clock: Monotonic time source
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_size < 1:
            raise ValueError("max_size must be >= 1")

        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock

        # Index in LRU order: least recently used first
        self._index: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._pinned: Counter[str] = Counter()
        self._versions = itertools.count(1)

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._invalidations = 0
        self._evictions = 0
        self._expired_removed = 0

        # Guards the index and LRU order. No awaits inside critical sections.
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> T | None:
        """Return the current value for key, or None if absent or expired."""
        entry = await self.get_entry(key)
        return entry.value if entry is not None else None

    async def get_entry(self, key: str) -> CacheEntry[T] | None:
        """Like get() but returns the entry, including its version and age."""
        if not key:
            logger.warning("Attempted to get cache value with empty key")
            return None

        async with self._lock:
            entry = self._index.get(key)

            if entry is None:
                self._misses += 1
                return None

            if not entry.is_fresh(self._clock(), self.ttl_seconds):
                # Left in place, removed lazily by set() or cleanup_expired()
                self._misses += 1
                logger.debug(f"Cache expired: {key}")
                return None

            self._index.move_to_end(key)
            self._hits += 1
            return entry

    async def set(self, key: str, value: T) -> T:
        """Store a new version of key and return the stored value."""
        if not key:
            raise ValueError("Cache key must be a non-empty string")

        async with self._lock:
            now = self._clock()

            if key not in self._index and len(self._index) >= self.max_size:
                self._remove_expired(now)

            entry = CacheEntry(value=value, created_at=now, version=next(self._versions))
            self._index[key] = entry
            self._index.move_to_end(key)
            self._sets += 1

            self._evict_over_capacity(protect=key)

            return entry.value

    async def invalidate(self, key: str) -> bool:
        """Drop key from the index. Values already handed out stay valid."""
        async with self._lock:
            if self._index.pop(key, None) is None:
                return False
            self._invalidations += 1
            return True

    async def clear(self) -> None:
        async with self._lock:
            size = len(self._index)
            self._index.clear()
        logger.info(f"Cleared {size} entries from TTL cache")

    async def cleanup_expired(self) -> int:
        """
        Remove every expired entry from the index.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            return self._remove_expired(self._clock())

    @asynccontextmanager
    async def refreshing(self, key: str) -> AsyncIterator[None]:
        """
        Pin key while a page-0 refresh is being fetched for it.

        Pinned keys are skipped by LRU eviction while unpinned candidates
        remain. Pins nest, so concurrent refreshes of one key are counted.
        """
        # Updated outside the lock, no await between pin and release
        self._pinned[key] += 1
        try:
            yield
        finally:
            self._pinned[key] -= 1
            if self._pinned[key] <= 0:
                del self._pinned[key]

    def is_pinned(self, key: str) -> bool:
        return self._pinned.get(key, 0) > 0

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        """Presence in the index, regardless of freshness."""
        return key in self._index

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._index),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "invalidations": self._invalidations,
                "evictions": self._evictions,
                "expired_removed": self._expired_removed,
                "pinned": len(self._pinned),
            }

    async def close(self) -> None:
        """Release the index. In-flight readers keep their values."""
        await self.clear()
        logger.debug("TTL cache closed")

    def _remove_expired(self, now: float) -> int:
        expired = [k for k, entry in self._index.items() if not entry.is_fresh(now, self.ttl_seconds)]
        for key in expired:
            del self._index[key]
        if expired:
            self._expired_removed += len(expired)
            logger.debug(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def _evict_over_capacity(self, protect: str) -> None:
        while len(self._index) > self.max_size:
            victim = self._pick_victim(protect)
            if victim is None:
                return
            del self._index[victim]
            self._evictions += 1
            logger.debug(f"Evicted LRU cache entry: {victim}")

    def _pick_victim(self, protect: str) -> str | None:
        fallback: str | None = None
        for key in self._index:
            if key == protect:
                continue
            if not self.is_pinned(key):
                return key
            if fallback is None:
                fallback = key
        # Only pinned keys left: the bound wins over the pin
        return fallback
