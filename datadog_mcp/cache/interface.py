"""
Datadog MCP — Cache Interface

Defines the abstract interface that cache implementations must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class CacheInterface(ABC, Generic[T]):
    """
    Abstract base class for caches used by the data-access layer.

    Values handed out by ``get``/``set`` are shared, read-only snapshots:
    callers must never mutate them, and an implementation must never mutate
    a stored value in place.
    """

    @abstractmethod
    async def get(self, key: str) -> T | None:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value if found and not expired, None otherwise
        """

    @abstractmethod
    async def set(self, key: str, value: T) -> T:
        """
        Store a value, replacing any previous version for the key.

        Args:
            key: Cache key
            value: Value to cache

        Returns:
            The stored value
        """

    @abstractmethod
    async def invalidate(self, key: str) -> bool:
        """
        Remove a key from the cache.

        Args:
            key: Cache key to remove

        Returns:
            True if the key was present, False otherwise
        """

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry from the cache."""

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, size, etc.)
        """

    async def close(self) -> None:
        """
        Close the cache and release resources.

        Should be called during graceful shutdown.
        """
