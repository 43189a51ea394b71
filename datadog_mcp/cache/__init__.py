"""
Datadog MCP — Cache Module

In-process TTL cache for upstream result sets.

- ttl_cache.py: TTLCache and its immutable CacheEntry
- keys.py: deterministic cache keys
- factory.py: builds the cache from configuration
- interface.py: abstract cache interface

Usage:
    from datadog_mcp.cache import create_cache, make_cache_key

    cache = create_cache()
    key = make_cache_key("monitors", {"tags": "env:prod"})
    await cache.set(key, (monitor_a, monitor_b))
    monitors = await cache.get(key)
"""

from .factory import create_cache
from .interface import CacheInterface
from .keys import PAGING_PARAMETERS, make_cache_key
from .ttl_cache import DEFAULT_MAX_SIZE, DEFAULT_TTL_SECONDS, CacheEntry, TTLCache

__all__ = [
    "create_cache",
    "make_cache_key",
    "PAGING_PARAMETERS",
    "CacheInterface",
    "CacheEntry",
    "TTLCache",
    "DEFAULT_TTL_SECONDS",
    "DEFAULT_MAX_SIZE",
]
