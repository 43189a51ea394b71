"""
Datadog MCP — Cache Factory

Creates the process-scoped cache from typed configuration.

The server creates exactly one cache at startup and passes it explicitly to
every component that needs it; nothing here keeps a global registry, so tests
can build isolated caches freely.

Examples:
    from datadog_mcp.cache import create_cache
    from datadog_mcp.config import CacheConfig

    cache = create_cache(CacheConfig(ttl_seconds=60, max_size=10))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from ..config import CacheConfig, get_config
from ..errors import ConfigurationError
from .ttl_cache import TTLCache

logger = logging.getLogger(__name__)


def create_cache(
    config: CacheConfig | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> TTLCache[Any]:
    """
    Create a TTL cache based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)
        clock: Time source handed to the cache

    Returns:
        Configured TTLCache instance

    Raises:
        ConfigurationError: If the configuration cannot produce a cache
    """
    if config is None:
        config = get_config().cache

    try:
        cache: TTLCache[Any] = TTLCache(
            ttl_seconds=config.ttl_seconds,
            max_size=config.max_size,
            clock=clock,
        )
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid cache configuration: {e}",
            details={"ttl_seconds": config.ttl_seconds, "max_size": config.max_size},
        ) from e

    logger.info(
        "Created TTL cache (ttl=%ss, max_size=%d)",
        config.ttl_seconds,
        config.max_size,
        extra={"ttl_seconds": config.ttl_seconds, "max_size": config.max_size},
    )
    return cache
