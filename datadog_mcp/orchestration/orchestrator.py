"""
Datadog MCP — Cache Orchestrator

Decides, once per call, whether a page is served from the cache or fetched
fresh, and composes the cache, retry and pagination layers behind the three
operations handlers use: ``fetch_page``, ``paginate_cursor`` and
``filter_tags``.

Page 0 always reflects current upstream state: it is fetched (under retry)
and the result replaces the cached entry. Later pages read the cached result
set so a client walking pages 1..N sees one consistent snapshot; a miss falls
back to a fresh fetch. A failed fetch never touches the cache.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, TypeVar

from ..cache import TTLCache
from ..observability import ObservabilityAdapter, get_observability
from ..pagination import CursorPage, PageRequest, PageResult, paginate, paginate_by_cursor
from ..resilience import RetryExecutor
from ..shaping import ResponseShaper, TagFilterSpec, filter_tags, resolve_tag_filter

S = TypeVar("S")
T = TypeVar("T")

logger = logging.getLogger(__name__)


def _resource_of(key: str) -> str:
    return key.split(":", 1)[0]


class CacheOrchestrator:
    """
    Cache-aware data access for list resources.

    Args:
        cache: The process-scoped TTL cache
        retry_executor: Executor wrapping every upstream call
        default_tag_filter: Filter expression used when a request names none
        observability: Metrics sink (defaults to the global adapter)
    """

    def __init__(
        self,
        cache: TTLCache[Any],
        retry_executor: RetryExecutor,
        default_tag_filter: str | None = None,
        observability: ObservabilityAdapter | None = None,
    ):
        self.cache = cache
        self.retry = retry_executor
        self.default_tag_filter = default_tag_filter
        self._observability = observability

    @property
    def obs(self) -> ObservabilityAdapter:
        return self._observability or get_observability()

    async def fetch_page(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Sequence[Any]]],
        page_request: PageRequest,
        force_refresh: bool = False,
        shaper: ResponseShaper | None = None,
    ) -> PageResult[Any]:
        """
        Return one page of a cacheable result set.

        Args:
            key: Cache key from ``make_cache_key``
            fetch: Zero-argument coroutine function returning the full result set
            page_request: Requested window
            force_refresh: Bypass the cache even for pages after the first
            shaper: Optional per-request shaping applied to the visible page

        Returns:
            PageResult built from the cached or freshly fetched result set

        Raises:
            RetryExhaustedError: Upstream kept failing with retryable errors
            DatadogMCPError: Non-retryable upstream failure
        """
        fresh = page_request.is_first_page or force_refresh
        full_set = await self.load(key, fetch, fresh=fresh)

        if shaper is not None:
            return shaper.shape_page(full_set, page_request.page_index, page_request.page_size)
        return paginate(full_set, page_request.page_index, page_request.page_size)

    async def load(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Sequence[Any]]],
        fresh: bool = False,
    ) -> tuple[Any, ...]:
        """
        Return the full result set for key.

        Args:
            key: Cache key
            fetch: Upstream call producing the full result set
            fresh: Skip the cache lookup and replace the entry

        Returns:
            Immutable snapshot shared with other readers of the same entry
        """
        return await self._load(key, fetch, fresh, freeze=tuple)

    async def load_snapshot(self, key: str, fetch: Callable[[], Awaitable[S]], fresh: bool = False) -> S:
        """
        Like ``load``, for a single value stored as returned.

        The value must already be immutable (a frozen dataclass holding tuples);
        it is used when a result set has to be cached together with the request
        context it was fetched for.
        """
        return await self._load(key, fetch, fresh, freeze=None)

    async def _load(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        fresh: bool,
        freeze: Callable[[Any], Any] | None,
    ) -> Any:
        resource = _resource_of(key)

        if not fresh:
            cached = await self.cache.get(key)
            if cached is not None:
                self.obs.increment("cache.hits", tags={"resource": resource})
                logger.debug(f"Serving {resource} from cache", extra={"cache_key": key})
                return cached
            self.obs.increment("cache.misses", tags={"resource": resource})

        return await self._refresh(key, fetch, freeze)

    async def _refresh(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        freeze: Callable[[Any], Any] | None = tuple,
    ) -> Any:
        resource = _resource_of(key)
        start = time.perf_counter()

        async with self.cache.refreshing(key):
            result = await self.retry.execute(fetch, name=f"fetch_{resource}")
            snapshot = freeze(result) if freeze is not None else result
            stored = await self.cache.set(key, snapshot)

        self.obs.increment("cache.refreshes", tags={"resource": resource})
        self.obs.histogram("upstream.fetch_ms", (time.perf_counter() - start) * 1000, tags={"resource": resource})
        logger.debug(f"Refreshed {resource}", extra={"cache_key": key})
        return stored

    async def call(self, fetch: Callable[[], Awaitable[T]], name: str) -> T:
        """Run a single uncached upstream call under the retry policy."""
        return await self.retry.execute(fetch, name=name)

    async def paginate_cursor(
        self,
        fetch_page: Callable[[str | None, int], Awaitable[CursorPage[T]]],
        cursor: str | None,
        page_size: int,
        name: str = "cursor_page",
    ) -> PageResult[T]:
        """
        Fetch one page from a cursor-paginated upstream. Never cached.

        Args:
            fetch_page: Upstream call taking (cursor, page_size)
            cursor: Continuation token from the previous page
            page_size: Items per page
            name: Label used in retry logs

        Returns:
            PageResult carrying the upstream's next cursor
        """

        async def fetch_with_retry(c: str | None, size: int) -> CursorPage[T]:
            return await self.retry.execute(lambda: fetch_page(c, size), name=name)

        return await paginate_by_cursor(fetch_with_retry, cursor, page_size)

    def tag_filter(self, expression: str | None = None) -> TagFilterSpec:
        """Resolve a request's tag filter against the configured default."""
        return resolve_tag_filter(expression, self.default_tag_filter)

    def filter_tags(self, tags: Iterable[str], expression: str | None = None) -> list[str]:
        """
        Filter tags by an explicit expression, else the configured default.

        Args:
            tags: Tags to filter
            expression: "*", "" or comma-separated prefixes; None uses the default

        Returns:
            Matching tags in input order
        """
        return filter_tags(tags, self.tag_filter(expression))
