"""
Datadog MCP — Cache Keys

Deterministic cache keys built from a resource name and its query parameters.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

# Paging parameters select a window over a result set, they never change it
PAGING_PARAMETERS = frozenset({"page", "page_size", "page_index", "cursor", "offset"})


def _canonical(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, set | frozenset):
        return sorted((_canonical(v) for v in value), key=lambda v: json.dumps(v, sort_keys=True, default=str))
    if isinstance(value, list | tuple):
        return [_canonical(v) for v in value]
    return value


def make_cache_key(resource: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Build a cache key for a resource query.

    Parameter order never matters: mappings are serialized with sorted keys and
    sets are sorted before hashing. Lists keep their order, since for most
    Datadog filters order is meaningful; pass a set for order-insensitive
    collections. Paging parameters are ignored.

    Args:
        resource: Resource type, e.g. "monitors"
        params: Every filter/query parameter that affects the result set

    Returns:
        Key of the form "<resource>:<sha256 hex digest>"

    Example:
        >>> make_cache_key("monitors", {"tags": "env:prod", "page": 3})
        'monitors:…'
    """
    if not resource:
        raise ValueError("resource must be a non-empty string")

    filtered = {k: v for k, v in (params or {}).items() if k not in PAGING_PARAMETERS}
    payload = json.dumps(_canonical(filtered), sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()

    return f"{resource}:{digest}"
