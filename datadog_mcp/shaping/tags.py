"""
Datadog MCP — Tag Filtering

Reduces ``key:value`` style Datadog tags according to a filter expression:

- ``"*"``                 keep every tag
- ``""``                  drop every tag
- ``"env:,service:"``     keep tags starting with any listed prefix

Prefix matching is literal and case-sensitive; no delimiter is added, so
``"env"`` also matches ``"environment:prod"``.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

ALL_TAGS = "*"


class TagFilterMode(str, Enum):
    """How tags are reduced."""

    ALL = "all"
    NONE = "none"
    PREFIX_LIST = "prefix_list"


@dataclass(frozen=True)
class TagFilterSpec:
    """Parsed tag filter."""

    mode: TagFilterMode
    prefixes: tuple[str, ...] = ()

    @classmethod
    def parse(cls, expression: str | None) -> "TagFilterSpec":
        """
        Parse a filter expression.

        Args:
            expression: "*", "" or comma-separated prefixes; None means "*"

        Returns:
            TagFilterSpec
        """
        if expression is None:
            return ALL

        stripped = expression.strip()
        if stripped == ALL_TAGS:
            return ALL

        prefixes = tuple(p.strip() for p in stripped.split(",") if p.strip())
        if not prefixes:
            return NONE

        return cls(TagFilterMode.PREFIX_LIST, prefixes)

    def matches(self, tag: str) -> bool:
        if self.mode is TagFilterMode.ALL:
            return True
        if self.mode is TagFilterMode.NONE:
            return False
        return tag.startswith(self.prefixes)


ALL = TagFilterSpec(TagFilterMode.ALL)
NONE = TagFilterSpec(TagFilterMode.NONE)


def resolve_tag_filter(explicit: str | None, default: str | None = None) -> TagFilterSpec:
    """
    Pick the filter for a request: explicit parameter, then process default, then all tags.

    An explicit empty string is a real choice ("no tags") and is not skipped.
    """
    if explicit is not None:
        return TagFilterSpec.parse(explicit)
    if default is not None:
        return TagFilterSpec.parse(default)
    return ALL


def filter_tags(tags: Iterable[str], spec: TagFilterSpec) -> list[str]:
    """
    Filter tags, preserving input order.

    Args:
        tags: Tags to filter
        spec: Parsed filter

    Returns:
        Matching tags in their original order
    """
    if spec.mode is TagFilterMode.ALL:
        return list(tags)
    if spec.mode is TagFilterMode.NONE:
        return []
    return [tag for tag in tags if tag.startswith(spec.prefixes)]


def filter_tag_map(tags_by_source: Mapping[str, Iterable[str]], spec: TagFilterSpec) -> dict[str, list[str]]:
    """
    Filter a ``source -> tags`` mapping (e.g. a host's ``tags_by_source``).

    Sources left without tags are dropped under a prefix filter.

    Args:
        tags_by_source: Tags grouped by source
        spec: Parsed filter

    Returns:
        New mapping with filtered tag lists
    """
    if spec.mode is TagFilterMode.NONE:
        return {}

    filtered: dict[str, list[str]] = {}
    for source, tags in tags_by_source.items():
        kept = filter_tags(tags, spec)
        if kept or spec.mode is TagFilterMode.ALL:
            filtered[source] = kept
    return filtered
