"""
Datadog MCP — Shaping Module

Tag filtering and token-saving transforms applied to upstream records.
"""

from .shaper import (
    DEFAULT_STACK_TRACE_LINES,
    MAX_STRING_LENGTH,
    ResponseShaper,
    filter_http_verbose_fields,
    should_truncate_stack_trace,
    strip_nulls,
    truncate_long_string,
    truncate_stack_trace,
)
from .tags import (
    ALL,
    NONE,
    TagFilterMode,
    TagFilterSpec,
    filter_tag_map,
    filter_tags,
    resolve_tag_filter,
)

__all__ = [
    "ALL",
    "NONE",
    "TagFilterMode",
    "TagFilterSpec",
    "filter_tags",
    "filter_tag_map",
    "resolve_tag_filter",
    "DEFAULT_STACK_TRACE_LINES",
    "MAX_STRING_LENGTH",
    "ResponseShaper",
    "filter_http_verbose_fields",
    "should_truncate_stack_trace",
    "strip_nulls",
    "truncate_long_string",
    "truncate_stack_trace",
]
