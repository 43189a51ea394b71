"""
Datadog MCP — Response Shaping

Post-processes upstream records before they are paginated and returned to
the agent: tag filtering, truncation of bulky fields, and removal of empty
values. Shaping never mutates its input; cached result sets are shared
between requests.
"""

import copy
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from ..pagination import PageResult, paginate
from .tags import ALL, TagFilterSpec, filter_tags

DEFAULT_STACK_TRACE_LINES = 10
MAX_STRING_LENGTH = 256

# Fields under ``http`` that add tokens but no diagnostic value
HTTP_VERBOSE_FIELDS = ("useragent_details",)


def truncate_stack_trace(stack: str, max_lines: int = DEFAULT_STACK_TRACE_LINES) -> str:
    """Keep the first ``max_lines`` lines and note how many were cut."""
    lines = stack.splitlines()
    if len(lines) <= max_lines:
        return stack
    omitted = len(lines) - max_lines
    return "\n".join(lines[:max_lines]) + f"\n... ({omitted} more lines truncated)"


def truncate_long_string(text: str, max_length: int = MAX_STRING_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... ({len(text) - max_length} chars truncated)"


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str | list | tuple | dict) and len(value) == 0)


def strip_nulls(value: Any) -> Any:
    """
    Recursively drop None, empty strings and empty containers.

    Falsy scalars such as 0 and False are kept.
    """
    if isinstance(value, Mapping):
        cleaned = {k: strip_nulls(v) for k, v in value.items()}
        return {k: v for k, v in cleaned.items() if not _is_empty(v)}
    if isinstance(value, list | tuple):
        cleaned_items = [strip_nulls(v) for v in value]
        return [v for v in cleaned_items if not _is_empty(v)]
    return value


def filter_http_verbose_fields(http: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of an ``http`` attribute object without verbose fields."""
    return {k: v for k, v in http.items() if k not in HTTP_VERBOSE_FIELDS}


def should_truncate_stack_trace(params: Mapping[str, Any]) -> bool:
    """Stack traces are truncated unless the caller asked for ``full_stack_trace``."""
    return not bool(params.get("full_stack_trace", False))


class ResponseShaper:
    """
    Applies a per-request shaping pipeline, then pagination.

    Args:
        tag_filter: Filter applied to every ``tags`` list found by ``shape_record``
        truncate_stacks: Truncate ``stack`` strings found under ``error`` objects
        stack_trace_lines: Lines kept when truncating
        max_string_length: Limit for ``truncate_long_string``
        drop_empty: Strip None and empty values from each record
    """

    def __init__(
        self,
        tag_filter: TagFilterSpec = ALL,
        truncate_stacks: bool = True,
        stack_trace_lines: int = DEFAULT_STACK_TRACE_LINES,
        max_string_length: int = MAX_STRING_LENGTH,
        drop_empty: bool = True,
    ):
        self.tag_filter = tag_filter
        self.truncate_stacks = truncate_stacks
        self.stack_trace_lines = stack_trace_lines
        self.max_string_length = max_string_length
        self.drop_empty = drop_empty

    @classmethod
    def for_request(cls, params: Mapping[str, Any], tag_filter: TagFilterSpec = ALL) -> "ResponseShaper":
        return cls(tag_filter=tag_filter, truncate_stacks=should_truncate_stack_trace(params))

    def filter_tags(self, tags: Iterable[str]) -> list[str]:
        return filter_tags(tags, self.tag_filter)

    def stack_trace(self, stack: str) -> str:
        if not self.truncate_stacks:
            return stack
        return truncate_stack_trace(stack, self.stack_trace_lines)

    def long_string(self, text: str) -> str:
        return truncate_long_string(text, self.max_string_length)

    def shape_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """
        Shape one generic record.

        Filters a top-level or ``attributes.tags`` list, truncates
        ``error.stack`` wherever an ``error`` object appears, drops verbose
        ``http`` fields and, when enabled, strips empty values.
        """
        shaped = copy.deepcopy(dict(record))
        self._shape_in_place(shaped)
        if self.drop_empty:
            shaped = strip_nulls(shaped)
        return shaped

    def _shape_in_place(self, obj: dict[str, Any]) -> None:
        # Operates on the deep copy made by shape_record
        for key, value in list(obj.items()):
            if key == "tags" and isinstance(value, list):
                obj[key] = self.filter_tags(t for t in value if isinstance(t, str))
            elif key == "http" and isinstance(value, dict):
                obj[key] = filter_http_verbose_fields(value)
                self._shape_in_place(obj[key])
            elif key == "error" and isinstance(value, dict):
                stack = value.get("stack")
                if isinstance(stack, str):
                    value["stack"] = self.stack_trace(stack)
                self._shape_in_place(value)
            elif isinstance(value, dict):
                self._shape_in_place(value)

    def shape(
        self,
        records: Iterable[Any],
        transform: Callable[[Any], Any] | None = None,
    ) -> list[Any]:
        """
        Shape a result set.

        Args:
            records: Upstream records (left untouched)
            transform: Per-record field mapping; defaults to ``shape_record``

        Returns:
            New list of shaped records
        """
        func = transform or self.shape_record
        return [func(record) for record in records]

    def shape_page(
        self,
        records: Sequence[Any],
        page_index: int,
        page_size: int,
        transform: Callable[[Any], Any] | None = None,
    ) -> PageResult[Any]:
        """
        Paginate a full result set, shaping only the visible window.

        Shaping is per record, so slicing first gives the same page as shaping
        the whole set and avoids work on records nobody will see.
        """
        page = paginate(records, page_index, page_size)
        return page.map(transform or self.shape_record)
