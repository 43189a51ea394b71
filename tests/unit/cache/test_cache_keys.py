"""
Datadog MCP — Cache Key Tests
"""

import pytest

from datadog_mcp.cache import make_cache_key


class TestMakeCacheKey:
    def test_prefixed_by_resource(self) -> None:
        key = make_cache_key("monitors", {"tags": "env:prod"})

        resource, digest = key.split(":", 1)
        assert resource == "monitors"
        assert len(digest) == 64

    def test_parameter_order_does_not_matter(self) -> None:
        a = make_cache_key("events", {"tags": "env:prod", "priority": "normal"})
        b = make_cache_key("events", {"priority": "normal", "tags": "env:prod"})

        assert a == b

    def test_nested_mapping_order_does_not_matter(self) -> None:
        a = make_cache_key("events", {"filter": {"a": 1, "b": 2}})
        b = make_cache_key("events", {"filter": {"b": 2, "a": 1}})

        assert a == b

    def test_sets_are_order_insensitive(self) -> None:
        a = make_cache_key("monitors", {"ids": {3, 1, 2}})
        b = make_cache_key("monitors", {"ids": {1, 2, 3}})

        assert a == b

    def test_different_params_give_different_keys(self) -> None:
        assert make_cache_key("monitors", {"tags": "env:prod"}) != make_cache_key("monitors", {"tags": "env:dev"})

    def test_different_resources_give_different_keys(self) -> None:
        assert make_cache_key("monitors") != make_cache_key("dashboards")

    def test_paging_parameters_ignored(self) -> None:
        base = make_cache_key("monitors", {"tags": "env:prod"})

        assert make_cache_key("monitors", {"tags": "env:prod", "page": 3, "page_size": 10}) == base
        assert make_cache_key("monitors", {"tags": "env:prod", "cursor": "abc"}) == base

    def test_none_and_empty_params_match(self) -> None:
        assert make_cache_key("dashboards") == make_cache_key("dashboards", {})

    def test_empty_resource_rejected(self) -> None:
        with pytest.raises(ValueError):
            make_cache_key("")
