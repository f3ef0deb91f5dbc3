# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for depth-bounded tree search (tree_search.py)."""

from __future__ import annotations

from typing import Any

from clipinfo.tree_search import (
    CHANNEL_SEARCH_MAX_DEPTH,
    TIME_SEARCH_MAX_DEPTH,
    SearchHit,
    depth_first_search,
    find_channel_id,
    find_time_info,
)

TIME_NODE = {"startTimeMs": "1000", "endTimeMs": "2000"}


def nest(node: Any, depth: int) -> Any:
    """Wrap *node* so that it sits at *depth* below the returned root."""
    for _ in range(depth):
        node = {"child": node}
    return node


# ── Time info ─────────────────────────────────────────────────────


class TestFindTimeInfo:
    def test_root_match(self):
        assert find_time_info(TIME_NODE) is TIME_NODE

    def test_at_max_depth_is_found(self):
        assert find_time_info(nest(TIME_NODE, TIME_SEARCH_MAX_DEPTH)) == TIME_NODE

    def test_beyond_max_depth_is_not_found(self):
        assert find_time_info(nest(TIME_NODE, TIME_SEARCH_MAX_DEPTH + 1)) is None

    def test_depth_bound_prunes_branch_but_not_siblings(self):
        shallow = {"startTimeMs": 5, "endTimeMs": 6}
        data = {"deep": nest(TIME_NODE, 30), "shallow": shallow}
        assert find_time_info(data) is shallow

    def test_list_counts_as_a_level(self):
        data = nest([TIME_NODE], TIME_SEARCH_MAX_DEPTH - 1)
        assert find_time_info(data) == TIME_NODE
        data = nest([TIME_NODE], TIME_SEARCH_MAX_DEPTH)
        assert find_time_info(data) is None

    def test_depth_first_not_breadth_first(self):
        deep_first = {"startTimeMs": 1, "endTimeMs": 2}
        data = {"a": {"b": {"c": deep_first}}, "z": {"startTimeMs": 3, "endTimeMs": 4}}
        assert find_time_info(data) is deep_first

    def test_sibling_order_follows_source(self):
        first = {"startTimeMs": 1, "endTimeMs": 2}
        second = {"startTimeMs": 3, "endTimeMs": 4}
        assert find_time_info({"items": [{"x": first}, {"x": second}]}) is first

    def test_key_presence_only(self):
        node = {"startTimeMs": None, "endTimeMs": None}
        assert find_time_info({"n": node}) is node

    def test_start_only_is_not_a_match(self):
        assert find_time_info({"n": {"startTimeMs": 1}}) is None

    def test_clip_config_child(self):
        clip = {"startTimeMs": "7000", "postId": "abc"}
        assert find_time_info({"wrapper": {"clipConfig": clip}}) is clip

    def test_clip_config_seconds_child(self):
        clip = {"startTimeSeconds": 7}
        assert find_time_info({"clipConfig": clip}) is clip

    def test_clip_config_with_zero_start_is_skipped(self):
        assert find_time_info({"clipConfig": {"startTimeMs": 0}}) is None

    def test_scalars_and_empty(self):
        assert find_time_info(None) is None
        assert find_time_info("startTimeMs") is None
        assert find_time_info([]) is None
        assert find_time_info({}) is None


# ── Channel id ────────────────────────────────────────────────────


class TestFindChannelId:
    def test_uc_prefix_required(self):
        data = {"a": {"browseId": "XYZ000"}, "b": {"browseId": "UCabc123"}}
        assert find_channel_id(data) == "UCabc123"

    def test_channel_id_key(self):
        assert find_channel_id({"owner": {"channelId": "UCxyz"}}) == "UCxyz"

    def test_browse_id_checked_before_channel_id(self):
        assert find_channel_id({"browseId": "UCfirst", "channelId": "UCsecond"}) == "UCfirst"

    def test_non_uc_browse_id_falls_back_to_channel_id_on_same_node(self):
        assert find_channel_id({"browseId": "FEwhat", "channelId": "UCok"}) == "UCok"

    def test_non_string_ignored(self):
        assert find_channel_id({"browseId": 123, "x": [{"channelId": ["UC"]}]}) is None

    def test_depth_bound(self):
        assert find_channel_id(nest({"browseId": "UCdeep"}, CHANNEL_SEARCH_MAX_DEPTH)) == "UCdeep"
        assert find_channel_id(nest({"browseId": "UCdeep"}, CHANNEL_SEARCH_MAX_DEPTH + 1)) is None


# ── Generic search ────────────────────────────────────────────────


class TestDepthFirstSearch:
    def test_hit_path(self):
        data = {"a": [{"b": {"hit": True}}]}
        hit = depth_first_search(data, lambda n: n.get("hit"), max_depth=10)
        assert hit == SearchHit(value=True, path=("a", 0, "b"))
        assert hit.dotted_path() == ".a[0].b"

    def test_root_path(self):
        hit = depth_first_search({"hit": 1}, lambda n: n.get("hit"), max_depth=0)
        assert hit.dotted_path() == "<root>"

    def test_lists_are_not_tested(self):
        calls: list[Any] = []

        def predicate(node):
            calls.append(node)
            return None

        depth_first_search([[{"k": 1}]], predicate, max_depth=5)
        assert calls == [{"k": 1}]

    def test_does_not_mutate(self):
        data = {"a": [{"startTimeMs": 1, "endTimeMs": 2}]}
        before = repr(data)
        find_time_info(data)
        find_channel_id(data)
        assert repr(data) == before
