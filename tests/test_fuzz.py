# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Property-based fuzz tests using Hypothesis.

Verifies the resolution engine's invariants for arbitrary script texts,
payload trees and time values.
"""

from __future__ import annotations

try:
    from hypothesis import HealthCheck, given, settings
    from hypothesis import strategies as st
except ImportError:
    import pytest

    pytest.skip("hypothesis not installed", allow_module_level=True)

import json
import re

import pytest

from clipinfo.normalize import compute_duration_ms, format_duration_ms
from clipinfo.payload_extractor import find_json_literal
from clipinfo.resolver import resolve
from clipinfo.tree_search import find_channel_id, find_time_info

# ---------------------------------------------------------------------------
# Module-level strategies
# ---------------------------------------------------------------------------

KEYS = st.sampled_from(
    ["startTimeMs", "endTimeMs", "clipConfig", "browseId", "channelId", "postId", "contents", "items"]
) | st.text(max_size=6)

SCALARS = st.none() | st.booleans() | st.integers(-(10**12), 10**12) | st.text(max_size=12)

JSON_TREE = st.recursive(
    SCALARS,
    lambda children: st.lists(children, max_size=4) | st.dictionaries(KEYS, children, max_size=4),
    max_leaves=40,
)

NONZERO_MS = st.integers(-(10**10), 10**10).filter(lambda x: x != 0)

SCRIPT_TEXT = st.one_of(
    st.text(max_size=300),
    st.builds(lambda body: f"var ytInitialData = {body}", st.text(max_size=200)),
    st.builds(lambda body: f"var ytInitialPlayerResponse = {body}", st.text(max_size=200)),
)

_FORMAT_RE = re.compile(r"^-?(\d{2,}:)?\d{2}:\d{2}$")

FUZZ = settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])


@pytest.mark.fuzz
class TestTreeSearchFuzz:
    @FUZZ
    @given(tree=JSON_TREE)
    def test_never_raises(self, tree):
        node = find_time_info(tree)
        assert node is None or isinstance(node, dict)
        channel = find_channel_id(tree)
        assert channel is None or channel.startswith("UC")


@pytest.mark.fuzz
class TestExtractorFuzz:
    @FUZZ
    @given(text=st.text(max_size=500))
    def test_never_raises(self, text):
        for strategy in ("balanced", "regex"):
            result = find_json_literal(text, "ytInitialData", strategy)
            assert result is None or result.startswith("{")

    @FUZZ
    @given(tree=st.dictionaries(st.text(max_size=8), JSON_TREE, max_size=5))
    def test_balanced_recovers_any_object(self, tree):
        text = f"var ytInitialData = {json.dumps(tree)};var after = 1;"
        assert json.loads(find_json_literal(text, "ytInitialData")) == tree


@pytest.mark.fuzz
class TestResolverFuzz:
    @FUZZ
    @given(scripts=st.lists(SCRIPT_TEXT, max_size=5))
    def test_arbitrary_scripts_never_raise(self, scripts):
        clip = resolve(scripts, {})
        assert clip.duration_ms is None or clip.duration_ms == clip.end_time_ms - clip.start_time_ms

    @FUZZ
    @given(start=NONZERO_MS, end=NONZERO_MS)
    def test_duration_invariant(self, start, end):
        payload = {"videoDetails": {"videoId": "v"}, "clipConfig": {"startTimeMs": start, "endTimeMs": end}}
        clip = resolve([f"var ytInitialPlayerResponse = {json.dumps(payload)};"], {})
        assert (clip.start_time_ms, clip.end_time_ms) == (start, end)
        assert clip.duration_ms == end - start == compute_duration_ms(start, end)
        assert clip.video_url == f"https://www.youtube.com/watch?v=v&t={start // 1000}s"


@pytest.mark.fuzz
class TestFormatFuzz:
    @FUZZ
    @given(ms=st.integers(-(10**13), 10**13))
    def test_shape(self, ms):
        assert _FORMAT_RE.match(format_duration_ms(ms))
