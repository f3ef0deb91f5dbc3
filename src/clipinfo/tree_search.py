# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Depth-bounded search over a schemaless ``ytInitialData`` tree.

The payload is treated as a tree of objects (dict), arrays (list) and
scalars. A search visits container nodes depth-first, children in the
source's own order (dict insertion order, list index order), and returns
the first node the predicate accepts. The root is depth 0; a node deeper
than ``max_depth`` is neither tested nor descended into, but its siblings
are still visited.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

TIME_SEARCH_MAX_DEPTH = 15
CHANNEL_SEARCH_MAX_DEPTH = 20

CHANNEL_ID_PREFIX = "UC"

Predicate = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True, slots=True)
class SearchHit:
    value: Any
    path: tuple[str | int, ...]

    def dotted_path(self) -> str:
        return "".join(f"[{p}]" if isinstance(p, int) else f".{p}" for p in self.path) or "<root>"


def depth_first_search(root: Any, predicate: Predicate, max_depth: int) -> SearchHit | None:
    """Return the first predicate match in deterministic depth-first order.

    *predicate* is called with each object node and returns the matched value
    or None. Array nodes are traversed but never tested themselves.
    """

    def visit(node: Any, path: tuple[str | int, ...]) -> SearchHit | None:
        if len(path) > max_depth:
            return None
        if isinstance(node, dict):
            found = predicate(node)
            if found is not None:
                return SearchHit(value=found, path=path)
            children = node.items()
        elif isinstance(node, list):
            children = enumerate(node)
        else:
            return None
        for key, child in children:
            hit = visit(child, (*path, key))
            if hit is not None:
                return hit
        return None

    return visit(root, ())


def _time_info(node: dict[str, Any]) -> dict[str, Any] | None:
    if "startTimeMs" in node and "endTimeMs" in node:
        return node
    clip = node.get("clipConfig")
    if isinstance(clip, dict) and (clip.get("startTimeMs") or clip.get("startTimeSeconds")):
        return clip
    return None


def _channel_id(node: dict[str, Any]) -> str | None:
    for key in ("browseId", "channelId"):
        value = node.get(key)
        if isinstance(value, str) and value.startswith(CHANNEL_ID_PREFIX):
            return value
    return None


def find_time_info(data: Any, max_depth: int = TIME_SEARCH_MAX_DEPTH) -> dict[str, Any] | None:
    """First node carrying both ``startTimeMs`` and ``endTimeMs``, or a truthy ``clipConfig``."""
    hit = depth_first_search(data, _time_info, max_depth)
    if hit is None:
        return None
    logger.debug("Found time info at %s", hit.dotted_path())
    return hit.value


def find_channel_id(data: Any, max_depth: int = CHANNEL_SEARCH_MAX_DEPTH) -> str | None:
    """First ``browseId``/``channelId`` string starting with ``UC``."""
    hit = depth_first_search(data, _channel_id, max_depth)
    if hit is None:
        return None
    logger.debug("Found channel id at %s", hit.dotted_path())
    return hit.value
