# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Isolate and parse the JSON literal assigned to a page global.

Two strategies:

- ``"balanced"`` (default): find ``var <marker> =`` and scan forward from the
  opening ``{`` counting brace depth, skipping over string literals, until the
  matching ``}``. Handles ``;`` and ``}`` inside strings.
- ``"regex"``: the legacy non-greedy ``{.+?};`` match across newlines. Stops at
  the first ``};`` after the assignment, so a payload containing ``};`` inside
  a string is truncated and fails to parse. Kept for parity checks against
  previously captured output.

A failure affects only the block being extracted.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Literal

from .script_locator import RawScriptBlock, ScriptKind

logger = logging.getLogger(__name__)

ExtractionStrategy = Literal["balanced", "regex"]

STRATEGIES: tuple[str, ...] = ("balanced", "regex")


@dataclass(frozen=True, slots=True)
class PayloadResult:
    """Outcome of extracting one marker's payload from one block."""

    block_index: int
    kind: ScriptKind
    payload: dict[str, Any] | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.payload is not None


@lru_cache(maxsize=8)
def _assignment_re(marker: str) -> re.Pattern[str]:
    return re.compile(rf"var\s+{re.escape(marker)}\s*=\s*")


@lru_cache(maxsize=8)
def _legacy_re(marker: str) -> re.Pattern[str]:
    return re.compile(rf"var\s+{re.escape(marker)}\s*=\s*(\{{.+?\}});", re.DOTALL)


def _scan_balanced(text: str, start: int) -> str | None:
    """Return the ``{...}`` literal opening at *start*, or None if unbalanced."""
    if start >= len(text) or text[start] != "{":
        return None
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        ch = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[start : pos + 1]
    return None


def find_json_literal(text: str, marker: str, strategy: ExtractionStrategy = "balanced") -> str | None:
    """Locate the JSON literal assigned to ``var <marker>`` in *text*."""
    if strategy == "regex":
        m = _legacy_re(marker).search(text)
        return m.group(1) if m else None
    if strategy != "balanced":
        raise ValueError(f"Unknown extraction strategy: {strategy!r}")
    m = _assignment_re(marker).search(text)
    if m is None:
        return None
    return _scan_balanced(text, m.end())


def extract_payload(
    block: RawScriptBlock,
    kind: ScriptKind,
    strategy: ExtractionStrategy = "balanced",
) -> PayloadResult:
    """Extract and parse *kind*'s payload from *block*. Never raises on bad input."""
    literal = find_json_literal(block.text, kind.marker, strategy)
    if literal is None:
        logger.warning(
            "No %s literal found in script block %d (strategy=%s)",
            kind.marker,
            block.index,
            strategy,
        )
        return PayloadResult(block_index=block.index, kind=kind, error="literal not found")
    try:
        data = json.loads(literal)
    except json.JSONDecodeError as e:
        logger.warning(
            "Malformed %s payload in script block %d: %s",
            kind.marker,
            block.index,
            e,
        )
        return PayloadResult(block_index=block.index, kind=kind, error=f"invalid JSON: {e.msg}")
    if not isinstance(data, dict):
        logger.warning("%s payload in script block %d is not an object", kind.marker, block.index)
        return PayloadResult(block_index=block.index, kind=kind, error="payload is not an object")
    logger.debug("Parsed %s from script block %d (%d chars)", kind.marker, block.index, len(literal))
    return PayloadResult(block_index=block.index, kind=kind, payload=data)
