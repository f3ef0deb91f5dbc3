# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Classify inline script blocks by the global they assign.

A block is a player-response candidate when its text contains
``var ytInitialPlayerResponse`` and an initial-data candidate when it
contains ``var ytInitialData``. Both tests run on every block, so one
block can carry both classifications.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class ScriptKind(Enum):
    PLAYER_RESPONSE = "ytInitialPlayerResponse"
    INITIAL_DATA = "ytInitialData"

    @property
    def marker(self) -> str:
        """Global variable name the payload is assigned to."""
        return self.value

    @property
    def declaration(self) -> str:
        return f"var {self.value}"


@dataclass(frozen=True, slots=True)
class RawScriptBlock:
    """Text of one inline script element plus its document order index."""

    index: int
    text: str
    kinds: frozenset[ScriptKind] = frozenset()

    def is_kind(self, kind: ScriptKind) -> bool:
        return kind in self.kinds


def classify_script(text: str) -> frozenset[ScriptKind]:
    """Return every classification whose declaration occurs in *text*."""
    # "var ytInitialData" is not a prefix of "var ytInitialPlayerResponse",
    # so the two substring tests are independent.
    return frozenset(kind for kind in ScriptKind if kind.declaration in text)


def locate_script_blocks(script_texts: Iterable[str | None]) -> list[RawScriptBlock]:
    """Wrap script texts in document order and classify each.

    ``None`` entries (script elements without text) become empty blocks so
    indices stay aligned with the document. No matching block is a valid
    outcome.
    """
    blocks: list[RawScriptBlock] = []
    for index, text in enumerate(script_texts):
        text = text or ""
        blocks.append(RawScriptBlock(index=index, text=text, kinds=classify_script(text)))
    return blocks


def blocks_of_kind(blocks: Iterable[RawScriptBlock], kind: ScriptKind) -> list[RawScriptBlock]:
    """Filter *blocks* to one classification, preserving document order."""
    return [b for b in blocks if b.is_kind(kind)]
