# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Interpret a parsed ``ytInitialPlayerResponse`` payload.

Pulls identity fields from ``videoDetails`` and the clip configuration from
either the top level or ``microformat.playerMicroformatRenderer``. When both
locations carry a ``clipConfig`` the microformat one wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .normalize import coerce_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlayerResponseInfo:
    """Fields one player-response payload contributes."""

    block_index: int
    video_id: str | None = None
    keywords: tuple[str, ...] | None = None
    author: str | None = None
    clip_config: dict[str, Any] | None = None
    clip_config_source: str = ""  # "clipConfig" | "microformat"


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _keywords(value: Any) -> tuple[str, ...] | None:
    if not isinstance(value, list):
        return None
    return tuple(k for k in value if isinstance(k, str))


def _time_field_ms(clip: dict[str, Any], ms_key: str, seconds_key: str) -> int | None:
    # Truthiness on the raw value: 0 falls through to seconds, then None.
    ms = clip.get(ms_key)
    if ms:
        value = coerce_ms(ms)
        if value is not None:
            return value
    seconds = clip.get(seconds_key)
    if seconds:
        value = coerce_ms(seconds, scale=1000)
        if value is not None:
            return value
    return None


def clip_window(clip: dict[str, Any]) -> tuple[int | None, int | None]:
    """Start and end in milliseconds from a clip config or time node."""
    return (
        _time_field_ms(clip, "startTimeMs", "startTimeSeconds"),
        _time_field_ms(clip, "endTimeMs", "endTimeSeconds"),
    )


def clip_video_id(clip: dict[str, Any]) -> str | None:
    """``postId`` then ``videoId`` of a clip config."""
    return _non_empty_str(clip.get("postId")) or _non_empty_str(clip.get("videoId"))


def resolve_player_response(payload: dict[str, Any], block_index: int = 0) -> PlayerResponseInfo:
    """Extract identity fields and clip config from one player response."""
    video_id = keywords = author = None
    details = payload.get("videoDetails")
    if isinstance(details, dict):
        video_id = _non_empty_str(details.get("videoId"))
        keywords = _keywords(details.get("keywords"))
        author = _non_empty_str(details.get("author"))

    clip_config: dict[str, Any] | None = None
    source = ""
    top = payload.get("clipConfig")
    if isinstance(top, dict):
        clip_config, source = top, "clipConfig"
    microformat = payload.get("microformat")
    if isinstance(microformat, dict):
        renderer = microformat.get("playerMicroformatRenderer")
        if isinstance(renderer, dict) and isinstance(renderer.get("clipConfig"), dict):
            clip_config, source = renderer["clipConfig"], "microformat"

    if clip_config is not None:
        logger.debug("Found clipConfig in %s of script block %d", source, block_index)

    return PlayerResponseInfo(
        block_index=block_index,
        video_id=video_id,
        keywords=keywords,
        author=author,
        clip_config=clip_config,
        clip_config_source=source,
    )
