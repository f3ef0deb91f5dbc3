# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Clip Info: canonical metadata for a rendered clip page.

Resolves source video identity, channel identity, clip time window and
title/author/keywords from a page's ``<meta>`` tags and the inline
``ytInitialPlayerResponse`` / ``ytInitialData`` script blobs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class ClipMetadata:
    """Resolved metadata for one clip page. Built once per resolution."""

    clip_url: str | None = None  # input URL, echoed
    video_url: str | None = None  # derived: watch URL with &t= offset
    video_id: str | None = None
    channel_id: str | None = None  # always "UC..." when set
    title: str | None = None
    description: str | None = None
    image: str | None = None  # thumbnail URL (og:image)
    keywords: tuple[str, ...] | None = None
    author: str | None = None
    start_time_ms: int | None = None
    end_time_ms: int | None = None
    duration_ms: int | None = None  # derived: end - start, may be negative


__all__ = ["ClipMetadata"]
