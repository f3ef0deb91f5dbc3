# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""URL and time normalization for resolved clip metadata."""

from __future__ import annotations

import math
import re
from typing import Any

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

# Shown wherever a time value could not be resolved.
NOT_AVAILABLE = "N/A"

_THUMBNAIL_ID_RE = re.compile(r"/vi/([^/]+)/")

# "0:15 - 0:30" in og:description
_DESCRIPTION_RANGE_RE = re.compile(r"(\d+):(\d+)\s*-\s*(\d+):(\d+)")


def coerce_ms(value: Any, scale: int = 1) -> int | None:
    """Coerce a JSON number or numeric string to whole milliseconds.

    *scale* converts the unit first (1000 for seconds), so fractional
    seconds keep their sub-second part before flooring.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value * scale
    try:
        f = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    # round first so 1.001 s is 1001 ms, not 1000.9999
    return math.floor(round(f * scale, 6))


def build_video_url(video_id: str | None, start_time_ms: int | None) -> str | None:
    """Watch URL for *video_id*, with ``&t=<seconds>s`` when a start is known."""
    if not video_id:
        return None
    url = WATCH_URL.format(video_id=video_id)
    if start_time_ms is not None:
        url += f"&t={start_time_ms // 1000}s"
    return url


def compute_duration_ms(start_time_ms: int | None, end_time_ms: int | None) -> int | None:
    """``end - start`` when both are known. Negative results pass through."""
    if start_time_ms is None or end_time_ms is None:
        return None
    return end_time_ms - start_time_ms


def format_duration_ms(ms: int | None) -> str:
    """Render milliseconds as ``MM:SS`` or ``HH:MM:SS``.

    Hours are omitted when zero. Negative values get a leading ``-``.
    ``None`` renders as :data:`NOT_AVAILABLE`.
    """
    if ms is None:
        return NOT_AVAILABLE
    sign = "-" if ms < 0 else ""
    total_seconds = abs(ms) // 1000
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{sign}{minutes:02d}:{seconds:02d}"


def video_id_from_thumbnail(image_url: str | None) -> str | None:
    """Pull the video id out of a ``.../vi/<id>/...`` thumbnail URL."""
    if not image_url:
        return None
    m = _THUMBNAIL_ID_RE.search(image_url)
    return m.group(1) if m else None


def time_window_from_description(description: str | None) -> tuple[int, int] | None:
    """Parse a ``m:ss - m:ss`` range out of a description, in milliseconds."""
    if not description:
        return None
    m = _DESCRIPTION_RANGE_RE.search(description)
    if m is None:
        return None
    start_min, start_sec, end_min, end_sec = (int(g) for g in m.groups())
    return (start_min * 60 + start_sec) * 1000, (end_min * 60 + end_sec) * 1000
