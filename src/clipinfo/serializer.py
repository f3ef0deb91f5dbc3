# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""ClipMetadata presentation: JSON document and console summary.

Neither format mutates the record. The JSON document adds
``startTimeFormatted``, ``endTimeFormatted`` and an ISO-8601 ``extractedAt``
timestamp to the camelCase fields.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from . import ClipMetadata
from .normalize import NOT_AVAILABLE, format_duration_ms
from .sanitizer import sanitize_console_text

# attribute -> JSON key, in output order
FIELD_KEYS: tuple[tuple[str, str], ...] = (
    ("clip_url", "clipUrl"),
    ("video_url", "videoUrl"),
    ("video_id", "videoId"),
    ("channel_id", "channelId"),
    ("title", "title"),
    ("description", "description"),
    ("image", "image"),
    ("keywords", "keywords"),
    ("author", "author"),
    ("start_time_ms", "startTimeMs"),
    ("end_time_ms", "endTimeMs"),
    ("duration_ms", "durationMs"),
)


def to_dict(clip: ClipMetadata, extracted_at: datetime | None = None) -> dict[str, Any]:
    """Plain dict in JSON document shape."""
    data: dict[str, Any] = {}
    for attr, key in FIELD_KEYS:
        value = getattr(clip, attr)
        data[key] = list(value) if isinstance(value, tuple) else value
    data["startTimeFormatted"] = format_duration_ms(clip.start_time_ms)
    data["endTimeFormatted"] = format_duration_ms(clip.end_time_ms)
    ts = extracted_at or datetime.now(UTC)
    data["extractedAt"] = ts.isoformat()
    return data


def to_json(clip: ClipMetadata, indent: int = 2, extracted_at: datetime | None = None) -> str:
    """Serialize ClipMetadata to a JSON document string."""
    return json.dumps(to_dict(clip, extracted_at), ensure_ascii=False, indent=indent)


def _or_na(value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return str(value)


def _time_line(ms: int | None) -> str:
    if ms is None:
        return NOT_AVAILABLE
    return f"{format_duration_ms(ms)} ({ms} ms)"


def to_console_text(clip: ClipMetadata) -> str:
    """Labeled, human-readable summary."""
    keywords = ", ".join(clip.keywords) if clip.keywords else None
    rows = [
        ("Clip URL", clip.clip_url),
        ("Video URL", clip.video_url),
        ("Video ID", clip.video_id),
        ("Channel ID", clip.channel_id),
        ("Title", sanitize_console_text(clip.title, max_len=200)),
        ("Author", sanitize_console_text(clip.author, max_len=200)),
        ("Description", sanitize_console_text(clip.description)),
        ("Thumbnail", clip.image),
        ("Keywords", sanitize_console_text(keywords)),
    ]
    width = max(len(label) for label, _ in rows + [("Duration", None)])
    lines = ["=== Clip Info ==="]
    lines.extend(f"{label + ':':<{width + 1}} {_or_na(value)}" for label, value in rows)
    lines.append(f"{'Start:':<{width + 1}} {_time_line(clip.start_time_ms)}")
    lines.append(f"{'End:':<{width + 1}} {_time_line(clip.end_time_ms)}")
    lines.append(f"{'Duration:':<{width + 1}} {_time_line(clip.duration_ms)}")
    lines.append("=" * 17)
    return "\n".join(lines)
