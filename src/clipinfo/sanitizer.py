# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Make page-controlled strings safe to print to a terminal.

Titles and descriptions come straight from the page. Before they reach the
console summary, ANSI escape sequences and invisible control/bidi characters
are removed and line breaks are folded.
"""

from __future__ import annotations

import re

# Zero-width chars, bidi overrides, C0/C1 controls (tab and newline handled separately)
_CONTROL_CHAR_RE = re.compile(
    r"[\u200B-\u200F\u202A-\u202E\u2060-\u2069\uFEFF"
    r"\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F-\u009F]"
)

_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]|\x1b\][^\x07]*\x07")


def sanitize_console_text(text: str | None, max_len: int = 500, keep_newlines: bool = False) -> str | None:
    """Strip escapes and control characters; truncate to *max_len* with an ellipsis."""
    if not text:
        return text
    text = _ANSI_ESCAPE_RE.sub("", text)
    text = _CONTROL_CHAR_RE.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    if not keep_newlines:
        text = re.sub(r"\s*\n\s*", " ", text)
    text = text.replace("\t", " ").strip()
    if len(text) > max_len:
        text = text[: max_len - 1] + "…"
    return text
