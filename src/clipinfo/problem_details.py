# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Structured error taxonomy for the clipinfo command line.

Maps exceptions raised while acquiring a page or writing output to a
``ProblemDetail`` carrying a type URI, a title, a scrubbed detail message and
a recovery hint. Modelled on RFC 9457 Problem Details so the same object can
be printed for humans (``to_cli_text``) or, with ``--log-json``, emitted as a
JSON line (``to_json``).

Type URI namespace: ``https://www.retio.ai/clipinfo/errors/{slug}``
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

_ERROR_BASE = "https://www.retio.ai/clipinfo/errors"

MAX_DETAIL_LENGTH = 200


class ProblemType(StrEnum):
    INVALID_URL = "invalid-url"
    BROWSER_UNAVAILABLE = "browser-unavailable"
    PAGE_UNAVAILABLE = "page-unavailable"
    PAGE_TIMEOUT = "page-timeout"
    NAVIGATION_FAILED = "navigation-failed"
    DNS_RESOLUTION_FAILED = "dns-resolution-failed"
    TLS_ERROR = "tls-error"
    OUTPUT_FAILED = "output-failed"

    @property
    def uri(self) -> str:
        return f"{_ERROR_BASE}/{self.value}"


# (title, CLI hint)
_TYPE_METADATA: dict[ProblemType, tuple[str, str]] = {
    ProblemType.INVALID_URL: (
        "Invalid Clip URL",
        "Pass a clip URL such as https://www.youtube.com/clip/<id>.",
    ),
    ProblemType.BROWSER_UNAVAILABLE: (
        "Browser Unavailable",
        "Ensure Chromium is installed: playwright install chromium",
    ),
    ProblemType.PAGE_UNAVAILABLE: (
        "Page Unavailable",
        "The page loaded without readable content. Try again or save the page and use --html.",
    ),
    ProblemType.PAGE_TIMEOUT: (
        "Page Timed Out",
        "The page took too long to load. Try again or raise --timeout-ms.",
    ),
    ProblemType.NAVIGATION_FAILED: (
        "Navigation Failed",
        "Check that the site is reachable from this machine.",
    ),
    ProblemType.DNS_RESOLUTION_FAILED: (
        "DNS Resolution Failed",
        "Check the URL spelling and your network connection.",
    ),
    ProblemType.TLS_ERROR: (
        "TLS Error",
        "The site's certificate could not be verified.",
    ),
    ProblemType.OUTPUT_FAILED: (
        "Output Failed",
        "Check that the output path is writable.",
    ),
}

_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"Bearer\s+\S+"), "Bearer <redacted>"),
    (re.compile(r"://[^@\s/]+@"), "://<redacted>@"),
    (
        re.compile(r"(?:API_KEY|SECRET|TOKEN|PASSWORD|COOKIE)\s*[=:]\s*\S+", re.IGNORECASE),
        "<redacted>",
    ),
]

_PATH_PATTERN = re.compile(
    r"(/(?:Users|home|tmp|var|etc|opt|root|srv|usr|Library|private|mnt|media)/[\w./-]+"
    r"|[A-Z]:\\[\w.\\-]+)"
)

_NET_ERR_RE = re.compile(r"net::ERR_(\w+)")
_HOSTNAME_RE = re.compile(r"https?://([^/:\s]+)")

_DNS_CODES = {"NAME_NOT_RESOLVED"}
_TIMED_OUT_CODES = {"CONNECTION_TIMED_OUT", "TIMED_OUT"}


def sanitize_detail(text: str) -> str:
    """Scrub credentials and filesystem paths, then truncate."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    text = _PATH_PATTERN.sub("<path>", text)
    # Playwright appends a multi-line call log; the first line carries the error.
    text = text.strip().split("\n", 1)[0]
    if len(text) > MAX_DETAIL_LENGTH:
        text = text[:MAX_DETAIL_LENGTH] + "..."
    return text


def classify_network_error(exc_message: str) -> tuple[ProblemType, str] | None:
    """Classify a Chromium ``net::ERR_*`` message. None when there is no such code."""
    m = _NET_ERR_RE.search(exc_message)
    if m is None:
        return None
    code = m.group(1)
    hm = _HOSTNAME_RE.search(exc_message)
    hostname = hm.group(1) if hm else ""

    if code in _DNS_CODES:
        host_part = f" '{hostname}'" if hostname else ""
        return ProblemType.DNS_RESOLUTION_FAILED, f"Could not resolve domain name{host_part}"
    if code in _TIMED_OUT_CODES:
        host_part = f" to '{hostname}'" if hostname else ""
        return ProblemType.PAGE_TIMEOUT, f"Connection timed out{host_part}"
    if "CERT" in code or "SSL" in code:
        host_part = f" for '{hostname}'" if hostname else ""
        return ProblemType.TLS_ERROR, f"SSL/TLS error{host_part}"
    return ProblemType.NAVIGATION_FAILED, f"Navigation failed (net::ERR_{code})"


@dataclass(frozen=True, slots=True)
class ProblemDetail:
    """Immutable, printable description of a failed run."""

    type: str = "about:blank"
    title: str = ""
    detail: str = ""
    instance: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type}
        if self.title:
            d["title"] = self.title
        if self.detail:
            d["detail"] = self.detail
        if self.instance:
            d["instance"] = self.instance
        for k, v in self.extensions.items():
            d.setdefault(k, v)
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_cli_text(self) -> str:
        """``Error: <detail>`` plus a ``Hint:`` line when one is known."""
        hint = _HINTS_BY_URI.get(self.type, "")
        lines = [f"Error: {self.detail}"]
        if hint:
            lines.append(f"Hint: {hint}")
        return "\n".join(lines)


_HINTS_BY_URI: dict[str, str] = {ptype.uri: hint for ptype, (_title, hint) in _TYPE_METADATA.items()}


def _problem(ptype: ProblemType, detail: str, instance: str = "", **extensions: Any) -> ProblemDetail:
    title, _hint = _TYPE_METADATA[ptype]
    return ProblemDetail(
        type=ptype.uri,
        title=title,
        detail=sanitize_detail(detail),
        instance=instance,
        extensions={k: sanitize_detail(v) if isinstance(v, str) else v for k, v in extensions.items()},
    )


def from_exception(exc: Exception, *, instance: str = "") -> ProblemDetail:
    """Build a ProblemDetail from *exc*.

    Unknown exception types get a generic ``about:blank`` detail so internal
    state does not leak to the terminal.
    """
    from .errors import BrowserError, InvalidClipUrlError, OutputError, PageUnavailableError

    if isinstance(exc, InvalidClipUrlError):
        return _problem(ProblemType.INVALID_URL, str(exc), instance)
    if isinstance(exc, BrowserError):
        return _problem(ProblemType.BROWSER_UNAVAILABLE, str(exc), instance)
    if isinstance(exc, PageUnavailableError):
        return _problem(ProblemType.PAGE_UNAVAILABLE, str(exc), instance)
    if isinstance(exc, OutputError):
        return _problem(ProblemType.OUTPUT_FAILED, str(exc), instance, path=exc.path)

    net_result = classify_network_error(str(exc))
    if net_result is not None:
        ptype, human = net_result
        return _problem(ptype, human, instance)

    if isinstance(exc, (TimeoutError, PlaywrightTimeoutError)):
        return _problem(ProblemType.PAGE_TIMEOUT, str(exc) or "Timed out", instance)

    return ProblemDetail(
        type="about:blank",
        title="Unexpected Error",
        detail=f"{type(exc).__name__}: {sanitize_detail(str(exc))}" if str(exc) else type(exc).__name__,
        instance=instance,
    )
