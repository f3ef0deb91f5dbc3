# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Clip Info exception hierarchy.

All clipinfo-specific errors inherit from ClipInfoError. Malformed script
payloads are not errors at this level: the engine logs and skips them.
"""

from __future__ import annotations


class ClipInfoError(Exception):
    """Base exception for all Clip Info errors."""


class BrowserError(ClipInfoError):
    """Browser session launch or navigation failure."""


class PageUnavailableError(ClipInfoError):
    """The page collaborator could not supply script texts or meta tags at all."""


class InvalidClipUrlError(ClipInfoError):
    """Input URL is missing or is not a clip URL."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class OutputError(ClipInfoError):
    """Writing the result document failed."""

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(message)
        self.path = path
