# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import clipinfo  # noqa: F401
except ImportError:
    raise ImportError("clipinfo is not installed. Run: pip install -e '.[test]'") from None

import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def _block_real_browser(request, monkeypatch):
    """Safety net: prevent real Chromium launches in unit tests.

    Tests that need a session should patch ``BrowserSession`` methods or
    ``clipinfo.browser_session.fetch_snapshot`` explicitly. Opt out with::

        @pytest.mark.allow_real_browser
    """
    if "allow_real_browser" in request.keywords:
        return

    def _no_real_playwright():
        raise RuntimeError(
            "Test tried to start a real browser. Patch 'clipinfo.browser_session.fetch_snapshot' in your test."
        )

    monkeypatch.setattr("clipinfo.browser_session.async_playwright", _no_real_playwright)


@pytest.fixture
def reset_logging():
    """Restore root logger and structlog config after tests that call configure()."""
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level
    yield
    root.handlers = old_handlers
    root.setLevel(old_level)
    structlog.reset_defaults()
