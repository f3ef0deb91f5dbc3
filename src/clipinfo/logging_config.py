# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge. Interactive: ConsoleRenderer, ``--log-json``: JSONRenderer.

Leaf module, no clipinfo imports. All log output goes to stderr so stdout
carries only the result.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

LOG_LEVEL_ENV = "CLIPINFO_LOG_LEVEL"

# Chatty third-party loggers kept at WARNING unless debugging
_NOISY_LOGGERS = ("asyncio",)


def resolve_level(verbose: bool = False, default: str = "WARNING") -> str:
    """``-v`` beats ``CLIPINFO_LOG_LEVEL`` beats *default*."""
    if verbose:
        return "DEBUG"
    return os.environ.get(LOG_LEVEL_ENV, "").strip().upper() or default


def configure(*, json_output: bool = False, level: str = "WARNING") -> None:
    """Configure structlog and route the stdlib root logger through it.

    Args:
        json_output: True for JSON lines, False for human-readable console output.
        level: Root logger level name; unknown names fall back to WARNING.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    numeric = getattr(logging, level.upper(), None)
    root.setLevel(numeric if isinstance(numeric, int) else logging.WARNING)

    if root.level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
