# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Status output on stderr while the page loads.

A rich spinner when stderr is a terminal; silent when piped, so scripted
callers only ever see the result on stdout.
"""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Generator

from rich.console import Console


def _interactive() -> bool:
    return sys.stderr.isatty()


@contextlib.contextmanager
def status_spinner(msg: str) -> Generator[None, None, None]:
    """Show a spinner with *msg* for the duration of the block."""
    if not _interactive():
        yield
        return
    console = Console(stderr=True)
    with console.status(msg, spinner="dots"):
        yield

