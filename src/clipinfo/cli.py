# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Clip Info CLI: resolve a clip URL to its source video, channel and time window.

Usage:
    clipinfo URL                       Console summary
    clipinfo URL --json                JSON document to stdout
    clipinfo URL -o clip.json          JSON document to a file ("-" for stdout)
    clipinfo URL --html page.html      Resolve from a saved rendered page

Exit status: 0 on a successful resolution (even with missing fields),
1 on a bad URL, a usage error, or a failure loading the page or writing output.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .errors import InvalidClipUrlError, OutputError, PageUnavailableError
from .payload_extractor import STRATEGIES

logger = logging.getLogger(__name__)

CLIP_URL_MARKERS = ("youtube.com/clip/", "youtu.be/clip/")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

_EPILOG = """\
examples:
  %(prog)s https://www.youtube.com/clip/UgkxzjQPU1Ug_59l4pDl9d6-E0WR_RbjTsSl
  %(prog)s https://www.youtube.com/clip/<id> --json
  %(prog)s https://www.youtube.com/clip/<id> -o clip.json
  %(prog)s https://www.youtube.com/clip/<id> --html saved_page.html

environment:
  CLIPINFO_HEADLESS, CLIPINFO_TIMEOUT_MS, CLIPINFO_WAIT_STRATEGY,
  CLIPINFO_LOCALE, CLIPINFO_LOG_LEVEL
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with status 1, like every other failure."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def validate_clip_url(url: str | None) -> str:
    """Return the stripped URL or raise InvalidClipUrlError."""
    url = (url or "").strip()
    if not url:
        raise InvalidClipUrlError("No clip URL given")
    if not any(marker in url for marker in CLIP_URL_MARKERS):
        raise InvalidClipUrlError(f"Not a YouTube clip URL: {url}", url=url)
    return url


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="clipinfo",
        description="Resolve a YouTube clip to its source video, channel and time window.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", nargs="?", metavar="URL", help="Clip URL (https://www.youtube.com/clip/...)")
    out = parser.add_mutually_exclusive_group()
    out.add_argument("--json", action="store_true", help="Print the JSON document to stdout")
    out.add_argument(
        "-o",
        "--output",
        type=str,
        metavar="PATH",
        help="Write the JSON document to PATH ('-' for stdout)",
    )
    parser.add_argument("--html", type=str, metavar="FILE", help="Resolve from a saved HTML page instead of a browser")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--timeout-ms", type=int, metavar="MS", help="Navigation timeout (default: 60000)")
    parser.add_argument(
        "--extraction",
        choices=STRATEGIES,
        default="balanced",
        help="Script payload extraction strategy (default: balanced)",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit logs and errors as JSON lines on stderr")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and tracebacks")
    return parser


def _browser_config(args: argparse.Namespace):
    from .browser_session import BrowserConfig

    config = BrowserConfig.from_env()
    if args.headed:
        config = replace(config, headless=False)
    if args.timeout_ms is not None:
        config = replace(config, timeout_ms=args.timeout_ms)
    return config


def _load_html_snapshot(path_str: str, url: str):
    from .page_snapshot import snapshot_from_html

    path = Path(path_str)
    try:
        html = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise PageUnavailableError(f"Could not read {path}: {e.strerror or e}") from e
    return snapshot_from_html(html, url=url)


async def _fetch_live(url: str, config):
    from ._progress import status_spinner
    from .browser_session import fetch_snapshot

    with status_spinner(f"Loading {url} ..."):
        return await fetch_snapshot(url, config)


def _write_output(text: str, output: str) -> None:
    if output == "-":
        print(text)
        return
    path = Path(output)
    try:
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        raise OutputError(f"Could not write {path}: {e.strerror or e}", path=str(path)) from e
    print(f"Saved to {path}", file=sys.stderr)


def run(args: argparse.Namespace) -> int:
    """Resolve one clip and emit it. Raises on failure."""
    from .resolver import resolve_page
    from .serializer import to_console_text, to_json

    url = validate_clip_url(args.url)
    logger.debug("Resolving %s (source=%s)", url, "html" if args.html else "browser")

    if args.html:
        snapshot = _load_html_snapshot(args.html, url)
    else:
        snapshot = asyncio.run(_fetch_live(url, _browser_config(args)))

    clip = resolve_page(snapshot, clip_url=url, extraction=args.extraction)

    if args.output:
        _write_output(to_json(clip), args.output)
    elif args.json:
        print(to_json(clip))
    else:
        print(to_console_text(clip))
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    from .logging_config import configure, resolve_level

    parser = build_parser()
    args = parser.parse_args(argv)

    configure(json_output=args.log_json, level=resolve_level(args.verbose))

    if not args.url:
        parser.print_usage(sys.stderr)
        print("clipinfo: error: a clip URL is required", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    try:
        code = run(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        from .problem_details import from_exception

        problem = from_exception(e, instance=args.url or "")
        print(problem.to_json() if args.log_json else problem.to_cli_text(), file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    sys.exit(code)


if __name__ == "__main__":
    main()
