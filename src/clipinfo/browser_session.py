# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright browser session that captures a rendered clip page.

Launches headless Chromium, navigates with a hybrid wait strategy, waits for
the ``og:title`` meta tag, then captures every inline script text and the
``<meta property>`` map in one ``page.evaluate`` round trip.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, replace

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import BrowserError, PageUnavailableError
from .page_snapshot import PageSnapshot

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

META_READY_SELECTOR = 'meta[property="og:title"]'

WAIT_STRATEGIES = ("hybrid", "networkidle", "load")

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


@dataclass(frozen=True)
class BrowserConfig:
    """Browser launch and page-readiness configuration."""

    headless: bool = True
    locale: str = DEFAULT_LOCALE
    viewport_width: int = 1280
    viewport_height: int = 800
    user_agent: str = DEFAULT_USER_AGENT
    timeout_ms: int = 60000  # navigation timeout
    wait_strategy: str = "hybrid"  # "hybrid" | "networkidle" | "load"
    networkidle_budget_ms: int = 6000  # hybrid mode: networkidle attempt budget
    settle_quiet_ms: int = 200  # DOM mutation quiet period (ms)
    settle_max_ms: int = 3000  # Maximum settle wait (ms)
    meta_wait_ms: int = 10000  # wait for og:title before capturing

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> BrowserConfig:
        """Defaults overridden by ``CLIPINFO_*`` environment variables."""
        env = os.environ if environ is None else environ
        config = cls()

        headless = env.get("CLIPINFO_HEADLESS", "").strip().lower()
        if headless in _TRUTHY:
            config = replace(config, headless=True)
        elif headless in _FALSY:
            config = replace(config, headless=False)

        timeout = env.get("CLIPINFO_TIMEOUT_MS", "").strip()
        if timeout:
            try:
                config = replace(config, timeout_ms=int(timeout))
            except ValueError:
                logger.warning("Ignoring invalid CLIPINFO_TIMEOUT_MS=%r", timeout)

        strategy = env.get("CLIPINFO_WAIT_STRATEGY", "").strip().lower()
        if strategy in WAIT_STRATEGIES:
            config = replace(config, wait_strategy=strategy)
        elif strategy:
            logger.warning("Ignoring unknown CLIPINFO_WAIT_STRATEGY=%r", strategy)

        locale = env.get("CLIPINFO_LOCALE", "").strip()
        if locale:
            config = replace(config, locale=locale)
        return config


_BROWSER_DEAD_PATTERNS = (
    "target closed",
    "target page",
    "browser has been closed",
    "connection closed",
    "browser disconnected",
)


def _is_browser_dead_error(exc: BaseException) -> bool:
    msg = str(exc).lower()
    return any(p in msg for p in _BROWSER_DEAD_PATTERNS)


# ── Chromium auto-install ─────────────────────────────────────────

_chromium_install_attempted = False
_AUTO_INSTALL_TIMEOUT = 300  # seconds


async def _auto_install_chromium() -> bool:
    """Run ``playwright install chromium`` once per process."""
    global _chromium_install_attempted  # noqa: PLW0603
    if _chromium_install_attempted:
        return False
    _chromium_install_attempted = True

    logger.info("Chromium not found, running 'playwright install chromium'")
    try:
        proc = await asyncio.create_subprocess_exec(
            sys.executable,
            "-m",
            "playwright",
            "install",
            "chromium",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=_AUTO_INSTALL_TIMEOUT)
        if proc.returncode == 0:
            logger.info("Chromium installed successfully")
            return True
        logger.warning(
            "playwright install chromium failed (rc=%d): %s",
            proc.returncode,
            stderr.decode(errors="replace")[:500],
        )
        return False
    except TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning("Chromium install timed out after %ds", _AUTO_INSTALL_TIMEOUT)
        return False
    except OSError:
        logger.warning("Chromium auto-install failed", exc_info=True)
        return False


def chromium_launch_args(config: BrowserConfig) -> list[str]:
    """Chromium flags for an unattended, containerised headless run."""
    return [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-blink-features=AutomationControlled",
        f"--lang={config.locale}",
        "--disable-extensions",
        "--disable-dev-shm-usage",
        "--disable-background-networking",
        "--disable-sync",
        "--disable-gpu",
        "--no-first-run",
        "--disable-breakpad",
        "--no-pings",
        "--disable-component-update",
        "--noerrdialogs",
    ]


# Scripts in document order (textContent, as the resolver expects) and the
# first content per meta[property].
_CAPTURE_JS = """() => {
  const meta = {};
  for (const el of document.querySelectorAll('meta[property]')) {
    const prop = el.getAttribute('property');
    if (prop && !(prop in meta)) meta[prop] = el.getAttribute('content');
  }
  const scripts = Array.from(document.querySelectorAll('script'), s => s.textContent || '');
  return { scripts, meta };
}"""

_DOM_SETTLE_JS = """([quietMs, maxMs]) => new Promise(resolve => {
  let mutations = 0;
  let quietTimer = null;
  let maxTimer = null;
  const start = performance.now();

  const finish = (reason) => {
    observer.disconnect();
    if (quietTimer) clearTimeout(quietTimer);
    if (maxTimer) clearTimeout(maxTimer);
    resolve({ waited_ms: Math.round(performance.now() - start), mutations, reason });
  };

  const resetQuiet = () => {
    if (quietTimer) clearTimeout(quietTimer);
    quietTimer = setTimeout(() => finish('quiet'), quietMs);
  };

  const observer = new MutationObserver((records) => {
    mutations += records.length;
    resetQuiet();
  });
  observer.observe(document.documentElement, { childList: true, subtree: true, characterData: true });

  resetQuiet();
  maxTimer = setTimeout(() => finish('timeout'), maxMs);
})"""


class BrowserSession:
    """One Chromium browser, one context, one page."""

    def __init__(self, config: BrowserConfig | None = None):
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session not started. Use async with or call start().")
        return self._page

    async def _launch_browser(self) -> None:
        """Launch Chromium, auto-installing on first 'executable not found' error."""
        args = chromium_launch_args(self.config)
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.config.headless, args=args)
        except Exception as exc:
            if "executable doesn't exist" not in str(exc).lower():
                raise BrowserError(f"Could not launch Chromium: {exc}") from exc
            if not await _auto_install_chromium():
                raise BrowserError(
                    "Chromium is not installed and auto-install failed. Please run: playwright install chromium"
                ) from exc
            self._browser = await self._playwright.chromium.launch(headless=self.config.headless, args=args)

    async def start(self) -> None:
        """Launch browser and create the page."""
        self._playwright = await async_playwright().start()
        await self._launch_browser()
        self._context = await self._browser.new_context(
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
            locale=self.config.locale,
            user_agent=self.config.user_agent,
            service_workers="block",
            permissions=[],
            accept_downloads=False,
        )
        self._page = await self._context.new_page()
        self._page.on("console", lambda msg: logger.debug("page console: %s", msg.text))
        logger.info("Browser session started (headless=%s)", self.config.headless)

    async def stop(self) -> None:
        """Close everything. Safe to call on a crashed or half-started browser."""
        if self._context:
            with suppress(Exception):
                await self._context.close()
            self._context = None
        self._page = None
        if self._browser:
            with suppress(Exception):
                await self._browser.close()
            self._browser = None
        if self._playwright:
            with suppress(Exception):
                await self._playwright.stop()
            self._playwright = None
        logger.info("Browser session stopped")

    async def __aenter__(self) -> BrowserSession:
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    async def navigate(self, url: str) -> str:
        """Navigate to *url* and return the wait strategy actually used.

        - "networkidle": goto waiting for networkidle
        - "load": goto with load event only
        - "hybrid" (default): load, then networkidle within budget; falls
          back to load+settle on timeout or error
        """
        strategy = self.config.wait_strategy
        if strategy == "networkidle":
            await self.page.goto(url, wait_until="networkidle", timeout=self.config.timeout_ms)
            await self.wait_for_dom_settle()
            return "networkidle"

        await self.page.goto(url, wait_until="load", timeout=self.config.timeout_ms)

        used_strategy = "load"
        if strategy == "hybrid":
            idle_task = asyncio.ensure_future(self.page.wait_for_load_state("networkidle"))
            done, _pending = await asyncio.wait({idle_task}, timeout=self.config.networkidle_budget_ms / 1000)
            if idle_task in done:
                exc = idle_task.exception()
                if exc is None:
                    used_strategy = "networkidle"
                elif _is_browser_dead_error(exc):
                    raise exc
                else:
                    used_strategy = "load+settle"
                    logger.debug("networkidle completed with error: %s", exc)
            else:
                idle_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await idle_task
                used_strategy = "load+settle"
                logger.info(
                    "networkidle budget exceeded (%.1fs), proceeding with load+settle",
                    self.config.networkidle_budget_ms / 1000,
                )

        await self.wait_for_dom_settle()
        return used_strategy

    async def wait_for_dom_settle(self) -> dict | None:
        """Wait for DOM mutations to go quiet. None if the evaluate failed."""
        try:
            result = await self.page.evaluate(
                _DOM_SETTLE_JS, [self.config.settle_quiet_ms, self.config.settle_max_ms]
            )
        except Exception:
            logger.debug("DOM settle failed, continuing", exc_info=True)
            return None
        logger.debug(
            "DOM settle: %dms, %d mutations, reason=%s",
            result.get("waited_ms", 0),
            result.get("mutations", 0),
            result.get("reason", "unknown"),
        )
        return result

    async def wait_for_metadata(self) -> bool:
        """Wait for the og:title meta tag. A timeout is logged, not raised."""
        try:
            await self.page.wait_for_selector(
                META_READY_SELECTOR, state="attached", timeout=self.config.meta_wait_ms
            )
            return True
        except PlaywrightTimeoutError:
            logger.warning("og:title not found within %dms, continuing anyway", self.config.meta_wait_ms)
            return False

    async def capture_snapshot(self) -> PageSnapshot:
        """Capture script texts and meta tags of the current page."""
        try:
            data = await self.page.evaluate(_CAPTURE_JS)
        except Exception as e:
            raise PageUnavailableError(f"Could not read page content: {e}") from e
        if not isinstance(data, dict):
            raise PageUnavailableError("Page capture returned no data")
        snapshot = PageSnapshot.from_evaluation(self.page.url, data)
        logger.debug("Captured %d scripts, %d meta properties", len(snapshot.scripts), len(snapshot.meta))
        return snapshot


@asynccontextmanager
async def create_session(config: BrowserConfig | None = None) -> AsyncGenerator[BrowserSession, None]:
    """Context manager to create and manage a browser session."""
    session = BrowserSession(config)
    try:
        await session.start()
        yield session
    finally:
        await session.stop()


async def fetch_snapshot(url: str, config: BrowserConfig | None = None) -> PageSnapshot:
    """Load *url* in a fresh browser and capture its snapshot."""
    async with create_session(config) as session:
        logger.info("Accessing %s", url)
        strategy = await session.navigate(url)
        logger.debug("Page loaded (strategy=%s)", strategy)
        await session.wait_for_metadata()
        return await session.capture_snapshot()
