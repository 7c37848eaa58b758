"""Browser host owning the single long-lived Chromium session.

The host launches one headless Chromium process, opens exactly one page and
binds a CDP session (the control channel) to that page's target. Every
capture request reuses this page; nothing here creates pages per request.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    CDPSession,
    Page,
    Playwright,
    async_playwright,
)

from ..config import ServiceConfig
from ..errors import LaunchFailure

logger = logging.getLogger(__name__)

BROWSER_IO_CHANNEL = "pw:browser"


def enable_browser_io_dump() -> None:
    """Add the browser stdio channel to the Playwright driver's DEBUG list.

    The driver inherits the process environment when it starts, so this must
    run before ``async_playwright().start()``. Existing channels are kept.
    """
    channels = [c.strip() for c in os.environ.get("DEBUG", "").split(",") if c.strip()]
    if BROWSER_IO_CHANNEL not in channels:
        channels.append(BROWSER_IO_CHANNEL)
    os.environ["DEBUG"] = ",".join(channels)


@dataclass
class Session:
    """Process-wide browser session: one browser, one page, one control channel."""

    browser: Browser
    context: BrowserContext
    page: Page
    cdp: CDPSession
    executable_path: Optional[str] = None


class BrowserHost:
    """Launches and tears down the shared browser session."""

    def __init__(self, config: ServiceConfig):
        """Initialize browser host.

        Args:
            config: Service configuration (executable, flags, launch timeout)
        """
        self.config = config
        self.playwright: Optional[Playwright] = None
        self.session: Optional[Session] = None
        self._closed = False

    async def start(self) -> Session:
        """Launch the browser and open the shared page.

        Candidate executables are tried in order until one yields a browser
        with a page and a control channel.

        Returns:
            The process-wide session

        Raises:
            LaunchFailure: If every candidate failed
        """
        if self.session is not None:
            logger.warning("Browser host already started")
            return self.session

        if self.config.dump_io:
            enable_browser_io_dump()

        logger.info(f"Starting browser host; preferred Chromium path: {self.config.chromium_path}")

        try:
            self.playwright = await async_playwright().start()
        except Exception as e:
            raise LaunchFailure(f"Failed to start Playwright driver: {e}") from e

        attempts: Dict[str, str] = {}
        for executable_path in self.config.executable_candidates():
            label = executable_path or "bundled"
            try:
                self.session = await self._open_session(executable_path)
            except Exception as e:
                logger.warning(f"Chromium launch failed for {label}: {e}")
                attempts[label] = str(e)
                continue

            logger.info(f"Launched Chromium from {label}")
            self._closed = False
            return self.session

        await self._stop_playwright()
        raise LaunchFailure(
            f"No usable Chromium among {len(attempts)} candidate(s)",
            attempts=attempts
        )

    async def _open_session(self, executable_path: Optional[str]) -> Session:
        """Launch one candidate and bind page + control channel to it."""
        launch_options = {
            "headless": True,
            "args": list(self.config.launch_args),
            "timeout": self.config.launch_timeout_ms,
        }
        if executable_path:
            launch_options["executable_path"] = executable_path

        browser = await self.playwright.chromium.launch(**launch_options)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            cdp = await context.new_cdp_session(page)
        except Exception:
            await self._close_quietly(browser)
            raise

        try:
            await cdp.send("Network.enable")
        except Exception as e:
            logger.warning(f"Could not enable network events on control channel: {e}")

        return Session(
            browser=browser,
            context=context,
            page=page,
            cdp=cdp,
            executable_path=executable_path,
        )

    async def shutdown(self) -> None:
        """Close the browser process and stop the driver.

        Idempotent; close errors are logged and swallowed so shutdown always
        completes, even when the browser is already gone.
        """
        if self._closed:
            return
        self._closed = True

        logger.info("Shutting down browser host")
        if self.session is not None:
            await self._close_quietly(self.session.browser)
            self.session = None

        await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        if self.playwright is None:
            return
        try:
            await self.playwright.stop()
        except Exception as e:
            logger.debug(f"Error stopping Playwright driver: {e}")
        finally:
            self.playwright = None

    @staticmethod
    async def _close_quietly(browser: Browser) -> None:
        try:
            await browser.close()
        except Exception as e:
            logger.debug(f"Error closing browser: {e}")

    @property
    def is_running(self) -> bool:
        if self.session is None:
            return False
        try:
            return self.session.browser.is_connected()
        except Exception:
            return False

    def __repr__(self) -> str:
        return (
            f"BrowserHost(executable={self.session.executable_path if self.session else None}, "
            f"running={self.is_running})"
        )
