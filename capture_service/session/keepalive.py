"""Periodic no-op evaluation that keeps the shared page from idling out."""

import asyncio
import logging
from typing import Optional

from playwright.async_api import Page

logger = logging.getLogger(__name__)


class KeepAlive:
    """Background task pinging the page at a fixed interval."""

    def __init__(self, page: Page, interval_ms: int = 30000):
        self.page = page
        self.interval_seconds = interval_ms / 1000
        self.ping_count = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._shutdown_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Keep-alive is already running")
            return

        self._running = True
        self._shutdown_event.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Keep-alive started (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        self._shutdown_event.set()

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Keep-alive stopped")

    async def ping(self) -> bool:
        """Evaluate a no-op on the page. Returns False if the page is gone or busy."""
        try:
            if self.page.is_closed():
                return False
            await self.page.evaluate("0")
        except Exception as e:
            # Page may be navigating or closed underneath us
            logger.debug(f"Keep-alive ping failed: {e}")
            return False
        self.ping_count += 1
        return True

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(),
                    timeout=self.interval_seconds
                )
                break  # Shutdown requested
            except asyncio.TimeoutError:
                pass

            await self.ping()
