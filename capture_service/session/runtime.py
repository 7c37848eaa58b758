"""Process-wide runtime: browser host, pipeline and keep-alive together."""

import logging
from typing import Optional

from ..config import ServiceConfig
from .browser_host import BrowserHost, Session
from .keepalive import KeepAlive
from .pipeline import CapturePipeline

logger = logging.getLogger(__name__)


class CaptureRuntime:
    """Starts and stops everything that lives for the whole process."""

    def __init__(self, config: ServiceConfig, host: Optional[BrowserHost] = None):
        self.config = config
        self.host = host or BrowserHost(config)
        self.session: Optional[Session] = None
        self.pipeline: Optional[CapturePipeline] = None
        self.keep_alive: Optional[KeepAlive] = None

    async def start(self) -> CapturePipeline:
        """Launch the browser and bring the pipeline up.

        Raises:
            LaunchFailure: If no browser could be started
        """
        self.session = await self.host.start()
        self.pipeline = CapturePipeline(self.session, self.config)

        if self.config.block_resources:
            await self.pipeline.resource_filter.enable()

        self.keep_alive = KeepAlive(self.session.page, self.config.keep_alive_ms)
        await self.keep_alive.start()
        return self.pipeline

    async def stop(self) -> None:
        """Stop keep-alive, then close the browser. Always completes."""
        logger.info("Shutting down...")
        if self.keep_alive is not None:
            try:
                await self.keep_alive.stop()
            except Exception as e:
                logger.debug(f"Error stopping keep-alive: {e}")
            self.keep_alive = None

        await self.host.shutdown()
        self.pipeline = None
        self.session = None
