"""Capture pipeline orchestration over the shared session.

One run: reset site state, load the page, wait for the tab, suspend resource
blocking, click the tab inside the armed response wait, restore blocking,
then read cookies and the verification token.
"""

import asyncio
import logging

from ..config import ServiceConfig
from ..errors import CaptureBusy
from ..models.capture import CaptureReport
from .artifacts import ArtifactExtractor
from .browser_host import Session
from .interaction import InteractionDriver
from .resource_filter import ResourceFilter
from .response_capturer import ResponseCapturer
from .site_state import SiteStateReset

logger = logging.getLogger(__name__)


class CapturePipeline:
    """Runs capture requests one at a time against the session's page."""

    def __init__(self, session: Session, config: ServiceConfig):
        """Initialize capture pipeline.

        Args:
            session: Shared browser session (borrowed, not owned)
            config: Service configuration
        """
        self.session = session
        self.config = config

        page, cdp = session.page, session.cdp
        self.resource_filter = ResourceFilter(page)
        self.site_state = SiteStateReset(page, cdp)
        self.driver = InteractionDriver(
            page,
            navigation_timeout_ms=config.navigation_timeout_ms,
            control_timeout_ms=config.control_timeout_ms,
        )
        self.capturer = ResponseCapturer(
            page,
            cdp,
            marker=config.response_marker,
            timeout_ms=config.max_wait_ms,
        )
        self.extractor = ArtifactExtractor(page, cdp, config.cookie_domains)

        self._lock = asyncio.Lock()
        self.run_count = 0

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    async def run(self) -> CaptureReport:
        """Run one capture.

        Raises:
            CaptureBusy: If another capture is in flight
            NavigationFailure: If the target page could not be loaded
            ControlNotFound: If the tab control never became visible
        """
        if self._lock.locked():
            raise CaptureBusy()

        async with self._lock:
            self.run_count += 1
            return await self._run()

    async def _run(self) -> CaptureReport:
        config = self.config

        await self.site_state.reset(config.origin)
        await self.driver.navigate(config.home_url)
        await self.driver.wait_for_control(config.tab_selector)

        # Blocking is lifted so the click and its network flow are unaltered
        had_interception = self.resource_filter.is_enabled
        if had_interception:
            await self.resource_filter.disable()

        try:
            captured = await self.capturer.capture(
                trigger=lambda: self.driver.activate(config.tab_selector)
            )
        finally:
            if had_interception:
                await self.resource_filter.enable()

        cookies = await self.extractor.collect_cookies()
        token = await self.extractor.extract_token(captured)

        if captured is None:
            logger.info("Capture finished without a matching response")
        return CaptureReport(
            cookies=cookies,
            verification_token=token,
            response=captured,
        )
