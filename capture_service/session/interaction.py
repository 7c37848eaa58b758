"""Navigation and tab activation on the shared page."""

import logging

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from ..errors import ControlNotFound, NavigationFailure

logger = logging.getLogger(__name__)

CLICK_JS = """
(selector) => {
    const el = document.querySelector(selector);
    if (!el) return false;
    el.click();
    return true;
}
"""


def is_detached_frame_error(error: BaseException) -> bool:
    """Check whether a navigation error is the transient detached-frame case."""
    message = str(error).lower()
    return "detached" in message and "frame" in message


class InteractionDriver:
    """Drives the page to the target state: load, wait for control, click."""

    def __init__(
        self,
        page: Page,
        navigation_timeout_ms: int = 20000,
        control_timeout_ms: int = 10000,
    ):
        """Initialize interaction driver.

        Args:
            page: Shared Playwright page
            navigation_timeout_ms: Timeout for each navigation attempt
            control_timeout_ms: Timeout for the control to become visible
        """
        self.page = page
        self.navigation_timeout_ms = navigation_timeout_ms
        self.control_timeout_ms = control_timeout_ms

    async def navigate(self, url: str) -> None:
        """Load ``url`` up to DOM-ready.

        A detached-frame failure is retried exactly once.

        Raises:
            NavigationFailure: On any other failure, or a repeated detached frame
        """
        if self.page.is_closed():
            raise NavigationFailure("Page closed before navigation", url=url)

        try:
            await self._goto(url)
        except Exception as e:
            if not is_detached_frame_error(e):
                raise NavigationFailure(str(e) or repr(e), url=url) from e

            logger.warning("Navigation hit detached frame, retrying once")
            try:
                await self._goto(url)
            except Exception as retry_error:
                raise NavigationFailure(str(retry_error) or repr(retry_error), url=url) from retry_error

        logger.debug(f"Navigation completed: {url}")

    async def _goto(self, url: str) -> None:
        await self.page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self.navigation_timeout_ms
        )

    async def wait_for_control(self, selector: str) -> None:
        """Wait until the control exists and is visible.

        Raises:
            ControlNotFound: If the control is not visible within the timeout
        """
        try:
            await self.page.wait_for_selector(
                selector,
                state="visible",
                timeout=self.control_timeout_ms
            )
        except PlaywrightTimeoutError as e:
            raise ControlNotFound(selector, timeout_ms=self.control_timeout_ms) from e

    async def activate(self, selector: str) -> bool:
        """Click the control, falling back to a DOM ``click()``.

        Failures are not raised: some sites swallow clicks, and a missed
        click simply shows up as no captured response.

        Returns:
            True if either click strategy reported success
        """
        try:
            await self.page.click(selector, timeout=self.control_timeout_ms)
            logger.debug(f"Clicked element: {selector}")
            return True
        except Exception as e:
            logger.debug(f"Native click failed for {selector}: {e}")

        try:
            clicked = await self.page.evaluate(CLICK_JS, selector)
        except Exception as e:
            logger.warning(f"Could not activate {selector}: {e}")
            return False

        if clicked:
            logger.debug(f"Clicked element via DOM: {selector}")
        return bool(clicked)
