"""Request interception that drops non-essential page resources.

While enabled, every request of the shared page passes through one route
handler which aborts images, fonts and stylesheets and lets everything else
continue. Enabling and disabling are paired: the filter is either fully on
(handler active and route registered) or fully off.
"""

import logging
from typing import Optional

from playwright.async_api import Page, Route

from ..models.capture import InterceptionState, ResourceType

logger = logging.getLogger(__name__)

BLOCKED_RESOURCE_TYPES = frozenset({
    ResourceType.IMAGE,
    ResourceType.FONT,
    ResourceType.STYLESHEET,
})

ROUTE_PATTERN = "**/*"


def should_block(resource_type: Optional[str]) -> bool:
    """Decide whether a request of the given kind is aborted.

    Unknown or missing kinds are allowed through.
    """
    try:
        return ResourceType.from_browser(resource_type) in BLOCKED_RESOURCE_TYPES
    except Exception:
        return False


class ResourceFilter:
    """Toggles resource blocking on a borrowed page."""

    def __init__(self, page: Page):
        self.page = page
        self.state = InterceptionState.DISABLED
        self._handler = None
        self.aborted_count = 0
        self.continued_count = 0

    @property
    def is_enabled(self) -> bool:
        return self.state == InterceptionState.ENABLED

    @property
    def handler_count(self) -> int:
        """Number of route handlers this filter currently has registered."""
        return 0 if self._handler is None else 1

    async def enable(self) -> bool:
        """Turn interception on. No-op when already enabled.

        Returns:
            True if interception is active afterwards. A page that does not
            support routing leaves the filter disabled with a warning.
        """
        if self.is_enabled:
            return True

        handler = self._handle_route
        try:
            await self.page.route(ROUTE_PATTERN, handler)
        except Exception as e:
            self._handler = None
            self.state = InterceptionState.DISABLED
            logger.warning(f"Could not enable request interception: {e}")
            return False

        self._handler = handler
        self.state = InterceptionState.ENABLED
        logger.info("Request interception enabled")
        return True

    async def disable(self) -> None:
        """Turn interception off. Safe to call when already disabled.

        The active handler is cleared first, so any ``_handle_route`` call
        still in flight passes its request through, and then the route is
        removed with ``unroute``.
        """
        handler = self._handler
        self._handler = None

        if handler is not None:
            try:
                await self.page.unroute(ROUTE_PATTERN, handler)
            except Exception as e:
                logger.debug(f"Error removing interception route: {e}")

        if self.state == InterceptionState.ENABLED:
            logger.info("Request interception disabled")
        self.state = InterceptionState.DISABLED

    async def _handle_route(self, route: Route) -> None:
        """Abort or continue a single intercepted request."""
        try:
            resource_type = route.request.resource_type
        except Exception:
            resource_type = None

        # A handler already detached by disable() only passes requests through
        block = self._handler is not None and should_block(resource_type)
        try:
            if block:
                await route.abort()
                self.aborted_count += 1
            else:
                await route.continue_()
                self.continued_count += 1
        except Exception as e:
            # Route already handled or page navigated away
            logger.debug(f"Route for {resource_type} request could not be resolved: {e}")

