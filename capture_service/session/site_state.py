"""Per-run reset of browser state for the target site."""

import logging
from typing import Dict

from playwright.async_api import CDPSession, Page

from .fallback import attempt

logger = logging.getLogger(__name__)

# Each clearing step is guarded separately; storage APIs throw on about:blank
CLEAR_PAGE_STATE_JS = """
() => {
    try { localStorage.clear(); } catch (e) {}
    try { sessionStorage.clear(); } catch (e) {}
    try {
        document.cookie.split(';').forEach(c => {
            document.cookie = c.replace(/=.*/, '=;expires=Thu, 01 Jan 1970 00:00:00 GMT;path=/;');
        });
    } catch (e) {}
    return true;
}
"""


class SiteStateReset:
    """Clears cookies, cache and storage so each capture starts clean."""

    def __init__(self, page: Page, cdp: CDPSession):
        self.page = page
        self.cdp = cdp

    async def reset(self, origin: str) -> Dict[str, bool]:
        """Clear all site state. Never raises.

        Args:
            origin: Origin whose storage is cleared (e.g. ``https://example.com``)

        Returns:
            Mapping of step name to whether it succeeded
        """
        steps = {
            "cookies": lambda: self.cdp.send("Network.clearBrowserCookies"),
            "cache": lambda: self.cdp.send("Network.clearBrowserCache"),
            "origin_storage": lambda: self.cdp.send(
                "Storage.clearDataForOrigin",
                {"origin": origin, "storageTypes": "all"}
            ),
            "page_storage": lambda: self.page.evaluate(CLEAR_PAGE_STATE_JS),
        }

        outcome = {}
        for name, step in steps.items():
            outcome[name] = await attempt(f"clear {name}", self._succeeded(step), default=False)

        failed = [name for name, ok in outcome.items() if not ok]
        if failed:
            logger.debug(f"Site state reset incomplete for {origin}: {', '.join(failed)} failed")
        return outcome

    @staticmethod
    def _succeeded(step):
        async def run():
            await step()
            return True
        return run
