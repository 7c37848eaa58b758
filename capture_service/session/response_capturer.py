"""Capture of the one network response a tab click triggers.

Two detection strategies are used in sequence:

1. Page level: ``page.expect_response`` armed around the click, with its own
   timeout. A body that cannot be read yields ``body=None``.
2. Control channel: a listener on ``Network.responseReceived`` raced against
   a timer. Whichever of "matching event" and "timer fired" comes first
   claims the watch; claiming cancels the timer and detaches the listener
   exactly once, and the outcome future is resolved exactly once.

Both strategies return a ``CaptureResult`` or ``None``; timeouts are not errors.
"""

import asyncio
import base64
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from playwright.async_api import CDPSession, Page, Response, TimeoutError as PlaywrightTimeoutError

from ..models.capture import CaptureResult

logger = logging.getLogger(__name__)

RESPONSE_EVENT = "Network.responseReceived"
BODY_READ_TIMEOUT_S = 5.0

Trigger = Callable[[], Awaitable[Any]]


class _OnceTrigger:
    """Wraps the trigger action so it runs at most once across strategies."""

    def __init__(self, trigger: Optional[Trigger]):
        self._trigger = trigger
        self.fired = False

    async def __call__(self) -> None:
        if self._trigger is None or self.fired:
            return
        self.fired = True
        await self._trigger()


class ChannelWatch:
    """Single-resolution listener for a matching control-channel response."""

    def __init__(self, cdp: CDPSession, marker: str, body_timeout_s: float = BODY_READ_TIMEOUT_S):
        self.cdp = cdp
        self.marker = marker
        self.body_timeout_s = body_timeout_s

        self._loop = asyncio.get_running_loop()
        self._outcome: asyncio.Future = self._loop.create_future()
        self._settled = False
        self._attached = False
        self._timer: Optional[asyncio.TimerHandle] = None
        self._body_task: Optional[asyncio.Task] = None

    @property
    def settled(self) -> bool:
        return self._settled

    def start(self, timeout_s: float) -> None:
        """Attach the listener and start the timeout timer."""
        self.cdp.on(RESPONSE_EVENT, self._on_response)
        self._attached = True
        self._timer = self._loop.call_later(timeout_s, self._on_timeout)

    async def wait(self) -> Optional[CaptureResult]:
        """Wait for the outcome; listener and timer are released on every path."""
        try:
            return await self._outcome
        finally:
            self.close()

    def close(self) -> None:
        """Release everything the watch holds. Idempotent."""
        self._claim()
        if self._body_task is not None and not self._body_task.done():
            self._body_task.cancel()
        self._resolve(None)

    def _claim(self) -> bool:
        """Move to the settled state. Only the first caller wins."""
        if self._settled:
            return False
        self._settled = True

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if self._attached:
            self._attached = False
            try:
                self.cdp.remove_listener(RESPONSE_EVENT, self._on_response)
            except Exception as e:
                logger.debug(f"Error detaching control channel listener: {e}")
        return True

    def _resolve(self, result: Optional[CaptureResult]) -> None:
        if not self._outcome.done():
            self._outcome.set_result(result)

    def _on_timeout(self) -> None:
        if self._claim():
            logger.warning("Control channel wait timed out without a matching response")
            self._resolve(None)

    def _on_response(self, params: Dict[str, Any]) -> None:
        try:
            url = (params.get("response") or {}).get("url")
        except AttributeError:
            return
        if not url or self.marker not in url:
            return
        if not self._claim():
            return
        self._body_task = self._loop.create_task(self._complete(params))

    async def _complete(self, params: Dict[str, Any]) -> None:
        result = None
        try:
            response = params["response"]
            body = await self._read_body(params.get("requestId"))
            result = CaptureResult(
                url=response["url"],
                status_code=int(response.get("status") or 0),
                headers={str(k): str(v) for k, v in (response.get("headers") or {}).items()},
                body=body,
                source="control_channel",
            )
            logger.info(f"[control channel] saw URL: {result.url}")
        except Exception as e:
            logger.warning(f"Matched control channel response could not be read: {e}")
        finally:
            self._resolve(result)

    async def _read_body(self, request_id: Optional[str]) -> Optional[str]:
        if not request_id:
            return None
        try:
            payload = await asyncio.wait_for(
                self.cdp.send("Network.getResponseBody", {"requestId": request_id}),
                timeout=self.body_timeout_s
            )
        except Exception as e:
            logger.debug(f"Network.getResponseBody failed for {request_id}: {e}")
            return None

        body = (payload or {}).get("body")
        if not body:
            return None
        if payload.get("base64Encoded"):
            try:
                return base64.b64decode(body).decode("utf-8", errors="replace")
            except (ValueError, TypeError) as e:
                logger.debug(f"Response body is not valid base64: {e}")
                return None
        return body


class ResponseCapturer:
    """Waits for the response whose URL contains ``marker``."""

    def __init__(
        self,
        page: Page,
        cdp: CDPSession,
        marker: str,
        timeout_ms: int = 15000,
        body_timeout_s: float = BODY_READ_TIMEOUT_S,
    ):
        """Initialize response capturer.

        Args:
            page: Shared Playwright page (primary strategy)
            cdp: Control channel bound to the page (fallback strategy)
            marker: Substring identifying the response of interest
            timeout_ms: Window given to each strategy
            body_timeout_s: Limit on reading a matched response body
        """
        self.page = page
        self.cdp = cdp
        self.marker = marker
        self.timeout_ms = timeout_ms
        self.body_timeout_s = body_timeout_s

    def matches(self, response: Response) -> bool:
        try:
            return self.marker in response.url
        except Exception:
            return False

    async def capture(self, trigger: Optional[Trigger] = None) -> Optional[CaptureResult]:
        """Run the primary strategy, then the fallback if it found nothing.

        Args:
            trigger: Action that provokes the response (the tab click). It is
                run inside the first armed window and never more than once.

        Returns:
            The captured response, or None if neither strategy saw one
        """
        once = _OnceTrigger(trigger)

        result = await self.wait_on_page(once)
        if result is not None:
            return result

        logger.warning("Page-level response wait timed out / failed; falling back to control channel")
        return await self.wait_on_channel(once)

    async def wait_on_page(self, trigger: Optional[Trigger] = None) -> Optional[CaptureResult]:
        """Primary strategy: Playwright's response expectation."""
        try:
            async with self.page.expect_response(self.matches, timeout=self.timeout_ms) as response_info:
                if trigger is not None:
                    await trigger()
            response = await response_info.value
        except PlaywrightTimeoutError:
            logger.debug(f"No response matching {self.marker} within {self.timeout_ms}ms")
            return None
        except Exception as e:
            logger.debug(f"Page-level response wait failed: {e}")
            return None

        try:
            body = await asyncio.wait_for(response.text(), timeout=self.body_timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"Response body not read within {self.body_timeout_s}s")
            body = None
        except Exception as e:
            logger.debug(f"Could not read response body: {e}")
            body = None

        logger.info(f"[page] saw URL: {response.url}")
        return CaptureResult(
            url=response.url,
            status_code=response.status,
            headers=dict(response.headers or {}),
            body=body,
            source="page",
        )

    async def wait_on_channel(
        self,
        trigger: Optional[Trigger] = None,
        timeout_ms: Optional[int] = None,
    ) -> Optional[CaptureResult]:
        """Fallback strategy: raw control-channel response events."""
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        watch = ChannelWatch(self.cdp, self.marker, body_timeout_s=self.body_timeout_s)
        watch.start(timeout_ms / 1000)

        if trigger is not None:
            try:
                await trigger()
            except Exception:
                watch.close()
                raise

        return await watch.wait()
