"""Extraction of session artifacts: anti-forgery token and site cookies.

Both operations degrade to empty values instead of raising; the capture
report simply carries ``None`` / ``[]`` when nothing could be read.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from playwright.async_api import CDPSession, Page

from ..models.capture import CaptureResult, CookieRecord
from .fallback import attempt, first_available

logger = logging.getLogger(__name__)

TOKEN_HEADER_MARKERS = ("requestverificationtoken", "request-verification-token")

# Checked in order; the first capture group is the token
TOKEN_BODY_PATTERNS = (
    re.compile(r"""name=['"]__RequestVerificationToken['"]\s+value=['"]([^'"]+)['"]""", re.IGNORECASE),
    re.compile(r'<input[^>]*name="__RequestVerificationToken"[^>]*value="([^"]+)"', re.IGNORECASE),
    re.compile(r'<meta[^>]*name="csrf-token"[^>]*content="([^"]+)"', re.IGNORECASE),
)

TOKEN_DOM_JS = """
() => {
    const input = document.querySelector('input[name="__RequestVerificationToken"]');
    if (input && input.value) return input.value;
    const meta = document.querySelector('meta[name="csrf-token"]');
    if (meta) return meta.getAttribute('content');
    return null;
}
"""


def token_from_headers(headers: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Find the token in response headers (case-insensitive key match)."""
    for key, value in (headers or {}).items():
        lowered = str(key).lower()
        if any(marker in lowered for marker in TOKEN_HEADER_MARKERS) and value:
            return str(value)
    return None


def token_from_body(body: Optional[str]) -> Optional[str]:
    """Find the token embedded in HTML markup."""
    if not body or not isinstance(body, str):
        return None
    for pattern in TOKEN_BODY_PATTERNS:
        match = pattern.search(body)
        if match:
            return match.group(1)
    return None


def filter_cookies(raw_cookies: List[Dict[str, Any]], domain_markers: List[str]) -> List[CookieRecord]:
    """Build cookie records for the target domains only."""
    records = []
    for raw in raw_cookies or []:
        try:
            record = CookieRecord.model_validate(raw)
        except Exception as e:
            name = raw.get('name', 'unknown') if isinstance(raw, dict) else 'unknown'
            logger.warning(f"Failed to process cookie {name}: {e}")
            continue
        if record.matches_domain(domain_markers):
            records.append(record)
    return records


class ArtifactExtractor:
    """Reads token and cookies from a capture and the live page."""

    def __init__(self, page: Page, cdp: CDPSession, cookie_domains: List[str]):
        """Initialize artifact extractor.

        Args:
            page: Shared page, used for DOM and cookie fallbacks
            cdp: Control channel, used for the full cookie jar
            cookie_domains: Domain substrings identifying the target site
        """
        self.page = page
        self.cdp = cdp
        self.cookie_domains = list(cookie_domains)

    async def extract_token(self, captured: Optional[CaptureResult]) -> Optional[str]:
        """Resolve the verification token.

        Priority: response headers, response body markup, live DOM.
        """
        async def from_headers():
            return token_from_headers(captured.headers) if captured else None

        async def from_body():
            return token_from_body(captured.body) if captured else None

        async def from_dom():
            return await self.page.evaluate(TOKEN_DOM_JS)

        return await first_available([
            ("response headers", from_headers),
            ("response body", from_body),
            ("live DOM", from_dom),
        ])

    async def collect_cookies(self) -> List[CookieRecord]:
        """Collect target-site cookies, preferring the control channel's jar."""
        async def from_channel():
            payload = await self.cdp.send("Network.getAllCookies")
            return payload.get("cookies", [])

        async def from_page():
            return await self.page.context.cookies()

        raw = await attempt("control channel cookies", from_channel)
        if raw is None:
            raw = await attempt("page cookies", from_page, default=[])

        cookies = filter_cookies(raw, self.cookie_domains)
        logger.info(f"Collected {len(cookies)} target-site cookies")
        return cookies
