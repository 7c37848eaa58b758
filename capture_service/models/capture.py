"""Pydantic models for capture results and session artifacts.

These are value objects: they are built once by the session components and
serialized by the HTTP layer without further mutation.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InterceptionState(str, Enum):
    """Request interception state of the shared page."""
    DISABLED = "disabled"
    ENABLED = "enabled"


class ResourceType(str, Enum):
    """Browser classification of a fetched asset."""
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    MEDIA = "media"
    FONT = "font"
    SCRIPT = "script"
    TEXTTRACK = "texttrack"
    XHR = "xhr"
    FETCH = "fetch"
    EVENTSOURCE = "eventsource"
    WEBSOCKET = "websocket"
    MANIFEST = "manifest"
    OTHER = "other"

    @classmethod
    def from_browser(cls, value: Optional[str]) -> "ResourceType":
        """Map a browser-reported resource type, defaulting to OTHER."""
        if not value:
            return cls.OTHER
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


class CaptureResult(BaseModel):
    """A single observed network response."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Response URL")
    status_code: int = Field(description="HTTP status code")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: Optional[str] = Field(default=None, description="Response body text, if readable")
    source: str = Field(default="page", description="Strategy that observed the response")

    @property
    def header_keys(self) -> List[str]:
        return list(self.headers.keys())


class CookieRecord(BaseModel):
    """Cookie as reported by the browser, restricted to target-site domains.

    Field names follow the browser's cookie attribute names. Attributes not
    declared here are kept as extras so the snapshot is passed through intact.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    value: str = ""
    domain: str = ""
    path: str = "/"
    expires: Optional[float] = None
    size: Optional[int] = None
    httpOnly: bool = False
    secure: bool = False
    session: Optional[bool] = None
    sameSite: Optional[str] = None

    def matches_domain(self, domain_markers: List[str]) -> bool:
        """Check whether the cookie domain contains any of the markers."""
        if not self.domain:
            return False
        domain = self.domain.lower()
        return any(marker.lower() in domain for marker in domain_markers)


class CaptureReport(BaseModel):
    """Outcome of one capture pipeline run."""

    model_config = ConfigDict(frozen=True)

    cookies: List[CookieRecord] = Field(default_factory=list)
    verification_token: Optional[str] = None
    response: Optional[CaptureResult] = None

    @property
    def response_seen(self) -> bool:
        return self.response is not None
