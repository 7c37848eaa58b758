"""Response schemas for the capture service HTTP API.

Field names on the wire are camelCase; the Python attributes stay snake_case.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.capture import CaptureReport, CookieRecord


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PingResponse(BaseModel):
    """Liveness response."""

    ok: bool = Field(default=True, description="Always true while the process serves requests")
    timestamp: datetime = Field(default_factory=utc_now, description="Server time")
    host: str = Field(..., description="Host name of the serving machine")


class ResponseSummary(BaseModel):
    """Short description of the captured network response."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., description="Captured response URL")
    status: int = Field(..., description="HTTP status of the captured response")
    header_keys: List[str] = Field(
        default_factory=list,
        alias="headerKeys",
        description="Names of the response headers"
    )


class StatusResponse(BaseModel):
    """Result of one capture run."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "timestamp": "2024-01-15T10:30:00Z",
                "cookies": [
                    {"name": "ARRAffinity", "value": "abc", "domain": "htmlcsstoimage.com", "path": "/"}
                ],
                "requestVerificationToken": "CfDJ8N...",
                "imageDemoResponseSeen": True,
                "imageDemoResponseSummary": {
                    "url": "https://htmlcsstoimage.com/image-demo",
                    "status": 200,
                    "headerKeys": ["content-type", "date"]
                }
            }
        }
    )

    timestamp: datetime = Field(default_factory=utc_now)
    cookies: List[CookieRecord] = Field(default_factory=list)
    request_verification_token: Optional[str] = Field(
        default=None,
        alias="requestVerificationToken"
    )
    image_demo_response_seen: bool = Field(default=False, alias="imageDemoResponseSeen")
    image_demo_response_summary: Optional[ResponseSummary] = Field(
        default=None,
        alias="imageDemoResponseSummary"
    )

    @classmethod
    def from_report(cls, report: CaptureReport) -> "StatusResponse":
        summary = None
        if report.response is not None:
            summary = ResponseSummary(
                url=report.response.url,
                status=report.response.status_code,
                header_keys=report.response.header_keys,
            )
        return cls(
            cookies=report.cookies,
            request_verification_token=report.verification_token,
            image_demo_response_seen=report.response_seen,
            image_demo_response_summary=summary,
        )


class ErrorResponse(BaseModel):
    """Error payload for failed captures."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
