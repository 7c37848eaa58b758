"""Data models for the capture service."""

from .capture import (
    CaptureReport,
    CaptureResult,
    CookieRecord,
    InterceptionState,
    ResourceType,
)

__all__ = [
    "CaptureReport",
    "CaptureResult",
    "CookieRecord",
    "InterceptionState",
    "ResourceType",
]
