"""Exceptions raised by the capture service.

Pipeline-level failures (launch, navigation, control lookup) are raised to
the caller. Auxiliary enrichment steps never raise; see ``session.fallback``.
"""

from typing import Optional


class CaptureServiceError(Exception):
    """Base error for the capture service."""

    def __init__(
        self,
        message: str = "Capture failed",
        error_code: str = "capture_failed",
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(CaptureServiceError, ValueError):
    """Raised when environment configuration is invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="invalid_configuration",
            details={"field": field} if field else {}
        )


class LaunchFailure(CaptureServiceError):
    """Raised when no candidate executable produced a usable browser."""

    def __init__(self, message: str = "Unable to launch browser", attempts: Optional[dict] = None):
        super().__init__(
            message=message,
            error_code="launch_failure",
            details={"attempts": attempts} if attempts else {}
        )


class NavigationFailure(CaptureServiceError):
    """Raised when the target page could not be loaded."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="navigation_failure",
            details={"url": url} if url else {}
        )


class ControlNotFound(CaptureServiceError):
    """Raised when the UI control never became visible."""

    def __init__(self, selector: str, timeout_ms: Optional[int] = None):
        message = f"Control not found or not visible: {selector}"
        if timeout_ms is not None:
            message = f"{message} (waited {timeout_ms}ms)"
        super().__init__(
            message=message,
            error_code="control_not_found",
            details={"selector": selector}
        )


class CaptureBusy(CaptureServiceError):
    """Raised when a capture is requested while another one is running."""

    def __init__(self, message: str = "A capture is already in progress"):
        super().__init__(message=message, error_code="busy")
