"""Browser session components for the capture pipeline.

Components:
- BrowserHost: launches Chromium and owns the single page + CDP channel
- ResourceFilter: image/font/stylesheet blocking toggled around the click
- SiteStateReset: clears cookies, cache and storage before each run
- InteractionDriver: navigation with detached-frame retry and tab click
- ResponseCapturer: page-level then control-channel response capture
- ArtifactExtractor: verification token and target-site cookies
- KeepAlive: periodic no-op evaluation on the page
- CapturePipeline / CaptureRuntime: orchestration and process lifecycle
"""

__all__ = [
    "ArtifactExtractor",
    "BrowserHost",
    "CapturePipeline",
    "CaptureRuntime",
    "ChannelWatch",
    "InteractionDriver",
    "KeepAlive",
    "ResourceFilter",
    "ResponseCapturer",
    "Session",
    "SiteStateReset",
]

from .artifacts import ArtifactExtractor
from .browser_host import BrowserHost, Session
from .interaction import InteractionDriver
from .keepalive import KeepAlive
from .pipeline import CapturePipeline
from .resource_filter import ResourceFilter
from .response_capturer import ChannelWatch, ResponseCapturer
from .runtime import CaptureRuntime
from .site_state import SiteStateReset
