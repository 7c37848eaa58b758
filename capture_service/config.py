"""Configuration for the capture service.

All settings come from environment variables and are optional; defaults
target the htmlcsstoimage.com image demo tab.
"""

import os
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .errors import ConfigurationError


DEFAULT_TAB_SELECTOR = 'button.tab-btn[data-tabs-target="#preview-image-content"]'

# Flags required to run Chromium inside slim containers
SANDBOX_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]
EXTRA_ARGS = [
    "--disable-gpu",
    "--no-zygote",
    "--single-process",
    "--disable-extensions",
    "--no-first-run",
]

FALLBACK_EXECUTABLES = (
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/bin/google-chrome",
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 10)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", field=name)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: Tuple[str, ...]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class ServiceConfig:
    """Complete service configuration."""

    # Browser
    chromium_path: Optional[str] = "/usr/bin/chromium"
    launch_args: List[str] = field(default_factory=lambda: SANDBOX_ARGS + EXTRA_ARGS)
    launch_timeout_ms: int = 60000
    dump_io: bool = False

    # HTTP front door
    host: str = "0.0.0.0"
    port: int = 7777

    # Target site
    home_url: str = "https://htmlcsstoimage.com/"
    tab_selector: str = DEFAULT_TAB_SELECTOR
    response_marker: str = "/image-demo"
    cookie_domains: List[str] = field(default_factory=lambda: ["htmlcsstoimage", "hcti.io"])

    # Timing (milliseconds)
    max_wait_ms: int = 15000
    keep_alive_ms: int = 30000
    navigation_timeout_ms: int = 20000
    control_timeout_ms: int = 10000

    block_resources: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "ServiceConfig":
        """Create configuration from environment variables."""
        config = cls()

        config.chromium_path = os.getenv("CHROMIUM_PATH", config.chromium_path) or None
        config.launch_timeout_ms = _env_int("LAUNCH_TIMEOUT_MS", config.launch_timeout_ms)
        config.dump_io = _env_bool("DUMP_IO", config.dump_io)

        config.host = os.getenv("HOST", config.host)
        config.port = _env_int("PORT", config.port)

        config.home_url = os.getenv("HOME_URL", config.home_url)
        config.tab_selector = os.getenv("TAB_SELECTOR", config.tab_selector)
        config.response_marker = os.getenv("RESPONSE_MARKER", config.response_marker)
        config.cookie_domains = _env_list("COOKIE_DOMAINS", tuple(config.cookie_domains))

        config.max_wait_ms = _env_int("MAX_WAIT_MS", config.max_wait_ms)
        config.keep_alive_ms = _env_int("KEEP_ALIVE_MS", config.keep_alive_ms)
        config.navigation_timeout_ms = _env_int("NAVIGATION_TIMEOUT_MS", config.navigation_timeout_ms)
        config.control_timeout_ms = _env_int("CONTROL_TIMEOUT_MS", config.control_timeout_ms)

        config.block_resources = _env_bool("BLOCK_RESOURCES", config.block_resources)
        config.log_level = os.getenv("LOG_LEVEL", config.log_level).upper()

        return config

    @property
    def origin(self) -> str:
        """Scheme and host of the target site."""
        parsed = urlparse(self.home_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def executable_candidates(self) -> List[Optional[str]]:
        """Executables to try in order; ``None`` means Playwright's bundled build."""
        candidates: List[Optional[str]] = []
        for path in (self.chromium_path, *FALLBACK_EXECUTABLES):
            if path and path not in candidates:
                candidates.append(path)
        candidates.append(None)
        return candidates

    def validate(self) -> None:
        """Validate configuration settings."""
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Port out of range: {self.port}", field="port")

        parsed = urlparse(self.home_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"HOME_URL must be an absolute http(s) URL: {self.home_url}", field="home_url")

        if not self.response_marker:
            raise ConfigurationError("Response marker must not be empty", field="response_marker")

        for name in ("max_wait_ms", "keep_alive_ms", "navigation_timeout_ms",
                     "control_timeout_ms", "launch_timeout_ms"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive", field=name)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
