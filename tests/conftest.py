"""Shared test fixtures and configuration for capture service tests."""

import asyncio
import sys
from collections import defaultdict
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from capture_service.config import ServiceConfig


class FakeCDPSession:
    """In-memory stand-in for a Playwright CDP session."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.sent = []
        self.listeners = defaultdict(list)
        self.events_on_attach = []

    def on(self, event, handler):
        self.listeners[event].append(handler)
        if self.events_on_attach:
            loop = asyncio.get_running_loop()
            for queued_event, params in self.events_on_attach:
                loop.call_soon(self.emit, queued_event, params)
            self.events_on_attach = []

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    def emit(self, event, params):
        for handler in list(self.listeners[event]):
            handler(params)

    def listener_count(self, event):
        return len(self.listeners[event])

    def methods_sent(self):
        return [method for method, _ in self.sent]

    async def send(self, method, params=None):
        self.sent.append((method, params))
        result = self.responses.get(method, {})
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(params)
        return result


class FakeEventInfo:
    """Mimics the object yielded by ``page.expect_response``."""

    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error

    @property
    def value(self):
        async def resolve():
            if self._error is not None:
                raise self._error
            return self._response
        return resolve()


class FakeExpectResponse:
    """Async context manager returned by ``page.expect_response``."""

    def __init__(self, response=None, error=None):
        self.info = FakeEventInfo(response=response, error=error)

    async def __aenter__(self):
        return self.info

    async def __aexit__(self, exc_type, exc, tb):
        return False


def make_response(url, status=200, headers=None, body="", body_error=None):
    response = MagicMock()
    response.url = url
    response.status = status
    response.headers = headers or {}
    if body_error is not None:
        response.text = AsyncMock(side_effect=body_error)
    else:
        response.text = AsyncMock(return_value=body)
    return response


def make_page():
    page = MagicMock()
    page.is_closed = MagicMock(return_value=False)
    page.goto = AsyncMock(return_value=None)
    page.wait_for_selector = AsyncMock(return_value=None)
    page.click = AsyncMock(return_value=None)
    page.evaluate = AsyncMock(return_value=None)
    page.route = AsyncMock(return_value=None)
    page.unroute = AsyncMock(return_value=None)
    page.context.cookies = AsyncMock(return_value=[])
    return page


@pytest.fixture
def fake_cdp():
    """Fake control channel with no canned responses."""
    return FakeCDPSession()


@pytest.fixture
def cdp_factory():
    """Factory for fake control channels with canned responses."""
    return FakeCDPSession


@pytest.fixture
def mock_page():
    """Mock Playwright page with async methods stubbed."""
    return make_page()


@pytest.fixture
def expect_response():
    """Factory for fake ``page.expect_response`` context managers."""
    return FakeExpectResponse


@pytest.fixture
def response_factory():
    """Factory for mock Playwright responses."""
    return make_response


@pytest.fixture
def service_config():
    """Configuration with short timeouts suitable for tests."""
    return ServiceConfig(
        max_wait_ms=50,
        keep_alive_ms=30000,
        navigation_timeout_ms=1000,
        control_timeout_ms=1000,
    )
