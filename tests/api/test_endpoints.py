"""Endpoint tests driving the full pipeline against a fake browser session."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from capture_service.api.main import create_app
from capture_service.errors import CaptureBusy
from capture_service.session.browser_host import Session
from capture_service.session.runtime import CaptureRuntime

DEMO_URL = "https://htmlcsstoimage.com/image-demo"

TARGET_COOKIES = [
    {"name": "ARRAffinity", "value": "a1", "domain": "htmlcsstoimage.com", "path": "/", "httpOnly": True},
    {"name": "hcti_session", "value": "s1", "domain": ".hcti.io", "path": "/"},
]
FOREIGN_COOKIES = [
    {"name": "_ga", "value": "g1", "domain": ".google.com", "path": "/"},
]


class TestCaptureAPI:
    """Test suite for /ping and /status."""

    @pytest.fixture
    def cdp(self, cdp_factory):
        return cdp_factory({"Network.getAllCookies": {"cookies": TARGET_COOKIES + FOREIGN_COOKIES}})

    @pytest.fixture
    def host(self, mock_page, cdp):
        host = MagicMock()
        host.start = AsyncMock(return_value=Session(
            browser=MagicMock(), context=MagicMock(), page=mock_page, cdp=cdp
        ))
        host.shutdown = AsyncMock()
        return host

    @pytest.fixture
    def app(self, service_config, host):
        return create_app(service_config, runtime_factory=lambda config: CaptureRuntime(config, host=host))

    @pytest.fixture
    def client(self, app):
        with TestClient(app) as client:
            yield client

    def test_ping(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["host"]
        assert "timestamp" in data
        assert "X-Request-ID" in response.headers

    def test_startup_enables_blocking_and_shutdown_closes_browser(self, app, host, mock_page):
        with TestClient(app) as client:
            assert client.get("/ping").status_code == 200
            mock_page.route.assert_awaited_once()
            host.shutdown.assert_not_awaited()

        host.shutdown.assert_awaited_once()

    def test_capture_with_matching_response(self, client, mock_page, expect_response, response_factory):
        response = response_factory(
            DEMO_URL,
            status=200,
            headers={"content-type": "text/html", "x-requestverificationtoken": "hdr-token"},
            body="<html></html>",
        )
        mock_page.expect_response = MagicMock(return_value=expect_response(response=response))

        result = client.get("/status")

        assert result.status_code == 200
        data = result.json()
        assert data["imageDemoResponseSeen"] is True
        assert data["imageDemoResponseSummary"] == {
            "url": DEMO_URL,
            "status": 200,
            "headerKeys": ["content-type", "x-requestverificationtoken"],
        }
        assert data["requestVerificationToken"] == "hdr-token"
        assert [c["name"] for c in data["cookies"]] == ["ARRAffinity", "hcti_session"]
        assert all(
            "htmlcsstoimage" in c["domain"] or "hcti.io" in c["domain"] for c in data["cookies"]
        )
        assert data["cookies"][0]["httpOnly"] is True
        mock_page.click.assert_awaited_once()

    def test_capture_without_matching_response(self, client, mock_page, expect_response):
        mock_page.expect_response = MagicMock(
            return_value=expect_response(error=PlaywrightTimeoutError("Timeout 50ms exceeded."))
        )

        result = client.get("/status")

        assert result.status_code == 200
        data = result.json()
        assert data["imageDemoResponseSeen"] is False
        assert data["imageDemoResponseSummary"] is None
        assert data["requestVerificationToken"] is None

    def test_navigation_error_returns_500(self, client, mock_page):
        mock_page.goto = AsyncMock(side_effect=Exception("net::ERR_NAME_NOT_RESOLVED at https://htmlcsstoimage.com/"))

        result = client.get("/status")

        assert result.status_code == 500
        data = result.json()
        assert data["error"] == "internal error"
        assert "ERR_NAME_NOT_RESOLVED" in data["message"]

    def test_detached_frame_retry_recovers(self, client, mock_page, expect_response, response_factory):
        mock_page.goto = AsyncMock(side_effect=[Exception("Navigating frame was detached"), None])
        mock_page.expect_response = MagicMock(
            return_value=expect_response(response=response_factory(DEMO_URL, status=204))
        )

        result = client.get("/status")

        assert result.status_code == 200
        assert result.json()["imageDemoResponseSummary"]["status"] == 204
        assert mock_page.goto.await_count == 2

    def test_missing_control_returns_500(self, client, mock_page):
        mock_page.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 1000ms exceeded."))

        result = client.get("/status")

        assert result.status_code == 500
        assert "Control not found" in result.json()["message"]

    def test_busy_returns_429(self, client, app):
        app.state.pipeline.run = AsyncMock(side_effect=CaptureBusy())

        result = client.get("/status")

        assert result.status_code == 429
        assert result.json() == {"error": "busy", "message": "A capture is already in progress"}

    def test_repeated_captures_reuse_single_page(self, client, host, mock_page, expect_response, response_factory):
        mock_page.expect_response = MagicMock(
            side_effect=lambda *args, **kwargs: expect_response(response=response_factory(DEMO_URL))
        )

        for _ in range(3):
            assert client.get("/status").status_code == 200

        host.start.assert_awaited_once()
        assert mock_page.goto.await_count == 3
