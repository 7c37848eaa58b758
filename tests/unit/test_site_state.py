"""Unit tests for site state reset."""

import pytest

from capture_service.session.site_state import CLEAR_PAGE_STATE_JS, SiteStateReset

ORIGIN = "https://htmlcsstoimage.com"


@pytest.mark.asyncio
async def test_reset_runs_every_step(mock_page, fake_cdp):
    outcome = await SiteStateReset(mock_page, fake_cdp).reset(ORIGIN)

    assert outcome == {
        "cookies": True,
        "cache": True,
        "origin_storage": True,
        "page_storage": True,
    }
    assert fake_cdp.sent == [
        ("Network.clearBrowserCookies", None),
        ("Network.clearBrowserCache", None),
        ("Storage.clearDataForOrigin", {"origin": ORIGIN, "storageTypes": "all"}),
    ]
    mock_page.evaluate.assert_awaited_once_with(CLEAR_PAGE_STATE_JS)


@pytest.mark.asyncio
async def test_failing_steps_do_not_abort_reset(mock_page, cdp_factory):
    cdp = cdp_factory({
        "Network.clearBrowserCache": Exception("Network domain not enabled"),
        "Storage.clearDataForOrigin": Exception("Storage unsupported"),
    })
    mock_page.evaluate.side_effect = Exception("localStorage is not available")

    outcome = await SiteStateReset(mock_page, cdp).reset(ORIGIN)

    assert outcome == {
        "cookies": True,
        "cache": False,
        "origin_storage": False,
        "page_storage": False,
    }
    assert cdp.methods_sent() == [
        "Network.clearBrowserCookies",
        "Network.clearBrowserCache",
        "Storage.clearDataForOrigin",
    ]
