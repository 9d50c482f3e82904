"""
Tests for the page acquisition service.

Drives the message boundary with a FakePage, so both pipelines run end to
end without a browser.
"""

import asyncio

import pytest

from pagepal.dom import parse_html
from pagepal.service import (
    GET_COMPOSITE_IMAGE,
    GET_PAGE_TEXT,
    GET_PAGE_VISUAL,
    START_VIEWPORT_TRACKING,
    STOP_VIEWPORT_TRACKING,
    PageAcquisitionService,
)


@pytest.fixture
def service(fake_page, test_settings) -> PageAcquisitionService:
    return PageAcquisitionService(fake_page, test_settings)


class TestTextRequests:
    """Tests for GET_PAGE_TEXT."""

    @pytest.mark.asyncio
    async def test_structured(self, service):
        """Structured mode returns text and the structured document."""
        response = await service.handle({"action": GET_PAGE_TEXT, "mode": "structured"})

        assert response["success"] is True
        assert response["mode"] == "structured"
        assert response["text"].startswith("Page: Guide Page")
        assert response["length"] == len(response["text"])
        assert response["url"] == "https://example.com/guide"
        assert response["title"] == "Guide Page"
        assert response["structuredData"]["sections"][2]["content"] == "Getting Started"

    @pytest.mark.asyncio
    async def test_default_mode_is_structured(self, service):
        """Without a mode the structured pipeline runs."""
        response = await service.handle({"action": GET_PAGE_TEXT})

        assert response["mode"] == "structured"

    @pytest.mark.asyncio
    async def test_cache_skips_snapshot(self, service, fake_page):
        """A fresh cached document is served without a new snapshot."""
        first = await service.handle({"action": GET_PAGE_TEXT})
        second = await service.handle({"action": GET_PAGE_TEXT})

        assert fake_page.snapshots == 1
        assert first["text"] == second["text"]

    @pytest.mark.asyncio
    async def test_invalidate(self, service, fake_page):
        """Invalidation forces a new snapshot."""
        await service.handle({"action": GET_PAGE_TEXT})
        service.invalidate()
        await service.handle({"action": GET_PAGE_TEXT})

        assert fake_page.snapshots == 2

    @pytest.mark.asyncio
    async def test_simple(self, service):
        """Simple mode returns collapsed text without structured data."""
        response = await service.handle({"action": GET_PAGE_TEXT, "mode": "simple"})

        assert response["success"] is True
        assert response["mode"] == "simple"
        assert "structuredData" not in response
        assert response["text"].startswith("Getting Started")

    @pytest.mark.asyncio
    async def test_other_modes_are_simple(self, service):
        """Unrecognized text modes fall back to simple."""
        response = await service.handle({"action": GET_PAGE_TEXT, "mode": "plain"})

        assert response["mode"] == "simple"

    @pytest.mark.asyncio
    async def test_no_content(self, make_page, test_settings):
        """An empty page reports failure instead of empty text."""
        page = make_page(parse_html("<html><body></body></html>", "https://example.com/x"))
        service = PageAcquisitionService(page, test_settings)

        response = await service.handle({"action": GET_PAGE_TEXT})

        assert response == {"success": False, "error": "No content found"}

    @pytest.mark.asyncio
    async def test_unexpected_error(self, fake_page, test_settings):
        """Unexpected exceptions become failure responses."""
        async def broken_snapshot():
            raise RuntimeError("snapshot exploded")

        fake_page.snapshot = broken_snapshot
        service = PageAcquisitionService(fake_page, test_settings)

        response = await service.handle({"action": GET_PAGE_TEXT})

        assert response == {"success": False, "error": "snapshot exploded"}


class TestVisualRequests:
    """Tests for GET_PAGE_VISUAL."""

    @pytest.mark.asyncio
    async def test_auto_scroll(self, service, fake_page):
        """Auto-scroll returns every viewport in order."""
        response = await service.handle({"action": GET_PAGE_VISUAL, "mode": "auto_scroll"})

        assert response["success"] is True
        assert response["type"] == "visual"
        assert response["mode"] == "auto_scroll"
        offsets = [v["scrollY"] for v in response["data"]["viewports"]]
        assert offsets == [0, 800, 1600, 2000, 2400]
        assert response["title"] == "Guide Page"
        assert response["url"] == "https://example.com/guide"

    @pytest.mark.asyncio
    async def test_default_mode_is_auto_scroll(self, service):
        """Without a mode the page is swept."""
        response = await service.handle({"action": GET_PAGE_VISUAL})

        assert response["mode"] == "auto_scroll"

    @pytest.mark.asyncio
    async def test_current_viewport(self, service, fake_page):
        """Current viewport mode captures one screen where the user is."""
        fake_page.surface.offset = 700

        response = await service.handle({"action": GET_PAGE_VISUAL, "mode": "current_viewport"})

        assert [v["scrollY"] for v in response["data"]["viewports"]] == [700]
        assert fake_page.surface.scrolls == []

    @pytest.mark.asyncio
    async def test_tracked_without_session(self, service):
        """Tracked mode needs a tracking session."""
        response = await service.handle({"action": GET_PAGE_VISUAL, "mode": "tracked"})

        assert response == {"success": False, "error": "No viewport tracking data available"}

    @pytest.mark.asyncio
    async def test_unknown_mode(self, service):
        """Unknown visual modes are rejected."""
        response = await service.handle({"action": GET_PAGE_VISUAL, "mode": "panorama"})

        assert response == {"success": False, "error": "Unknown visual mode: panorama"}

    @pytest.mark.asyncio
    async def test_capture_failure(self, service, fake_page):
        """When nothing can be captured the request fails."""
        fake_page.surface.fail_at = {0}

        response = await service.handle({"action": GET_PAGE_VISUAL, "mode": "current_viewport"})

        assert response == {"success": False, "error": "No viewport data captured"}

    @pytest.mark.asyncio
    async def test_closed_page(self, service, fake_page):
        """A closed page reports failure."""
        fake_page.surface.closed = True

        response = await service.handle({"action": GET_PAGE_VISUAL})

        assert response == {"success": False, "error": "Page is closed"}


class TestTrackingRequests:
    """Tests for the tracking actions."""

    @pytest.mark.asyncio
    async def test_tracking_flow(self, service, fake_page):
        """Start, scroll, stop and fetch the tracked composite."""
        surface = fake_page.surface

        assert await service.handle({"action": START_VIEWPORT_TRACKING}) == {"success": True}
        surface.user_scroll(1200)
        await asyncio.sleep(0.05)
        assert await service.handle({"action": STOP_VIEWPORT_TRACKING}) == {"success": True}

        composite = await service.handle({"action": GET_COMPOSITE_IMAGE})
        tracked = await service.handle({"action": GET_PAGE_VISUAL, "mode": "tracked"})

        assert [v["scrollY"] for v in composite["data"]["viewports"]] == [0, 1200]
        assert tracked["data"] == composite["data"]

        await service.close()

    @pytest.mark.asyncio
    async def test_stop_without_tracker(self, service):
        """Stopping before starting fails."""
        response = await service.handle({"action": STOP_VIEWPORT_TRACKING})

        assert response == {"success": False, "error": "No active tracking"}

    @pytest.mark.asyncio
    async def test_composite_without_tracker(self, service):
        """A composite needs a tracker."""
        response = await service.handle({"action": GET_COMPOSITE_IMAGE})

        assert response == {"success": False, "error": "No viewport tracker available"}

    @pytest.mark.asyncio
    async def test_tracker_reused(self, service):
        """Starting twice reuses one tracker."""
        await service.handle({"action": START_VIEWPORT_TRACKING})
        tracker = service.tracker
        await service.handle({"action": START_VIEWPORT_TRACKING})

        assert service.tracker is tracker

        await service.close()
        assert service.tracker is None

    @pytest.mark.asyncio
    async def test_auto_scroll_during_tracking(self, service, fake_page):
        """A sweep while tracking never overlaps captures or feeds the tracker."""
        surface = fake_page.surface
        surface.notify_scrolls = True

        await service.handle({"action": START_VIEWPORT_TRACKING})
        visual = await service.handle({"action": GET_PAGE_VISUAL, "mode": "auto_scroll"})
        await asyncio.sleep(0.05)

        assert visual["success"] is True
        assert len(visual["data"]["viewports"]) > 1
        assert surface.max_in_flight == 1
        assert service.tracker.is_tracking
        assert [v.scroll_offset for v in service.tracker.viewports] == [0]

        composite = await service.handle({"action": GET_COMPOSITE_IMAGE})
        assert [v["scrollY"] for v in composite["data"]["viewports"]] == [0]

        await service.close()

    @pytest.mark.asyncio
    async def test_tracking_continues_after_auto_scroll(self, service, fake_page):
        """User scrolls after a sweep are tracked again."""
        surface = fake_page.surface
        surface.notify_scrolls = True

        await service.handle({"action": START_VIEWPORT_TRACKING})
        await service.handle({"action": GET_PAGE_VISUAL, "mode": "auto_scroll"})

        surface.user_scroll(500)
        await asyncio.sleep(0.05)

        assert [v.scroll_offset for v in service.tracker.viewports] == [0, 500]

        await service.close()


class TestDispatch:
    """Tests for message dispatch."""

    @pytest.mark.asyncio
    async def test_unknown_action(self, service):
        """Unknown actions are rejected."""
        response = await service.handle({"action": "PRINT_PAGE"})

        assert response == {"success": False, "error": "Unknown action: PRINT_PAGE"}

    @pytest.mark.asyncio
    async def test_missing_action(self, service):
        """Messages without an action are rejected."""
        response = await service.handle({})

        assert response["success"] is False

    @pytest.mark.asyncio
    async def test_requests_serialized(self, service, fake_page):
        """Text and visual requests do not interleave."""
        text, visual = await asyncio.gather(
            service.handle({"action": GET_PAGE_TEXT}),
            service.handle({"action": GET_PAGE_VISUAL}),
        )

        assert text["success"] and visual["success"]
