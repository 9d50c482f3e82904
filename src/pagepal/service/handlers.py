"""
Message-level page acquisition service.

Accepts action messages for one page and answers with plain dicts ready
to hand to the question-answering side. Every failure becomes
``{"success": False, "error": ...}``; nothing is reported as success
unless the pipeline actually produced output.
"""

import asyncio
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, Protocol

from pagepal.capture.controller import ViewportCaptureController
from pagepal.capture.surface import CaptureSurface
from pagepal.config.settings import Settings
from pagepal.core.exceptions import PagePalError
from pagepal.dom.soup import PageDocument
from pagepal.extraction.cache import ContentCache
from pagepal.extraction.extractor import StructuredExtractor, extract_simple_text
from pagepal.extraction.formatter import format_document
from pagepal.extraction.model import SemanticDocument
from pagepal.utils.logging import get_logger, get_logger_with_context

logger = get_logger(__name__)

Response = dict[str, Any]

GET_PAGE_TEXT = "GET_PAGE_TEXT"
GET_PAGE_VISUAL = "GET_PAGE_VISUAL"
START_VIEWPORT_TRACKING = "START_VIEWPORT_TRACKING"
STOP_VIEWPORT_TRACKING = "STOP_VIEWPORT_TRACKING"
GET_COMPOSITE_IMAGE = "GET_COMPOSITE_IMAGE"

TEXT_MODES = ("structured", "simple")


class PageSource(Protocol):
    """What the service needs from a page (``PageContext`` provides it)."""

    async def snapshot(self) -> PageDocument:
        ...

    def capture_surface(self) -> CaptureSurface:
        ...


def _failure(error: str) -> Response:
    return {"success": False, "error": error}


class PageAcquisitionService:
    """
    Serves text and visual acquisition requests for a single page.

    Requests are handled one at a time, so a text extraction never runs
    while a visual capture is scrolling the same page.

    Example:
        >>> service = PageAcquisitionService(page_context, settings)
        >>> response = await service.handle({"action": "GET_PAGE_TEXT"})
        >>> response["success"]
        True
    """

    def __init__(self, page: PageSource, settings: Settings | None = None) -> None:
        """
        Initialize service.

        Args:
            page: Page to serve
            settings: Application settings (defaults when None)
        """
        self.page = page
        self.settings = settings or Settings()

        self.cache: ContentCache[SemanticDocument] = ContentCache(
            self.settings.extraction.cache_ttl_ms)
        self.extractor = StructuredExtractor(self.settings.extraction, self.cache)

        self._tracker: ViewportCaptureController | None = None
        self._lock = asyncio.Lock()
        # One capture at a time on the page, whichever controller asks
        self._capture_lock = asyncio.Lock()

        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[Response]]] = {
            GET_PAGE_TEXT: self._get_page_text,
            GET_PAGE_VISUAL: self._get_page_visual,
            START_VIEWPORT_TRACKING: self._start_tracking,
            STOP_VIEWPORT_TRACKING: self._stop_tracking,
            GET_COMPOSITE_IMAGE: self._get_composite_image,
        }

    @property
    def tracker(self) -> ViewportCaptureController | None:
        return self._tracker

    async def handle(self, message: dict[str, Any]) -> Response:
        """
        Dispatch one action message.

        Args:
            message: Dict with an ``action`` key and action-specific options

        Returns:
            Response dict with a ``success`` flag
        """
        action = message.get("action")
        handler = self._handlers.get(action)
        if handler is None:
            logger.warning(f"Unknown action: {action!r}")
            return _failure(f"Unknown action: {action}")

        log = get_logger_with_context(__name__, action=action, mode=message.get("mode") or "default")

        async with self._lock:
            try:
                response = await handler(message)
            except PagePalError as e:
                log.warning(f"Request failed: {e}")
                return _failure(e.message)
            except Exception as e:
                log.error(f"Request failed unexpectedly: {e}", exc_info=True)
                return _failure(str(e) or e.__class__.__name__)

        log.debug(f"Request succeeded: {response.get('success')}")
        return response

    # =========================================================================
    # Text
    # =========================================================================

    async def _get_page_text(self, message: dict[str, Any]) -> Response:
        mode = message.get("mode") or "structured"

        if mode == "structured":
            semantic = self.cache.get()
            if semantic is None:
                document = await self.page.snapshot()
                semantic = self.extractor.extract(document)
            text = format_document(semantic)

            return {
                "success": True,
                "text": text,
                "structuredData": semantic.to_dict(),
                "mode": "structured",
                "length": len(text),
                "url": semantic.metadata.url,
                "title": semantic.metadata.title,
            }

        document = await self.page.snapshot()
        text = extract_simple_text(document, self.settings.extraction)
        return {
            "success": True,
            "text": text,
            "mode": "simple",
            "length": len(text),
            "url": document.url,
            "title": document.title,
        }

    # =========================================================================
    # Visual
    # =========================================================================

    def _new_controller(self) -> ViewportCaptureController:
        return ViewportCaptureController(
            self.page.capture_surface(),
            self.settings.capture,
            capture_lock=self._capture_lock,
        )

    async def _get_page_visual(self, message: dict[str, Any]) -> Response:
        mode = message.get("mode") or "auto_scroll"

        if mode == "auto_scroll":
            # The sweep's own scrolling must not feed the tracker
            pause = self._tracker.paused() if self._tracker is not None else nullcontext()
            async with pause:
                payload = await self._new_controller().auto_scroll_and_capture()
        elif mode == "current_viewport":
            controller = self._new_controller()
            await controller.capture_current_viewport()
            payload = await controller.generate_composite_image()
        elif mode == "tracked" and self._tracker is not None:
            payload = await self._tracker.generate_composite_image()
        elif mode == "tracked":
            return _failure("No viewport tracking data available")
        else:
            return _failure(f"Unknown visual mode: {mode}")

        return {
            "success": True,
            "type": "visual",
            "mode": mode,
            "data": payload.to_dict(),
            "url": payload.page_info.url,
            "title": payload.page_info.title,
        }

    async def _start_tracking(self, message: dict[str, Any]) -> Response:
        if self._tracker is None:
            self._tracker = self._new_controller()
        await self._tracker.start_tracking()
        return {"success": True}

    async def _stop_tracking(self, message: dict[str, Any]) -> Response:
        if self._tracker is None:
            return _failure("No active tracking")
        await self._tracker.stop_tracking()
        return {"success": True}

    async def _get_composite_image(self, message: dict[str, Any]) -> Response:
        if self._tracker is None:
            return _failure("No viewport tracker available")
        payload = await self._tracker.generate_composite_image()
        return {"success": True, "data": payload.to_dict()}

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def invalidate(self) -> None:
        """Forget cached extraction results (call after navigation)."""
        self.cache.invalidate()

    async def close(self) -> None:
        """Tear down tracking state and cached results."""
        if self._tracker is not None:
            await self._tracker.close()
            self._tracker = None
        self.cache.invalidate()
