"""
Progressive viewport capture.

Drives a capture surface through scrolling, waits for lazy media to
settle, and accumulates one screenshot per scroll offset. Exactly one
capture is in flight at a time; scroll events are funnelled through a
queue consumed by a single worker task.
"""

import asyncio
import math
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator

from pagepal.capture.composite import assemble_composite
from pagepal.capture.model import CompositeVisualPayload, PageInfo, Viewport, ViewportSet
from pagepal.capture.surface import CaptureSurface
from pagepal.config.settings import CaptureSettings
from pagepal.core.exceptions import (
    BrowserError,
    CaptureError,
    CaptureFailedError,
    LazyWaitTimeoutError,
)
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

# Queue sentinel telling the scroll worker to exit
_STOP = None


class CaptureState(str, Enum):
    """Lifecycle of the controller."""

    IDLE = "idle"
    AWAITING_SETTLE = "awaiting_settle"
    CAPTURING = "capturing"
    DONE = "done"


class ViewportCaptureController:
    """
    Captures viewports of one page into a deduplicated set.

    Three ways to fill the set:
    - ``capture_current_viewport()`` for a single screen
    - ``start_tracking()`` to capture as the user scrolls
    - ``auto_scroll_and_capture()`` to sweep the whole page

    Failed captures are logged and skipped. Only a BrowserError raised by
    the surface (page closed, context gone) escapes.

    Example:
        >>> controller = ViewportCaptureController(surface, settings.capture)
        >>> payload = await controller.auto_scroll_and_capture()
        >>> len(payload.viewports)
        5
    """

    def __init__(
        self,
        surface: CaptureSurface,
        settings: CaptureSettings | None = None,
        capture_lock: asyncio.Lock | None = None,
    ) -> None:
        """
        Initialize controller.

        Args:
            surface: Page the controller scrolls and screenshots
            settings: Capture timing and limits (defaults when None)
            capture_lock: Lock shared by every controller of the same surface,
                so at most one capture is outstanding on it (private when None)
        """
        self.surface = surface
        self.settings = settings or CaptureSettings()

        self._viewports = ViewportSet()
        self._state = CaptureState.IDLE
        self._resting_state = CaptureState.IDLE
        self._lock = capture_lock if capture_lock is not None else asyncio.Lock()

        self._tracking = False
        self._paused = False
        self._pauses = 0
        self._last_offset = 0
        self._events: asyncio.Queue[int | None] | None = None
        self._worker: asyncio.Task | None = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def viewports(self) -> ViewportSet:
        return self._viewports

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    # =========================================================================
    # Single capture
    # =========================================================================

    async def capture_current_viewport(self) -> Viewport | None:
        """
        Capture the visible viewport unless its offset is already present.

        Waits for pending lazy media (bounded) or a short grace period,
        then invokes the surface exactly once.

        Returns:
            The new Viewport, or None if skipped or failed

        Raises:
            BrowserError: If the surface can no longer be driven
        """
        async with self._lock:
            return await self._capture_locked()

    async def _capture_locked(self) -> Viewport | None:
        viewports = self._viewports
        offset = await self.surface.scroll_offset()

        if offset in viewports:
            logger.debug(f"Viewport at offset {offset} already captured")
            return None

        try:
            self._state = CaptureState.AWAITING_SETTLE
            await self._wait_for_settle()

            self._state = CaptureState.CAPTURING
            image = await self._invoke_capture(offset)
            viewport = Viewport(
                scroll_offset=offset,
                image=image,
                viewport_height=await self.surface.viewport_height(),
            )
        except CaptureError as e:
            logger.warning(f"Skipping viewport at offset {offset}: {e}")
            return None
        finally:
            self._state = self._resting_state

        viewports.add(viewport)
        logger.debug(f"Captured viewport at offset {offset} ({len(viewports)} total)")
        return viewport

    async def _wait_for_settle(self) -> None:
        pending = await self.surface.pending_lazy_media()

        if not pending:
            await asyncio.sleep(self.settings.lazy_grace_ms / 1000)
            return

        timeout_ms = self.settings.lazy_content_timeout_ms
        try:
            await asyncio.wait_for(self.surface.wait_for_lazy_media(), timeout_ms / 1000)
        except asyncio.TimeoutError:
            error = LazyWaitTimeoutError(
                "Lazy media still loading, capturing anyway",
                pending=pending,
                timeout_ms=timeout_ms,
            )
            logger.warning(str(error))

    async def _invoke_capture(self, offset: int) -> bytes:
        timeout_ms = self.settings.capture_timeout_ms
        try:
            image = await asyncio.wait_for(self.surface.capture_visible(), timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise CaptureFailedError(
                f"Capture timed out after {timeout_ms}ms", scroll_offset=offset) from e

        if not image:
            raise CaptureFailedError("Capture returned no image", scroll_offset=offset)
        return image

    # =========================================================================
    # Scroll tracking
    # =========================================================================

    async def start_tracking(self) -> bool:
        """
        Start a tracking session.

        Discards viewports from any previous session, captures the current
        viewport and subscribes to scroll events.

        Returns:
            True once tracking is active
        """
        if self._tracking:
            await self.stop_tracking()
        await self._join_worker()

        self._viewports = ViewportSet()
        self._resting_state = CaptureState.IDLE
        self._state = CaptureState.IDLE
        self._last_offset = await self.surface.scroll_offset()

        await self.capture_current_viewport()

        self._events = asyncio.Queue()
        self._worker = asyncio.create_task(self._consume_scroll_events(self._events))
        self._tracking = True
        await self.surface.add_scroll_listener(self._on_scroll)

        logger.info(f"Viewport tracking started at offset {self._last_offset}")
        return True

    async def stop_tracking(self) -> bool:
        """
        Stop listening for scroll events.

        A capture already in flight finishes and lands in the set; queued
        events are dropped. The set stays readable until the next session.

        Returns:
            False if tracking was not active
        """
        if not self._tracking:
            return False

        self._tracking = False
        await self.surface.remove_scroll_listener(self._on_scroll)

        if self._events is not None:
            while not self._events.empty():
                self._events.get_nowait()
            self._events.put_nowait(_STOP)

        self._resting_state = CaptureState.DONE
        if self._state == CaptureState.IDLE:
            self._state = CaptureState.DONE

        logger.info(f"Viewport tracking stopped with {len(self._viewports)} viewports")
        return True

    def _on_scroll(self, offset: int) -> None:
        if self._tracking and not self._paused and self._events is not None:
            self._events.put_nowait(int(offset))

    async def _consume_scroll_events(self, events: "asyncio.Queue[int | None]") -> None:
        threshold = self.settings.capture_threshold_px

        while True:
            offset = await events.get()

            # Coalesce a burst to its latest offset
            while offset is not _STOP and not events.empty():
                offset = events.get_nowait()

            if offset is _STOP or not self._tracking:
                return

            if abs(offset - self._last_offset) < threshold:
                continue

            pauses = self._pauses
            async with self._lock:
                # Stale once another capture has driven the surface meanwhile
                if self._paused or pauses != self._pauses or not self._tracking:
                    continue
                try:
                    await self._capture_locked()
                except BrowserError as e:
                    logger.error(f"Viewport tracking halted: {e}")
                    self._tracking = False
                    return

            self._last_offset = offset

    @asynccontextmanager
    async def paused(self) -> AsyncIterator[None]:
        """
        Ignore scroll events while another capture drives the surface.

        Queued events are dropped on entry. On exit the tracked offset is
        re-read, so scrolling done inside the block is not mistaken for the
        user's.
        """
        self._paused = True
        self._pauses += 1
        if self._events is not None:
            while not self._events.empty():
                self._events.get_nowait()
        try:
            yield
        finally:
            self._paused = False
            if self._tracking:
                try:
                    self._last_offset = await self.surface.scroll_offset()
                except BrowserError as e:
                    logger.warning(f"Could not re-read scroll offset after pause: {e}")

    async def _join_worker(self) -> None:
        if self._worker is not None:
            await self._worker
            self._worker = None
        self._events = None

    # =========================================================================
    # Whole-page sweep
    # =========================================================================

    async def auto_scroll_and_capture(self) -> CompositeVisualPayload:
        """
        Scroll through the page from the top, capturing as it goes.

        Each step advances by ``overlap_fraction`` of the viewport height.
        When a step reaches the page height the final target is clamped to
        the last full viewport and the sweep ends. At most
        ``max_captures`` capture attempts are made.

        Returns:
            Composite payload of everything captured

        Raises:
            NoViewportDataError: If every capture failed
            BrowserError: If the surface can no longer be driven
        """
        settings = self.settings

        await self.surface.scroll_to(0)
        await self.capture_current_viewport()
        attempts = 1

        viewport_height = await self.surface.viewport_height()
        page_height = await self.surface.page_height()
        step = max(1, math.floor(viewport_height * settings.overlap_fraction))

        target = 0
        while attempts < settings.max_captures:
            target += step
            final = target >= page_height
            if final:
                target = max(0, page_height - viewport_height)

            await self.surface.scroll_to(target)
            await asyncio.sleep(settings.scroll_settle_ms / 1000)
            await self.capture_current_viewport()
            attempts += 1

            if final:
                break
        else:
            logger.warning(
                f"Auto-scroll stopped at the {settings.max_captures} capture cap "
                f"(page height {page_height})"
            )

        self._resting_state = CaptureState.DONE
        self._state = CaptureState.DONE

        logger.info(f"Auto-scroll captured {len(self._viewports)} viewports")
        return await self.generate_composite_image()

    async def generate_composite_image(self) -> CompositeVisualPayload:
        """
        Assemble the captured viewports with current page metadata.

        Raises:
            NoViewportDataError: If nothing was captured
        """
        page_info = PageInfo(
            total_height=await self.surface.page_height(),
            viewport_height=await self.surface.viewport_height(),
            title=await self.surface.title(),
            url=await self.surface.url(),
        )
        return assemble_composite(self._viewports.sorted(), page_info)

    async def close(self) -> None:
        """Stop tracking, wait for the worker and discard the set."""
        await self.stop_tracking()
        await self._join_worker()
        self._viewports = ViewportSet()
        self._state = CaptureState.DONE
