"""
Capture surface protocol.

The single, non-reentrant rendering surface the capture controller
drives. The Playwright implementation lives in ``pagepal.browser``;
tests use an in-memory fake.
"""

from typing import Callable, Protocol, runtime_checkable

ScrollListener = Callable[[int], None]


@runtime_checkable
class CaptureSurface(Protocol):
    """
    Async operations the capture controller needs from a page.

    Implementations raise ``CaptureFailedError`` when a screenshot fails
    and ``BrowserError`` when the page can no longer be driven at all.
    """

    async def scroll_offset(self) -> int:
        """Current vertical scroll position in pixels."""
        ...

    async def viewport_height(self) -> int:
        ...

    async def page_height(self) -> int:
        """Total scrollable height of the document in pixels."""
        ...

    async def scroll_to(self, offset: int) -> None:
        ...

    async def pending_lazy_media(self) -> int:
        """Number of lazy-loaded images that have not finished loading."""
        ...

    async def wait_for_lazy_media(self) -> None:
        """Return once every pending lazy image has loaded or failed."""
        ...

    async def capture_visible(self) -> bytes:
        """Encoded PNG of the visible viewport."""
        ...

    async def title(self) -> str:
        ...

    async def url(self) -> str:
        ...

    async def add_scroll_listener(self, listener: ScrollListener) -> None:
        """Call ``listener`` with the new offset on every scroll event."""
        ...

    async def remove_scroll_listener(self, listener: ScrollListener) -> None:
        ...
