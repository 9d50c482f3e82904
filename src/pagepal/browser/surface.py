"""
Playwright implementation of the capture surface.
"""

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from pagepal.capture.surface import ScrollListener
from pagepal.core.exceptions import BrowserError, CaptureFailedError
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

LAZY_MEDIA_SELECTOR = 'img[loading="lazy"], img[data-src]'

SCROLL_BINDING = "__pagepalScroll"

PAGE_HEIGHT_SCRIPT = """
() => Math.max(
    document.body ? document.body.scrollHeight : 0,
    document.body ? document.body.offsetHeight : 0,
    document.documentElement.clientHeight,
    document.documentElement.scrollHeight,
    document.documentElement.offsetHeight
)
"""

PENDING_LAZY_SCRIPT = """
(selector) => Array.from(document.querySelectorAll(selector))
    .filter(img => !img.complete).length
"""

WAIT_LAZY_SCRIPT = """
(selector) => Promise.all(
    Array.from(document.querySelectorAll(selector))
        .filter(img => !img.complete)
        .map(img => new Promise(resolve => {
            img.addEventListener('load', resolve, { once: true });
            img.addEventListener('error', resolve, { once: true });
        }))
).then(() => true)
"""

ATTACH_SCROLL_SCRIPT = """
(binding) => {
    if (window.__pagepalScrollHandler) {
        return;
    }
    window.__pagepalScrollHandler = () => window[binding](window.scrollY);
    window.addEventListener('scroll', window.__pagepalScrollHandler, { passive: true });
}
"""

DETACH_SCROLL_SCRIPT = """
() => {
    if (window.__pagepalScrollHandler) {
        window.removeEventListener('scroll', window.__pagepalScrollHandler);
        delete window.__pagepalScrollHandler;
    }
}
"""


class PlaywrightCaptureSurface:
    """
    Capture surface backed by a Playwright page.

    Scroll events reach Python through an exposed binding that fans out to
    the registered listeners.

    Example:
        >>> surface = PlaywrightCaptureSurface(page)
        >>> controller = ViewportCaptureController(surface, settings.capture)
    """

    def __init__(self, page: Page) -> None:
        self.page = page
        self._listeners: list[ScrollListener] = []
        self._binding_exposed = False

    async def _evaluate(self, script: str, arg=None):
        try:
            if arg is None:
                return await self.page.evaluate(script)
            return await self.page.evaluate(script, arg)
        except PlaywrightError as e:
            raise BrowserError(
                f"Page is not available: {e}",
                details={"closed": self.page.is_closed()},
            ) from e

    async def scroll_offset(self) -> int:
        return int(round(await self._evaluate("() => window.scrollY") or 0))

    async def viewport_height(self) -> int:
        return int(await self._evaluate("() => window.innerHeight") or 0)

    async def page_height(self) -> int:
        return int(await self._evaluate(PAGE_HEIGHT_SCRIPT) or 0)

    async def scroll_to(self, offset: int) -> None:
        await self._evaluate("(y) => window.scrollTo(0, y)", offset)

    async def pending_lazy_media(self) -> int:
        return int(await self._evaluate(PENDING_LAZY_SCRIPT, LAZY_MEDIA_SELECTOR) or 0)

    async def wait_for_lazy_media(self) -> None:
        await self._evaluate(WAIT_LAZY_SCRIPT, LAZY_MEDIA_SELECTOR)

    async def capture_visible(self) -> bytes:
        """
        Screenshot the visible viewport as PNG.

        Raises:
            CaptureFailedError: If the screenshot fails on a live page
            BrowserError: If the page has been closed
        """
        if self.page.is_closed():
            raise BrowserError("Page is closed")

        try:
            return await self.page.screenshot(type="png", full_page=False)
        except PlaywrightError as e:
            if self.page.is_closed():
                raise BrowserError(f"Page closed during capture: {e}") from e
            raise CaptureFailedError(f"Screenshot failed: {e}") from e

    async def title(self) -> str:
        try:
            return await self.page.title()
        except PlaywrightError as e:
            raise BrowserError(f"Failed to read page title: {e}") from e

    async def url(self) -> str:
        return self.page.url

    def _dispatch_scroll(self, offset: float) -> None:
        for listener in list(self._listeners):
            listener(int(round(offset)))

    async def add_scroll_listener(self, listener: ScrollListener) -> None:
        if not self._binding_exposed:
            try:
                await self.page.expose_function(SCROLL_BINDING, self._dispatch_scroll)
            except PlaywrightError as e:
                raise BrowserError(f"Failed to expose scroll binding: {e}") from e
            self._binding_exposed = True

        self._listeners.append(listener)
        if len(self._listeners) == 1:
            await self._evaluate(ATTACH_SCROLL_SCRIPT, SCROLL_BINDING)
            logger.debug("Attached page scroll listener")

    async def remove_scroll_listener(self, listener: ScrollListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

        if not self._listeners and not self.page.is_closed():
            await self._evaluate(DETACH_SCROLL_SCRIPT)
            logger.debug("Detached page scroll listener")
