"""
Page context wrapper.

Provides navigation with consistent error mapping and retries, and a
snapshot of the live DOM as a parsed page document.
"""

import asyncio
import time

from playwright.async_api import BrowserContext, Page, Response

from pagepal.browser.surface import PlaywrightCaptureSurface
from pagepal.core.exceptions import BrowserError, NavigationError
from pagepal.dom.snapshot import SNAPSHOT_SCRIPT, parse_snapshot
from pagepal.dom.soup import PageDocument
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)


class PageContext:
    """
    Wrapper around a Playwright Page.

    Example:
        >>> ctx = PageContext(page)
        >>> await ctx.navigate("https://example.com")
        >>> document = await ctx.snapshot()
        >>> surface = ctx.capture_surface()
    """

    def __init__(
        self,
        page: Page,
        snapshot_max_depth: int = 256,
        owned_context: BrowserContext | None = None,
        max_retries: int = 0,
        max_retry_delay: float = 10.0,
    ) -> None:
        """
        Initialize page context.

        Args:
            page: Playwright Page instance
            snapshot_max_depth: Deepest element level serialised by snapshot()
            owned_context: Browser context closed together with the page
            max_retries: Extra navigation attempts after a retryable failure
            max_retry_delay: Longest wait, in seconds, before a retry
        """
        self.page = page
        self.snapshot_max_depth = snapshot_max_depth
        self.max_retries = max_retries
        self.max_retry_delay = max_retry_delay
        self._owned_context = owned_context
        self._surface: PlaywrightCaptureSurface | None = None

    @property
    def current_url(self) -> str:
        """Get the current page URL."""
        return self.page.url

    async def navigate(
        self,
        url: str,
        wait_until: str = "domcontentloaded",
    ) -> Response | None:
        """
        Navigate to URL, retrying failures that carry a retry delay.

        Args:
            url: Target URL to navigate to
            wait_until: Load state to wait for:
                - "domcontentloaded": DOM is ready
                - "load": Full page load including resources
                - "networkidle": No network activity for 500ms

        Returns:
            Response object if available

        Raises:
            NavigationError: If navigation still fails after the retries
        """
        attempt = 0
        while True:
            try:
                return await self._goto(url, wait_until)
            except NavigationError as e:
                if e.retry_after is None or attempt >= self.max_retries:
                    raise
                attempt += 1
                delay = min(e.retry_after, self.max_retry_delay)
                logger.warning(
                    f"{e.message}; retry {attempt}/{self.max_retries} in {delay:.1f}s")
                await asyncio.sleep(delay)

    async def _goto(self, url: str, wait_until: str) -> Response | None:
        start_time = time.perf_counter()

        try:
            logger.debug(f"Navigating to: {url}")

            response = await self.page.goto(
                url,
                wait_until=wait_until,
            )

            elapsed = (time.perf_counter() - start_time) * 1000
            logger.debug(f"Navigation complete in {elapsed:.0f}ms")

            if response and response.status >= 400:
                raise NavigationError(
                    f"HTTP {response.status} error",
                    url=url,
                    status_code=response.status,
                    retry_after=5.0 if response.status in (429, 503) else None,
                )

            return response

        except NavigationError:
            raise
        except Exception as e:
            error_msg = str(e)

            if "timeout" in error_msg.lower():
                raise NavigationError(
                    f"Navigation timeout: {error_msg}",
                    url=url,
                    retry_after=10.0,
                ) from e

            if any(x in error_msg.lower() for x in ["net::", "dns", "connection"]):
                raise NavigationError(
                    f"Network error: {error_msg}",
                    url=url,
                    retry_after=5.0,
                ) from e

            raise NavigationError(
                f"Navigation failed: {error_msg}",
                url=url,
            ) from e

    async def snapshot(self) -> PageDocument:
        """
        Serialise the live DOM into a PageDocument.

        Out-of-flow elements carry their computed position and undisplayed
        elements are marked ``hidden``.

        Raises:
            BrowserError: If the page cannot be evaluated
        """
        start_time = time.perf_counter()

        try:
            html = await self.page.evaluate(SNAPSHOT_SCRIPT, self.snapshot_max_depth)
            title = await self.page.title()
        except Exception as e:
            raise BrowserError(
                f"Failed to snapshot page: {e}",
                details={"url": self.page.url},
            ) from e

        document = parse_snapshot(html or "", url=self.page.url, title=title or "")

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Snapshot of {self.page.url} taken in {elapsed:.0f}ms")

        return document

    def capture_surface(self) -> PlaywrightCaptureSurface:
        """Capture surface bound to this page (one per context)."""
        if self._surface is None:
            self._surface = PlaywrightCaptureSurface(self.page)
        return self._surface

    async def close(self) -> None:
        """Close the page and any context it owns. Safe to call more than once."""
        if not self.page.is_closed():
            try:
                await self.page.close()
            except Exception as e:
                logger.warning(f"Error closing page: {e}")

        if self._owned_context is not None:
            try:
                await self._owned_context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")
            self._owned_context = None
