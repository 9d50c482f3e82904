"""
Browser lifecycle for PagePal.

One launched engine per manager; every page gets its own context so
cookies, storage and scroll state never leak between pages.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Playwright,
)

from pagepal.browser.page_context import PageContext
from pagepal.config.settings import BrowserSettings
from pagepal.core.exceptions import BrowserError
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)


class BrowserManager:
    """
    Owns a Playwright engine and opens pages for acquisition.

    Example:
        >>> async with BrowserManager(settings.browser) as browser:
        ...     page = await browser.open_page()
        ...     await page.navigate("https://example.com")
        ...     document = await page.snapshot()
    """

    def __init__(self, settings: BrowserSettings) -> None:
        self.settings = settings
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._pages: list[PageContext] = []

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> None:
        """
        Launch the configured engine.

        Raises:
            BrowserError: If the engine fails to launch
        """
        if self._browser is not None:
            logger.warning("Browser already started, skipping launch")
            return

        engine = self.settings.browser_type
        logger.info(f"Launching {engine} (headless={self.settings.headless})")

        try:
            self._playwright = await async_playwright().start()
            self._browser = await getattr(self._playwright, engine).launch(
                headless=self.settings.headless,
            )
        except Exception as e:
            await self._shutdown()
            raise BrowserError(
                f"Failed to launch browser: {e}",
                details={"browser_type": engine},
            ) from e

    async def stop(self) -> None:
        """Close open pages and the engine. Safe to call more than once."""
        for page in self._pages:
            await page.close()
        self._pages.clear()

        await self._shutdown()
        logger.info("Browser stopped")

    async def _shutdown(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self._playwright = None

    def _context_options(self) -> dict[str, Any]:
        """
        Options for a page context.

        Screenshots are taken at a device scale factor of 1 so image height
        equals the viewport height in CSS pixels, and motion is reduced so
        consecutive captures of the same offset look the same.
        """
        options: dict[str, Any] = {
            "viewport": {
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            },
            "device_scale_factor": 1,
            "reduced_motion": "reduce",
            "ignore_https_errors": self.settings.ignore_https_errors,
        }
        if self.settings.user_agent:
            options["user_agent"] = self.settings.user_agent
        return options

    async def _new_context(self) -> BrowserContext:
        if self._browser is None:
            raise BrowserError("Browser not started. Call start() first.")

        try:
            context = await self._browser.new_context(**self._context_options())
        except Exception as e:
            raise BrowserError(f"Failed to create browser context: {e}") from e

        context.set_default_timeout(self.settings.timeout_ms)
        context.set_default_navigation_timeout(self.settings.navigation_timeout_ms)
        return context

    async def open_page(self, snapshot_max_depth: int | None = None) -> PageContext:
        """
        Open a page in a fresh context.

        The returned PageContext owns its context and closes it with the
        page; pages still open when the manager stops are closed then.

        Args:
            snapshot_max_depth: Depth cap for snapshots (settings value when None)

        Raises:
            BrowserError: If the browser is not running or the page cannot open
        """
        context = await self._new_context()
        try:
            page = await context.new_page()
        except Exception as e:
            await context.close()
            raise BrowserError(f"Failed to open page: {e}") from e

        page_context = PageContext(
            page,
            snapshot_max_depth=snapshot_max_depth or self.settings.snapshot_max_depth,
            owned_context=context,
            max_retries=self.settings.max_retries,
            max_retry_delay=self.settings.max_retry_delay_seconds,
        )
        self._pages.append(page_context)
        logger.debug(f"Opened page ({len(self._pages)} open)")
        return page_context

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()


@asynccontextmanager
async def open_browser_page(
    settings: BrowserSettings,
    url: str,
) -> AsyncIterator[PageContext]:
    """
    Launch a browser, open ``url`` and tear everything down afterwards.

    Args:
        settings: Browser configuration
        url: Page to load

    Yields:
        PageContext already navigated to ``url``

    Raises:
        BrowserError: If the browser cannot start
        NavigationError: If the page cannot be loaded

    Example:
        >>> async with open_browser_page(settings.browser, url) as page:
        ...     document = await page.snapshot()
    """
    async with BrowserManager(settings) as browser:
        page = await browser.open_page()
        await page.navigate(url)
        yield page
