"""
Browser module for PagePal.

Provides Playwright-based page access with:
- Browser lifecycle management
- Page context wrapper with DOM snapshots
- Capture surface for viewport screenshots
"""

from pagepal.browser.surface import PlaywrightCaptureSurface
from pagepal.browser.page_context import PageContext
from pagepal.browser.manager import BrowserManager, open_browser_page

__all__ = [
    "BrowserManager",
    "open_browser_page",
    "PageContext",
    "PlaywrightCaptureSurface",
]
