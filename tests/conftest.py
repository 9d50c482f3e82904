"""
Shared pytest fixtures for PagePal tests.

Provides reusable fixtures for:
- Configuration and settings
- Sample HTML pages
- A scriptable in-memory capture surface
- Temporary resources
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from pagepal.config import CaptureSettings, Settings, reset_settings
from pagepal.core.exceptions import BrowserError, CaptureFailedError
from pagepal.dom import PageDocument, parse_html
from pagepal.utils.logging import reset_logging


class FakeSurface:
    """
    In-memory capture surface.

    Scrolling is not clamped, so tests see exactly the offsets the
    controller asks for. ``captures`` records the offset of every call to
    the capture primitive, successful or not. With ``notify_scrolls`` set,
    programmatic scrolls reach scroll listeners the way a real page's do.
    """

    def __init__(
        self,
        page_height: int = 3000,
        viewport_height: int = 1000,
        title: str = "Fake Page",
        url: str = "https://example.com/fake",
    ) -> None:
        self.offset = 0
        self.page_height_px = page_height
        self.viewport_height_px = viewport_height
        self.page_title = title
        self.page_url = url

        self.captures: list[int] = []
        self.scrolls: list[int] = []
        self.fail_at: set[int] = set()
        self.empty_at: set[int] = set()
        self.closed = False

        self.pending = 0
        self.lazy_settles = True
        self.lazy_waits = 0
        self.capture_gate: asyncio.Event | None = None
        self.listeners: list = []
        self.notify_scrolls = False
        self.in_flight = 0
        self.max_in_flight = 0

    def _check_open(self) -> None:
        if self.closed:
            raise BrowserError("Page is closed")

    async def scroll_offset(self) -> int:
        self._check_open()
        return self.offset

    async def viewport_height(self) -> int:
        self._check_open()
        return self.viewport_height_px

    async def page_height(self) -> int:
        self._check_open()
        return self.page_height_px

    async def scroll_to(self, offset: int) -> None:
        self._check_open()
        self.scrolls.append(offset)
        self.offset = offset
        if self.notify_scrolls:
            self._notify(offset)

    async def pending_lazy_media(self) -> int:
        return self.pending

    async def wait_for_lazy_media(self) -> None:
        self.lazy_waits += 1
        if not self.lazy_settles:
            await asyncio.Event().wait()
        self.pending = 0

    async def capture_visible(self) -> bytes:
        self._check_open()
        offset = self.offset
        self.captures.append(offset)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Give any other task a chance to start a capture alongside
            await asyncio.sleep(0)
            if self.capture_gate is not None:
                await self.capture_gate.wait()
        finally:
            self.in_flight -= 1

        if offset in self.fail_at:
            raise CaptureFailedError("Screenshot failed", scroll_offset=offset)
        if offset in self.empty_at:
            return b""
        return b"\x89PNG-" + str(offset).encode()

    async def title(self) -> str:
        return self.page_title

    async def url(self) -> str:
        return self.page_url

    async def add_scroll_listener(self, listener) -> None:
        self.listeners.append(listener)

    async def remove_scroll_listener(self, listener) -> None:
        self.listeners.remove(listener)

    def user_scroll(self, offset: int) -> None:
        """Simulate the user scrolling: move and notify listeners."""
        self.offset = offset
        self._notify(offset)

    def _notify(self, offset: int) -> None:
        for listener in list(self.listeners):
            listener(offset)


class FakePage:
    """Page source serving a fixed document and a fake surface."""

    def __init__(self, document: PageDocument, surface: FakeSurface | None = None) -> None:
        self.document = document
        self.surface = surface or FakeSurface(title=document.title, url=document.url)
        self.snapshots = 0

    async def snapshot(self) -> PageDocument:
        self.snapshots += 1
        return self.document

    def capture_surface(self) -> FakeSurface:
        return self.surface


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset cached settings and logging configuration around each test."""
    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def capture_settings() -> CaptureSettings:
    """Capture settings with every wait shortened to (almost) nothing."""
    return CaptureSettings(
        lazy_content_timeout_ms=50,
        lazy_grace_ms=0,
        scroll_settle_ms=0,
        capture_timeout_ms=200,
    )


@pytest.fixture
def test_settings(capture_settings: CaptureSettings) -> Settings:
    """Provide application settings suitable for fast tests."""
    return Settings(capture=capture_settings.model_dump())


@pytest.fixture
def make_surface():
    """Factory for fake capture surfaces."""
    return FakeSurface


@pytest.fixture
def surface() -> FakeSurface:
    """3000px page viewed through a 1000px viewport."""
    return FakeSurface()


@pytest.fixture
def sample_html() -> str:
    """Provide a documentation-style page for extraction tests."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <title>Guide Page</title>
        <style>body { color: black; }</style>
    </head>
    <body>
        <header>
            <nav>
                <a href="/">Home</a>
                <a href="/docs">Docs</a>
            </nav>
        </header>
        <aside class="sidebar">
            <p>On this page</p>
            <ul>
                <li><a href="#intro">Introduction</a></li>
                <li><a href="#install">Installation</a></li>
                <li><a href="#usage">Usage</a></li>
            </ul>
        </aside>
        <main>
            <h1>Getting Started</h1>
            <p>This guide walks through installing and using the tool.</p>
            <p>Too short</p>
            <section>
                <h2>Installation</h2>
                <ol>
                    <li>Download the package</li>
                    <li>Run the installer
                        <ul>
                            <li>Choose a folder</li>
                            <li>Confirm</li>
                        </ul>
                    </li>
                </ol>
                <pre><code class="language-python">print("hello")</code></pre>
            </section>
            <table>
                <thead><tr><th>Name</th><th>Version</th></tr></thead>
                <tbody>
                    <tr><td>core</td><td>1.0</td></tr>
                    <tr><td></td><td></td></tr>
                    <tr><td>cli</td><td>2.0</td></tr>
                </tbody>
            </table>
            <figure>
                <img src="/img/diagram.png" alt="Architecture diagram">
                <figcaption>How the parts fit together</figcaption>
            </figure>
            <blockquote>Simple things should be simple.</blockquote>
            <script>console.log("not content");</script>
        </main>
        <footer>
            <p>Copyright notice for the whole site</p>
        </footer>
    </body>
    </html>
    """


@pytest.fixture
def sample_document(sample_html: str) -> PageDocument:
    """Parsed sample page."""
    return parse_html(sample_html, "https://example.com/guide")


@pytest.fixture
def fake_page(sample_document: PageDocument) -> FakePage:
    """Page source serving the sample document."""
    return FakePage(sample_document)


@pytest.fixture
def make_page():
    """Factory for fake page sources."""
    return FakePage
