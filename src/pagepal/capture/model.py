"""
Viewport capture data model.

Viewports are keyed by vertical scroll offset; a ViewportSet holds at
most one viewport per offset for the lifetime of a tracking session.
"""

import base64
import time
from dataclasses import dataclass, field
from typing import Any, Iterator


def png_data_url(image: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(image).decode("ascii")


@dataclass(frozen=True)
class Viewport:
    """
    One captured screen of the page.

    Attributes:
        scroll_offset: Vertical scroll position when captured (pixels)
        image: Encoded PNG bytes
        viewport_height: Viewport height when captured (pixels)
        captured_at: Wall-clock capture time (seconds since epoch)
    """

    scroll_offset: int
    image: bytes = field(repr=False)
    viewport_height: int
    captured_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scrollY": self.scroll_offset,
            "screenshot": png_data_url(self.image),
            "viewportHeight": self.viewport_height,
        }


class ViewportSet:
    """
    Viewports of one tracking session, unique by scroll offset.

    Example:
        >>> viewports = ViewportSet()
        >>> viewports.add(viewport)
        True
        >>> viewports.add(viewport)
        False
    """

    def __init__(self) -> None:
        self._by_offset: dict[int, Viewport] = {}

    def add(self, viewport: Viewport) -> bool:
        """
        Insert a viewport unless its offset is already present.

        Returns:
            True if inserted, False if the offset was already captured
        """
        if viewport.scroll_offset in self._by_offset:
            return False
        self._by_offset[viewport.scroll_offset] = viewport
        return True

    def get(self, scroll_offset: int) -> Viewport | None:
        return self._by_offset.get(scroll_offset)

    def sorted(self) -> list[Viewport]:
        """Viewports in ascending scroll-offset order."""
        return [self._by_offset[k] for k in sorted(self._by_offset)]

    def __contains__(self, scroll_offset: object) -> bool:
        return scroll_offset in self._by_offset

    def __len__(self) -> int:
        return len(self._by_offset)

    def __iter__(self) -> Iterator[Viewport]:
        return iter(self.sorted())

    def __repr__(self) -> str:
        return f"ViewportSet(offsets={sorted(self._by_offset)})"


@dataclass(frozen=True)
class PageInfo:
    total_height: int
    viewport_height: int
    title: str = ""
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalHeight": self.total_height,
            "viewportHeight": self.viewport_height,
            "title": self.title,
            "url": self.url,
        }


@dataclass(frozen=True)
class CompositeVisualPayload:
    """
    Ordered viewports plus page metadata.

    Viewports are strictly increasing by scroll offset. No pixel stitching
    happens here; consumers compose the images if they need to.
    """

    viewports: tuple[Viewport, ...]
    page_info: PageInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "viewports": [viewport.to_dict() for viewport in self.viewports],
            "pageInfo": self.page_info.to_dict(),
        }
