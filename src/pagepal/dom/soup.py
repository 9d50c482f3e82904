"""
BeautifulSoup adapter for the generic document tree.

Static HTML and live-page snapshots both end up here. A snapshot stamps
the computed position of out-of-flow elements into ``data-pagepal-position``;
plain HTML has no layout engine, so the inline ``style`` is read instead.
"""

import re
from dataclasses import dataclass
from typing import Mapping

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from pagepal.dom.nodes import DOCUMENT_TAG, Content
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

POSITION_ATTR = "data-pagepal-position"

_POSITION_RE = re.compile(r"(?:^|;)\s*position\s*:\s*([a-z-]+)", re.I)


class SoupNode:
    """
    ``DomNode`` view over a BeautifulSoup ``Tag``.

    Child wrappers are created once per node and reused, so walking the
    same tree twice yields equal nodes.
    """

    __slots__ = ("_tag", "_attrs", "_contents")

    def __init__(self, tag: Tag) -> None:
        self._tag = tag
        self._attrs: dict[str, str] | None = None
        self._contents: list[Content] | None = None

    @property
    def source(self) -> Tag:
        """The wrapped BeautifulSoup element."""
        return self._tag

    @property
    def tag(self) -> str:
        if isinstance(self._tag, BeautifulSoup):
            return DOCUMENT_TAG
        return (self._tag.name or "").lower()

    @property
    def attrs(self) -> Mapping[str, str]:
        if self._attrs is None:
            attrs: dict[str, str] = {}
            for key, value in (self._tag.attrs or {}).items():
                if isinstance(value, (list, tuple)):
                    attrs[key.lower()] = " ".join(str(v) for v in value)
                else:
                    attrs[key.lower()] = "" if value is None else str(value)
            self._attrs = attrs
        return self._attrs

    @property
    def contents(self) -> list[Content]:
        if self._contents is None:
            contents: list[Content] = []
            for child in self._tag.contents:
                if isinstance(child, Tag):
                    contents.append(SoupNode(child))
                elif isinstance(child, NavigableString) and not isinstance(
                    child, PreformattedString
                ):
                    contents.append(str(child))
            self._contents = contents
        return self._contents

    @property
    def position(self) -> str | None:
        stamped = self.attrs.get(POSITION_ATTR)
        if stamped:
            return stamped.lower()

        style = self.attrs.get("style")
        if not style:
            return None
        match = _POSITION_RE.search(style)
        return match.group(1).lower() if match else None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SoupNode) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"SoupNode(<{self.tag}>)"


@dataclass(frozen=True)
class PageDocument:
    """
    One snapshot of a page.

    Attributes:
        root: Document root node (original, unsanitized)
        title: Document title
        url: Page URL
    """

    root: SoupNode
    title: str = ""
    url: str = ""


def parse_html(html: str, url: str = "") -> PageDocument:
    """
    Parse HTML into a page document.

    Args:
        html: HTML source
        url: URL the HTML was loaded from

    Returns:
        PageDocument whose root is the parsed document
    """
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    title_tag = soup.find("title")
    if title_tag is not None:
        title = title_tag.get_text(strip=True)

    logger.debug(f"Parsed {len(html)} bytes of HTML (title={title!r})")

    return PageDocument(root=SoupNode(soup), title=title, url=url)
