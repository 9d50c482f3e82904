"""
Structural walker.

Maps a content root into an ordered sequence of semantic nodes. The walk
is depth-first and pre-order but driven by an explicit stack, and container
nesting is capped, so hostile markup can neither blow the stack nor make
the walker raise: the worst case is an empty section list.
"""

import re
from typing import Mapping
from urllib.parse import urljoin

from pagepal.core.exceptions import MalformedElementError
from pagepal.dom.nodes import (
    MEDIA_TAGS,
    DomNode,
    class_names,
    element_children,
    find_first,
    get_attr,
    raw_text,
    visible_text,
)
from pagepal.extraction.model import (
    TOC,
    Code,
    Heading,
    Image,
    ListBlock,
    ListItem,
    Paragraph,
    Quote,
    SemanticNode,
    Table,
)
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
LIST_TAGS = frozenset({"ul", "ol"})
CODE_TAGS = frozenset({"pre", "code"})
CELL_TAGS = frozenset({"td", "th"})

# Containers that may themselves be an inline table of contents
TOC_CONTAINER_TAGS = frozenset({"div", "section", "article"})

CAPTION_CLASSES = frozenset({"caption", "image-caption"})

_LANGUAGE_RE = re.compile(r"language-(\w+)")


def _is_caption(node: DomNode) -> bool:
    return node.tag == "figcaption" or not CAPTION_CLASSES.isdisjoint(class_names(node))


def _check_element(element: DomNode) -> None:
    """
    Reject nodes the walker cannot read.

    Raises:
        MalformedElementError: If the tag, attributes or contents are unusable
    """
    tag = getattr(element, "tag", None)
    if not isinstance(tag, str) or not tag:
        raise MalformedElementError(f"Element has no tag name: {tag!r}")

    attrs = getattr(element, "attrs", None)
    if not isinstance(attrs, Mapping):
        raise MalformedElementError("Attributes are not a mapping", tag=tag)
    for name, value in attrs.items():
        if not isinstance(value, str):
            raise MalformedElementError(
                f"Attribute {name!r} is {type(value).__name__}, not text", tag=tag)

    if not isinstance(getattr(element, "contents", None), (list, tuple)):
        raise MalformedElementError("Contents are not a sequence", tag=tag)


class StructuralWalker:
    """
    Converts a content subtree into semantic nodes.

    The root is the depth-0 container: its children are visited at depth 0
    and every generic container adds one level for its children. Leaves are
    emitted at the depth they were found.

    Example:
        >>> walker = StructuralWalker()
        >>> sections = walker.walk(content_root, base_url="https://example.com")
    """

    def __init__(
        self,
        min_paragraph_length: int = 10,
        max_depth: int = 64,
    ) -> None:
        """
        Initialize walker.

        Args:
            min_paragraph_length: Paragraphs must be strictly longer than this
            max_depth: Deepest container level descended into
        """
        self.min_paragraph_length = min_paragraph_length
        self.max_depth = max_depth

    def walk(self, root: DomNode, base_url: str = "") -> list[SemanticNode]:
        """
        Walk the subtree below ``root``.

        Args:
            root: Content root (typically from MainContentSelector)
            base_url: URL used to resolve relative image sources

        Returns:
            Semantic nodes in pre-order traversal order
        """
        sections: list[SemanticNode] = []
        skipped_deep = 0

        stack: list[tuple[DomNode, DomNode, int]] = [
            (child, root, 0) for child in reversed(element_children(root))
        ]

        while stack:
            element, parent, depth = stack.pop()

            if depth > self.max_depth:
                skipped_deep += 1
                continue

            try:
                _check_element(element)
                children = self._visit(element, parent, depth, sections, base_url)
            except (MalformedElementError, AttributeError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed <{getattr(element, 'tag', '?')}>: {e}")
                continue

            if children:
                stack.extend(
                    (child, element, depth + 1) for child in reversed(children))

        if skipped_deep:
            logger.warning(
                f"Depth cap {self.max_depth} reached, skipped {skipped_deep} subtrees")

        return sections

    def _visit(
        self,
        element: DomNode,
        parent: DomNode,
        depth: int,
        sections: list[SemanticNode],
        base_url: str,
    ) -> list[DomNode]:
        """
        Handle one element.

        Returns:
            Children to descend into (empty for leaves and pruned elements)
        """
        tag = element.tag
        text = visible_text(element)

        if not text and tag not in MEDIA_TAGS:
            return []

        if tag in HEADING_TAGS:
            sections.append(Heading(level=int(tag[1]), text=text, depth=depth))

        elif tag == "p":
            if len(text) > self.min_paragraph_length:
                sections.append(Paragraph(text=text, depth=depth))

        elif tag in LIST_TAGS:
            items = self._extract_list_items(element, level=0)
            if items:
                sections.append(ListBlock(
                    ordered=(tag == "ol"), items=items, depth=depth))

        elif tag == "table":
            headers, rows = self._extract_table(element)
            if rows:
                sections.append(Table(headers=headers, rows=rows, depth=depth))

        elif tag == "img":
            image = self._extract_image(element, parent, base_url)
            if image is not None:
                sections.append(image)

        elif tag == "blockquote":
            sections.append(Quote(text=text, depth=depth))

        elif tag in CODE_TAGS:
            sections.append(Code(
                text=raw_text(element) or text,
                language=self._code_language(element),
                depth=depth,
            ))

        elif tag in TOC_CONTAINER_TAGS and self._is_toc_container(element, text):
            sections.append(TOC(text=text, source="container"))

        elif tag not in MEDIA_TAGS:
            return element_children(element)

        return []

    @staticmethod
    def _is_toc_container(element: DomNode, text: str) -> bool:
        class_name = get_attr(element, "class")
        element_id = get_attr(element, "id")
        return (
            "toc" in class_name
            or "table-of-contents" in class_name
            or "toc" in element_id
            or "on this page" in text.lower()
        )

    def _extract_list_items(self, list_element: DomNode, level: int) -> tuple[ListItem, ...]:
        """
        Items of a list, from its direct ``li`` children only.

        The first nested list inside an item becomes its ``nested`` items.
        """
        items: list[ListItem] = []

        for li in element_children(list_element):
            if li.tag != "li":
                continue

            text = visible_text(li)
            if not text:
                continue

            nested = None
            if level < self.max_depth:
                nested_list = find_first(li, lambda e: e.tag in LIST_TAGS)
                if nested_list is not None:
                    nested = self._extract_list_items(nested_list, level + 1) or None

            items.append(ListItem(text=text, nested=nested))

        return tuple(items)

    def _extract_table(
        self,
        table: DomNode,
    ) -> tuple[tuple[str, ...], tuple[tuple[str, ...], ...]]:
        """
        Headers and rows of a table.

        Headers come from ``thead`` cells and from ``th`` cells of rows that
        are the first row of their section. Rows come from ``tbody`` and
        from rows placed directly in the table; when there are none, every
        row outside ``thead`` is used. Nested tables are not descended into.
        """
        headers: list[str] = []
        header_rows: set[int] = set()
        body_rows: list[DomNode] = []
        loose_rows: list[DomNode] = []

        stack: list[tuple[DomNode, DomNode, bool, bool]] = [
            (child, table, False, False) for child in reversed(element_children(table))
        ]

        while stack:
            element, parent, in_head, in_body = stack.pop()
            tag = element.tag

            if tag == "table":
                continue

            if tag == "tr":
                siblings = element_children(parent)
                is_first_row = bool(siblings) and siblings[0] is element

                if in_head or is_first_row:
                    for cell in element_children(element):
                        if cell.tag == "th" or (in_head and cell.tag == "td"):
                            cell_text = visible_text(cell)
                            if cell_text:
                                headers.append(cell_text)
                                header_rows.add(id(element))

                if in_body or parent is table:
                    body_rows.append(element)
                elif not in_head:
                    loose_rows.append(element)

            stack.extend(
                (child, element, in_head or tag == "thead", in_body or tag == "tbody")
                for child in reversed(element_children(element))
            )

        rows: list[tuple[str, ...]] = []
        for row in body_rows or loose_rows:
            if id(row) in header_rows:
                continue
            cells = tuple(
                cell_text
                for cell in element_children(row)
                if cell.tag in CELL_TAGS
                for cell_text in (visible_text(cell),)
                if cell_text
            )
            if cells:
                rows.append(cells)

        return tuple(headers), tuple(rows)

    @staticmethod
    def _extract_image(element: DomNode, parent: DomNode, base_url: str) -> Image | None:
        """
        Image with alt text, title or a caption next to it; None otherwise.
        """
        alt = get_attr(element, "alt").strip()
        title = get_attr(element, "title").strip()

        src = get_attr(element, "src").strip()
        if src and base_url:
            src = urljoin(base_url, src)

        caption = ""
        caption_element = find_first(parent, _is_caption)
        if caption_element is not None:
            caption = visible_text(caption_element)

        if not (alt or caption or title):
            return None

        return Image(alt=alt, caption=caption, title=title, src=src)

    @staticmethod
    def _code_language(element: DomNode) -> str:
        """Language from a ``language-<token>`` class on the element or its code child."""
        match = _LANGUAGE_RE.search(get_attr(element, "class"))
        if match is None:
            for child in element_children(element):
                if child.tag == "code":
                    match = _LANGUAGE_RE.search(get_attr(child, "class"))
                    break
        return match.group(1) if match else "text"
