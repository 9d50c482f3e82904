"""
Generic document tree interface.

The walker, formatter inputs and text helpers work against ``DomNode``: a
tag, its attributes, an ordered list of text strings and child nodes, and
the computed CSS position when the producer knows it. ``SoupNode`` is the
production implementation; anything else with the same shape walks too.

All traversals here are iterative, so arbitrarily deep markup cannot
exhaust the interpreter stack.
"""

import re
from typing import Callable, Iterator, Mapping, Protocol, Sequence, Union, runtime_checkable

DOCUMENT_TAG = "#document"

# Elements kept by the walker even without visible text
MEDIA_TAGS = frozenset({"img", "video", "audio", "canvas", "svg"})

# Elements whose text never renders
NON_RENDERED_TAGS = frozenset({
    "script", "style", "noscript", "template", "head", "title", "meta", "link",
})

# Elements that start and end a line in rendered text
BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "body", "caption", "dd",
    "details", "dialog", "div", "dl", "dt", "fieldset", "figcaption",
    "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header",
    "hr", "html", "li", "main", "nav", "ol", "p", "pre", "section",
    "summary", "table", "tbody", "tfoot", "thead", "tr", "ul",
})

CELL_TAGS = frozenset({"td", "th"})

_WHITESPACE = re.compile(r"\s+")
_LINE_BREAKS = re.compile(r" *\n[ \n]*")


@runtime_checkable
class DomNode(Protocol):
    """A node in a document tree."""

    @property
    def tag(self) -> str:
        """Lower-case tag name, ``#document`` for the document root."""
        ...

    @property
    def attrs(self) -> Mapping[str, str]:
        """Attribute values; ``class`` is the space-joined class string."""
        ...

    @property
    def contents(self) -> Sequence[Union["DomNode", str]]:
        """Text strings and child nodes in document order."""
        ...

    @property
    def position(self) -> str | None:
        """Computed CSS ``position`` when known."""
        ...


Content = Union[DomNode, str]


def element_children(node: DomNode) -> list[DomNode]:
    """Child elements of a node, skipping text."""
    return [c for c in node.contents if not isinstance(c, str)]


def get_attr(node: DomNode, name: str, default: str = "") -> str:
    value = node.attrs.get(name)
    return default if value is None else value


def class_names(node: DomNode) -> list[str]:
    return get_attr(node, "class").split()


def iter_elements(node: DomNode, include_self: bool = False) -> Iterator[DomNode]:
    """
    Yield elements in document (pre-order) order.

    Args:
        node: Subtree root
        include_self: Whether to yield ``node`` itself first

    Yields:
        Element nodes
    """
    if include_self:
        yield node

    stack = list(reversed(element_children(node)))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(element_children(current)))


def find_first(
    node: DomNode,
    predicate: Callable[[DomNode], bool],
) -> DomNode | None:
    """First descendant element satisfying ``predicate``, in document order."""
    for element in iter_elements(node):
        if predicate(element):
            return element
    return None


def count_descendants(node: DomNode, tag: str) -> int:
    return sum(1 for element in iter_elements(node) if element.tag == tag)


def visible_text(node: DomNode) -> str:
    """
    Approximate the rendered text of a subtree.

    Whitespace runs collapse to single spaces, block-level elements and
    ``<br>`` break lines, blank lines are dropped and the result is trimmed.
    Non-rendered elements and elements carrying ``hidden`` contribute
    nothing.

    Args:
        node: Subtree root

    Returns:
        Normalized visible text ("" when nothing renders)
    """
    pieces: list[str] = []
    # None marks the end of a block element
    stack: list[Content | None] = [node]

    while stack:
        item = stack.pop()

        if item is None:
            pieces.append("\n")
            continue

        if isinstance(item, str):
            pieces.append(_WHITESPACE.sub(" ", item))
            continue

        tag = item.tag
        if tag in NON_RENDERED_TAGS or "hidden" in item.attrs:
            continue

        if tag == "br":
            pieces.append("\n")
            continue

        if tag in BLOCK_TAGS:
            pieces.append("\n")
            stack.append(None)
        elif tag in CELL_TAGS:
            pieces.append(" ")

        stack.extend(reversed(item.contents))

    text = _LINE_BREAKS.sub("\n", "".join(pieces))
    text = re.sub(r" {2,}", " ", text)
    return text.strip()


def raw_text(node: DomNode) -> str:
    """
    Concatenate every text string in a subtree without normalization.

    Used for preformatted content where whitespace is significant.
    """
    pieces: list[str] = []
    stack: list[Content] = [node]

    while stack:
        item = stack.pop()
        if isinstance(item, str):
            pieces.append(item)
            continue
        if item.tag in NON_RENDERED_TAGS:
            continue
        stack.extend(reversed(item.contents))

    return "".join(pieces).strip()
