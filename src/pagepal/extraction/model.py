"""
Semantic document model.

Typed, immutable units of extracted content and the document that orders
them. ``to_dict()`` produces the wire shape handed to the downstream
question-answering collaborator as ``structuredData``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Union


class NodeType(str, Enum):
    """Wire names of semantic node types."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    UNORDERED_LIST = "unordered_list"
    ORDERED_LIST = "ordered_list"
    TABLE = "table"
    IMAGE = "image"
    QUOTE = "quote"
    CODE = "code"
    TOC = "table_of_contents"


@dataclass(frozen=True)
class ListItem:
    """A list entry and, optionally, the items of its nested list."""

    text: str
    nested: tuple["ListItem", ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": self.text}
        if self.nested:
            data["nested"] = [item.to_dict() for item in self.nested]
        return data


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    depth: int = 0

    node_type: ClassVar[NodeType] = NodeType.HEADING

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.node_type.value,
            "level": self.level,
            "content": self.text,
            "depth": self.depth,
        }


@dataclass(frozen=True)
class Paragraph:
    text: str
    depth: int = 0

    node_type: ClassVar[NodeType] = NodeType.PARAGRAPH

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.node_type.value, "content": self.text, "depth": self.depth}


@dataclass(frozen=True)
class ListBlock:
    """Ordered or unordered list."""

    ordered: bool
    items: tuple[ListItem, ...]
    depth: int = 0

    @property
    def node_type(self) -> NodeType:
        return NodeType.ORDERED_LIST if self.ordered else NodeType.UNORDERED_LIST

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.node_type.value,
            "items": [item.to_dict() for item in self.items],
            "depth": self.depth,
        }


@dataclass(frozen=True)
class Table:
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    depth: int = 0

    node_type: ClassVar[NodeType] = NodeType.TABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.node_type.value,
            "headers": list(self.headers),
            "rows": [list(row) for row in self.rows],
            "depth": self.depth,
        }


@dataclass(frozen=True)
class Image:
    """Image with descriptive text; ``src`` never reaches formatted text."""

    alt: str = ""
    caption: str = ""
    title: str = ""
    src: str = ""

    node_type: ClassVar[NodeType] = NodeType.IMAGE

    @property
    def label(self) -> str:
        return self.alt or self.caption

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.node_type.value,
            "alt": self.alt,
            "caption": self.caption,
            "title": self.title,
            "src": self.src,
            "depth": 0,
        }


@dataclass(frozen=True)
class Quote:
    text: str
    depth: int = 0

    node_type: ClassVar[NodeType] = NodeType.QUOTE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.node_type.value, "content": self.text, "depth": self.depth}


@dataclass(frozen=True)
class Code:
    text: str
    language: str = "text"
    depth: int = 0

    node_type: ClassVar[NodeType] = NodeType.CODE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.node_type.value,
            "content": self.text,
            "language": self.language,
            "depth": self.depth,
        }


@dataclass(frozen=True)
class TOC:
    """
    Heuristically detected table of contents.

    Attributes:
        text: Raw captured text
        source: What produced it (a selector, ``positioned`` or ``container``)
    """

    text: str
    source: str = ""

    node_type: ClassVar[NodeType] = NodeType.TOC

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.node_type.value,
            "content": self.text,
            "depth": 0,
        }
        if self.source:
            data["selector"] = self.source
        return data


SemanticNode = Union[Heading, Paragraph, ListBlock, Table, Image, Quote, Code, TOC]


@dataclass(frozen=True)
class DocumentMetadata:
    title: str = ""
    url: str = ""
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class SemanticDocument:
    """
    Extracted page content.

    ``sections`` lists detected TOC nodes first, followed by nodes in
    pre-order traversal order of the sanitized content root.
    """

    metadata: DocumentMetadata
    sections: tuple[SemanticNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": [section.to_dict() for section in self.sections],
            "metadata": self.metadata.to_dict(),
        }
