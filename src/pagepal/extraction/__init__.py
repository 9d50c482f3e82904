"""
Extraction module for PagePal.

Turns a page snapshot into machine-consumable text:
- Semantic document model
- Main content selection and TOC detection
- Structural walking and plain-text formatting
- Single-slot result cache
"""

from pagepal.extraction.model import (
    TOC,
    Code,
    DocumentMetadata,
    Heading,
    Image,
    ListBlock,
    ListItem,
    NodeType,
    Paragraph,
    Quote,
    SemanticDocument,
    SemanticNode,
    Table,
)
from pagepal.extraction.selector import MainContentSelector
from pagepal.extraction.toc import (
    TocDetector,
    TocVerdict,
    score_positioned_candidate,
    score_toc_candidate,
)
from pagepal.extraction.walker import StructuralWalker
from pagepal.extraction.formatter import format_document, format_section
from pagepal.extraction.cache import CacheEntry, ContentCache
from pagepal.extraction.extractor import (
    StructuredExtractor,
    extract_from_html,
    extract_simple_text,
)

__all__ = [
    # Model
    "TOC",
    "Code",
    "DocumentMetadata",
    "Heading",
    "Image",
    "ListBlock",
    "ListItem",
    "NodeType",
    "Paragraph",
    "Quote",
    "SemanticDocument",
    "SemanticNode",
    "Table",
    # Pipeline stages
    "MainContentSelector",
    "TocDetector",
    "TocVerdict",
    "score_positioned_candidate",
    "score_toc_candidate",
    "StructuralWalker",
    "format_document",
    "format_section",
    # Cache
    "CacheEntry",
    "ContentCache",
    # Entry points
    "StructuredExtractor",
    "extract_from_html",
    "extract_simple_text",
]
