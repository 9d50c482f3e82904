"""
Structured and simple text extraction.

Ties the pipeline together: TOC detection on the original document,
sanitization, content-root selection, structural walk and caching.
"""

import re

from pagepal.config.settings import ExtractionSettings
from pagepal.core.exceptions import NoContentFoundError
from pagepal.dom.nodes import MEDIA_TAGS, DomNode, iter_elements, visible_text
from pagepal.dom.selectors import compile_selectors, sanitize, select_first
from pagepal.dom.soup import PageDocument, parse_html
from pagepal.extraction.cache import ContentCache
from pagepal.extraction.formatter import format_document
from pagepal.extraction.model import DocumentMetadata, SemanticDocument
from pagepal.extraction.selector import MainContentSelector
from pagepal.extraction.toc import TocDetector
from pagepal.extraction.walker import StructuralWalker
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def _is_blank(element: DomNode) -> bool:
    if visible_text(element):
        return False
    return not any(e.tag in MEDIA_TAGS for e in iter_elements(element))


class StructuredExtractor:
    """
    Produces a SemanticDocument from a page snapshot.

    Results are reused from the cache while fresh, so repeated requests
    against the same page context do not re-walk the tree.

    Example:
        >>> extractor = StructuredExtractor()
        >>> document = extractor.extract(parse_html(html, url))
        >>> print(format_document(document))
    """

    def __init__(
        self,
        settings: ExtractionSettings | None = None,
        cache: ContentCache[SemanticDocument] | None = None,
    ) -> None:
        """
        Initialize extractor.

        Args:
            settings: Extraction settings (defaults when None)
            cache: Cache owned by the page context (a private one when None)
        """
        self.settings = settings or ExtractionSettings()
        self.cache = cache if cache is not None else ContentCache(self.settings.cache_ttl_ms)

        self._selector = MainContentSelector(self.settings.main_content_selectors)
        self._toc_detector = TocDetector(
            selectors=self.settings.toc_selectors,
            min_text_length=self.settings.toc_min_text_length,
            min_links=self.settings.toc_min_links,
            positioned_min_text_length=self.settings.positioned_toc_min_text_length,
        )
        self._walker = StructuralWalker(
            min_paragraph_length=self.settings.min_paragraph_length,
            max_depth=self.settings.max_depth,
        )

    def extract(self, document: PageDocument) -> SemanticDocument:
        """
        Extract the document, reusing a fresh cached result.

        Raises:
            NoContentFoundError: If there is no content root or the body is empty
        """
        return self.cache.get_or_build(lambda: self.build(document))

    def extract_text(self, document: PageDocument) -> tuple[SemanticDocument, str]:
        """Extract the document and its formatted text."""
        semantic = self.extract(document)
        return semantic, format_document(semantic)

    def build(self, document: PageDocument) -> SemanticDocument:
        """
        Run the full pipeline without consulting the cache.

        Args:
            document: Page snapshot

        Returns:
            SemanticDocument with TOC nodes first, then walked content

        Raises:
            NoContentFoundError: If there is no content root or the body is empty
        """
        tocs = self._toc_detector.detect(document.root)

        sanitized = sanitize(document.root, self.settings.exclude_selectors)
        root = self._selector.select(sanitized)

        if root is None or (root.tag == "body" and _is_blank(root)):
            raise NoContentFoundError(url=document.url or None)

        sections = self._walker.walk(root, base_url=document.url)

        logger.debug(
            f"Extracted {len(sections)} sections and {len(tocs)} TOC candidates "
            f"from {document.url or '<local document>'}"
        )

        return SemanticDocument(
            metadata=DocumentMetadata(title=document.title, url=document.url),
            sections=tuple(tocs) + tuple(sections),
        )


def extract_simple_text(
    document: PageDocument,
    settings: ExtractionSettings | None = None,
) -> str:
    """
    Flat text of the main content area.

    The first configured content root that exists is used; when its text
    is empty the body is used instead. Whitespace collapses to single
    spaces.

    Args:
        document: Page snapshot
        settings: Extraction settings (defaults when None)

    Returns:
        Collapsed text, possibly empty
    """
    settings = settings or ExtractionSettings()
    sanitized = sanitize(document.root, settings.simple_exclude_selectors)

    text = ""
    for selector in compile_selectors(settings.simple_main_selectors):
        element = select_first(sanitized, selector)
        if element is not None:
            text = visible_text(element)
            break

    if not text:
        body = select_first(sanitized, "body")
        text = visible_text(body) if body is not None else ""

    return _WHITESPACE.sub(" ", text).strip()


def extract_from_html(
    html: str,
    url: str = "",
    settings: ExtractionSettings | None = None,
) -> SemanticDocument:
    """
    Convenience wrapper for static HTML.

    Args:
        html: Raw HTML
        url: Page URL used for metadata and image resolution
        settings: Extraction settings

    Returns:
        Extracted SemanticDocument
    """
    extractor = StructuredExtractor(settings)
    return extractor.build(parse_html(html, url))
