"""
Table-of-contents detection.

Runs on the original, unsanitized document (sidebars and floating panels
are usually removed by sanitization, and position information belongs to
the original). Classification is a pure scoring function so each decision
comes with a rationale that can be logged and tested.
"""

from dataclasses import dataclass
from typing import Callable, Sequence

from pagepal.dom.nodes import (
    DomNode,
    class_names,
    count_descendants,
    get_attr,
    iter_elements,
    visible_text,
)
from pagepal.dom.selectors import compile_selectors, select_all
from pagepal.dom.soup import SoupNode
from pagepal.extraction.model import TOC
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

TOC_KEYWORDS = (
    "on this page",
    "contents",
    "outline",
    "in this article",
    "table of contents",
)

POSITIONED_TOC_KEYWORDS = ("on this page", "contents", "outline")

POSITIONED_VALUES = frozenset({"fixed", "absolute"})

DEFAULT_TOC_SELECTORS = (
    '[class*="toc"]',
    '[id*="toc"]',
    '[class*="table-of-contents"]',
    '[class*="contents"]',
    '[class*="outline"]',
    "aside",
    ".right-sidebar",
    ".left-sidebar",
    ".sidebar",
)


@dataclass(frozen=True)
class TocVerdict:
    """Outcome of classifying one candidate."""

    is_toc: bool
    rationale: str

    def __bool__(self) -> bool:
        return self.is_toc


def _find_keyword(text: str, keywords: Sequence[str]) -> str | None:
    lowered = text.lower()
    for keyword in keywords:
        if keyword in lowered:
            return keyword
    return None


def score_toc_candidate(
    text: str,
    link_count: int,
    min_length: int = 20,
    min_links: int = 3,
    keywords: Sequence[str] = TOC_KEYWORDS,
) -> TocVerdict:
    """
    Classify a selector-matched candidate.

    A candidate qualifies when its text is longer than ``min_length`` and
    it either mentions a TOC keyword or holds at least ``min_links`` links.

    Args:
        text: Trimmed visible text of the candidate
        link_count: Number of descendant links
        min_length: Text must be strictly longer than this
        min_links: Link count that qualifies without a keyword
        keywords: Phrases that mark a TOC

    Returns:
        TocVerdict with the deciding reason
    """
    if len(text) <= min_length:
        return TocVerdict(False, f"text length {len(text)} <= {min_length}")

    keyword = _find_keyword(text, keywords)
    if keyword is not None:
        return TocVerdict(True, f"keyword {keyword!r}")

    if link_count >= min_links:
        return TocVerdict(True, f"{link_count} links >= {min_links}")

    return TocVerdict(False, f"no keyword and {link_count} links < {min_links}")


def score_positioned_candidate(
    text: str,
    position: str | None,
    min_length: int = 50,
    keywords: Sequence[str] = POSITIONED_TOC_KEYWORDS,
) -> TocVerdict:
    """
    Classify an element taken out of normal flow.

    Args:
        text: Trimmed visible text of the element
        position: Computed CSS position of its counterpart
        min_length: Text must be strictly longer than this
        keywords: Phrases that mark a TOC

    Returns:
        TocVerdict with the deciding reason
    """
    if position not in POSITIONED_VALUES:
        return TocVerdict(False, f"position {position!r} is in normal flow")

    if len(text) <= min_length:
        return TocVerdict(False, f"text length {len(text)} <= {min_length}")

    keyword = _find_keyword(text, keywords)
    if keyword is None:
        return TocVerdict(False, "no keyword")

    return TocVerdict(True, f"{position} element with keyword {keyword!r}")


class TocDetector:
    """
    Detects table-of-contents elements in two passes.

    1. Selector pass over TOC-likely selectors.
    2. Positioned pass over every element whose counterpart is fixed or
       absolutely positioned.

    Results are concatenated in pass order without deduplication, so an
    element matched by several selectors (or by both passes) is reported
    more than once.

    Example:
        >>> detector = TocDetector()
        >>> tocs = detector.detect(document.root)
    """

    def __init__(
        self,
        selectors: Sequence[str] = DEFAULT_TOC_SELECTORS,
        min_text_length: int = 20,
        min_links: int = 3,
        positioned_min_text_length: int = 50,
    ) -> None:
        self._selectors = compile_selectors(selectors)
        self.min_text_length = min_text_length
        self.min_links = min_links
        self.positioned_min_text_length = positioned_min_text_length

    def detect(self, document: SoupNode) -> list[TOC]:
        """
        Run both passes.

        Args:
            document: Original document root

        Returns:
            TOC nodes, selector pass first
        """
        found = self._selector_pass(document)
        found.extend(self._positioned_pass(document))
        if found:
            logger.debug(f"Detected {len(found)} table-of-contents candidates")
        return found

    def _selector_pass(self, document: SoupNode) -> list[TOC]:
        found: list[TOC] = []
        for selector in self._selectors:
            for element in select_all(document, selector):
                text = visible_text(element)
                verdict = score_toc_candidate(
                    text,
                    count_descendants(element, "a"),
                    min_length=self.min_text_length,
                    min_links=self.min_links,
                )
                if verdict:
                    logger.debug(f"TOC via {selector.pattern!r}: {verdict.rationale}")
                    found.append(TOC(text=text, source=selector.pattern))
        return found

    def _positioned_pass(self, document: DomNode) -> list[TOC]:
        elements = list(iter_elements(document))

        positioned = [e for e in elements if e.position in POSITIONED_VALUES]
        if not positioned:
            return []
        positioned_class_sets = [set(class_names(e)) for e in positioned]

        by_id: dict[str, DomNode] = {}
        by_class: dict[str, list[DomNode]] = {}
        for element in elements:
            element_id = get_attr(element, "id")
            if element_id and element_id not in by_id:
                by_id[element_id] = element
            for name in set(class_names(element)):
                by_class.setdefault(name, []).append(element)

        text_cache: dict[int, str] = {}

        def text_of(node: DomNode) -> str:
            key = id(node)
            if key not in text_cache:
                text_cache[key] = visible_text(node)
            return text_cache[key]

        found: list[TOC] = []
        for element in elements:
            element_id = get_attr(element, "id")
            if element_id:
                counterpart = by_id.get(element_id)
            else:
                classes = set(class_names(element))
                if not classes:
                    continue
                # A counterpart can only be positioned if some positioned element carries every class
                if not any(classes <= s for s in positioned_class_sets):
                    continue
                counterpart = self._match_by_class_and_text(
                    element, classes, by_class, text_of)

            if counterpart is None or counterpart.position not in POSITIONED_VALUES:
                continue

            text = text_of(element)
            verdict = score_positioned_candidate(
                text,
                counterpart.position,
                min_length=self.positioned_min_text_length,
            )
            if verdict:
                logger.debug(f"TOC via positioned element: {verdict.rationale}")
                found.append(TOC(text=text, source="positioned"))

        return found

    @staticmethod
    def _match_by_class_and_text(
        element: DomNode,
        classes: set[str],
        by_class: dict[str, list[DomNode]],
        text_of: Callable[[DomNode], str],
    ) -> DomNode | None:
        """First element (document order) carrying all classes with equal text."""
        rarest = min(classes, key=lambda name: len(by_class.get(name, ())))
        element_text = text_of(element)
        for candidate in by_class.get(rarest, ()):
            if classes <= set(class_names(candidate)) and text_of(candidate) == element_text:
                return candidate
        return None
