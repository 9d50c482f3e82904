"""
Main content selection.

Picks the subtree of the sanitized document that structured extraction
walks.
"""

from typing import Sequence

from pagepal.dom.soup import SoupNode
from pagepal.dom.selectors import compile_selector, compile_selectors, select_first
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAIN_CONTENT_SELECTORS = (
    "main", '[role="main"]', ".main-content", "#main", ".content", "article",
)


class MainContentSelector:
    """
    Chooses the content root of a (sanitized) document.

    Candidates are tried in order; the first one with a match wins and its
    first match in document order is returned. ``body`` is the fallback.

    Example:
        >>> selector = MainContentSelector()
        >>> root = selector.select(sanitize(document.root, exclude))
    """

    def __init__(
        self,
        candidates: Sequence[str] = DEFAULT_MAIN_CONTENT_SELECTORS,
        fallback: str = "body",
    ) -> None:
        """
        Initialize the selector.

        Args:
            candidates: Ordered candidate selectors
            fallback: Selector used when no candidate matches

        Raises:
            ValueError: If a selector is not valid CSS
        """
        self._candidates = compile_selectors(candidates)
        self._fallback = compile_selector(fallback)

    def select(self, document: SoupNode) -> SoupNode | None:
        """
        Find the content root.

        Args:
            document: Sanitized document root

        Returns:
            Content root, or None if neither a candidate nor the fallback exists
        """
        for candidate in self._candidates:
            element = select_first(document, candidate)
            if element is not None:
                logger.debug(f"Content root matched {candidate.pattern!r}")
                return element

        element = select_first(document, self._fallback)
        if element is not None:
            logger.debug("No content candidate matched, using body")
        return element
