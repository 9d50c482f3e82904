"""
CSS selection and sanitization over BeautifulSoup trees.

Selectors are compiled and evaluated by soupsieve, the engine behind
BeautifulSoup's ``select()``. Sanitizing removes matches from a copy of
the document, so the original tree keeps every element for TOC detection.
"""

import copy
from functools import lru_cache
from typing import Iterable

import soupsieve as sv

from pagepal.dom.soup import SoupNode
from pagepal.utils.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=256)
def compile_selector(text: str) -> sv.SoupSieve:
    """
    Compile a CSS selector, cached.

    Raises:
        ValueError: If the selector is not valid CSS
    """
    try:
        return sv.compile(text)
    except sv.SelectorSyntaxError as e:
        raise ValueError(f"Invalid CSS selector {text!r}: {e}") from e


def compile_selectors(texts: Iterable[str]) -> tuple[sv.SoupSieve, ...]:
    return tuple(compile_selector(t) for t in texts)


def _pattern(selector: str | sv.SoupSieve) -> sv.SoupSieve:
    return compile_selector(selector) if isinstance(selector, str) else selector


def select_all(root: SoupNode, selector: str | sv.SoupSieve) -> list[SoupNode]:
    """Descendants of ``root`` matching ``selector``, in document order."""
    return [SoupNode(tag) for tag in _pattern(selector).select(root.source)]


def select_first(root: SoupNode, selector: str | sv.SoupSieve) -> SoupNode | None:
    """First descendant of ``root`` matching ``selector``."""
    tag = _pattern(selector).select_one(root.source)
    return None if tag is None else SoupNode(tag)


def sanitize(root: SoupNode, exclude: Iterable[str]) -> SoupNode:
    """
    Copy a document and strip excluded elements from the copy.

    Args:
        root: Original document root (left untouched)
        exclude: Selectors whose matching elements are removed

    Returns:
        Root of the sanitized copy
    """
    clone = copy.copy(root.source)

    removed = 0
    for pattern in compile_selectors(exclude):
        for element in pattern.select(clone):
            # Already gone with an excluded ancestor
            if element.decomposed:
                continue
            element.decompose()
            removed += 1

    logger.debug(f"Sanitized copy with {removed} elements removed")
    return SoupNode(clone)
