"""
Service module for PagePal.

Message boundary that serves text and visual acquisition requests.
"""

from pagepal.service.handlers import (
    GET_COMPOSITE_IMAGE,
    GET_PAGE_TEXT,
    GET_PAGE_VISUAL,
    START_VIEWPORT_TRACKING,
    STOP_VIEWPORT_TRACKING,
    PageAcquisitionService,
    PageSource,
    TEXT_MODES,
)

__all__ = [
    "PageAcquisitionService",
    "PageSource",
    "GET_PAGE_TEXT",
    "GET_PAGE_VISUAL",
    "START_VIEWPORT_TRACKING",
    "STOP_VIEWPORT_TRACKING",
    "GET_COMPOSITE_IMAGE",
    "TEXT_MODES",
]
