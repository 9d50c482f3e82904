"""
PagePal - Machine-consumable context from web pages.

This package turns an arbitrary web page into structured text (headings,
lists, tables, code, detected tables of contents) or an ordered set of
viewport screenshots, ready for a downstream question-answering model.
"""

from pagepal.config import Settings, load_config
from pagepal.utils.logging import setup_logging, get_logger
from pagepal.core.exceptions import PagePalError
from pagepal.extraction import StructuredExtractor, format_document, extract_simple_text
from pagepal.capture import ViewportCaptureController

__version__ = "0.1.0"
__author__ = "PagePal Team"

__all__ = [
    "Settings",
    "load_config",
    "setup_logging",
    "get_logger",
    "PagePalError",
    "StructuredExtractor",
    "format_document",
    "extract_simple_text",
    "ViewportCaptureController",
]
