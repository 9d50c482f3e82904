"""
Core module for PagePal.

Contains the exception hierarchy shared by both acquisition pipelines.
"""

from pagepal.core.exceptions import (
    PagePalError,
    RetryableError,
    ConfigurationError,
    BrowserError,
    NavigationError,
    ExtractionError,
    NoContentFoundError,
    MalformedElementError,
    CaptureError,
    CaptureFailedError,
    NoViewportDataError,
    LazyWaitTimeoutError,
)

__all__ = [
    # Base
    "PagePalError",
    "RetryableError",
    "ConfigurationError",
    # Browser
    "BrowserError",
    "NavigationError",
    # Extraction
    "ExtractionError",
    "NoContentFoundError",
    "MalformedElementError",
    # Capture
    "CaptureError",
    "CaptureFailedError",
    "NoViewportDataError",
    "LazyWaitTimeoutError",
]
