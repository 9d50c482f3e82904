"""
Custom exceptions for PagePal.

Provides a hierarchy of exceptions for precise error handling across
both acquisition pipelines. All exceptions inherit from PagePalError.

Exception Hierarchy:
    PagePalError (base)
    ├── ConfigurationError
    ├── BrowserError
    │   └── NavigationError
    ├── ExtractionError
    │   ├── NoContentFoundError
    │   └── MalformedElementError
    └── CaptureError
        ├── CaptureFailedError
        ├── NoViewportDataError
        └── LazyWaitTimeoutError
"""

from typing import Any


class PagePalError(Exception):
    """
    Base exception for all PagePal errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(
                f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


class RetryableError(PagePalError):
    """
    Marker class for errors that can be retried.

    Attributes:
        retry_after: Suggested delay in seconds before retry (optional)
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after = retry_after


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PagePalError):
    """
    Error in configuration loading or validation.

    Raised when:
    - Configuration file is missing or malformed
    - Setting values fail validation
    """

    pass


# =============================================================================
# Browser Errors
# =============================================================================


class BrowserError(PagePalError):
    """
    Base error for browser/Playwright operations.

    Also raised when the rendering surface cannot be reached at all
    (closed page, dead browser), which halts any capture sequence.
    """

    pass


class NavigationError(BrowserError, RetryableError):
    """
    Error during page navigation.

    Raised when:
    - URL is unreachable
    - Navigation times out
    - Server responds with an error status
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details, retry_after)
        self.url = url
        self.status_code = status_code


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(PagePalError):
    """Base error for structured and simple text extraction."""

    pass


class NoContentFoundError(ExtractionError):
    """
    No selectable content root exists.

    Raised when none of the main-content candidates match and the
    document has no body (or an empty one).
    """

    def __init__(
        self,
        message: str = "No content found",
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.url = url


class MalformedElementError(ExtractionError):
    """
    A single element could not be interpreted.

    Never escapes the structural walker: the element is skipped and the
    traversal continues.
    """

    def __init__(
        self,
        message: str,
        tag: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if tag:
            details["tag"] = tag
        super().__init__(message, details)
        self.tag = tag


# =============================================================================
# Capture Errors
# =============================================================================


class CaptureError(PagePalError):
    """Base error for viewport capture and composite assembly."""

    pass


class CaptureFailedError(CaptureError, RetryableError):
    """
    The capture primitive errored, timed out, or returned no image.

    Non-fatal: the controller logs it and leaves the viewport set unchanged.
    """

    def __init__(
        self,
        message: str,
        scroll_offset: int | None = None,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        details = details or {}
        if scroll_offset is not None:
            details["scroll_offset"] = scroll_offset
        super().__init__(message, details, retry_after)
        self.scroll_offset = scroll_offset


class NoViewportDataError(CaptureError):
    """A composite was requested before any viewport was captured."""

    def __init__(
        self,
        message: str = "No viewport data captured",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)


class LazyWaitTimeoutError(CaptureError):
    """
    Pending lazy media did not settle within the configured bound.

    Non-fatal: capture proceeds after the timeout.
    """

    def __init__(
        self,
        message: str,
        pending: int | None = None,
        timeout_ms: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if pending is not None:
            details["pending"] = pending
        if timeout_ms is not None:
            details["timeout_ms"] = timeout_ms
        super().__init__(message, details)
        self.pending = pending
        self.timeout_ms = timeout_ms
