"""
Pydantic settings models for PagePal.

All configuration is defined here with defaults matching the behaviour
of the page acquisition pipelines out of the box.
"""

from pathlib import Path
from typing import Literal

import soupsieve as sv
from pydantic import BaseModel, Field, field_validator


class BrowserSettings(BaseModel):
    """Playwright browser configuration."""

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=120000,
        description="Default timeout for page operations in milliseconds",
    )
    navigation_timeout_ms: int = Field(
        default=60000,
        ge=5000,
        le=180000,
        description="Timeout for page navigation in milliseconds",
    )
    user_agent: str | None = Field(
        default=None,
        description="Custom user agent string. None uses browser default.",
    )
    viewport_width: int = Field(
        default=1280,
        ge=320,
        le=3840,
        description="Browser viewport width in pixels",
    )
    viewport_height: int = Field(
        default=720,
        ge=240,
        le=2160,
        description="Browser viewport height in pixels",
    )
    ignore_https_errors: bool = Field(
        default=False,
        description="Whether to ignore HTTPS certificate errors",
    )
    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use",
    )
    snapshot_max_depth: int = Field(
        default=256,
        ge=8,
        le=2048,
        description="Deepest element level serialised when snapshotting a live page",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Navigation retries after a timeout, network error or 429/503",
    )
    max_retry_delay_seconds: float = Field(
        default=10.0,
        ge=0.0,
        le=60.0,
        description="Upper bound on the wait before a navigation retry",
    )


class ExtractionSettings(BaseModel):
    """Structured and simple text extraction configuration."""

    cache_ttl_ms: int = Field(
        default=30000,
        ge=0,
        le=3600000,
        description="How long an extracted document is reused, in milliseconds",
    )
    min_paragraph_length: int = Field(
        default=10,
        ge=0,
        le=1000,
        description="Paragraphs must be strictly longer than this to be kept",
    )
    max_depth: int = Field(
        default=64,
        ge=1,
        le=256,
        description="Maximum container nesting the structural walker descends into",
    )
    toc_min_text_length: int = Field(
        default=20,
        ge=0,
        description="Selector-pass TOC candidates need more text than this",
    )
    toc_min_links: int = Field(
        default=3,
        ge=1,
        description="Link count that qualifies a selector-pass TOC candidate",
    )
    positioned_toc_min_text_length: int = Field(
        default=50,
        ge=0,
        description="Fixed/absolute TOC candidates need more text than this",
    )
    exclude_selectors: list[str] = Field(
        default_factory=lambda: [
            "nav", "header", "footer",
            ".nav", ".navbar", ".navigation", ".header", ".footer",
            '[role="navigation"]', '[role="banner"]', '[role="contentinfo"]',
            "script", "style", "noscript", "meta", "link", ".cookie-banner",
            ".advertisement", ".ads", ".social-share",
        ],
        description="Elements removed from the sanitized copy before selection",
    )
    main_content_selectors: list[str] = Field(
        default_factory=lambda: [
            "main", '[role="main"]', ".main-content", "#main", ".content", "article",
        ],
        description="Ordered candidates for the content root",
    )
    toc_selectors: list[str] = Field(
        default_factory=lambda: [
            '[class*="toc"]',
            '[id*="toc"]',
            '[class*="table-of-contents"]',
            '[class*="contents"]',
            '[class*="outline"]',
            "aside",
            ".right-sidebar",
            ".left-sidebar",
            ".sidebar",
        ],
        description="Selectors scanned for table-of-contents candidates",
    )
    simple_exclude_selectors: list[str] = Field(
        default_factory=lambda: [
            "nav", "header", "footer", "aside",
            ".nav", ".navbar", ".navigation", ".header", ".footer", ".sidebar",
            '[role="navigation"]', '[role="banner"]', '[role="contentinfo"]',
            "script", "style", "noscript", "meta", "link",
        ],
        description="Elements removed in simple text mode",
    )
    simple_main_selectors: list[str] = Field(
        default_factory=lambda: [
            "main", '[role="main"]', ".main-content", "#main", ".content",
        ],
        description="Ordered content roots tried in simple text mode",
    )

    @field_validator(
        "exclude_selectors",
        "main_content_selectors",
        "toc_selectors",
        "simple_exclude_selectors",
        "simple_main_selectors",
    )
    @classmethod
    def check_selectors(cls, v: list[str]) -> list[str]:
        """Reject selectors soupsieve cannot compile."""
        for selector in v:
            try:
                sv.compile(selector)
            except sv.SelectorSyntaxError as e:
                raise ValueError(f"Invalid CSS selector {selector!r}: {e}") from e
        return v


class CaptureSettings(BaseModel):
    """Progressive viewport capture configuration."""

    capture_threshold_px: int = Field(
        default=200,
        ge=1,
        le=10000,
        description="Scroll displacement since the last capture that triggers a new one",
    )
    overlap_fraction: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Auto-scroll step as a fraction of the viewport height",
    )
    lazy_content_timeout_ms: int = Field(
        default=1000,
        ge=0,
        le=60000,
        description="Upper bound on waiting for pending lazy media",
    )
    lazy_grace_ms: int = Field(
        default=300,
        ge=0,
        le=10000,
        description="Grace wait before capture when no lazy media is pending",
    )
    scroll_settle_ms: int = Field(
        default=500,
        ge=0,
        le=10000,
        description="Pause after each auto-scroll step before capturing",
    )
    capture_timeout_ms: int = Field(
        default=10000,
        ge=100,
        le=120000,
        description="Upper bound on one round trip to the capture primitive",
    )
    max_captures: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Safety cap on capture attempts per auto-scroll run",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format string",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log timestamps",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file. None means console only.",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size before rotation",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of backup log files to keep",
    )
    log_to_console: bool = Field(
        default=True,
        description="Whether to output logs to console",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def convert_file_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseModel):
    """
    Root configuration model containing all subsystem settings.

    Settings are loaded from YAML with environment variable overrides.
    """

    browser: BrowserSettings = Field(
        default_factory=BrowserSettings,
        description="Browser/Playwright settings",
    )
    extraction: ExtractionSettings = Field(
        default_factory=ExtractionSettings,
        description="Text extraction settings",
    )
    capture: CaptureSettings = Field(
        default_factory=CaptureSettings,
        description="Viewport capture settings",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    model_config = {
        "extra": "forbid",
        "validate_default": True,
    }
