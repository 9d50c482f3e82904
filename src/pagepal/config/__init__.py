"""
Configuration module for PagePal.

Provides Pydantic-based settings management with YAML file support
and environment variable overrides.
"""

from pagepal.config.settings import (
    Settings,
    BrowserSettings,
    ExtractionSettings,
    CaptureSettings,
    LoggingSettings,
)
from pagepal.config.loader import (
    load_config,
    get_settings,
    reset_settings,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "BrowserSettings",
    "ExtractionSettings",
    "CaptureSettings",
    "LoggingSettings",
    "load_config",
    "get_settings",
    "reset_settings",
    "get_default_config_path",
]
