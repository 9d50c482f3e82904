"""
Capture module for PagePal.

Provides progressive viewport capture:
- Capture surface protocol
- Viewport capture controller (single, tracked and auto-scroll capture)
- Composite assembly of captured viewports
"""

from pagepal.capture.model import (
    CompositeVisualPayload,
    PageInfo,
    Viewport,
    ViewportSet,
    png_data_url,
)
from pagepal.capture.surface import CaptureSurface, ScrollListener
from pagepal.capture.composite import assemble_composite
from pagepal.capture.controller import CaptureState, ViewportCaptureController

__all__ = [
    # Model
    "CompositeVisualPayload",
    "PageInfo",
    "Viewport",
    "ViewportSet",
    "png_data_url",
    # Surface
    "CaptureSurface",
    "ScrollListener",
    # Assembly
    "assemble_composite",
    # Controller
    "CaptureState",
    "ViewportCaptureController",
]
