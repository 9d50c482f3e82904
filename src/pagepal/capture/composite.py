"""
Composite assembly.
"""

from typing import Iterable

from pagepal.capture.model import CompositeVisualPayload, PageInfo, Viewport
from pagepal.core.exceptions import NoViewportDataError


def assemble_composite(
    viewports: Iterable[Viewport],
    page_info: PageInfo,
) -> CompositeVisualPayload:
    """
    Order captured viewports by scroll offset and attach page metadata.

    Args:
        viewports: Captured viewports in any order
        page_info: Page dimensions and identity

    Returns:
        CompositeVisualPayload with viewports in ascending offset order

    Raises:
        NoViewportDataError: If nothing was captured
    """
    ordered = tuple(sorted(viewports, key=lambda v: v.scroll_offset))
    if not ordered:
        raise NoViewportDataError()
    return CompositeVisualPayload(viewports=ordered, page_info=page_info)
