"""
Document tree module for PagePal.

Provides the node interface the extraction pipeline runs on:
- ``DomNode`` protocol and text/traversal helpers
- BeautifulSoup adapter and page documents
- Live page snapshots
- CSS selection and sanitization
"""

from pagepal.dom.nodes import (
    DOCUMENT_TAG,
    MEDIA_TAGS,
    DomNode,
    class_names,
    count_descendants,
    element_children,
    find_first,
    get_attr,
    iter_elements,
    raw_text,
    visible_text,
)
from pagepal.dom.soup import POSITION_ATTR, PageDocument, SoupNode, parse_html
from pagepal.dom.snapshot import SNAPSHOT_SCRIPT, parse_snapshot
from pagepal.dom.selectors import (
    compile_selector,
    compile_selectors,
    sanitize,
    select_all,
    select_first,
)

__all__ = [
    # Nodes
    "DOCUMENT_TAG",
    "MEDIA_TAGS",
    "DomNode",
    "class_names",
    "count_descendants",
    "element_children",
    "find_first",
    "get_attr",
    "iter_elements",
    "raw_text",
    "visible_text",
    # Documents
    "POSITION_ATTR",
    "PageDocument",
    "SoupNode",
    "parse_html",
    "SNAPSHOT_SCRIPT",
    "parse_snapshot",
    # Selectors
    "compile_selector",
    "compile_selectors",
    "sanitize",
    "select_all",
    "select_first",
]
