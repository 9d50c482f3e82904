"""
Plain-text projection of a semantic document.
"""

from pagepal.extraction.model import (
    TOC,
    Code,
    Heading,
    Image,
    ListBlock,
    ListItem,
    Paragraph,
    Quote,
    SemanticDocument,
    SemanticNode,
    Table,
)

INDENT = "  "


def format_document(document: SemanticDocument) -> str:
    """
    Render a semantic document as linear text.

    Pure and deterministic: the same document always renders to the same
    string. Headings and TOC blocks ignore depth; other blocks are
    indented two spaces per depth level. Image sources never appear.

    Args:
        document: Extracted document

    Returns:
        Formatted text with surrounding whitespace stripped
    """
    parts: list[str] = []

    metadata = document.metadata
    if metadata.title or metadata.url:
        parts.append(f"Page: {metadata.title}\nURL: {metadata.url}\n\n")

    for section in document.sections:
        parts.append(format_section(section))

    return "".join(parts).strip()


def format_section(section: SemanticNode) -> str:
    """Render a single semantic node, including its trailing separator."""
    if isinstance(section, Heading):
        return f"{'#' * section.level} {section.text}\n\n"

    if isinstance(section, TOC):
        return f"TABLE OF CONTENTS:\n{section.text}\n\n"

    if isinstance(section, Image):
        if section.label:
            return f"[Image: {section.label}]\n\n"
        return ""

    indent = INDENT * section.depth

    if isinstance(section, Paragraph):
        return f"{indent}{section.text}\n\n"

    if isinstance(section, ListBlock):
        lines: list[str] = []
        for index, item in enumerate(section.items, start=1):
            marker = f"{index}." if section.ordered else "•"
            lines.append(f"{indent}{marker} {item.text}\n")
            _format_nested(item, indent + INDENT, lines)
        return "".join(lines) + "\n"

    if isinstance(section, Table):
        lines = []
        if section.headers:
            lines.append(f"{indent}Table Headers: {' | '.join(section.headers)}\n")
        for row in section.rows:
            lines.append(f"{indent}{' | '.join(row)}\n")
        return "".join(lines) + "\n"

    if isinstance(section, Quote):
        return f"{indent}> {section.text}\n\n"

    if isinstance(section, Code):
        return f"{indent}```{section.language}\n{section.text}\n```\n\n"

    return ""


def _format_nested(item: ListItem, indent: str, lines: list[str]) -> None:
    for nested in item.nested or ():
        lines.append(f"{indent}• {nested.text}\n")
        _format_nested(nested, indent + INDENT, lines)
