"""
Pivot visualization utilities.

Provides text rendering for header trees and laid-out tables. Header trees are
drawn with indentation and connectors; tables are drawn as aligned text
columns, which is handy when debugging layouts in tests or a console.
"""

from typing import List, Optional

from ..model.data import HeaderNode
from ..model.table import Cell, PivotTable


def visualize_headers(headers: List[HeaderNode]) -> str:
    """Generate a text-based tree visualization of a header tree.

    Args:
        headers: Top-level headers of a row or column tree

    Returns:
        A string containing one line per header and attached expression

    Example:
        >>> headers = [HeaderNode("A", children=[HeaderNode("a1", target_index=0)])]
        >>> print(visualize_headers(headers))
        A
        └── a1 [0]
    """
    lines: List[str] = []
    for header in headers or []:
        _visualize_header(header, lines, prefix=None, is_last=True)
    return "\n".join(lines)


def _visualize_header(header: HeaderNode, lines: list, prefix: Optional[str], is_last: bool) -> None:
    """Recursively visualize a header and its children.

    Args:
        header: Header to visualize
        lines: List to append visualization lines to
        prefix: Current prefix string, None for top-level headers
        is_last: Whether this is the last child of its parent
    """
    if prefix is None:
        lines.append(_format_header(header))
        child_prefix = ""
    else:
        connector = "└── " if is_last else "├── "
        lines.append(prefix + connector + _format_header(header))
        child_prefix = prefix + ("    " if is_last else "│   ")

    for expression in header.expressions:
        lines.append(f"{child_prefix}* {expression.title} ({expression.operation.value}, {expression.position.value})")

    children = header.children or []
    for i, child in enumerate(children):
        _visualize_header(child, lines, child_prefix, i == len(children) - 1)


def _format_header(header: HeaderNode) -> str:
    if header.target_index is not None:
        return f"{header.title} [{header.target_index}]"
    return str(header.title)


def _cell_text(cell: Optional[Cell]) -> str:
    if cell is None:
        return ""
    if cell.value is None or cell.value == "":
        return cell.summary or ""
    return str(cell.value)


def render_table(table: PivotTable, separator: str = " | ") -> str:
    """Render a table as aligned text columns.

    Slots covered by another cell's span render empty; summary cells without
    a value show their summary label.
    """
    if not table.cells:
        return ""

    texts = [[_cell_text(cell) for cell in row] for row in table.cells]
    widths = [max(len(row[j]) for row in texts if j < len(row)) for j in range(table.columns_count)]
    return "\n".join(
        separator.join(text.ljust(widths[j]) for j, text in enumerate(row)).rstrip()
        for row in texts
    )
