"""
Laid-out pivot table.

``PivotTable.cells`` is a dense row-major grid; a ``None`` slot is covered by
the span of a cell above or to the left of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constraint import Constraint
from .data import DataResource

EMPTY_CLASS = "pivot-empty-cell"
DATA_CLASS = "pivot-data-cell"
GROUP_DATA_CLASS = "pivot-data-group-cell"
ROW_HEADER_CLASS = "pivot-row-header-cell"
ROW_GROUP_HEADER_CLASS = "pivot-row-group-header-cell"
ROW_ATTRIBUTE_HEADER_CLASS = "pivot-row-attribute-header-cell"
COLUMN_HEADER_CLASS = "pivot-column-header-cell"
COLUMN_GROUP_HEADER_CLASS = "pivot-column-group-header-cell"


@dataclass
class Cell:
    """One grid cell.

    Attributes:
        value: Display value (strings for data cells, None for summary labels)
        row_span: Number of grid rows covered
        col_span: Number of grid columns covered
        css_class: One of the ``*_CLASS`` constants
        data_resources: Records contributing to a data cell
        constraint: Format descriptor of the header value
        summary: Summary label of subtotal and expression cells
        label: Attribute name of header cells
        background: Hex color
        row_indexes: Grid rows summarized by an expression row
        child_indexes: Grid rows of a row header's direct children
        original_row_index: Grid row before visibility filtering
    """

    value: Any = None
    row_span: int = 1
    col_span: int = 1
    css_class: str = ""
    data_resources: Optional[List[DataResource]] = None
    constraint: Optional[Constraint] = None
    summary: Optional[str] = None
    label: Optional[str] = None
    is_value: bool = False
    is_header: bool = False
    is_attribute_header: bool = False
    is_summary: bool = False
    background: Optional[str] = None
    sticky_top: bool = False
    sticky_start: bool = False
    row_indexes: Optional[List[int]] = None
    child_indexes: Optional[List[int]] = None
    original_row_index: Optional[int] = None
    expandable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "value": self.value,
            "row_span": self.row_span,
            "col_span": self.col_span,
            "css_class": self.css_class,
        }
        for name in ("summary", "label", "background", "row_indexes", "child_indexes", "original_row_index"):
            attr = getattr(self, name)
            if attr is not None:
                result[name] = attr
        for name in ("is_value", "is_header", "is_attribute_header", "is_summary",
                     "sticky_top", "sticky_start", "expandable"):
            if getattr(self, name):
                result[name] = True
        if self.constraint is not None:
            result["constraint"] = self.constraint.to_dict()
        if self.data_resources:
            result["data_resources"] = [r.to_dict() for r in self.data_resources]
        return result


@dataclass
class PivotTable:
    cells: List[List[Optional[Cell]]] = field(default_factory=list)

    @property
    def rows_count(self) -> int:
        return len(self.cells)

    @property
    def columns_count(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    def to_dict(self) -> Dict[str, Any]:
        return {"cells": [[cell.to_dict() if cell else None for cell in row] for row in self.cells]}
