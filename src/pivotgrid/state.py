"""
Expand/collapse state of laid-out tables.

A ``PivotTableState`` is a sparse overlay keyed by grid coordinates of the
full table: ``cells[row][column]`` exists only for cells the user toggled or
that ``collapse_all_cells`` collapsed. A missing entry means *expanded*.

Tables are never modified. ``filter_visible_cells`` derives the visible rows
from a table and its state, copying the cells whose spans or original row
index change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from .model.table import Cell, PivotTable
from .utils.logging import get_logger

logger = get_logger(__name__)

Cells = List[List[Optional[Cell]]]


@dataclass
class CellState:
    collapsed: bool = False


@dataclass
class PivotTableState:
    cells: Dict[int, Dict[int, CellState]] = field(default_factory=dict)

    def is_collapsed(self, row: int, column: int) -> bool:
        cell_state = self.cells.get(row, {}).get(column)
        return bool(cell_state and cell_state.collapsed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cells": {
                str(row): {str(column): {"collapsed": state.collapsed} for column, state in columns.items()}
                for row, columns in self.cells.items()
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PivotTableState":
        return cls(cells={
            int(row): {int(column): CellState(bool(state.get("collapsed"))) for column, state in columns.items()}
            for row, columns in (data.get("cells") or {}).items()
        })


def is_cell_children_expandable(cell: Optional[Cell]) -> bool:
    return bool(cell and cell.child_indexes and len(cell.child_indexes) > 1)


def is_cell_rows_expandable(cell: Optional[Cell]) -> bool:
    return bool(cell and cell.row_indexes and len(cell.row_indexes) > 1)


def is_cell_expandable(cell: Optional[Cell]) -> bool:
    return is_cell_children_expandable(cell) or is_cell_rows_expandable(cell)


def toggle_expanded_state(
    state: Optional[PivotTableState],
    row_index: Optional[int],
    column_index: Optional[int],
    table: Optional[PivotTable] = None,
) -> PivotTableState:
    """Return a copy of ``state`` with the cell at (row, column) flipped.

    Missing, negative or (when ``table`` is given) out-of-range coordinates
    leave the state unchanged.
    """
    state = state or PivotTableState()
    if row_index is None or column_index is None or row_index < 0 or column_index < 0:
        return state
    if table is not None and (row_index >= table.rows_count or column_index >= table.columns_count):
        return state

    cells = {row: dict(columns) for row, columns in state.cells.items()}
    row = cells.setdefault(row_index, {})
    row[column_index] = CellState(collapsed=not state.is_collapsed(row_index, column_index))
    return PivotTableState(cells=cells)


def toggle_expanded(cell: Cell, column_index: int, state: Optional[PivotTableState]) -> PivotTableState:
    """Toggle a cell of a filtered grid, addressed by its original row."""
    if cell is None or cell.original_row_index is None:
        return state or PivotTableState()
    return toggle_expanded_state(state, cell.original_row_index, column_index)


def filter_visible_cells(
    cells: Cells,
    state: Optional[PivotTableState] = None,
    row_offset: int = 0,
    column_offset: int = 0,
) -> Cells:
    """Rows of ``cells`` left after applying the collapsed entries of ``state``.

    A collapsed header keeps one line whose header cell spans up to the first
    value cell; an expanded header is filtered recursively and its row span
    shrinks to the rows that stay visible. Rows referenced by expression rows
    are hidden when every expression row referencing them is collapsed.
    ``row_offset`` and ``column_offset`` place ``cells`` inside the full grid.
    """
    state = state or PivotTableState()
    referencing = _referencing_rows(cells, row_offset)
    result: Cells = []

    index = 0
    while index < len(cells):
        row = cells[index]
        first_cell = row[0] if row else None
        original_row_index = row_offset + index
        if first_cell is None:
            index += 1
            continue
        span = max(first_cell.row_span, 1)

        if first_cell.is_attribute_header or first_cell.is_summary or first_cell.is_value:
            result.extend(_rows_with_original_index(cells, index, span, original_row_index))
        elif _is_row_visible(original_row_index, referencing, column_offset, state):
            if any(is_cell_children_expandable(cell) for cell in row):
                result.extend(_filter_expandable_row(cells, index, state, original_row_index, column_offset))
            else:
                result.extend(_rows_with_original_index(cells, index, span, original_row_index))

        index += span
    return result


def _filter_expandable_row(
    cells: Cells,
    index: int,
    state: PivotTableState,
    original_row_index: int,
    column_offset: int,
) -> Cells:
    row = cells[index]
    first_cell = row[0]
    nested_rows: Cells = []
    if not state.is_collapsed(original_row_index, column_offset):
        nested = [list(r[1:]) for r in cells[index:index + first_cell.row_span]]
        nested_rows = filter_visible_cells(nested, state, original_row_index, column_offset + 1)

    if not nested_rows:
        first_value_index = next((i for i, cell in enumerate(row) if cell is not None and cell.is_value), len(row))
        collapsed_row = list(row)
        collapsed_row[0] = replace(first_cell, col_span=first_value_index, row_span=1,
                                   original_row_index=original_row_index)
        for i in range(1, first_value_index):
            collapsed_row[i] = None
        return [collapsed_row]

    header = replace(first_cell, row_span=len(nested_rows), original_row_index=original_row_index)
    return [[header if i == 0 else None, *nested_row] for i, nested_row in enumerate(nested_rows)]


def _rows_with_original_index(cells: Cells, index: int, span: int, original_row_index: int) -> Cells:
    return [
        _set_original_row_index(cells[i], original_row_index + i - index)
        for i in range(index, min(index + span, len(cells)))
    ]


def _set_original_row_index(row: Sequence[Optional[Cell]], original_row_index: int) -> List[Optional[Cell]]:
    """Copy of ``row`` with the original index set on cells before the first value."""
    result: List[Optional[Cell]] = []
    for i, cell in enumerate(row):
        if cell is None:
            result.append(None)
        elif cell.is_value:
            return [*result, *row[i:]]
        else:
            result.append(replace(cell, original_row_index=original_row_index))
    return result


def _referencing_rows(cells: Cells, row_offset: int) -> Dict[int, List[int]]:
    """Grid row -> grid rows of the expression cells listing it in ``row_indexes``."""
    referencing: Dict[int, List[int]] = {}
    for index, row in enumerate(cells):
        first_cell = row[0] if row else None
        if first_cell is None or not first_cell.row_indexes:
            continue
        for child_index in first_cell.row_indexes:
            referencing.setdefault(child_index, []).append(row_offset + index)
    return referencing


def _is_row_visible(row: int, referencing: Dict[int, List[int]], column: int, state: PivotTableState) -> bool:
    expression_rows = referencing.get(row) or []
    return not expression_rows or any(not state.is_collapsed(expression_row, column) for expression_row in expression_rows)


def collapse_all_cells(table: Optional[PivotTable]) -> PivotTableState:
    """State with every expandable cell of the row-header region collapsed."""
    state = PivotTableState()
    for i, row in enumerate(table.cells if table else []):
        for j, cell in enumerate(row):
            if cell is not None and (cell.is_value or cell.is_attribute_header):
                break
            if is_cell_expandable(cell):
                state.cells.setdefault(i, {})[j] = CellState(collapsed=True)
    logger.debug("Collapsed %d row(s)", len(state.cells))
    return state


def reconcile_states(
    states: Optional[List[PivotTableState]],
    previous_tables: Optional[List[PivotTable]],
    tables: List[PivotTable],
) -> List[PivotTableState]:
    """Keep the states only while the tables keep their shape."""
    if (
        states is None
        or previous_tables is None
        or len(previous_tables) != len(tables)
        or any(p.rows_count != t.rows_count for p, t in zip(previous_tables, tables))
    ):
        return [PivotTableState() for _ in tables]
    return [states[i] if i < len(states) else PivotTableState() for i in range(len(tables))]


@dataclass
class CellActivatedEvent:
    cell: Cell
    table_index: int
    row_index: int
    column_index: int


def activate_cell(
    visible_cells: Cells,
    table_index: int,
    row_index: int,
    column_index: int,
) -> Optional[CellActivatedEvent]:
    """Event for a click on a visible cell, addressed in full-grid rows."""
    if not 0 <= row_index < len(visible_cells) or not 0 <= column_index < len(visible_cells[row_index]):
        return None
    cell = visible_cells[row_index][column_index]
    if cell is None:
        return None
    original_row_index = cell.original_row_index if cell.original_row_index is not None else row_index
    return CellActivatedEvent(cell=cell, table_index=table_index, row_index=original_row_index,
                              column_index=column_index)
