"""
Unit tests for the expand/collapse state tracker.

These tests verify:
1. A missing state entry means expanded and toggling copies the state
2. Collapsing a group keeps one line whose header spans to the first value
3. Collapsed expression rows hide the top-level rows they reference
4. collapse_all_cells marks every expandable row-header cell
5. States survive rebuilds only while the tables keep their shape
6. Cell activation resolves the row of the unfiltered grid
"""

import pytest

from pivotgrid.layout import PivotTableConverter
from pivotgrid.model import Cell, PivotData, PivotTable
from pivotgrid.state import (
    CellState,
    PivotTableState,
    activate_cell,
    collapse_all_cells,
    filter_visible_cells,
    is_cell_expandable,
    reconcile_states,
    toggle_expanded,
    toggle_expanded_state,
)
from tests.helpers.trees import first_column_titles


def layout(stem):
    return PivotTableConverter().create_tables(PivotData(data=[stem]))[0]


def original_rows(cells):
    return [next(cell.original_row_index for cell in row if cell is not None) for row in cells]


@pytest.fixture
def grouped_table(grouped_stem):
    return layout(grouped_stem)


@pytest.fixture
def expression_table(expression_stem):
    return layout(expression_stem)


class TestPivotTableState:
    """Tests for the state overlay."""

    def test_missing_entry_is_expanded(self):
        assert not PivotTableState().is_collapsed(3, 0)

    def test_toggle_copies_state(self):
        state = PivotTableState()

        toggled = toggle_expanded_state(state, 1, 0)

        assert toggled.is_collapsed(1, 0)
        assert state.cells == {}
        assert not toggle_expanded_state(toggled, 1, 0).is_collapsed(1, 0)

    @pytest.mark.parametrize("row, column", [(None, 0), (0, None), (-1, 0), (0, -2), (10, 0), (0, 10)])
    def test_toggle_ignores_invalid_coordinates(self, grouped_table, row, column):
        state = PivotTableState()

        assert toggle_expanded_state(state, row, column, grouped_table) is state

    def test_toggle_cell_uses_original_row(self):
        state = toggle_expanded(Cell(value="A", original_row_index=7), 0, None)

        assert state.is_collapsed(7, 0)
        assert toggle_expanded(Cell(value="A"), 0, state) is state

    def test_round_trip(self):
        state = PivotTableState(cells={1: {0: CellState(True)}, 4: {1: CellState(False)}})

        assert PivotTableState.from_dict(state.to_dict()) == state


class TestFilterVisibleCells:
    """Tests for filtering rows through the state."""

    def test_no_state_keeps_every_row(self, grouped_table):
        visible = filter_visible_cells(grouped_table.cells)

        assert len(visible) == grouped_table.rows_count
        assert original_rows(visible) == [0, 1, 2, 3, 4]

    def test_collapsed_group_spans_to_first_value(self, grouped_table):
        state = toggle_expanded_state(None, 1, 0)

        visible = filter_visible_cells(grouped_table.cells, state)

        assert original_rows(visible) == [0, 1, 3, 4]
        collapsed = visible[1][0]
        assert collapsed.value == "A" and collapsed.col_span == 2 and collapsed.row_span == 1
        assert visible[1][1] is None
        assert visible[1][2].value == "1"

    def test_table_cells_are_not_mutated(self, grouped_table):
        before = [[cell and cell.to_dict() for cell in row] for row in grouped_table.cells]

        filter_visible_cells(grouped_table.cells, toggle_expanded_state(None, 1, 0))

        assert [[cell and cell.to_dict() for cell in row] for row in grouped_table.cells] == before

    def test_collapsed_expression_hides_referenced_rows(self, expression_table):
        state = toggle_expanded_state(None, 2, 0)

        visible = filter_visible_cells(expression_table.cells, state)

        assert len(visible) == 14
        assert 3 not in original_rows(visible)
        assert first_column_titles(visible)[2] is None
        assert visible[2][0].summary == "A + B"

    def test_collapsed_nested_expression(self, expression_table):
        """Nested filtering addresses rows and columns of the full grid."""
        state = toggle_expanded_state(None, 4, 1)

        visible = filter_visible_cells(expression_table.cells, state)

        assert len(visible) == 16
        assert 5 not in original_rows(visible) and 6 not in original_rows(visible)
        assert visible[3][0].value == "A" and visible[3][0].row_span == 2

    def test_group_header_rows_shrink_with_children(self, expression_table):
        state = toggle_expanded_state(None, 3, 0)

        visible = filter_visible_cells(expression_table.cells, state)

        assert len(visible) == 15
        assert visible[3][0].col_span == 2
        assert visible[4][0].value == "A" and visible[4][0].is_summary


class TestCollapseAll:
    """Scenario: collapse everything, then expand one group."""

    def test_marks_every_expandable_header(self, grouped_table):
        state = collapse_all_cells(grouped_table)

        assert state.cells == {1: {0: CellState(True)}, 3: {0: CellState(True)}}

    def test_one_row_per_top_level_group(self, grouped_table):
        visible = filter_visible_cells(grouped_table.cells, collapse_all_cells(grouped_table))

        assert first_column_titles(visible)[1:] == ["A", "B"]

    def test_expanding_one_group_restores_only_its_children(self, grouped_table):
        state = toggle_expanded_state(collapse_all_cells(grouped_table), 1, 0)

        visible = filter_visible_cells(grouped_table.cells, state)

        assert original_rows(visible) == [0, 1, 2, 3]
        assert visible[1][0].row_span == 2
        assert visible[3][0].col_span == 2

    def test_expression_rows_are_collapsible(self, expression_table):
        state = collapse_all_cells(expression_table)

        assert sorted(state.cells) == [2, 3, 4, 8, 12]
        assert state.is_collapsed(4, 1) and state.is_collapsed(8, 0)

    def test_empty_table(self):
        assert collapse_all_cells(None).cells == {}
        assert collapse_all_cells(PivotTable()).cells == {}


class TestExpandable:
    """Tests for expandability checks."""

    def test_expandable_cells(self):
        assert is_cell_expandable(Cell(child_indexes=[1, 2]))
        assert is_cell_expandable(Cell(row_indexes=[4, 5, 6]))
        assert not is_cell_expandable(Cell(child_indexes=[1]))
        assert not is_cell_expandable(None)


class TestReconcileStates:
    """Tests for keeping states across rebuilds."""

    def test_same_shape_keeps_states(self, grouped_table):
        states = [collapse_all_cells(grouped_table)]

        assert reconcile_states(states, [grouped_table], [grouped_table]) == states

    def test_changed_row_count_resets(self, grouped_table, expression_table):
        states = [collapse_all_cells(grouped_table)]

        assert reconcile_states(states, [grouped_table], [expression_table]) == [PivotTableState()]

    def test_missing_previous_state(self, grouped_table):
        assert reconcile_states(None, None, [grouped_table, grouped_table]) == [PivotTableState()] * 2


class TestActivateCell:
    """Tests for cell activation."""

    def test_event_addresses_full_grid(self, grouped_table):
        visible = filter_visible_cells(grouped_table.cells, toggle_expanded_state(None, 1, 0))

        event = activate_cell(visible, 0, 2, 0)

        assert event.row_index == 3 and event.cell.value == "B"
        assert event.table_index == 0

    def test_holes_and_out_of_range(self, grouped_table):
        cells = grouped_table.cells

        assert activate_cell(cells, 0, 2, 0) is None
        assert activate_cell(cells, 0, 99, 0) is None
        assert activate_cell(cells, 0, 0, -1) is None
