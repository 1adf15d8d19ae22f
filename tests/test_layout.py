"""
Unit tests for the Table Layout Engine.

These tests verify:
1. Header counts and transformation maps place every matrix line on a grid line
2. Value-only, row-only and row/column stems lay out with the expected shapes
3. Subtotals, expression rows and expression columns hold re-aggregated values
4. Percentage value types and decimal series are formatted consistently
5. Joined values are de-duplicated in subtotal rows
6. Sticky boundaries split row and column summary headers and every span covers only holes
"""

import pytest

from pivotgrid.augment import fill_expressions
from pivotgrid.layout import PivotTableConverter, create_transformation_map
from pivotgrid.layout.colors import COLOR_GRAY100, COLOR_GRAY200, header_background, shade_color
from pivotgrid.layout.converter import headers_child_count, non_sticky_index
from pivotgrid.model import (
    AggregationType,
    DimensionConfig,
    ExpressionOperation,
    HeaderOperand,
    PivotData,
    PivotExpression,
    PivotStemData,
    PivotTransform,
    Position,
    SummaryHeader,
    ValueType,
)
from pivotgrid.model.table import (
    COLUMN_GROUP_HEADER_CLASS,
    COLUMN_HEADER_CLASS,
    DATA_CLASS,
    EMPTY_CLASS,
    GROUP_DATA_CLASS,
    ROW_ATTRIBUTE_HEADER_CLASS,
    ROW_GROUP_HEADER_CLASS,
    ROW_HEADER_CLASS,
)
from pivotgrid.model.data import HeaderAttribute
from tests.helpers.trees import assert_spans_cover_holes, grid_values, group, leaf, value_headers


def layout(stem, transform=None):
    return PivotTableConverter().create_tables(PivotData(data=[stem]), transform)[0]


@pytest.fixture
def sums_stem():
    """Single row and column level with grand totals on both axes."""
    return PivotStemData(
        row_headers=[leaf("r1", 0), leaf("r2", 1)],
        column_headers=[leaf("c1", 0), leaf("c2", 1)],
        value_titles=["V"],
        values=[[1, 2], [3, 4]],
        rows_config=[DimensionConfig(show_sums=True)],
        columns_config=[DimensionConfig(show_sums=True)],
    )


class TestCounts:
    """Tests for header counting and transformation maps."""

    def test_transformation_map_skips_subtotal_lines(self):
        headers = [group("A", leaf("a1", 0), leaf("a2", 1)), group("B", leaf("b1", 2))]

        assert create_transformation_map(headers, [False, True], 0, 1) == [0, 1, 3]
        assert create_transformation_map(headers, [False, True], 2, 1) == [2, 3, 5]
        assert headers_child_count(headers, [False, True]) == 5
        assert headers_child_count(headers, [True, True]) == 6

    def test_transformation_map_with_value_columns(self):
        """Subtotals reserve one line per value series."""
        headers = [group("A", *value_headers("s", "c")), group("B", leaf("s", 2), leaf("c", 3))]

        assert create_transformation_map(headers, [True], 0, 2) == [0, 1, 2, 3]
        assert headers_child_count(headers, [True], 2) == 6

    def test_transformation_map_with_before_expressions(self):
        data = PivotStemData(
            row_headers=[leaf("a", 0), leaf("b", 1)],
            rows_config=[DimensionConfig(expressions=[PivotExpression(
                ExpressionOperation.ADD, [HeaderOperand("b")], title="e", position=Position.BEFORE_HEADER,
            )])],
        )

        headers = fill_expressions(data).row_headers

        assert create_transformation_map(headers, [False], 0, 1) == [0, 2]

    def test_size_pads_missing_leaves(self):
        assert create_transformation_map([leaf("a", 1)], [], 0, 1, size=3) == [None, 0, None]

    def test_non_sticky_index(self):
        sticky, loose = DimensionConfig(sticky=True), DimensionConfig()

        assert non_sticky_index([sticky, sticky], 3) == 3
        assert non_sticky_index([sticky, loose], 2) == 1
        assert non_sticky_index([loose, sticky], 2) == 0
        assert non_sticky_index([], 0) == 0


class TestValuesOnly:
    """Tests for stems without row or column attributes."""

    def test_header_and_data_rows(self):
        stem = PivotStemData(
            column_headers=value_headers("A", "B", "C"),
            value_titles=["A", "B", "C"],
            values=[[10, 20, 30]],
            has_additional_column_level=True,
        )

        table = layout(stem)

        assert (table.rows_count, table.columns_count) == (2, 3)
        assert grid_values(table, 0, 0) == ["A", "B", "C"]
        assert all(cell.is_header and cell.css_class == COLUMN_HEADER_CLASS for cell in table.cells[0])
        assert grid_values(table, 1, 0) == ["10", "20", "30"]
        assert all(cell.is_value and cell.css_class == DATA_CLASS for cell in table.cells[1])

    def test_empty_inputs(self):
        converter = PivotTableConverter()

        assert [t.cells for t in converter.create_tables(None)] == [[]]
        assert [t.cells for t in converter.create_tables(PivotData(data=[PivotStemData()]))] == [[]]


class TestRows:
    """Tests for row header layout."""

    def test_subtotals_on_both_levels(self):
        """Each group is followed by its subtotal, the table by the grand total."""
        stem = PivotStemData(
            row_headers=[
                group("A", leaf("a1", 0), leaf("a2", 1)),
                group("B", leaf("a1", 2)),
                group("C", leaf("a2", 3), leaf("a3", 4), leaf("a4", 5)),
            ],
            rows_config=[DimensionConfig(show_sums=True), DimensionConfig(show_sums=True)],
        )

        table = layout(stem)

        assert table.rows_count == 10
        a = table.cells[0][0]
        assert (a.value, a.row_span, a.child_indexes) == ("A", 2, [0, 1])
        assert a.css_class == ROW_HEADER_CLASS
        subtotal = table.cells[2][0]
        assert subtotal.is_summary and subtotal.value == "A" and subtotal.row_indexes == []
        assert subtotal.col_span == 2 and subtotal.background == COLOR_GRAY200
        grand_total = table.cells[9][0]
        assert grand_total.is_summary and grand_total.value is None and grand_total.background == COLOR_GRAY100
        assert_spans_cover_holes(table)

    def test_rows_with_two_values(self):
        stem = PivotStemData(
            row_headers=[group("A", leaf("a1", 0), leaf("a2", 1)), group("B", leaf("b1", 2))],
            column_headers=value_headers("sum", "count"),
            value_titles=["sum", "count"],
            values=[[1, 1], [2, 3], [4, 1]],
            value_aggregations=[AggregationType.SUM, AggregationType.COUNT],
            rows_config=[DimensionConfig(show_sums=True), DimensionConfig(show_sums=True)],
            has_additional_column_level=True,
        )

        table = layout(stem)

        assert (table.rows_count, table.columns_count) == (7, 4)
        assert grid_values(table, 0, 2) == ["sum", "count"]
        assert grid_values(table, 3, 2) == ["3", "4"]
        assert grid_values(table, 6, 2) == ["7", "5"]
        assert table.cells[0][0].css_class == EMPTY_CLASS
        assert_spans_cover_holes(table)

    def test_row_attribute_headers(self):
        stem = PivotStemData(
            row_headers=[leaf("a", 0)],
            column_headers=[leaf("x", 0)],
            value_titles=["V"],
            values=[[1]],
            row_header_attributes=[HeaderAttribute("Region", "#123456")],
            rows_config=[DimensionConfig()],
            columns_config=[DimensionConfig()],
        )

        cell = layout(stem).cells[0][0]

        assert cell.is_attribute_header and cell.value == "Region"
        assert cell.css_class == ROW_ATTRIBUTE_HEADER_CLASS and cell.background == "#123456"

    def test_transform_labels(self, sums_stem):
        transform = PivotTransform(
            format_row_header=lambda title, level: title.upper(),
            format_column_header=lambda title, level: f"<{title}>",
            format_summary_header=lambda header, level: SummaryHeader("Total", "sum"),
        )

        table = layout(sums_stem, transform)

        assert table.cells[1][0].value == "R1"
        assert table.cells[0][1].value == "<c1>"
        assert (table.cells[3][0].value, table.cells[3][0].summary) == ("Total", "sum")


class TestExpressionRows:
    """Tests for expression rows on two levels with subtotals."""

    def test_shape_and_headers(self, expression_stem):
        table = layout(expression_stem)

        assert table.rows_count == 18
        header = table.cells[2][0]
        assert header.summary == "A + B" and header.col_span == 2
        assert header.row_indexes == [2, 3, 5, 6, 9, 10]
        assert header.background == COLOR_GRAY100 and header.expandable
        assert header.css_class == ROW_GROUP_HEADER_CLASS
        nested = table.cells[4][1]
        assert nested.summary == "a2 * a3" and nested.col_span == 1
        assert nested.row_indexes == [4, 5, 6] and nested.background == COLOR_GRAY200
        assert table.cells[8][1].row_indexes == [8, 9, 10]
        assert_spans_cover_holes(table)

    def test_subtotal_header(self, expression_stem):
        table = layout(expression_stem)

        subtotal = table.cells[7][0]
        assert subtotal.value == "A" and subtotal.col_span == 2
        assert subtotal.background == COLOR_GRAY200
        assert subtotal.row_indexes == [] and not subtotal.expandable

    def test_child_indexes_are_grid_rows(self, expression_stem):
        table = layout(expression_stem)

        assert table.cells[3][0].child_indexes == [3, 5, 6]
        assert table.cells[8][0].child_indexes == [9, 10]

    def test_values(self, expression_stem):
        table = layout(expression_stem)

        assert grid_values(table, 2, 2) == ["22", "13", "23", "17", "16"]
        assert grid_values(table, 4, 2) == ["18", "4", "16", "21", "2"]
        assert grid_values(table, 7, 2) == ["15", "7", "13", "12", "11"]
        assert grid_values(table, 17, 2) == ["39", "23", "30", "35", "32"]

    def test_expression_cells_keep_operand_records(self, expression_stem):
        expression_stem.data_resources = [[[f"r{row}c{column}"] for column in range(5)] for row in range(8)]

        table = layout(expression_stem)

        assert table.cells[4][2].data_resources == ["r1c0", "r2c0"]

    def test_idempotent(self, expression_stem):
        assert layout(expression_stem) == layout(expression_stem)


class TestGroupIntersections:
    """Tests for cells where subtotal or expression rows and columns cross."""

    def test_grand_totals(self, sums_stem):
        table = layout(sums_stem)

        assert (table.rows_count, table.columns_count) == (4, 4)
        assert grid_values(table, 1, 1) == ["1", "2", "3"]
        assert grid_values(table, 3, 1) == ["4", "6", "10"]
        header = table.cells[0][3]
        assert header.is_summary and header.css_class == COLUMN_GROUP_HEADER_CLASS
        assert all(cell.css_class == GROUP_DATA_CLASS for cell in table.cells[3][1:])
        assert table.cells[1][3].background == COLOR_GRAY100
        assert_spans_cover_holes(table)

    def test_expression_row_and_column(self):
        stem = PivotStemData(
            row_headers=[leaf("r1", 0), leaf("r2", 1)],
            column_headers=[leaf("c1", 0), leaf("c2", 1), leaf("c3", 2)],
            value_titles=["V"],
            values=[[5, 2, 1], [3, 4, 0]],
            rows_config=[DimensionConfig(expressions=[PivotExpression(
                ExpressionOperation.ADD, [HeaderOperand("r1"), HeaderOperand("r2")], title="total",
            )])],
            columns_config=[DimensionConfig(expressions=[PivotExpression(
                ExpressionOperation.SUBTRACT, [HeaderOperand("c1"), HeaderOperand("c2")], title="c1 - c2",
            )])],
        )

        table = layout(stem)

        assert (table.rows_count, table.columns_count) == (4, 5)
        assert table.cells[0][3].summary == "c1 - c2"
        assert grid_values(table, 0, 1) == ["c1", "c2", None, "c3"]
        assert grid_values(table, 1, 1) == ["5", "2", "3", "1"]
        assert grid_values(table, 2, 1) == ["3", "4", "-1", "0"]
        assert grid_values(table, 3, 1) == ["8", "6", "2", "1"]
        assert_spans_cover_holes(table)

    def test_column_subtotals_with_two_values(self):
        stem = PivotStemData(
            row_headers=[leaf("r", 0)],
            column_headers=[group("X", *value_headers("s", "n")), group("Y", leaf("s", 2), leaf("n", 3))],
            value_titles=["s", "n"],
            values=[[1, 2, 3, 4]],
            rows_config=[DimensionConfig()],
            columns_config=[DimensionConfig(show_sums=True)],
            has_additional_column_level=True,
        )

        table = layout(stem)

        assert table.columns_count == 7
        assert grid_values(table, 1, 5) == ["s", "n"]
        assert table.cells[0][5].col_span == 2
        assert grid_values(table, 2, 1) == ["1", "2", "3", "4", "4", "6"]
        assert_spans_cover_holes(table)


class TestValueFormatting:
    """Tests for percentage and decimal rendering."""

    def test_column_percentage(self):
        stem = PivotStemData(
            row_headers=[leaf("r1", 0), leaf("r2", 1)],
            column_headers=[leaf("c1", 0), leaf("c2", 1)],
            value_titles=["V"],
            values=[[1, 3], [3, 1]],
            value_types=[ValueType.COLUMN_PERCENTAGE],
            rows_config=[DimensionConfig(show_sums=True)],
            columns_config=[DimensionConfig()],
        )

        table = layout(stem)

        assert grid_values(table, 1, 1) == ["25%", "75%"]
        assert grid_values(table, 2, 1) == ["75%", "25%"]
        assert grid_values(table, 3, 1) == ["100%", "100%"]

    def test_row_percentage_groups(self, sums_stem):
        sums_stem.values = [[1, 3], [2, 2]]
        sums_stem.value_types = [ValueType.ROW_PERCENTAGE]

        table = layout(sums_stem)

        assert grid_values(table, 1, 1) == ["25%", "75%", "100%"]
        assert grid_values(table, 2, 1) == ["50%", "50%", "100%"]
        assert grid_values(table, 3, 1) == ["37.5%", "62.5%", "100%"]

    def test_all_percentage_groups(self, sums_stem):
        sums_stem.value_types = [ValueType.ALL_PERCENTAGE]

        table = layout(sums_stem)

        assert grid_values(table, 1, 1) == ["10%", "20%", "30%"]
        assert grid_values(table, 3, 1) == ["40%", "60%", "100%"]

    def test_join_values(self):
        stem = PivotStemData(
            row_headers=[leaf("r1", 0), leaf("r2", 1)],
            column_headers=value_headers("V"),
            value_titles=["V"],
            values=[[["a", "b"]], [["b", "c"]]],
            value_aggregations=[AggregationType.JOIN],
            rows_config=[DimensionConfig(show_sums=True)],
            has_additional_column_level=True,
        )

        table = layout(stem)

        assert [table.cells[row][1].value for row in (1, 2, 3)] == ["a, b", "b, c", "a, b, c"]

    def test_decimal_series(self):
        stem = PivotStemData(
            column_headers=value_headers("V"),
            value_titles=["V"],
            values=[[2.456]],
            has_additional_column_level=True,
        )

        assert layout(stem).cells[1][0].value == "2.46"

    def test_missing_values_render_empty(self, sums_stem):
        sums_stem.values = [[1, None], [None, None]]

        table = layout(sums_stem)

        assert grid_values(table, 2, 1) == ["", "", "0"]


class TestSticky:
    """Tests for sticky header regions."""

    def test_row_summary_split_at_sticky_boundary(self):
        stem = PivotStemData(
            row_headers=[group("A", leaf("a1", 0)), group("B", leaf("b1", 1))],
            column_headers=value_headers("V"),
            value_titles=["V"],
            values=[[1], [2]],
            rows_config=[DimensionConfig(show_sums=True, sticky=True), DimensionConfig()],
            has_additional_column_level=True,
        )

        table = layout(stem)

        grand_total = table.cells[3]
        assert grand_total[0].sticky_start and grand_total[0].col_span == 1
        assert grand_total[1].is_summary and grand_total[1].col_span == 1
        assert grand_total[2].value == "3"
        assert table.cells[0][0].sticky_start
        assert_spans_cover_holes(table)

    def test_column_summary_split_at_sticky_boundary(self):
        stem = PivotStemData(
            row_headers=[leaf("r", 0)],
            column_headers=[group("X", leaf("x1", 0), leaf("x2", 1)), group("Y", leaf("y1", 2))],
            value_titles=["V"],
            values=[[1, 2, 3]],
            rows_config=[DimensionConfig()],
            columns_config=[DimensionConfig(show_sums=True, sticky=True), DimensionConfig()],
        )

        table = layout(stem)

        grand_total = table.cells[0][4]
        assert grand_total.is_summary and grand_total.sticky_top and grand_total.row_span == 1
        continuation = table.cells[1][4]
        assert continuation.is_summary and not continuation.sticky_top and continuation.row_span == 1
        assert grid_values(table, 2, 1) == ["1", "2", "3", "6"]
        assert_spans_cover_holes(table)


class TestColors:
    """Tests for header shading."""

    def test_shade_color(self):
        assert shade_color("#000000", 0.5) == "#808080"
        assert shade_color("#ffffff", 0.3) == "#ffffff"

    def test_header_background(self):
        assert header_background(None, 0) is None
        assert header_background("#000000", 0) == "#808080"
