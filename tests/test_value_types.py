"""
Unit tests for percentage value types.

These tests verify:
1. Denominators are computed per value series over the numeric cells only
2. Percentage series are divided by the grand, row or column total
3. Series holding decimals get a two-decimal default constraint
4. Division guards against missing, non-numeric and zero input
"""

import pytest

from pivotgrid.augment import compute_values_by_value_type, divide_values, get_values_type_info
from pivotgrid.model import DECIMAL_CONSTRAINT, ValueType


class TestValuesTypeInfo:
    """Tests for get_values_type_info."""

    def test_all_percentage_sums_its_series(self):
        """Interleaved value series only sum their own columns."""
        values = [[1, 100, 3, 100], [2, 100, None, 100]]

        infos = get_values_type_info(values, [ValueType.ALL_PERCENTAGE, ValueType.DEFAULT], 2)

        assert infos[0].sum == 6
        assert infos[1].sum is None

    def test_row_and_column_totals(self):
        values = [[1, 2], [3, "x"]]

        rows = get_values_type_info(values, [ValueType.ROW_PERCENTAGE], 1)[0]
        columns = get_values_type_info(values, [ValueType.COLUMN_PERCENTAGE], 1)[0]

        assert rows.sums_rows == {0: 3, 1: 3}
        assert columns.sums_columns == {0: 4, 1: 2}

    def test_decimal_default_constraint(self):
        infos = get_values_type_info([[1, 2.5], [3, 4]], [None, None], 2)

        assert infos[0].default_constraint is None
        assert infos[1].default_constraint == DECIMAL_CONSTRAINT

    def test_empty_matrix(self):
        infos = get_values_type_info([], [ValueType.ALL_PERCENTAGE], 1)

        assert infos[0].sum == 0


class TestComputeValues:
    """Tests for normalizing percentage series."""

    def test_column_percentage(self):
        values = [[1, 3], [3, 1]]
        infos = get_values_type_info(values, [ValueType.COLUMN_PERCENTAGE], 1)

        result = compute_values_by_value_type(values, [ValueType.COLUMN_PERCENTAGE], 1, infos)

        assert result == [[0.25, 0.75], [0.75, 0.25]]
        assert values == [[1, 3], [3, 1]]

    def test_only_percentage_series_change(self):
        values = [[1, 10], [3, 30]]
        types = [ValueType.DEFAULT, ValueType.ALL_PERCENTAGE]
        infos = get_values_type_info(values, types, 2)

        result = compute_values_by_value_type(values, types, 2, infos)

        assert result == [[1, 0.25], [3, 0.75]]

    def test_row_percentage_keeps_missing_values(self):
        values = [[None, 2], [1, 1]]
        infos = get_values_type_info(values, [ValueType.ROW_PERCENTAGE], 1)

        result = compute_values_by_value_type(values, [ValueType.ROW_PERCENTAGE], 1, infos)

        assert result == [[None, 1], [0.5, 0.5]]


class TestDivideValues:
    """Tests for divide_values."""

    @pytest.mark.parametrize("value, divider, expected", [
        (5, 10, 0.5),
        ("5", "10", 0.5),
        (5, 0, 0),
        (None, 10, None),
        ("x", 10, None),
        (5, None, None),
    ])
    def test_divide(self, value, divider, expected):
        assert divide_values(value, divider) == expected
