"""Percentage value types.

A value column with a percentage value type shows each aggregate divided by
the grand total (``all``), by its row total (``row``) or by its column total
(``column``). Denominators are computed once per stem over the numeric part of
the raw matrix; non-numeric cells count as NaN and are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..model.config import ValueType
from ..model.constraint import DECIMAL_CONSTRAINT, Constraint, is_missing, to_number


@dataclass
class ValueTypeInfo:
    sum: Optional[float] = None
    sums_rows: Optional[Dict[int, float]] = None
    sums_columns: Optional[Dict[int, float]] = None
    default_constraint: Optional[Constraint] = None


def numeric_matrix(values: Sequence[Sequence[Any]]) -> np.ndarray:
    columns_count = len(values[0]) if values else 0
    matrix = np.full((len(values), columns_count), np.nan)
    for row_index, row in enumerate(values):
        for column_index, value in enumerate(row):
            number = to_number(value)
            if number is not None:
                matrix[row_index, column_index] = number
    return matrix


def numeric_summary(matrix: np.ndarray, rows: Sequence[int], columns: Sequence[int]) -> float:
    if not len(rows) or not len(columns):
        return 0.0
    return float(np.nansum(matrix[np.ix_(list(rows), list(columns))]))


def value_columns(columns_count: int, number_of_values: int, value_index: int) -> List[int]:
    return [column for column in range(columns_count) if column % number_of_values == value_index]


def contains_decimal(matrix: np.ndarray, rows: Sequence[int], columns: Sequence[int]) -> bool:
    if not len(rows) or not len(columns):
        return False
    sub = matrix[np.ix_(list(rows), list(columns))]
    present = sub[~np.isnan(sub)]
    return bool(np.any(np.mod(present, 1) != 0))


def is_percentage(value_type: Optional[ValueType]) -> bool:
    return value_type in (ValueType.ALL_PERCENTAGE, ValueType.ROW_PERCENTAGE, ValueType.COLUMN_PERCENTAGE)


def get_values_type_info(
    values: Sequence[Sequence[Any]],
    value_types: Sequence[Optional[ValueType]],
    number_of_values: int,
) -> List[ValueTypeInfo]:
    """Per value series: default constraint and the percentage denominators."""
    matrix = numeric_matrix(values)
    rows = list(range(matrix.shape[0]))
    infos = []
    for value_index in range(number_of_values):
        value_type = value_types[value_index] if value_index < len(value_types) else None
        columns = value_columns(matrix.shape[1], number_of_values, value_index)
        info = ValueTypeInfo(default_constraint=DECIMAL_CONSTRAINT if contains_decimal(matrix, rows, columns) else None)

        match value_type:
            case ValueType.ALL_PERCENTAGE:
                info.sum = numeric_summary(matrix, rows, columns)
            case ValueType.ROW_PERCENTAGE:
                info.sums_rows = {row: numeric_summary(matrix, [row], columns) for row in rows}
            case ValueType.COLUMN_PERCENTAGE:
                info.sums_columns = {column: numeric_summary(matrix, rows, [column]) for column in columns}

        infos.append(info)
    return infos


def divide_values(value: Any, divider: Any) -> Optional[float]:
    """Divide guarding against missing and non-numeric input; x / 0 is 0."""
    if is_missing(value):
        return None
    number, denominator = to_number(value), to_number(divider)
    if number is None or denominator is None:
        return None
    if denominator == 0:
        return 0
    return number / denominator


def compute_values_by_value_type(
    values: Sequence[Sequence[Any]],
    value_types: Sequence[Optional[ValueType]],
    number_of_values: int,
    infos: Sequence[ValueTypeInfo],
) -> List[List[Any]]:
    """Copy of ``values`` with percentage series divided by their denominators."""
    result = [list(row) for row in values]
    columns_count = len(values[0]) if values else 0
    for value_index in range(number_of_values):
        value_type = value_types[value_index] if value_index < len(value_types) else None
        if not is_percentage(value_type):
            continue
        info = infos[value_index]
        for row_index, row in enumerate(values):
            for column in value_columns(columns_count, number_of_values, value_index):
                match value_type:
                    case ValueType.ALL_PERCENTAGE:
                        divider = info.sum
                    case ValueType.ROW_PERCENTAGE:
                        divider = info.sums_rows.get(row_index)
                    case _:
                        divider = info.sums_columns.get(column)
                result[row_index][column] = divide_values(row[column], divider)
    return result
