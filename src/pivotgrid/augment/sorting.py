"""Per-level header sorting.

Each level is sorted by header title, or by the numeric summary of a value
series found under a path of headers on the other axis. Children are sorted
before their parents' siblings, and the value-title headers at the innermost
column level are never reordered when several value series exist.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..model.config import PivotSort
from ..model.constraint import NUMBER_CONSTRAINT, UNKNOWN_CONSTRAINT, Constraint
from ..model.data import HeaderNode, PivotStemData, target_indexes_for_header, target_indexes_for_headers
from .value_types import numeric_matrix, numeric_summary


def sort_pivot_data(
    data: PivotStemData,
    row_sorts: Optional[Sequence[Optional[PivotSort]]] = None,
    column_sorts: Optional[Sequence[Optional[PivotSort]]] = None,
) -> PivotStemData:
    """Return ``data`` with both header trees sorted.

    Sorts default to the ones configured on ``rows_config`` / ``columns_config``.
    """
    row_sorts = data.row_sorts if row_sorts is None else list(row_sorts)
    column_sorts = data.column_sorts if column_sorts is None else list(column_sorts)
    matrix = numeric_matrix(data.values)
    return replace(
        data,
        row_headers=_sort_headers(data.row_headers, 0, row_sorts, data.column_headers, matrix, data.value_titles, True),
        column_headers=_sort_headers(data.column_headers, 0, column_sorts, data.row_headers, matrix,
                                     data.value_titles, False),
    )


def _sort_headers(
    headers: List[HeaderNode],
    level: int,
    sorts: Sequence[Optional[PivotSort]],
    other_side_headers: List[HeaderNode],
    matrix: np.ndarray,
    value_titles: List[str],
    is_rows: bool,
) -> List[HeaderNode]:
    if not is_rows and _is_values_headers(headers, value_titles):
        return headers

    sort = sorts[level] if level < len(sorts) else None
    constraint = _sort_constraint(sort, headers)
    values_map = _headers_values_map(headers, sort, other_side_headers, matrix, value_titles, is_rows)

    children_sorted = [
        replace(header, children=_sort_headers(header.children, level + 1, sorts, other_side_headers, matrix,
                                               value_titles, is_rows))
        if header.children is not None else header
        for header in headers
    ]
    descending = sort is not None and not sort.asc
    return sorted(children_sorted, key=lambda header: constraint.sort_key(values_map[header.title]),
                  reverse=descending)


def _is_values_headers(headers: List[HeaderNode], value_titles: List[str]) -> bool:
    return len(value_titles) > 1 and all(
        header.target_index is not None and index < len(value_titles) and header.title == value_titles[index]
        for index, header in enumerate(headers or [])
    )


def _sort_constraint(sort: Optional[PivotSort], headers: List[HeaderNode]) -> Constraint:
    if sort and sort.values_list and sort.values_list.values:
        return NUMBER_CONSTRAINT
    if headers and headers[0].constraint:
        return headers[0].constraint
    return UNKNOWN_CONSTRAINT


def _headers_values_map(
    headers: List[HeaderNode],
    sort: Optional[PivotSort],
    other_side_headers: List[HeaderNode],
    matrix: np.ndarray,
    value_titles: List[str],
    is_rows: bool,
) -> Dict[str, Any]:
    target = _sort_target_indexes(sort, other_side_headers, value_titles)
    if target is None:
        return {header.title: header.title for header in headers}

    other_indexes, value_index = target
    number_of_values = max(1, len(value_titles))
    values_map = {}
    for header in headers:
        own_indexes = target_indexes_for_header(header)
        if is_rows:
            rows = own_indexes
            columns = [index for index in other_indexes if index % number_of_values == value_index]
        else:
            rows = other_indexes
            columns = [index for index in own_indexes if index % number_of_values == value_index]
        values_map[header.title] = numeric_summary(matrix, rows, columns)
    return values_map


def _sort_target_indexes(
    sort: Optional[PivotSort],
    other_side_headers: List[HeaderNode],
    value_titles: List[str],
) -> Optional[Tuple[List[int], int]]:
    """Other-axis leaf indexes a sort by values reads, plus the value series index."""
    if not sort or not sort.values_list or not value_titles:
        return None

    if sort.values_list.value_title in value_titles:
        value_index = value_titles.index(sort.values_list.value_title)
    elif len(value_titles) == 1:
        value_index = 0
    else:
        return None

    header: Optional[HeaderNode] = None
    current = other_side_headers or []
    for sort_value in sort.values_list.values:
        if sort_value.is_summary:
            return target_indexes_for_headers(current), value_index

        header = next((h for h in current if h.title == sort_value.title), None)
        if header is None:
            break
        current = header.children or []

    if header is None:
        return None
    if header.target_index is not None:
        return [header.target_index], value_index
    return target_indexes_for_headers(current), value_index
