"""
Table Layout Engine.

``PivotTableConverter.create_tables`` flattens every ``PivotStemData`` into a
``PivotTable``. The grid has ``column_levels`` header rows on top and
``row_levels`` header columns on the left; the rest is the data region.

Each original matrix row and column is mapped to a grid line by a
transformation map built once per stem. Grid lines that are not images of a
matrix line hold subtotals or expressions; they are recorded as header groups
during the row and column passes and their crossings are filled last.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..augment import prepare_pivot_data
from ..augment.expressions import evaluate_expression, header_operands
from ..augment.value_types import ValueTypeInfo, divide_values, is_percentage
from ..builder.aggregation import aggregate_values, flatten_values, is_value_aggregation, join_values
from ..model.config import AggregationType, Position, ValueType
from ..model.constraint import PERCENTAGE_CONSTRAINT, UNKNOWN_CONSTRAINT, Constraint
from ..model.data import (
    DataResource,
    DimensionConfig,
    HeaderExpression,
    HeaderNode,
    HeaderSetOperand,
    PivotData,
    PivotStemData,
    target_indexes_for_headers,
)
from ..model.table import (
    COLUMN_GROUP_HEADER_CLASS,
    COLUMN_HEADER_CLASS,
    DATA_CLASS,
    EMPTY_CLASS,
    GROUP_DATA_CLASS,
    ROW_ATTRIBUTE_HEADER_CLASS,
    ROW_GROUP_HEADER_CLASS,
    ROW_HEADER_CLASS,
    Cell,
    PivotTable,
)
from ..model.transform import PivotTransform
from ..utils.logging import get_logger
from .colors import header_background, summary_background

logger = get_logger(__name__)

Cells = List[List[Optional[Cell]]]


@dataclass
class _HeaderGroup:
    """A subtotal or expression line of the grid.

    ``indexes`` are the original matrix lines it summarizes; expression lines
    compute their values from ``expression`` instead.
    """

    background: str
    indexes: List[int]
    level: int
    expression: Optional[HeaderExpression] = None
    value_index: int = 0


def _show_sums(show_sums: Sequence[bool], level: int) -> bool:
    return level < len(show_sums) and bool(show_sums[level])


def split_expressions(header: HeaderNode) -> Tuple[List[HeaderExpression], List[HeaderExpression]]:
    """Expressions rendered before and after ``header``."""
    before = [e for e in header.expressions if e.position == Position.BEFORE_HEADER]
    after = [e for e in header.expressions if e.position != Position.BEFORE_HEADER]
    return before, after


def direct_header_child_count(header: HeaderNode, level: int, show_sums: Sequence[bool], number_of_sums: int = 1) -> int:
    """Grid lines spanned by the header cell itself."""
    if header.children is not None:
        return sum(header_child_count(child, level + 1, show_sums, number_of_sums) for child in header.children)
    return 1


def header_block_count(header: HeaderNode, level: int, show_sums: Sequence[bool], number_of_sums: int = 1) -> int:
    """Lines of the header cell plus the subtotal of its children."""
    count = direct_header_child_count(header, level, show_sums, number_of_sums)
    if header.children is not None and _show_sums(show_sums, level + 1):
        count += number_of_sums
    return count


def header_child_count(header: HeaderNode, level: int, show_sums: Sequence[bool], number_of_sums: int = 1) -> int:
    """All lines reserved by ``header``, its own expressions included."""
    expressions = len(header.expressions) * number_of_sums
    return header_block_count(header, level, show_sums, number_of_sums) + expressions


def headers_child_count(headers: Sequence[HeaderNode], show_sums: Sequence[bool], number_of_sums: int = 1) -> int:
    count = sum(header_child_count(header, 0, show_sums, number_of_sums) for header in headers or [])
    return count + (number_of_sums if _show_sums(show_sums, 0) else 0)


def create_transformation_map(
    headers: Sequence[HeaderNode],
    show_sums: Sequence[bool],
    offset: int,
    number_of_sums: int,
    size: int = 0,
) -> List[Optional[int]]:
    """``result[target_index]`` is the grid line of that leaf, ``None`` if absent."""
    size = max(size, max(target_indexes_for_headers(list(headers)), default=-1) + 1)
    array: List[Optional[int]] = [None] * size
    _fill_transformation_map(headers, 0, offset, array, show_sums, number_of_sums)
    return array


def _fill_transformation_map(headers, level, position, array, show_sums, number_of_sums) -> None:
    for header in headers:
        before, after = split_expressions(header)
        position += len(before) * number_of_sums
        if header.children is not None:
            _fill_transformation_map(header.children, level + 1, position, array, show_sums, number_of_sums)
        elif header.target_index is not None:
            array[header.target_index] = position
        position += header_block_count(header, level, show_sums, number_of_sums) + len(after) * number_of_sums


def non_sticky_index(configs: Sequence[DimensionConfig], levels: int) -> int:
    """First level that scrolls; ``levels`` when every configured level is sticky."""
    if configs and all(config.sticky for config in configs):
        return levels
    return next((index for index, config in enumerate(configs) if not config.sticky), 0)


class PivotTableConverter:
    """Lays out pivot data as dense cell grids, one per stem."""

    def __init__(self):
        self._transform = PivotTransform()
        self._data = PivotStemData()
        self._values: List[List[Any]] = []
        self._data_resources: List[List[List[DataResource]]] = []
        self._value_type_infos: List[ValueTypeInfo] = []
        self._row_levels = 0
        self._column_levels = 0
        self._non_sticky_row_index = 0
        self._non_sticky_column_index = 0
        self._rows_transformation: List[Optional[int]] = []
        self._columns_transformation: List[Optional[int]] = []

    def create_tables(self, pivot_data: Optional[PivotData], transform: Optional[PivotTransform] = None) -> List[PivotTable]:
        if pivot_data is None:
            return [PivotTable()]

        self._transform = transform or PivotTransform()
        tables = []
        for index, stem_data in enumerate(pivot_data.data):
            if stem_data.is_empty():
                tables.append(PivotTable())
                continue
            self._update_data(stem_data)
            table = self._transform_data()
            logger.debug("Table %d laid out as %d x %d cells", index, table.rows_count, table.columns_count)
            tables.append(table)
        return tables

    def _update_data(self, data: PivotStemData) -> None:
        self._data, self._value_type_infos = prepare_pivot_data(data)
        self._values = data.values or []
        self._data_resources = data.data_resources or []
        self._row_levels = len(data.rows_config)
        self._column_levels = len(data.columns_config) + (1 if data.has_additional_column_level else 0)
        self._non_sticky_row_index = non_sticky_index(self._data.rows_config, self._row_levels)
        self._non_sticky_column_index = non_sticky_index(self._data.columns_config, self._column_levels)

        has_value = len(data.value_titles) > 0
        rows_size = len(self._values)
        columns_size = len(self._values[0]) if self._values else 0
        if self._data.row_headers:
            self._rows_transformation = create_transformation_map(
                self._data.row_headers, self._row_show_sums, self._column_levels, 1, rows_size
            )
        else:
            self._rows_transformation = [self._column_levels] if has_value else []

        if self._data.column_headers:
            self._columns_transformation = create_transformation_map(
                self._data.column_headers, self._column_show_sums, self._row_levels, self._number_of_sums, columns_size
            )
        else:
            self._columns_transformation = [self._row_levels] if has_value else []

    @property
    def _row_show_sums(self) -> List[bool]:
        return self._data.row_show_sums

    @property
    def _column_show_sums(self) -> List[bool]:
        return self._data.column_show_sums

    @property
    def _value_count(self) -> int:
        return len(self._data.value_titles)

    @property
    def _number_of_sums(self) -> int:
        return max(1, self._value_count)

    def _transform_data(self) -> PivotTable:
        cells = self._init_cells()
        row_groups: Dict[int, _HeaderGroup] = {}
        column_groups: Dict[int, _HeaderGroup] = {}
        self._fill_data_cells(cells)
        self._fill_cells_by_rows(cells, row_groups, self._data.row_headers, self._column_levels, 0)
        self._fill_cells_by_columns(cells, column_groups, self._data.column_headers, self._row_levels, 0)
        self._fill_cells_by_group_intersection(cells, row_groups, column_groups)
        return PivotTable(cells=cells)

    def _rows_count(self) -> int:
        if not self._data.row_headers and self._value_count > 0:
            return 1
        return headers_child_count(self._data.row_headers, self._row_show_sums)

    def _columns_count(self) -> int:
        if not self._data.column_headers and self._value_count > 0:
            return 1
        return headers_child_count(self._data.column_headers, self._column_show_sums, self._number_of_sums)

    def _init_cells(self) -> Cells:
        rows = self._rows_count() + self._column_levels
        columns = self._columns_count() + self._row_levels
        data_rows = {index for index in self._rows_transformation if index is not None}
        data_columns = {index for index in self._columns_transformation if index is not None}

        cells: Cells = [[None] * columns for _ in range(rows)]
        for i in range(self._column_levels, rows):
            for j in range(self._row_levels, columns):
                cells[i][j] = Cell(
                    value="",
                    data_resources=[],
                    css_class=DATA_CLASS if i in data_rows and j in data_columns else GROUP_DATA_CLASS,
                    is_value=True,
                )

        if self._row_levels > 0 and self._column_levels > 0:
            for j in range(self._row_levels):
                attributes = self._data.row_header_attributes
                attribute = attributes[j] if j < len(attributes) else None
                if attribute:
                    self._fill_row_attribute_header(cells, j, attribute.title, attribute.color)
                else:
                    for i in range(self._column_levels):
                        cells[i][j] = Cell(
                            value="",
                            css_class=EMPTY_CLASS,
                            sticky_start=self._is_row_level_sticky(j),
                            sticky_top=self._is_column_level_sticky(i),
                            is_header=False,
                        )
        return cells

    def _fill_row_attribute_header(self, cells: Cells, column: int, title: str, color: Optional[str]) -> None:
        title_row_span = self._non_sticky_column_index or self._column_levels
        cells[0][column] = Cell(
            value=title,
            css_class=ROW_ATTRIBUTE_HEADER_CLASS,
            is_attribute_header=True,
            row_span=title_row_span,
            sticky_top=self._is_column_level_sticky(0),
            sticky_start=self._is_row_level_sticky(column),
            background=color,
        )
        if self._column_levels - title_row_span > 0:
            cells[self._non_sticky_column_index][column] = Cell(
                value="",
                css_class=ROW_ATTRIBUTE_HEADER_CLASS,
                is_attribute_header=True,
                row_span=self._column_levels - title_row_span,
                background=color,
                sticky_start=self._is_row_level_sticky(column),
            )

    def _is_row_level_sticky(self, level: int) -> bool:
        configs = self._data.rows_config
        return level < len(configs) and configs[level].sticky

    def _is_column_level_sticky(self, level: int) -> bool:
        configs = self._data.columns_config
        if not configs:
            return False
        return configs[min(level, len(configs) - 1)].sticky

    def _fill_cells_by_rows(
        self,
        cells: Cells,
        row_groups: Dict[int, _HeaderGroup],
        headers: List[HeaderNode],
        start_index: int,
        level: int,
        parent_header: Optional[HeaderNode] = None,
    ) -> List[int]:
        """Fill one sibling set; returns the grid rows of the headers placed."""
        current_index = start_index
        header_rows = []
        for header in headers:
            before, after = split_expressions(header)
            for expression in before:
                self._fill_expression_row(cells, row_groups, expression, current_index, level)
                current_index += 1

            header_rows.append(current_index)
            cell = Cell(
                value=self._transform.row_header(header.title, level),
                css_class=ROW_HEADER_CLASS,
                is_header=True,
                sticky_start=self._is_row_level_sticky(level),
                row_span=direct_header_child_count(header, level, self._row_show_sums),
                background=header_background(header.color, level),
                constraint=header.constraint,
                label=header.attribute_name,
                expandable=True,
            )
            cells[current_index][level] = cell
            if header.children is not None:
                cell.child_indexes = self._fill_cells_by_rows(
                    cells, row_groups, header.children, current_index, level + 1, header
                )
            else:
                cell.child_indexes = [current_index]

            current_index += header_block_count(header, level, self._row_show_sums)
            for expression in after:
                self._fill_expression_row(cells, row_groups, expression, current_index, level)
                current_index += 1

        if _show_sums(self._row_show_sums, level):
            title, summary = self._transform.summary_header(parent_header, level)
            background = summary_background(level)
            self._split_row_group_header(
                cells, max(level - 1, 0), current_index, background, summary, [],
                title=title,
                constraint=parent_header.constraint if parent_header else None,
                label=parent_header.attribute_name if parent_header else None,
            )
            rows = target_indexes_for_headers(headers)
            row_groups[current_index] = _HeaderGroup(background, rows, level)
            self._fill_cells_for_grouped_row(cells, rows, current_index, background)

        return header_rows

    def _split_row_group_header(
        self,
        cells: Cells,
        column: int,
        row: int,
        background: str,
        summary: Optional[str],
        row_indexes: List[int],
        title: Optional[str] = None,
        constraint: Optional[Constraint] = None,
        label: Optional[str] = None,
        expandable: bool = False,
    ) -> None:
        col_span = self._row_levels - column
        sticky_start = self._is_row_level_sticky(column)

        # the frozen part must not reach into the scrolling columns
        if sticky_start and 0 < self._non_sticky_row_index < self._row_levels and col_span > 1:
            new_col_span = self._non_sticky_row_index - column
            cells[row][self._non_sticky_row_index] = Cell(
                css_class=ROW_GROUP_HEADER_CLASS,
                is_summary=True,
                col_span=col_span - new_col_span,
                background=background,
            )
            col_span = new_col_span

        cells[row][column] = Cell(
            value=title,
            constraint=constraint,
            label=label,
            css_class=ROW_GROUP_HEADER_CLASS,
            is_summary=True,
            sticky_start=sticky_start,
            col_span=col_span,
            background=background,
            summary=summary,
            row_indexes=row_indexes,
            expandable=expandable,
        )

    def _fill_expression_row(
        self,
        cells: Cells,
        row_groups: Dict[int, _HeaderGroup],
        expression: HeaderExpression,
        row_in_cells: int,
        level: int,
    ) -> None:
        background = summary_background(level)
        operand_rows = self._expression_rows(expression)
        for column, column_in_cells in enumerate(self._columns_transformation):
            if column_in_cells is None:
                continue
            value = self._evaluate_row_expression(expression, [column])
            cells[row_in_cells][column_in_cells] = Cell(
                value=self._format_by_constraint(value, self._value_index([column])),
                data_resources=self._grouped_resources(operand_rows, [column]),
                css_class=GROUP_DATA_CLASS,
                background=background,
                is_value=True,
            )

        row_indexes = {index for index in self._transform_rows(operand_rows)}
        row_indexes.add(row_in_cells)
        self._split_row_group_header(
            cells, level, row_in_cells, background, expression.title, sorted(row_indexes),
            expandable=expression.expandable,
        )
        row_groups[row_in_cells] = _HeaderGroup(background, [], level, expression)

    def _fill_cells_for_grouped_row(self, cells: Cells, rows: List[int], row_in_cells: int, background: str) -> None:
        for column, column_in_cells in enumerate(self._columns_transformation):
            if column_in_cells is not None:
                cells[row_in_cells][column_in_cells] = self._grouped_cell(rows, [column], background)

    def _fill_cells_by_columns(
        self,
        cells: Cells,
        column_groups: Dict[int, _HeaderGroup],
        headers: List[HeaderNode],
        start_index: int,
        level: int,
        parent_header: Optional[HeaderNode] = None,
    ) -> None:
        number_of_sums = self._number_of_sums
        current_index = start_index
        for header in headers:
            before, after = split_expressions(header)
            for expression in before:
                self._fill_expression_column(cells, column_groups, expression, current_index, level)
                current_index += number_of_sums

            cells[level][current_index] = Cell(
                value=self._transform.column_header(header.title, level),
                css_class=COLUMN_HEADER_CLASS,
                is_header=True,
                col_span=direct_header_child_count(header, level, self._column_show_sums, number_of_sums),
                sticky_top=self._is_column_level_sticky(level),
                background=header_background(header.color, level),
                constraint=header.constraint,
                label=header.attribute_name,
            )
            if header.children is not None:
                self._fill_cells_by_columns(cells, column_groups, header.children, current_index, level + 1, header)

            current_index += header_block_count(header, level, self._column_show_sums, number_of_sums)
            for expression in after:
                self._fill_expression_column(cells, column_groups, expression, current_index, level)
                current_index += number_of_sums

        if _show_sums(self._column_show_sums, level):
            background = summary_background(level)
            title, summary = self._transform.summary_header(parent_header, level)
            self._set_column_group_header(
                cells, max(level - 1, 0), current_index, background, level, summary,
                title=title,
                constraint=parent_header.constraint if parent_header else None,
                label=parent_header.attribute_name if parent_header else None,
            )

            if self._value_count > 0:
                columns = target_indexes_for_headers(headers)
                for i in range(self._value_count):
                    column_in_cells = current_index + i
                    self._set_value_title_header(cells, column_in_cells, i, background, level)
                    value_columns = [index for index in columns if index % self._value_count == i]
                    column_groups[column_in_cells] = _HeaderGroup(background, value_columns, level, value_index=i)
                    self._fill_cells_for_grouped_column(cells, value_columns, column_in_cells, background)
            else:
                column_groups[current_index] = _HeaderGroup(background, [], level)

    def _set_column_group_header(
        self,
        cells: Cells,
        row: int,
        column: int,
        background: str,
        level: int,
        summary: Optional[str],
        title: Optional[str] = None,
        constraint: Optional[Constraint] = None,
        label: Optional[str] = None,
    ) -> None:
        row_span = self._column_levels - row - (1 if self._value_count > 1 else 0)
        sticky_top = self._is_column_level_sticky(level)
        non_sticky = self._non_sticky_column_index

        if sticky_top and 0 < non_sticky < self._column_levels and row < non_sticky < row + row_span:
            cells[non_sticky][column] = Cell(
                css_class=COLUMN_GROUP_HEADER_CLASS,
                is_summary=True,
                row_span=row + row_span - non_sticky,
                col_span=self._number_of_sums,
                background=background,
            )
            row_span = non_sticky - row

        cells[row][column] = Cell(
            value=title,
            constraint=constraint,
            label=label,
            css_class=COLUMN_GROUP_HEADER_CLASS,
            is_summary=True,
            sticky_top=sticky_top,
            row_span=row_span,
            col_span=self._number_of_sums,
            background=background,
            summary=summary,
        )

    def _set_value_title_header(self, cells: Cells, column: int, value_index: int, background: str, level: int) -> None:
        if self._value_count <= 1:
            return
        cells[self._column_levels - 1][column] = Cell(
            value=self._data.value_titles[value_index],
            css_class=COLUMN_GROUP_HEADER_CLASS,
            is_summary=True,
            sticky_top=self._is_column_level_sticky(level),
            background=background,
        )

    def _fill_expression_column(
        self,
        cells: Cells,
        column_groups: Dict[int, _HeaderGroup],
        expression: HeaderExpression,
        column_in_cells: int,
        level: int,
    ) -> None:
        background = summary_background(level)
        self._set_column_group_header(cells, level, column_in_cells, background, level, expression.title)
        for i in range(self._number_of_sums):
            self._set_value_title_header(cells, column_in_cells + i, i, background, level)
            group = _HeaderGroup(background, [], level, expression, value_index=i)
            column_groups[column_in_cells + i] = group
            columns = self._group_columns(group)
            for row, row_in_cells in enumerate(self._rows_transformation):
                if row_in_cells is None:
                    continue
                cells[row_in_cells][column_in_cells + i] = Cell(
                    value=self._format_by_constraint(self._column_group_value([row], group), i),
                    data_resources=self._grouped_resources([row], columns),
                    css_class=GROUP_DATA_CLASS,
                    background=background,
                    is_value=True,
                )

    def _fill_cells_for_grouped_column(
        self, cells: Cells, columns: List[int], column_in_cells: int, background: str
    ) -> None:
        for row, row_in_cells in enumerate(self._rows_transformation):
            if row_in_cells is not None:
                cells[row_in_cells][column_in_cells] = self._grouped_cell([row], columns, background)

    def _fill_data_cells(self, cells: Cells) -> None:
        for row, row_in_cells in enumerate(self._rows_transformation):
            if row_in_cells is None:
                continue
            for column, column_in_cells in enumerate(self._columns_transformation):
                if column_in_cells is None:
                    continue
                cells[row_in_cells][column_in_cells] = Cell(
                    value=self._format_leaf_value(_matrix_value(self._data.values, row, column), column),
                    data_resources=list(_matrix_value(self._data_resources, row, column) or []),
                    css_class=DATA_CLASS,
                    is_value=True,
                )

    def _grouped_cell(self, rows: List[int], columns: List[int], background: Optional[str]) -> Cell:
        value = self._aggregate_raw(rows, columns)
        return Cell(
            value=self._format_grouped_value(value, rows, columns),
            data_resources=self._grouped_resources(rows, columns),
            css_class=GROUP_DATA_CLASS,
            background=background,
            is_value=True,
        )

    def _grouped_values(self, rows: Sequence[int], columns: Sequence[int]) -> List[Any]:
        return list(flatten_values(_matrix_value(self._values, row, column) for row in rows for column in columns))

    def _grouped_resources(self, rows: Sequence[int], columns: Sequence[int]) -> List[DataResource]:
        return [
            resource
            for row in rows
            for column in columns
            for resource in (_matrix_value(self._data_resources, row, column) or [])
        ]

    def _value_index(self, columns: Sequence[int]) -> int:
        if not columns or not self._value_count:
            return 0
        return columns[0] % self._value_count

    def _aggregation(self, value_index: int) -> AggregationType:
        aggregations = self._data.value_aggregations
        aggregation = aggregations[value_index] if value_index < len(aggregations) else None
        return aggregation if is_value_aggregation(aggregation) else AggregationType.SUM

    def _value_type(self, value_index: int) -> Optional[ValueType]:
        value_types = self._data.value_types
        return value_types[value_index] if value_index < len(value_types) else None

    def _value_constraint(self, value_index: int) -> Optional[Constraint]:
        constraints = self._data.values_constraints
        constraint = constraints[value_index] if value_index < len(constraints) else None
        if constraint:
            return constraint
        info = self._value_type_infos[value_index] if value_index < len(self._value_type_infos) else None
        return info.default_constraint if info else None

    def _aggregate_raw(self, rows: Sequence[int], columns: Sequence[int]) -> Any:
        value_index = self._value_index(columns)
        aggregation = self._aggregation(value_index)
        values = self._grouped_values(rows, columns)
        if aggregation == AggregationType.JOIN:
            return aggregate_values(aggregation, values, self._value_constraint(value_index))
        return aggregate_values(aggregation, values)

    def _format_by_constraint(self, value: Any, value_index: int) -> str:
        constraint = self._value_constraint(value_index) or UNKNOWN_CONSTRAINT
        return constraint.format(value)

    def _format_leaf_value(self, value: Any, column: int) -> str:
        value_index = self._value_index([column])
        if self._aggregation(value_index) == AggregationType.JOIN:
            return join_values([value], self._value_constraint(value_index))
        if is_percentage(self._value_type(value_index)):
            return PERCENTAGE_CONSTRAINT.format(value)
        return self._format_by_constraint(value, value_index)

    def _format_grouped_value(self, value: Any, rows: Sequence[int], columns: Sequence[int]) -> str:
        value_index = self._value_index(columns)
        if self._aggregation(value_index) == AggregationType.JOIN:
            return value
        info = self._value_type_infos[value_index] if value_index < len(self._value_type_infos) else None
        if info is None:
            return self._format_by_constraint(value, value_index)

        match self._value_type(value_index):
            case ValueType.ALL_PERCENTAGE:
                divider = info.sum
            case ValueType.COLUMN_PERCENTAGE:
                divider = aggregate_values(AggregationType.SUM, [info.sums_columns.get(c) for c in columns])
            case ValueType.ROW_PERCENTAGE:
                divider = aggregate_values(AggregationType.SUM, [info.sums_rows.get(r) for r in rows])
            case _:
                return self._format_by_constraint(value, value_index)
        return PERCENTAGE_CONSTRAINT.format(divide_values(value, divider))

    def _expression_rows(self, expression: HeaderExpression) -> List[int]:
        return target_indexes_for_headers([h for operand in header_operands(expression) for h in operand.headers])

    def _operand_columns(self, operand: HeaderSetOperand, value_index: int) -> List[int]:
        columns = target_indexes_for_headers(operand.headers)
        if not self._value_count:
            return columns
        return [column for column in columns if column % self._value_count == value_index]

    def _group_columns(self, group: _HeaderGroup) -> List[int]:
        if group.expression is None:
            return group.indexes
        columns: List[int] = []
        for operand in header_operands(group.expression):
            columns.extend(c for c in self._operand_columns(operand, group.value_index) if c not in columns)
        return columns

    def _evaluate_row_expression(self, expression: HeaderExpression, columns: Sequence[int]) -> Any:
        return evaluate_expression(
            expression, lambda operand: self._aggregate_raw(target_indexes_for_headers(operand.headers), columns)
        )

    def _column_group_value(self, rows: Sequence[int], group: _HeaderGroup) -> Any:
        """Value of ``rows`` under a subtotal or expression column."""
        if group.expression is None:
            return self._aggregate_raw(rows, group.indexes)
        return evaluate_expression(
            group.expression, lambda operand: self._aggregate_raw(rows, self._operand_columns(operand, group.value_index))
        )

    def _transform_rows(self, rows: Sequence[int]) -> List[int]:
        transformation = self._rows_transformation
        return [transformation[row] for row in rows if row < len(transformation) and transformation[row] is not None]

    def _fill_cells_by_group_intersection(
        self,
        cells: Cells,
        row_groups: Dict[int, _HeaderGroup],
        column_groups: Dict[int, _HeaderGroup],
    ) -> None:
        for row, row_group in row_groups.items():
            for column, column_group in column_groups.items():
                columns = self._group_columns(column_group)
                if row_group.expression is not None:
                    value = evaluate_expression(
                        row_group.expression,
                        lambda operand: self._column_group_value(target_indexes_for_headers(operand.headers),
                                                                 column_group),
                    )
                    formatted = self._format_by_constraint(value, column_group.value_index)
                    resources = self._grouped_resources(self._expression_rows(row_group.expression), columns)
                elif column_group.expression is not None:
                    value = self._column_group_value(row_group.indexes, column_group)
                    formatted = self._format_by_constraint(value, column_group.value_index)
                    resources = self._grouped_resources(row_group.indexes, columns)
                else:
                    value = self._aggregate_raw(row_group.indexes, columns)
                    formatted = self._format_grouped_value(value, row_group.indexes, columns)
                    resources = self._grouped_resources(row_group.indexes, columns)

                cells[row][column] = Cell(
                    value=formatted,
                    data_resources=resources,
                    css_class=GROUP_DATA_CLASS,
                    is_value=True,
                )

        for row, row_group in row_groups.items():
            for column in range(self._row_levels, len(cells[row])):
                if cells[row][column] is not None:
                    cells[row][column].background = row_group.background

        for column, column_group in column_groups.items():
            for row in range(self._column_levels, len(cells)):
                row_group = row_groups.get(row)
                if (row_group is None or row_group.level > column_group.level) and cells[row][column] is not None:
                    cells[row][column].background = column_group.background


def _matrix_value(matrix: Sequence[Sequence[Any]], row: int, column: int) -> Any:
    if row < len(matrix) and column < len(matrix[row]):
        return matrix[row][column]
    return None
