"""
pivotgrid - A pivot table engine that turns records into laid-out cell grids.

Records are grouped by row and column attributes into header trees and a dense
matrix of aggregated values. The matrix is then sorted, augmented with derived
expression rows and columns, and flattened into a grid of typed cells with
subtotals, sticky regions and expand/collapse support.

Usage:
    >>> from pivotgrid import Attribute, RowColumnAttribute, StemConfig, ValueAttribute, pivot_records
    >>> config = StemConfig(
    ...     row_attributes=[RowColumnAttribute("region", show_sums=True)],
    ...     value_attributes=[ValueAttribute("amount")],
    ... )
    >>> result = pivot_records(records, [Attribute("region"), Attribute("amount")], config)
    >>> table = result.tables[0]

Key components:
- PivotDataConverter: builds header trees and value matrices from a config
- PivotTableConverter: lays out pivot data as cell grids
- state: expand/collapse overlay and visible-row filtering
"""

from .builder import PivotDataConverter, RecordAggregator
from .exceptions import *
from .layout import PivotTableConverter
from .model import (
    AggregationType,
    Attribute,
    Cell,
    Constraint,
    ConstraintType,
    DataResource,
    ExpressionOperation,
    HeaderOperand,
    PivotAttribute,
    PivotConfig,
    PivotData,
    PivotExpression,
    PivotInputData,
    PivotSort,
    PivotSortList,
    PivotSortValue,
    PivotStemData,
    PivotTable,
    PivotTransform,
    Position,
    Resource,
    RowColumnAttribute,
    StemConfig,
    ValueAttribute,
    ValueOperand,
    ValueType,
)
from .pipeline import PivotResult, create_pivot_data, create_tables, pivot_records
from .state import (
    CellActivatedEvent,
    PivotTableState,
    activate_cell,
    collapse_all_cells,
    filter_visible_cells,
    toggle_expanded,
    toggle_expanded_state,
)

# Version
__version__ = "0.1.0"

__all__ = [
    'create_pivot_data',
    'create_tables',
    'pivot_records',
    'PivotResult',
    'PivotDataConverter',
    'PivotTableConverter',
    'RecordAggregator',
    'AggregationType',
    'Attribute',
    'Cell',
    'Constraint',
    'ConstraintType',
    'DataResource',
    'ExpressionOperation',
    'HeaderOperand',
    'PivotAttribute',
    'PivotConfig',
    'PivotData',
    'PivotExpression',
    'PivotInputData',
    'PivotSort',
    'PivotSortList',
    'PivotSortValue',
    'PivotStemData',
    'PivotTable',
    'PivotTransform',
    'Position',
    'Resource',
    'RowColumnAttribute',
    'StemConfig',
    'ValueAttribute',
    'ValueOperand',
    'ValueType',
    'CellActivatedEvent',
    'PivotTableState',
    'activate_cell',
    'collapse_all_cells',
    'filter_visible_cells',
    'toggle_expanded',
    'toggle_expanded_state',
    'PivotGridError',
    'ConfigValidationError',
    'UnsupportedAggregationError',
]
