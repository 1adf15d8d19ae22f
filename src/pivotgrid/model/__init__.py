"""
Pivot model.

- config: user configuration (stems, attributes, sorts, expressions)
- constraint: value-format descriptors
- data: input records and the normalized pivot model
- table: the laid-out cell grid
- transform: optional formatting callbacks
"""

from .config import (
    CONFIG_VERSION,
    AggregationType,
    ExpressionOperation,
    HeaderOperand,
    Operand,
    PivotAttribute,
    PivotConfig,
    PivotExpression,
    PivotSort,
    PivotSortList,
    PivotSortValue,
    Position,
    ResourceType,
    RowColumnAttribute,
    StemConfig,
    ValueAttribute,
    ValueOperand,
    ValueType,
    create_default_pivot_config,
    is_pivot_config_changed,
    operand_from_dict,
    pivot_config_is_empty,
)
from .constraint import (
    DECIMAL_CONSTRAINT,
    NUMBER_CONSTRAINT,
    PERCENTAGE_CONSTRAINT,
    UNKNOWN_CONSTRAINT,
    Constraint,
    ConstraintType,
    format_number,
    is_missing,
    to_number,
)
from .data import (
    AggregatedDataValues,
    AggregatedMapData,
    Attribute,
    DataResource,
    DimensionConfig,
    HeaderAttribute,
    HeaderExpression,
    HeaderNode,
    HeaderSetOperand,
    PivotData,
    PivotInputData,
    PivotStemData,
    Resource,
    target_indexes_for_header,
    target_indexes_for_headers,
)
from .table import Cell, PivotTable
from .transform import PivotTransform, SummaryHeader

__all__ = [
    "CONFIG_VERSION",
    "AggregationType",
    "ExpressionOperation",
    "HeaderOperand",
    "Operand",
    "PivotAttribute",
    "PivotConfig",
    "PivotExpression",
    "PivotSort",
    "PivotSortList",
    "PivotSortValue",
    "Position",
    "ResourceType",
    "RowColumnAttribute",
    "StemConfig",
    "ValueAttribute",
    "ValueOperand",
    "ValueType",
    "create_default_pivot_config",
    "is_pivot_config_changed",
    "operand_from_dict",
    "pivot_config_is_empty",
    "DECIMAL_CONSTRAINT",
    "NUMBER_CONSTRAINT",
    "PERCENTAGE_CONSTRAINT",
    "UNKNOWN_CONSTRAINT",
    "Constraint",
    "ConstraintType",
    "format_number",
    "is_missing",
    "to_number",
    "AggregatedDataValues",
    "AggregatedMapData",
    "Attribute",
    "DataResource",
    "DimensionConfig",
    "HeaderAttribute",
    "HeaderExpression",
    "HeaderNode",
    "HeaderSetOperand",
    "PivotData",
    "PivotInputData",
    "PivotStemData",
    "Resource",
    "target_indexes_for_header",
    "target_indexes_for_headers",
    "Cell",
    "PivotTable",
    "PivotTransform",
    "SummaryHeader",
]
