"""
Pivot data model.

Inputs (``Resource``, ``DataResource``, aggregated maps) and the normalized
pivot model (``HeaderNode`` trees plus dense matrices) exchanged between the
builder, the augmenter and the layout engine.

Header trees and the ``values`` / ``data_resources`` matrices never point at
each other: a leaf header owns an integer ``target_index`` into the matrix and
that is the only link.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .config import (
    AggregationType,
    ExpressionOperation,
    PivotSort,
    PivotExpression,
    Position,
    ResourceType,
    ValueOperand,
    ValueType,
)
from .constraint import Constraint


@dataclass
class Attribute:
    id: str
    name: str = ""
    constraint: Optional[Constraint] = None


@dataclass
class Resource:
    """A collection or link type: a named set of attributes with a color."""

    id: str
    type: ResourceType = ResourceType.COLLECTION
    name: str = ""
    color: Optional[str] = None
    attributes: List[Attribute] = field(default_factory=list)

    def attribute(self, attribute_id: str) -> Optional[Attribute]:
        return next((a for a in self.attributes if a.id == attribute_id), None)


@dataclass
class DataResource:
    """One record: its id, the resource it belongs to and its field values."""

    id: str
    resource_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    resource_type: ResourceType = ResourceType.COLLECTION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "resource_type": self.resource_type.value,
            "data": dict(self.data),
        }


@dataclass
class PivotInputData:
    """Records available to the builder.

    ``records_by_stems[i]`` holds the records of the i-th stem; records used by
    value-only stems are looked up in ``unique_records``.
    """

    records_by_stems: List[List[DataResource]] = field(default_factory=list)

    @property
    def unique_records(self) -> List[DataResource]:
        seen = set()
        result = []
        for records in self.records_by_stems:
            for record in records:
                key = (record.resource_type, record.resource_id, record.id)
                if key not in seen:
                    seen.add(key)
                    result.append(record)
        return result


@dataclass
class AggregatedDataValues:
    """Records of one resource that fell into one grouping cell."""

    resource_id: str
    resource_type: ResourceType
    objects: List[DataResource] = field(default_factory=list)


# Nested mapping: group key -> nested mapping, or a list at the innermost level.
AggregatedMap = Dict[str, Union["AggregatedMap", List[AggregatedDataValues]]]


@dataclass
class AggregatedMapData:
    map: AggregatedMap = field(default_factory=dict)
    columns_map: AggregatedMap = field(default_factory=dict)
    row_levels: int = 0
    column_levels: int = 0


@dataclass
class HeaderSetOperand:
    """Header operand resolved to the sibling headers its pattern matched."""

    value: str
    headers: List["HeaderNode"] = field(default_factory=list)
    type: str = field(default="header", init=False)


@dataclass
class HeaderExpression:
    """A ``PivotExpression`` resolved against one sibling set."""

    operation: ExpressionOperation
    operands: List[Union[HeaderSetOperand, ValueOperand, "HeaderExpression"]] = field(default_factory=list)
    title: str = ""
    position: Position = Position.AFTER_HEADER
    expandable: bool = False
    type: str = field(default="expression", init=False)


@dataclass
class HeaderNode:
    title: str
    color: Optional[str] = None
    children: Optional[List["HeaderNode"]] = None
    target_index: Optional[int] = None
    is_value_header: bool = False
    constraint: Optional[Constraint] = None
    attribute_name: Optional[str] = None
    expressions: List[HeaderExpression] = field(default_factory=list)


@dataclass
class HeaderAttribute:
    """Label shown above a row header column."""

    title: str
    color: Optional[str] = None


@dataclass
class DimensionConfig:
    """Display options of one row or column level."""

    show_sums: bool = False
    sticky: bool = False
    sort: Optional[PivotSort] = None
    expressions: List[PivotExpression] = field(default_factory=list)


@dataclass
class PivotStemData:
    row_headers: List[HeaderNode] = field(default_factory=list)
    column_headers: List[HeaderNode] = field(default_factory=list)
    value_titles: List[str] = field(default_factory=list)
    values: List[List[Any]] = field(default_factory=list)
    data_resources: List[List[List[DataResource]]] = field(default_factory=list)
    row_header_attributes: List[Optional[HeaderAttribute]] = field(default_factory=list)
    column_header_attributes: List[Optional[HeaderAttribute]] = field(default_factory=list)
    values_constraints: List[Optional[Constraint]] = field(default_factory=list)
    value_types: List[ValueType] = field(default_factory=list)
    value_aggregations: List[AggregationType] = field(default_factory=list)
    rows_config: List[DimensionConfig] = field(default_factory=list)
    columns_config: List[DimensionConfig] = field(default_factory=list)
    has_additional_column_level: bool = False

    @property
    def row_show_sums(self) -> List[bool]:
        return [config.show_sums for config in self.rows_config]

    @property
    def column_show_sums(self) -> List[bool]:
        return [config.show_sums for config in self.columns_config]

    @property
    def row_sticky(self) -> List[bool]:
        return [config.sticky for config in self.rows_config]

    @property
    def column_sticky(self) -> List[bool]:
        return [config.sticky for config in self.columns_config]

    @property
    def row_sorts(self) -> List[Optional[PivotSort]]:
        return [config.sort for config in self.rows_config]

    @property
    def column_sorts(self) -> List[Optional[PivotSort]]:
        return [config.sort for config in self.columns_config]

    def is_empty(self) -> bool:
        return not self.row_headers and not self.column_headers


@dataclass
class PivotData:
    data: List[PivotStemData] = field(default_factory=list)
    merge_tables: bool = True
    able_to_merge: bool = True


def target_indexes_for_header(header: HeaderNode) -> List[int]:
    if header.children is not None:
        return [index for child in header.children for index in target_indexes_for_header(child)]
    return [header.target_index] if header.target_index is not None else []


def target_indexes_for_headers(headers: List[HeaderNode]) -> List[int]:
    """Leaf target indexes below ``headers`` in tree order, without duplicates."""
    seen = set()
    result = []
    for header in headers or []:
        for index in target_indexes_for_header(header):
            if index not in seen:
                seen.add(index)
                result.append(index)
    return result
