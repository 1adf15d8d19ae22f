"""
Pivot configuration model.

A ``PivotConfig`` holds one ``StemConfig`` per query stem. Each stem lists the
attributes grouped into rows, the attributes grouped into columns and the
value attributes aggregated into cells. Row and column attributes carry
per-level display options (subtotals, sticky, sort, expressions).

Expression operands form a tagged union keyed by their ``type`` field:
``HeaderOperand`` ("header"), ``ValueOperand`` ("value") and a nested
``PivotExpression`` ("expression").

All classes round-trip through ``to_dict()`` / ``from_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..exceptions import ConfigValidationError
from .constraint import Constraint

CONFIG_VERSION = "1"


class ResourceType(str, Enum):
    COLLECTION = "collection"
    LINK_TYPE = "linkType"


class AggregationType(str, Enum):
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"
    COUNT = "count"
    UNIQUE = "unique"
    MEDIAN = "median"
    JOIN = "join"


class ValueType(str, Enum):
    DEFAULT = "default"
    COLUMN_PERCENTAGE = "column"
    ROW_PERCENTAGE = "row"
    ALL_PERCENTAGE = "all"


class ExpressionOperation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"


class Position(str, Enum):
    BEFORE_HEADER = "beforeHeader"
    AFTER_HEADER = "afterHeader"
    STICK_TO_END = "stickToEnd"


def _enum(enum_cls, value, default=None):
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ConfigValidationError(f"Unknown {enum_cls.__name__} value: {value!r}") from e


@dataclass
class HeaderOperand:
    """Operand matching sibling headers whose title contains ``value`` (regex)."""

    value: str
    type: str = field(default="header", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "value": self.value}


@dataclass
class ValueOperand:
    """Literal numeric operand."""

    value: float
    type: str = field(default="value", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "value": self.value}


@dataclass
class PivotExpression:
    """User-defined derived row or column.

    Attributes:
        operation: Operator folded over the operands
        operands: Header references, literals or nested expressions
        title: Label shown in the expression's header cell
        position: Where the derived row/column is rendered among its siblings
        expandable: Whether the expression row can collapse the rows it references
    """

    operation: ExpressionOperation
    operands: List["Operand"] = field(default_factory=list)
    title: str = ""
    position: Position = Position.AFTER_HEADER
    expandable: bool = False
    type: str = field(default="expression", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "operation": self.operation.value,
            "operands": [operand.to_dict() for operand in self.operands],
            "title": self.title,
            "position": self.position.value,
            "expandable": self.expandable,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PivotExpression":
        if "operation" not in data:
            raise ConfigValidationError("Expression dict must have 'operation' field")
        return cls(
            operation=_enum(ExpressionOperation, data["operation"]),
            operands=[operand_from_dict(operand) for operand in data.get("operands") or []],
            title=data.get("title", ""),
            position=_enum(Position, data.get("position"), Position.AFTER_HEADER),
            expandable=bool(data.get("expandable", False)),
        )


Operand = Union[HeaderOperand, ValueOperand, PivotExpression]


def operand_from_dict(data: Dict[str, Any]) -> Operand:
    operand_type = data.get("type")
    match operand_type:
        case "header":
            return HeaderOperand(value=str(data.get("value", "")))
        case "value":
            return ValueOperand(value=data.get("value", 0))
        case "expression":
            return PivotExpression.from_dict(data)
        case _:
            raise ConfigValidationError(f"Unknown expression operand type: {operand_type!r}")


@dataclass
class PivotSortValue:
    title: str
    is_summary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "is_summary": self.is_summary}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PivotSortValue":
        return cls(title=data.get("title", ""), is_summary=bool(data.get("is_summary", False)))


@dataclass
class PivotSortList:
    """Sorts a level by the values found under a path of other-side headers.

    ``values`` walks the opposite header tree title by title; an entry with
    ``is_summary`` set stops the walk and uses the subtotal of the headers
    reached so far.
    """

    value_title: str
    values: List[PivotSortValue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"value_title": self.value_title, "values": [v.to_dict() for v in self.values]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PivotSortList":
        return cls(
            value_title=data.get("value_title", ""),
            values=[PivotSortValue.from_dict(v) for v in data.get("values") or []],
        )


@dataclass
class PivotSort:
    asc: bool = True
    values_list: Optional[PivotSortList] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"asc": self.asc}
        if self.values_list is not None:
            result["values_list"] = self.values_list.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PivotSort":
        values_list = data.get("values_list")
        return cls(
            asc=bool(data.get("asc", True)),
            values_list=PivotSortList.from_dict(values_list) if values_list else None,
        )


@dataclass
class PivotAttribute:
    """Reference to one field of one resource (collection or link type)."""

    attribute_id: str
    resource_id: str = ""
    resource_type: ResourceType = ResourceType.COLLECTION
    resource_index: int = 0
    constraint: Optional[Constraint] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "attribute_id": self.attribute_id,
            "resource_id": self.resource_id,
            "resource_type": self.resource_type.value,
            "resource_index": self.resource_index,
        }
        if self.constraint is not None:
            result["constraint"] = self.constraint.to_dict()
        return result

    @classmethod
    def _base_kwargs(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        if not data.get("attribute_id"):
            raise ConfigValidationError("Pivot attribute must have 'attribute_id' field")
        constraint = data.get("constraint")
        try:
            constraint = Constraint.from_dict(constraint) if constraint else None
        except ValueError as e:
            raise ConfigValidationError(f"Invalid attribute constraint: {e}") from e
        return {
            "attribute_id": data["attribute_id"],
            "resource_id": data.get("resource_id", ""),
            "resource_type": _enum(ResourceType, data.get("resource_type"), ResourceType.COLLECTION),
            "resource_index": int(data.get("resource_index", 0)),
            "constraint": constraint,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PivotAttribute":
        return cls(**cls._base_kwargs(data))

    def is_same_field(self, other: "PivotAttribute") -> bool:
        return (
            self.attribute_id == other.attribute_id
            and self.resource_id == other.resource_id
            and self.resource_type == other.resource_type
        )


@dataclass
class RowColumnAttribute(PivotAttribute):
    show_sums: bool = False
    sticky: bool = False
    sort: Optional[PivotSort] = None
    expressions: List[PivotExpression] = field(default_factory=list)
    show_header: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({
            "show_sums": self.show_sums,
            "sticky": self.sticky,
            "show_header": self.show_header,
            "expressions": [e.to_dict() for e in self.expressions],
        })
        if self.sort is not None:
            result["sort"] = self.sort.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RowColumnAttribute":
        sort = data.get("sort")
        return cls(
            **cls._base_kwargs(data),
            show_sums=bool(data.get("show_sums", False)),
            sticky=bool(data.get("sticky", False)),
            sort=PivotSort.from_dict(sort) if sort else None,
            expressions=[PivotExpression.from_dict(e) for e in data.get("expressions") or []],
            show_header=bool(data.get("show_header", False)),
        )


@dataclass
class ValueAttribute(PivotAttribute):
    aggregation: AggregationType = AggregationType.SUM
    value_type: ValueType = ValueType.DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["aggregation"] = self.aggregation.value
        result["value_type"] = self.value_type.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValueAttribute":
        return cls(
            **cls._base_kwargs(data),
            aggregation=_enum(AggregationType, data.get("aggregation"), AggregationType.SUM),
            value_type=_enum(ValueType, data.get("value_type"), ValueType.DEFAULT),
        )


@dataclass
class StemConfig:
    row_attributes: List[RowColumnAttribute] = field(default_factory=list)
    column_attributes: List[RowColumnAttribute] = field(default_factory=list)
    value_attributes: List[ValueAttribute] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.row_attributes or self.column_attributes or self.value_attributes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_attributes": [a.to_dict() for a in self.row_attributes],
            "column_attributes": [a.to_dict() for a in self.column_attributes],
            "value_attributes": [a.to_dict() for a in self.value_attributes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StemConfig":
        return cls(
            row_attributes=[RowColumnAttribute.from_dict(a) for a in data.get("row_attributes") or []],
            column_attributes=[RowColumnAttribute.from_dict(a) for a in data.get("column_attributes") or []],
            value_attributes=[ValueAttribute.from_dict(a) for a in data.get("value_attributes") or []],
        )


@dataclass
class PivotConfig:
    stems_configs: List[StemConfig] = field(default_factory=list)
    merge_tables: bool = True
    version: str = CONFIG_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "merge_tables": self.merge_tables,
            "stems_configs": [s.to_dict() for s in self.stems_configs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PivotConfig":
        version = str(data.get("version", CONFIG_VERSION))
        if version != CONFIG_VERSION:
            raise ConfigValidationError(
                f"Unsupported pivot config version: {version}. Expected {CONFIG_VERSION}"
            )
        return cls(
            stems_configs=[StemConfig.from_dict(s) for s in data.get("stems_configs") or []],
            merge_tables=bool(data.get("merge_tables", True)),
            version=version,
        )


def create_default_pivot_config(stems_count: int = 1) -> PivotConfig:
    return PivotConfig(stems_configs=[StemConfig() for _ in range(stems_count)], merge_tables=True)


def pivot_config_is_empty(config: PivotConfig) -> bool:
    return all(stem_config.is_empty() for stem_config in config.stems_configs)


def is_pivot_config_changed(previous: Optional[PivotConfig], current: Optional[PivotConfig]) -> bool:
    """Whether two configs produce different pivot data.

    Toggling ``merge_tables`` only matters when there is more than one stem,
    and ``show_header`` on row attributes only affects labels.
    """
    previous_stems = previous.stems_configs if previous else []
    current_stems = current.stems_configs if current else []
    previous_merge = bool(previous and previous.merge_tables)
    current_merge = bool(current and current.merge_tables)
    if previous_merge != current_merge and len(current_stems) > 1:
        return True
    if len(previous_stems) != len(current_stems):
        return True

    def without_headers(attributes: List[RowColumnAttribute]) -> List[RowColumnAttribute]:
        return [replace(attribute, show_header=False) for attribute in attributes]

    return any(
        without_headers(s1.row_attributes) != without_headers(s2.row_attributes)
        or s1.column_attributes != s2.column_attributes
        or s1.value_attributes != s2.value_attributes
        for s1, s2 in zip(previous_stems, current_stems)
    )
