"""Pivot Model Builder.

``PivotDataConverter.create_data`` turns a ``PivotConfig`` plus records into
``PivotData``: one ``PivotStemData`` per table. Each stem is grouped by the
aggregation adapter, then its nested key map is walked twice, once for the row
header tree and once for the column header tree. Leaves are numbered left to
right and the numbers index the dense ``values`` matrix.

Stems of the same shape are merged into one table when ``merge_tables`` is set:
their nested maps are deep-merged before the trees are built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..model.config import (
    AggregationType,
    PivotAttribute,
    PivotConfig,
    ResourceType,
    RowColumnAttribute,
    StemConfig,
    ValueAttribute,
)
from ..model.constraint import UNKNOWN_CONSTRAINT, Constraint
from ..model.data import (
    AggregatedDataValues,
    AggregatedMap,
    AggregatedMapData,
    Attribute,
    DataResource,
    DimensionConfig,
    HeaderAttribute,
    HeaderNode,
    PivotData,
    PivotInputData,
    PivotStemData,
    Resource,
)
from ..model.transform import PivotTransform
from ..utils.logging import get_logger
from .aggregation import aggregate_data_resources, aggregation_constraint
from .grouping import DataAggregator, RecordAggregator

logger = get_logger(__name__)


class PivotConfigType(Enum):
    VALUES = "values"
    ROWS = "rows"
    COLUMNS = "columns"
    ROWS_AND_COLUMNS = "rows_and_columns"


def stem_config_type(stem_config: StemConfig) -> PivotConfigType:
    has_rows = bool(stem_config.row_attributes)
    has_columns = bool(stem_config.column_attributes)
    if has_rows and has_columns:
        return PivotConfigType.ROWS_AND_COLUMNS
    if has_rows:
        return PivotConfigType.ROWS
    if has_columns:
        return PivotConfigType.COLUMNS
    return PivotConfigType.VALUES


def can_merge_configs(config_type: PivotConfigType, c1: StemConfig, c2: StemConfig) -> bool:
    same_rows = len(c1.row_attributes) == len(c2.row_attributes)
    same_columns = len(c1.column_attributes) == len(c2.column_attributes)
    match config_type:
        case PivotConfigType.ROWS:
            return same_rows
        case PivotConfigType.COLUMNS:
            return same_columns
        case _:
            return same_rows and same_columns


def merge_maps(target: AggregatedMap, source: AggregatedMap) -> AggregatedMap:
    """Deep-merge ``source`` into ``target``: lists concatenate, dicts recurse."""
    for key, value in source.items():
        if key not in target:
            target[key] = value
        elif isinstance(target[key], list) and isinstance(value, list):
            target[key] = [*target[key], *value]
        elif isinstance(target[key], dict) and isinstance(value, dict):
            merge_maps(target[key], value)
    return target


def sticky_prefix(values: Sequence[bool]) -> List[bool]:
    """Only a leading run of sticky levels can stay sticky."""
    result: List[bool] = []
    for index, sticky in enumerate(values):
        result.append(bool(sticky) and (index == 0 or result[index - 1]))
    return result


@dataclass
class _MergeGroup:
    config_type: PivotConfigType
    configs: List[StemConfig] = field(default_factory=list)
    stems_indexes: List[int] = field(default_factory=list)


@dataclass
class _HeadersResult:
    headers: List[HeaderNode]
    max_index: int = 0


class PivotDataConverter:
    """Builds ``PivotData`` from a configuration and records.

    Args:
        aggregator: Adapter producing nested key maps; defaults to
            ``RecordAggregator`` over the given resources
    """

    def __init__(self, aggregator: Optional[DataAggregator] = None):
        self._aggregator = aggregator
        self._resources: Dict[Tuple[ResourceType, str], Resource] = {}
        self._data = PivotInputData()
        self._transform = PivotTransform()

    def create_data(
        self,
        config: PivotConfig,
        resources: Iterable[Resource],
        data: PivotInputData,
        transform: Optional[PivotTransform] = None,
    ) -> PivotData:
        resources = list(resources)
        self._resources = {(resource.type, resource.id): resource for resource in resources}
        self._data = data
        self._transform = transform or PivotTransform()
        aggregator = self._aggregator or RecordAggregator(resources, self._transform)

        stems = [(index, stem) for index, stem in enumerate(config.stems_configs) if not stem.is_empty()]
        skipped = len(config.stems_configs) - len(stems)
        if skipped:
            logger.debug("Skipping %d empty stem config(s)", skipped)

        merge_groups = self._create_merge_groups(config.merge_tables, stems)
        logger.debug("Built %d merge group(s) from %d stem(s)", len(merge_groups), len(stems))

        stems_data = []
        for group in merge_groups:
            if group.config_type == PivotConfigType.VALUES:
                stems_data.append(self._convert_value_attributes(group))
            else:
                stems_data.append(self._transform_stems(group, aggregator))

        return PivotData(data=stems_data, merge_tables=config.merge_tables, able_to_merge=len(merge_groups) <= 1)

    def _create_merge_groups(self, merge_tables: bool, stems: List[Tuple[int, StemConfig]]) -> List[_MergeGroup]:
        groups: List[_MergeGroup] = []
        for index, stem_config in stems:
            config_type = stem_config_type(stem_config)
            group = next(
                (g for g in groups
                 if g.config_type == config_type and can_merge_configs(config_type, g.configs[0], stem_config)),
                None,
            )
            if not merge_tables or group is None:
                group = _MergeGroup(config_type)
                groups.append(group)
            group.configs.append(stem_config)
            group.stems_indexes.append(index)
        return groups

    def _records_for_stem(self, stem_index: int) -> List[DataResource]:
        stems = self._data.records_by_stems
        return stems[stem_index] if stem_index < len(stems) else []

    def _find_resource(self, pivot_attribute: PivotAttribute) -> Optional[Resource]:
        return self._resources.get((pivot_attribute.resource_type, pivot_attribute.resource_id))

    def _find_attribute(self, pivot_attribute: PivotAttribute) -> Optional[Attribute]:
        resource = self._find_resource(pivot_attribute)
        return resource.attribute(pivot_attribute.attribute_id) if resource else None

    def _attribute_color(self, pivot_attribute: PivotAttribute) -> Optional[str]:
        resource = self._find_resource(pivot_attribute)
        return resource.color if resource else None

    def _attribute_constraint(self, pivot_attribute: PivotAttribute) -> Constraint:
        attribute = self._find_attribute(pivot_attribute)
        constraint = attribute.constraint if attribute else None
        override = self._transform.constraint_override(constraint, pivot_attribute.constraint)
        return override or constraint or UNKNOWN_CONSTRAINT

    def _attribute_name(self, pivot_attribute: PivotAttribute) -> str:
        attribute = self._find_attribute(pivot_attribute)
        return attribute.name if attribute and attribute.name else ""

    def create_value_title(self, aggregation: AggregationType, attribute_name: str) -> str:
        return f"{self._transform.aggregation_label(aggregation)} {attribute_name or ''}".strip()

    def _value_titles(self, value_attributes: List[ValueAttribute]) -> Tuple[List[str], List[Constraint]]:
        titles, constraints = [], []
        for value_attribute in value_attributes:
            constraints.append(
                aggregation_constraint(value_attribute.aggregation) or self._attribute_constraint(value_attribute)
            )
            titles.append(self.create_value_title(value_attribute.aggregation, self._attribute_name(value_attribute)))
        return titles, constraints

    def _convert_value_attributes(self, group: _MergeGroup) -> PivotStemData:
        unique_records = self._data.unique_records
        titles: List[str] = []
        constraints: List[Constraint] = []
        headers: List[HeaderNode] = []
        values: List[Any] = []
        data_resources: List[List[DataResource]] = []
        value_attributes: List[ValueAttribute] = []

        for stem_config in group.configs:
            stem_titles, stem_constraints = self._value_titles(stem_config.value_attributes)
            colors = [self._attribute_color(attribute) for attribute in stem_config.value_attributes]
            headers.extend(self._value_headers(stem_titles, colors, len(headers)))
            titles.extend(stem_titles)
            constraints.extend(stem_constraints)
            value_attributes.extend(stem_config.value_attributes)

            for value_attribute in stem_config.value_attributes:
                records = [
                    record for record in unique_records
                    if record.resource_id == value_attribute.resource_id
                    and record.resource_type == value_attribute.resource_type
                ]
                values.append(aggregate_data_resources(value_attribute.aggregation, records, value_attribute.attribute_id))
                data_resources.append(records)

        return PivotStemData(
            column_headers=headers,
            value_titles=titles,
            values=[values],
            data_resources=[data_resources],
            values_constraints=constraints,
            value_types=[attribute.value_type for attribute in value_attributes],
            value_aggregations=[attribute.aggregation for attribute in value_attributes],
            has_additional_column_level=True,
        )

    def _transform_stems(self, group: _MergeGroup, aggregator: DataAggregator) -> PivotStemData:
        merged: Optional[AggregatedMapData] = None
        value_attributes: List[ValueAttribute] = []
        first = group.configs[0]

        for stem_config, stem_index in zip(group.configs, group.stems_indexes):
            aggregated = aggregator.aggregate(
                stem_config.row_attributes,
                stem_config.column_attributes,
                stem_config.value_attributes,
                self._records_for_stem(stem_index),
            )
            merged = self._merge_aggregated_data(merged, aggregated)
            value_attributes.extend(
                attribute for attribute in stem_config.value_attributes if attribute not in value_attributes
            )

        row_colors = [self._attribute_color(attribute) for attribute in first.row_attributes]
        column_colors = [self._attribute_color(attribute) for attribute in first.column_attributes]
        value_colors = [self._attribute_color(attribute) for attribute in value_attributes]
        value_titles, values_constraints = self._value_titles(value_attributes)

        row_data = self._convert_map_to_headers(merged.map, merged.row_levels, row_colors, value_colors,
                                                first.row_attributes)
        column_map = merged.columns_map if merged.row_levels > 0 else merged.map
        column_data = self._convert_map_to_headers(column_map, merged.column_levels, column_colors, value_colors,
                                                   first.column_attributes, value_titles)

        rows_count, columns_count = row_data.max_index + 1, column_data.max_index + 1
        values: List[List[Any]] = [[None] * columns_count for _ in range(rows_count)]
        data_resources: List[List[List[DataResource]]] = [[[] for _ in range(columns_count)] for _ in range(rows_count)]
        if value_attributes:
            self._fill_values(values, data_resources, row_data.headers, column_data.headers, value_attributes, merged)

        row_header_attributes = [
            HeaderAttribute(title=self._attribute_name(attribute), color=color) if attribute.show_header else None
            for attribute, color in zip(first.row_attributes, row_colors)
        ]
        has_additional_column_level = (
            (merged.column_levels == 0 and len(value_titles) > 0)
            or (merged.column_levels > 0 and len(value_titles) > 1)
        )

        return PivotStemData(
            row_headers=row_data.headers,
            column_headers=column_data.headers,
            value_titles=value_titles,
            values=values,
            data_resources=data_resources,
            row_header_attributes=row_header_attributes,
            column_header_attributes=[None] * len(first.column_attributes),
            values_constraints=values_constraints,
            value_types=[attribute.value_type for attribute in value_attributes],
            value_aggregations=[attribute.aggregation for attribute in value_attributes],
            rows_config=self._dimension_configs(first.row_attributes),
            columns_config=self._dimension_configs(first.column_attributes),
            has_additional_column_level=has_additional_column_level,
        )

    @staticmethod
    def _dimension_configs(attributes: List[RowColumnAttribute]) -> List[DimensionConfig]:
        sticky = sticky_prefix([attribute.sticky for attribute in attributes])
        return [
            DimensionConfig(
                show_sums=attribute.show_sums,
                sticky=sticky[index],
                sort=attribute.sort,
                expressions=list(attribute.expressions),
            )
            for index, attribute in enumerate(attributes)
        ]

    @staticmethod
    def _merge_aggregated_data(
        a1: Optional[AggregatedMapData], a2: Optional[AggregatedMapData]
    ) -> Optional[AggregatedMapData]:
        if a1 is None or a2 is None:
            return a1 or a2
        return AggregatedMapData(
            map=merge_maps(a1.map, a2.map),
            columns_map=merge_maps(a1.columns_map, a2.columns_map),
            row_levels=max(a1.row_levels, a2.row_levels),
            column_levels=max(a1.column_levels, a2.column_levels),
        )

    @staticmethod
    def _value_headers(titles: List[str], colors: List[Optional[str]], start: int) -> List[HeaderNode]:
        return [
            HeaderNode(title=title, target_index=start + index, color=colors[index] if index < len(colors) else None,
                       is_value_header=True)
            for index, title in enumerate(titles)
        ]

    def _convert_map_to_headers(
        self,
        nested: AggregatedMap,
        levels: int,
        colors: List[Optional[str]],
        value_colors: List[Optional[str]],
        attributes: List[RowColumnAttribute],
        value_titles: Optional[List[str]] = None,
    ) -> _HeadersResult:
        value_titles = value_titles or []
        if levels == 0:
            headers = self._value_headers(value_titles, value_colors, 0)
            return _HeadersResult(headers, max(len(value_titles) - 1, 0))

        result = _HeadersResult([])
        self._append_level(result, result.headers, nested, 0, 0, levels, colors, value_colors, attributes, value_titles)
        return result

    def _append_level(
        self,
        result: _HeadersResult,
        target: List[HeaderNode],
        nested: AggregatedMap,
        start_index: int,
        level: int,
        levels: int,
        colors: List[Optional[str]],
        value_colors: List[Optional[str]],
        attributes: List[RowColumnAttribute],
        value_titles: List[str],
    ) -> None:
        attribute = attributes[level] if level < len(attributes) else None
        constraint = self._attribute_constraint(attribute) if attribute else UNKNOWN_CONSTRAINT
        name = self._attribute_name(attribute) if attribute else None
        color = colors[level] if level < len(colors) else None
        is_last = level + 1 == levels
        num_titles = max(1, len(value_titles))

        current_index = start_index
        for title, sub_map in (nested or {}).items():
            header = HeaderNode(title=title, color=color, constraint=constraint, attribute_name=name)
            target.append(header)
            if is_last and len(value_titles) <= 1:
                header.target_index = current_index
                result.max_index = max(result.max_index, current_index)
            elif is_last:
                header.children = self._value_headers(value_titles, value_colors, current_index)
                result.max_index = max(result.max_index, current_index + len(value_titles) - 1)
            else:
                header.children = []
                self._append_level(result, header.children, sub_map, current_index, level + 1, levels,
                                   colors, value_colors, attributes, value_titles)
            current_index += self._count_leaves(sub_map, levels - level - 1) * num_titles

    @classmethod
    def _count_leaves(cls, nested: Any, depth: int) -> int:
        if depth == 0:
            return 1
        if not isinstance(nested, dict):
            return 0
        return sum(cls._count_leaves(sub_map, depth - 1) for sub_map in nested.values())

    def _fill_values(
        self,
        values: List[List[Any]],
        data_resources: List[List[List[DataResource]]],
        row_headers: List[HeaderNode],
        column_headers: List[HeaderNode],
        value_attributes: List[ValueAttribute],
        aggregated: AggregatedMapData,
    ) -> None:
        if row_headers:
            self._fill_row_values(values, data_resources, row_headers, column_headers, value_attributes,
                                  aggregated.map)
        else:
            self._fill_column_values(values, data_resources, column_headers, 0, value_attributes, aggregated.map)

    def _fill_row_values(self, values, data_resources, row_headers, column_headers, value_attributes, current_map):
        for row_header in row_headers:
            row_map = current_map.get(row_header.title, {}) if isinstance(current_map, dict) else {}
            if row_header.children is not None:
                self._fill_row_values(values, data_resources, row_header.children, column_headers,
                                      value_attributes, row_map)
            elif row_header.target_index is not None and column_headers:
                self._fill_column_values(values, data_resources, column_headers, row_header.target_index,
                                         value_attributes, row_map)

    def _fill_column_values(self, values, data_resources, column_headers, row_index, value_attributes, current_map):
        for column_header in column_headers:
            if column_header.children is not None:
                sub_map = current_map.get(column_header.title, {}) if isinstance(current_map, dict) else {}
                self._fill_column_values(values, data_resources, column_header.children, row_index,
                                         value_attributes, sub_map)
            elif column_header.target_index is not None:
                if isinstance(current_map, list):
                    cell_values = current_map
                else:
                    cell_values = current_map.get(column_header.title) or []
                column = column_header.target_index
                value_attribute = value_attributes[column % len(value_attributes)]
                value, records = self._aggregate_value(value_attribute, cell_values)
                values[row_index][column] = value
                data_resources[row_index][column] = records

    def _aggregate_value(
        self, value_attribute: ValueAttribute, cell_values: List[AggregatedDataValues]
    ) -> Tuple[Any, List[DataResource]]:
        records = [
            record
            for aggregated in cell_values
            if aggregated.resource_id == value_attribute.resource_id
            and aggregated.resource_type == value_attribute.resource_type
            for record in aggregated.objects
        ]
        if not records:
            return None, []
        return aggregate_data_resources(value_attribute.aggregation, records, value_attribute.attribute_id), records
