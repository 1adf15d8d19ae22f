"""Reference aggregation adapter.

Turns flat records into the nested key mapping consumed by
``PivotDataConverter``. Records are grouped with ``DataFrame.groupby`` on the
formatted row keys followed by the column keys; key order follows first
appearance. Group keys are formatted through the attribute constraint, and a
missing value groups under the empty string.

Any object with a matching ``aggregate`` method can replace it.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

import pandas as pd

from ..model.config import PivotAttribute, ResourceType, RowColumnAttribute, ValueAttribute
from ..model.constraint import UNKNOWN_CONSTRAINT, Constraint
from ..model.data import AggregatedDataValues, AggregatedMap, AggregatedMapData, DataResource, Resource
from ..model.transform import PivotTransform
from ..utils.logging import get_logger

logger = get_logger(__name__)


class DataAggregator(Protocol):
    def aggregate(
        self,
        row_attributes: Sequence[RowColumnAttribute],
        column_attributes: Sequence[RowColumnAttribute],
        value_attributes: Sequence[ValueAttribute],
        records: Sequence[DataResource],
    ) -> AggregatedMapData:
        ...


def group_by_resource(records: Iterable[DataResource]) -> List[AggregatedDataValues]:
    groups: Dict[Tuple[ResourceType, str], AggregatedDataValues] = {}
    for record in records:
        key = (record.resource_type, record.resource_id)
        if key not in groups:
            groups[key] = AggregatedDataValues(resource_id=record.resource_id, resource_type=record.resource_type)
        groups[key].objects.append(record)
    return list(groups.values())


def insert_path(target: AggregatedMap, keys: Sequence[str], leaf: List[AggregatedDataValues]) -> None:
    node = target
    for key in keys[:-1]:
        node = node.setdefault(key, {})
    node.setdefault(keys[-1], []).extend(leaf)


class RecordAggregator:
    """Groups records of known resources by row and column attribute values."""

    def __init__(self, resources: Iterable[Resource] = (), transform: Optional[PivotTransform] = None):
        self.transform = transform or PivotTransform()
        self._constraints: Dict[Tuple[ResourceType, str, str], Optional[Constraint]] = {
            (resource.type, resource.id, attribute.id): attribute.constraint
            for resource in resources
            for attribute in resource.attributes
        }

    def key_constraint(self, attribute: PivotAttribute) -> Constraint:
        constraint = self._constraints.get((attribute.resource_type, attribute.resource_id, attribute.attribute_id))
        override = self.transform.constraint_override(constraint, attribute.constraint)
        return override or constraint or UNKNOWN_CONSTRAINT

    def aggregate(
        self,
        row_attributes: Sequence[RowColumnAttribute],
        column_attributes: Sequence[RowColumnAttribute],
        value_attributes: Sequence[ValueAttribute],
        records: Sequence[DataResource],
    ) -> AggregatedMapData:
        result = AggregatedMapData(row_levels=len(row_attributes), column_levels=len(column_attributes))
        attributes = [*row_attributes, *column_attributes]
        if not attributes or not records:
            return result

        level_columns = [f"level_{i}" for i in range(len(attributes))]
        frame = pd.DataFrame({
            column: [self.key_constraint(attribute).format(record.data.get(attribute.attribute_id)) for record in records]
            for column, attribute in zip(level_columns, attributes)
        })
        frame["position"] = range(len(records))

        groups = frame.groupby(level_columns, sort=False)
        for keys, group in groups:
            keys = keys if isinstance(keys, tuple) else (keys,)
            cell_records = [records[position] for position in group["position"]]
            insert_path(result.map, keys, group_by_resource(cell_records))
            if column_attributes:
                insert_path(result.columns_map, keys[len(row_attributes):], [])

        logger.debug("Grouped %d records into %d cells", len(records), groups.ngroups)
        return result
