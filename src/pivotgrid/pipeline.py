"""
End-to-end entry points.

``create_pivot_data`` runs the Pivot Model Builder, ``create_tables`` the
Table Layout Engine (which prepares, sorts and fills expressions itself).
``pivot_records`` wraps both for the common case of plain dict rows of a
single resource.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .builder.converter import PivotDataConverter
from .builder.grouping import DataAggregator
from .layout.converter import PivotTableConverter
from .model.config import PivotAttribute, PivotConfig, ResourceType, StemConfig
from .model.data import Attribute, DataResource, PivotData, PivotInputData, Resource
from .model.table import PivotTable
from .model.transform import PivotTransform
from .state import PivotTableState, collapse_all_cells
from .utils.logging import get_logger

logger = get_logger(__name__)

SIMPLE_RESOURCE_ID = "records"


def create_pivot_data(
    config: PivotConfig,
    resources: Iterable[Resource],
    data: PivotInputData,
    transform: Optional[PivotTransform] = None,
    aggregator: Optional[DataAggregator] = None,
) -> PivotData:
    return PivotDataConverter(aggregator).create_data(config, resources, data, transform)


def create_tables(pivot_data: Optional[PivotData], transform: Optional[PivotTransform] = None) -> List[PivotTable]:
    return PivotTableConverter().create_tables(pivot_data, transform)


@dataclass
class PivotResult:
    data: PivotData
    tables: List[PivotTable]
    states: List[PivotTableState] = field(default_factory=list)


def _with_resource(attributes: Sequence[PivotAttribute], resource_id: str) -> List[Any]:
    return [
        replace(attribute, resource_id=resource_id, resource_type=ResourceType.COLLECTION, resource_index=0)
        for attribute in attributes
    ]


def pivot_records(
    records: Sequence[Dict[str, Any]],
    attributes: Sequence[Attribute],
    config: StemConfig,
    color: Optional[str] = None,
    transform: Optional[PivotTransform] = None,
    initially_collapsed: bool = False,
) -> PivotResult:
    """Pivot plain dict rows.

    Every attribute in ``config`` is bound to one synthetic resource holding
    ``records``, so callers only name the fields.

    Args:
        records: Rows keyed by attribute id
        attributes: Field descriptions (name, constraint) of the rows
        config: Row, column and value attributes; resource fields are ignored
        color: Color of the synthetic resource, used for header backgrounds
        transform: Optional label callbacks
        initially_collapsed: Start with every expandable row collapsed

    Returns:
        The pivot data, one table per stem and a collapse state per table
    """
    resource = Resource(id=SIMPLE_RESOURCE_ID, name=SIMPLE_RESOURCE_ID, color=color, attributes=list(attributes))
    stem_config = StemConfig(
        row_attributes=_with_resource(config.row_attributes, resource.id),
        column_attributes=_with_resource(config.column_attributes, resource.id),
        value_attributes=_with_resource(config.value_attributes, resource.id),
    )
    data_resources = [
        DataResource(id=str(index), resource_id=resource.id, data=dict(record))
        for index, record in enumerate(records)
    ]
    logger.debug("Pivoting %d record(s)", len(data_resources))

    pivot_data = create_pivot_data(
        PivotConfig(stems_configs=[stem_config]),
        [resource],
        PivotInputData(records_by_stems=[data_resources]),
        transform,
    )
    tables = create_tables(pivot_data, transform)
    if initially_collapsed:
        states = [collapse_all_cells(table) for table in tables]
    else:
        states = [PivotTableState() for _ in tables]
    return PivotResult(data=pivot_data, tables=tables, states=states)
