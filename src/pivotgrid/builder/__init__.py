"""
Pivot Model Builder.

- aggregation: aggregation functions over plain values and records
- grouping: reference adapter grouping records into nested key maps
- converter: builds header trees and value matrices, merges stems
"""

from .aggregation import aggregate_data_resources, aggregate_values, is_value_aggregation, join_values
from .converter import PivotConfigType, PivotDataConverter, can_merge_configs, stem_config_type
from .grouping import DataAggregator, RecordAggregator

__all__ = [
    "DataAggregator",
    "PivotConfigType",
    "PivotDataConverter",
    "RecordAggregator",
    "aggregate_data_resources",
    "aggregate_values",
    "can_merge_configs",
    "is_value_aggregation",
    "join_values",
    "stem_config_type",
]
