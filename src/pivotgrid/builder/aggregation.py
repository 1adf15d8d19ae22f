"""Aggregation functions used when building and re-aggregating pivot cells.

Numeric aggregations go through a float ``pandas.Series`` built from the values
that ``to_number`` accepts; everything else is skipped, so missing cells never
turn into NaN.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Optional

import pandas as pd

from ..exceptions import UnsupportedAggregationError
from ..model.config import AggregationType
from ..model.constraint import NUMBER_CONSTRAINT, UNKNOWN_CONSTRAINT, Constraint, is_missing, to_number
from ..model.data import DataResource

_NUMERIC_AGGREGATIONS: dict[AggregationType, str] = {
    AggregationType.SUM: "sum",
    AggregationType.AVG: "mean",
    AggregationType.MIN: "min",
    AggregationType.MAX: "max",
    AggregationType.MEDIAN: "median",
}

# Aggregations whose results can be aggregated again with the same function.
_VALUE_AGGREGATIONS = frozenset(_NUMERIC_AGGREGATIONS) | {AggregationType.JOIN}


def is_value_aggregation(aggregation: Optional[AggregationType]) -> bool:
    return aggregation in _VALUE_AGGREGATIONS


def flatten_values(values: Iterable[Any]) -> Iterator[Any]:
    for value in values:
        if isinstance(value, (list, tuple)):
            yield from flatten_values(value)
        else:
            yield value


def unique_values(values: Iterable[Any]) -> List[Any]:
    """Non-missing values in first-seen order, nested lists flattened."""
    present = [value for value in flatten_values(values) if not is_missing(value)]
    if not present:
        return []
    return pd.unique(pd.Series(present, dtype=object)).tolist()


def _normalize(number: Any) -> Any:
    if is_missing(number):
        return None
    number = number.item() if hasattr(number, "item") else number
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def numeric_series(values: Iterable[Any]) -> pd.Series:
    numbers = [to_number(value) for value in flatten_values(values)]
    return pd.Series([n for n in numbers if n is not None], dtype=float)


def join_values(values: Iterable[Any], constraint: Optional[Constraint] = None) -> str:
    constraint = constraint or UNKNOWN_CONSTRAINT
    formatted = (constraint.format(value) for value in unique_values(values))
    return ", ".join(text for text in formatted if text)


def aggregate_values(
    aggregation: AggregationType,
    values: Iterable[Any],
    constraint: Optional[Constraint] = None,
) -> Any:
    """Aggregate plain values.

    An empty sum is 0; any other numeric aggregation of nothing is None.
    ``JOIN`` returns the formatted, de-duplicated values joined by ", ".
    """
    values = list(values)
    match aggregation:
        case AggregationType.JOIN:
            return join_values(values, constraint)
        case AggregationType.COUNT:
            return sum(1 for value in flatten_values(values) if not is_missing(value))
        case AggregationType.UNIQUE:
            return len(unique_values(values))
        case _ if aggregation in _NUMERIC_AGGREGATIONS:
            series = numeric_series(values)
            if series.empty:
                return 0 if aggregation == AggregationType.SUM else None
            return _normalize(getattr(series, _NUMERIC_AGGREGATIONS[aggregation])())
        case _:
            raise UnsupportedAggregationError(f"Unsupported aggregation: {aggregation!r}")


def aggregate_data_resources(
    aggregation: AggregationType,
    resources: List[DataResource],
    attribute_id: str,
) -> Any:
    """Aggregate one attribute over records.

    ``COUNT`` counts records rather than values. ``JOIN`` keeps the unique raw
    values as a list so they can be formatted later.
    """
    values = [resource.data.get(attribute_id) for resource in resources]
    match aggregation:
        case AggregationType.COUNT:
            return len(resources)
        case AggregationType.JOIN:
            return unique_values(values)
        case _:
            return aggregate_values(aggregation, values)


def aggregation_constraint(aggregation: AggregationType) -> Optional[Constraint]:
    """Constraint implied by the aggregation itself, if any."""
    if aggregation in (AggregationType.COUNT, AggregationType.UNIQUE):
        return NUMBER_CONSTRAINT
    return None
