"""Model augmentation: value types, sorting and expressions."""

from dataclasses import replace
from typing import List, Tuple

from ..model.data import PivotStemData
from .expressions import evaluate_expression, fill_expressions, header_operands, resolve_expression
from .sorting import sort_pivot_data
from .value_types import ValueTypeInfo, compute_values_by_value_type, divide_values, get_values_type_info


def prepare_pivot_data(data: PivotStemData) -> Tuple[PivotStemData, List[ValueTypeInfo]]:
    """Normalize percentage values, sort headers and attach expressions.

    ``data`` is left untouched; the returned value-type infos hold the
    denominators the layout needs to re-normalize group values.
    """
    number_of_values = max(1, len(data.value_titles))
    infos = get_values_type_info(data.values, data.value_types, number_of_values)
    values = compute_values_by_value_type(data.values, data.value_types, number_of_values, infos)
    prepared = sort_pivot_data(replace(data, values=values))
    return fill_expressions(prepared), infos


__all__ = [
    "ValueTypeInfo",
    "compute_values_by_value_type",
    "divide_values",
    "evaluate_expression",
    "fill_expressions",
    "get_values_type_info",
    "header_operands",
    "prepare_pivot_data",
    "resolve_expression",
    "sort_pivot_data",
]
