"""
Derived rows and columns.

``fill_expressions`` resolves the expressions configured on each row and column
level against the sibling headers of that level and attaches them to one of
those siblings. Values are not computed here: ``evaluate_expression`` folds a
resolved expression lazily, and the layout engine supplies the value of every
header operand for the cell being filled.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Callable, Iterator, List, Sequence, Tuple, Union

from ..model.config import ExpressionOperation, HeaderOperand, PivotExpression, Position, ValueOperand
from ..model.constraint import to_number
from ..model.data import HeaderExpression, HeaderNode, HeaderSetOperand, PivotStemData
from ..utils.logging import get_logger

logger = get_logger(__name__)

ResolvedOperand = Union[HeaderSetOperand, ValueOperand, HeaderExpression]


def fill_expressions(data: PivotStemData) -> PivotStemData:
    """Return ``data`` with configured expressions attached to their headers.

    Previously attached expressions are discarded first, so filling twice
    gives the same trees.
    """
    return replace(
        data,
        row_headers=_fill_level(data.row_headers, [config.expressions for config in data.rows_config], 0),
        column_headers=_fill_level(data.column_headers, [config.expressions for config in data.columns_config], 0),
    )


def _fill_level(
    headers: List[HeaderNode],
    expressions_by_level: Sequence[List[PivotExpression]],
    level: int,
) -> List[HeaderNode]:
    result = [replace(header, expressions=[]) for header in headers or []]
    expressions = expressions_by_level[level] if level < len(expressions_by_level) else []
    operand_headers = [_strip_expressions(header) for header in headers or []]

    for expression in expressions:
        resolved, matched = resolve_expression(expression, operand_headers)
        if not matched:
            logger.debug("Expression %r matched no header on level %d", expression.title, level)
            continue
        result[_attach_index(resolved.position, matched, len(headers))].expressions.append(resolved)

    return [
        replace(header, children=_fill_level(header.children, expressions_by_level, level + 1))
        if header.children is not None else header
        for header in result
    ]


def _strip_expressions(header: HeaderNode) -> HeaderNode:
    children = [_strip_expressions(child) for child in header.children] if header.children is not None else None
    return replace(header, expressions=[], children=children)


def _attach_index(position: Position, matched: List[int], headers_count: int) -> int:
    match position:
        case Position.BEFORE_HEADER:
            return matched[0]
        case Position.STICK_TO_END:
            return headers_count - 1
        case _:
            return matched[-1]


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error:
        return re.compile(re.escape(pattern))


def matching_header_indexes(pattern: str, headers: Sequence[HeaderNode]) -> List[int]:
    """Indexes of the headers whose title contains a match of ``pattern``."""
    regex = _compile(pattern)
    return [index for index, header in enumerate(headers or []) if regex.search(str(header.title))]


def resolve_expression(
    expression: PivotExpression,
    headers: Sequence[HeaderNode],
) -> Tuple[HeaderExpression, List[int]]:
    """Resolve header operands against ``headers``.

    Returns the resolved expression and the sorted indexes of every sibling
    matched by any of its header operands, nested ones included.
    """
    matched = set()

    def resolve(operand) -> ResolvedOperand:
        match operand:
            case HeaderOperand(value=pattern):
                indexes = matching_header_indexes(pattern, headers)
                matched.update(indexes)
                return HeaderSetOperand(value=pattern, headers=[headers[index] for index in indexes])
            case PivotExpression():
                return HeaderExpression(
                    operation=operand.operation,
                    operands=[resolve(child) for child in operand.operands],
                    title=operand.title,
                    position=operand.position,
                    expandable=operand.expandable,
                )
            case _:
                return operand

    resolved = resolve(expression)
    return resolved, sorted(matched)


def header_operands(expression: HeaderExpression) -> Iterator[HeaderSetOperand]:
    """Header operands of ``expression`` and of its nested expressions."""
    for operand in expression.operands:
        match operand:
            case HeaderExpression():
                yield from header_operands(operand)
            case HeaderSetOperand():
                yield operand


def evaluate_expression(
    expression: HeaderExpression,
    operand_value: Callable[[HeaderSetOperand], Any],
) -> Any:
    """Fold the operands of ``expression`` with its operation.

    ``operand_value`` returns the aggregate of one header operand for the cell
    being computed. Missing or non-numeric operand values count as 0; dividing
    by 0 leaves the running total unchanged.
    """
    result = 0
    for index, operand in enumerate(expression.operands):
        value = _operand_number(operand, operand_value)
        match expression.operation:
            case ExpressionOperation.ADD:
                result += value
            case ExpressionOperation.SUBTRACT:
                result = value if index == 0 else result - value
            case ExpressionOperation.MULTIPLY:
                result = value if index == 0 else result * value
            case ExpressionOperation.DIVIDE:
                if index == 0:
                    result = value
                elif value:
                    result = result / value
    return result


def _operand_number(operand: ResolvedOperand, operand_value: Callable[[HeaderSetOperand], Any]) -> Any:
    match operand:
        case HeaderExpression():
            return evaluate_expression(operand, operand_value)
        case HeaderSetOperand():
            return to_number(operand_value(operand)) or 0
        case _:
            return to_number(operand.value) or 0
