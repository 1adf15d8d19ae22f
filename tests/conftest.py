"""Shared pytest configuration and fixtures for pivotgrid tests."""

import pytest

from pivotgrid.model import (
    NUMBER_CONSTRAINT,
    Attribute,
    DimensionConfig,
    ExpressionOperation,
    HeaderOperand,
    PivotExpression,
    PivotStemData,
    Position,
)
from tests.helpers.trees import group, leaf, value_headers


@pytest.fixture
def sales_records():
    return [
        {"region": "East", "product": "Apples", "amount": 10},
        {"region": "East", "product": "Pears", "amount": 5},
        {"region": "West", "product": "Apples", "amount": 7},
        {"region": "West", "product": "Apples", "amount": 3},
    ]


@pytest.fixture
def sales_attributes():
    return [
        Attribute("region", "Region"),
        Attribute("product", "Product"),
        Attribute("amount", "Amount", NUMBER_CONSTRAINT),
    ]


@pytest.fixture
def expression_stem() -> PivotStemData:
    """Two row levels with subtotals and before-header expressions on both levels."""
    return PivotStemData(
        row_headers=[
            group("A", leaf("a1", 0), leaf("a2", 1), leaf("a3", 2)),
            group("B", leaf("a2", 3), leaf("a3", 4)),
            group("C", leaf("a2", 5), leaf("a3", 6), leaf("a4", 7)),
        ],
        column_headers=[
            group("X", leaf("x1", 0), leaf("x2", 1)),
            group("Y", leaf("x2", 2), leaf("x3", 3), leaf("x4", 4)),
        ],
        value_titles=["V"],
        values=[
            [4, 3, 5, 2, 8],
            [9, 2, 4, 7, 2],
            [2, 2, 4, 3, 1],
            [3, 4, 7, 1, 3],
            [4, 2, 3, 4, 2],
            [8, 2, 2, 5, 3],
            [7, 3, 1, 6, 5],
            [2, 5, 4, 7, 8],
        ],
        rows_config=[
            DimensionConfig(
                show_sums=True,
                expressions=[PivotExpression(
                    ExpressionOperation.ADD, [HeaderOperand("A"), HeaderOperand("B")],
                    title="A + B", position=Position.BEFORE_HEADER, expandable=True,
                )],
            ),
            DimensionConfig(
                show_sums=True,
                expressions=[PivotExpression(
                    ExpressionOperation.MULTIPLY, [HeaderOperand("a2"), HeaderOperand("a3")],
                    title="a2 * a3", position=Position.BEFORE_HEADER, expandable=True,
                )],
            ),
        ],
        columns_config=[DimensionConfig(), DimensionConfig()],
    )


@pytest.fixture
def grouped_stem() -> PivotStemData:
    """Two groups of two rows under a single value column."""
    return PivotStemData(
        row_headers=[
            group("A", leaf("a1", 0), leaf("a2", 1)),
            group("B", leaf("b1", 2), leaf("b2", 3)),
        ],
        column_headers=value_headers("V"),
        value_titles=["V"],
        values=[[1], [2], [3], [4]],
        rows_config=[DimensionConfig(), DimensionConfig()],
        has_additional_column_level=True,
    )
