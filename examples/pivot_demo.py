"""
Pivot demo: sales records → laid-out table → collapsed view.

This script demonstrates the full pivotgrid pipeline:
1. Group plain dict records by region and product into a pivot of summed amounts
2. Add subtotals, a derived "East - West" row and a percentage value series
3. Collapse every expandable row and print the rows left visible

Usage:
    python examples/pivot_demo.py
"""

from pivotgrid import (
    AggregationType,
    Attribute,
    ExpressionOperation,
    HeaderOperand,
    PivotExpression,
    PivotTable,
    RowColumnAttribute,
    StemConfig,
    ValueAttribute,
    ValueType,
    collapse_all_cells,
    filter_visible_cells,
    pivot_records,
)
from pivotgrid.model import NUMBER_CONSTRAINT
from pivotgrid.utils import configure_logging, render_table, visualize_headers


def build_records():
    """Create the sales rows and their field descriptions."""
    records = [
        {"region": "East", "product": "Apples", "quarter": "Q1", "amount": 120},
        {"region": "East", "product": "Pears", "quarter": "Q1", "amount": 80},
        {"region": "East", "product": "Apples", "quarter": "Q2", "amount": 95},
        {"region": "West", "product": "Apples", "quarter": "Q1", "amount": 60},
        {"region": "West", "product": "Plums", "quarter": "Q2", "amount": 45},
        {"region": "West", "product": "Pears", "quarter": "Q2", "amount": 70},
        {"region": "North", "product": "Plums", "quarter": "Q1", "amount": 30},
    ]
    attributes = [
        Attribute("region", "Region"),
        Attribute("product", "Product"),
        Attribute("quarter", "Quarter"),
        Attribute("amount", "Amount", NUMBER_CONSTRAINT),
    ]
    return records, attributes


def build_config():
    difference = PivotExpression(
        ExpressionOperation.SUBTRACT,
        [HeaderOperand("^East$"), HeaderOperand("^West$")],
        title="East - West",
        expandable=True,
    )
    return StemConfig(
        row_attributes=[
            RowColumnAttribute("region", show_sums=True, sticky=True, expressions=[difference]),
            RowColumnAttribute("product", show_sums=True),
        ],
        column_attributes=[RowColumnAttribute("quarter")],
        value_attributes=[
            ValueAttribute("amount", aggregation=AggregationType.SUM),
            ValueAttribute("amount", aggregation=AggregationType.SUM, value_type=ValueType.ALL_PERCENTAGE),
        ],
    )


def main():
    configure_logging(level="INFO")

    records, attributes = build_records()
    result = pivot_records(records, attributes, build_config(), color="#4a90d9")

    stem = result.data.data[0]
    print("Row headers:")
    print(visualize_headers(stem.row_headers))
    print()

    table = result.tables[0]
    print(f"Full table ({table.rows_count} x {table.columns_count}):")
    print(render_table(table))
    print()

    state = collapse_all_cells(table)
    visible = filter_visible_cells(table.cells, state)
    print(f"Collapsed view ({len(visible)} rows):")
    print(render_table(PivotTable(cells=visible)))


if __name__ == "__main__":
    main()
