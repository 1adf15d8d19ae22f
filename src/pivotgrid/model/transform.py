"""Optional formatting callbacks supplied by the embedding application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from .config import AggregationType
from .constraint import Constraint
from .data import HeaderNode


class SummaryHeader(NamedTuple):
    title: Optional[str]
    summary: str


@dataclass
class PivotTransform:
    """Hooks for labels the engine cannot produce on its own.

    Every hook is optional; a missing hook, or one returning an empty value,
    falls back to the literal title.
    """

    format_aggregation: Optional[Callable[[AggregationType], str]] = None
    format_summary_header: Optional[Callable[[Optional[HeaderNode], int], Optional[SummaryHeader]]] = None
    format_row_header: Optional[Callable[[str, int], str]] = None
    format_column_header: Optional[Callable[[str, int], str]] = None
    check_valid_constraint_override: Optional[Callable[[Optional[Constraint], Constraint], Optional[Constraint]]] = None

    def aggregation_label(self, aggregation: AggregationType) -> str:
        if self.format_aggregation:
            label = self.format_aggregation(aggregation)
            if label:
                return label
        return aggregation.value

    def summary_header(self, header: Optional[HeaderNode], level: int) -> SummaryHeader:
        if self.format_summary_header:
            result = self.format_summary_header(header, level)
            if result:
                return SummaryHeader(*result)
        return SummaryHeader(title=header.title if header else None, summary="")

    def row_header(self, title: str, level: int) -> str:
        if self.format_row_header:
            return self.format_row_header(title, level) or title
        return title

    def column_header(self, title: str, level: int) -> str:
        if self.format_column_header:
            return self.format_column_header(title, level) or title
        return title

    def constraint_override(self, constraint: Optional[Constraint], override: Optional[Constraint]) -> Optional[Constraint]:
        if override is None:
            return None
        if not self.check_valid_constraint_override:
            return override
        return self.check_valid_constraint_override(constraint, override)
