"""
Value-format descriptors.

A ``Constraint`` tells the engine how to render a value as text and how to
order values of that kind. Only the handful of types the pivot needs are
modelled; anything unknown falls back to plain text rendering.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd


class ConstraintType(str, Enum):
    UNKNOWN = "unknown"
    TEXT = "text"
    NUMBER = "number"
    PERCENTAGE = "percentage"
    DATETIME = "datetime"


def is_missing(value: Any) -> bool:
    """True for None, NaN, NaT and pandas NA (containers are never missing)."""
    if value is None:
        return True
    if isinstance(value, (list, tuple, set, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_number(value: Any) -> Optional[float]:
    """Coerce a value to a number, or None when it is not numeric.

    Strings are parsed with ``pandas.to_numeric``; a trailing ``%`` divides the
    number by 100 so that ``"10%"`` becomes ``0.1``.
    """
    if is_missing(value) or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = value.item() if isinstance(value, np.generic) else value
        return None if isinstance(number, float) and math.isnan(number) else number
    if isinstance(value, str):
        text = value.strip()
        divider = 1
        if text.endswith("%"):
            text, divider = text[:-1].strip(), 100
        if not text:
            return None
        number = pd.to_numeric(text, errors="coerce")
        if pd.isna(number):
            return None
        number = number.item() if isinstance(number, np.generic) else number
        return number / divider if divider != 1 else number
    return None


def format_number(value: Any, decimals: Optional[int] = None) -> str:
    """Render a number without a trailing ``.0`` for integral values."""
    if isinstance(value, np.generic):
        value = value.item()
    if decimals is not None:
        value = round(value, decimals)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_datetime(value: Any, date_format: Optional[str]) -> Optional[pd.Timestamp]:
    if isinstance(value, str) and date_format:
        parsed = pd.to_datetime(value, format=date_format, errors="coerce")
    else:
        parsed = pd.to_datetime(value, errors="coerce")
    return None if pd.isna(parsed) else parsed


@dataclass(frozen=True)
class Constraint:
    """Describes how values of one attribute are formatted and compared.

    Attributes:
        type: Kind of values held by the attribute
        decimals: Rounding applied by number and percentage formatting
        date_format: strftime pattern used by datetime formatting and parsing
    """

    type: ConstraintType = ConstraintType.UNKNOWN
    decimals: Optional[int] = None
    date_format: Optional[str] = None

    def format(self, value: Any) -> str:
        if is_missing(value):
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join(self.format(item) for item in value if not is_missing(item))

        match self.type:
            case ConstraintType.NUMBER:
                number = to_number(value)
                return str(value) if number is None else format_number(number, self.decimals)
            case ConstraintType.PERCENTAGE:
                number = to_number(value)
                if number is None:
                    return str(value)
                decimals = 2 if self.decimals is None else self.decimals
                return f"{format_number(number * 100, decimals)}%"
            case ConstraintType.DATETIME:
                parsed = _parse_datetime(value, self.date_format)
                if parsed is None:
                    return str(value)
                return parsed.strftime(self.date_format or "%Y-%m-%d")
            case _:
                if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
                    return format_number(value)
                return str(value)

    def sort_key(self, value: Any) -> Tuple[int, Any]:
        """Key ordering values of this type; unparseable values sort last."""
        if is_missing(value):
            return (2, "")

        match self.type:
            case ConstraintType.NUMBER | ConstraintType.PERCENTAGE:
                number = to_number(value)
                return (1, str(value)) if number is None else (0, number)
            case ConstraintType.DATETIME:
                parsed = _parse_datetime(value, self.date_format)
                return (1, str(value)) if parsed is None else (0, parsed.value)
            case _:
                return (0, str(value))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type.value}
        if self.decimals is not None:
            result["decimals"] = self.decimals
        if self.date_format is not None:
            result["date_format"] = self.date_format
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Constraint":
        return cls(
            type=ConstraintType(data.get("type", ConstraintType.UNKNOWN.value)),
            decimals=data.get("decimals"),
            date_format=data.get("date_format"),
        )


UNKNOWN_CONSTRAINT = Constraint()
NUMBER_CONSTRAINT = Constraint(ConstraintType.NUMBER)
DECIMAL_CONSTRAINT = Constraint(ConstraintType.NUMBER, decimals=2)
PERCENTAGE_CONSTRAINT = Constraint(ConstraintType.PERCENTAGE, decimals=2)
