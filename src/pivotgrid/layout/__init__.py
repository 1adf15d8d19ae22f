"""Table Layout Engine."""

from .colors import GROUP_COLORS, shade_color
from .converter import PivotTableConverter, create_transformation_map

__all__ = [
    "GROUP_COLORS",
    "PivotTableConverter",
    "create_transformation_map",
    "shade_color",
]
