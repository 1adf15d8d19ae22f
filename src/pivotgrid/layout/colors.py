"""Header and summary backgrounds."""

from typing import Optional

COLOR_GRAY100 = "#f8f9fa"
COLOR_GRAY200 = "#ecf0f1"
COLOR_GRAY300 = "#dee2e6"
COLOR_GRAY400 = "#ced4da"
COLOR_GRAY500 = "#b4bcc2"

GROUP_COLORS = [COLOR_GRAY100, COLOR_GRAY200, COLOR_GRAY300, COLOR_GRAY400, COLOR_GRAY500]


def _parse_hex(color: str) -> int:
    return int(color[1:] if color.startswith("#") else color, 16)


def shade_color(color: str, percent: float) -> str:
    """Blend ``color`` towards white by ``percent`` (0..1)."""
    f = _parse_hex(color)
    channels = ((f >> 16) & 0xFF, (f >> 8) & 0xFF, f & 0xFF)
    shaded = [round((255 - channel) * percent) + channel for channel in channels]
    return "#" + "".join(f"{channel:02x}" for channel in shaded)


def level_opacity(level: int) -> float:
    return min(80, 50 + level * 5) / 100


def header_background(color: Optional[str], level: int) -> Optional[str]:
    if not color:
        return None
    return shade_color(color, level_opacity(level))


def summary_background(level: int) -> str:
    return GROUP_COLORS[min(level, len(GROUP_COLORS) - 1)]
