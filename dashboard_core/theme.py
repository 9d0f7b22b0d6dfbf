from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

DATA_SERIES_COLORS: Tuple[str, ...] = ("#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884d8", "#82ca9d")


@dataclass(frozen=True)
class Theme:
    is_dark: bool
    data_series_colors: Tuple[str, ...]
    text_color: str
    background_color: str
    grid_color: str
    tooltip_background: str
    tooltip_border: str
    border_color: str

    def series_color(self, index: int) -> str:
        return self.data_series_colors[index % len(self.data_series_colors)]


LIGHT = Theme(
    is_dark=False,
    data_series_colors=DATA_SERIES_COLORS,
    text_color="#374151",
    background_color="#FFFFFF",
    grid_color="#E5E7EB",
    tooltip_background="#FFFFFF",
    tooltip_border="#E5E7EB",
    border_color="black",
)

DARK = Theme(
    is_dark=True,
    data_series_colors=DATA_SERIES_COLORS,
    text_color="#E5E7EB",
    background_color="#1F2937",
    grid_color="#4B5563",
    tooltip_background="#374151",
    tooltip_border="#4B5563",
    border_color="white",
)


def resolve_theme(is_dark: bool) -> Theme:
    return DARK if bool(is_dark) else LIGHT


def resolve_dark_flag(override: Optional[bool], system_prefers_dark: bool = False) -> bool:
    """A persisted user choice wins; otherwise follow the system preference."""
    if override is None:
        return bool(system_prefers_dark)
    return bool(override)


def vega_config(theme: Theme) -> Dict[str, Any]:
    return {
        "background": theme.background_color,
        "axis": {
            "labelColor": theme.text_color,
            "titleColor": theme.text_color,
            "gridColor": theme.grid_color,
            "gridDash": [3, 3],
            "domainColor": theme.text_color,
            "tickColor": theme.text_color,
        },
        "legend": {"labelColor": theme.text_color, "titleColor": theme.text_color},
        "title": {"color": theme.text_color, "anchor": "start", "fontSize": 14},
        "view": {"stroke": None},
    }
