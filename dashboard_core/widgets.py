from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Literal, Optional

from dashboard_core.formatting import as_number, display_value
from dashboard_core.records import is_missing

Trend = Literal["up", "neutral"]


@dataclass(frozen=True)
class StatCard:
    title: str
    value: Any
    display: str
    additional_info: Optional[str] = None
    trend: Trend = "neutral"
    compact: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def stat_card(title: str, value: Any, additional_info: Any = None, *, compact: bool = False) -> StatCard:
    trend: Trend = "neutral"
    if not is_missing(value) and isinstance(value, (int, float)) and not isinstance(value, bool) and as_number(value) > 0:
        trend = "up"
    info = None if is_missing(additional_info) else display_value(additional_info)
    return StatCard(title=title, value=value, display=display_value(value), additional_info=info, trend=trend, compact=compact)


def stat_cards(kpis: Dict[str, Any], titles: Dict[str, str], *, compact: bool = True) -> List[Dict[str, Any]]:
    """Cards for `kpis`, in the order of `titles`."""
    return [stat_card(title, kpis.get(key), compact=compact).to_dict() for key, title in titles.items()]
