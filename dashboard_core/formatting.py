from __future__ import annotations

import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from dashboard_core.records import is_missing, parse_timestamp


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if is_missing(value):
        return None
    try:
        q = Decimal(10) ** -ndigits
        return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))
    except Exception:
        return None


def as_number(value: object) -> float:
    if is_missing(value) or isinstance(value, bool):
        return 0.0
    try:
        return float(value)  # type: ignore[arg-type]
    except Exception:
        return 0.0


def format_percent(fraction: object, decimals: int = 0) -> str:
    rounded = round_half_up(as_number(fraction) * 100, decimals)
    return f"{rounded or 0.0:.{decimals}f}%"


def display_value(value: Any) -> str:
    """Stat card text: N/A for missing, length for lists, userName for user objects."""
    if is_missing(value):
        return "N/A"
    if isinstance(value, (list, tuple)):
        return str(len(value))
    if isinstance(value, dict):
        if value.get("userName"):
            return str(value["userName"])
        return json.dumps(value, default=str)
    return str(value)


def short_datetime(value: Any, fmt: str = "%Y-%m-%d %H:%M") -> str:
    ts = parse_timestamp(value)
    return ts.strftime(fmt) if ts is not None else "N/A"
