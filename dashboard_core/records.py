"""Fetch-boundary coercion.

Backend responses come in several envelopes (`{"data": [...]}`, `{"users": [...]}`,
`{"docs": [...]}`, bare lists, nested `{"data": {"jobs": [...]}}`). Everything
downstream assumes a plain list of dict records, so the envelope handling and the
"absent means empty" policy live here and nowhere else.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from pandas.errors import OutOfBoundsDatetime

Record = Mapping[str, Any]
FieldSelector = Union[str, Callable[[Record], Any]]
KeyPath = Tuple[str, ...]


def _dig(payload: Any, path: KeyPath) -> Any:
    cur = payload
    for key in path:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(key)
    return cur


def coerce_records(payload: Any, *paths: KeyPath) -> List[Dict[str, Any]]:
    candidates: Iterable[KeyPath] = list(paths) + [()]
    for path in candidates:
        found = _dig(payload, path)
        if isinstance(found, (list, tuple)):
            return [dict(item) for item in found if isinstance(item, Mapping)]
    return []


def coerce_mapping(payload: Any, *paths: KeyPath) -> Dict[str, Any]:
    for path in list(paths) + [()]:
        found = _dig(payload, path)
        if isinstance(found, Mapping):
            return dict(found)
    return {}


def coerce_total(payload: Any, key: str = "total", default: int = 0) -> int:
    value = _dig(payload, tuple(key.split(".")))
    if value is None or isinstance(value, bool):
        return default
    try:
        return max(0, int(value))
    except Exception:
        return default


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NA or value is pd.NaT


def field_getter(field: FieldSelector) -> Callable[[Record], Any]:
    if callable(field):
        return field
    path = tuple(str(field).split("."))

    def _get(record: Record) -> Any:
        return _dig(record, path)

    return _get


def parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """Parse a date-like value into a naive local-time Timestamp, or None.

    Numbers are epoch milliseconds. Timezone-aware inputs are converted to the
    machine's local wall clock so day truncation happens on local calendar days.
    """
    if is_missing(value) or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            ts = pd.to_datetime(value, unit="ms", utc=True, errors="coerce")
        elif isinstance(value, (str, datetime, date, pd.Timestamp)):
            ts = pd.to_datetime(value, errors="coerce")
        else:
            return None
    except Exception:
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    try:
        if ts.tzinfo is not None:
            ts = pd.Timestamp(ts.to_pydatetime().astimezone().replace(tzinfo=None))
        return ts.as_unit("ns")
    except (OutOfBoundsDatetime, OverflowError, ValueError):
        return None


def select_values(records: Sequence[Record], field: FieldSelector) -> List[Any]:
    get = field_getter(field)
    out: List[Any] = []
    for r in records or []:
        try:
            out.append(get(r))
        except (KeyError, IndexError, TypeError, AttributeError):
            out.append(None)
    return out


def first_present(*fields: str) -> Callable[[Record], Any]:
    """Selector returning the first non-missing value among several field names."""
    getters = [field_getter(f) for f in fields]

    def _get(record: Record) -> Any:
        for get in getters:
            value = get(record)
            if not is_missing(value):
                return value
        return None

    return _get


def entity_name(value: Any) -> Optional[str]:
    """Display name for a populated reference (`{"name": ...}`) or a bare id."""
    if is_missing(value):
        return None
    if isinstance(value, Mapping):
        for key in ("name", "userName", "user_name", "email", "_id"):
            if not is_missing(value.get(key)):
                return str(value[key])
        return None
    return str(value)
