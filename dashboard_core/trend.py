from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Literal, Optional, Sequence

import pandas as pd

from dashboard_core.records import FieldSelector, Record, parse_timestamp, select_values

PeriodFreq = Literal["D", "M"]

PERIOD_FORMATS = {"D": "%Y-%m-%d", "M": "%Y-%m"}


@dataclass(frozen=True)
class TrendPoint:
    date: str
    count: int


def day_label(day: pd.Timestamp) -> str:
    """Short month + day of month, e.g. "Oct 7"."""
    return f"{day.strftime('%b')} {day.day}"


def normalize_day(value: Any = None) -> pd.Timestamp:
    if value is None:
        return pd.Timestamp.now().normalize()
    ts = parse_timestamp(value)
    if ts is None:
        raise ValueError(f"invalid day: {value!r}")
    return ts.normalize()


def trailing_days(window_days: int = 7, today: Any = None) -> pd.DatetimeIndex:
    if int(window_days) < 1:
        raise ValueError("window_days must be >= 1")
    return pd.date_range(end=normalize_day(today), periods=int(window_days), freq="D")


def _record_days(records: Sequence[Record], timestamp_field: FieldSelector) -> pd.Series:
    stamps = [ts for ts in (parse_timestamp(v) for v in select_values(records, timestamp_field)) if ts is not None]
    return pd.Series(stamps, dtype="datetime64[ns]").dt.normalize()


def bucket_trend(
    records: Sequence[Record],
    timestamp_field: FieldSelector,
    window_days: int = 7,
    today: Any = None,
    label: Callable[[pd.Timestamp], str] = day_label,
) -> List[TrendPoint]:
    """Count records per local calendar day over the trailing window ending today.

    Always returns exactly `window_days` points, oldest first, zero-filled. Records
    with a missing or unparseable timestamp, or outside the window, count nowhere.
    """
    days = trailing_days(window_days, today)
    counts = _record_days(records, timestamp_field).value_counts().reindex(days, fill_value=0)
    return [TrendPoint(date=label(day), count=int(count)) for day, count in counts.items()]


def period_series(records: Sequence[Record], timestamp_field: FieldSelector, freq: PeriodFreq = "D") -> List[TrendPoint]:
    fmt = PERIOD_FORMATS[freq]
    days = _record_days(records, timestamp_field)
    if days.empty:
        return []
    counts = days.dt.strftime(fmt).value_counts().sort_index()
    return [TrendPoint(date=str(period), count=int(count)) for period, count in counts.items()]


def count_on_day(records: Sequence[Record], timestamp_field: FieldSelector, day: Optional[Any] = None) -> int:
    target = normalize_day(day)
    days = _record_days(records, timestamp_field)
    return int((days == target).sum())


def most_recent(records: Sequence[Record], timestamp_field: FieldSelector, limit: int = 5) -> List[Record]:
    """Newest-first records; undated ones sort last in their original order."""
    stamps = [parse_timestamp(v) for v in select_values(records, timestamp_field)]
    dated = sorted(
        (i for i, ts in enumerate(stamps) if ts is not None),
        key=lambda i: stamps[i],
        reverse=True,
    )
    undated = [i for i, ts in enumerate(stamps) if ts is None]
    return [records[i] for i in (dated + undated)[: max(0, int(limit))]]
