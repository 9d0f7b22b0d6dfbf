from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence

import pandas as pd

from dashboard_core.records import FieldSelector, Record, entity_name, is_missing, parse_timestamp, select_values


@dataclass(frozen=True)
class DistributionPoint:
    name: str
    value: int


def _value_counts(values: Sequence[Any]) -> pd.Series:
    labels = pd.Series([str(v) for v in values if not is_missing(v)], dtype=object)
    if labels.empty:
        return pd.Series(dtype="int64")
    # groupby(sort=False) keeps groups in first-seen order
    return labels.groupby(labels, sort=False).size()


def _to_points(counts: pd.Series) -> List[DistributionPoint]:
    return [DistributionPoint(name=str(name), value=int(count)) for name, count in counts.items()]


def aggregate_distribution(records: Sequence[Record], field: FieldSelector) -> List[DistributionPoint]:
    """Count records per distinct (stringified) field value, in first-seen order.

    Records whose field is missing are skipped. Empty input yields an empty list.
    """
    return _to_points(_value_counts(select_values(records, field)))


def top_items(records: Sequence[Record], field: FieldSelector, limit: int = 5) -> List[DistributionPoint]:
    counts = _value_counts(select_values(records, field))
    if counts.empty:
        return []
    ranked = counts.sort_values(ascending=False, kind="stable")
    return _to_points(ranked.head(max(0, int(limit))))


def hourly_distribution(records: Sequence[Record], timestamp_field: FieldSelector) -> List[DistributionPoint]:
    hours = [ts.hour for ts in (parse_timestamp(v) for v in select_values(records, timestamp_field)) if ts is not None]
    if not hours:
        return []
    counts = pd.Series(hours, dtype="int64").value_counts().sort_index()
    return [DistributionPoint(name=f"{int(hour)}-00", value=int(count)) for hour, count in counts.items()]


def count_where(
    records: Sequence[Record],
    field: FieldSelector,
    value: Any,
    *,
    casefold: bool = False,
    negate: bool = False,
) -> int:
    target = str(value).casefold() if casefold else value
    total = 0
    for v in select_values(records, field):
        if casefold and isinstance(v, str):
            v = v.casefold()
        matched = (not is_missing(v)) and v == target
        if matched != negate:
            total += 1
    return total


EntityMetric = Callable[[List[Record]], Any]


def entity_metrics(
    records: Sequence[Record],
    name_field: FieldSelector,
    metrics: Mapping[str, EntityMetric],
) -> List[Dict[str, Any]]:
    """One row per entity (first-seen order) with each metric computed over its records.

    Entities are identified by `entity_name` of the field value, so populated
    references (`{"name": ...}`) and bare ids both group. Records without an
    entity are skipped.
    """
    groups: Dict[str, List[Record]] = {}
    for record, value in zip(records or [], select_values(records, name_field)):
        name = entity_name(value)
        if name is None:
            continue
        groups.setdefault(name, []).append(record)
    return [{"name": name, **{key: fn(group) for key, fn in metrics.items()}} for name, group in groups.items()]
