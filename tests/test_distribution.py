from __future__ import annotations

from dashboard_core.distribution import (
    DistributionPoint,
    aggregate_distribution,
    count_where,
    entity_metrics,
    hourly_distribution,
    top_items,
)


def test_counts_in_first_seen_order() -> None:
    records = [{"status": "Open"}, {"status": "Open"}, {"status": "Closed"}]
    assert aggregate_distribution(records, "status") == [
        DistributionPoint("Open", 2),
        DistributionPoint("Closed", 1),
    ]


def test_first_seen_order_is_not_alphabetical() -> None:
    records = [{"s": "b"}, {"s": "a"}, {"s": "c"}, {"s": "a"}]
    assert [p.name for p in aggregate_distribution(records, "s")] == ["b", "a", "c"]


def test_missing_values_are_skipped_and_sum_matches() -> None:
    records = [{"status": "Open"}, {}, {"status": None}, {"status": "Closed"}, {"status": float("nan")}]
    points = aggregate_distribution(records, "status")
    assert sum(p.value for p in points) == 2
    assert all(p.value >= 1 for p in points)


def test_empty_and_all_missing_inputs() -> None:
    assert aggregate_distribution([], "status") == []
    assert aggregate_distribution([{}, {"status": None}], "status") == []


def test_values_are_stringified() -> None:
    points = aggregate_distribution([{"n": 1}, {"n": "1"}, {"n": True}], "n")
    assert points == [DistributionPoint("1", 2), DistributionPoint("True", 1)]


def test_aggregation_is_deterministic() -> None:
    records = [{"t": x} for x in "abcabca"]
    assert aggregate_distribution(records, "t") == aggregate_distribution(records, "t")


def test_callable_selector() -> None:
    records = [{"user": {"name": "Ana"}}, {"user": {"name": "Bo"}}, {"user": {"name": "Ana"}}]
    points = aggregate_distribution(records, lambda r: r["user"]["name"])
    assert points == [DistributionPoint("Ana", 2), DistributionPoint("Bo", 1)]


def test_top_items_sorts_descending_with_stable_ties() -> None:
    records = [{"m": m} for m in ["A", "B", "B", "C", "C", "C", "D"]]
    assert top_items(records, "m", 3) == [
        DistributionPoint("C", 3),
        DistributionPoint("B", 2),
        DistributionPoint("A", 1),
    ]
    assert top_items([], "m") == []


def test_hourly_distribution() -> None:
    records = [
        {"timestamp": "2024-10-07 14:00"},
        {"timestamp": "2024-10-07 09:15"},
        {"timestamp": "2024-10-08 09:45"},
        {"timestamp": "garbage"},
    ]
    assert hourly_distribution(records, "timestamp") == [
        DistributionPoint("9-00", 2),
        DistributionPoint("14-00", 1),
    ]


def test_count_where() -> None:
    jobs = [{"status": "Closed"}, {"status": "open"}, {}, {"status": "CLOSED"}]
    assert count_where(jobs, "status", "closed", casefold=True) == 2
    assert count_where(jobs, "status", "closed", casefold=True, negate=True) == 2
    assert count_where(jobs, "status", "Closed") == 1


def test_entity_metrics_groups_by_entity_name() -> None:
    jobs = [
        {"assigned_to": {"name": "Ana"}, "h": 2},
        {"assigned_to": {"name": "Bo"}, "h": 4},
        {"assigned_to": {"name": "Ana"}, "h": 6},
        {"assigned_to": None, "h": 1},
    ]
    rows = entity_metrics(jobs, "assigned_to", {"jobs": len, "hours": lambda g: sum(j["h"] for j in g)})
    assert rows == [{"name": "Ana", "jobs": 2, "hours": 8}, {"name": "Bo", "jobs": 1, "hours": 4}]
