from __future__ import annotations

from datetime import datetime

import pandas as pd

from dashboard_core.records import (
    coerce_mapping,
    coerce_records,
    coerce_total,
    entity_name,
    field_getter,
    first_present,
    parse_timestamp,
    select_values,
)


def test_coerce_records_unwraps_known_envelopes() -> None:
    assert coerce_records({"data": [{"a": 1}, 3, None]}, ("data",)) == [{"a": 1}]
    assert coerce_records({"users": [{"a": 1}]}, ("users",), ("data",)) == [{"a": 1}]
    assert coerce_records({"data": {"jobs": [{"a": 2}]}}, ("data", "jobs"), ("data",)) == [{"a": 2}]
    assert coerce_records([{"a": 3}]) == [{"a": 3}]


def test_coerce_records_absent_means_empty() -> None:
    assert coerce_records(None, ("data",)) == []
    assert coerce_records({"data": None}, ("data",)) == []
    assert coerce_records({"message": "ok"}, ("data",)) == []


def test_coerce_mapping_and_total() -> None:
    assert coerce_mapping({"data": {"total": 3}}, ("data",)) == {"total": 3}
    assert coerce_mapping("nope", ("data",)) == {}
    assert coerce_total({"total": "12"}) == 12
    assert coerce_total({"total": None}, default=4) == 4
    assert coerce_total({"total": "many"}) == 0
    assert coerce_total({"stats": {"count": 5}}, "stats.count") == 5


def test_field_getter_supports_dotted_paths_and_callables() -> None:
    record = {"assigned_to": {"name": "Ana"}, "status": "Open"}
    assert field_getter("assigned_to.name")(record) == "Ana"
    assert field_getter("missing.name")(record) is None
    assert field_getter(lambda r: r["status"].upper())(record) == "OPEN"


def test_select_values_yields_none_for_failing_selectors() -> None:
    assert select_values([{"a": 1}, {}], lambda r: r["a"]) == [1, None]


def test_parse_timestamp() -> None:
    assert parse_timestamp("2024-10-07 10:30") == pd.Timestamp("2024-10-07 10:30")
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(True) is None
    assert parse_timestamp(float("nan")) is None
    ts = parse_timestamp(0)
    assert ts is not None and ts.tzinfo is None
    assert parse_timestamp("1500-01-01") is None
    assert parse_timestamp(datetime(2500, 1, 1)) is None


def test_first_present_and_entity_name() -> None:
    get = first_present("createdAt", "created_at")
    assert get({"created_at": "x"}) == "x"
    assert get({"createdAt": "y", "created_at": "x"}) == "y"
    assert get({}) is None

    assert entity_name({"name": "Ana", "_id": "1"}) == "Ana"
    assert entity_name({"email": "a@b.c"}) == "a@b.c"
    assert entity_name("64ab") == "64ab"
    assert entity_name(None) is None
