from __future__ import annotations

import asyncio

import pytest
from fakes import FakeSource, ScopedSource

from dashboard_core import endpoints
from dashboard_core.fetch import FetchError, FetchRequest, HttpDataSource, Snapshot, collect_snapshot


def test_collect_snapshot_coerces_each_envelope() -> None:
    source = FakeSource(
        {
            "jobs": {"data": [{"status": "Open"}, "junk"]},
            "technicians": {"users": [{"name": "Ana"}]},
            "customers": {"data": [{"name": "Acme"}], "total": 42},
            "user_counts": {"total": 9, "newLast24Hours": 1},
        }
    )
    requests = [endpoints.ALL_JOBS, endpoints.AVAILABLE_TECHNICIANS, endpoints.CUSTOMERS, endpoints.USER_COUNTS]
    snapshot = asyncio.run(collect_snapshot(source, requests))

    assert snapshot.get("jobs") == [{"status": "Open"}]
    assert snapshot.get("technicians") == [{"name": "Ana"}]
    assert snapshot.total("customers") == 42
    assert snapshot.total("jobs") == 1
    assert snapshot.mapping("user_counts")["total"] == 9
    assert len(source.calls) == 4


def test_missing_payloads_become_empty() -> None:
    snapshot = asyncio.run(collect_snapshot(FakeSource({}), [endpoints.ALL_JOBS, endpoints.ISSUE_STATS]))
    assert snapshot.get("jobs") == []
    assert snapshot.mapping("issue_stats") == {}
    assert snapshot.get("never-requested") == []


def test_any_failure_fails_the_whole_cycle() -> None:
    source = FakeSource({"jobs": {"data": [{"status": "Open"}]}}, fail={"pending_parts"})
    with pytest.raises(FetchError) as info:
        asyncio.run(collect_snapshot(source, [endpoints.ALL_JOBS, endpoints.PENDING_PARTS]))
    assert info.value.resource == "pending_parts"
    assert "unavailable" in str(info.value)


def test_technician_requests_target_the_technician() -> None:
    jobs = endpoints.technician_jobs("t1")
    parts = endpoints.technician_parts("t1")
    assert jobs.path == "/jobs/technician/t1"
    assert parts.params == {"status": "Pending"}

    nested = {"data": {"jobs": [{"job_number": "J-1"}]}}
    snapshot = asyncio.run(collect_snapshot(FakeSource({"jobs": nested}), [jobs]))
    assert snapshot.get("jobs") == [{"job_number": "J-1"}]


def test_http_source_sends_bearer_token() -> None:
    assert HttpDataSource("http://x/", "abc")._headers() == {"Authorization": "Bearer abc"}
    assert HttpDataSource("http://x/")._headers() == {}
    assert HttpDataSource("http://x/api/").base_url == "http://x/api"


def test_snapshot_defaults() -> None:
    snapshot = Snapshot()
    assert snapshot.total("anything") == 0
    assert FetchRequest("x", "/x").paths == (("data",),)


def test_cycle_holds_a_scoped_source_open_once() -> None:
    source = ScopedSource({"jobs": {"data": [{"status": "Open"}]}})
    requests = [endpoints.ALL_JOBS, endpoints.PENDING_PARTS, endpoints.CUSTOMERS]
    snapshot = asyncio.run(collect_snapshot(source, requests))
    assert snapshot.get("jobs") == [{"status": "Open"}]
    assert (source.opened, source.closed) == (1, 1)
    assert source.open_fetches == 3

    failing = ScopedSource(fail={"jobs"})
    with pytest.raises(FetchError):
        asyncio.run(collect_snapshot(failing, [endpoints.ALL_JOBS]))
    assert (failing.opened, failing.closed) == (1, 1)


def test_http_source_shares_one_session_until_last_exit() -> None:
    async def scenario():
        source = HttpDataSource("http://x")
        async with source:
            first = source._session
            async with source:
                assert source._session is first
            assert source._session is first and not first.closed
        return first, source._session

    first, after = asyncio.run(scenario())
    assert first is not None and first.closed
    assert after is None
