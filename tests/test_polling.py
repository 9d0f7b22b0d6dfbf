from __future__ import annotations

import asyncio

from fakes import FakeSource, GatedSource, RecordingNotifier

from dashboard_core.fetch import FetchRequest
from dashboard_core.polling import DashboardView, PeriodicTask, Widget

JOBS = FetchRequest("jobs", "/jobs")


def _count(snapshot, ctx):
    return {"count": len(snapshot.get("jobs"))}


def _widget(name: str = "stats", interval: float = 60.0) -> Widget:
    return Widget(name, name.title(), (JOBS,), _count, interval, {"count": 0})


def test_refresh_updates_state() -> None:
    view = DashboardView(FakeSource({"jobs": {"data": [{}, {}]}}), [_widget()])
    assert view.state("stats").loading is True
    assert view.state("stats").data == {"count": 0}

    assert asyncio.run(view.refresh("stats")) is True
    state = view.state("stats")
    assert state.data == {"count": 2}
    assert state.loading is False
    assert state.error is None
    assert state.updated_at is not None


def test_failure_retains_last_good_data_and_notifies() -> None:
    source = FakeSource({"jobs": {"data": [{}]}})
    notifier = RecordingNotifier()
    view = DashboardView(source, [_widget()], notifier=notifier)

    async def scenario():
        await view.refresh("stats")
        source.fail.add("jobs")
        return await view.refresh("stats")

    assert asyncio.run(scenario()) is False
    assert view.state("stats").data == {"count": 1}
    assert view.state("stats").error
    assert notifier.messages == ["Failed to load Stats"]


def test_reset_policy_restores_empty_payload() -> None:
    source = FakeSource({"jobs": {"data": [{}]}})
    view = DashboardView(source, [_widget()], notifier=RecordingNotifier(), policy="reset")

    async def scenario():
        await view.refresh("stats")
        source.fail.add("jobs")
        await view.refresh("stats")

    asyncio.run(scenario())
    assert view.state("stats").data == {"count": 0}
    assert view.state("stats").loading is False


def test_one_widget_failing_does_not_affect_siblings() -> None:
    failing = Widget("broken", "Broken", (FetchRequest("missing", "/missing"),), _count, 60.0)
    source = FakeSource({"jobs": {"data": [{}]}}, fail={"missing"})
    view = DashboardView(source, [_widget(), failing], notifier=RecordingNotifier())

    results = asyncio.run(view.refresh_all())
    assert results == {"stats": True, "broken": False}
    assert view.state("stats").data == {"count": 1}


def test_response_after_teardown_is_discarded() -> None:
    source = GatedSource([{"data": [{}, {}, {}]}])
    view = DashboardView(source, [_widget()])

    async def scenario():
        pending = asyncio.create_task(view.refresh("stats"))
        await asyncio.sleep(0)
        view.teardown()
        source.release(0)
        return await pending

    assert asyncio.run(scenario()) is False
    assert view.state("stats").data == {"count": 0}
    assert view.torn_down is True


def test_failure_after_teardown_is_not_reported() -> None:
    source = GatedSource([RuntimeError("late")])
    notifier = RecordingNotifier()
    view = DashboardView(source, [_widget()], notifier=notifier)

    async def scenario():
        pending = asyncio.create_task(view.refresh("stats"))
        await asyncio.sleep(0)
        view.teardown()
        source.release(0)
        return await pending

    assert asyncio.run(scenario()) is False
    assert notifier.messages == []
    assert view.state("stats").error is None


def test_stale_response_does_not_overwrite_newer_one() -> None:
    source = GatedSource([{"data": [{}]}, {"data": [{}, {}]}])
    view = DashboardView(source, [_widget()])

    async def scenario():
        first = asyncio.create_task(view.refresh("stats"))
        await asyncio.sleep(0)
        second = asyncio.create_task(view.refresh("stats"))
        await asyncio.sleep(0)
        source.release(1)
        assert await second is True
        source.release(0)
        return await first

    assert asyncio.run(scenario()) is False
    assert view.state("stats").data == {"count": 2}


def test_periodic_task_runs_immediately_and_repeats() -> None:
    calls = []

    async def tick():
        calls.append(1)

    async def scenario():
        task = PeriodicTask(0.01, tick, name="tick").start()
        await asyncio.sleep(0.05)
        assert task.running
        task.cancel()
        task.cancel()
        await task.wait()
        return task

    task = asyncio.run(scenario())
    assert len(calls) >= 2
    assert task.cancelled is True
    assert task.running is False


def test_periodic_task_survives_failing_ticks() -> None:
    calls = []

    async def tick():
        calls.append(1)
        raise RuntimeError("tick")

    async def scenario():
        task = PeriodicTask(0.01, tick).start()
        await asyncio.sleep(0.05)
        task.cancel()
        await task.wait()

    asyncio.run(scenario())
    assert len(calls) >= 2


def test_view_start_polls_until_closed() -> None:
    source = FakeSource({"jobs": {"data": [{}]}})
    view = DashboardView(source, [_widget(interval=0.01)])

    async def scenario():
        view.start()
        await asyncio.sleep(0.05)
        await view.close()
        calls = len(source.calls)
        await asyncio.sleep(0.03)
        return calls

    calls_at_close = asyncio.run(scenario())
    assert calls_at_close >= 2
    assert len(source.calls) == calls_at_close
    assert view.state("stats").data == {"count": 1}
