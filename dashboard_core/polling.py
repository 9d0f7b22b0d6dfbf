"""Periodic refresh of dashboard widgets, bound to the lifetime of a view.

Each widget owns one `PeriodicTask`. A refresh cycle fetches every request the
widget needs, aggregates the fresh snapshot, and only then touches widget state.
Once a view is torn down, in-flight cycles are cancelled and late responses are
dropped without mutating anything.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from dashboard_core.fetch import DataSource, FetchRequest, LoggingNotifier, Notifier, Snapshot, collect_snapshot
from dashboard_core.settings import FailurePolicy
from dashboard_core.theme import LIGHT, Theme

logger = logging.getLogger(__name__)


class PeriodicTask:
    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[Any]],
        *,
        name: str = "periodic",
        run_immediately: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.interval = interval
        self.callback = callback
        self.name = name
        self.run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    def start(self) -> "PeriodicTask":
        if self._cancelled:
            raise RuntimeError(f"{self.name} was cancelled and cannot be restarted")
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        return self

    async def _run(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval)
        while True:
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s tick failed", self.name)
            await asyncio.sleep(self.interval)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass


@dataclass(frozen=True)
class ComputeContext:
    theme: Theme = LIGHT
    today: Any = None
    window_days: int = 7
    page_limit: int = 10


Compute = Callable[[Snapshot, ComputeContext], Dict[str, Any]]


@dataclass(frozen=True)
class Widget:
    name: str
    title: str
    requests: Tuple[FetchRequest, ...]
    compute: Compute
    interval: float
    empty: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WidgetState:
    data: Dict[str, Any]
    loading: bool = True
    error: Optional[str] = None
    updated_at: Optional[datetime] = None
    generation: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "loading": self.loading,
            "error": self.error,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


async def run_cycle(source: DataSource, widget: Widget, context: ComputeContext) -> Dict[str, Any]:
    snapshot = await collect_snapshot(source, widget.requests)
    return widget.compute(snapshot, context)


class DashboardView:
    def __init__(
        self,
        source: DataSource,
        widgets: Sequence[Widget],
        *,
        notifier: Optional[Notifier] = None,
        policy: FailurePolicy = "retain",
        context: Callable[[], ComputeContext] = ComputeContext,
    ) -> None:
        names = [w.name for w in widgets]
        if len(set(names)) != len(names):
            raise ValueError(f"widget names must be unique: {names}")
        self.source = source
        self.notifier = notifier or LoggingNotifier()
        self.policy = policy
        self.context = context
        self._widgets: Dict[str, Widget] = {w.name: w for w in widgets}
        self._states: Dict[str, WidgetState] = {w.name: WidgetState(data=dict(w.empty)) for w in widgets}
        self._issued: Dict[str, int] = {w.name: 0 for w in widgets}
        self._tasks: Dict[str, PeriodicTask] = {}
        self._torn_down = False

    @property
    def widgets(self) -> List[Widget]:
        return list(self._widgets.values())

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def state(self, name: str) -> WidgetState:
        return self._states[name]

    def states(self) -> Dict[str, Dict[str, Any]]:
        return {name: s.to_dict() for name, s in self._states.items()}

    def start(self) -> None:
        if self._torn_down:
            raise RuntimeError("view already torn down")
        for widget in self._widgets.values():
            if widget.name in self._tasks:
                continue
            self._tasks[widget.name] = PeriodicTask(
                widget.interval, lambda name=widget.name: self.refresh(name), name=f"poll:{widget.name}"
            ).start()

    async def refresh(self, name: str) -> bool:
        """Run one fetch-aggregate cycle for a widget. Returns True when state was updated."""
        if self._torn_down:
            return False
        widget = self._widgets[name]
        self._issued[name] += 1
        ticket = self._issued[name]
        try:
            data = await run_cycle(self.source, widget, self.context())
        except Exception as exc:
            if self._torn_down:
                logger.debug("dropping failure for %s after teardown", name)
                return False
            if ticket < self._states[name].generation:
                return False
            logger.warning("refresh of %s failed: %s", name, exc)
            self.notifier.report_failure(f"Failed to load {widget.title}")
            state = self._states[name]
            state.loading = False
            state.error = str(exc)
            if self.policy == "reset":
                state.data = dict(widget.empty)
            return False

        if self._torn_down:
            logger.debug("discarding response for %s after teardown", name)
            return False
        state = self._states[name]
        if ticket < state.generation:
            logger.debug("discarding out-of-order response for %s", name)
            return False
        state.data = data
        state.loading = False
        state.error = None
        state.updated_at = datetime.now()
        state.generation = ticket
        return True

    async def refresh_all(self) -> Dict[str, bool]:
        names = list(self._widgets)
        results = await asyncio.gather(*(self.refresh(n) for n in names))
        return dict(zip(names, results))

    def teardown(self) -> None:
        self._torn_down = True
        for task in self._tasks.values():
            task.cancel()

    async def close(self) -> None:
        self.teardown()
        for task in self._tasks.values():
            await task.wait()
