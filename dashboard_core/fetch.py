from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager, nullcontext
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Mapping, Optional, Protocol, Sequence, Tuple

import aiohttp

from dashboard_core.records import KeyPath, coerce_mapping, coerce_records, coerce_total

logger = logging.getLogger(__name__)

Shape = Literal["records", "mapping"]


class FetchError(Exception):
    def __init__(self, resource: str, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(f"{resource}: {message}")
        self.resource = resource
        self.status = status


@dataclass(frozen=True)
class FetchRequest:
    name: str
    path: str
    params: Mapping[str, Any] = field(default_factory=dict)
    paths: Tuple[KeyPath, ...] = (("data",),)
    shape: Shape = "records"
    total_key: Optional[str] = None


@dataclass
class Snapshot:
    records: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    mappings: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    totals: Dict[str, int] = field(default_factory=dict)
    fetched_at: datetime = field(default_factory=datetime.now)

    def get(self, name: str) -> List[Dict[str, Any]]:
        return self.records.get(name, [])

    def mapping(self, name: str) -> Dict[str, Any]:
        return self.mappings.get(name, {})

    def total(self, name: str) -> int:
        if name in self.totals:
            return self.totals[name]
        return len(self.records.get(name, []))


class DataSource(Protocol):
    async def fetch(self, request: FetchRequest) -> Any: ...


class Notifier(Protocol):
    def report_failure(self, message: str) -> None: ...


class LoggingNotifier:
    def report_failure(self, message: str) -> None:
        logger.warning("dashboard failure: %s", message)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class HttpDataSource:
    """Reads backend collections over HTTP with a bearer credential.

    Used as an async context manager, the source keeps one `aiohttp.ClientSession`
    open for every fetch issued inside it. Nested entries share that session and
    the last exit closes it. Outside a context each fetch opens its own session.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, *, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._users = 0

    async def __aenter__(self) -> "HttpDataSource":
        if self._session is None:
            self._session = aiohttp.ClientSession()
        self._users += 1
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._users -= 1
        if self._users == 0 and self._session is not None:
            session, self._session = self._session, None
            await session.close()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def fetch(self, request: FetchRequest) -> Any:
        if self._session is not None:
            return await self._get(self._session, request)
        async with aiohttp.ClientSession() as session:
            return await self._get(session, request)

    async def _get(self, session: aiohttp.ClientSession, request: FetchRequest) -> Any:
        url = f"{self.base_url}/{request.path.lstrip('/')}"
        params = {k: _query_value(v) for k, v in request.params.items() if v is not None}
        try:
            async with session.get(
                url, headers=self._headers(), params=params, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise FetchError(request.name, f"HTTP {response.status}: {text[:200]}", status=response.status)
                return await response.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise FetchError(request.name, "timeout") from exc
        except aiohttp.ClientError as exc:
            raise FetchError(request.name, str(exc)) from exc


def coerce_payload(snapshot: Snapshot, request: FetchRequest, payload: Any) -> None:
    if request.shape == "mapping":
        snapshot.mappings[request.name] = coerce_mapping(payload, *request.paths)
        return
    snapshot.records[request.name] = coerce_records(payload, *request.paths)
    if request.total_key:
        snapshot.totals[request.name] = coerce_total(payload, request.total_key, default=len(snapshot.records[request.name]))


async def collect_snapshot(source: DataSource, requests: Sequence[FetchRequest]) -> Snapshot:
    """Issue every request of one cycle together; fail the cycle if any of them fails.

    Sources that are async context managers are held open for the cycle, so an
    `HttpDataSource` serves all of a cycle's requests from one session.
    """
    scope = source if isinstance(source, AbstractAsyncContextManager) else nullcontext()
    async with scope:
        results = await asyncio.gather(*(source.fetch(r) for r in requests), return_exceptions=True)
    snapshot = Snapshot()
    for request, result in zip(requests, results):
        if isinstance(result, FetchError):
            raise result
        if isinstance(result, BaseException):
            raise FetchError(request.name, str(result) or type(result).__name__) from result
        coerce_payload(snapshot, request, result)
    return snapshot
