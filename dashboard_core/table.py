"""Generic paginated table contract.

The table renders whatever page of rows the caller hands it; it never slices an
unpaginated collection itself (use `paginate` on the caller side for that). Page
changes only flow out through `on_page_change`, and only from enabled controls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Tuple

from dashboard_core.records import FieldSelector, Record, field_getter

Align = Literal["left", "right"]
TableState = Literal["loading", "error", "empty", "table"]
ControlName = Literal["first", "previous", "next", "last"]

EMPTY_MESSAGE = "No data found"
LOADING_MESSAGE = "Loading..."


@dataclass(frozen=True)
class ColumnDescriptor:
    key: str
    header: str
    accessor: FieldSelector
    align: Align = "left"

    def cell(self, record: Record) -> Any:
        try:
            return field_getter(self.accessor)(record)
        except (KeyError, IndexError, TypeError, AttributeError):
            return None


@dataclass(frozen=True)
class PageState:
    page: int = 1
    limit: int = 10
    total_count: int = 0

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValueError("limit must be > 0")
        if self.total_count < 0:
            raise ValueError("total_count must be >= 0")

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit)

    def clamped(self) -> "PageState":
        page = min(max(1, int(self.page)), max(1, self.total_pages))
        return self if page == self.page else replace(self, page=page)

    @property
    def first_row(self) -> int:
        return (self.page - 1) * self.limit + 1

    @property
    def last_row(self) -> int:
        return min(self.page * self.limit, self.total_count)

    def summary(self) -> str:
        return f"Showing {self.first_row}-{self.last_row} of {self.total_count}"


@dataclass(frozen=True)
class PagerControl:
    name: ControlName
    label: str
    target: int
    enabled: bool


def page_window(current: int, total_pages: int, max_visible: int = 5) -> List[int]:
    """Numbered page buttons around `current`, shifted left near the end."""
    if total_pages <= 1:
        return []
    half = max_visible // 2
    start = max(current - half, 1)
    end = min(start + max_visible - 1, total_pages)
    if end - start + 1 < max_visible:
        start = max(end - max_visible + 1, 1)
    return list(range(start, end + 1))


def paginate(rows: Sequence[Any], page: int, limit: int) -> Tuple[List[Any], PageState]:
    state = PageState(page=page, limit=limit, total_count=len(rows)).clamped()
    start = (state.page - 1) * state.limit
    return list(rows[start : start + state.limit]), state


def pager_controls(state: PageState) -> Dict[str, PagerControl]:
    total_pages = state.total_pages
    at_start = state.page <= 1
    at_end = state.page >= total_pages
    return {
        "first": PagerControl("first", "First", 1, not at_start),
        "previous": PagerControl("previous", "Previous", max(1, state.page - 1), not at_start),
        "next": PagerControl("next", "Next", min(max(1, total_pages), state.page + 1), not at_end),
        "last": PagerControl("last", "Last", max(1, total_pages), not at_end),
    }


@dataclass
class TableView:
    state: TableState
    columns: List[ColumnDescriptor]
    rows: List[List[Any]]
    page_state: PageState
    pager_visible: bool
    controls: Dict[str, PagerControl]
    summary: Optional[str]
    pages: List[int] = field(default_factory=list)
    message: Optional[str] = None
    on_page_change: Optional[Callable[[int], None]] = None
    on_retry: Optional[Callable[[], None]] = None

    @property
    def headers(self) -> List[str]:
        return [c.header for c in self.columns]

    @property
    def retry_available(self) -> bool:
        return self.state == "error"

    def press(self, name: str) -> bool:
        """Activate a pager control. Disabled or hidden controls do nothing."""
        control = self.controls.get(name)
        if control is None or not control.enabled or not self.pager_visible or self.state != "table":
            return False
        if self.on_page_change is not None:
            self.on_page_change(control.target)
        return True

    def go_to(self, page: int) -> bool:
        if not self.pager_visible or self.state != "table":
            return False
        target = replace(self.page_state, page=page).clamped().page
        if target == self.page_state.page:
            return False
        if self.on_page_change is not None:
            self.on_page_change(target)
        return True

    def retry(self) -> bool:
        if not self.retry_available:
            return False
        if self.on_retry is not None:
            self.on_retry()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "columns": [{"key": c.key, "header": c.header, "align": c.align} for c in self.columns],
            "rows": self.rows,
            "page": self.page_state.page,
            "limit": self.page_state.limit,
            "total_count": self.page_state.total_count,
            "total_pages": self.page_state.total_pages,
            "pager_visible": self.pager_visible,
            "controls": {k: {"label": c.label, "target": c.target, "enabled": c.enabled} for k, c in self.controls.items()},
            "pages": self.pages,
            "summary": self.summary,
            "message": self.message,
            "retry_available": self.retry_available,
        }


def _error_message(error: Any) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, dict):
        return str(error.get("message") or "Something went wrong")
    return str(error)


def render_table(
    data: Sequence[Record],
    columns: Sequence[ColumnDescriptor],
    page: int,
    limit: int,
    total_count: int,
    on_page_change: Optional[Callable[[int], None]] = None,
    *,
    loading: bool = False,
    error: Any = None,
    on_retry: Optional[Callable[[], None]] = None,
    empty_message: str = EMPTY_MESSAGE,
    loading_message: str = LOADING_MESSAGE,
) -> TableView:
    keys = [c.key for c in columns]
    if len(set(keys)) != len(keys):
        raise ValueError(f"column keys must be unique: {keys}")

    data = list(data or [])
    page_state = PageState(page=page, limit=limit, total_count=max(0, int(total_count))).clamped()
    controls = pager_controls(page_state)
    base = dict(columns=list(columns), page_state=page_state, controls=controls, on_page_change=on_page_change, on_retry=on_retry)

    if loading and not data:
        return TableView(state="loading", rows=[], pager_visible=False, summary=None, message=loading_message, **base)
    if error is not None:
        return TableView(state="error", rows=[], pager_visible=False, summary=None, message=_error_message(error), **base)
    if not data:
        return TableView(state="empty", rows=[], pager_visible=False, summary=None, message=empty_message, **base)

    rows = [[c.cell(record) for c in columns] for record in data]
    pager_visible = page_state.total_count > page_state.limit
    return TableView(
        state="table",
        rows=rows,
        pager_visible=pager_visible,
        summary=page_state.summary() if page_state.total_count > 0 else None,
        pages=page_window(page_state.page, page_state.total_pages) if pager_visible else [],
        **base,
    )


def table_payload(title: str, records: Sequence[Record], columns: Sequence[ColumnDescriptor]) -> Dict[str, Any]:
    """JSON-friendly table: accessors applied once, rows keyed by column key."""
    return {
        "title": title,
        "columns": [{"key": c.key, "header": c.header, "align": c.align} for c in columns],
        "records": [{c.key: c.cell(r) for c in columns} for r in records],
    }


def columns_from_payload(payload: Dict[str, Any]) -> List[ColumnDescriptor]:
    return [
        ColumnDescriptor(key=c["key"], header=c.get("header", c["key"]), accessor=c["key"], align=c.get("align", "left"))
        for c in payload.get("columns", [])
    ]


def render_table_payload(
    payload: Dict[str, Any],
    page: int = 1,
    limit: int = 10,
    on_page_change: Optional[Callable[[int], None]] = None,
    **kwargs: Any,
) -> TableView:
    records = payload.get("records", [])
    page_rows, state = paginate(records, page, limit)
    return render_table(page_rows, columns_from_payload(payload), state.page, state.limit, state.total_count, on_page_change, **kwargs)
