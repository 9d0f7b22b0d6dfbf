from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence

import pandas as pd

from dashboard_core.charts import (
    as_rows,
    label_tooltip,
    render_distribution,
    render_entity_metric,
    render_line,
    render_trend,
    unit_formatter,
)
from dashboard_core.distribution import aggregate_distribution, count_where
from dashboard_core.fetch import Snapshot
from dashboard_core.fields import ACTIVITY_TIME, JOB_CREATED, LAST_LOGIN, PART_REQUESTED
from dashboard_core.formatting import short_datetime
from dashboard_core.polling import ComputeContext
from dashboard_core.records import Record, coerce_records, coerce_total, parse_timestamp
from dashboard_core.table import ColumnDescriptor, table_payload
from dashboard_core.trend import bucket_trend, count_on_day, most_recent
from dashboard_core.widgets import stat_cards


# ---------- manager / coordinator ----------

def compute_job_stats(snapshot: Snapshot, ctx: ComputeContext, *, include_technicians: bool = True) -> Dict[str, Any]:
    jobs = snapshot.get("jobs")
    kpis: Dict[str, Any] = {
        "active_jobs": count_where(jobs, "status", "closed", casefold=True, negate=True),
        "pending_parts": len(snapshot.get("pending_parts")),
        "new_jobs": count_on_day(jobs, JOB_CREATED, ctx.today),
        "total_customers": snapshot.total("customers"),
    }
    titles = {"active_jobs": "Active Jobs", "pending_parts": "Pending Parts", "new_jobs": "New Jobs Today"}
    if include_technicians:
        kpis["available_technicians"] = len(snapshot.get("technicians"))
        titles["available_technicians"] = "Available Technicians"
    titles["total_customers"] = "Total Customers"
    return {"kpis": kpis, "cards": stat_cards(kpis, titles)}


def compute_job_overview_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    jobs = snapshot.get("jobs")
    parts = snapshot.get("parts_requests")
    job_trends = bucket_trend(jobs, JOB_CREATED, ctx.window_days, ctx.today)
    job_status = aggregate_distribution(jobs, "status")
    parts_status = aggregate_distribution(parts, "status")
    return {
        "series": {
            "job_trends": as_rows(job_trends),
            "job_status_distribution": as_rows(job_status),
            "parts_status_distribution": as_rows(parts_status),
        },
        "charts": {
            "job_trends": render_trend(
                job_trends, f"Jobs Created (Last {ctx.window_days} Days)", unit_formatter("jobs", keep_label=False), ctx.theme, kind="bar"
            ).to_dict(),
            "job_status": render_distribution(job_status, "Job Status Distribution", label_tooltip, ctx.theme).to_dict(),
            "parts_status": render_distribution(parts_status, "Parts Request Status", label_tooltip, ctx.theme).to_dict(),
        },
    }


# ---------- parts team ----------

PARTS_STATUSES = {"pending": "Pending", "approved": "Approved", "fulfilled": "Fulfilled", "rejected": "Rejected"}


def compute_parts_stats(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    requests = snapshot.get("parts_requests")
    kpis: Dict[str, Any] = {f"{key}_requests": count_where(requests, "status", status) for key, status in PARTS_STATUSES.items()}
    kpis["new_requests"] = count_on_day(requests, PART_REQUESTED, ctx.today)
    titles = {f"{key}_requests": status for key, status in PARTS_STATUSES.items()}
    titles["new_requests"] = "New Today"
    return {"kpis": kpis, "cards": stat_cards(kpis, titles)}


def compute_parts_overview_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    requests = snapshot.get("parts_requests")
    trends = bucket_trend(requests, PART_REQUESTED, ctx.window_days, ctx.today)
    status = aggregate_distribution(requests, "status")
    return {
        "series": {
            "request_trends": as_rows(trends),
            "request_status_distribution": as_rows(status),
        },
        "charts": {
            "request_trends": render_trend(
                trends, f"Parts Requests (Last {ctx.window_days} Days)", unit_formatter("requests", keep_label=False), ctx.theme
            ).to_dict(),
            "request_status": render_distribution(status, "Request Status Distribution", label_tooltip, ctx.theme).to_dict(),
        },
    }


# ---------- admin ----------

def _open_issue_count(issue_stats: Dict[str, Any]) -> int:
    for row in coerce_records(issue_stats, ("byStatus",)):
        if row.get("_id") == "Open":
            return coerce_total(row, "count")
    return 0


def compute_admin_stats(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    counts = snapshot.mapping("user_counts")
    issue_stats = snapshot.mapping("issue_stats")
    kpis = {
        "total_users": coerce_total(counts, "total"),
        "issues_count": coerce_total(issue_stats, "total"),
        "open_issues": _open_issue_count(issue_stats),
        "new_users": coerce_total(counts, "newLast24Hours"),
    }
    titles = {"total_users": "Total Users", "issues_count": "System Issues", "open_issues": "Open Issues", "new_users": "New Users (24h)"}
    return {"kpis": kpis, "cards": stat_cards(kpis, titles)}


def activity_summary_rows(summary: Sequence[Record]) -> List[Dict[str, Any]]:
    rows = []
    for user in summary:
        row: Dict[str, Any] = {"name": user.get("user_name"), "actions": coerce_total(user, "total_actions")}
        for action in coerce_records(user, ("actions",)):
            row[f"{action.get('entity_type')}_{action.get('action')}"] = coerce_total(action, "count")
        rows.append(row)
    return rows


def login_rows(users: Sequence[Record], now: Any = None, limit: int = 7) -> List[Dict[str, Any]]:
    now_ts = parse_timestamp(now) if now is not None else pd.Timestamp.now()
    rows = []
    for user in most_recent([u for u in users if parse_timestamp(LAST_LOGIN(u)) is not None], LAST_LOGIN, limit):
        last = parse_timestamp(LAST_LOGIN(user))
        name = user.get("name") or str(user.get("email") or "").split("@")[0] or None
        days = math.floor((now_ts - last).total_seconds() / 86400)
        rows.append({"name": name, "last_login": last.strftime("%Y-%m-%d"), "days_since_login": float(days)})
    return rows


ACTIVITY_COLUMNS = [
    ColumnDescriptor("user", "User", "user_name"),
    ColumnDescriptor("action", "Action", "action"),
    ColumnDescriptor("entity", "Entity", "entity_type"),
    ColumnDescriptor("when", "When", lambda r: short_datetime(ACTIVITY_TIME(r))),
]


def compute_admin_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    activity = activity_summary_rows(snapshot.get("activity_summary"))
    logins = login_rows(snapshot.get("users"), ctx.today)
    accent = "#65C2CB" if ctx.theme.is_dark else "#1E4065"
    return {
        "series": {"activity_summary": activity, "logins": logins},
        "charts": {
            "user_activity": render_entity_metric(
                activity, "actions", "User Activity Summary", unit_formatter("actions", keep_label=False), ctx.theme, color=accent
            ).to_dict(),
            "recent_logins": render_line(
                logins, "days_since_login", "name", "Recent User Logins", unit_formatter("days", keep_label=False), ctx.theme,
                color="#65C2CB" if ctx.theme.is_dark else "#FF6384",
            ).to_dict(),
        },
        "tables": {"recent_activity": table_payload("Recent Activity", snapshot.get("recent_activity"), ACTIVITY_COLUMNS)},
    }


# ---------- technician ----------

def _job_number(job: Any) -> str:
    if isinstance(job, dict) and job.get("job_number"):
        return str(job["job_number"])
    return "N/A"


RECENT_JOB_COLUMNS = [
    ColumnDescriptor("job_number", "Job #", "job_number"),
    ColumnDescriptor("status", "Status", "status"),
    ColumnDescriptor("description", "Description", lambda r: str(r.get("description") or "")[:30]),
]


RECENT_PART_COLUMNS = [
    ColumnDescriptor("parts", "Parts", lambda r: str(r.get("parts_description") or "")[:20]),
    ColumnDescriptor("status", "Status", "status"),
    ColumnDescriptor("job", "Job", lambda r: _job_number(r.get("job_id"))),
    ColumnDescriptor("requested", "Requested", lambda r: short_datetime(PART_REQUESTED(r), "%Y-%m-%d")),
]


def compute_technician_overview(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    jobs = snapshot.get("jobs")
    pending = snapshot.get("pending_parts")
    kpis = {
        "assigned": count_where(jobs, "status", "Assigned"),
        "in_progress": count_where(jobs, "status", "In Progress"),
        "completed": count_where(jobs, "status", "Completed"),
        "parts_needed": len(pending),
    }
    titles = {"assigned": "Assigned", "in_progress": "In Progress", "completed": "Completed", "parts_needed": "Parts Needed"}
    return {
        "kpis": kpis,
        "cards": stat_cards(kpis, titles),
        "tables": {
            "recent_jobs": table_payload("Recent Jobs (5)", most_recent(jobs, JOB_CREATED, 5), RECENT_JOB_COLUMNS),
            "recent_parts": table_payload("Recent Parts (5)", most_recent(pending, PART_REQUESTED, 5), RECENT_PART_COLUMNS),
        },
    }

