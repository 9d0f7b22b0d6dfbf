"""Role dashboards and analytics pages, expressed as polled widgets."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from dashboard_core import endpoints
from dashboard_core.metrics_activity import compute_activity_analytics
from dashboard_core.metrics_customers import compute_customer_analytics
from dashboard_core.metrics_devices import compute_device_analytics
from dashboard_core.metrics_issues import compute_issue_analytics
from dashboard_core.metrics_jobs import compute_job_analytics
from dashboard_core.metrics_overview import (
    compute_admin_analytics,
    compute_admin_stats,
    compute_job_overview_analytics,
    compute_job_stats,
    compute_parts_overview_analytics,
    compute_parts_stats,
    compute_technician_overview,
)
from dashboard_core.metrics_parts import compute_parts_analytics
from dashboard_core.metrics_technicians import compute_technician_analytics
from dashboard_core.polling import ComputeContext, Widget
from dashboard_core.settings import DashboardSettings
from dashboard_core.theme import resolve_dark_flag, resolve_theme

ROLES = ("manager", "coordinator", "parts_team", "administrator", "technician")
ROLE_ALIASES = {"admin": "administrator"}

STATS_EMPTY: Dict[str, Any] = {"kpis": {}, "cards": []}
ANALYTICS_EMPTY: Dict[str, Any] = {"series": {}, "charts": {}, "tables": {}}
PAGE_EMPTY: Dict[str, Any] = {"kpis": {}, "cards": [], "series": {}, "charts": {}, "tables": {}}


def normalize_role(role: str) -> str:
    key = str(role or "").strip().lower().replace("-", "_").replace(" ", "_")
    key = ROLE_ALIASES.get(key, key)
    if key not in ROLES:
        raise ValueError(f"unknown role: {role!r}")
    return key


def compute_context(settings: DashboardSettings, *, today: Any = None, system_prefers_dark: bool = False) -> ComputeContext:
    return ComputeContext(
        theme=resolve_theme(resolve_dark_flag(settings.dark_mode, system_prefers_dark)),
        today=today,
        window_days=settings.window_days,
        page_limit=settings.page_limit,
    )


def _coordinator_stats(snapshot, ctx):
    return compute_job_stats(snapshot, ctx, include_technicians=False)


def build_dashboard(role: str, settings: DashboardSettings, technician_id: Optional[str] = None) -> List[Widget]:
    role = normalize_role(role)
    stats = settings.intervals.stats
    analytics = settings.intervals.analytics

    if role == "manager":
        return [
            Widget(
                "stats",
                "Dashboard Stats",
                (endpoints.ALL_JOBS, endpoints.PENDING_PARTS, endpoints.AVAILABLE_TECHNICIANS, endpoints.CUSTOMERS),
                compute_job_stats,
                stats,
                STATS_EMPTY,
            ),
            Widget("analytics", "Analytics", (endpoints.ALL_JOBS, endpoints.ALL_PARTS), compute_job_overview_analytics, analytics, ANALYTICS_EMPTY),
        ]
    if role == "coordinator":
        return [
            Widget(
                "stats",
                "Dashboard Stats",
                (endpoints.ALL_JOBS, endpoints.PENDING_PARTS, endpoints.CUSTOMERS),
                _coordinator_stats,
                stats,
                STATS_EMPTY,
            ),
            Widget("analytics", "Analytics", (endpoints.ALL_JOBS, endpoints.ALL_PARTS), compute_job_overview_analytics, analytics, ANALYTICS_EMPTY),
        ]
    if role == "parts_team":
        return [
            Widget("stats", "Parts Stats", (endpoints.ALL_PARTS,), compute_parts_stats, stats, STATS_EMPTY),
            Widget("analytics", "Parts Analytics", (endpoints.ALL_PARTS,), compute_parts_overview_analytics, analytics, ANALYTICS_EMPTY),
        ]
    if role == "administrator":
        return [
            Widget("stats", "Admin Stats", (endpoints.USER_COUNTS, endpoints.ISSUE_STATS), compute_admin_stats, stats, STATS_EMPTY),
            Widget(
                "analytics",
                "Admin Analytics",
                (endpoints.ACTIVITY_SUMMARY, endpoints.ALL_USERS, endpoints.RECENT_ACTIVITY),
                compute_admin_analytics,
                settings.intervals.activity,
                ANALYTICS_EMPTY,
            ),
        ]

    if not technician_id:
        raise ValueError("technician dashboard requires a technician id")
    return [
        Widget(
            "overview",
            "Technician Dashboard",
            (endpoints.technician_jobs(technician_id), endpoints.technician_parts(technician_id)),
            compute_technician_overview,
            stats,
            {**STATS_EMPTY, "tables": {}},
        ),
    ]


AnalyticsPage = Callable[[DashboardSettings], Widget]

ANALYTICS_PAGES: Dict[str, AnalyticsPage] = {
    "jobs": lambda s: Widget("jobs", "Job Analytics", (endpoints.ALL_JOBS,), compute_job_analytics, s.intervals.analytics, PAGE_EMPTY),
    "customers": lambda s: Widget(
        "customers", "Customer Analytics", (endpoints.ALL_CUSTOMERS,), compute_customer_analytics, s.intervals.analytics, PAGE_EMPTY
    ),
    "devices": lambda s: Widget("devices", "Device Analytics", (endpoints.DEVICES,), compute_device_analytics, s.intervals.analytics, PAGE_EMPTY),
    "parts": lambda s: Widget("parts", "Parts Analytics", (endpoints.ALL_PARTS,), compute_parts_analytics, s.intervals.analytics, PAGE_EMPTY),
    "activity": lambda s: Widget(
        "activity", "Activity Analytics", (endpoints.ACTIVITY_LOGS,), compute_activity_analytics, s.intervals.activity, PAGE_EMPTY
    ),
    "technicians": lambda s: Widget(
        "technicians", "Technician Performance", (endpoints.ALL_JOBS,), compute_technician_analytics, s.intervals.analytics, PAGE_EMPTY
    ),
    "issues": lambda s: Widget("issues", "System Issues", (endpoints.SYSTEM_ISSUES,), compute_issue_analytics, s.intervals.analytics, PAGE_EMPTY),
}


def build_analytics_page(page: str, settings: DashboardSettings) -> Widget:
    try:
        return ANALYTICS_PAGES[page](settings)
    except KeyError:
        raise ValueError(f"unknown analytics page: {page!r}") from None
