from __future__ import annotations

from typing import Any, Dict

from dashboard_core.charts import as_rows, label_tooltip, render_distribution, render_trend, unit_formatter
from dashboard_core.distribution import aggregate_distribution, count_where
from dashboard_core.fetch import Snapshot
from dashboard_core.fields import JOB_CREATED
from dashboard_core.polling import ComputeContext
from dashboard_core.table import ColumnDescriptor, table_payload
from dashboard_core.trend import period_series
from dashboard_core.widgets import stat_cards

STATS_COLUMNS = [
    ColumnDescriptor("metric", "Metric", "metric"),
    ColumnDescriptor("value", "Value", "value", align="right"),
]


def compute_job_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    jobs = snapshot.get("jobs")
    status = aggregate_distribution(jobs, "status")
    priority = aggregate_distribution(jobs, "priority")
    over_time = period_series(jobs, JOB_CREATED, "D")

    kpis: Dict[str, Any] = {
        "total_jobs": len(jobs),
        "open_jobs": count_where(jobs, "status", "closed", casefold=True, negate=True),
        "closed_jobs": count_where(jobs, "status", "closed", casefold=True),
        "high_priority": count_where(jobs, "priority", "High"),
    }
    titles = {"total_jobs": "Total Jobs", "open_jobs": "Open Jobs", "closed_jobs": "Closed Jobs", "high_priority": "High Priority"}
    stats_rows = [{"metric": "Total Jobs", "value": kpis["total_jobs"]}]
    stats_rows += [{"metric": f"Status: {p.name}", "value": p.value} for p in status]
    stats_rows += [{"metric": f"Priority: {p.name}", "value": p.value} for p in priority]

    return {
        "title": "Job Analytics",
        "kpis": kpis,
        "cards": stat_cards(kpis, titles),
        "series": {"status": as_rows(status), "priority": as_rows(priority), "over_time": as_rows(over_time)},
        "charts": {
            "status": render_distribution(status, "Jobs by Status", label_tooltip, ctx.theme).to_dict(),
            "priority": render_distribution(priority, "Jobs by Priority", label_tooltip, ctx.theme).to_dict(),
            "over_time": render_trend(over_time, "Jobs Over Time", unit_formatter("jobs"), ctx.theme).to_dict(),
        },
        "tables": {"stats": table_payload("Job Statistics", stats_rows, STATS_COLUMNS)},
    }
