from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from dashboard_core.charts import render_entity_metric, unit_formatter
from dashboard_core.distribution import entity_metrics
from dashboard_core.fetch import Snapshot
from dashboard_core.fields import JOB_COMPLETED, JOB_CREATED
from dashboard_core.formatting import round_half_up
from dashboard_core.polling import ComputeContext
from dashboard_core.records import Record, is_missing, parse_timestamp
from dashboard_core.table import ColumnDescriptor, table_payload

PERFORMANCE_COLUMNS = [
    ColumnDescriptor("name", "Technician", "name"),
    ColumnDescriptor("completed_jobs", "Completed Jobs", "completed_jobs", align="right"),
    ColumnDescriptor("avg_completion_hours", "Avg. Completion (h)", "avg_completion_hours", align="right"),
]


def completion_hours(job: Record) -> Optional[float]:
    created = parse_timestamp(JOB_CREATED(job))
    completed = parse_timestamp(JOB_COMPLETED(job))
    if created is None or completed is None:
        return None
    return (completed - created).total_seconds() / 3600


def average_completion_hours(jobs: Sequence[Record]) -> float:
    """Mean hours over jobs that carry both dates; undated jobs are skipped, not counted as zero."""
    hours = [h for h in (completion_hours(j) for j in jobs) if h is not None]
    if not hours:
        return 0.0
    return round_half_up(sum(hours) / len(hours), 2) or 0.0


def technician_performance(jobs: Sequence[Record]) -> List[Dict[str, Any]]:
    """Closed, assigned jobs per technician, most completed first."""
    closed = [j for j in jobs if j.get("status") == "Closed" and not is_missing(j.get("assigned_to"))]
    rows = entity_metrics(
        closed,
        "assigned_to",
        {"completed_jobs": len, "avg_completion_hours": average_completion_hours},
    )
    return sorted(rows, key=lambda r: r["completed_jobs"], reverse=True)


def compute_technician_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    rows = technician_performance(snapshot.get("jobs"))
    return {
        "title": "Technician Performance",
        "kpis": {
            "technicians": len(rows),
            "completed_jobs": sum(r["completed_jobs"] for r in rows),
        },
        "series": {"performance": rows},
        "charts": {
            "completed_jobs": render_entity_metric(
                rows, "completed_jobs", "Completed Jobs by Technician", unit_formatter("jobs"), ctx.theme
            ).to_dict(),
            "avg_completion_hours": render_entity_metric(
                rows, "avg_completion_hours", "Average Completion Time", unit_formatter("hours"), ctx.theme,
                color=ctx.theme.series_color(3),
            ).to_dict(),
        },
        "tables": {"performance": table_payload("Technician Performance", rows, PERFORMANCE_COLUMNS)},
    }
