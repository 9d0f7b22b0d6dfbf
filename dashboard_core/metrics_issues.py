from __future__ import annotations

from typing import Any, Dict

from dashboard_core.charts import as_rows, label_tooltip, render_distribution, unit_formatter
from dashboard_core.distribution import aggregate_distribution, count_where
from dashboard_core.fetch import Snapshot
from dashboard_core.fields import ISSUE_CREATED
from dashboard_core.formatting import short_datetime
from dashboard_core.polling import ComputeContext
from dashboard_core.records import entity_name
from dashboard_core.table import ColumnDescriptor, table_payload
from dashboard_core.trend import most_recent
from dashboard_core.widgets import stat_cards

ISSUE_COLUMNS = [
    ColumnDescriptor("title", "Title", "title"),
    ColumnDescriptor("status", "Status", "status"),
    ColumnDescriptor("priority", "Priority", "priority"),
    ColumnDescriptor("reported_by", "Reported By", lambda r: entity_name(r.get("reported_by"))),
    ColumnDescriptor("created", "Created", lambda r: short_datetime(ISSUE_CREATED(r))),
]


def compute_issue_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    issues = snapshot.get("issues")
    status = aggregate_distribution(issues, "status")
    priority = aggregate_distribution(issues, "priority")
    category = aggregate_distribution(issues, "category")

    kpis: Dict[str, Any] = {
        "total_issues": len(issues),
        "open_issues": count_where(issues, "status", "Open"),
        "high_priority": count_where(issues, "priority", "High"),
    }
    titles = {"total_issues": "Total Issues", "open_issues": "Open", "high_priority": "High Priority"}

    return {
        "title": "System Issues",
        "kpis": kpis,
        "cards": stat_cards(kpis, titles),
        "series": {"status": as_rows(status), "priority": as_rows(priority), "category": as_rows(category)},
        "charts": {
            "status": render_distribution(status, "Issues by Status", label_tooltip, ctx.theme).to_dict(),
            "priority": render_distribution(priority, "Issues by Priority", label_tooltip, ctx.theme).to_dict(),
            "category": render_distribution(category, "Issues by Category", unit_formatter("issues"), ctx.theme, kind="bar").to_dict(),
        },
        "tables": {"recent": table_payload("Recent Issues", most_recent(issues, ISSUE_CREATED, 10), ISSUE_COLUMNS)},
    }
