from __future__ import annotations

from typing import Any, Dict

from dashboard_core.charts import as_rows, label_tooltip, render_distribution, render_trend, unit_formatter
from dashboard_core.distribution import aggregate_distribution, count_where
from dashboard_core.fetch import Snapshot
from dashboard_core.fields import PART_REQUESTED
from dashboard_core.formatting import short_datetime
from dashboard_core.polling import ComputeContext
from dashboard_core.records import entity_name
from dashboard_core.table import ColumnDescriptor, table_payload
from dashboard_core.trend import most_recent, period_series
from dashboard_core.widgets import stat_cards

PARTS_COLUMNS = [
    ColumnDescriptor("parts", "Parts", "parts_description"),
    ColumnDescriptor("status", "Status", "status"),
    ColumnDescriptor("urgency", "Urgency", "urgency"),
    ColumnDescriptor("requested_by", "Requested By", lambda r: entity_name(r.get("requested_by"))),
    ColumnDescriptor("requested", "Requested", lambda r: short_datetime(PART_REQUESTED(r), "%Y-%m-%d")),
]


def compute_parts_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    requests = snapshot.get("parts_requests")
    status = aggregate_distribution(requests, "status")
    urgency = aggregate_distribution(requests, "urgency")
    over_time = period_series(requests, PART_REQUESTED, "M")

    kpis: Dict[str, Any] = {
        "total_requests": len(requests),
        "pending": count_where(requests, "status", "Pending"),
        "fulfilled": count_where(requests, "status", "Fulfilled"),
    }
    titles = {"total_requests": "Total Requests", "pending": "Pending", "fulfilled": "Fulfilled"}

    return {
        "title": "Parts Analytics",
        "kpis": kpis,
        "cards": stat_cards(kpis, titles),
        "series": {"status": as_rows(status), "urgency": as_rows(urgency), "over_time": as_rows(over_time)},
        "charts": {
            "status": render_distribution(status, "Requests by Status", label_tooltip, ctx.theme).to_dict(),
            "urgency": render_distribution(urgency, "Requests by Urgency", unit_formatter("requests"), ctx.theme, kind="bar").to_dict(),
            "over_time": render_trend(over_time, "Parts Requests Over Time", unit_formatter("requests"), ctx.theme).to_dict(),
        },
        "tables": {
            "requests": table_payload("Parts Requests", most_recent(requests, PART_REQUESTED, len(requests)), PARTS_COLUMNS)
        },
    }
