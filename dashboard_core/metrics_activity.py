from __future__ import annotations

from typing import Any, Dict

from dashboard_core.charts import as_rows, label_tooltip, render_distribution, render_trend, unit_formatter
from dashboard_core.distribution import aggregate_distribution, hourly_distribution, top_items
from dashboard_core.fetch import Snapshot
from dashboard_core.fields import ACTIVITY_TIME
from dashboard_core.formatting import short_datetime
from dashboard_core.polling import ComputeContext
from dashboard_core.table import ColumnDescriptor, table_payload
from dashboard_core.trend import count_on_day, most_recent, period_series
from dashboard_core.widgets import stat_cards

LOG_COLUMNS = [
    ColumnDescriptor("user", "User", "user_name"),
    ColumnDescriptor("action", "Action", "action"),
    ColumnDescriptor("entity", "Entity", "entity_type"),
    ColumnDescriptor("details", "Details", "details"),
    ColumnDescriptor("when", "When", lambda r: short_datetime(ACTIVITY_TIME(r))),
]


def compute_activity_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    logs = snapshot.get("activity_logs")
    actions = aggregate_distribution(logs, "action")
    over_time = period_series(logs, ACTIVITY_TIME, "D")
    top_users = top_items(logs, "user_name", 5)
    hours = hourly_distribution(logs, ACTIVITY_TIME)

    kpis: Dict[str, Any] = {
        "total_actions": len(logs),
        "active_users": len(aggregate_distribution(logs, "user_name")),
        "actions_today": count_on_day(logs, ACTIVITY_TIME, ctx.today),
    }
    titles = {"total_actions": "Total Actions", "active_users": "Active Users", "actions_today": "Actions Today"}

    return {
        "title": "Activity Analytics",
        "kpis": kpis,
        "cards": stat_cards(kpis, titles),
        "series": {
            "actions": as_rows(actions),
            "over_time": as_rows(over_time),
            "top_users": as_rows(top_users),
            "busiest_hours": as_rows(hours),
        },
        "charts": {
            "actions": render_distribution(actions, "Actions by Type", label_tooltip, ctx.theme).to_dict(),
            "over_time": render_trend(over_time, "Activity Over Time", unit_formatter("actions"), ctx.theme).to_dict(),
            "top_users": render_distribution(top_users, "Most Active Users", unit_formatter("actions"), ctx.theme, kind="bar").to_dict(),
            "busiest_hours": render_distribution(hours, "Busiest Hours", unit_formatter("actions"), ctx.theme, kind="bar").to_dict(),
        },
        "tables": {"logs": table_payload("Activity Log", most_recent(logs, ACTIVITY_TIME, len(logs)), LOG_COLUMNS)},
    }
