from __future__ import annotations

from typing import Any, Dict

from dashboard_core.charts import as_rows, label_tooltip, render_distribution, render_trend, unit_formatter
from dashboard_core.distribution import aggregate_distribution
from dashboard_core.fetch import Snapshot
from dashboard_core.fields import CUSTOMER_CREATED
from dashboard_core.formatting import short_datetime
from dashboard_core.polling import ComputeContext
from dashboard_core.records import first_present
from dashboard_core.table import ColumnDescriptor, table_payload
from dashboard_core.trend import count_on_day, most_recent, period_series
from dashboard_core.widgets import stat_cards

CUSTOMER_NAME = first_present("name", "company_name", "email")

CUSTOMER_COLUMNS = [
    ColumnDescriptor("name", "Name", CUSTOMER_NAME),
    ColumnDescriptor("type", "Type", "customer_type"),
    ColumnDescriptor("email", "Email", "email"),
    ColumnDescriptor("created", "Created", lambda r: short_datetime(CUSTOMER_CREATED(r), "%Y-%m-%d")),
]


def compute_customer_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    customers = snapshot.get("customers")
    by_type = aggregate_distribution(customers, "customer_type")
    acquisition = period_series(customers, CUSTOMER_CREATED, "M")

    kpis: Dict[str, Any] = {
        "total_customers": snapshot.total("customers"),
        "customer_types": len(by_type),
        "new_today": count_on_day(customers, CUSTOMER_CREATED, ctx.today),
    }
    titles = {"total_customers": "Total Customers", "customer_types": "Customer Types", "new_today": "New Today"}

    return {
        "title": "Customer Analytics",
        "kpis": kpis,
        "cards": stat_cards(kpis, titles),
        "series": {"by_type": as_rows(by_type), "acquisition": as_rows(acquisition)},
        "charts": {
            "by_type": render_distribution(by_type, "Customers by Type", label_tooltip, ctx.theme).to_dict(),
            "acquisition": render_trend(
                acquisition, "Customer Acquisition Over Time", unit_formatter("customers"), ctx.theme
            ).to_dict(),
        },
        "tables": {
            "recent": table_payload("Recent Customers", most_recent(customers, CUSTOMER_CREATED, len(customers)), CUSTOMER_COLUMNS)
        },
    }
