from __future__ import annotations

from typing import Any, Dict

from dashboard_core.charts import as_rows, label_tooltip, render_distribution, unit_formatter
from dashboard_core.distribution import aggregate_distribution, count_where, top_items
from dashboard_core.fetch import Snapshot
from dashboard_core.polling import ComputeContext
from dashboard_core.table import ColumnDescriptor, table_payload
from dashboard_core.widgets import stat_cards

STATS_COLUMNS = [
    ColumnDescriptor("metric", "Metric", "metric"),
    ColumnDescriptor("value", "Value", "value", align="right"),
]


def compute_device_analytics(snapshot: Snapshot, ctx: ComputeContext) -> Dict[str, Any]:
    devices = snapshot.get("devices")
    by_type = aggregate_distribution(devices, "device_type")
    warranty = aggregate_distribution(devices, "warranty_status")
    manufacturers = top_items(devices, "manufacturer", 5)

    kpis: Dict[str, Any] = {
        "total_devices": len(devices),
        "under_warranty": count_where(devices, "warranty_status", "In Warranty"),
        "manufacturers": len(aggregate_distribution(devices, "manufacturer")),
    }
    titles = {"total_devices": "Total Devices", "under_warranty": "Under Warranty", "manufacturers": "Manufacturers"}
    stats_rows = [
        {"metric": "Total Devices", "value": kpis["total_devices"]},
        {"metric": "Device Types", "value": len(by_type)},
        {"metric": "Manufacturers", "value": kpis["manufacturers"]},
    ]
    stats_rows += [{"metric": f"Warranty: {p.name}", "value": p.value} for p in warranty]

    return {
        "title": "Device Analytics",
        "kpis": kpis,
        "cards": stat_cards(kpis, titles),
        "series": {"by_type": as_rows(by_type), "warranty": as_rows(warranty), "manufacturers": as_rows(manufacturers)},
        "charts": {
            "by_type": render_distribution(by_type, "Devices by Type", label_tooltip, ctx.theme).to_dict(),
            "warranty": render_distribution(warranty, "Warranty Status", label_tooltip, ctx.theme).to_dict(),
            "manufacturers": render_distribution(
                manufacturers, "Top Manufacturers", unit_formatter("devices"), ctx.theme, kind="bar"
            ).to_dict(),
        },
        "tables": {"stats": table_payload("Device Statistics", stats_rows, STATS_COLUMNS)},
    }
