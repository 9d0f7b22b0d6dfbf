from __future__ import annotations

from typing import Any, Dict

from dashboard_core.fetch import FetchRequest

ALL_JOBS = FetchRequest("jobs", "/jobs", {"all": True})
ALL_PARTS = FetchRequest("parts_requests", "/parts-requests", {"all": True})
PENDING_PARTS = FetchRequest("pending_parts", "/parts-requests", {"all": True, "status": "Pending"})
AVAILABLE_TECHNICIANS = FetchRequest(
    "technicians", "/users", {"role": "technician", "available": True}, paths=(("users",), ("data",))
)
CUSTOMERS = FetchRequest("customers", "/customers", {}, paths=(("data",), ("customers",)), total_key="total")
ALL_CUSTOMERS = FetchRequest("customers", "/customers", {"all": True}, paths=(("data",), ("customers",)), total_key="total")
DEVICES = FetchRequest("devices", "/devices", {"all": True}, paths=(("data",), ("devices",)))
ALL_USERS = FetchRequest("users", "/users", {"all": True}, paths=(("users",), ("data",)))
USER_COUNTS = FetchRequest("user_counts", "/users/counts", shape="mapping", paths=((),))
RECENT_ACTIVITY = FetchRequest("recent_activity", "/users/activity-logs", {"limit": 5}, paths=(("docs",), ("data",)))
ACTIVITY_LOGS = FetchRequest("activity_logs", "/users/activity-logs", {"limit": 1000}, paths=(("docs",), ("data",)))
ACTIVITY_SUMMARY = FetchRequest("activity_summary", "/users/activity-summary", paths=(("data",),))
SYSTEM_ISSUES = FetchRequest("issues", "/system-issues/", paths=(("data",),))
ISSUE_STATS = FetchRequest("issue_stats", "/system-issues/stats", shape="mapping", paths=(("data",),))


def technician_jobs(technician_id: str) -> FetchRequest:
    return FetchRequest("jobs", f"/jobs/technician/{technician_id}", paths=(("data", "jobs"), ("jobs",), ("data",)))


def technician_parts(technician_id: str, status: str = "Pending") -> FetchRequest:
    params: Dict[str, Any] = {"status": status}
    return FetchRequest("pending_parts", f"/parts-requests/requester/{technician_id}", params, paths=(("data",), ("partsRequests",)))
