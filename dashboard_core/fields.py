from __future__ import annotations

from dashboard_core.records import first_present

JOB_CREATED = first_present("createdAt", "created_at")
JOB_COMPLETED = first_present("completed_date", "completedAt")
PART_REQUESTED = first_present("requested_at", "createdAt", "created_at")
CUSTOMER_CREATED = first_present("created_at", "createdAt")
ACTIVITY_TIME = first_present("timestamp", "createdAt", "created_at")
ISSUE_CREATED = first_present("created_at", "createdAt")
LAST_LOGIN = first_present("last_login", "lastLogin")
