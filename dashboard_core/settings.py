from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional

FailurePolicy = Literal["retain", "reset"]

DEFAULT_API_URL = "http://localhost:5000"


@dataclass(frozen=True)
class PollIntervals:
    stats: float = 30.0
    analytics: float = 300.0
    activity: float = 30.0


@dataclass(frozen=True)
class DashboardSettings:
    api_base_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    request_timeout: float = 10.0
    window_days: int = 7
    page_limit: int = 10
    intervals: PollIntervals = field(default_factory=PollIntervals)
    dark_mode: Optional[bool] = None
    failure_policy: FailurePolicy = "retain"


def _as_int(value: object, default: int, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(lo, min(hi, out))


def _as_float(value: object, default: float, lo: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return out if out >= lo else default


def _as_optional_bool(value: object) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in {"1", "true", "yes", "on", "dark"}:
        return True
    if s in {"0", "false", "no", "off", "light"}:
        return False
    return None


def normalize_settings(raw: Optional[dict] = None, env: Optional[Mapping[str, str]] = None) -> DashboardSettings:
    raw = dict(raw or {})
    env = os.environ if env is None else env

    api_base_url = (raw.get("api_base_url") or env.get("DASHBOARD_API_URL") or DEFAULT_API_URL).strip().rstrip("/")
    token = raw.get("token") or env.get("DASHBOARD_TOKEN") or None

    window_raw = raw.get("window_days", env.get("DASHBOARD_WINDOW_DAYS", 7))
    window_days = _as_int(window_raw, 7, 1, 90)
    page_limit = _as_int(raw.get("page_limit", 10), 10, 1, 200)
    request_timeout = _as_float(raw.get("request_timeout", 10.0), 10.0, 0.1)

    i = raw.get("intervals") or {}
    intervals = PollIntervals(
        stats=_as_float(i.get("stats", 30.0), 30.0, 1.0),
        analytics=_as_float(i.get("analytics", 300.0), 300.0, 1.0),
        activity=_as_float(i.get("activity", 30.0), 30.0, 1.0),
    )

    dark_raw = raw["dark_mode"] if "dark_mode" in raw else env.get("DASHBOARD_DARK_MODE")
    dark_mode = _as_optional_bool(dark_raw)

    failure_policy: FailurePolicy = "reset" if str(raw.get("failure_policy", "retain")).lower() == "reset" else "retain"
    return DashboardSettings(
        api_base_url=api_base_url,
        token=str(token) if token else None,
        request_timeout=request_timeout,
        window_days=window_days,
        page_limit=page_limit,
        intervals=intervals,
        dark_mode=dark_mode,
        failure_policy=failure_policy,
    )
