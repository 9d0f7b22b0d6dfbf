from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import asdict, replace
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Header, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dashboard_api.schemas import (
    ChartRequest,
    DistributionRequest,
    SettingsModel,
    TableRequest,
    TopItemsRequest,
    TrendRequest,
)
from dashboard_core.charts import RENDERERS, as_rows, unit_formatter
from dashboard_core.dashboards import build_analytics_page, build_dashboard, compute_context
from dashboard_core.distribution import aggregate_distribution, top_items
from dashboard_core.fetch import DataSource, FetchError, HttpDataSource
from dashboard_core.log import configure_logging
from dashboard_core.polling import run_cycle
from dashboard_core.settings import DashboardSettings, normalize_settings
from dashboard_core.table import ColumnDescriptor, render_table
from dashboard_core.theme import resolve_dark_flag, resolve_theme
from dashboard_core.trend import bucket_trend

configure_logging()

app = FastAPI(title="Service Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> DashboardSettings:
    return normalize_settings()


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_data_source(
    settings: DashboardSettings = Depends(get_settings),
    authorization: Optional[str] = Header(default=None),
) -> DataSource:
    token = _bearer(authorization) or settings.token
    return HttpDataSource(settings.api_base_url, token, timeout=settings.request_timeout)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _failure(name: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, FetchError):
        logger.warning("%s failed: %s", name, exc)
        return JSONResponse(
            status_code=502, content={"error": str(exc), "type": type(exc).__name__, "resource": exc.resource}
        )
    if isinstance(exc, ValueError):
        logger.info("%s rejected: %s", name, exc)
        return JSONResponse(status_code=422, content={"error": str(exc), "type": type(exc).__name__})
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _with_dark(settings: DashboardSettings, dark: Optional[bool]) -> DashboardSettings:
    return settings if dark is None else replace(settings, dark_mode=dark)


@app.get("/theme")
def theme(dark: Optional[bool] = Query(default=None), settings: DashboardSettings = Depends(get_settings)):
    try:
        return _json(asdict(resolve_theme(resolve_dark_flag(dark if dark is not None else settings.dark_mode))))
    except Exception as exc:
        return _failure("theme", exc)


@app.post("/settings/normalize")
def settings_normalize(body: SettingsModel):
    try:
        normalized = normalize_settings(body.model_dump(exclude_none=True))
        return _json({**asdict(normalized), "token": None})
    except Exception as exc:
        return _failure("settings_normalize", exc)


@app.post("/aggregate/distribution")
def distribution(body: DistributionRequest):
    try:
        return _json({"points": as_rows(aggregate_distribution(body.records, body.field))})
    except Exception as exc:
        return _failure("distribution", exc)


@app.post("/aggregate/top-items")
def top(body: TopItemsRequest):
    try:
        return _json({"points": as_rows(top_items(body.records, body.field, body.limit))})
    except Exception as exc:
        return _failure("top_items", exc)


@app.post("/aggregate/trend")
def trend(body: TrendRequest):
    try:
        return _json({"points": as_rows(bucket_trend(body.records, body.field, body.window_days, body.today))})
    except Exception as exc:
        return _failure("trend", exc)


@app.post("/chart")
def chart(body: ChartRequest):
    try:
        formatter = unit_formatter(body.unit) if body.unit else None
        rendered = RENDERERS[body.kind](
            body.data, body.value_key, body.label_key, body.title, formatter, resolve_theme(body.dark)
        )
        return _json(rendered.to_dict())
    except Exception as exc:
        return _failure("chart", exc)


@app.post("/table")
def table(body: TableRequest):
    try:
        columns = [ColumnDescriptor(c.key, c.header, c.accessor or c.key, c.align) for c in body.columns]
        total = body.total_count if body.total_count is not None else len(body.data)
        view = render_table(body.data, columns, body.page, body.limit, total, loading=body.loading, error=body.error)
        return _json(view.to_dict())
    except Exception as exc:
        return _failure("table", exc)


@app.get("/dashboards/{role}")
async def dashboard(
    role: str,
    technician_id: Optional[str] = Query(default=None),
    dark: Optional[bool] = Query(default=None),
    today: Optional[str] = Query(default=None),
    settings: DashboardSettings = Depends(get_settings),
    source: DataSource = Depends(get_data_source),
):
    try:
        settings = _with_dark(settings, dark)
        widgets = build_dashboard(role, settings, technician_id)
        ctx = compute_context(settings, today=today)
        results = await asyncio.gather(*(run_cycle(source, w, ctx) for w in widgets))
        return _json({"role": role, "widgets": {w.name: data for w, data in zip(widgets, results)}})
    except Exception as exc:
        return _failure(f"dashboard {role}", exc)


@app.get("/analytics/{page}")
async def analytics(
    page: str,
    dark: Optional[bool] = Query(default=None),
    today: Optional[str] = Query(default=None),
    settings: DashboardSettings = Depends(get_settings),
    source: DataSource = Depends(get_data_source),
):
    try:
        settings = _with_dark(settings, dark)
        widget = build_analytics_page(page, settings)
        return _json(await run_cycle(source, widget, compute_context(settings, today=today)))
    except Exception as exc:
        return _failure(f"analytics {page}", exc)
