import asyncio
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from dashboard_core.dashboards import ANALYTICS_PAGES, ROLES, build_analytics_page, build_dashboard, compute_context
from dashboard_core.fetch import HttpDataSource
from dashboard_core.log import configure_logging
from dashboard_core.polling import ComputeContext, Widget, run_cycle
from dashboard_core.settings import DashboardSettings, normalize_settings
from dashboard_core.table import render_table_payload

configure_logging()


# ---------- UI / layout helpers ----------
def inject_base_styles(theme: Dict[str, Any]):
    st.markdown(
        f"""
        <style>
        .app-top-bar {{padding: 6px 0 4px;border-bottom: 1px solid {theme['border_color']};margin-bottom: 10px;}}
        .app-top-bar .page-title {{font-size: 1.4rem;font-weight: 700;color: {theme['text_color']};}}
        .card {{border: 1px solid {theme['grid_color']};border-radius: 12px;padding: 16px;background: {theme['background_color']};
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}}
        .card-title {{font-weight: 600;font-size: 1.0rem;color: {theme['text_color']};}}
        .placeholder {{color: #6b7280;text-align: center;padding: 60px 0;}}
        </style>
        """,
        unsafe_allow_html=True,
    )


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


class ToastNotifier:
    def report_failure(self, message: str) -> None:
        st.toast(message, icon="⚠️")


def render_cards(cards: List[Dict[str, Any]]):
    if not cards:
        return
    cols = st.columns(len(cards))
    for col, c in zip(cols, cards):
        col.metric(c["title"], c["display"], help=c.get("additional_info"))


def render_chart(chart: Dict[str, Any]):
    with card(chart["title"]):
        if chart.get("empty") or not chart.get("spec"):
            st.markdown(f"<div class='placeholder'>{chart.get('message') or 'No data available'}</div>", unsafe_allow_html=True)
            return
        st.vega_lite_chart(chart["spec"], use_container_width=True)


def render_charts(charts: Dict[str, Dict[str, Any]], per_row: int = 2):
    items = list(charts.values())
    for start in range(0, len(items), per_row):
        cols = st.columns(per_row)
        for col, chart in zip(cols, items[start : start + per_row]):
            with col:
                render_chart(chart)


def render_table(key: str, payload: Dict[str, Any], limit: int, *, loading: bool = False, error: Optional[str] = None):
    page_key = f"page:{key}"
    page = int(st.session_state.get(page_key, 1))

    def _go(target: int):
        st.session_state[page_key] = target

    view = render_table_payload(payload, page, limit, _go, loading=loading, error=error)
    with card(payload.get("title", key)):
        if view.state != "table":
            st.markdown(f"<div class='placeholder'>{view.message}</div>", unsafe_allow_html=True)
            if view.retry_available and st.button("Retry", key=f"retry:{key}"):
                st.rerun()
            return
        st.dataframe(pd.DataFrame(view.rows, columns=view.headers), hide_index=True, use_container_width=True)
        if view.summary:
            st.caption(view.summary)
        if view.pager_visible:
            cols = st.columns(4 + len(view.pages))
            buttons = [("first", "«"), ("previous", "‹")] + [(str(p), str(p)) for p in view.pages] + [("next", "›"), ("last", "»")]
            for col, (name, label) in zip(cols, buttons):
                if name.isdigit():
                    clicked = col.button(label, key=f"{key}:{name}", disabled=int(name) == view.page_state.page)
                    if clicked and view.go_to(int(name)):
                        st.rerun()
                else:
                    clicked = col.button(label, key=f"{key}:{name}", disabled=not view.controls[name].enabled)
                    if clicked and view.press(name):
                        st.rerun()


# ---------- polling ----------
def refresh_widget(widget: Widget, settings: DashboardSettings, ctx: ComputeContext) -> Dict[str, Any]:
    """One fetch-aggregate cycle; keeps the last good payload when the cycle fails."""
    state_key = f"widget:{widget.name}"
    last = st.session_state.get(state_key, {"data": dict(widget.empty), "error": None})
    source = HttpDataSource(settings.api_base_url, settings.token, timeout=settings.request_timeout)
    try:
        data = asyncio.run(run_cycle(source, widget, ctx))
        state = {"data": data, "error": None}
    except Exception as exc:
        ToastNotifier().report_failure(f"Failed to load {widget.title}")
        data = last["data"] if settings.failure_policy == "retain" else dict(widget.empty)
        state = {"data": data, "error": str(exc)}
    st.session_state[state_key] = state
    return state


def render_widget(widget: Widget, settings: DashboardSettings, ctx: ComputeContext):
    @st.fragment(run_every=widget.interval)
    def _poll():
        state = refresh_widget(widget, settings, ctx)
        data = state["data"]
        render_cards(data.get("cards", []))
        render_charts(data.get("charts", {}))
        for name, table in data.get("tables", {}).items():
            render_table(f"{widget.name}:{name}", table, ctx.page_limit, error=state["error"] if not table.get("records") else None)

    _poll()


# ---------- UI setup ----------
st.set_page_config(page_title="Service Dashboard", layout="wide")
settings = normalize_settings()

with st.sidebar:
    st.markdown("### Navigate")
    view_kind = st.radio("View", ["Dashboard", "Analytics"], index=0)
    role = st.selectbox("Role", ROLES, index=0) if view_kind == "Dashboard" else None
    technician_id = st.text_input("Technician ID", "") if role == "technician" else None
    page = st.selectbox("Page", list(ANALYTICS_PAGES), index=0) if view_kind == "Analytics" else None
    st.markdown("---")
    dark = st.toggle("Dark mode", value=bool(settings.dark_mode), key="dark_mode")

settings = normalize_settings({"dark_mode": dark, "window_days": settings.window_days})
ctx = compute_context(settings)
theme_dict = asdict(ctx.theme)
inject_base_styles(theme_dict)

if view_kind == "Dashboard":
    st.markdown(f"<div class='app-top-bar'><div class='page-title'>{role.replace('_', ' ').title()} Dashboard</div></div>", unsafe_allow_html=True)
    try:
        widgets = build_dashboard(role, settings, technician_id or None)
    except ValueError as exc:
        st.info(str(exc))
        st.stop()
    for w in widgets:
        render_widget(w, settings, ctx)
else:
    widget = build_analytics_page(page, settings)
    st.markdown(f"<div class='app-top-bar'><div class='page-title'>{widget.title}</div></div>", unsafe_allow_html=True)
    render_widget(widget, settings, ctx)
