from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

import altair as alt
import pandas as pd

from dashboard_core.distribution import DistributionPoint
from dashboard_core.formatting import as_number, format_percent
from dashboard_core.theme import LIGHT, Theme, vega_config
from dashboard_core.trend import TrendPoint

alt.data_transformers.disable_max_rows()

ChartKind = Literal["pie", "bar", "line"]
TooltipFormatter = Callable[[Any, Any, Dict[str, Any]], Sequence[Any]]

NO_DATA_MESSAGE = "No data available"
CHART_HEIGHT = 300
TOOLTIP_VALUE = "_tooltip_value"
TOOLTIP_LABEL = "_tooltip_label"


@dataclass(frozen=True)
class RenderedChart:
    kind: str
    title: str
    value_key: str
    label_key: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    spec: Optional[Dict[str, Any]] = None
    empty: bool = False
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PieSlice:
    label: str
    value: float
    percent: float
    percent_label: str
    color: str
    start_angle: float
    end_angle: float


def to_vega_spec(chart: alt.Chart, theme: Optional[Theme] = None) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    spec = chart.to_dict()
    if theme is not None:
        spec["config"] = {**spec.get("config", {}), **vega_config(theme)}
        spec["background"] = theme.background_color
    return spec


def entry_dict(entry: Any) -> Dict[str, Any]:
    if is_dataclass(entry) and not isinstance(entry, type):
        return asdict(entry)
    if isinstance(entry, Mapping):
        return dict(entry)
    raise TypeError(f"chart entries must be mappings or dataclasses, got {type(entry).__name__}")


def format_tooltip(entry: Dict[str, Any], value_key: str, label_key: str, formatter: Optional[TooltipFormatter]) -> Tuple[Any, Any]:
    value = entry.get(value_key)
    label = entry.get(label_key)
    if formatter is None:
        return value, label
    out = formatter(value, label, entry)
    if isinstance(out, (str, bytes)) or not isinstance(out, Sequence):
        return out, label
    display_value = out[0] if len(out) > 0 else value
    display_label = out[1] if len(out) > 1 else label
    return display_value, display_label


def tooltip_rows(dataset: Sequence[Any], value_key: str, label_key: str, formatter: Optional[TooltipFormatter]) -> List[Dict[str, Any]]:
    rows = []
    for entry in dataset:
        row = entry_dict(entry)
        shown_value, shown_label = format_tooltip(row, value_key, label_key, formatter)
        row[TOOLTIP_VALUE] = "" if shown_value is None else str(shown_value)
        row[TOOLTIP_LABEL] = "" if shown_label is None else str(shown_label)
        rows.append(row)
    return rows


def pie_slices(dataset: Sequence[Any], value_key: str, label_key: str, theme: Theme = LIGHT) -> List[PieSlice]:
    rows = [entry_dict(e) for e in dataset or []]
    values = [max(0.0, as_number(r.get(value_key))) for r in rows]
    total = sum(values)
    slices: List[PieSlice] = []
    angle = 0.0
    for i, (row, value) in enumerate(zip(rows, values)):
        share = value / total if total > 0 else 0.0
        sweep = 360.0 * share
        slices.append(
            PieSlice(
                label=str(row.get(label_key)),
                value=value,
                percent=share,
                percent_label=format_percent(share),
                color=theme.series_color(i),
                start_angle=angle,
                end_angle=angle + sweep,
            )
        )
        angle += sweep
    return slices


def _empty(kind: ChartKind, title: str, value_key: str, label_key: str) -> RenderedChart:
    return RenderedChart(kind=kind, title=title, value_key=value_key, label_key=label_key, empty=True, message=NO_DATA_MESSAGE)


def _tooltip_encoding(value_key: str, label_key: str) -> List[alt.Tooltip]:
    return [
        alt.Tooltip(field=TOOLTIP_LABEL, type="nominal", title=label_key),
        alt.Tooltip(field=TOOLTIP_VALUE, type="nominal", title=value_key),
    ]


def render_pie(
    dataset: Optional[Sequence[Any]],
    value_key: str,
    label_key: str,
    title: str,
    tooltip_formatter: Optional[TooltipFormatter] = None,
    theme: Theme = LIGHT,
) -> RenderedChart:
    if not dataset:
        return _empty("pie", title, value_key, label_key)

    rows = tooltip_rows(dataset, value_key, label_key, tooltip_formatter)
    slices = pie_slices(dataset, value_key, label_key, theme)
    for order, (row, s) in enumerate(zip(rows, slices)):
        row["_order"] = order
        row["_percent_label"] = s.percent_label
        row["_color"] = s.color
        row[label_key] = s.label

    df = pd.DataFrame(rows)
    labels = [s.label for s in slices]
    base = alt.Chart(df).encode(
        theta=alt.Theta(field=value_key, type="quantitative", stack=True),
        order=alt.Order(field="_order", type="quantitative"),
        color=alt.Color(
            field=label_key,
            type="nominal",
            sort=None,
            scale=alt.Scale(domain=labels, range=[s.color for s in slices]),
            legend=alt.Legend(title=None),
        ),
        tooltip=_tooltip_encoding(value_key, label_key),
    )
    arcs = base.mark_arc(outerRadius=80)
    text = base.mark_text(radius=50, color=theme.text_color).encode(text=alt.Text(field="_percent_label", type="nominal"))
    chart = alt.layer(arcs, text).properties(title=title, height=CHART_HEIGHT)
    return RenderedChart(kind="pie", title=title, value_key=value_key, label_key=label_key, rows=rows, spec=to_vega_spec(chart, theme))


def render_bar(
    dataset: Optional[Sequence[Any]],
    value_key: str,
    label_key: str,
    title: str,
    tooltip_formatter: Optional[TooltipFormatter] = None,
    theme: Theme = LIGHT,
    color: Optional[str] = None,
) -> RenderedChart:
    if not dataset:
        return _empty("bar", title, value_key, label_key)

    rows = tooltip_rows(dataset, value_key, label_key, tooltip_formatter)
    chart = (
        alt.Chart(pd.DataFrame(rows))
        .mark_bar(color=color or theme.series_color(2), cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            # sort=None keeps the dataset order on the category axis
            x=alt.X(field=label_key, type="nominal", sort=None, title=None, axis=alt.Axis(labelAngle=0)),
            y=alt.Y(field=value_key, type="quantitative", title=None),
            tooltip=_tooltip_encoding(value_key, label_key),
        )
        .properties(title=title, height=CHART_HEIGHT)
    )
    return RenderedChart(kind="bar", title=title, value_key=value_key, label_key=label_key, rows=rows, spec=to_vega_spec(chart, theme))


def render_line(
    dataset: Optional[Sequence[Any]],
    value_key: str,
    label_key: str,
    title: str,
    tooltip_formatter: Optional[TooltipFormatter] = None,
    theme: Theme = LIGHT,
    color: Optional[str] = None,
) -> RenderedChart:
    if not dataset:
        return _empty("line", title, value_key, label_key)

    rows = tooltip_rows(dataset, value_key, label_key, tooltip_formatter)
    chart = (
        alt.Chart(pd.DataFrame(rows))
        .mark_line(color=color or theme.series_color(1), point={"filled": True, "size": 60})
        .encode(
            x=alt.X(field=label_key, type="ordinal", sort=None, title=None, axis=alt.Axis(labelAngle=0)),
            y=alt.Y(field=value_key, type="quantitative", title=None),
            tooltip=_tooltip_encoding(value_key, label_key),
        )
        .properties(title=title, height=CHART_HEIGHT)
    )
    return RenderedChart(kind="line", title=title, value_key=value_key, label_key=label_key, rows=rows, spec=to_vega_spec(chart, theme))


RENDERERS: Dict[str, Callable[..., RenderedChart]] = {"pie": render_pie, "bar": render_bar, "line": render_line}


def render_distribution(
    points: Sequence[DistributionPoint],
    title: str,
    tooltip_formatter: Optional[TooltipFormatter] = None,
    theme: Theme = LIGHT,
    kind: Literal["pie", "bar"] = "pie",
) -> RenderedChart:
    return RENDERERS[kind](points, "value", "name", title, tooltip_formatter, theme)


def render_trend(
    points: Sequence[TrendPoint],
    title: str,
    tooltip_formatter: Optional[TooltipFormatter] = None,
    theme: Theme = LIGHT,
    kind: Literal["line", "bar"] = "line",
) -> RenderedChart:
    return RENDERERS[kind](points, "count", "date", title, tooltip_formatter, theme)


def render_entity_metric(
    rows: Sequence[Mapping[str, Any]],
    value_key: str,
    title: str,
    tooltip_formatter: Optional[TooltipFormatter] = None,
    theme: Theme = LIGHT,
    label_key: str = "name",
    color: Optional[str] = None,
) -> RenderedChart:
    return render_bar(rows, value_key, label_key, title, tooltip_formatter, theme, color=color)


def unit_formatter(unit: str, keep_label: bool = True) -> TooltipFormatter:
    """Tooltip formatter showing `"<value> <unit>"`; optionally replaces the label with the unit."""

    def _fmt(value: Any, label: Any, entry: Dict[str, Any]) -> Sequence[Any]:
        return [f"{value} {unit}", label] if keep_label else [f"{value}", unit]

    return _fmt


def label_tooltip(value: Any, label: Any, entry: Dict[str, Any]) -> Sequence[Any]:
    return [f"{value}", label]


def as_rows(points: Sequence[Any]) -> List[Dict[str, Any]]:
    return [entry_dict(p) for p in points]
