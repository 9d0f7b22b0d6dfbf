from __future__ import annotations

from dashboard_core.charts import (
    NO_DATA_MESSAGE,
    TOOLTIP_LABEL,
    TOOLTIP_VALUE,
    pie_slices,
    render_bar,
    render_distribution,
    render_line,
    render_pie,
    render_trend,
    unit_formatter,
)
from dashboard_core.distribution import DistributionPoint
from dashboard_core.theme import DARK, LIGHT
from dashboard_core.trend import TrendPoint


def test_empty_dataset_renders_placeholder_for_every_kind() -> None:
    for render in (render_pie, render_bar, render_line):
        chart = render([], "value", "name", "Nothing")
        assert chart.empty is True
        assert chart.message == NO_DATA_MESSAGE
        assert chart.spec is None
        assert chart.title == "Nothing"
    assert render_pie(None, "value", "name", "Nothing").empty is True


def test_pie_percent_labels_round_half_up() -> None:
    slices = pie_slices([{"name": "a", "value": 1}, {"name": "b", "value": 7}], "value", "name")
    assert [s.percent_label for s in slices] == ["13%", "88%"]
    assert slices[-1].end_angle == 360.0


def test_pie_slice_colors_wrap_after_six() -> None:
    data = [{"name": str(i), "value": 1} for i in range(8)]
    slices = pie_slices(data, "value", "name", DARK)
    assert slices[6].color == slices[0].color
    assert slices[7].color == slices[1].color
    assert len({s.color for s in slices}) == 6


def test_pie_keeps_dataset_order_and_theme() -> None:
    points = [DistributionPoint("Open", 2), DistributionPoint("Closed", 1)]
    chart = render_distribution(points, "Jobs", theme=DARK)
    assert chart.kind == "pie"
    assert [r["name"] for r in chart.rows] == ["Open", "Closed"]
    assert [r["_percent_label"] for r in chart.rows] == ["67%", "33%"]
    assert chart.spec["config"]["background"] == DARK.background_color


def _scale_domains(node):
    if isinstance(node, dict):
        scale = node.get("scale")
        if isinstance(scale, dict) and "domain" in scale:
            yield scale["domain"]
        for value in node.values():
            yield from _scale_domains(value)
    elif isinstance(node, list):
        for item in node:
            yield from _scale_domains(item)


def test_pie_numeric_labels_match_color_domain() -> None:
    chart = render_pie([{"name": 1, "value": 1}, {"name": 2, "value": 3}], "value", "name", "Ids")
    assert [r["name"] for r in chart.rows] == ["1", "2"]
    domains = list(_scale_domains(chart.spec))
    assert domains and all(d == ["1", "2"] for d in domains)


def test_bar_and_line_preserve_given_order() -> None:
    data = [{"name": "z", "value": 1}, {"name": "a", "value": 5}, {"name": "m", "value": 3}]
    for render in (render_bar, render_line):
        chart = render(data, "value", "name", "Ordered")
        assert [r["name"] for r in chart.rows] == ["z", "a", "m"]
        assert chart.spec is not None


def test_trend_renders_one_row_per_bucket() -> None:
    points = [TrendPoint("Oct 6", 2), TrendPoint("Oct 7", 0)]
    chart = render_trend(points, "Created", theme=LIGHT)
    assert chart.kind == "line"
    assert [r["date"] for r in chart.rows] == ["Oct 6", "Oct 7"]
    assert render_trend(points, "Created", kind="bar").kind == "bar"


def test_tooltip_formatter_output_is_used() -> None:
    chart = render_bar([{"name": "Ana", "value": 3}], "value", "name", "Jobs", unit_formatter("jobs"))
    assert chart.rows[0][TOOLTIP_VALUE] == "3 jobs"
    assert chart.rows[0][TOOLTIP_LABEL] == "Ana"

    chart = render_bar([{"name": "Ana", "value": 3}], "value", "name", "Jobs", unit_formatter("jobs", keep_label=False))
    assert chart.rows[0][TOOLTIP_LABEL] == "jobs"


def test_single_element_formatter_keeps_raw_label() -> None:
    chart = render_pie([{"name": "Open", "value": 2}], "value", "name", "Status", lambda v, l, e: [f"{v}!"])
    assert chart.rows[0][TOOLTIP_VALUE] == "2!"
    assert chart.rows[0][TOOLTIP_LABEL] == "Open"


def test_no_formatter_shows_raw_values() -> None:
    chart = render_line([{"date": "Oct 7", "count": 4}], "count", "date", "Trend")
    assert chart.rows[0][TOOLTIP_VALUE] == "4"
    assert chart.rows[0][TOOLTIP_LABEL] == "Oct 7"


def test_rendered_chart_is_json_friendly() -> None:
    payload = render_pie([{"name": "Open", "value": 2}], "value", "name", "Status").to_dict()
    assert set(payload) >= {"kind", "title", "rows", "spec", "empty", "message"}
    assert payload["empty"] is False
