from __future__ import annotations

from dashboard_core.theme import DARK, DATA_SERIES_COLORS, LIGHT, resolve_dark_flag, resolve_theme, vega_config


def test_resolve_theme_is_deterministic() -> None:
    assert resolve_theme(False) is LIGHT
    assert resolve_theme(True) is DARK
    assert resolve_theme(True) == resolve_theme(True)


def test_palette_is_shared_between_modes() -> None:
    assert LIGHT.data_series_colors == DARK.data_series_colors == DATA_SERIES_COLORS
    assert len(DATA_SERIES_COLORS) == 6
    assert LIGHT.text_color != DARK.text_color
    assert LIGHT.background_color != DARK.background_color


def test_series_color_wraps_around() -> None:
    assert LIGHT.series_color(0) == "#0088FE"
    assert LIGHT.series_color(6) == LIGHT.series_color(0)
    assert DARK.series_color(13) == DATA_SERIES_COLORS[1]


def test_dark_flag_prefers_persisted_override() -> None:
    assert resolve_dark_flag(None, system_prefers_dark=True) is True
    assert resolve_dark_flag(None) is False
    assert resolve_dark_flag(False, system_prefers_dark=True) is False
    assert resolve_dark_flag(True) is True


def test_vega_config_uses_theme_colors() -> None:
    config = vega_config(DARK)
    assert config["background"] == DARK.background_color
    assert config["axis"]["gridColor"] == DARK.grid_color
    assert config["axis"]["labelColor"] == DARK.text_color
