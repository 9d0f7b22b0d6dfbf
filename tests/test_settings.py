from __future__ import annotations

from dashboard_core.settings import DEFAULT_API_URL, DashboardSettings, PollIntervals, normalize_settings


def test_defaults_without_input() -> None:
    settings = normalize_settings({}, env={})
    assert settings == DashboardSettings()
    assert settings.api_base_url == DEFAULT_API_URL
    assert settings.intervals == PollIntervals(stats=30.0, analytics=300.0, activity=30.0)
    assert settings.failure_policy == "retain"
    assert settings.dark_mode is None


def test_environment_fills_unset_keys() -> None:
    env = {
        "DASHBOARD_API_URL": "https://api.example.test/api/",
        "DASHBOARD_TOKEN": "secret",
        "DASHBOARD_WINDOW_DAYS": "14",
        "DASHBOARD_DARK_MODE": "true",
    }
    settings = normalize_settings({}, env=env)
    assert settings.api_base_url == "https://api.example.test/api"
    assert settings.token == "secret"
    assert settings.window_days == 14
    assert settings.dark_mode is True

    assert normalize_settings({"window_days": 3, "dark_mode": False}, env=env).window_days == 3
    assert normalize_settings({"dark_mode": False}, env=env).dark_mode is False


def test_bad_numbers_fall_back_and_out_of_range_clamps() -> None:
    assert normalize_settings({"window_days": "abc"}, env={}).window_days == 7
    assert normalize_settings({"window_days": 500}, env={}).window_days == 90
    assert normalize_settings({"window_days": 0}, env={}).window_days == 1
    assert normalize_settings({"page_limit": 1000}, env={}).page_limit == 200
    assert normalize_settings({"intervals": {"stats": 0, "analytics": "x"}}, env={}).intervals == PollIntervals()
    assert normalize_settings({"intervals": {"stats": 5}}, env={}).intervals.stats == 5.0


def test_failure_policy_and_dark_mode_parsing() -> None:
    assert normalize_settings({"failure_policy": "RESET"}, env={}).failure_policy == "reset"
    assert normalize_settings({"failure_policy": "whatever"}, env={}).failure_policy == "retain"
    assert normalize_settings({"dark_mode": "off"}, env={}).dark_mode is False
    assert normalize_settings({"dark_mode": "maybe"}, env={}).dark_mode is None


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("DASHBOARD_WINDOW_DAYS", "30")
    monkeypatch.delenv("DASHBOARD_API_URL", raising=False)
    settings = normalize_settings()
    assert settings.window_days == 30
    assert settings.api_base_url == DEFAULT_API_URL
