"""Tests for configuration."""

import pytest

from rate_spread_monitor.config import ERA_YEAR_OFFSETS, Settings
from rate_spread_monitor.errors import ConfigurationMissingError


def test_validate_requires_fred_key():
    with pytest.raises(ConfigurationMissingError, match="FRED_API_KEY"):
        Settings(fred_api_key="").validate()


def test_validate_passes_with_key(settings):
    settings.validate()
    assert settings.has_slack()
    assert settings.has_jquants()


def test_min_aligned_must_cover_trend_window():
    with pytest.raises(ValueError, match="min_aligned"):
        Settings(fred_api_key="k", min_aligned=5, trend_steps=5)


def test_fetch_window_must_cover_min_aligned():
    with pytest.raises(ValueError, match="fetch_window"):
        Settings(fred_api_key="k", fetch_window=8, min_aligned=10)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("FRED_API_KEY", "from-env")
    monkeypatch.setenv("RSM_FETCH_WINDOW", "60")
    monkeypatch.setenv("RSM_SPREAD_THRESHOLD", "0.05")
    s = Settings()
    assert s.fred_api_key == "from-env"
    assert s.fetch_window == 60
    assert s.spread_threshold == 0.05


def test_blank_env_uses_default(monkeypatch):
    monkeypatch.setenv("RSM_MIN_ALIGNED", " ")
    assert Settings(fred_api_key="k").min_aligned == 6


def test_defaults():
    s = Settings(fred_api_key="k")
    assert s.us_series_id == "DGS10"
    assert s.fx_symbol == "JPY=X"
    assert s.futures_symbol == "ZN=F"
    assert s.mof_csv_url.endswith("/jgbcm.csv")
    assert ERA_YEAR_OFFSETS["R"] == 2018


def test_alert_tickers_from_env(monkeypatch):
    monkeypatch.setenv("ALERT_TICKERS", "7203,6758")
    assert Settings(fred_api_key="k").has_alert_tickers()
    monkeypatch.setenv("ALERT_TICKERS", " ")
    assert not Settings(fred_api_key="k").has_alert_tickers()
