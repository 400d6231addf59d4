from __future__ import annotations

import pytest
from pydantic import ValidationError

from etf_strategy.config.settings import BacktestSettings, get_settings, load_settings

_ENV_NAMES = [
    "ETF_STRATEGY_TRADING_DAYS_PER_YEAR",
    "ETF_STRATEGY_DRAWDOWN_NOISE_THRESHOLD_PCT",
    "ETF_STRATEGY_TOP_DRAWDOWNS",
    "ETF_STRATEGY_DCA_ACCELERATION",
    "ETF_STRATEGY_SCORING_MODEL",
    "ETF_STRATEGY_MONITOR_MAX_STALENESS_DAYS",
    "ETF_STRATEGY_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_when_file_is_missing(clean_env, tmp_path) -> None:
    settings = load_settings(tmp_path / "missing.yaml")
    assert settings == BacktestSettings()
    assert settings.trading_days_per_year == 252
    assert settings.scoring_model == "adaptive_trend"
    assert settings.dca_acceleration_default == pytest.approx(0.12)


def test_yaml_values_are_loaded(clean_env, tmp_path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        "backtest:\n  top_drawdowns: 3\nbenchmarks:\n  dca_acceleration: 0.05\n  scoring_model: multi_factor\n"
        "monitor:\n  max_staleness_days: 2\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.top_drawdowns == 3
    assert settings.dca_acceleration_default == pytest.approx(0.05)
    assert settings.scoring_model == "multi_factor"
    assert settings.monitor_max_staleness_days == 2
    assert settings.log_level == "DEBUG"


def test_environment_overrides_yaml(clean_env, tmp_path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("backtest:\n  top_drawdowns: 3\n", encoding="utf-8")
    clean_env.setenv("ETF_STRATEGY_TOP_DRAWDOWNS", "7")
    clean_env.setenv("ETF_STRATEGY_SCORING_MODEL", "smart_trend")
    settings = load_settings(path)
    assert settings.top_drawdowns == 7
    assert settings.scoring_model == "smart_trend"


def test_invalid_values_are_rejected(clean_env, tmp_path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("backtest:\n  trading_days_per_year: 0\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_settings(path)


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
