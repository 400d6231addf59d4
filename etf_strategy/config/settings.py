from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

ENV_PREFIX = "ETF_STRATEGY_"


class BacktestSettings(BaseModel):
    trading_days_per_year: int = Field(252, gt=0)
    drawdown_noise_threshold_pct: float = Field(1.0, ge=0)
    top_drawdowns: int = Field(5, ge=0)
    dca_acceleration_default: float = Field(0.12, ge=0)
    scoring_model: str = "adaptive_trend"
    monitor_max_staleness_days: int = Field(5, ge=0)
    log_level: str = "INFO"


def _env(name: str) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}")


def settings_path() -> Path:
    override = _env("SETTINGS_FILE")
    if override:
        return Path(override)
    base = Path(__file__).resolve().parents[2]
    return base / "config" / "settings.yaml"


def load_settings(path: Path | None = None) -> BacktestSettings:
    """Build settings from the YAML file, then apply ``ETF_STRATEGY_*`` overrides."""
    source = path or settings_path()
    payload: dict[str, Any] = {}
    if source.exists():
        payload = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    backtest_cfg = payload.get("backtest", {}) if isinstance(payload, dict) else {}
    benchmark_cfg = payload.get("benchmarks", {}) if isinstance(payload, dict) else {}
    monitor_cfg = payload.get("monitor", {}) if isinstance(payload, dict) else {}
    logging_cfg = payload.get("logging", {}) if isinstance(payload, dict) else {}
    return BacktestSettings(
        trading_days_per_year=int(
            _env("TRADING_DAYS_PER_YEAR") or backtest_cfg.get("trading_days_per_year", 252)
        ),
        drawdown_noise_threshold_pct=float(
            _env("DRAWDOWN_NOISE_THRESHOLD_PCT") or backtest_cfg.get("drawdown_noise_threshold_pct", 1.0)
        ),
        top_drawdowns=int(_env("TOP_DRAWDOWNS") or backtest_cfg.get("top_drawdowns", 5)),
        dca_acceleration_default=float(
            _env("DCA_ACCELERATION") or benchmark_cfg.get("dca_acceleration", 0.12)
        ),
        scoring_model=_env("SCORING_MODEL") or benchmark_cfg.get("scoring_model", "adaptive_trend"),
        monitor_max_staleness_days=int(
            _env("MONITOR_MAX_STALENESS_DAYS") or monitor_cfg.get("max_staleness_days", 5)
        ),
        log_level=(_env("LOG_LEVEL") or logging_cfg.get("level", "INFO")).upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> BacktestSettings:
    return load_settings()
