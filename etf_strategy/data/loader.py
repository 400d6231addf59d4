from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from etf_strategy.core.models import PriceBar, StrategyConfig

REQUIRED_COLUMNS = ["date", "open", "high", "low", "close"]
_AUX_VALUE_COLUMNS = ["close", "adj close", "value"]


def _read_csv(path: str | Path) -> pd.DataFrame:
    frame = pd.read_csv(path)
    frame.columns = [str(c).strip().lower() for c in frame.columns]
    if "date" not in frame.columns:
        raise ValueError("Missing required columns: ['date']")
    frame["date"] = pd.to_datetime(frame["date"], errors="coerce", utc=True).dt.tz_convert(None)
    if frame["date"].isna().any():
        raise ValueError("Invalid date values found in CSV")
    return frame


def load_price_series_csv(path: str | Path) -> list[PriceBar]:
    """OHLCV bars from a CSV with date/open/high/low/close (and optional volume) columns."""
    frame = _read_csv(path)
    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    out = frame[REQUIRED_COLUMNS].copy()
    for col in ["open", "high", "low", "close"]:
        out[col] = pd.to_numeric(out[col], errors="coerce")
    if out[["open", "high", "low", "close"]].isna().any().any():
        raise ValueError("Invalid OHLC numeric values found in CSV")
    if "volume" in frame.columns:
        out["volume"] = pd.to_numeric(frame["volume"], errors="coerce").fillna(0.0)
    else:
        out["volume"] = 0.0
    out = out.sort_values("date").reset_index(drop=True)
    return [
        PriceBar(
            date=row.date.date().isoformat(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=max(0, int(round(row.volume))),
        )
        for row in out.itertuples(index=False)
    ]


def load_aux_series_csv(path: str | Path) -> dict[str, float]:
    """Date -> value map (VIX, TNX) from the close, adj close or value column of a CSV."""
    frame = _read_csv(path)
    column = next((c for c in _AUX_VALUE_COLUMNS if c in frame.columns), None)
    if column is None:
        raise ValueError(f"Missing value column; expected one of {_AUX_VALUE_COLUMNS}")
    values = pd.to_numeric(frame[column], errors="coerce")
    keep = values.notna()
    return {
        ts.date().isoformat(): float(value)
        for ts, value in zip(frame.loc[keep, "date"], values[keep])
    }


def load_strategy_json(path: str | Path) -> StrategyConfig:
    with open(path, "r", encoding="utf-8") as f:
        try:
            obj = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid strategy JSON: {exc}") from exc
    if isinstance(obj, dict) and isinstance(obj.get("config"), dict):
        obj = obj["config"]
    try:
        return StrategyConfig.model_validate(obj)
    except ValidationError as exc:
        raise ValueError(f"Invalid strategy config: {exc}") from exc
