from __future__ import annotations

import numpy as np
import pandas as pd

from etf_strategy.core.models import PriceBar

_ZERO_TOLERANCE = 1e-12


def bars_frame(series: list[PriceBar]) -> pd.DataFrame:
    """Date-indexed OHLCV frame, sorted, one row per date (last bar wins)."""
    if not series:
        return pd.DataFrame(columns=["open", "high", "low", "close", "volume"], dtype=float)
    frame = pd.DataFrame(
        {
            "date": [bar.date for bar in series],
            "open": [bar.open for bar in series],
            "high": [bar.high for bar in series],
            "low": [bar.low for bar in series],
            "close": [bar.close for bar in series],
            "volume": [bar.volume for bar in series],
        }
    )
    frame = frame.drop_duplicates(subset="date", keep="last").sort_values("date", kind="stable")
    return frame.set_index("date")


def sma(series: pd.Series, period: int) -> pd.Series:
    return series.rolling(period).mean()


def ema(series: pd.Series, period: int) -> pd.Series:
    return series.ewm(span=period, adjust=False).mean()


def rsi(close: pd.Series, period: int = 14) -> pd.Series:
    """Cutler RSI: simple averages of gains/losses over ``period`` changes.

    NaN until ``period`` changes exist; 100 when the average loss is zero.
    """
    delta = close.diff()
    gain = delta.clip(lower=0).rolling(period).mean()
    loss = (-delta.clip(upper=0)).rolling(period).mean()
    loss = loss.mask(loss.abs() < _ZERO_TOLERANCE, 0.0)
    rs = gain / loss.replace(0.0, np.nan)
    out = 100 - (100 / (1 + rs))
    return out.mask(loss == 0, 100.0)


def regression_slope(values: np.ndarray) -> float:
    n = len(values)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    sum_x = float(x.sum())
    sum_y = float(values.sum())
    sum_xy = float((x * values).sum())
    sum_xx = float((x * x).sum())
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def linear_regression_slope(close: pd.Series, period: int = 20) -> pd.Series:
    """Least-squares slope of the trailing ``period`` closes; 0 until the window fills."""
    return close.rolling(period).apply(regression_slope, raw=True).fillna(0.0)


def running_drawdown_pct(close: pd.Series) -> pd.Series:
    peak = close.cummax()
    drawdown = ((close - peak) / peak.replace(0, np.nan)) * 100.0
    return drawdown.fillna(0.0)
