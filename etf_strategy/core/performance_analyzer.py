from __future__ import annotations

from datetime import date
from typing import Sequence

import numpy as np

from etf_strategy.core.models import DrawdownEvent, PerformanceMetrics, Trade, TradeStats

TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365.25
DRAWDOWN_NOISE_THRESHOLD_PCT = 1.0
TOP_DRAWDOWNS = 5


def empty_metrics(trade_stats: TradeStats | None = None) -> PerformanceMetrics:
    return PerformanceMetrics(trade_stats=trade_stats or TradeStats())


def trade_stats_from_trades(trades: Sequence[Trade]) -> TradeStats:
    buys = [t for t in trades if t.action == "buy"]
    sells = [t for t in trades if t.action == "sell"]
    return TradeStats(
        total_trades=len(buys) + len(sells),
        buy_count=len(buys),
        sell_count=len(sells),
        total_invested=float(sum(t.quantity * t.price for t in buys)),
        total_proceeds=float(sum(t.quantity * t.price for t in sells)),
    )


def max_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline in percent, as a value <= 0."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    peak = np.maximum.accumulate(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdown = np.where(peak > 0, (peak - arr) / peak * 100.0, 0.0)
    worst = float(np.nanmax(drawdown))
    return -worst if worst > 0 else 0.0


def sharpe_ratio(values: Sequence[float], periods_per_year: int = TRADING_DAYS_PER_YEAR) -> float:
    """Annualised Sharpe of simple period returns, risk-free rate 0, population stdev."""
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return 0.0
    prev = arr[:-1]
    curr = arr[1:]
    valid = prev != 0
    if not valid.any():
        return 0.0
    returns = curr[valid] / prev[valid] - 1.0
    std = float(np.std(returns))
    if not np.isfinite(std) or std < 1e-12:
        return 0.0
    return float(np.mean(returns) / std * np.sqrt(periods_per_year))


def years_between(start: str, end: str) -> float:
    span = date.fromisoformat(end) - date.fromisoformat(start)
    return span.days / DAYS_PER_YEAR


def annualized_return(end_value: float, initial_capital: float, years: float) -> float:
    if years <= 0 or initial_capital <= 0:
        return 0.0
    ratio = end_value / initial_capital
    if ratio < 0:
        return 0.0
    return (ratio ** (1.0 / years) - 1.0) * 100.0


def metrics_from_curve(
    equity_curve: Sequence[float],
    dates: Sequence[str],
    trade_stats: TradeStats,
    initial_capital: float,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> PerformanceMetrics:
    if len(equity_curve) == 0 or len(dates) == 0 or initial_capital <= 0:
        return empty_metrics(trade_stats)
    end_value = float(equity_curve[-1])
    total_return = (end_value - initial_capital) / initial_capital * 100.0
    years = years_between(dates[0], dates[-1])
    return PerformanceMetrics(
        total_return=total_return,
        annualized_return=annualized_return(end_value, initial_capital, years),
        max_drawdown=max_drawdown(equity_curve),
        sharpe_ratio=sharpe_ratio(equity_curve, periods_per_year),
        trade_stats=trade_stats,
    )


def top_drawdowns(
    dates: Sequence[str],
    values: Sequence[float],
    top_n: int = TOP_DRAWDOWNS,
    noise_threshold_pct: float = DRAWDOWN_NOISE_THRESHOLD_PCT,
) -> list[DrawdownEvent]:
    """Rank the deepest underwater episodes of an equity curve.

    An episode opens on the first bar below the running peak and closes on
    the first bar at or above it. ``days_to_recover`` counts bars from the
    peak to the recovery (or to the last bar for an open episode). Episodes
    no deeper than ``noise_threshold_pct`` are dropped.
    """
    events: list[dict] = []
    running_max = float("-inf")
    peak_idx = 0
    current: dict | None = None

    def _keep(event: dict) -> None:
        if event["depth_percent"] < -noise_threshold_pct:
            events.append(event)

    for idx, (day, raw_value) in enumerate(zip(dates, values)):
        value = float(raw_value)
        if value >= running_max:
            if current is not None:
                current["recovery_date"] = day
                current["is_recovered"] = True
                current["days_to_recover"] = idx - current.pop("_peak_idx")
                _keep(current)
                current = None
            running_max = value
            peak_idx = idx
            continue

        depth = ((value - running_max) / running_max) * 100.0 if running_max > 0 else 0.0
        if current is None:
            current = {
                "_peak_idx": peak_idx,
                "depth_percent": depth,
                "peak_date": dates[peak_idx],
                "peak_price": running_max,
                "valley_date": day,
                "valley_price": value,
                "recovery_date": None,
                "is_recovered": False,
                "days_to_recover": 0,
            }
        elif depth < current["depth_percent"]:
            current["depth_percent"] = depth
            current["valley_date"] = day
            current["valley_price"] = value

    if current is not None:
        last_idx = min(len(dates), len(values)) - 1
        current["days_to_recover"] = last_idx - current.pop("_peak_idx")
        _keep(current)

    ranked = sorted(events, key=lambda e: e["depth_percent"])[: max(top_n, 0)]
    return [DrawdownEvent(rank=rank, **event) for rank, event in enumerate(ranked, start=1)]
