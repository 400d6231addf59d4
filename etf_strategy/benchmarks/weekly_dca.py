from __future__ import annotations

from typing import Sequence

import pandas as pd

from etf_strategy.benchmarks.base import build_result, empty_result
from etf_strategy.core.models import BenchmarkResult, MarketContext, PriceBar, TradeStats
from etf_strategy.core.technicals import bars_frame

_CASH_EPSILON = 1e-4


def week_ids(index: pd.Index) -> pd.Series:
    """ISO year-week label (``2024-W05``) for each date in ``index``."""
    iso = pd.to_datetime(pd.Series(index, index=index)).dt.isocalendar()
    return iso["year"].astype(str) + "-W" + iso["week"].astype(int).map("{:02d}".format)


def weekly_down_streaks(closes: pd.Series, weeks: pd.Series) -> dict[str, int]:
    """Consecutive down weeks completed before each week starts.

    A week is down when its last close is below the previous week's last
    close. The first two weeks always start with a streak of 0.
    """
    weekly_close = closes.groupby(weeks.values, sort=False).last()
    streaks: dict[str, int] = {}
    streak = 0
    labels = list(weekly_close.index)
    values = weekly_close.tolist()
    for idx, label in enumerate(labels):
        if idx >= 2:
            streak = streak + 1 if values[idx - 1] < values[idx - 2] else 0
        streaks[label] = streak
    return streaks


class WeeklyDCABenchmark:
    """Split capital evenly across ISO weeks and buy on each week's first bar.

    After ``n >= 2`` completed down weeks the weekly amount is scaled by
    ``(1 + acceleration) ** (n - 1)``; purchases never exceed remaining cash
    and the final week invests whatever is left.
    """

    name = "weekly_dca"

    def __init__(self, acceleration: float = 0.12) -> None:
        self.acceleration = max(0.0, float(acceleration))

    def calculate(
        self,
        series: Sequence[PriceBar],
        dates: Sequence[str],
        initial_capital: float,
        context: MarketContext | None = None,
    ) -> BenchmarkResult:
        frame = bars_frame(list(series))
        if not frame.empty:
            frame = frame[frame.index.isin(list(dates))]
        if frame.empty:
            return empty_result()

        closes = frame["close"]
        weeks = week_ids(frame.index)
        streaks = weekly_down_streaks(closes, weeks)
        base_amount = initial_capital / len(streaks)
        final_week = next(reversed(streaks))
        rate = self.acceleration

        cash = initial_capital
        positions = 0.0
        buy_count = 0
        total_invested = 0.0
        last_week = None
        values: list[float] = []
        for week, price in zip(weeks.tolist(), closes.tolist()):
            if week != last_week and cash > _CASH_EPSILON and price > 0:
                streak = streaks.get(week, 0)
                multiplier = (1.0 + rate) ** (streak - 1) if streak >= 2 else 1.0
                amount = cash if week == final_week else min(base_amount * multiplier, cash)
                positions += amount / price
                cash -= amount
                if cash < _CASH_EPSILON:
                    cash = 0.0
                buy_count += 1
                total_invested += amount
                last_week = week
            values.append(cash + positions * price)

        stats = TradeStats(total_trades=buy_count, buy_count=buy_count, total_invested=total_invested)
        result = build_result(pd.Series(values, index=frame.index), dates, initial_capital, stats)
        result.stats.dca_acceleration_rate = rate
        return result
