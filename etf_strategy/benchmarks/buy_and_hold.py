from __future__ import annotations

from typing import Sequence

from etf_strategy.benchmarks.base import build_result, empty_result
from etf_strategy.core.models import BenchmarkResult, MarketContext, PriceBar, TradeStats
from etf_strategy.core.technicals import bars_frame


class BuyAndHoldBenchmark:
    """Invest all capital at the first close and hold to the end."""

    name = "buy_and_hold"

    def calculate(
        self,
        series: Sequence[PriceBar],
        dates: Sequence[str],
        initial_capital: float,
        context: MarketContext | None = None,
    ) -> BenchmarkResult:
        frame = bars_frame(list(series))
        if frame.empty or not len(dates):
            return empty_result()
        first_close = float(frame["close"].iloc[0])
        if first_close <= 0:
            return empty_result()
        shares = initial_capital / first_close
        values = frame["close"] * shares
        stats = TradeStats(total_trades=1, buy_count=1, total_invested=initial_capital)
        return build_result(values, dates, initial_capital, stats)
