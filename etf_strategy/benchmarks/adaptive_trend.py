from __future__ import annotations

from typing import Sequence

import pandas as pd

from etf_strategy.benchmarks.base import AllInPortfolio, aux_values, build_result, empty_result
from etf_strategy.core.models import BenchmarkResult, MarketContext, PriceBar
from etf_strategy.core.technicals import bars_frame, ema, sma

FAST_PERIOD = 20
SLOW_PERIOD = 60
CALM_VIX = 20.0


class AdaptiveTrendBenchmark:
    """Trend following with a volatility-dependent stop.

    Enter when close > EMA20 > SMA60. Exit below EMA20 while VIX < 20,
    otherwise only below SMA60. No trading before bar ``SLOW_PERIOD``.
    """

    name = "adaptive_trend"

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

        closes = frame["close"]
        fast = ema(closes, FAST_PERIOD)
        slow = sma(closes, SLOW_PERIOD).fillna(0.0)
        vix = aux_values(frame.index, context.vix_data if context else None)

        book = AllInPortfolio(cash=initial_capital)
        values: list[float] = []
        rows = zip(closes.tolist(), fast.tolist(), slow.tolist(), vix.tolist())
        for idx, (price, ema20, sma60, vix_value) in enumerate(rows):
            if idx >= SLOW_PERIOD:
                if not book.invested:
                    if price > ema20 > sma60:
                        book.buy_all(price)
                else:
                    stop = ema20 if vix_value < CALM_VIX else sma60
                    if price < stop:
                        book.sell_all(price)
            values.append(book.value(price))

        return build_result(pd.Series(values, index=frame.index), dates, initial_capital, book.trade_stats())
