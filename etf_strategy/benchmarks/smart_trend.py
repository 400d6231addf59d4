from __future__ import annotations

from typing import Sequence

import pandas as pd

from etf_strategy.benchmarks.base import AllInPortfolio, aux_values, build_result, empty_result
from etf_strategy.core.models import BenchmarkResult, MarketContext, PriceBar
from etf_strategy.core.technicals import bars_frame, linear_regression_slope, rsi

SLOPE_PERIOD = 20
RSI_PERIOD = 14
NEUTRAL_RSI = 50.0


def trend_score(slope: float, vix: float, rsi_value: float) -> int:
    score = 0
    if slope > 0:
        score += 2
    elif slope < 0:
        score -= 2

    if vix > 30:
        score += 2
    elif 0 < vix < 12:
        score -= 1

    if rsi_value < 30:
        score += 2
    elif rsi_value > 75:
        score -= 1
    return score


class SmartTrendBenchmark:
    """Hold while the 20-bar regression slope of closes is rising."""

    name = "smart_trend"

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
        slopes = linear_regression_slope(closes, SLOPE_PERIOD)
        book = AllInPortfolio(cash=initial_capital)
        values: list[float] = []
        for price, slope in zip(closes.tolist(), slopes.tolist()):
            if not book.invested:
                if slope > 0:
                    book.buy_all(price)
            elif slope < 0:
                book.sell_all(price)
            values.append(book.value(price))

        return build_result(pd.Series(values, index=frame.index), dates, initial_capital, book.trade_stats())


class SmartTrend32Benchmark:
    """Score trend, VIX sentiment and RSI momentum; hold while the score is positive."""

    name = "smart_trend_3_2"

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
        slopes = linear_regression_slope(closes, SLOPE_PERIOD)
        momentum = rsi(closes, RSI_PERIOD).fillna(NEUTRAL_RSI)
        vix = aux_values(frame.index, context.vix_data if context else None)

        book = AllInPortfolio(cash=initial_capital)
        values: list[float] = []
        rows = zip(closes.tolist(), slopes.tolist(), vix.tolist(), momentum.tolist())
        for price, slope, vix_value, rsi_value in rows:
            score = trend_score(slope, vix_value, rsi_value)
            if not book.invested:
                if score > 0:
                    book.buy_all(price)
            elif score <= 0:
                book.sell_all(price)
            values.append(book.value(price))

        return build_result(pd.Series(values, index=frame.index), dates, initial_capital, book.trade_stats())
