from __future__ import annotations

from typing import Sequence

import pandas as pd

from etf_strategy.benchmarks.base import AllInPortfolio, aux_values, build_result, empty_result
from etf_strategy.core.models import BenchmarkResult, MarketContext, PriceBar
from etf_strategy.core.technicals import bars_frame, rsi, running_drawdown_pct

RSI_PERIOD = 14
NEUTRAL_RSI = 50.0
ENTRY_SCORE = 2


def factor_score(vix: float, rsi_value: float, drawdown: float) -> int:
    score = 0
    score += int(vix > 20) + int(vix > 30)
    score += int(rsi_value < 40) + int(rsi_value < 30)
    score += int(drawdown < -5) + int(drawdown < -15)
    return score


class MultiFactorBenchmark:
    """Buy fear: VIX, RSI and drawdown each add to a score.

    Enter at a score of ``ENTRY_SCORE`` or more; leave when RSI > 70 or the
    drawdown from the running high is shallower than 2%.
    """

    name = "multi_factor"

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
        momentum = rsi(closes, RSI_PERIOD).fillna(NEUTRAL_RSI)
        drawdowns = running_drawdown_pct(closes)
        vix = aux_values(frame.index, context.vix_data if context else None)

        book = AllInPortfolio(cash=initial_capital)
        values: list[float] = []
        rows = zip(closes.tolist(), vix.tolist(), momentum.tolist(), drawdowns.tolist())
        for price, vix_value, rsi_value, drawdown in rows:
            if not book.invested:
                if factor_score(vix_value, rsi_value, drawdown) >= ENTRY_SCORE:
                    book.buy_all(price)
            elif rsi_value > 70 or drawdown > -2:
                book.sell_all(price)
            values.append(book.value(price))

        return build_result(pd.Series(values, index=frame.index), dates, initial_capital, book.trade_stats())
