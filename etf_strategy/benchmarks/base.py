from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import pandas as pd

from etf_strategy.core.models import BenchmarkResult, MarketContext, PriceBar, TradeStats
from etf_strategy.core.performance_analyzer import metrics_from_curve


class BenchmarkStrategy(Protocol):
    name: str

    def calculate(
        self,
        series: Sequence[PriceBar],
        dates: Sequence[str],
        initial_capital: float,
        context: MarketContext | None = None,
    ) -> BenchmarkResult: ...


def empty_result() -> BenchmarkResult:
    return BenchmarkResult()


def align_equity(values: pd.Series, dates: Sequence[str], initial_capital: float) -> list[float]:
    """One value per alignment date; missing dates carry the last known value."""
    if not len(dates):
        return []
    aligned = values.reindex(list(dates)).ffill().fillna(initial_capital)
    return [float(v) for v in aligned.tolist()]


def aux_values(index: pd.Index, data: dict[str, float] | None) -> pd.Series:
    """Auxiliary series looked up by date; dates without a value read as 0."""
    if not data:
        return pd.Series(0.0, index=index, dtype=float)
    return pd.Series([float(data.get(day, 0.0) or 0.0) for day in index], index=index, dtype=float)


def build_result(
    values: pd.Series,
    dates: Sequence[str],
    initial_capital: float,
    trade_stats: TradeStats,
) -> BenchmarkResult:
    equity_curve = align_equity(values, dates, initial_capital)
    return BenchmarkResult(
        equity_curve=equity_curve,
        stats=metrics_from_curve(equity_curve, list(dates), trade_stats, initial_capital),
    )


@dataclass
class AllInPortfolio:
    """All-in / all-out book used by the switching benchmarks."""

    cash: float
    positions: float = 0.0
    buy_count: int = 0
    sell_count: int = 0
    total_invested: float = 0.0
    total_proceeds: float = 0.0

    @property
    def invested(self) -> bool:
        return self.positions > 0

    def buy_all(self, price: float) -> None:
        if price <= 0 or self.cash <= 0:
            return
        self.positions = self.cash / price
        self.total_invested += self.cash
        self.cash = 0.0
        self.buy_count += 1

    def sell_all(self, price: float) -> None:
        proceeds = self.positions * price
        self.cash += proceeds
        self.positions = 0.0
        self.total_proceeds += proceeds
        self.sell_count += 1

    def value(self, price: float) -> float:
        return self.cash + (self.positions * price)

    def trade_stats(self) -> TradeStats:
        return TradeStats(
            total_trades=self.buy_count + self.sell_count,
            buy_count=self.buy_count,
            sell_count=self.sell_count,
            total_invested=self.total_invested,
            total_proceeds=self.total_proceeds,
        )
