from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from etf_strategy.benchmarks.buy_and_hold import BuyAndHoldBenchmark
from etf_strategy.benchmarks.registry import resolve_scoring_model
from etf_strategy.benchmarks.weekly_dca import WeeklyDCABenchmark
from etf_strategy.config.settings import BacktestSettings, get_settings
from etf_strategy.core.errors import BacktestComputationError
from etf_strategy.core.indicator_engine import check_trigger_condition
from etf_strategy.core.models import (
    AccountSnapshot,
    AccountState,
    BacktestMetadata,
    BacktestResult,
    ChartData,
    DrawdownAnalysis,
    ExecutionState,
    MarketContext,
    PerformanceSummary,
    PriceBar,
    StrategyConfig,
    Trade,
    Trigger,
)
from etf_strategy.core.performance_analyzer import metrics_from_curve, top_drawdowns, trade_stats_from_trades
from etf_strategy.core.position_sizer import calculate_buy_quantity, calculate_sell_quantity

logger = logging.getLogger(__name__)


@dataclass
class PendingOrder:
    trigger: Trigger
    reason: str


def prepare_series(
    series: Sequence[PriceBar], start_date: str | None = None, end_date: str | None = None
) -> list[PriceBar]:
    """Sort by date, keep the last bar per date, and clip to ``[start_date, end_date]``."""
    by_date: dict[str, PriceBar] = {}
    for bar in series:
        by_date[bar.date] = bar
    ordered = [by_date[day] for day in sorted(by_date)]
    if start_date:
        ordered = [bar for bar in ordered if bar.date >= start_date]
    if end_date:
        ordered = [bar for bar in ordered if bar.date <= end_date]
    return ordered


def align_aux_series(dates: Sequence[str], data: dict[str, float] | None) -> list[float]:
    """Values for ``dates``, carrying the last known value forward (0 before the first)."""
    if not data:
        return []
    aligned: list[float] = []
    last = 0.0
    for day in dates:
        value = data.get(day)
        if value is not None:
            last = float(value)
        aligned.append(last)
    return aligned


def _warn_unsupported_conditions(strategy: StrategyConfig) -> None:
    for j, trigger in enumerate(strategy.triggers):
        condition = trigger.condition
        if condition.type == "priceStreak" and condition.params.unit != "day":
            logger.warning(
                "Trigger %d: priceStreak with unit=%s is not supported; condition never fires",
                j + 1,
                condition.params.unit,
            )


def execute_order(order: PendingOrder, account: AccountState, price: float, day: str) -> Trade | None:
    """Apply one queued order at ``price``; returns the recorded trade, if any."""
    action = order.trigger.action
    if action.type == "buy":
        quantity = calculate_buy_quantity(action.value, account, price)
        if quantity <= 0:
            return None
        cost = min(quantity * price, account.cash)
        account.cash -= cost
        account.positions += quantity
    elif action.type == "sell":
        quantity = min(calculate_sell_quantity(action.value, account, price), account.positions)
        if quantity <= 0:
            return None
        account.cash += quantity * price
        account.positions -= quantity
    else:
        return None
    trade = Trade(date=day, action=action.type, quantity=quantity, price=price, reason=order.reason)
    account.trade_history.append(trade)
    return trade


class BacktestEngine:
    def __init__(self, settings: BacktestSettings | None = None) -> None:
        self.settings = settings or get_settings()

    def run_backtest(
        self,
        strategy: StrategyConfig,
        series: Sequence[PriceBar],
        context: MarketContext | None = None,
    ) -> BacktestResult:
        try:
            return self._run(strategy, series, context or MarketContext())
        except Exception as exc:
            logger.exception("Backtest failed for %s", strategy.etf_symbol)
            raise BacktestComputationError() from exc

    def _run(self, strategy: StrategyConfig, series: Sequence[PriceBar], context: MarketContext) -> BacktestResult:
        bars = prepare_series(series, strategy.start_date, strategy.end_date)
        dates = [bar.date for bar in bars]
        vix = align_aux_series(dates, context.vix_data)
        tnx = align_aux_series(dates, context.tnx_data)
        capital = strategy.initial_capital

        account = AccountState(cash=capital, total_value=capital)
        state = self._simulate(strategy, bars, vix, account)

        snapshots = [state.account_history[day] for day in dates]
        strategy_curve = [snap.total_value for snap in snapshots]
        trade_stats = trade_stats_from_trades(account.trade_history)
        periods = self.settings.trading_days_per_year
        strategy_metrics = metrics_from_curve(strategy_curve, dates, trade_stats, capital, periods)

        acceleration = context.dca_acceleration
        if acceleration is None:
            acceleration = self.settings.dca_acceleration_default
        scoring_model = resolve_scoring_model(context.scoring_model or self.settings.scoring_model)

        benchmark = BuyAndHoldBenchmark().calculate(bars, dates, capital, context)
        dca = WeeklyDCABenchmark(acceleration).calculate(bars, dates, capital, context)
        scoring = scoring_model.calculate(bars, dates, capital, context)

        drawdowns = top_drawdowns(
            dates,
            strategy_curve,
            top_n=self.settings.top_drawdowns,
            noise_threshold_pct=self.settings.drawdown_noise_threshold_pct,
        )

        start = strategy.start_date or (dates[0] if dates else "")
        end = strategy.end_date or (dates[-1] if dates else "")
        logger.info(
            "Backtest %s %s to %s: %d bars, %d trades",
            strategy.etf_symbol,
            start,
            end,
            len(bars),
            len(account.trade_history),
        )
        return BacktestResult(
            metadata=BacktestMetadata(symbol=strategy.etf_symbol, period=f"{start} to {end}"),
            performance=PerformanceSummary(
                strategy=strategy_metrics,
                benchmark=benchmark.stats,
                dca=dca.stats,
                scoring=scoring.stats,
            ),
            analysis=DrawdownAnalysis(top_drawdowns=drawdowns),
            charts=ChartData(
                dates=dates,
                strategy_equity=strategy_curve,
                benchmark_equity=benchmark.equity_curve,
                dca_equity=dca.equity_curve,
                scoring_equity=scoring.equity_curve,
                underlying_price=[bar.close for bar in bars],
                vix_data=vix or None,
                tnx_data=tnx or None,
            ),
            trades=list(account.trade_history),
        )

    def _simulate(
        self,
        strategy: StrategyConfig,
        bars: list[PriceBar],
        vix: list[float],
        account: AccountState,
    ) -> ExecutionState:
        """Signals at the close of day i execute at the open of day i + 1."""
        state = ExecutionState()
        position_of = {bar.date: idx for idx, bar in enumerate(bars)}
        pending: list[PendingOrder] = []
        _warn_unsupported_conditions(strategy)

        for idx, bar in enumerate(bars):
            for order in pending:
                execute_order(order, account, bar.open, bar.date)
            pending = []

            account.mark(bar.close)
            state.account_history[bar.date] = AccountSnapshot(
                date=bar.date,
                cash=account.cash,
                positions=account.positions,
                total_value=account.total_value,
            )

            for j, trigger in enumerate(strategy.triggers):
                if self._cooling_down(j, trigger, idx, state, position_of):
                    continue
                if check_trigger_condition(trigger, bars, idx, vix or None):
                    pending.append(PendingOrder(trigger=trigger, reason=f"Trigger {j + 1} (Signal on {bar.date})"))
                    state.last_trigger_execution[j] = bar.date

        if pending:
            logger.debug("Discarding %d orders signalled on the last bar", len(pending))
        return state

    @staticmethod
    def _cooling_down(
        trigger_index: int,
        trigger: Trigger,
        current_index: int,
        state: ExecutionState,
        position_of: dict[str, int],
    ) -> bool:
        if trigger.cooldown is None or trigger.cooldown.days <= 0:
            return False
        last_date = state.last_trigger_execution.get(trigger_index)
        if last_date is None or last_date not in position_of:
            return False
        return current_index - position_of[last_date] < trigger.cooldown.days
