from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from pydantic import Field

from etf_strategy.config.settings import get_settings
from etf_strategy.core.indicator_engine import check_trigger_condition, check_vix
from etf_strategy.core.models import (
    FIXED_AMOUNT,
    PriceBar,
    SizingValue,
    StrategyConfig,
    Trigger,
    WireModel,
    normalize_date,
)

logger = logging.getLogger(__name__)


class TriggeredSignal(WireModel):
    index: int
    description: str
    action_summary: str


class SignalCheckResult(WireModel):
    symbol: str
    as_of: str | None = None
    price: float | None = None
    signals: list[TriggeredSignal] = Field(default_factory=list)
    # trigger index -> date it last fired
    state: dict[int, str] = Field(default_factory=dict)
    skipped_reason: str | None = None

    @property
    def triggered(self) -> bool:
        return bool(self.signals)


def format_action_value(value: SizingValue) -> str:
    if value.type == FIXED_AMOUNT:
        return f"${value.amount:g}"
    return f"{value.amount:g}% ({value.type})"


def describe_condition(
    trigger: Trigger, symbol: str, vix_history: Sequence[float] | None = None
) -> str:
    condition = trigger.condition
    params = condition.params
    current_vix = f"{vix_history[-1]:.2f}" if vix_history else "N/A"
    ctype = condition.type
    if ctype == "drawdownFromPeak":
        return f"{symbol} down more than {params.percentage:g}% from its {params.days}-day high"
    if ctype == "priceStreak":
        move = "up" if params.direction == "up" else "down"
        return f"{symbol} closed {move} {params.count} days in a row"
    if ctype == "newHigh":
        return f"{symbol} made a new {params.days}-day high"
    if ctype == "newLow":
        return f"{symbol} made a new {params.days}-day low"
    if ctype == "periodReturn":
        move = "gained" if params.direction == "up" else "lost"
        return f"{symbol} {move} more than {params.percentage:g}% over {params.days} days"
    if ctype == "rsi":
        return f"{symbol} RSI({params.period}) {params.operator} {params.threshold:g}"
    if ctype == "maCross":
        move = "crossed above" if params.direction == "above" else "crossed below"
        return f"{symbol} {move} its {params.period}-day moving average"
    if ctype == "vix":
        if params.mode == "streak":
            move = "rising" if params.streak_direction == "up" else "falling"
            return f"VIX {move} {params.streak_count} days in a row (current: {current_vix})"
        if params.mode == "breakout":
            extreme = "high" if params.breakout_type == "high" else "low"
            return f"VIX at a new {params.breakout_days}-day {extreme} (current: {current_vix})"
        threshold = f"{params.threshold:g}" if params.threshold is not None else "N/A"
        return f"VIX {params.operator or 'above'} {threshold} (current: {current_vix})"
    return f"Unknown condition type: {ctype}"


def _trading_days_since(last_fired: str, current_index: int, position_of: dict[str, int]) -> float:
    if last_fired not in position_of:
        return float("inf")
    return current_index - position_of[last_fired]


def _condition_met(trigger: Trigger, series: Sequence[PriceBar], vix_history: Sequence[float] | None) -> bool:
    if trigger.condition.type == "vix":
        # The VIX history is its own series; its last value is today's.
        return bool(vix_history) and check_vix(trigger.condition.params, vix_history)
    return check_trigger_condition(trigger, series, len(series) - 1, vix_history)


def check_strategy_signals(
    config: StrategyConfig,
    series: Sequence[PriceBar],
    vix_history: Sequence[float] | None = None,
    last_fired: dict[int, str] | None = None,
    as_of: date | str | None = None,
    max_staleness_days: int | None = None,
) -> SignalCheckResult:
    """Evaluate every trigger of ``config`` on the latest bar of ``series``.

    ``last_fired`` maps trigger index to the date it last fired; the
    returned ``state`` is that map updated with today's firings. Cooldowns
    are counted in trading days by position in ``series``. When ``as_of``
    is given and the latest bar is older than ``max_staleness_days``
    calendar days, nothing is evaluated.
    """
    previous = dict(last_fired or {})
    bars = sorted(series, key=lambda bar: bar.date)
    if not bars:
        logger.warning("No price data for %s; skipping signal check", config.etf_symbol)
        return SignalCheckResult(symbol=config.etf_symbol, state=previous, skipped_reason="no_data")

    latest = bars[-1]
    if as_of is not None:
        limit = get_settings().monitor_max_staleness_days if max_staleness_days is None else max_staleness_days
        age = (date.fromisoformat(normalize_date(as_of)) - date.fromisoformat(latest.date)).days
        if age > limit:
            logger.warning("Data for %s is stale (%s); skipping signal check", config.etf_symbol, latest.date)
            return SignalCheckResult(
                symbol=config.etf_symbol,
                as_of=latest.date,
                price=latest.close,
                state=previous,
                skipped_reason="stale_data",
            )

    position_of = {bar.date: idx for idx, bar in enumerate(bars)}
    state = dict(previous)
    signals: list[TriggeredSignal] = []
    for idx, trigger in enumerate(config.triggers):
        fired_on = previous.get(idx)
        if fired_on and trigger.cooldown is not None:
            if _trading_days_since(fired_on, len(bars) - 1, position_of) < trigger.cooldown.days:
                logger.debug("Trigger %d of %s is cooling down", idx + 1, config.etf_symbol)
                continue
        if not _condition_met(trigger, bars, vix_history):
            continue
        state[idx] = latest.date
        description = describe_condition(trigger, config.etf_symbol, vix_history)
        action = "Buy" if trigger.action.type == "buy" else "Sell"
        signals.append(
            TriggeredSignal(
                index=idx,
                description=description,
                action_summary=f"{action} {format_action_value(trigger.action.value)}",
            )
        )
        logger.info("Trigger %d of %s fired: %s", idx + 1, config.etf_symbol, description)

    return SignalCheckResult(
        symbol=config.etf_symbol,
        as_of=latest.date,
        price=latest.close,
        signals=signals,
        state=state,
    )
