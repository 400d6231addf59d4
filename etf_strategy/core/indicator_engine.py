from __future__ import annotations

import logging
from typing import Sequence

from etf_strategy.core.models import (
    DrawdownFromPeakParams,
    LookbackParams,
    MaCrossParams,
    PeriodReturnParams,
    PriceBar,
    PriceStreakParams,
    RsiParams,
    Trigger,
    VixParams,
)

logger = logging.getLogger(__name__)


def check_trigger_condition(
    trigger: Trigger,
    series: Sequence[PriceBar],
    current_index: int,
    vix_history: Sequence[float] | None = None,
) -> bool:
    """Evaluate ``trigger.condition`` at the close of ``series[current_index]``.

    Only bars ``0..current_index`` are read. VIX conditions need a history
    aligned 1:1 with ``series`` up to ``current_index``; without one they are
    never satisfied. Unknown condition types are never satisfied.
    """
    if current_index < 0 or current_index >= len(series):
        return False
    condition = trigger.condition
    ctype = condition.type
    if ctype == "drawdownFromPeak":
        return check_drawdown_from_peak(condition.params, series, current_index)
    if ctype == "priceStreak":
        return check_price_streak(condition.params, series, current_index)
    if ctype == "newHigh":
        return check_new_high(condition.params, series, current_index)
    if ctype == "newLow":
        return check_new_low(condition.params, series, current_index)
    if ctype == "periodReturn":
        return check_period_return(condition.params, series, current_index)
    if ctype == "rsi":
        return check_rsi(condition.params, series, current_index)
    if ctype == "maCross":
        return check_ma_cross(condition.params, series, current_index)
    if ctype == "vix":
        if not vix_history:
            return False
        return check_vix(condition.params, vix_history, min(current_index, len(vix_history) - 1))
    return False


def check_drawdown_from_peak(params: DrawdownFromPeakParams, series: Sequence[PriceBar], current_index: int) -> bool:
    start = max(0, current_index - params.days)
    window = [bar.high for bar in series[start : current_index + 1]]
    if not window:
        return False
    peak = max(window)
    if peak <= 0:
        return False
    drawdown = ((peak - series[current_index].close) / peak) * 100.0
    return drawdown >= params.percentage


def _streak(closes: Sequence[float], current_index: int, direction: str, count: int) -> bool:
    if count < 1 or current_index < count:
        return False
    for idx in range(current_index, current_index - count, -1):
        prev_close = closes[idx - 1]
        close = closes[idx]
        if direction == "up" and not close > prev_close:
            return False
        if direction == "down" and not close < prev_close:
            return False
    return True


def check_price_streak(params: PriceStreakParams, series: Sequence[PriceBar], current_index: int) -> bool:
    if params.unit != "day":
        # Weekly aggregation is not implemented; the engine warns once per run.
        logger.debug("priceStreak unit=%s skipped at index %d", params.unit, current_index)
        return False
    start = max(0, current_index - params.count)
    closes = [bar.close for bar in series[start : current_index + 1]]
    return _streak(closes, current_index - start, params.direction, params.count)


def _breakout(closes: Sequence[float], extremes: Sequence[float], current_index: int, days: int, high: bool) -> bool:
    start = max(0, current_index - days)
    window = extremes[start:current_index]
    if not window:
        return False
    if high:
        return closes[current_index] > max(window)
    return closes[current_index] < min(window)


def check_new_high(params: LookbackParams, series: Sequence[PriceBar], current_index: int) -> bool:
    start = max(0, current_index - params.days)
    window = [bar.high for bar in series[start:current_index]]
    if not window:
        return False
    return series[current_index].close > max(window)


def check_new_low(params: LookbackParams, series: Sequence[PriceBar], current_index: int) -> bool:
    start = max(0, current_index - params.days)
    window = [bar.low for bar in series[start:current_index]]
    if not window:
        return False
    return series[current_index].close < min(window)


def check_period_return(params: PeriodReturnParams, series: Sequence[PriceBar], current_index: int) -> bool:
    if params.days < 0 or current_index < params.days:
        return False
    start_close = series[current_index - params.days].close
    if start_close == 0:
        return False
    change_pct = ((series[current_index].close - start_close) / start_close) * 100.0
    if params.direction == "up":
        return change_pct >= params.percentage
    return change_pct <= -params.percentage


def cutler_rsi(closes: Sequence[float]) -> float:
    """RSI from simple-average gains and losses over every change in ``closes``."""
    period = len(closes) - 1
    if period < 1:
        return 50.0
    gains = 0.0
    losses = 0.0
    for prev_close, close in zip(closes[:-1], closes[1:]):
        change = close - prev_close
        if change > 0:
            gains += change
        else:
            losses -= change
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    rs = (gains / period) / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def check_rsi(params: RsiParams, series: Sequence[PriceBar], current_index: int) -> bool:
    if params.period < 1 or current_index < params.period:
        return False
    closes = [bar.close for bar in series[current_index - params.period : current_index + 1]]
    value = cutler_rsi(closes)
    if params.operator == "above":
        return value > params.threshold
    return value < params.threshold


def check_ma_cross(params: MaCrossParams, series: Sequence[PriceBar], current_index: int) -> bool:
    if params.period < 1 or current_index < params.period:
        return False
    window = series[current_index - params.period + 1 : current_index + 1]
    ma = sum(bar.close for bar in window) / len(window)
    close = series[current_index].close
    prev_close = series[current_index - 1].close
    if params.direction == "above":
        return prev_close <= ma and close > ma
    return prev_close >= ma and close < ma


def check_vix(params: VixParams, vix_history: Sequence[float], current_index: int | None = None) -> bool:
    """Check a VIX condition; the value at ``current_index`` (default: the last one) is today's."""
    if not vix_history:
        return False
    if current_index is None:
        current_index = len(vix_history) - 1
    if params.mode == "threshold":
        if params.threshold is None or params.operator is None:
            return False
        current = vix_history[current_index]
        if params.operator == "above":
            return current > params.threshold
        return current < params.threshold
    if params.mode == "streak":
        if params.streak_direction is None or not params.streak_count:
            return False
        return _streak(vix_history, current_index, params.streak_direction, params.streak_count)
    if params.mode == "breakout":
        if params.breakout_type is None or not params.breakout_days:
            return False
        return _breakout(
            vix_history, vix_history, current_index, params.breakout_days, high=params.breakout_type == "high"
        )
    return False
