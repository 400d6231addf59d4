from __future__ import annotations

from etf_strategy.core.models import (
    CASH_PERCENT,
    FIXED_AMOUNT,
    POSITION_PERCENT,
    TOTAL_VALUE_PERCENT,
    BacktestResult,
    StrategyConfig,
)

MAX_TAGS = 6

CONDITION_TAGS: dict[str, tuple[str, str]] = {
    "rsi": ("RSI", "Technical"),
    "drawdownFromPeak": ("Drawdown", "Contrarian"),
    "priceStreak": ("Momentum", "Trend"),
    "maCross": ("Moving Average", "Technical"),
    "newHigh": ("Breakout", "Momentum"),
    "newLow": ("Buy the Dip", "Contrarian"),
    "periodReturn": ("Return Based", "Momentum"),
    "vix": ("VIX", "Sentiment"),
}

_DYNAMIC_SIZING = {CASH_PERCENT, POSITION_PERCENT, TOTAL_VALUE_PERCENT}


def _config_tags(config: StrategyConfig) -> list[str]:
    tags: list[str] = []
    for trigger in config.triggers:
        tags.extend(CONDITION_TAGS.get(trigger.condition.type, ()))

    buys = sum(1 for t in config.triggers if t.action.type == "buy")
    sells = sum(1 for t in config.triggers if t.action.type == "sell")
    if buys and sells:
        tags.append("Two-Way")
    elif buys:
        tags.append("Buy Only")
    elif sells:
        tags.append("Sell Only")

    if len({t.condition.type for t in config.triggers}) >= 3:
        tags.append("Multi-Factor")

    sizing_types = {t.action.value.type for t in config.triggers}
    if sizing_types & _DYNAMIC_SIZING:
        tags.append("Dynamic Sizing")
    elif FIXED_AMOUNT in sizing_types:
        tags.append("Fixed Amount")

    if any(t.cooldown is not None and t.cooldown.days > 0 for t in config.triggers):
        tags.append("Controlled Pace")
    return tags


def _result_tags(result: BacktestResult) -> list[str]:
    metrics = result.performance.strategy
    drawdown = abs(metrics.max_drawdown)
    annualized = metrics.annualized_return
    tags: list[str] = []

    if metrics.sharpe_ratio > 2.0:
        tags.append("Excellent Sharpe")
    elif metrics.sharpe_ratio > 1.5:
        tags.append("High Sharpe")

    if drawdown < 10:
        tags.append("Low Drawdown")
    elif drawdown < 20:
        tags.append("Moderate Risk")

    if annualized > 20:
        tags.append("High Return")
    elif annualized > 10:
        tags.append("Solid Return")

    trade_count = len(result.trades)
    if trade_count > 50:
        tags.append("High Frequency")
    elif trade_count < 10:
        tags.append("Low Frequency")
    else:
        tags.append("Medium Frequency")

    if annualized > 15 and drawdown < 15:
        tags.append("Balanced")
    elif annualized > 20:
        tags.append("Aggressive")
    elif drawdown < 10:
        tags.append("Conservative")
    return tags


def generate_tags(config: StrategyConfig, result: BacktestResult | None = None) -> list[str]:
    """Descriptive tags for a strategy, in first-seen order, at most ``MAX_TAGS``."""
    tags = _config_tags(config)
    if result is not None:
        tags.extend(_result_tags(result))
    return list(dict.fromkeys(tags))[:MAX_TAGS]
