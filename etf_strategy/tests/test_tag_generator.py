from __future__ import annotations

from etf_strategy.core.backtest_engine import BacktestEngine
from etf_strategy.core.models import StrategyConfig
from etf_strategy.core.tag_generator import generate_tags


def _trigger(condition_type: str, params: dict, action: str, sizing: str, cooldown: int = 0) -> dict:
    return {
        "condition": {"type": condition_type, "params": params},
        "action": {"type": action, "value": {"type": sizing, "amount": 10}},
        "cooldown": {"days": cooldown},
    }


def _config(*triggers: dict) -> StrategyConfig:
    return StrategyConfig.model_validate({"etfSymbol": "SPY", "initialCapital": 10000, "triggers": list(triggers)})


def test_single_trigger_tags() -> None:
    config = _config(_trigger("drawdownFromPeak", {"days": 5, "percentage": 2}, "buy", "fixedAmount"))
    assert generate_tags(config) == ["Drawdown", "Contrarian", "Buy Only", "Fixed Amount"]

    paced = _config(_trigger("drawdownFromPeak", {"days": 5, "percentage": 2}, "buy", "fixedAmount", cooldown=5))
    assert generate_tags(paced)[-1] == "Controlled Pace"


def test_tags_are_deduplicated_and_capped() -> None:
    config = _config(
        _trigger("rsi", {"period": 14, "threshold": 70, "operator": "above"}, "sell", "positionPercent"),
        _trigger("newLow", {"days": 20}, "buy", "cashPercent"),
        _trigger("vix", {"threshold": 30, "operator": "above"}, "buy", "fixedAmount"),
        _trigger("maCross", {"period": 50, "direction": "above"}, "buy", "fixedAmount"),
    )
    tags = generate_tags(config)
    assert tags == ["RSI", "Technical", "Buy the Dip", "Contrarian", "VIX", "Sentiment"]
    assert len(tags) == len(set(tags))


def test_result_based_tags(five_bar_series, settings) -> None:
    config = _config()
    result = BacktestEngine(settings).run_backtest(config, five_bar_series)
    assert generate_tags(config, result) == ["Low Drawdown", "Low Frequency", "Conservative"]


def test_sell_only_and_dynamic_sizing() -> None:
    config = _config(_trigger("newHigh", {"days": 20}, "sell", "totalValuePercent"))
    assert generate_tags(config) == ["Breakout", "Momentum", "Sell Only", "Dynamic Sizing"]
