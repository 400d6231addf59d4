from __future__ import annotations

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from etf_strategy.core.models import (
    MarketContext,
    PriceBar,
    StrategyConfig,
    Trigger,
    UnknownCondition,
    VixCondition,
)


def test_price_bar_accepts_short_wire_keys() -> None:
    bar = PriceBar.model_validate({"d": "2023-01-02", "o": 1, "h": 2, "l": 0.5, "c": 1.5, "v": 1234.6})
    assert bar.date == "2023-01-02"
    assert bar.close == 1.5
    assert bar.volume == 1235
    assert bar.model_dump(by_alias=True)["c"] == 1.5


def test_price_bar_normalizes_dates() -> None:
    bar = PriceBar(date=date(2023, 1, 2), open=1, high=1, low=1, close=1)
    assert bar.date == "2023-01-02"
    assert PriceBar(date=datetime(2023, 1, 3, 16, 0), open=1, high=1, low=1, close=1).date == "2023-01-03"
    assert PriceBar(date="2023-01-04T00:00:00Z", open=1, high=1, low=1, close=1).date == "2023-01-04"


def test_strategy_config_from_camel_case_json() -> None:
    config = StrategyConfig.model_validate(
        {
            "etfSymbol": "QQQ",
            "startDate": "2020-01-01",
            "initialCapital": 5000,
            "triggers": [
                {
                    "condition": {"type": "vix", "params": {"mode": "streak", "streakDirection": "up", "streakCount": 3}},
                    "action": {"type": "buy", "value": {"type": "cashPercent", "amount": 25}},
                    "cooldown": {"days": 2},
                    "note": "ignored",
                }
            ],
        }
    )
    assert config.etf_symbol == "QQQ"
    assert config.end_date is None
    condition = config.triggers[0].condition
    assert isinstance(condition, VixCondition)
    assert condition.params.streak_count == 3
    assert config.triggers[0].cooldown.days == 2


def test_unknown_condition_is_preserved_not_rejected() -> None:
    trigger = Trigger.model_validate(
        {"condition": {"type": "bollinger", "params": {"k": 2}}, "action": {"type": "buy", "value": {"type": "fixedAmount"}}}
    )
    assert isinstance(trigger.condition, UnknownCondition)
    assert trigger.condition.type == "bollinger"
    assert trigger.action.value.amount == 0.0


def test_initial_capital_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        StrategyConfig.model_validate({"etfSymbol": "SPY", "initialCapital": 0})


def test_market_context_keys_are_iso_dates() -> None:
    context = MarketContext.model_validate({"vixData": {"2023-01-02T00:00:00": 20.5}, "dcaAcceleration": 0.1})
    assert context.vix_data == {"2023-01-02": 20.5}
    assert context.dca_acceleration == 0.1


def test_result_dump_uses_camel_case(five_bar_series, settings) -> None:
    from etf_strategy.core.backtest_engine import BacktestEngine

    config = StrategyConfig.model_validate({"etfSymbol": "SPY", "initialCapital": 1000})
    payload = BacktestEngine(settings).run_backtest(config, five_bar_series).model_dump(by_alias=True)
    assert set(payload) == {"metadata", "performance", "analysis", "charts", "trades"}
    assert set(payload["performance"]) == {"strategy", "benchmark", "dca", "scoring"}
    assert "topDrawdowns" in payload["analysis"]
    assert {"strategyEquity", "benchmarkEquity", "dcaEquity", "scoringEquity", "underlyingPrice"} <= set(
        payload["charts"]
    )
    assert "totalReturn" in payload["performance"]["strategy"]


@pytest.mark.parametrize(
    "condition",
    [
        {"type": "drawdownFromPeak", "params": {"days": -1, "percentage": 2}},
        {"type": "priceStreak", "params": {"direction": "up", "count": 0}},
        {"type": "newHigh", "params": {"days": -3}},
        {"type": "periodReturn", "params": {"days": -1, "percentage": 1, "direction": "up"}},
        {"type": "rsi", "params": {"period": 0, "threshold": 30, "operator": "below"}},
        {"type": "maCross", "params": {"period": -5, "direction": "above"}},
        {"type": "vix", "params": {"mode": "streak", "streakDirection": "up", "streakCount": -2}},
        {"type": "vix", "params": {"mode": "breakout", "breakoutType": "high", "breakoutDays": 0}},
    ],
)
def test_negative_lookbacks_are_rejected(condition) -> None:
    with pytest.raises(ValidationError):
        Trigger.model_validate({"condition": condition, "action": {"type": "buy", "value": {"type": "fixedAmount"}}})
