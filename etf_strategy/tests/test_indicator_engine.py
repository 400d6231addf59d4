from __future__ import annotations

from etf_strategy.core.indicator_engine import (
    check_drawdown_from_peak,
    check_period_return,
    check_price_streak,
    check_trigger_condition,
    check_vix,
    cutler_rsi,
)
from etf_strategy.core.models import (
    DrawdownFromPeakParams,
    PeriodReturnParams,
    PriceStreakParams,
    Trigger,
    UnknownCondition,
    VixParams,
)


def _trigger(condition_type: str, **params) -> Trigger:
    return Trigger.model_validate(
        {
            "condition": {"type": condition_type, "params": params},
            "action": {"type": "buy", "value": {"type": "fixedAmount", "amount": 1000}},
        }
    )


def _fired(trigger: Trigger, series, vix=None) -> list[int]:
    return [i for i in range(len(series)) if check_trigger_condition(trigger, series, i, vix)]


def test_drawdown_from_peak_uses_window_highs(five_bar_series) -> None:
    trigger = _trigger("drawdownFromPeak", days=5, percentage=2)
    assert _fired(trigger, five_bar_series) == [2, 3]


def test_price_streak_needs_full_run_of_changes(five_bar_series) -> None:
    assert _fired(_trigger("priceStreak", direction="up", count=2), five_bar_series) == [4]
    assert _fired(_trigger("priceStreak", direction="down", count=1), five_bar_series) == [2]


def test_price_streak_week_unit_never_fires(five_bar_series) -> None:
    trigger = _trigger("priceStreak", direction="up", count=1, unit="week")
    assert _fired(trigger, five_bar_series) == []


def test_new_high_and_low_exclude_today(five_bar_series) -> None:
    assert _fired(_trigger("newHigh", days=3), five_bar_series) == [1]
    assert _fired(_trigger("newLow", days=1), five_bar_series) == [2, 3]


def test_period_return_direction(five_bar_series) -> None:
    assert _fired(_trigger("periodReturn", days=2, percentage=1, direction="down"), five_bar_series) == [2, 3]
    assert _fired(_trigger("periodReturn", days=2, percentage=1, direction="up"), five_bar_series) == [4]


def test_rsi_operator(five_bar_series) -> None:
    assert _fired(_trigger("rsi", period=2, threshold=50, operator="below"), five_bar_series) == [2, 3]
    assert _fired(_trigger("rsi", period=2, threshold=50, operator="above"), five_bar_series) == [4]


def test_ma_cross_requires_a_cross(five_bar_series) -> None:
    assert _fired(_trigger("maCross", period=2, direction="above"), five_bar_series) == [3, 4]
    assert _fired(_trigger("maCross", period=2, direction="below"), five_bar_series) == [2]


def test_cutler_rsi_extremes() -> None:
    assert cutler_rsi([1.0, 2.0, 3.0]) == 100.0
    assert cutler_rsi([3.0, 2.0, 1.0]) == 0.0
    assert cutler_rsi([5.0]) == 50.0


def test_vix_modes() -> None:
    threshold = VixParams(mode="threshold", threshold=20, operator="above")
    assert check_vix(threshold, [15.0, 25.0]) is True
    assert check_vix(threshold, [15.0, 25.0], 0) is False

    streak = VixParams(mode="streak", streak_direction="up", streak_count=2)
    assert check_vix(streak, [10.0, 12.0, 14.0]) is True
    assert check_vix(streak, [10.0, 12.0, 11.0]) is False

    breakout = VixParams(mode="breakout", breakout_type="high", breakout_days=2)
    assert check_vix(breakout, [10.0, 12.0, 15.0]) is True
    assert check_vix(breakout, [10.0, 20.0, 15.0]) is False

    incomplete = VixParams(mode="threshold", threshold=None, operator="above")
    assert check_vix(incomplete, [50.0]) is False


def test_vix_condition_reads_history_up_to_current_bar(five_bar_series) -> None:
    trigger = _trigger("vix", mode="threshold", threshold=20, operator="above")
    vix = [10.0, 10.0, 30.0, 30.0, 10.0]
    assert _fired(trigger, five_bar_series, vix) == [2, 3]
    assert _fired(trigger, five_bar_series, None) == []


def test_unknown_condition_never_fires(five_bar_series) -> None:
    trigger = _trigger("bollinger", width=2)
    assert isinstance(trigger.condition, UnknownCondition)
    assert _fired(trigger, five_bar_series) == []


def test_out_of_range_index_is_false(five_bar_series) -> None:
    trigger = _trigger("drawdownFromPeak", days=5, percentage=0)
    assert check_trigger_condition(trigger, five_bar_series, 5) is False
    assert check_trigger_condition(trigger, five_bar_series, -1) is False


def test_unvalidated_negative_lookbacks_do_not_fire(five_bar_series) -> None:
    drawdown = DrawdownFromPeakParams.model_construct(days=-1, percentage=0.0)
    streak = PriceStreakParams.model_construct(direction="up", count=-1, unit="day")
    assert [check_drawdown_from_peak(drawdown, five_bar_series, i) for i in range(5)] == [False] * 5
    assert [check_price_streak(streak, five_bar_series, i) for i in range(5)] == [False] * 5


def test_period_return_never_reads_ahead(five_bar_series) -> None:
    params = PeriodReturnParams.model_construct(days=-1, percentage=0.0, direction="up")
    bumped = list(five_bar_series)
    bumped[1] = bumped[1].model_copy(update={"close": 1000.0})
    assert check_period_return(params, five_bar_series, 0) is False
    assert check_period_return(params, bumped, 0) is False
    same_day = PeriodReturnParams(days=0, percentage=0, direction="up")
    assert check_period_return(same_day, five_bar_series, 0) is True
    assert check_period_return(same_day, bumped, 0) is True
