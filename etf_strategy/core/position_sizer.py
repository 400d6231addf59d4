from __future__ import annotations

from etf_strategy.core.models import (
    CASH_PERCENT,
    FIXED_AMOUNT,
    POSITION_PERCENT,
    TOTAL_VALUE_PERCENT,
    AccountState,
    SizingValue,
)


def calculate_buy_quantity(value: SizingValue, account: AccountState, price: float) -> float:
    """Shares to buy at ``price``. The spend never exceeds available cash."""
    if price <= 0:
        return 0.0
    amount_to_spend = 0.0
    if value.type == FIXED_AMOUNT:
        amount_to_spend = value.amount
    elif value.type == CASH_PERCENT:
        amount_to_spend = account.cash * value.amount / 100.0
    elif value.type == TOTAL_VALUE_PERCENT:
        target_value = account.total_value * value.amount / 100.0
        current_value = account.positions * price
        amount_to_spend = max(0.0, target_value - current_value)

    amount_to_spend = min(amount_to_spend, account.cash)
    if amount_to_spend <= 0:
        return 0.0
    return amount_to_spend / price


def calculate_sell_quantity(value: SizingValue, account: AccountState, price: float) -> float:
    """Shares to sell at ``price``. Not capped by the position held; callers clamp."""
    if value.type == FIXED_AMOUNT:
        return value.amount / price if price > 0 else 0.0
    if value.type == POSITION_PERCENT:
        return account.positions * value.amount / 100.0
    if value.type == TOTAL_VALUE_PERCENT:
        if price <= 0:
            return 0.0
        target_value = account.total_value * value.amount / 100.0
        current_value = account.positions * price
        return max(0.0, current_value - target_value) / price
    return 0.0
