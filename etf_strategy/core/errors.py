from __future__ import annotations


class BacktestError(Exception):
    """Base class for errors raised by the backtest core."""


class BacktestComputationError(BacktestError):
    def __init__(self, message: str = "backtest computation failed") -> None:
        super().__init__(message)
