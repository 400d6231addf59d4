from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator
from pydantic.alias_generators import to_camel


def normalize_date(value: Any) -> Any:
    """Coerce date-like values to an ISO ``YYYY-MM-DD`` string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()[:10]


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class PriceBar(WireModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    date: str = Field(alias="d")
    open: float = Field(alias="o")
    high: float = Field(alias="h")
    low: float = Field(alias="l")
    close: float = Field(alias="c")
    volume: int = Field(0, alias="v", ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, value: Any) -> Any:
        return normalize_date(value)

    @field_validator("volume", mode="before")
    @classmethod
    def _whole_volume(cls, value: Any) -> Any:
        if value is None:
            return 0
        if isinstance(value, float):
            return int(round(value))
        return value


PriceSeries = list[PriceBar]


# --- trigger conditions -----------------------------------------------------


class PriceStreakParams(WireModel):
    direction: Literal["up", "down"]
    count: int = Field(ge=1)
    unit: Literal["day", "week"] = "day"


class DrawdownFromPeakParams(WireModel):
    days: int = Field(ge=0)
    percentage: float


class LookbackParams(WireModel):
    days: int = Field(ge=0)


class PeriodReturnParams(WireModel):
    days: int = Field(ge=0)
    percentage: float
    direction: Literal["up", "down"]


class RsiParams(WireModel):
    period: int = Field(ge=1)
    threshold: float
    operator: Literal["above", "below"]


class MaCrossParams(WireModel):
    period: int = Field(ge=1)
    direction: Literal["above", "below"]


class VixParams(WireModel):
    mode: Literal["threshold", "streak", "breakout"] = "threshold"
    threshold: float | None = None
    operator: Literal["above", "below"] | None = None
    streak_direction: Literal["up", "down"] | None = None
    streak_count: int | None = Field(None, ge=1)
    breakout_type: Literal["high", "low"] | None = None
    breakout_days: int | None = Field(None, ge=1)


class PriceStreakCondition(WireModel):
    type: Literal["priceStreak"] = "priceStreak"
    params: PriceStreakParams


class DrawdownFromPeakCondition(WireModel):
    type: Literal["drawdownFromPeak"] = "drawdownFromPeak"
    params: DrawdownFromPeakParams


class NewHighCondition(WireModel):
    type: Literal["newHigh"] = "newHigh"
    params: LookbackParams


class NewLowCondition(WireModel):
    type: Literal["newLow"] = "newLow"
    params: LookbackParams


class PeriodReturnCondition(WireModel):
    type: Literal["periodReturn"] = "periodReturn"
    params: PeriodReturnParams


class RsiCondition(WireModel):
    type: Literal["rsi"] = "rsi"
    params: RsiParams


class MaCrossCondition(WireModel):
    type: Literal["maCross"] = "maCross"
    params: MaCrossParams


class VixCondition(WireModel):
    type: Literal["vix"] = "vix"
    params: VixParams = Field(default_factory=VixParams)


class UnknownCondition(WireModel):
    """Any condition tag this engine does not know. Never satisfied."""

    type: str
    params: dict[str, Any] = Field(default_factory=dict)


CONDITION_TYPES = frozenset(
    {"priceStreak", "drawdownFromPeak", "newHigh", "newLow", "periodReturn", "rsi", "maCross", "vix"}
)


def _condition_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if tag in CONDITION_TYPES else "unknown"


Condition = Annotated[
    Union[
        Annotated[PriceStreakCondition, Tag("priceStreak")],
        Annotated[DrawdownFromPeakCondition, Tag("drawdownFromPeak")],
        Annotated[NewHighCondition, Tag("newHigh")],
        Annotated[NewLowCondition, Tag("newLow")],
        Annotated[PeriodReturnCondition, Tag("periodReturn")],
        Annotated[RsiCondition, Tag("rsi")],
        Annotated[MaCrossCondition, Tag("maCross")],
        Annotated[VixCondition, Tag("vix")],
        Annotated[UnknownCondition, Tag("unknown")],
    ],
    Discriminator(_condition_tag),
]


# --- actions and strategy ---------------------------------------------------

FIXED_AMOUNT = "fixedAmount"
CASH_PERCENT = "cashPercent"
POSITION_PERCENT = "positionPercent"
TOTAL_VALUE_PERCENT = "totalValuePercent"


class SizingValue(WireModel):
    # fixedAmount | cashPercent | positionPercent | totalValuePercent
    type: str
    amount: float = 0.0


class Action(WireModel):
    type: str  # buy | sell
    value: SizingValue


class Cooldown(WireModel):
    days: int = Field(0, ge=0)


class Trigger(WireModel):
    condition: Condition
    action: Action
    cooldown: Cooldown | None = None


class StrategyConfig(WireModel):
    etf_symbol: str
    start_date: str | None = None
    end_date: str | None = None
    initial_capital: float = Field(gt=0)
    triggers: list[Trigger] = Field(default_factory=list)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _iso_dates(cls, value: Any) -> Any:
        return normalize_date(value)


class MarketContext(WireModel):
    vix_data: dict[str, float] | None = None
    tnx_data: dict[str, float] | None = None
    dca_acceleration: float | None = None
    scoring_model: str | None = None

    @field_validator("vix_data", "tnx_data", mode="before")
    @classmethod
    def _iso_keys(cls, value: Any) -> Any:
        if value is None:
            return None
        return {normalize_date(k): v for k, v in dict(value).items()}


# --- simulation state -------------------------------------------------------


class Trade(WireModel):
    date: str
    action: Literal["buy", "sell"]
    quantity: float
    price: float
    reason: str


@dataclass
class AccountState:
    cash: float
    positions: float = 0.0
    total_value: float = 0.0
    trade_history: list[Trade] = field(default_factory=list)

    def mark(self, price: float) -> float:
        self.total_value = self.cash + (self.positions * price)
        return self.total_value


class AccountSnapshot(WireModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True, frozen=True)

    date: str
    cash: float
    positions: float
    total_value: float


@dataclass
class ExecutionState:
    # trigger index -> date it last fired
    last_trigger_execution: dict[int, str] = field(default_factory=dict)
    account_history: dict[str, AccountSnapshot] = field(default_factory=dict)


# --- results ----------------------------------------------------------------


class TradeStats(WireModel):
    total_trades: int = 0
    buy_count: int = 0
    sell_count: int = 0
    total_invested: float = 0.0
    total_proceeds: float = 0.0


class PerformanceMetrics(WireModel):
    total_return: float = 0.0
    annualized_return: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    trade_stats: TradeStats = Field(default_factory=TradeStats)
    dca_acceleration_rate: float | None = None


class DrawdownEvent(WireModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True, frozen=True)

    rank: int
    depth_percent: float
    peak_date: str
    peak_price: float
    valley_date: str
    valley_price: float
    recovery_date: str | None = None
    is_recovered: bool = False
    days_to_recover: int = 0


class BenchmarkResult(WireModel):
    equity_curve: list[float] = Field(default_factory=list)
    stats: PerformanceMetrics = Field(default_factory=PerformanceMetrics)


class BacktestMetadata(WireModel):
    symbol: str
    period: str


class PerformanceSummary(WireModel):
    strategy: PerformanceMetrics
    benchmark: PerformanceMetrics
    dca: PerformanceMetrics
    scoring: PerformanceMetrics


class DrawdownAnalysis(WireModel):
    top_drawdowns: list[DrawdownEvent] = Field(default_factory=list)


class ChartData(WireModel):
    dates: list[str] = Field(default_factory=list)
    strategy_equity: list[float] = Field(default_factory=list)
    benchmark_equity: list[float] = Field(default_factory=list)
    dca_equity: list[float] = Field(default_factory=list)
    scoring_equity: list[float] = Field(default_factory=list)
    underlying_price: list[float] = Field(default_factory=list)
    vix_data: list[float] | None = None
    tnx_data: list[float] | None = None


class BacktestResult(WireModel):
    metadata: BacktestMetadata
    performance: PerformanceSummary
    analysis: DrawdownAnalysis
    charts: ChartData
    trades: list[Trade] = Field(default_factory=list)
