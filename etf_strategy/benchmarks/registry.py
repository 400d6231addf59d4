from __future__ import annotations

import logging

from etf_strategy.benchmarks.adaptive_trend import AdaptiveTrendBenchmark
from etf_strategy.benchmarks.base import BenchmarkStrategy
from etf_strategy.benchmarks.buy_and_hold import BuyAndHoldBenchmark
from etf_strategy.benchmarks.multi_factor import MultiFactorBenchmark
from etf_strategy.benchmarks.smart_trend import SmartTrend32Benchmark, SmartTrendBenchmark
from etf_strategy.benchmarks.weekly_dca import WeeklyDCABenchmark

logger = logging.getLogger(__name__)

DEFAULT_SCORING_MODEL = "adaptive_trend"

SCORING_MODELS: dict[str, type] = {
    AdaptiveTrendBenchmark.name: AdaptiveTrendBenchmark,
    SmartTrendBenchmark.name: SmartTrendBenchmark,
    SmartTrend32Benchmark.name: SmartTrend32Benchmark,
    MultiFactorBenchmark.name: MultiFactorBenchmark,
}

BENCHMARKS: dict[str, type] = {
    BuyAndHoldBenchmark.name: BuyAndHoldBenchmark,
    WeeklyDCABenchmark.name: WeeklyDCABenchmark,
    **SCORING_MODELS,
}


def get_benchmark(name: str, **kwargs) -> BenchmarkStrategy:
    try:
        cls = BENCHMARKS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown benchmark '{name}'. Available: {', '.join(sorted(BENCHMARKS))}") from exc
    return cls(**kwargs)


def resolve_scoring_model(name: str | None) -> BenchmarkStrategy:
    """Scoring benchmark by name; unknown or empty names fall back to the default."""
    key = (name or DEFAULT_SCORING_MODEL).strip().lower()
    if key not in SCORING_MODELS:
        logger.warning("Unknown scoring model %s; using %s", name, DEFAULT_SCORING_MODEL)
        key = DEFAULT_SCORING_MODEL
    return SCORING_MODELS[key]()
