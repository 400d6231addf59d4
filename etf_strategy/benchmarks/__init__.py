from etf_strategy.benchmarks.adaptive_trend import AdaptiveTrendBenchmark
from etf_strategy.benchmarks.base import BenchmarkStrategy
from etf_strategy.benchmarks.buy_and_hold import BuyAndHoldBenchmark
from etf_strategy.benchmarks.multi_factor import MultiFactorBenchmark
from etf_strategy.benchmarks.registry import (
    BENCHMARKS,
    DEFAULT_SCORING_MODEL,
    SCORING_MODELS,
    get_benchmark,
    resolve_scoring_model,
)
from etf_strategy.benchmarks.smart_trend import SmartTrend32Benchmark, SmartTrendBenchmark
from etf_strategy.benchmarks.weekly_dca import WeeklyDCABenchmark

__all__ = [
    "BenchmarkStrategy",
    "BuyAndHoldBenchmark",
    "WeeklyDCABenchmark",
    "AdaptiveTrendBenchmark",
    "SmartTrendBenchmark",
    "SmartTrend32Benchmark",
    "MultiFactorBenchmark",
    "BENCHMARKS",
    "SCORING_MODELS",
    "DEFAULT_SCORING_MODEL",
    "get_benchmark",
    "resolve_scoring_model",
]
