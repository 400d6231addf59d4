from __future__ import annotations

import argparse
import json
import logging

from etf_strategy.benchmarks.registry import SCORING_MODELS
from etf_strategy.config.settings import get_settings
from etf_strategy.core.backtest_engine import BacktestEngine
from etf_strategy.core.models import MarketContext
from etf_strategy.core.tag_generator import generate_tags
from etf_strategy.data.loader import load_aux_series_csv, load_price_series_csv, load_strategy_json


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Backtest a trigger-based ETF strategy on daily OHLCV data.")
    parser.add_argument("--prices", required=True, help="OHLCV CSV for the traded ETF")
    parser.add_argument("--strategy", required=True, help="Strategy config JSON")
    parser.add_argument("--vix", default="", help="CSV with VIX closes")
    parser.add_argument("--tnx", default="", help="CSV with 10Y yield closes")
    parser.add_argument("--dca-acceleration", type=float, default=None)
    parser.add_argument("--scoring-model", choices=sorted(SCORING_MODELS), default=None)
    parser.add_argument("--summary", action="store_true", help="Print performance metrics only")
    parser.add_argument("--tags", action="store_true", help="Add descriptive strategy tags to the output")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    series = load_price_series_csv(args.prices)
    strategy = load_strategy_json(args.strategy)
    context = MarketContext(
        vix_data=load_aux_series_csv(args.vix) if args.vix else None,
        tnx_data=load_aux_series_csv(args.tnx) if args.tnx else None,
        dca_acceleration=args.dca_acceleration,
        scoring_model=args.scoring_model,
    )
    result = BacktestEngine(settings).run_backtest(strategy, series, context)
    payload = (result.performance if args.summary else result).model_dump(by_alias=True)
    if args.tags:
        payload["tags"] = generate_tags(strategy, result)
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
