from __future__ import annotations

import argparse
import json
import logging

from etf_strategy.config.settings import get_settings
from etf_strategy.core.signal_monitor import check_strategy_signals
from etf_strategy.data.loader import load_aux_series_csv, load_price_series_csv, load_strategy_json


def _load_state(path: str) -> dict[int, str]:
    with open(path, "r", encoding="utf-8") as f:
        obj = json.load(f)
    if isinstance(obj, dict) and isinstance(obj.get("state"), dict):
        obj = obj["state"]
    if not isinstance(obj, dict):
        return {}
    return {int(key): str(value) for key, value in obj.items()}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check a strategy's triggers against the latest daily bar.")
    parser.add_argument("--prices", required=True, help="OHLCV CSV for the traded ETF")
    parser.add_argument("--strategy", required=True, help="Strategy config JSON")
    parser.add_argument("--vix", default="", help="CSV with VIX closes")
    parser.add_argument("--state", default="", help="JSON map of trigger index to the date it last fired")
    parser.add_argument("--out-state", default="", help="Optional path for the updated state JSON")
    parser.add_argument("--as-of", default=None, help="Today's date, for the stale-data guard")
    parser.add_argument("--max-staleness-days", type=int, default=None)
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    series = load_price_series_csv(args.prices)
    strategy = load_strategy_json(args.strategy)
    vix_history = None
    if args.vix:
        vix_history = [value for _, value in sorted(load_aux_series_csv(args.vix).items())]
    result = check_strategy_signals(
        strategy,
        series,
        vix_history=vix_history,
        last_fired=_load_state(args.state) if args.state else None,
        as_of=args.as_of,
        max_staleness_days=args.max_staleness_days,
    )
    print(json.dumps(result.model_dump(by_alias=True), indent=2))
    if args.out_state:
        with open(args.out_state, "w", encoding="utf-8") as f:
            json.dump({str(key): value for key, value in result.state.items()}, f, indent=2)


if __name__ == "__main__":
    main()
