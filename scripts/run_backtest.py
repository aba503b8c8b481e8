#!/usr/bin/env python3
"""
Offline Backtest Runner

Backtests a JSON trading rule against an OHLCV CSV file and prints the
summary. The full result can be written to a JSON file.
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from loguru import logger
from tqdm import tqdm

from tradesim.core.enums import SeriesOrder
from tradesim.core.exceptions.engine import TradeSimException
from tradesim.core.logging import setup_logging
from tradesim.core.models.backtest import BacktestConfig
from tradesim.core.models.rule import RuleDefinition
from tradesim.infrastructure.data.price_loader import load_price_csv
from tradesim.infrastructure.storage.memory_store import (
    InMemoryBacktestResultStore,
    InMemoryPriceHistoryStore,
)
from tradesim.services.backtest_service import BacktestService


def load_rule(rule_path: Path) -> RuleDefinition:
    """Read a rule definition from a JSON file."""
    with open(rule_path, encoding="utf-8") as f:
        return RuleDefinition.from_dict(json.load(f))


def print_summary(result_dict: dict) -> None:
    summary = result_dict["summary"]
    print(f"\nRule: {result_dict['rule_name']}")
    print(f"Period: {result_dict['period_start']} -> {result_dict['period_end']}")
    print(f"Data points: {result_dict['data_points_analyzed']}")
    print(f"Trades: {summary['total_trades']} ({summary['winning_trades']} won)")
    print(f"Win rate: {summary['win_rate']:.2f}%")
    print(
        f"Net P/L: {summary['net_profit_loss']:.2f} "
        f"({summary['net_profit_loss_percent']:.2f}%)"
    )
    print(f"Max drawdown: {summary['max_drawdown_percent']:.2f}%")
    print(f"Profit factor: {summary['profit_factor']}")


def main():
    parser = argparse.ArgumentParser(
        description="Backtest a trading rule against historical prices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Backtest a rule over a CSV file
  python run_backtest.py --prices data/brent_1h.csv --rule rules/rsi_dip.json

  # Newest-first file, custom capital, save the full result
  python run_backtest.py --prices data/prices.csv --rule rules/macd.json \\
      --newest-first --initial-capital 50000 --output result.json
        """,
    )

    parser.add_argument("--prices", type=Path, required=True, help="OHLCV CSV file")
    parser.add_argument("--rule", type=Path, required=True, help="Rule definition JSON file")
    parser.add_argument(
        "--newest-first", action="store_true", help="CSV rows are ordered newest first"
    )
    parser.add_argument(
        "--initial-capital",
        type=float,
        default=BacktestConfig().initial_capital,
        help="Starting capital (default: 100000)",
    )
    parser.add_argument("--start", type=datetime.fromisoformat, help="Window start (ISO 8601)")
    parser.add_argument("--end", type=datetime.fromisoformat, help="Window end (ISO 8601)")
    parser.add_argument("--output", type=Path, help="Write the full result as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    setup_logging(args.debug)

    try:
        order = SeriesOrder.NEWEST_FIRST if args.newest_first else SeriesOrder.OLDEST_FIRST
        series = load_price_csv(args.prices, order=order)
        rule = load_rule(args.rule)

        service = BacktestService(
            InMemoryPriceHistoryStore(series),
            InMemoryBacktestResultStore(),
            BacktestConfig(initial_capital=args.initial_capital),
        )

        with tqdm(total=100, desc=f"Backtesting {rule.name}", unit="%") as progress:

            def on_progress(percent: int) -> None:
                progress.update(percent - progress.n)

            result = service.run(rule, args.start, args.end, progress_callback=on_progress)

        result_dict = result.to_dict()
        print_summary(result_dict)

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                json.dump(result_dict, f, indent=2, default=str)
            logger.success(f"Result written to {args.output}")

        return 0

    except (TradeSimException, FileNotFoundError, json.JSONDecodeError) as e:
        logger.error(f"Backtest failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
