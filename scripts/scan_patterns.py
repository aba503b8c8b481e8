#!/usr/bin/env python3
"""
Offline Pattern Scanner

Scans an OHLCV CSV file for technical patterns and prints the current
signal for its newest sample.
"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from tradesim.core.enums import SeriesOrder
from tradesim.core.exceptions.engine import TradeSimException
from tradesim.core.logging import setup_logging
from tradesim.infrastructure.data.price_loader import load_price_csv
from tradesim.infrastructure.storage.memory_store import (
    InMemoryPatternStore,
    InMemoryPriceHistoryStore,
)
from tradesim.services.pattern_service import PatternService
from tradesim.services.signal_service import SignalService


def main():
    parser = argparse.ArgumentParser(
        description="Scan historical prices for technical patterns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scan_patterns.py --prices data/brent_1d.csv
  python scan_patterns.py --prices data/prices.csv --newest-first --output patterns.json
        """,
    )

    parser.add_argument("--prices", type=Path, required=True, help="OHLCV CSV file")
    parser.add_argument(
        "--newest-first", action="store_true", help="CSV rows are ordered newest first"
    )
    parser.add_argument("--output", type=Path, help="Write matches as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    setup_logging(args.debug)

    try:
        order = SeriesOrder.NEWEST_FIRST if args.newest_first else SeriesOrder.OLDEST_FIRST
        price_store = InMemoryPriceHistoryStore(load_price_csv(args.prices, order=order))

        result = PatternService(price_store, InMemoryPatternStore()).scan()
        for match in result.matches:
            print(
                f"{match.end_time.isoformat()}  {match.pattern_name:<22} "
                f"{match.direction:<8} confidence={match.confidence:.2f} "
                f"entry={match.entry_price:.2f}"
            )
        logger.success(
            f"Found {len(result.matches)} patterns in {result.data_points_analyzed} points"
        )

        signal = SignalService(price_store).current_signal()
        if signal is None:
            print("\nNo signal for the newest price")
        else:
            print(
                f"\nSignal: {signal.strength} {signal.signal_type} at {signal.current_price:.2f} "
                f"({signal.reasoning})"
            )

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                json.dump(result.to_dict(), f, indent=2, default=str)
            logger.success(f"Matches written to {args.output}")

        return 0

    except (TradeSimException, FileNotFoundError) as e:
        logger.error(f"Pattern scan failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
