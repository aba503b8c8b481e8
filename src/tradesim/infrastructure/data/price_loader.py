"""
CSV price history loading.

Reads an OHLCV CSV file (timestamp, open, high, low, close, volume) into
a validated PriceSeries. Timestamps may be epoch milliseconds or any
string pandas can parse.
"""

from pathlib import Path

import pandas as pd
from loguru import logger

from tradesim.core.enums import SeriesOrder
from tradesim.core.exceptions.engine import DataError, ValidationError
from tradesim.core.models.price import PRICE_COLUMNS, PriceSeries


def load_price_csv(
    file_path: str | Path, order: SeriesOrder = SeriesOrder.OLDEST_FIRST
) -> PriceSeries:
    """
    Load a price series from a CSV file.

    Args:
        file_path: Path to the CSV file
        order: Row ordering of the file

    Returns:
        Oldest-first PriceSeries

    Raises:
        FileNotFoundError: If the file does not exist
        DataError: If the file cannot be read or parsed
        ValidationError: If the prices fail validation
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    try:
        logger.debug(f"Loading file: {path}")
        frame = pd.read_csv(path)
    except pd.errors.EmptyDataError:
        logger.warning(f"Empty price file: {path.name}")
        frame = pd.DataFrame(columns=PRICE_COLUMNS)
    except OSError as e:
        logger.error(f"File system error loading {path.name}: {e}")
        raise DataError(f"File system error loading {path.name}") from e
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        logger.error(f"CSV parsing error ({type(e).__name__}) in {path.name}: {e}")
        raise DataError(f"Failed to parse CSV file: {path.name}") from e

    frame.columns = [str(column).strip().lower() for column in frame.columns]

    try:
        series = PriceSeries(frame, order=order)
    except ValidationError:
        logger.error(f"Price data in {path.name} failed validation")
        raise

    logger.info(f"Loaded {len(series)} price points from {path.name}")
    return series
