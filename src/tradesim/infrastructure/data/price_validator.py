"""
Price series validation module.

Checks the frames wrapped by PriceSeries before any indicator sees them:
every sample must be a well-formed candle and timestamps must be strictly
ascending, since the whole engine works on oldest-first data.
"""

import pandas as pd
from loguru import logger

from tradesim.core.exceptions.engine import ValidationError

REQUIRED_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]
PRICE_COLUMNS = ["open", "high", "low", "close"]

# Range above which a single sample is reported as an anomaly
EXTREME_RANGE_RATIO = 0.5


class PriceSeriesValidator:
    """
    Price frame validator.

    Raises ValidationError on the first structural problem found and only
    logs warnings for suspicious but usable samples.
    """

    def validate(self, data: pd.DataFrame) -> bool:
        """
        Validate an oldest-first price frame.

        Args:
            data: DataFrame with timestamp, open, high, low, close, volume

        Returns:
            True if data is valid

        Raises:
            ValidationError: If data has integrity issues
        """
        self._check_columns(data)
        if data.empty:
            return True

        for column in REQUIRED_COLUMNS:
            self._check_column_values(data, column)
        self._check_candles(data)
        self._check_ordering(data["timestamp"])
        self._warn_on_wide_ranges(data)

        return True

    def _check_columns(self, data: pd.DataFrame) -> None:
        missing_columns = set(REQUIRED_COLUMNS) - set(data.columns)
        if missing_columns:
            raise ValidationError(f"Missing required columns: {sorted(missing_columns)}")

    def _check_column_values(self, data: pd.DataFrame, column: str) -> None:
        values = data[column]
        if values.isna().any():
            raise ValidationError(f"Column {column} contains NaN values")
        if column == "timestamp":
            return

        if not pd.api.types.is_numeric_dtype(values):
            raise ValidationError(f"Column {column} must be numeric")
        if column in PRICE_COLUMNS and (values <= 0).any():
            raise ValidationError(f"Column {column} contains non-positive values")
        if column == "volume" and (values < 0).any():
            raise ValidationError("Volume column contains negative values")

    def _check_candles(self, data: pd.DataFrame) -> None:
        """High must bound every price from above and low from below."""
        body_top = data[["open", "close"]].max(axis=1)
        body_bottom = data[["open", "close"]].min(axis=1)
        broken = (data["high"] < body_top) | (data["low"] > body_bottom)
        broken |= data["high"] < data["low"]

        if broken.any():
            raise ValidationError(f"Invalid OHLC relationships found in {int(broken.sum())} rows")

    def _check_ordering(self, timestamps: pd.Series) -> None:
        if timestamps.duplicated().any():
            raise ValidationError("Duplicate timestamps found in data")
        if not timestamps.is_monotonic_increasing:
            raise ValidationError(
                "Timestamps must be in ascending order (oldest first); "
                "pass order=newest_first to reverse newest-first data"
            )

    def _warn_on_wide_ranges(self, data: pd.DataFrame) -> None:
        sample_range = (data["high"] - data["low"]) / data["low"]
        wide = int((sample_range > EXTREME_RANGE_RATIO).sum())
        if wide:
            logger.warning(f"Found {wide} samples with a high/low range above 50%")
