"""
Price series domain models.

A PriceSeries is the single input of every calculator, evaluator and
scanner. It is always stored oldest-first; callers holding newest-first
data normalize at construction time.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import numpy as np
import pandas as pd

from tradesim.core.enums import CalculatorMode, SeriesOrder
from tradesim.core.exceptions.engine import ValidationError

PRICE_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class PricePoint:
    """One OHLCV sample."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        """Validate price data after initialization."""
        for name in ("open", "high", "low", "close"):
            value = getattr(self, name)
            if value <= 0:
                raise ValidationError(f"{name} must be positive, got {value}")
        if self.volume < 0:
            raise ValidationError(f"volume must be non-negative, got {self.volume}")

    def to_dict(self) -> dict[str, Any]:
        """Convert price point to dictionary."""
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


def _normalize_timestamps(column: pd.Series) -> pd.Series:
    """Convert a timestamp column to pandas datetimes.

    Integer timestamps are read as epoch milliseconds (UTC). Datetime
    values keep their own timezone so hour-of-day checks see local time.
    """
    if pd.api.types.is_numeric_dtype(column):
        return pd.to_datetime(column, unit="ms", utc=True)
    return pd.to_datetime(column)


class PriceSeries:
    """
    Immutable, oldest-first OHLCV series.

    Indicator snapshots are computed lazily on first access and cached
    for the lifetime of the series.
    """

    def __init__(self, frame: pd.DataFrame, order: SeriesOrder = SeriesOrder.OLDEST_FIRST):
        """
        Build a series from a DataFrame.

        Args:
            frame: DataFrame with timestamp, open, high, low, close, volume
            order: Row ordering of frame

        Raises:
            ValidationError: If the frame is malformed or not strictly ordered
        """
        from tradesim.infrastructure.data.price_validator import PriceSeriesValidator

        missing_columns = set(PRICE_COLUMNS) - set(frame.columns)
        if missing_columns:
            raise ValidationError(f"Missing required columns: {sorted(missing_columns)}")

        data = frame[PRICE_COLUMNS].copy()
        if order == SeriesOrder.NEWEST_FIRST:
            data = data.iloc[::-1]
        data = data.reset_index(drop=True)
        if not data.empty:
            data["timestamp"] = _normalize_timestamps(data["timestamp"])

        PriceSeriesValidator().validate(data)

        self._frame = data
        closes = data["close"].to_numpy(dtype=float, copy=True)
        closes.setflags(write=False)
        self._closes = closes
        self._snapshots: dict[CalculatorMode, pd.DataFrame] = {}
        self._indicator_arrays: dict[tuple[str, CalculatorMode], np.ndarray] = {}

    @classmethod
    def from_frame(
        cls, frame: pd.DataFrame, order: SeriesOrder = SeriesOrder.OLDEST_FIRST
    ) -> "PriceSeries":
        """Factory method to create a series from a DataFrame."""
        return cls(frame, order=order)

    @classmethod
    def from_points(
        cls, points: Iterable[PricePoint], order: SeriesOrder = SeriesOrder.OLDEST_FIRST
    ) -> "PriceSeries":
        """Factory method to create a series from PricePoint objects."""
        rows = [point.to_dict() for point in points]
        frame = pd.DataFrame(rows, columns=PRICE_COLUMNS)
        return cls(frame, order=order)

    @classmethod
    def from_closes(
        cls,
        closes: Sequence[float],
        start: datetime | None = None,
        interval: timedelta = timedelta(hours=1),
        order: SeriesOrder = SeriesOrder.OLDEST_FIRST,
    ) -> "PriceSeries":
        """
        Factory method to create a series from closing prices only.

        Open, high and low are set to the close and volume to zero.
        Timestamps start at start (default 2025-01-01 UTC) and advance
        by interval.
        """
        values = list(closes)
        if order == SeriesOrder.NEWEST_FIRST:
            values = values[::-1]
        first = pd.Timestamp(start) if start is not None else pd.Timestamp("2025-01-01", tz="UTC")
        timestamps = [first + interval * i for i in range(len(values))]
        frame = pd.DataFrame(
            {
                "timestamp": timestamps,
                "open": values,
                "high": values,
                "low": values,
                "close": values,
                "volume": [0.0] * len(values),
            },
            columns=PRICE_COLUMNS,
        )
        return cls(frame)

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        if self._frame.empty:
            return "PriceSeries(empty)"
        return (
            f"PriceSeries({len(self)} points, "
            f"{self.timestamp_at(0).isoformat()} -> {self.timestamp_at(-1).isoformat()})"
        )

    @property
    def empty(self) -> bool:
        """Check if the series has no samples."""
        return self._frame.empty

    @property
    def closes(self) -> np.ndarray:
        """Read-only array of closing prices, oldest first."""
        return self._closes

    @property
    def frame(self) -> pd.DataFrame:
        """Copy of the underlying OHLCV frame."""
        return self._frame.copy()

    @property
    def timestamps(self) -> pd.Series:
        """Timestamp column, oldest first."""
        return self._frame["timestamp"].copy()

    def timestamp_at(self, index: int) -> pd.Timestamp:
        """Timestamp of the sample at index."""
        return self._frame["timestamp"].iloc[index]

    def close_at(self, index: int) -> float:
        """Closing price of the sample at index."""
        return float(self._closes[index])

    def window(self, start: datetime | None = None, end: datetime | None = None) -> "PriceSeries":
        """
        Return the sub-series with start <= timestamp <= end.

        Either bound may be omitted. Naive bounds are read in the
        series' timezone.
        """
        if self._frame.empty:
            return self
        mask = pd.Series(True, index=self._frame.index)
        if start is not None:
            mask &= self._frame["timestamp"] >= self._bound(start)
        if end is not None:
            mask &= self._frame["timestamp"] <= self._bound(end)
        return PriceSeries(self._frame[mask])

    def _bound(self, value: datetime) -> pd.Timestamp:
        bound = pd.Timestamp(value)
        tz = self._frame["timestamp"].dt.tz
        if tz is not None and bound.tzinfo is None:
            return bound.tz_localize(tz)
        if tz is None and bound.tzinfo is not None:
            return bound.tz_convert(None)
        return bound

    def to_points(self) -> list[PricePoint]:
        """Convert the series back into PricePoint objects."""
        return [
            PricePoint(
                timestamp=row.timestamp.to_pydatetime(),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume),
            )
            for row in self._frame.itertuples(index=False)
        ]

    @property
    def indicators(self) -> pd.DataFrame:
        """Copy of the streaming-mode indicator snapshot, one row per sample."""
        return self.indicator_snapshot(CalculatorMode.STREAMING)

    def indicator_snapshot(self, mode: CalculatorMode = CalculatorMode.STREAMING) -> pd.DataFrame:
        """Copy of the indicator snapshot computed in mode."""
        return self._snapshot(mode).copy()

    def indicator(self, name: str, mode: CalculatorMode = CalculatorMode.STREAMING) -> np.ndarray:
        """Read-only array of one snapshot column, e.g. "rsi14"."""
        key = (name, mode)
        values = self._indicator_arrays.get(key)
        if values is None:
            values = self._snapshot(mode)[name].to_numpy(dtype=float, copy=True)
            values.setflags(write=False)
            self._indicator_arrays[key] = values
        return values

    def _snapshot(self, mode: CalculatorMode) -> pd.DataFrame:
        snapshot = self._snapshots.get(mode)
        if snapshot is None:
            from tradesim.infrastructure.data.technical_indicators import (
                create_technical_indicators_calculator,
            )

            calculator = create_technical_indicators_calculator(mode)
            snapshot = calculator.calculate_snapshot(self._frame)
            self._snapshots[mode] = snapshot
        return snapshot
