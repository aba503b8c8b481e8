"""
Technical Indicators Calculator.

This module provides calculation of technical indicators over closing
prices. Every function expects oldest-first data; use to_oldest_first
to normalize newest-first input at the boundary.

The pure functions never raise on short input: values before an
indicator's warm-up are neutral (RSI 50) or zero.

Implements the Strategy Pattern for assembling the per-sample
indicator snapshot frame.
"""

from collections.abc import Sequence
from typing import Protocol

import numpy as np
import pandas as pd
from loguru import logger

from tradesim.core.constants import (
    BOLLINGER_PERIOD,
    BOLLINGER_STD_MULTIPLIER,
    MACD_FAST_PERIOD,
    MACD_MIN_SAMPLES,
    MACD_SIGNAL_PERIOD,
    MACD_SLOW_PERIOD,
    NEUTRAL_RSI,
    RSI_PERIOD,
    SMA_PERIODS,
)
from tradesim.core.enums import CalculatorMode, RsiSmoothing, SeriesOrder
from tradesim.core.exceptions.engine import DataError

SNAPSHOT_COLUMNS = [
    "rsi14",
    "sma5",
    "sma10",
    "sma20",
    "sma50",
    "ema12",
    "ema26",
    "macd",
    "macd_signal",
    "macd_histogram",
    "bollinger_upper",
    "bollinger_middle",
    "bollinger_lower",
    "bollinger_width",
]


def to_oldest_first(values: Sequence[float], order: SeriesOrder) -> np.ndarray:
    """
    Convert a price sequence to oldest-first ordering.

    Args:
        values: Price sequence
        order: Ordering of values

    Returns:
        New float array, oldest sample first
    """
    array = np.asarray(values, dtype=float)
    if order == SeriesOrder.NEWEST_FIRST:
        return array[::-1].copy()
    return array.copy()


def _simple_rsi(changes: np.ndarray) -> float:
    """RSI from one window of price changes using plain averages."""
    period = len(changes)
    gains = 0.0
    losses = 0.0
    for change in changes:
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def calculate_rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> float:
    """
    Calculate RSI for the newest sample.

    Uses the plain average of the last period gains and losses.

    Args:
        closes: Oldest-first closing prices
        period: RSI period

    Returns:
        RSI in [0, 100]; 100 when there are no losses in the window,
        50 when fewer than period + 1 samples exist
    """
    prices = np.asarray(closes, dtype=float)
    if len(prices) < period + 1:
        return NEUTRAL_RSI
    return _simple_rsi(np.diff(prices[-(period + 1) :]))


def rsi_series(
    closes: Sequence[float],
    period: int = RSI_PERIOD,
    smoothing: RsiSmoothing = RsiSmoothing.SIMPLE,
) -> np.ndarray:
    """
    Calculate RSI for every sample.

    With SIMPLE smoothing the value at index i equals
    calculate_rsi(closes[: i + 1]). WILDER smoothing seeds with the plain
    average of the first period changes and then smooths recursively.
    Samples before the warm-up are 50.
    """
    prices = np.asarray(closes, dtype=float)
    result = np.full(len(prices), NEUTRAL_RSI)
    if len(prices) < period + 1:
        return result

    changes = np.diff(prices)

    if smoothing == RsiSmoothing.SIMPLE:
        for i in range(period, len(prices)):
            result[i] = _simple_rsi(changes[i - period : i])
        return result

    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)
    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period

    for i in range(period, len(prices)):
        if i > period:
            avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        if avg_loss == 0:
            result[i] = 100.0
        else:
            rs = avg_gain / avg_loss
            result[i] = 100.0 - (100.0 / (1.0 + rs))

    return result


def sma_series(values: Sequence[float], period: int) -> np.ndarray:
    """Trailing simple moving average, 0 before index period - 1."""
    array = np.asarray(values, dtype=float)
    result = np.zeros(len(array))
    for i in range(period - 1, len(array)):
        result[i] = array[i - period + 1 : i + 1].mean()
    return result


def ema_series(
    values: Sequence[float],
    period: int,
    mode: CalculatorMode = CalculatorMode.STREAMING,
) -> np.ndarray:
    """
    Exponential moving average with multiplier 2 / (period + 1).

    STREAMING seeds from the first value. BATCH seeds with the SMA of the
    first period values at index period - 1 and is 0 before it.
    """
    array = np.asarray(values, dtype=float)
    result = np.zeros(len(array))
    if len(array) == 0:
        return result

    multiplier = 2.0 / (period + 1)

    if mode == CalculatorMode.STREAMING:
        result[0] = array[0]
        start = 1
    else:
        if len(array) < period:
            return result
        result[period - 1] = array[:period].mean()
        start = period

    for i in range(start, len(array)):
        result[i] = (array[i] - result[i - 1]) * multiplier + result[i - 1]

    return result


def macd_series(
    closes: Sequence[float],
    mode: CalculatorMode = CalculatorMode.STREAMING,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Calculate MACD, signal line and histogram for every sample.

    MACD is EMA12 - EMA26 and is 0 until 26 samples exist. The signal is
    an EMA9 of the MACD values starting at the first warmed sample, so
    every value depends only on the samples before it. In BATCH mode the
    signal and histogram stay 0 until the signal EMA has warmed up.

    Returns:
        Tuple of (macd, signal, histogram) arrays
    """
    prices = np.asarray(closes, dtype=float)
    n = len(prices)
    macd = np.zeros(n)
    signal = np.zeros(n)
    histogram = np.zeros(n)
    if n < MACD_MIN_SAMPLES:
        return macd, signal, histogram

    first_valid = MACD_MIN_SAMPLES - 1
    ema_fast = ema_series(prices, MACD_FAST_PERIOD, mode)
    ema_slow = ema_series(prices, MACD_SLOW_PERIOD, mode)
    macd[first_valid:] = ema_fast[first_valid:] - ema_slow[first_valid:]

    signal[first_valid:] = ema_series(macd[first_valid:], MACD_SIGNAL_PERIOD, mode)

    if mode == CalculatorMode.STREAMING:
        histogram[first_valid:] = macd[first_valid:] - signal[first_valid:]
    else:
        signal_ready = first_valid + MACD_SIGNAL_PERIOD - 1
        histogram[signal_ready:] = macd[signal_ready:] - signal[signal_ready:]

    return macd, signal, histogram


def bollinger_bands(
    closes: Sequence[float],
    period: int = BOLLINGER_PERIOD,
    std_multiplier: float = BOLLINGER_STD_MULTIPLIER,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Calculate Bollinger Bands for every sample.

    Uses the population standard deviation of the trailing window.
    Width is (upper - lower) / middle * 100. All values are 0 before
    index period - 1.

    Returns:
        Tuple of (upper, middle, lower, width) arrays
    """
    prices = np.asarray(closes, dtype=float)
    n = len(prices)
    upper = np.zeros(n)
    middle = sma_series(prices, period)
    lower = np.zeros(n)
    width = np.zeros(n)

    for i in range(period - 1, n):
        std = prices[i - period + 1 : i + 1].std()
        upper[i] = middle[i] + std_multiplier * std
        lower[i] = middle[i] - std_multiplier * std
        width[i] = (upper[i] - lower[i]) / middle[i] * 100.0

    return upper, middle, lower, width


class IndicatorStrategy(Protocol):
    """Protocol for technical indicator calculation strategies."""

    def calculate(self, closes: np.ndarray, result: pd.DataFrame) -> pd.DataFrame:
        """Add this strategy's columns to result."""
        ...


class MovingAverageStrategy:
    """Strategy for calculating moving averages (SMA and EMA)."""

    def __init__(self, mode: CalculatorMode = CalculatorMode.STREAMING):
        self.mode = mode

    def calculate(self, closes: np.ndarray, result: pd.DataFrame) -> pd.DataFrame:
        """Add simple and exponential moving averages."""
        for period in SMA_PERIODS:
            result[f"sma{period}"] = sma_series(closes, period)

        result["ema12"] = ema_series(closes, MACD_FAST_PERIOD, self.mode)
        result["ema26"] = ema_series(closes, MACD_SLOW_PERIOD, self.mode)

        return result


class MACDStrategy:
    """Strategy for calculating MACD (Moving Average Convergence Divergence) indicators."""

    def __init__(self, mode: CalculatorMode = CalculatorMode.STREAMING):
        self.mode = mode

    def calculate(self, closes: np.ndarray, result: pd.DataFrame) -> pd.DataFrame:
        """Add MACD line, signal and histogram."""
        macd, signal, histogram = macd_series(closes, self.mode)
        result["macd"] = macd
        result["macd_signal"] = signal
        result["macd_histogram"] = histogram
        return result


class RSIStrategy:
    """Strategy for calculating RSI (Relative Strength Index) indicator."""

    def __init__(self, period: int = RSI_PERIOD, smoothing: RsiSmoothing = RsiSmoothing.SIMPLE):
        """Initialize RSI strategy with configurable period."""
        self.period = period
        self.smoothing = smoothing

    def calculate(self, closes: np.ndarray, result: pd.DataFrame) -> pd.DataFrame:
        """Add RSI indicator."""
        result["rsi14"] = rsi_series(closes, self.period, self.smoothing)
        return result


class BollingerBandsStrategy:
    """Strategy for calculating Bollinger Bands indicators."""

    def __init__(
        self, period: int = BOLLINGER_PERIOD, std_multiplier: float = BOLLINGER_STD_MULTIPLIER
    ):
        """Initialize Bollinger Bands strategy with configurable parameters."""
        self.period = period
        self.std_multiplier = std_multiplier

    def calculate(self, closes: np.ndarray, result: pd.DataFrame) -> pd.DataFrame:
        """Add Bollinger Bands indicators."""
        upper, middle, lower, width = bollinger_bands(closes, self.period, self.std_multiplier)
        result["bollinger_upper"] = upper
        result["bollinger_middle"] = middle
        result["bollinger_lower"] = lower
        result["bollinger_width"] = width
        return result


class TechnicalIndicatorsCalculator:
    """
    Technical indicators calculator using Strategy Pattern.

    This class orchestrates the indicator strategies and produces one
    snapshot row per price sample.
    """

    def __init__(self, mode: CalculatorMode = CalculatorMode.STREAMING) -> None:
        """Initialize calculator with the default strategies for mode."""
        smoothing = RsiSmoothing.SIMPLE if mode == CalculatorMode.STREAMING else RsiSmoothing.WILDER
        self.mode = mode
        self._strategies: dict[str, IndicatorStrategy] = {
            "moving_averages": MovingAverageStrategy(mode),
            "macd": MACDStrategy(mode),
            "rsi": RSIStrategy(smoothing=smoothing),
            "bollinger_bands": BollingerBandsStrategy(),
        }
        self._failure_counts: dict[str, int] = {}

    def add_strategy(self, name: str, strategy: IndicatorStrategy) -> None:
        """Add a new indicator calculation strategy."""
        self._strategies[name] = strategy

    def remove_strategy(self, name: str) -> None:
        """Remove an indicator calculation strategy."""
        self._strategies.pop(name, None)

    def calculate_snapshot(self, data: pd.DataFrame) -> pd.DataFrame:
        """
        Calculate the indicator snapshot for an oldest-first price frame.

        Args:
            data: Frame with at least a close column

        Returns:
            DataFrame with one row per input row and the snapshot columns.
            Columns of a failed strategy are filled with neutral values.

        Raises:
            DataError: If a strategy fails unexpectedly
        """
        closes = data["close"].to_numpy(dtype=float)
        result = pd.DataFrame(index=range(len(closes)))

        for name, strategy in self._strategies.items():
            logger.debug(f"Calculating {name} indicators")
            try:
                result = strategy.calculate(closes, result)
            except (ValueError, TypeError, KeyError) as strategy_error:
                self._failure_counts[name] = self._failure_counts.get(name, 0) + 1
                logger.warning(
                    f"Failed {name} (failure #{self._failure_counts[name]}): {strategy_error}"
                )
                continue
            except Exception as unexpected_error:
                logger.error(f"Unexpected error calculating {name} indicator: {unexpected_error}")
                raise DataError(
                    f"Technical indicator calculation failed for {name}"
                ) from unexpected_error

        for column in SNAPSHOT_COLUMNS:
            if column not in result.columns:
                result[column] = NEUTRAL_RSI if column == "rsi14" else 0.0

        logger.debug(f"Calculated {self.mode} indicator snapshot for {len(result)} rows")
        return result[SNAPSHOT_COLUMNS + [c for c in result.columns if c not in SNAPSHOT_COLUMNS]]

    def get_available_indicators(self) -> list[str]:
        """Get list of available indicator strategies."""
        return list(self._strategies.keys())

    def get_failure_statistics(self) -> dict[str, int]:
        """Get failure counts for each indicator strategy."""
        return self._failure_counts.copy()

    def reset_failure_statistics(self) -> None:
        """Reset failure counts for monitoring purposes."""
        self._failure_counts.clear()


def create_technical_indicators_calculator(
    mode: CalculatorMode = CalculatorMode.STREAMING,
) -> TechnicalIndicatorsCalculator:
    """Factory function to create a technical indicators calculator with default strategies."""
    return TechnicalIndicatorsCalculator(mode)
