"""
Condition evaluation against a price series.

Every check reads the series' streaming indicator snapshot, so the
answer at index i only depends on samples 0..i.
"""

from loguru import logger

from tradesim.core.constants import MACD_MIN_SAMPLES, PRICE_CHANGE_MAX_LOOKBACK
from tradesim.core.enums import ComparisonOperator, MacdSignal, PriceDirection
from tradesim.core.models.conditions import (
    Condition,
    DayOfWeekCondition,
    MacdCondition,
    PriceChangeCondition,
    RsiCondition,
    TimeRangeCondition,
    UnsupportedCondition,
)
from tradesim.core.models.price import PriceSeries
from tradesim.core.types import percent_change


def sunday_based_weekday(timestamp) -> int:
    """Day of week with 0=Sunday ... 6=Saturday."""
    return (timestamp.weekday() + 1) % 7


class ConditionEvaluator:
    """Evaluates a single condition at one index of a price series."""

    def evaluate(self, condition: Condition, series: PriceSeries, index: int) -> bool:
        """
        Evaluate condition at index.

        Out-of-range indices and unsupported conditions evaluate to False.
        """
        if index < 0 or index >= len(series):
            return False

        match condition:
            case PriceChangeCondition():
                return self._evaluate_price_change(condition, series, index)
            case RsiCondition():
                return self._evaluate_rsi(condition, series, index)
            case MacdCondition():
                return self._evaluate_macd(condition, series, index)
            case TimeRangeCondition():
                hour = series.timestamp_at(index).hour
                return condition.start_hour <= hour <= condition.end_hour
            case DayOfWeekCondition():
                return sunday_based_weekday(series.timestamp_at(index)) in condition.days
            case UnsupportedCondition():
                logger.debug(
                    f"Skipping unsupported '{condition.kind}' condition "
                    f"({condition.reason or 'unrecognised'})"
                )
                return False

        logger.warning(f"Unknown condition type {type(condition).__name__}, treating as false")
        return False

    def _evaluate_price_change(
        self, condition: PriceChangeCondition, series: PriceSeries, index: int
    ) -> bool:
        lookback = min(PRICE_CHANGE_MAX_LOOKBACK, index)
        if lookback == 0:
            return False

        closes = series.closes
        change = percent_change(closes[index - lookback], closes[index])

        if condition.direction == PriceDirection.UP:
            return change >= condition.min_percent
        if condition.direction == PriceDirection.DOWN:
            return change <= -condition.min_percent
        return abs(change) >= condition.min_percent

    def _evaluate_rsi(self, condition: RsiCondition, series: PriceSeries, index: int) -> bool:
        rsi = series.indicator("rsi14")
        current = rsi[index]
        threshold = condition.value

        if condition.operator == ComparisonOperator.LESS_THAN:
            return current < threshold
        if condition.operator == ComparisonOperator.GREATER_THAN:
            return current > threshold

        if index == 0:
            return False
        previous = rsi[index - 1]
        if condition.operator == ComparisonOperator.CROSSES_ABOVE:
            return previous < threshold <= current
        return previous > threshold >= current

    def _evaluate_macd(self, condition: MacdCondition, series: PriceSeries, index: int) -> bool:
        histogram = series.indicator("macd_histogram")

        if condition.signal == MacdSignal.HISTOGRAM_POSITIVE:
            return histogram[index] > 0
        if condition.signal == MacdSignal.HISTOGRAM_NEGATIVE:
            return histogram[index] < 0

        # Both samples must come from a fully warmed MACD
        if index - 1 < MACD_MIN_SAMPLES:
            return False

        macd = series.indicator("macd")
        signal = series.indicator("macd_signal")
        previous = macd[index - 1] - signal[index - 1]
        current = macd[index] - signal[index]

        if condition.signal == MacdSignal.BULLISH_CROSS:
            return previous < 0 <= current
        return previous > 0 >= current
