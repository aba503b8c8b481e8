"""
Condition kind and operator enumerations.

This module defines the vocabulary of user-authored rule conditions.
"""

from enum import StrEnum


class ConditionKind(StrEnum):
    """Allowed condition kinds."""

    PRICE_CHANGE = "price_change"
    RSI = "rsi"
    MACD = "macd"
    TIME_RANGE = "time_range"
    DAY_OF_WEEK = "day_of_week"


class PriceDirection(StrEnum):
    """Direction required by a price_change condition."""

    UP = "up"
    DOWN = "down"
    ANY = "any"


class ComparisonOperator(StrEnum):
    """
    Operators usable against an RSI threshold.

    Crossing operators compare the current sample with the previous one.
    """

    LESS_THAN = "<"
    GREATER_THAN = ">"
    CROSSES_ABOVE = "crosses_above"
    CROSSES_BELOW = "crosses_below"

    @property
    def is_crossing(self) -> bool:
        """Check if the operator needs the previous sample."""
        return self in [self.CROSSES_ABOVE, self.CROSSES_BELOW]

    @classmethod
    def from_string(cls, value: str) -> "ComparisonOperator":
        """
        Convert string to ComparisonOperator, accepting common aliases.

        Raises:
            ValueError: If operator is not supported
        """
        aliases = {
            "<": cls.LESS_THAN,
            "lt": cls.LESS_THAN,
            "less_than": cls.LESS_THAN,
            ">": cls.GREATER_THAN,
            "gt": cls.GREATER_THAN,
            "greater_than": cls.GREATER_THAN,
            "crosses_above": cls.CROSSES_ABOVE,
            "crosses_below": cls.CROSSES_BELOW,
        }
        operator = aliases.get(value.strip().lower())
        if operator is None:
            raise ValueError(f"Unsupported comparison operator: {value}")
        return operator


class MacdSignal(StrEnum):
    """MACD states a macd condition can require."""

    BULLISH_CROSS = "bullish_cross"
    BEARISH_CROSS = "bearish_cross"
    HISTOGRAM_POSITIVE = "histogram_positive"
    HISTOGRAM_NEGATIVE = "histogram_negative"

    @property
    def is_crossing(self) -> bool:
        """Check if the signal needs the previous sample."""
        return self in [self.BULLISH_CROSS, self.BEARISH_CROSS]
