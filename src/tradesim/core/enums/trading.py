"""
Trade direction, rule logic and exit reason enumerations.

This module defines the allowed trade directions and how rule
conditions are combined.
"""

from collections.abc import Iterable
from enum import StrEnum


class TradeDirection(StrEnum):
    """
    Allowed trade directions.

    BUY profits when price rises, SELL profits when price falls.
    """

    BUY = "BUY"
    SELL = "SELL"

    @property
    def sign(self) -> float:
        """Multiplier applied to a raw price move to get the holder's P/L."""
        return 1.0 if self == self.BUY else -1.0

    @property
    def is_buy(self) -> bool:
        """Check if direction is BUY."""
        return self == self.BUY

    def opposite(self) -> "TradeDirection":
        """Get the opposite direction."""
        return self.SELL if self.is_buy else self.BUY  # type: ignore[return-value]

    @classmethod
    def from_string(cls, value: str) -> "TradeDirection":
        """
        Convert string to TradeDirection enum.

        Raises:
            ValueError: If direction is not supported
        """
        value_upper = value.strip().upper()
        for direction in cls:
            if direction.value == value_upper:
                return direction
        raise ValueError(f"Unsupported trade direction: {value}")


class LogicOperator(StrEnum):
    """How the conditions of a rule are combined."""

    AND = "AND"
    OR = "OR"

    def combine(self, results: Iterable[bool]) -> bool:
        """
        Combine per-condition results.

        Args:
            results: Already evaluated condition results

        Returns:
            Conjunction for AND, disjunction for OR
        """
        values = list(results)
        if self == self.AND:
            return all(values)
        return any(values)


class ExitReason(StrEnum):
    """Why a simulated position was closed."""

    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    END_OF_PERIOD = "end_of_period"

    @property
    def is_forced(self) -> bool:
        """Check if the exit was forced by the end of the data window."""
        return self == self.END_OF_PERIOD
