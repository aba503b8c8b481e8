"""
Conditional order enumerations.

This module defines conditional order types and the one-directional
order status lifecycle.
"""

from enum import StrEnum


class OrderType(StrEnum):
    """Allowed conditional order types."""

    LIMIT = "LIMIT"
    STOP = "STOP"
    STOP_LIMIT = "STOP_LIMIT"
    TRAILING_STOP = "TRAILING_STOP"

    @property
    def is_trailing(self) -> bool:
        """Check if the order adjusts its trigger as price moves."""
        return self == self.TRAILING_STOP

    @property
    def requires_trigger_price(self) -> bool:
        """Check if a trigger price must be supplied at creation."""
        return self in [self.STOP, self.STOP_LIMIT]

    @property
    def requires_limit_price(self) -> bool:
        """Check if a limit price must be supplied at creation."""
        return self in [self.LIMIT, self.STOP_LIMIT]


class OrderStatus(StrEnum):
    """
    Conditional order lifecycle states.

    PENDING -> TRIGGERED -> EXECUTED, PENDING -> EXPIRED,
    PENDING -> CANCELLED. Nothing returns to PENDING.
    """

    PENDING = "PENDING"
    TRIGGERED = "TRIGGERED"
    EXECUTED = "EXECUTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self in [self.EXECUTED, self.EXPIRED, self.CANCELLED]

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Check if moving from this status to target is allowed."""
        allowed = {
            OrderStatus.PENDING: {
                OrderStatus.TRIGGERED,
                OrderStatus.EXPIRED,
                OrderStatus.CANCELLED,
            },
            OrderStatus.TRIGGERED: {OrderStatus.EXECUTED},
        }
        return target in allowed.get(self, set())
