"""
Custom exception hierarchy for the trading engine.

This module defines domain-specific exceptions for better error handling.
"""


class TradeSimException(Exception):
    """Base exception for all engine-related errors."""

    pass


class ValidationError(TradeSimException):
    """Raised when input validation fails."""

    pass


class DataError(TradeSimException):
    """Raised when data access or processing fails."""

    pass


class InsufficientDataError(DataError):
    """Raised when a price series is too short for the requested operation."""

    def __init__(self, required: int, available: int, operation: str = "operation"):
        self.required = required
        self.available = available
        self.operation = operation
        super().__init__(
            f"Not enough historical data for {operation}: "
            f"required={required} data points, available={available}"
        )


class CalculationError(TradeSimException):
    """Raised when mathematical calculations fail."""

    pass


class ConfigurationError(TradeSimException):
    """Raised when configuration is invalid."""

    pass


class OrderError(TradeSimException):
    """Raised when conditional order operations fail."""

    pass


class OrderStateError(OrderError):
    """Raised when an order status transition is not allowed."""

    def __init__(self, order_id: str, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(f"Order {order_id} cannot move from {current} to {requested}")


class OrderNotFoundError(OrderError):
    """Raised when trying to operate on a non-existent order."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Conditional order not found: {order_id}")


class OrderProcessingError(OrderError):
    """Raised when an order tick cannot be processed (e.g. no current price)."""

    pass


class PersistenceError(TradeSimException):
    """Raised when a computed result cannot be written to its store."""

    pass
