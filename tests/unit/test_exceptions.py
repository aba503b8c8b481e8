"""
Unit tests for custom exceptions.
Testing the exception hierarchy and the attributes of structured errors.
"""

import pytest

from tradesim.core.exceptions.engine import (
    CalculationError,
    ConfigurationError,
    DataError,
    InsufficientDataError,
    OrderError,
    OrderNotFoundError,
    OrderProcessingError,
    OrderStateError,
    PersistenceError,
    TradeSimException,
    ValidationError,
)


class TestTradeSimException:
    """Tests for TradeSimException base class."""

    def test_should_create_base_exception_with_message(self) -> None:
        """Test creating base exception with message."""
        exc = TradeSimException("Test error message")
        assert str(exc) == "Test error message"
        assert isinstance(exc, Exception)

    @pytest.mark.parametrize(
        "exc_type",
        [ValidationError, DataError, CalculationError, ConfigurationError, OrderError,
         PersistenceError],
    )
    def test_should_derive_from_base_exception(self, exc_type: type) -> None:
        """Test every domain error can be caught as TradeSimException."""
        exc = exc_type("boom")
        assert isinstance(exc, TradeSimException)
        assert str(exc) == "boom"


class TestInsufficientDataError:
    """Tests for InsufficientDataError."""

    def test_should_create_insufficient_data_error(self) -> None:
        """Test creating insufficient data error with all attributes."""
        exc = InsufficientDataError(required=50, available=12, operation="backtest")

        assert exc.required == 50
        assert exc.available == 12
        assert exc.operation == "backtest"
        assert isinstance(exc, DataError)

    def test_should_format_error_message_correctly(self) -> None:
        """Test that error message is formatted correctly."""
        message = str(InsufficientDataError(required=50, available=0, operation="backtest"))

        assert "Not enough historical data for backtest" in message
        assert "required=50" in message
        assert "available=0" in message


class TestOrderErrors:
    """Tests for conditional order errors."""

    def test_should_carry_transition_details(self) -> None:
        """Test OrderStateError keeps the rejected transition."""
        exc = OrderStateError("o-1", "EXECUTED", "CANCELLED")

        assert exc.order_id == "o-1"
        assert exc.current == "EXECUTED"
        assert exc.requested == "CANCELLED"
        assert str(exc) == "Order o-1 cannot move from EXECUTED to CANCELLED"
        assert isinstance(exc, OrderError)

    def test_should_format_not_found_message(self) -> None:
        """Test OrderNotFoundError includes the order id."""
        exc = OrderNotFoundError("o-42")

        assert exc.order_id == "o-42"
        assert "o-42" in str(exc)
        assert isinstance(exc, OrderError)

    def test_should_treat_processing_error_as_order_error(self) -> None:
        """Test OrderProcessingError is an OrderError."""
        with pytest.raises(OrderError, match="no current price"):
            raise OrderProcessingError("no current price")
