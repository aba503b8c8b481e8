"""
Unit tests for utility decorators.
Testing operation logging, context extraction and correlation ids.
"""
# ruff: noqa: ARG001

from datetime import UTC, datetime
from unittest.mock import Mock, patch

import pytest

from tradesim.core.enums import OrderType
from tradesim.core.exceptions.engine import ValidationError
from tradesim.core.utils.decorators import log_operation

LOGGER = "tradesim.core.utils.decorators.logger"


class TestLogOperationDecorator:
    """Test suite for @log_operation decorator."""

    @patch(LOGGER)
    def test_should_log_function_entry_and_success(self, mock_logger: Mock) -> None:
        """Test that entry and success are logged with timing."""

        @log_operation
        def process(order_id: str, current_price: float) -> int:
            return 3

        result = process("o-1", 101.5)

        assert result == 3
        assert mock_logger.info.call_count == 1
        assert mock_logger.success.call_count == 1

        entry_call = mock_logger.info.call_args
        assert entry_call[0][0] == "Operation started: process"
        assert entry_call[1]["extra"]["order_id"] == "o-1"
        assert entry_call[1]["extra"]["current_price"] == 101.5

        success_context = mock_logger.success.call_args[1]["extra"]
        assert success_context["success"] is True
        assert success_context["result"] == 3
        assert success_context["result_type"] == "int"
        assert "execution_time_ms" in success_context

    @patch(LOGGER)
    def test_should_log_function_failure(self, mock_logger: Mock) -> None:
        """Test that failures are logged and re-raised."""

        @log_operation
        def process(order_id: str) -> None:
            raise ValidationError("bad order")

        with pytest.raises(ValidationError, match="bad order"):
            process("o-2")

        assert mock_logger.info.call_count == 1
        assert mock_logger.error.call_count == 1
        assert mock_logger.success.call_count == 0

        error_context = mock_logger.error.call_args[1]["extra"]
        assert error_context["success"] is False
        assert error_context["error_type"] == "ValidationError"
        assert error_context["error_message"] == "bad order"

    @patch(LOGGER)
    def test_should_serialize_context_parameters(self, mock_logger: Mock) -> None:
        """Test rules, enums and datetimes are logged in readable form."""
        rule = Mock()
        rule.name = "Dip buyer"
        rule.conditions = []

        @log_operation
        def run(rule: object, period_start: datetime, user_id: object, other: int = 0) -> None:
            return None

        run(rule, datetime(2025, 1, 1, tzinfo=UTC), OrderType.STOP, other=5)

        context = mock_logger.info.call_args[1]["extra"]
        assert context["rule"] == "Dip buyer"
        assert context["period_start"] == "2025-01-01T00:00:00+00:00"
        assert context["user_id"] == "STOP"
        assert "other" not in context

    @patch(LOGGER)
    def test_should_skip_none_parameters(self, mock_logger: Mock) -> None:
        """Test omitted optional context is not logged."""

        @log_operation
        def load(period_start: datetime | None = None) -> list:
            return []

        load()

        context = mock_logger.info.call_args[1]["extra"]
        assert "period_start" not in context
        assert "result" not in mock_logger.success.call_args[1]["extra"]

    @patch(LOGGER)
    def test_should_generate_unique_correlation_ids(self, mock_logger: Mock) -> None:
        """Test that each call gets its own correlation ID."""

        @log_operation
        def tick() -> bool:
            return True

        tick()
        tick()

        call1_context = mock_logger.info.call_args_list[0][1]["extra"]
        call2_context = mock_logger.info.call_args_list[1][1]["extra"]

        assert call1_context["correlation_id"] != call2_context["correlation_id"]
        assert len(call1_context["correlation_id"]) == 8  # Truncated UUID

    def test_should_preserve_function_metadata(self) -> None:
        """Test functools.wraps keeps the wrapped name."""

        @log_operation
        def documented() -> None:
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."
