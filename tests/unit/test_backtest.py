"""
Unit tests for backtest result models and summary statistics.
"""

from datetime import UTC, datetime, timedelta

import pytest

from tradesim.core.enums import ExitReason, TradeDirection
from tradesim.core.exceptions.engine import ValidationError
from tradesim.core.models.backtest import BacktestConfig, BacktestResult, EquityPoint
from tradesim.core.models.trade import SimulatedTrade
from tradesim.engine.backtest_metrics import calculate_summary, profit_factor, sharpe_ratio

START = datetime(2025, 1, 1, tzinfo=UTC)


def make_trade(profit_loss: float, hours: int = 2, percent: float | None = None) -> SimulatedTrade:
    """Closed BUY trade of size 1000 entered at START."""
    return SimulatedTrade(
        entry_time=START,
        exit_time=START + timedelta(hours=hours),
        entry_price=100.0,
        exit_price=100.0 + profit_loss / 10,
        direction=TradeDirection.BUY,
        size=1000.0,
        profit_loss=profit_loss,
        profit_loss_percent=percent if percent is not None else profit_loss / 10,
        hold_duration_seconds=hours * 3600,
        exit_reason=ExitReason.TAKE_PROFIT if profit_loss > 0 else ExitReason.STOP_LOSS,
    )


class TestSimulatedTrade:
    """Test suite for SimulatedTrade."""

    def test_should_count_break_even_as_loser(self) -> None:
        """Test only strictly positive P/L is a win."""
        assert make_trade(30.0).is_winner
        assert not make_trade(0.0).is_winner
        assert not make_trade(-50.0).is_winner

    def test_should_reject_exit_before_entry(self) -> None:
        """Test exit time must not precede entry time."""
        with pytest.raises(ValidationError, match="Exit time"):
            SimulatedTrade(
                entry_time=START,
                exit_time=START - timedelta(hours=1),
                entry_price=100.0,
                exit_price=101.0,
                direction=TradeDirection.BUY,
                size=1000.0,
                profit_loss=10.0,
                profit_loss_percent=1.0,
                hold_duration_seconds=0,
                exit_reason=ExitReason.TAKE_PROFIT,
            )

    def test_should_convert_to_dict(self) -> None:
        """Test trade serialization uses ISO timestamps and enum values."""
        result = make_trade(30.0).to_dict()

        assert result["entry_time"] == "2025-01-01T00:00:00+00:00"
        assert result["direction"] == "BUY"
        assert result["exit_reason"] == "take_profit"
        assert result["hold_duration_seconds"] == 7200


class TestBacktestMetrics:
    """Test suite for summary statistics."""

    def test_should_calculate_profit_factor(self) -> None:
        """Test profit factor including the no-loss sentinel."""
        assert profit_factor(300.0, 150.0) == 2.0
        assert profit_factor(300.0, 0.0) == 999.0
        assert profit_factor(0.0, 0.0) == 0.0
        assert profit_factor(0.0, 100.0) == 0.0

    def test_should_calculate_sharpe_ratio(self) -> None:
        """Test Sharpe uses the sample standard deviation."""
        assert sharpe_ratio([1.0, 3.0]) == pytest.approx(2.0 / 2**0.5 * 252**0.5)
        assert sharpe_ratio([-5.0, 0.0]) == pytest.approx(-11.225, abs=1e-3)
        assert sharpe_ratio([1.0]) is None
        assert sharpe_ratio([2.0, 2.0, 2.0]) is None

    def test_should_summarize_trades(self) -> None:
        """Test the summary of mixed trades."""
        trades = [make_trade(30.0), make_trade(-50.0, hours=4), make_trade(20.0), make_trade(0.0)]

        summary = calculate_summary(
            trades,
            initial_capital=10000.0,
            final_equity=10000.0,
            max_drawdown_percent=1.23456,
            max_drawdown_amount=50.0,
            max_consecutive_losses=1,
        )

        assert summary.total_trades == 4
        assert summary.winning_trades == 2
        assert summary.losing_trades == 2
        assert summary.win_rate == 50.0
        assert summary.gross_profit == 50.0
        assert summary.gross_loss == 50.0
        assert summary.net_profit_loss == 0.0
        assert summary.profit_factor == 1.0
        assert summary.best_trade == 30.0
        assert summary.worst_trade == -50.0
        assert summary.average_win == 25.0
        assert summary.average_loss == 25.0
        assert summary.average_hold_seconds == 9000.0
        assert summary.max_drawdown_percent == 1.2346

    def test_should_summarize_empty_run(self) -> None:
        """Test a run without trades."""
        summary = calculate_summary(
            [],
            initial_capital=10000.0,
            final_equity=10000.0,
            max_drawdown_percent=0.0,
            max_drawdown_amount=0.0,
            max_consecutive_losses=0,
        )

        assert summary.total_trades == 0
        assert summary.win_rate == 0.0
        assert summary.profit_factor == 0.0
        assert summary.best_trade is None
        assert summary.worst_trade is None
        assert summary.sharpe_ratio is None


class TestBacktestResult:
    """Test suite for BacktestResult."""

    @pytest.fixture
    def result(self) -> BacktestResult:
        trades = [make_trade(30.0)]
        summary = calculate_summary(
            trades,
            initial_capital=10000.0,
            final_equity=10030.0,
            max_drawdown_percent=0.0,
            max_drawdown_amount=0.0,
            max_consecutive_losses=0,
        )
        return BacktestResult(
            rule_name="Test rule",
            rule_id="rule-1",
            config=BacktestConfig(initial_capital=10000.0),
            period_start=START,
            period_end=START + timedelta(days=3),
            summary=summary,
            trades=trades,
            equity_curve=[EquityPoint(START, 10000.0, 0.0)],
            data_points_analyzed=72,
            calculation_time_ms=1.5,
        )

    def test_should_check_if_profitable(self, result: BacktestResult) -> None:
        """Test profitability follows net P/L."""
        assert result.is_profitable()

    def test_should_attach_persistence_without_mutating(self, result: BacktestResult) -> None:
        """Test with_persistence returns a new result."""
        stored = result.with_persistence("abc", True)

        assert stored.result_id == "abc"
        assert stored.persisted is True
        assert result.result_id is None
        assert result.persisted is False

    def test_should_convert_to_dict(self, result: BacktestResult) -> None:
        """Test result serialization."""
        data = result.to_dict()

        assert data["rule_name"] == "Test rule"
        assert data["period_end"] == "2025-01-04T00:00:00+00:00"
        assert data["summary"]["profit_factor"] == 999.0
        assert data["config"]["initial_capital"] == 10000.0
        assert len(data["trades"]) == 1
        assert data["equity_curve"] == [
            {"timestamp": "2025-01-01T00:00:00+00:00", "equity": 10000.0, "drawdown_percent": 0.0}
        ]
        assert data["persisted"] is False
