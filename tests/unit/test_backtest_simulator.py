"""
Unit tests for the backtest simulator.

Covers entries and exits, the single-position invariant, drawdown
tracking, equity curve sampling and progress reporting.
"""

import numpy as np
import pytest

from tradesim.core.enums import ExitReason, PriceDirection, TradeDirection
from tradesim.core.exceptions.engine import ConfigurationError, InsufficientDataError
from tradesim.core.models.backtest import BacktestConfig
from tradesim.core.models.conditions import PriceChangeCondition, TimeRangeCondition
from tradesim.core.models.price import PriceSeries
from tradesim.core.models.rule import PositionSizePolicy, RuleDefinition
from tradesim.engine.backtest_simulator import BacktestSimulator


def dip_rule(**overrides) -> RuleDefinition:
    """Rule buying after a 10% drop over five samples."""
    params = {
        "name": "Dip buyer",
        "conditions": (PriceChangeCondition(PriceDirection.DOWN, 10.0),),
        "position_size": PositionSizePolicy(amount=10000),
    }
    params.update(overrides)
    return RuleDefinition(**params)


@pytest.fixture
def stop_loss_series() -> PriceSeries:
    """Flat at 100, a drop to 89 at index 30, then flat at 80."""
    return PriceSeries.from_closes([100.0] * 30 + [89.0] + [80.0] * 29)


@pytest.fixture
def simulator() -> BacktestSimulator:
    return BacktestSimulator()


class TestBacktestSimulatorTrades:
    """Test suite for trade entries and exits."""

    def test_should_fill_stop_loss_at_its_level(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test a stop loss closes at -5% of the entry, not at the close."""
        result = simulator.run(dip_rule(), stop_loss_series)

        first = result.trades[0]
        assert first.exit_reason == ExitReason.STOP_LOSS
        assert first.entry_price == 89.0
        assert first.exit_price == pytest.approx(84.55)
        assert first.profit_loss == pytest.approx(-500.0)
        assert first.profit_loss_percent == pytest.approx(-5.0)
        assert first.hold_duration_seconds == 3600

    def test_should_reenter_and_close_at_end_of_period(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test the rule can re-enter on the exit sample and is force-closed at the end."""
        result = simulator.run(dip_rule(), stop_loss_series)

        assert len(result.trades) == 2
        second = result.trades[1]
        assert second.exit_reason == ExitReason.END_OF_PERIOD
        assert second.entry_price == 80.0
        assert second.size == pytest.approx(9950.0)
        assert second.profit_loss == 0.0

    def test_should_summarize_losing_run(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test summary statistics of the stop-loss scenario."""
        summary = simulator.run(dip_rule(), stop_loss_series).summary

        assert summary.total_trades == 2
        assert summary.winning_trades == 0
        assert summary.losing_trades == 2
        assert summary.win_rate == 0.0
        assert summary.net_profit_loss == pytest.approx(-500.0)
        assert summary.net_profit_loss_percent == pytest.approx(-0.5)
        assert summary.profit_factor == 0.0
        assert summary.max_consecutive_losses == 2
        assert summary.max_drawdown_percent == pytest.approx(0.5)
        assert summary.max_drawdown_amount == pytest.approx(500.0)
        assert summary.final_equity == pytest.approx(99500.0)
        # -2.5 / sample std of (-5, 0)
        assert summary.sharpe_ratio == pytest.approx(-np.sqrt(126))

    def test_should_take_profit_on_sell_rule(self, simulator: BacktestSimulator) -> None:
        """Test a SELL position closes at +3% when price falls."""
        series = PriceSeries.from_closes([100.0] * 30 + [111.0] + [105.0] * 29)
        rule = dip_rule(
            conditions=(PriceChangeCondition(PriceDirection.UP, 10.0),),
            direction=TradeDirection.SELL,
        )

        result = simulator.run(rule, series)

        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.exit_reason == ExitReason.TAKE_PROFIT
        assert trade.exit_price == pytest.approx(107.67)
        assert trade.profit_loss == pytest.approx(300.0)
        assert result.summary.profit_factor == 999.0
        assert result.summary.sharpe_ratio is None
        assert result.is_profitable()

    def test_should_prefer_rule_exit_levels_over_defaults(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test the rule's stop loss overrides the configured default."""
        result = simulator.run(dip_rule(stop_loss_percent=20.0), stop_loss_series)

        assert result.metadata == {"stop_loss_percent": 20.0, "take_profit_percent": 3.0}
        assert len(result.trades) == 1
        assert result.trades[0].exit_reason == ExitReason.END_OF_PERIOD

    def test_should_not_open_position_on_last_sample(self, simulator: BacktestSimulator) -> None:
        """Test a rule firing only at the last index produces no trade."""
        series = PriceSeries.from_closes([100.0] * 59 + [120.0])
        rule = dip_rule(conditions=(PriceChangeCondition(PriceDirection.UP, 10.0),))

        result = simulator.run(rule, series)

        assert result.trades == []
        assert result.summary.total_trades == 0
        assert result.summary.profit_factor == 0.0
        assert result.summary.best_trade is None

    def test_should_hold_at_most_one_position(self, simulator: BacktestSimulator) -> None:
        """Test trades never overlap on a volatile series."""
        np.random.seed(7)
        closes = 80.0 * np.cumprod(1 + np.random.normal(0.0, 0.03, 300))
        rule = dip_rule(conditions=(TimeRangeCondition(0, 23),))

        result = simulator.run(rule, PriceSeries.from_closes(closes))

        assert len(result.trades) > 1
        for previous, current in zip(result.trades, result.trades[1:], strict=False):
            assert current.entry_time >= previous.exit_time


class TestBacktestSimulatorEquity:
    """Test suite for drawdown, equity curve and progress reporting."""

    def test_should_sample_equity_every_ten_steps_and_at_end(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test equity samples at warm-up + 10k and at the last index."""
        result = simulator.run(dip_rule(), stop_loss_series)

        sampled = [point.timestamp for point in result.equity_curve]
        expected = [stop_loss_series.timestamp_at(i).to_pydatetime() for i in (26, 36, 46, 56, 59)]
        assert sampled == expected
        assert result.equity_curve[-1].equity == pytest.approx(99500.0)

    def test_should_honour_custom_sample_interval(self, stop_loss_series: PriceSeries) -> None:
        """Test an interval of one samples every walked index."""
        simulator = BacktestSimulator(BacktestConfig(equity_sample_interval=1))

        result = simulator.run(dip_rule(), stop_loss_series)

        assert len(result.equity_curve) == len(stop_loss_series) - 26

    def test_should_keep_drawdown_within_bounds(self, simulator: BacktestSimulator) -> None:
        """Test every sampled drawdown is between 0 and the maximum."""
        np.random.seed(11)
        closes = 80.0 * np.cumprod(1 + np.random.normal(0.0, 0.03, 200))
        rule = dip_rule(conditions=(TimeRangeCondition(0, 23),))

        result = simulator.run(rule, PriceSeries.from_closes(closes))

        max_drawdown = result.summary.max_drawdown_percent
        assert 0.0 <= max_drawdown <= 100.0
        for point in result.equity_curve:
            assert 0.0 <= point.drawdown_percent <= max_drawdown + 1e-9

    def test_should_report_zero_drawdown_for_non_decreasing_equity(
        self, simulator: BacktestSimulator
    ) -> None:
        """Test a run that only takes profit never draws down."""
        # Take profit at index 31, then re-entry at 120 held flat to the end
        series = PriceSeries.from_closes([100.0] * 30 + [111.0] + [120.0] * 29)
        rule = dip_rule(conditions=(PriceChangeCondition(PriceDirection.UP, 10.0),))

        result = simulator.run(rule, series)

        equities = [point.equity for point in result.equity_curve]
        assert result.trades[0].exit_reason == ExitReason.TAKE_PROFIT
        assert equities == sorted(equities)
        assert result.summary.max_drawdown_percent == 0.0
        assert result.summary.max_drawdown_amount == 0.0

    def test_should_report_positive_drawdown_when_equity_falls(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test a losing run has a drawdown above zero."""
        result = simulator.run(dip_rule(), stop_loss_series)

        assert result.summary.max_drawdown_percent > 0.0
        assert min(point.drawdown_percent for point in result.equity_curve) == 0.0

    def test_should_report_monotonic_progress(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test progress is non-decreasing and ends at 100."""
        reported: list[float] = []

        simulator.run(dip_rule(), stop_loss_series, progress_callback=reported.append)

        assert reported
        assert reported == sorted(reported)
        assert reported[-1] == 100.0
        assert all(0.0 <= value <= 100.0 for value in reported)


class TestBacktestSimulatorPreconditions:
    """Test suite for run preconditions."""

    def test_should_require_fifty_data_points(self, simulator: BacktestSimulator) -> None:
        """Test short series raise InsufficientDataError."""
        with pytest.raises(InsufficientDataError) as exc_info:
            simulator.run(dip_rule(), PriceSeries.from_closes([100.0] * 49))

        assert exc_info.value.required == 50
        assert exc_info.value.available == 49
        assert exc_info.value.operation == "backtest"

    def test_should_reject_invalid_configuration(self, stop_loss_series: PriceSeries) -> None:
        """Test an out-of-range capital raises ConfigurationError."""
        simulator = BacktestSimulator(BacktestConfig(initial_capital=10.0))

        with pytest.raises(ConfigurationError, match="Invalid backtest configuration"):
            simulator.run(dip_rule(), stop_loss_series)

    def test_should_describe_the_run(
        self, simulator: BacktestSimulator, stop_loss_series: PriceSeries
    ) -> None:
        """Test result metadata about the analysed window."""
        result = simulator.run(dip_rule(rule_id="r-1"), stop_loss_series)

        assert result.rule_name == "Dip buyer"
        assert result.rule_id == "r-1"
        assert result.data_points_analyzed == 60
        assert result.period_start == stop_loss_series.timestamp_at(0).to_pydatetime()
        assert result.period_end == stop_loss_series.timestamp_at(-1).to_pydatetime()
        assert result.persisted is False
        assert result.result_id is None
