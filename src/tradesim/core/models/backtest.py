"""
Backtest configuration and results models.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from tradesim.core.constants import (
    DEFAULT_EQUITY_SAMPLE_INTERVAL,
    DEFAULT_INITIAL_CAPITAL,
    DEFAULT_STOP_LOSS_PERCENT,
    DEFAULT_TAKE_PROFIT_PERCENT,
    MAX_INITIAL_CAPITAL,
    MIN_BACKTEST_DATA_POINTS,
    MIN_INITIAL_CAPITAL,
    RULE_WARMUP_INDEX,
)

from .trade import SimulatedTrade


@dataclass(frozen=True)
class BacktestConfig:
    """Configuration for a backtest execution."""

    initial_capital: float = DEFAULT_INITIAL_CAPITAL
    default_stop_loss_percent: float = DEFAULT_STOP_LOSS_PERCENT
    default_take_profit_percent: float = DEFAULT_TAKE_PROFIT_PERCENT
    equity_sample_interval: int = DEFAULT_EQUITY_SAMPLE_INTERVAL
    min_data_points: int = MIN_BACKTEST_DATA_POINTS

    def is_valid_capital(self) -> bool:
        """Validate initial capital is within system limits."""
        return MIN_INITIAL_CAPITAL <= self.initial_capital <= MAX_INITIAL_CAPITAL

    def is_valid_exit_defaults(self) -> bool:
        """Validate default stop-loss and take-profit percentages."""
        return (
            0 < self.default_stop_loss_percent <= 100
            and 0 < self.default_take_profit_percent <= 100
        )

    def is_valid_sample_interval(self) -> bool:
        """Validate equity curve sample interval is positive."""
        return self.equity_sample_interval >= 1

    def is_valid_min_data_points(self) -> bool:
        """Validate the data floor leaves at least one index after warm-up."""
        return self.min_data_points > RULE_WARMUP_INDEX

    def is_valid(self) -> bool:
        """Run every configuration check."""
        return (
            self.is_valid_capital()
            and self.is_valid_exit_defaults()
            and self.is_valid_sample_interval()
            and self.is_valid_min_data_points()
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "initial_capital": self.initial_capital,
            "default_stop_loss_percent": self.default_stop_loss_percent,
            "default_take_profit_percent": self.default_take_profit_percent,
            "equity_sample_interval": self.equity_sample_interval,
            "min_data_points": self.min_data_points,
        }


@dataclass(frozen=True)
class EquityPoint:
    """One sampled point of the equity curve."""

    timestamp: datetime
    equity: float
    drawdown_percent: float

    def to_dict(self) -> dict[str, Any]:
        """Convert equity point to dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "equity": self.equity,
            "drawdown_percent": self.drawdown_percent,
        }


@dataclass(frozen=True)
class BacktestSummary:
    """Aggregate statistics over the closed trades of one run."""

    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    gross_profit: float
    gross_loss: float
    net_profit_loss: float
    net_profit_loss_percent: float
    profit_factor: float
    best_trade: float | None
    worst_trade: float | None
    average_trade: float
    average_win: float
    average_loss: float
    average_hold_seconds: float
    max_drawdown_percent: float
    max_drawdown_amount: float
    max_consecutive_losses: int
    sharpe_ratio: float | None
    final_equity: float

    def to_dict(self) -> dict[str, Any]:
        """Convert summary to dictionary."""
        return {
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate": self.win_rate,
            "gross_profit": self.gross_profit,
            "gross_loss": self.gross_loss,
            "net_profit_loss": self.net_profit_loss,
            "net_profit_loss_percent": self.net_profit_loss_percent,
            "profit_factor": self.profit_factor,
            "best_trade": self.best_trade,
            "worst_trade": self.worst_trade,
            "average_trade": self.average_trade,
            "average_win": self.average_win,
            "average_loss": self.average_loss,
            "average_hold_seconds": self.average_hold_seconds,
            "max_drawdown_percent": self.max_drawdown_percent,
            "max_drawdown_amount": self.max_drawdown_amount,
            "max_consecutive_losses": self.max_consecutive_losses,
            "sharpe_ratio": self.sharpe_ratio,
            "final_equity": self.final_equity,
        }


@dataclass(frozen=True)
class BacktestResult:
    """Results from a backtest execution."""

    rule_name: str
    rule_id: str | None
    config: BacktestConfig
    period_start: datetime
    period_end: datetime
    summary: BacktestSummary
    trades: list[SimulatedTrade]
    equity_curve: list[EquityPoint]
    data_points_analyzed: int
    calculation_time_ms: float
    result_id: str | None = None
    persisted: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_profitable(self) -> bool:
        """Check if the backtest was profitable."""
        return self.summary.net_profit_loss > 0.0

    def with_persistence(self, result_id: str | None, persisted: bool) -> "BacktestResult":
        """Copy of this result carrying its store id and persistence flag."""
        return replace(self, result_id=result_id, persisted=persisted)

    def to_dict(self) -> dict[str, Any]:
        """Convert results to dictionary."""
        return {
            "result_id": self.result_id,
            "rule_name": self.rule_name,
            "rule_id": self.rule_id,
            "config": self.config.to_dict(),
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "summary": self.summary.to_dict(),
            "trades": [trade.to_dict() for trade in self.trades],
            "equity_curve": [point.to_dict() for point in self.equity_curve],
            "data_points_analyzed": self.data_points_analyzed,
            "calculation_time_ms": self.calculation_time_ms,
            "persisted": self.persisted,
            "metadata": self.metadata,
        }
