"""
Single-position backtest simulator.

Walks a price series from the warm-up index to the end, opening one
position at a time when the rule fires and closing it on stop-loss,
take-profit or at the end of the period.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from tradesim.core.constants import RULE_WARMUP_INDEX
from tradesim.core.enums import ExitReason, TradeDirection
from tradesim.core.exceptions.engine import ConfigurationError, InsufficientDataError
from tradesim.core.models.backtest import BacktestConfig, BacktestResult, EquityPoint
from tradesim.core.models.price import PriceSeries
from tradesim.core.models.rule import RuleDefinition
from tradesim.core.models.trade import SimulatedTrade
from tradesim.core.types import (
    HUNDRED,
    directional_percent_move,
    profit_from_percent,
    round_amount,
    round_percentage,
    round_price,
)

from .backtest_metrics import calculate_summary
from .rules import RuleEvaluator

ProgressCallback = Callable[[float], None]


@dataclass
class OpenPosition:
    """The single position a run may hold."""

    entry_index: int
    entry_time: datetime
    entry_price: float
    size: float
    direction: TradeDirection

    def percent_move(self, price: float) -> float:
        """Unrealized move in the holder's favour, in percent."""
        return directional_percent_move(self.entry_price, price, self.direction.sign)


@dataclass
class SimulationState:
    """Accumulator threaded through one simulation run."""

    equity: float
    peak_equity: float
    max_drawdown_percent: float = 0.0
    max_drawdown_amount: float = 0.0
    consecutive_losses: int = 0
    max_consecutive_losses: int = 0
    position: OpenPosition | None = None
    trades: list[SimulatedTrade] = field(default_factory=list)
    equity_curve: list[EquityPoint] = field(default_factory=list)

    def mark_to_market(self, price: float) -> float:
        """Realized equity plus the unrealized P/L of the open position."""
        if self.position is None:
            return self.equity
        unrealized = profit_from_percent(self.position.percent_move(price), self.position.size)
        return self.equity + unrealized

    def close_position(self, trade: SimulatedTrade) -> None:
        """Book a closed trade and update the loss streak."""
        self.trades.append(trade)
        self.equity += trade.profit_loss
        self.position = None

        if trade.is_winner:
            self.consecutive_losses = 0
        else:
            self.consecutive_losses += 1
            self.max_consecutive_losses = max(self.max_consecutive_losses, self.consecutive_losses)

    def update_drawdown(self, current_equity: float) -> float:
        """Update peak and max drawdown; return the current drawdown percent."""
        self.peak_equity = max(self.peak_equity, current_equity)
        drawdown_amount = self.peak_equity - current_equity
        drawdown_percent = drawdown_amount / self.peak_equity * HUNDRED
        self.max_drawdown_percent = max(self.max_drawdown_percent, drawdown_percent)
        self.max_drawdown_amount = max(self.max_drawdown_amount, drawdown_amount)
        return drawdown_percent


class BacktestSimulator:
    """
    Replays a rule over historical prices.

    Each run owns its own SimulationState, so one simulator can be used
    for concurrent independent runs.
    """

    def __init__(
        self,
        config: BacktestConfig | None = None,
        rule_evaluator: RuleEvaluator | None = None,
    ):
        self.config = config or BacktestConfig()
        self.rule_evaluator = rule_evaluator or RuleEvaluator()

    def run(
        self,
        rule: RuleDefinition,
        series: PriceSeries,
        progress_callback: ProgressCallback | None = None,
    ) -> BacktestResult:
        """
        Run the simulation.

        Args:
            rule: Rule deciding entries
            series: Oldest-first price series
            progress_callback: Receives percent complete (0-100, non-decreasing)

        Returns:
            Statistics, trades and down-sampled equity curve of the run

        Raises:
            InsufficientDataError: If series is shorter than config.min_data_points
            ConfigurationError: If the simulator configuration is invalid
        """
        if not self.config.is_valid():
            raise ConfigurationError(f"Invalid backtest configuration: {self.config.to_dict()}")

        n = len(series)
        if n < self.config.min_data_points:
            raise InsufficientDataError(self.config.min_data_points, n, "backtest")

        started = time.perf_counter()
        stop_loss = (
            rule.stop_loss_percent
            if rule.stop_loss_percent is not None
            else self.config.default_stop_loss_percent
        )
        take_profit = (
            rule.take_profit_percent
            if rule.take_profit_percent is not None
            else self.config.default_take_profit_percent
        )

        logger.info(
            f"Starting backtest for rule '{rule.name}' over {n} points "
            f"(SL {stop_loss}%, TP {take_profit}%)"
        )

        closes = series.closes
        timestamps = [ts.to_pydatetime() for ts in series.timestamps]
        state = SimulationState(
            equity=self.config.initial_capital, peak_equity=self.config.initial_capital
        )
        last_index = n - 1
        total_steps = n - RULE_WARMUP_INDEX
        reported = -1

        for i in range(RULE_WARMUP_INDEX, n):
            price = float(closes[i])

            if state.position is not None:
                self._check_exit(state, i, price, timestamps[i], stop_loss, take_profit, last_index)

            if (
                state.position is None
                and i < last_index
                and self.rule_evaluator.evaluate(rule, series, i)
            ):
                size = rule.position_size.size_for(state.equity)
                state.position = OpenPosition(
                    entry_index=i,
                    entry_time=timestamps[i],
                    entry_price=price,
                    size=size,
                    direction=rule.direction,
                )
                logger.debug(f"Opened {rule.direction} position at index {i}: {size:.2f} @ {price}")

            current_equity = state.mark_to_market(price)
            drawdown = state.update_drawdown(current_equity)
            step = i - RULE_WARMUP_INDEX
            if step % self.config.equity_sample_interval == 0 or i == last_index:
                state.equity_curve.append(
                    EquityPoint(
                        timestamp=timestamps[i],
                        equity=round_amount(current_equity),
                        drawdown_percent=round_percentage(drawdown),
                    )
                )

            if progress_callback is not None:
                percent = int((step + 1) * 100 / total_steps)
                if percent > reported:
                    reported = percent
                    progress_callback(float(percent))

        summary = calculate_summary(
            state.trades,
            initial_capital=self.config.initial_capital,
            final_equity=state.equity,
            max_drawdown_percent=state.max_drawdown_percent,
            max_drawdown_amount=state.max_drawdown_amount,
            max_consecutive_losses=state.max_consecutive_losses,
        )
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"Backtest for '{rule.name}' finished: {summary.total_trades} trades, "
            f"win rate {summary.win_rate:.1f}%, net P/L {summary.net_profit_loss:.2f}"
        )

        return BacktestResult(
            rule_name=rule.name,
            rule_id=rule.rule_id,
            config=self.config,
            period_start=timestamps[0],
            period_end=timestamps[-1],
            summary=summary,
            trades=state.trades,
            equity_curve=state.equity_curve,
            data_points_analyzed=n,
            calculation_time_ms=round(elapsed_ms, 2),
            metadata={"stop_loss_percent": stop_loss, "take_profit_percent": take_profit},
        )

    def _check_exit(
        self,
        state: SimulationState,
        index: int,
        price: float,
        timestamp: datetime,
        stop_loss: float,
        take_profit: float,
        last_index: int,
    ) -> None:
        position = state.position
        if position is None:
            return
        move = position.percent_move(price)

        # Stops and targets fill at their level, not at the close
        if move <= -stop_loss:
            reason, realized = ExitReason.STOP_LOSS, -stop_loss
        elif move >= take_profit:
            reason, realized = ExitReason.TAKE_PROFIT, take_profit
        elif index == last_index:
            reason, realized = ExitReason.END_OF_PERIOD, move
        else:
            return

        exit_price = position.entry_price * (1 + position.direction.sign * realized / HUNDRED)
        trade = SimulatedTrade(
            entry_time=position.entry_time,
            exit_time=timestamp,
            entry_price=position.entry_price,
            exit_price=round_price(exit_price),
            direction=position.direction,
            size=round_amount(position.size),
            profit_loss=round_amount(profit_from_percent(realized, position.size)),
            profit_loss_percent=round_percentage(realized),
            hold_duration_seconds=int((timestamp - position.entry_time).total_seconds()),
            exit_reason=reason,
        )
        state.close_position(trade)
        logger.debug(f"Closed position at index {index} ({reason}): P/L {trade.profit_loss:.2f}")
