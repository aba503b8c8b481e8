"""
Backtest summary statistics.

Turns the closed trades and drawdown figures of one simulation run into
a BacktestSummary.
"""

from collections.abc import Sequence

import numpy as np

from tradesim.core.constants import PROFIT_FACTOR_SENTINEL, TRADING_DAYS_PER_YEAR
from tradesim.core.models.backtest import BacktestSummary
from tradesim.core.models.trade import SimulatedTrade
from tradesim.core.types import HUNDRED, round_amount, round_percentage


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """
    Gross profit divided by gross loss.

    Returns the storage sentinel when there are no losses but some
    profit, and 0 when there is neither.
    """
    if gross_loss > 0:
        return gross_profit / gross_loss
    if gross_profit > 0:
        return PROFIT_FACTOR_SENTINEL
    return 0.0


def sharpe_ratio(trade_percents: Sequence[float]) -> float | None:
    """
    Simplified annualized Sharpe-like ratio over per-trade percent returns.

    mean / sample std * sqrt(252); None for fewer than two trades or
    zero dispersion.
    """
    if len(trade_percents) < 2:
        return None
    returns = np.asarray(trade_percents, dtype=float)
    std = float(returns.std(ddof=1))
    if std == 0:
        return None
    return float(returns.mean() / std * np.sqrt(TRADING_DAYS_PER_YEAR))


def calculate_summary(
    trades: Sequence[SimulatedTrade],
    initial_capital: float,
    final_equity: float,
    max_drawdown_percent: float,
    max_drawdown_amount: float,
    max_consecutive_losses: int,
) -> BacktestSummary:
    """Calculate the summary statistics of a finished run."""
    winners = [t.profit_loss for t in trades if t.is_winner]
    losers = [t.profit_loss for t in trades if not t.is_winner]
    profit_losses = [t.profit_loss for t in trades]

    total = len(trades)
    gross_profit = sum(winners)
    gross_loss = abs(sum(losers))
    net = sum(profit_losses)

    return BacktestSummary(
        total_trades=total,
        winning_trades=len(winners),
        losing_trades=len(losers),
        win_rate=round_percentage(len(winners) / total * HUNDRED) if total else 0.0,
        gross_profit=round_amount(gross_profit),
        gross_loss=round_amount(gross_loss),
        net_profit_loss=round_amount(net),
        net_profit_loss_percent=round_percentage(net / initial_capital * HUNDRED),
        profit_factor=profit_factor(gross_profit, gross_loss),
        best_trade=max(profit_losses) if trades else None,
        worst_trade=min(profit_losses) if trades else None,
        average_trade=round_amount(net / total) if total else 0.0,
        average_win=round_amount(gross_profit / len(winners)) if winners else 0.0,
        average_loss=round_amount(gross_loss / len(losers)) if losers else 0.0,
        average_hold_seconds=(
            sum(t.hold_duration_seconds for t in trades) / total if total else 0.0
        ),
        max_drawdown_percent=round_percentage(max_drawdown_percent),
        max_drawdown_amount=round_amount(max_drawdown_amount),
        max_consecutive_losses=max_consecutive_losses,
        sharpe_ratio=sharpe_ratio([t.profit_loss_percent for t in trades]),
        final_equity=round_amount(final_equity),
    )
