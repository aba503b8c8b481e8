"""
Rule performance rollup models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tradesim.core.enums import RecommendationType


@dataclass(frozen=True)
class TradeSnapshot:
    """Rules that were active when a trade was opened, plus its outcome.

    profit_loss is None while the trade is still open; such snapshots
    are left out of every rollup.
    """

    trade_id: str
    active_rule_ids: tuple[str, ...]
    rule_names: tuple[str, ...]
    profit_loss: float | None
    created_at: datetime
    profit_loss_percent: float | None = None
    hold_duration_seconds: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.profit_loss is not None


@dataclass(frozen=True)
class RulePerformanceStats:
    """Aggregate outcome of the trades taken while a rule was active."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_profit_loss: float = 0.0
    average_profit: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    average_hold_seconds: int = 0
    first_trade_at: datetime | None = None
    last_trade_at: datetime | None = None
    performance_score: int = 0
    rule_id: str | None = None
    rule_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate": self.win_rate,
            "total_profit_loss": self.total_profit_loss,
            "average_profit": self.average_profit,
            "average_loss": self.average_loss,
            "profit_factor": self.profit_factor,
            "best_trade": self.best_trade,
            "worst_trade": self.worst_trade,
            "average_hold_seconds": self.average_hold_seconds,
            "first_trade_at": self.first_trade_at.isoformat() if self.first_trade_at else None,
            "last_trade_at": self.last_trade_at.isoformat() if self.last_trade_at else None,
            "performance_score": self.performance_score,
        }


@dataclass(frozen=True)
class CombinationStats:
    """Outcome of trades taken under one exact set of active rules."""

    combination_hash: str
    rule_ids: tuple[str, ...]
    rule_names: tuple[str, ...]
    stats: RulePerformanceStats
    improvement_vs_baseline_percent: float
    sample_size_sufficient: bool
    confidence_level: float

    def to_dict(self) -> dict[str, Any]:
        """Convert combination stats to dictionary."""
        return {
            "combination_hash": self.combination_hash,
            "rule_ids": list(self.rule_ids),
            "rule_names": list(self.rule_names),
            "stats": self.stats.to_dict(),
            "improvement_vs_baseline_percent": self.improvement_vs_baseline_percent,
            "sample_size_sufficient": self.sample_size_sufficient,
            "confidence_level": self.confidence_level,
        }


@dataclass(frozen=True)
class Recommendation:
    """Suggested change to the user's active rule set."""

    recommendation_type: RecommendationType
    reasoning: str
    expected_improvement_percent: float
    confidence_score: float
    rule_id: str | None = None
    rule_ids: tuple[str, ...] = ()
    supporting_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert recommendation to dictionary."""
        return {
            "recommendation_type": self.recommendation_type.value,
            "rule_id": self.rule_id,
            "rule_ids": list(self.rule_ids),
            "reasoning": self.reasoning,
            "expected_improvement_percent": self.expected_improvement_percent,
            "confidence_score": self.confidence_score,
            "supporting_data": self.supporting_data,
        }


@dataclass(frozen=True)
class PerformanceReport:
    """Everything one analysis pass produces."""

    rule_stats: list[RulePerformanceStats]
    combinations: list[CombinationStats]
    baseline_win_rate: float
    recommendations: list[Recommendation]

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "rule_stats": [s.to_dict() for s in self.rule_stats],
            "combinations": [c.to_dict() for c in self.combinations],
            "baseline_win_rate": self.baseline_win_rate,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
