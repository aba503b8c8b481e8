"""
Rule performance rollups and recommendations.

Aggregates completed trade snapshots per rule and per exact combination
of active rules, compares them with the no-rule baseline and proposes
enabling, disabling or combining rules.
"""

import hashlib
from collections.abc import Iterable, Sequence
from dataclasses import replace

from loguru import logger

from tradesim.core.enums import RecommendationType
from tradesim.core.models.performance import (
    CombinationStats,
    PerformanceReport,
    Recommendation,
    RulePerformanceStats,
    TradeSnapshot,
)
from tradesim.engine.backtest_metrics import profit_factor

DEFAULT_BASELINE_WIN_RATE = 50.0
MIN_RECOMMENDATION_TRADES = 5
DISABLE_BELOW_WIN_RATE = 40.0
ENABLE_ABOVE_WIN_RATE = 60.0
MIN_COMBINATION_TRADES = 10
COMBINATION_MIN_WIN_RATE = 55.0
COMBINATION_MIN_PROFIT_FACTOR = 1.2
MAX_COMBINATION_RECOMMENDATIONS = 3
MAX_RECOMMENDATION_CONFIDENCE = 90.0
MAX_COMBINATION_CONFIDENCE = 95.0


def combination_hash(rule_ids: Iterable[str]) -> str:
    """Stable 16 hex digit id for a set of rule ids, independent of order."""
    key = ",".join(sorted(rule_ids))
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def _sorted_rules(snapshot: TradeSnapshot) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Rule ids in sorted order with their names kept aligned."""
    ids = snapshot.active_rule_ids
    if len(snapshot.rule_names) != len(ids):
        return tuple(sorted(ids)), snapshot.rule_names
    pairs = sorted(zip(ids, snapshot.rule_names, strict=True))
    return tuple(rule_id for rule_id, _ in pairs), tuple(name for _, name in pairs)


def performance_score(total_trades: int, win_rate: float, factor: float) -> int:
    """0-100 score from sample size, win rate and profit factor."""
    sample_size_bonus = min(20, total_trades)
    win_rate_score = min(40.0, win_rate * 0.5)
    profit_factor_score = min(40.0, factor * 20)
    return min(100, round(sample_size_bonus + win_rate_score + profit_factor_score))


def calculate_rule_stats(trades: Sequence[TradeSnapshot]) -> RulePerformanceStats:
    """
    Aggregate the completed trades among trades.

    Trades with no P/L yet are ignored. Break-even trades count as
    neither winners nor losers.
    """
    completed = [t for t in trades if t.is_completed]
    if not completed:
        return RulePerformanceStats()

    profit_losses = [t.profit_loss or 0.0 for t in completed]
    winners = [pl for pl in profit_losses if pl > 0]
    losers = [pl for pl in profit_losses if pl < 0]

    gross_profit = sum(winners)
    gross_loss = abs(sum(losers))
    factor = profit_factor(gross_profit, gross_loss)
    win_rate = len(winners) / len(completed) * 100

    holds = [t.hold_duration_seconds for t in completed if t.hold_duration_seconds]
    created = [t.created_at for t in completed]

    return RulePerformanceStats(
        total_trades=len(completed),
        winning_trades=len(winners),
        losing_trades=len(losers),
        win_rate=win_rate,
        total_profit_loss=sum(profit_losses),
        average_profit=gross_profit / len(winners) if winners else 0.0,
        average_loss=gross_loss / len(losers) if losers else 0.0,
        profit_factor=factor,
        best_trade=max(profit_losses),
        worst_trade=min(profit_losses),
        average_hold_seconds=round(sum(holds) / len(holds)) if holds else 0,
        first_trade_at=min(created),
        last_trade_at=max(created),
        performance_score=performance_score(len(completed), win_rate, factor),
    )


class PerformanceAnalyzer:
    """Builds per-rule and per-combination rollups with recommendations."""

    def analyze(
        self, snapshots: Sequence[TradeSnapshot], active_rule_ids: Iterable[str]
    ) -> PerformanceReport:
        """
        Analyze trade snapshots against the currently active rules.

        Args:
            snapshots: Trade snapshots, completed or not
            active_rule_ids: Ids of the rules the user has enabled now

        Returns:
            Rule stats, combination stats, baseline win rate and recommendations
        """
        active = set(active_rule_ids)
        completed = [s for s in snapshots if s.is_completed]

        rule_stats = self.rule_stats(completed)
        baseline = self.baseline_win_rate(completed)
        combinations = self.combination_stats(completed, baseline)

        recommendations = self._rule_recommendations(rule_stats, active)
        recommendations += self._combination_recommendations(combinations, active, baseline)

        logger.info(
            f"Analyzed {len(completed)} completed trades: {len(rule_stats)} rules, "
            f"{len(combinations)} combinations, {len(recommendations)} recommendations"
        )
        return PerformanceReport(
            rule_stats=rule_stats,
            combinations=combinations,
            baseline_win_rate=baseline,
            recommendations=recommendations,
        )

    def rule_stats(self, snapshots: Sequence[TradeSnapshot]) -> list[RulePerformanceStats]:
        """Stats for every rule that was active in at least one snapshot."""
        grouped: dict[str, list[TradeSnapshot]] = {}
        names: dict[str, str] = {}
        for snapshot in snapshots:
            for position, rule_id in enumerate(snapshot.active_rule_ids):
                grouped.setdefault(rule_id, []).append(snapshot)
                if rule_id not in names:
                    names[rule_id] = (
                        snapshot.rule_names[position]
                        if position < len(snapshot.rule_names)
                        else "Unknown"
                    )

        return [
            replace(calculate_rule_stats(trades), rule_id=rule_id, rule_name=names[rule_id])
            for rule_id, trades in grouped.items()
        ]

    def baseline_win_rate(self, snapshots: Sequence[TradeSnapshot]) -> float:
        """Win rate of trades taken with no active rule; 50 when there are none."""
        baseline = [s for s in snapshots if not s.active_rule_ids]
        if not baseline:
            return DEFAULT_BASELINE_WIN_RATE
        return calculate_rule_stats(baseline).win_rate

    def combination_stats(
        self, snapshots: Sequence[TradeSnapshot], baseline_win_rate: float
    ) -> list[CombinationStats]:
        """Stats per exact set of active rules."""
        grouped: dict[str, list[TradeSnapshot]] = {}
        for snapshot in snapshots:
            if not snapshot.active_rule_ids:
                continue
            grouped.setdefault(combination_hash(snapshot.active_rule_ids), []).append(snapshot)

        combinations = []
        for key, trades in grouped.items():
            stats = calculate_rule_stats(trades)
            rule_ids, rule_names = _sorted_rules(trades[0])
            combinations.append(
                CombinationStats(
                    combination_hash=key,
                    rule_ids=rule_ids,
                    rule_names=rule_names,
                    stats=stats,
                    improvement_vs_baseline_percent=stats.win_rate - baseline_win_rate,
                    sample_size_sufficient=len(trades) >= MIN_COMBINATION_TRADES,
                    confidence_level=min(MAX_COMBINATION_CONFIDENCE, 50.0 + len(trades) * 2),
                )
            )
        return combinations

    def _rule_recommendations(
        self, rule_stats: Sequence[RulePerformanceStats], active: set[str]
    ) -> list[Recommendation]:
        recommendations = []
        for stats in rule_stats:
            if stats.total_trades < MIN_RECOMMENDATION_TRADES:
                continue

            confidence = min(MAX_RECOMMENDATION_CONFIDENCE, 50.0 + stats.total_trades * 2)
            supporting = {
                "trades_analyzed": stats.total_trades,
                "win_rate": stats.win_rate,
                "profit_factor": stats.profit_factor,
                "total_profit": stats.total_profit_loss,
            }

            if stats.rule_id in active and stats.win_rate < DISABLE_BELOW_WIN_RATE:
                recommendations.append(
                    Recommendation(
                        recommendation_type=RecommendationType.DISABLE_RULE,
                        rule_id=stats.rule_id,
                        reasoning=(
                            f"Rule '{stats.rule_name}' won only {stats.win_rate:.1f}% of "
                            f"{stats.total_trades} trades. Consider disabling it."
                        ),
                        expected_improvement_percent=abs(stats.win_rate - 50),
                        confidence_score=confidence,
                        supporting_data=supporting,
                    )
                )
            elif stats.rule_id not in active and stats.win_rate > ENABLE_ABOVE_WIN_RATE:
                recommendations.append(
                    Recommendation(
                        recommendation_type=RecommendationType.ENABLE_RULE,
                        rule_id=stats.rule_id,
                        reasoning=(
                            f"Rule '{stats.rule_name}' has won {stats.win_rate:.1f}% of its "
                            f"trades historically. It is currently inactive."
                        ),
                        expected_improvement_percent=stats.win_rate - 50,
                        confidence_score=confidence,
                        supporting_data=supporting,
                    )
                )
        return recommendations

    def _combination_recommendations(
        self,
        combinations: Sequence[CombinationStats],
        active: set[str],
        baseline_win_rate: float,
    ) -> list[Recommendation]:
        active_hash = combination_hash(active)
        candidates = sorted(
            (
                c
                for c in combinations
                if c.stats.total_trades >= MIN_COMBINATION_TRADES
                and c.combination_hash != active_hash
            ),
            key=lambda c: c.stats.performance_score,
            reverse=True,
        )[:MAX_COMBINATION_RECOMMENDATIONS]

        recommendations = []
        for combo in candidates:
            stats = combo.stats
            if (
                stats.win_rate <= COMBINATION_MIN_WIN_RATE
                or stats.profit_factor <= COMBINATION_MIN_PROFIT_FACTOR
            ):
                continue
            recommendations.append(
                Recommendation(
                    recommendation_type=RecommendationType.TRY_COMBINATION,
                    rule_ids=combo.rule_ids,
                    reasoning=(
                        f"The combination {' + '.join(combo.rule_names)} has won "
                        f"{stats.win_rate:.1f}% of {stats.total_trades} trades."
                    ),
                    expected_improvement_percent=stats.win_rate - baseline_win_rate,
                    confidence_score=min(
                        MAX_RECOMMENDATION_CONFIDENCE, float(stats.performance_score)
                    ),
                    supporting_data={
                        "trades_analyzed": stats.total_trades,
                        "win_rate": stats.win_rate,
                        "profit_factor": stats.profit_factor,
                        "total_profit": stats.total_profit_loss,
                        "rules_in_combination": list(combo.rule_names),
                    },
                )
            )
        return recommendations
