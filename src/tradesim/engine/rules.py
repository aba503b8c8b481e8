"""
Rule evaluation: combines condition results with the rule's operator.
"""

from tradesim.core.constants import RULE_WARMUP_INDEX
from tradesim.core.models.price import PriceSeries
from tradesim.core.models.rule import RuleDefinition

from .conditions import ConditionEvaluator


class RuleEvaluator:
    """Decides whether a rule fires at a given index."""

    def __init__(self, condition_evaluator: ConditionEvaluator | None = None):
        self.condition_evaluator = condition_evaluator or ConditionEvaluator()

    def evaluate_conditions(
        self, rule: RuleDefinition, series: PriceSeries, index: int
    ) -> list[bool]:
        """Evaluate every condition of rule at index, in declaration order."""
        return [
            self.condition_evaluator.evaluate(condition, series, index)
            for condition in rule.conditions
        ]

    def evaluate(self, rule: RuleDefinition, series: PriceSeries, index: int) -> bool:
        """
        Check if rule fires at index.

        Always False before the indicator warm-up index. All conditions
        are evaluated, then combined with AND (all) or OR (any).
        """
        if index < RULE_WARMUP_INDEX:
            return False
        return rule.logic_operator.combine(self.evaluate_conditions(rule, series, index))
