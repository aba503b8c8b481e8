"""
Trading rule domain models.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from tradesim.core.constants import DEFAULT_POSITION_SIZE, MAX_EQUITY_FRACTION_PER_POSITION
from tradesim.core.enums import LogicOperator, TradeDirection
from tradesim.core.exceptions.engine import ValidationError
from tradesim.core.utils.validation import validate_fraction, validate_percentage, validate_positive

from .conditions import Condition, condition_to_dict, parse_condition


@dataclass(frozen=True)
class PositionSizePolicy:
    """Fixed currency amount, capped at a fraction of current equity."""

    amount: float = DEFAULT_POSITION_SIZE
    max_equity_fraction: float = MAX_EQUITY_FRACTION_PER_POSITION

    def __post_init__(self) -> None:
        validate_positive(self.amount, "position size amount")
        validate_fraction(self.max_equity_fraction, "max_equity_fraction")

    def size_for(self, equity: float) -> float:
        """Currency size of a new position given current equity."""
        return min(self.amount, equity * self.max_equity_fraction)


@dataclass(frozen=True)
class RuleDefinition:
    """User-authored trading rule: conditions, direction and exits."""

    name: str
    conditions: tuple[Condition, ...]
    logic_operator: LogicOperator = LogicOperator.AND
    direction: TradeDirection = TradeDirection.BUY
    stop_loss_percent: float | None = None
    take_profit_percent: float | None = None
    position_size: PositionSizePolicy = field(default_factory=PositionSizePolicy)
    rule_id: str | None = None

    def __post_init__(self) -> None:
        """Validate rule data after initialization."""
        if not self.name or not self.name.strip():
            raise ValidationError("Rule name must not be empty")
        if not isinstance(self.conditions, tuple):
            object.__setattr__(self, "conditions", tuple(self.conditions))
        if not self.conditions:
            raise ValidationError(f"Rule '{self.name}' must have at least one condition")
        if self.stop_loss_percent is not None:
            validate_percentage(self.stop_loss_percent, "stop_loss_percent")
        if self.take_profit_percent is not None:
            validate_percentage(self.take_profit_percent, "take_profit_percent")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RuleDefinition":
        """
        Build a rule from its settings dictionary.

        Individual conditions are parsed leniently (see parse_condition);
        the rule-level fields are validated strictly.

        Raises:
            ValidationError: If rule-level fields are missing or invalid
        """
        try:
            conditions: Sequence[dict[str, Any]] = raw["conditions"]
            position = raw.get("position_size", DEFAULT_POSITION_SIZE)
            if isinstance(position, dict):
                policy = PositionSizePolicy(**position)
            else:
                policy = PositionSizePolicy(amount=float(position))

            return cls(
                name=raw["name"],
                conditions=tuple(parse_condition(c) for c in conditions),
                logic_operator=LogicOperator(str(raw.get("logic_operator", "AND")).upper()),
                direction=TradeDirection.from_string(str(raw.get("direction", "BUY"))),
                stop_loss_percent=raw.get("stop_loss_percent"),
                take_profit_percent=raw.get("take_profit_percent"),
                position_size=policy,
                rule_id=raw.get("rule_id", raw.get("id")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid rule definition: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert rule to dictionary."""
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "conditions": [condition_to_dict(c) for c in self.conditions],
            "logic_operator": self.logic_operator.value,
            "direction": self.direction.value,
            "stop_loss_percent": self.stop_loss_percent,
            "take_profit_percent": self.take_profit_percent,
            "position_size": {
                "amount": self.position_size.amount,
                "max_equity_fraction": self.position_size.max_equity_fraction,
            },
        }
