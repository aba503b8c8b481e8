"""
Rule condition domain models.

A condition is one of a closed set of frozen dataclasses. Raw
user-authored dictionaries are converted with parse_condition; anything
that cannot be understood becomes an UnsupportedCondition, which never
fires.
"""

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from tradesim.core.constants import NEUTRAL_RSI
from tradesim.core.enums import ComparisonOperator, ConditionKind, MacdSignal, PriceDirection
from tradesim.core.exceptions.engine import ValidationError
from tradesim.core.utils.validation import (
    validate_finite,
    validate_hour,
    validate_non_negative,
    validate_positive,
)


@dataclass(frozen=True)
class PriceChangeCondition:
    """Close moved by at least min_percent over the recent lookback."""

    direction: PriceDirection
    min_percent: float
    duration_seconds: int | None = None

    kind = ConditionKind.PRICE_CHANGE

    def __post_init__(self) -> None:
        validate_non_negative(self.min_percent, "min_percent")
        if self.duration_seconds is not None:
            validate_positive(self.duration_seconds, "duration_seconds")


@dataclass(frozen=True)
class RsiCondition:
    """RSI compared with, or crossing, a threshold."""

    operator: ComparisonOperator
    value: float

    kind = ConditionKind.RSI

    def __post_init__(self) -> None:
        validate_finite(self.value, "value")
        if not 0 <= self.value <= 100:
            raise ValidationError(f"RSI threshold must be between 0 and 100, got {self.value}")


@dataclass(frozen=True)
class MacdCondition:
    """MACD line crossing its signal, or histogram sign."""

    signal: MacdSignal

    kind = ConditionKind.MACD


@dataclass(frozen=True)
class TimeRangeCondition:
    """Sample hour falls inside [start_hour, end_hour]; no wraparound."""

    start_hour: int
    end_hour: int

    kind = ConditionKind.TIME_RANGE

    def __post_init__(self) -> None:
        validate_hour(self.start_hour, "start_hour")
        validate_hour(self.end_hour, "end_hour")
        if self.start_hour > self.end_hour:
            raise ValidationError(
                f"start_hour ({self.start_hour}) must not be after end_hour ({self.end_hour})"
            )


@dataclass(frozen=True)
class DayOfWeekCondition:
    """Sample falls on one of the given days, 0=Sunday ... 6=Saturday."""

    days: frozenset[int]

    kind = ConditionKind.DAY_OF_WEEK

    def __post_init__(self) -> None:
        if not self.days:
            raise ValidationError("days must not be empty")
        invalid = [day for day in self.days if not isinstance(day, int) or not 0 <= day <= 6]
        if invalid:
            raise ValidationError(
                f"days must be between 0 (Sunday) and 6 (Saturday), got {invalid}"
            )


@dataclass(frozen=True)
class UnsupportedCondition:
    """Condition that could not be parsed. Always evaluates false."""

    kind: str
    payload: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)
    reason: str = ""


Condition = (
    PriceChangeCondition
    | RsiCondition
    | MacdCondition
    | TimeRangeCondition
    | DayOfWeekCondition
    | UnsupportedCondition
)


OPERATOR_DIRECTIONS = {"gt": PriceDirection.UP, "lt": PriceDirection.DOWN}


def _first_set(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Value of the first key present with a non-null value."""
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


def _price_change_direction(raw: dict[str, Any]) -> PriceDirection:
    direction = raw.get("direction")
    if direction is not None:
        return PriceDirection(str(direction).lower())
    return OPERATOR_DIRECTIONS.get(str(raw.get("operator", "")).lower(), PriceDirection.ANY)


def _build_condition(kind: ConditionKind, raw: dict[str, Any]) -> Condition:
    """Construct the typed condition for kind from raw fields."""
    if kind == ConditionKind.PRICE_CHANGE:
        duration = _first_set(raw, "duration_seconds", "duration")
        # Zero thresholds fall through to the legacy keys
        min_percent = raw.get("min_percent") or raw.get("percent") or raw.get("value") or 0
        return PriceChangeCondition(
            direction=_price_change_direction(raw),
            min_percent=float(min_percent),
            duration_seconds=int(duration) if duration is not None else None,
        )
    if kind == ConditionKind.RSI:
        value = raw.get("value")
        return RsiCondition(
            operator=ComparisonOperator.from_string(str(raw["operator"])),
            value=float(value) if isinstance(value, int | float) else NEUTRAL_RSI,
        )
    if kind == ConditionKind.MACD:
        signal = _first_set(raw, "signal", "condition", "operator")
        return MacdCondition(signal=MacdSignal(str(signal)))
    if kind == ConditionKind.TIME_RANGE:
        return TimeRangeCondition(
            start_hour=int(_first_set(raw, "startHour", "start_hour", default=0)),
            end_hour=int(_first_set(raw, "endHour", "end_hour", default=23)),
        )
    return DayOfWeekCondition(days=frozenset(int(day) for day in raw["days"]))


def parse_condition(raw: dict[str, Any]) -> Condition:
    """
    Parse one user-authored condition dictionary.

    Unknown kinds, unknown operators and missing or malformed fields
    produce an UnsupportedCondition instead of raising.

    Args:
        raw: Dictionary with a "type" (or "kind") key and kind-specific fields

    Returns:
        Typed condition
    """
    kind_value = str(raw.get("type", raw.get("kind", "")))
    try:
        kind = ConditionKind(kind_value)
    except ValueError:
        logger.warning(f"Unknown condition kind '{kind_value}', condition will never fire")
        return UnsupportedCondition(kind=kind_value, payload=dict(raw), reason="unknown kind")

    try:
        return _build_condition(kind, raw)
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        logger.warning(f"Malformed {kind} condition ({e}), condition will never fire")
        return UnsupportedCondition(kind=kind_value, payload=dict(raw), reason=str(e))


def condition_to_dict(condition: Condition) -> dict[str, Any]:
    """Convert a condition back into its dictionary representation."""
    match condition:
        case PriceChangeCondition():
            result: dict[str, Any] = {
                "type": str(condition.kind),
                "direction": str(condition.direction),
                "min_percent": condition.min_percent,
            }
            if condition.duration_seconds is not None:
                result["duration_seconds"] = condition.duration_seconds
            return result
        case RsiCondition():
            return {
                "type": str(condition.kind),
                "operator": str(condition.operator),
                "value": condition.value,
            }
        case MacdCondition():
            return {"type": str(condition.kind), "signal": str(condition.signal)}
        case TimeRangeCondition():
            return {
                "type": str(condition.kind),
                "start_hour": condition.start_hour,
                "end_hour": condition.end_hour,
            }
        case DayOfWeekCondition():
            return {"type": str(condition.kind), "days": sorted(condition.days)}
        case UnsupportedCondition():
            return dict(condition.payload)
    raise ValidationError(f"Unknown condition type: {type(condition).__name__}")
