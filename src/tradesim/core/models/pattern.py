"""
Pattern scan and trading signal models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tradesim.core.enums import PatternDirection, PatternType, SignalStrength, SignalType
from tradesim.core.exceptions.engine import ValidationError


@dataclass(frozen=True)
class PatternMatch:
    """One occurrence of a technical setup in a price series."""

    pattern_type: PatternType
    start_index: int
    end_index: int
    start_time: datetime
    end_time: datetime
    confidence: float
    direction: PatternDirection
    entry_price: float
    target_price: float | None = None
    stop_loss: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValidationError(f"Confidence must be between 0 and 1, got {self.confidence}")
        if self.start_index > self.end_index:
            raise ValidationError("Pattern start_index must not be after end_index")

    @property
    def pattern_name(self) -> str:
        return self.pattern_type.display_name

    @property
    def dedup_key(self) -> tuple[PatternType, datetime]:
        return (self.pattern_type, self.end_time)

    def to_dict(self) -> dict[str, Any]:
        """Convert pattern match to dictionary."""
        return {
            "pattern_type": self.pattern_type.value,
            "pattern_name": self.pattern_name,
            "start_index": self.start_index,
            "end_index": self.end_index,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "confidence": self.confidence,
            "direction": self.direction.value,
            "entry_price": self.entry_price,
            "target_price": self.target_price,
            "stop_loss": self.stop_loss,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class Signal:
    """BUY/SELL recommendation for the newest sample of a series."""

    signal_type: SignalType
    strength: SignalStrength
    confidence: float
    probability_up: float
    probability_down: float
    current_price: float
    target_price: float
    stop_loss: float
    reasoning: str
    indicators: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert signal to dictionary."""
        return {
            "signal_type": self.signal_type.value,
            "strength": self.strength.value,
            "confidence": self.confidence,
            "probability_up": self.probability_up,
            "probability_down": self.probability_down,
            "current_price": self.current_price,
            "target_price": self.target_price,
            "stop_loss": self.stop_loss,
            "reasoning": self.reasoning,
            "indicators": self.indicators,
        }


@dataclass(frozen=True)
class PatternScanResult:
    """Matches found by one scan and how many of them were new to the store."""

    matches: list[PatternMatch]
    inserted: int
    data_points_analyzed: int

    def to_dict(self) -> dict[str, Any]:
        """Convert scan result to dictionary."""
        return {
            "patterns_found": len(self.matches),
            "patterns_inserted": self.inserted,
            "data_points_analyzed": self.data_points_analyzed,
            "patterns": [match.to_dict() for match in self.matches],
        }
