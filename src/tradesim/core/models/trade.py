"""
Simulated trade domain model.
Optimized for high-performance backtesting with float operations.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from tradesim.core.enums import ExitReason, TradeDirection
from tradesim.core.exceptions.engine import ValidationError


@dataclass(frozen=True)
class SimulatedTrade:
    """Represents one closed simulated position."""

    entry_time: datetime
    exit_time: datetime
    entry_price: float
    exit_price: float
    direction: TradeDirection
    size: float
    profit_loss: float
    profit_loss_percent: float
    hold_duration_seconds: int
    exit_reason: ExitReason

    def __post_init__(self) -> None:
        """Validate trade data after initialization."""
        if self.entry_price <= 0:
            raise ValidationError(f"Entry price must be positive, got {self.entry_price}")
        if self.exit_price <= 0:
            raise ValidationError(f"Exit price must be positive, got {self.exit_price}")
        if self.size <= 0:
            raise ValidationError(f"Size must be positive, got {self.size}")
        if self.exit_time < self.entry_time:
            raise ValidationError("Exit time must not be before entry time")
        if self.hold_duration_seconds < 0:
            raise ValidationError(
                f"Hold duration must be non-negative, got {self.hold_duration_seconds}"
            )

    @property
    def is_winner(self) -> bool:
        """Check if the trade made money. Break-even counts as a loser."""
        return self.profit_loss > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert trade to dictionary."""
        return {
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "direction": self.direction.value,
            "size": self.size,
            "profit_loss": self.profit_loss,
            "profit_loss_percent": self.profit_loss_percent,
            "hold_duration_seconds": self.hold_duration_seconds,
            "exit_reason": self.exit_reason.value,
        }
