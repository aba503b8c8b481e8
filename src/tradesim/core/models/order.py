"""
Conditional order domain models.

A ConditionalOrder is mutable: the order engine updates its trailing
state and moves it through the status lifecycle. Every status change
goes through a transition method, which rejects illegal moves.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from tradesim.core.enums import OrderStatus, OrderType, TradeDirection
from tradesim.core.exceptions.engine import OrderStateError, ValidationError
from tradesim.core.utils.validation import validate_percentage, validate_positive


@dataclass(frozen=True)
class ExecutionResult:
    """Fill details recorded when an order triggers."""

    triggered_price: float
    triggered_at: datetime
    order_type: OrderType
    direction: TradeDirection
    quantity: float
    paper_mode: bool
    auto_executed: bool
    simulated: bool
    peak_price: float | None = None
    trough_price: float | None = None
    initial_trigger: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert execution result to dictionary."""
        return {
            "triggered_price": self.triggered_price,
            "triggered_at": self.triggered_at.isoformat(),
            "order_type": self.order_type.value,
            "direction": self.direction.value,
            "quantity": self.quantity,
            "paper_mode": self.paper_mode,
            "auto_executed": self.auto_executed,
            "simulated": self.simulated,
            "peak_price": self.peak_price,
            "trough_price": self.trough_price,
            "initial_trigger": self.initial_trigger,
        }


@dataclass(frozen=True)
class AccountSettings:
    """Per-user execution preferences."""

    user_id: str
    paper_trading_enabled: bool = False
    auto_trading_enabled: bool = False
    brokerage_account_id: str | None = None

    @property
    def can_auto_execute(self) -> bool:
        """Check if triggered orders may be sent to the live booker."""
        return self.auto_trading_enabled and self.brokerage_account_id is not None


@dataclass(frozen=True)
class OrderNotification:
    """Message handed to the notification dispatcher on trigger."""

    user_id: str
    order_id: str
    title: str
    message: str
    price: float


@dataclass
class ConditionalOrder:
    """A price-triggered order and its trailing-stop state."""

    order_id: str
    user_id: str
    order_type: OrderType
    direction: TradeDirection
    quantity: float
    trigger_price: float | None = None
    limit_price: float | None = None
    trailing_percent: float | None = None
    peak_price: float | None = None
    trough_price: float | None = None
    initial_trigger_price: float | None = None
    status: OrderStatus = OrderStatus.PENDING
    expires_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    triggered_at: datetime | None = None
    executed_at: datetime | None = None
    execution_result: ExecutionResult | None = None

    def __post_init__(self) -> None:
        """Validate order data after initialization."""
        validate_positive(self.quantity, "quantity")
        for name in ("trigger_price", "limit_price"):
            value = getattr(self, name)
            if value is not None:
                validate_positive(value, name)
        if self.trailing_percent is not None:
            validate_percentage(self.trailing_percent, "trailing_percent")

    @classmethod
    def create(
        cls,
        user_id: str,
        order_type: OrderType,
        direction: TradeDirection,
        quantity: float,
        trigger_price: float | None = None,
        limit_price: float | None = None,
        trailing_percent: float | None = None,
        expires_at: datetime | None = None,
        order_id: str | None = None,
    ) -> "ConditionalOrder":
        """
        Factory method to create a new PENDING order.

        Raises:
            ValidationError: If a price field required by order_type is missing
        """
        if order_type.requires_trigger_price and trigger_price is None:
            raise ValidationError(f"{order_type} orders require a trigger_price")
        if order_type.requires_limit_price and limit_price is None:
            raise ValidationError(f"{order_type} orders require a limit_price")
        if order_type.is_trailing and trailing_percent is None:
            raise ValidationError(f"{order_type} orders require a trailing_percent")

        return cls(
            order_id=order_id or str(uuid.uuid4()),
            user_id=user_id,
            order_type=order_type,
            direction=direction,
            quantity=quantity,
            trigger_price=trigger_price,
            limit_price=limit_price,
            trailing_percent=trailing_percent,
            expires_at=expires_at,
        )

    @property
    def is_pending(self) -> bool:
        """Check if the order is still waiting for its trigger."""
        return self.status == OrderStatus.PENDING

    def _transition(self, target: OrderStatus) -> None:
        if not self.status.can_transition_to(target):
            raise OrderStateError(self.order_id, self.status.value, target.value)
        self.status = target

    def trigger(self, at: datetime) -> None:
        """Move PENDING -> TRIGGERED."""
        self._transition(OrderStatus.TRIGGERED)
        self.triggered_at = at

    def mark_executed(self, result: ExecutionResult, at: datetime) -> None:
        """Move TRIGGERED -> EXECUTED and record the fill."""
        self._transition(OrderStatus.EXECUTED)
        self.executed_at = at
        self.execution_result = result

    def expire(self) -> None:
        """Move PENDING -> EXPIRED."""
        self._transition(OrderStatus.EXPIRED)

    def cancel(self) -> None:
        """Move PENDING -> CANCELLED."""
        self._transition(OrderStatus.CANCELLED)

    def is_expired(self, now: datetime) -> bool:
        """Check if the expiry time has passed."""
        return self.expires_at is not None and self.expires_at < now

    def to_dict(self) -> dict[str, Any]:
        """Convert order to dictionary."""
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "order_type": self.order_type.value,
            "direction": self.direction.value,
            "quantity": self.quantity,
            "trigger_price": self.trigger_price,
            "limit_price": self.limit_price,
            "trailing_percent": self.trailing_percent,
            "peak_price": self.peak_price,
            "trough_price": self.trough_price,
            "initial_trigger_price": self.initial_trigger_price,
            "status": self.status.value,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat(),
            "triggered_at": self.triggered_at.isoformat() if self.triggered_at else None,
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "execution_result": (
                self.execution_result.to_dict() if self.execution_result else None
            ),
        }


@dataclass(frozen=True)
class OrderTickOutcome:
    """What one tick did to one order."""

    order_id: str
    previous_status: OrderStatus
    status: OrderStatus
    trailing_updated: bool = False
    error: str | None = None

    @property
    def triggered(self) -> bool:
        """Check if the order left PENDING through its trigger this tick."""
        return self.previous_status == OrderStatus.PENDING and self.status in (
            OrderStatus.TRIGGERED,
            OrderStatus.EXECUTED,
        )

    @property
    def expired(self) -> bool:
        return self.previous_status == OrderStatus.PENDING and self.status == OrderStatus.EXPIRED

    @property
    def executed(self) -> bool:
        return self.previous_status != OrderStatus.EXECUTED and self.status == OrderStatus.EXECUTED

    def to_dict(self) -> dict[str, Any]:
        """Convert outcome to dictionary."""
        return {
            "order_id": self.order_id,
            "previous_status": self.previous_status.value,
            "status": self.status.value,
            "triggered": self.triggered,
            "expired": self.expired,
            "executed": self.executed,
            "trailing_updated": self.trailing_updated,
            "error": self.error,
        }


@dataclass
class TickReport:
    """Aggregate result of processing one price tick."""

    current_price: float
    processed_at: datetime
    outcomes: list[OrderTickOutcome] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def triggered_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.triggered)

    @property
    def expired_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.expired)

    @property
    def trailing_updates(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.trailing_updated)

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "current_price": self.current_price,
            "processed_at": self.processed_at.isoformat(),
            "processed": len(self.outcomes),
            "triggered": self.triggered_count,
            "expired": self.expired_count,
            "trailing_updates": self.trailing_updates,
            "failures": dict(self.failures),
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }
