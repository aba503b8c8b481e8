"""
Pydantic schemas for API request/response models.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from tradesim.core.constants import (
    DEFAULT_INITIAL_CAPITAL,
    DEFAULT_POSITION_SIZE,
    MAX_EQUITY_FRACTION_PER_POSITION,
    MAX_INITIAL_CAPITAL,
    MIN_INITIAL_CAPITAL,
)
from tradesim.core.enums import LogicOperator, OrderType, TradeDirection
from tradesim.core.models.conditions import parse_condition
from tradesim.core.models.performance import TradeSnapshot
from tradesim.core.models.rule import PositionSizePolicy, RuleDefinition


class RuleRequest(BaseModel):
    """Trading rule as submitted by a client."""

    name: str = Field(..., min_length=1, description="Rule name")
    conditions: list[dict[str, Any]] = Field(..., min_length=1, description="Raw conditions")
    logic_operator: LogicOperator = Field(default=LogicOperator.AND)
    direction: TradeDirection = Field(default=TradeDirection.BUY)
    stop_loss_percent: float | None = Field(default=None, gt=0, le=100)
    take_profit_percent: float | None = Field(default=None, gt=0, le=100)
    position_size: float = Field(default=DEFAULT_POSITION_SIZE, gt=0)
    max_equity_fraction: float = Field(default=MAX_EQUITY_FRACTION_PER_POSITION, gt=0, le=1)
    rule_id: str | None = None

    def to_domain(self) -> RuleDefinition:
        """Convert to a RuleDefinition; malformed conditions become unsupported ones."""
        return RuleDefinition(
            name=self.name,
            conditions=tuple(parse_condition(c) for c in self.conditions),
            logic_operator=self.logic_operator,
            direction=self.direction,
            stop_loss_percent=self.stop_loss_percent,
            take_profit_percent=self.take_profit_percent,
            position_size=PositionSizePolicy(
                amount=self.position_size, max_equity_fraction=self.max_equity_fraction
            ),
            rule_id=self.rule_id,
        )


class PeriodRequest(BaseModel):
    """Optional inclusive time window."""

    period_start: datetime | None = Field(default=None, description="Window start")
    period_end: datetime | None = Field(default=None, description="Window end")

    @field_validator("period_end")
    @classmethod
    def validate_date_range(cls, v: datetime | None, info) -> datetime | None:
        """Validate that period_end is after period_start."""
        start = info.data.get("period_start")
        if v is not None and start is not None and v <= start:
            raise ValueError("period_end must be after period_start")
        return v


class BacktestRequest(PeriodRequest):
    """Request model for backtest submission."""

    rule: RuleRequest
    initial_capital: float = Field(
        default=DEFAULT_INITIAL_CAPITAL,
        ge=MIN_INITIAL_CAPITAL,
        le=MAX_INITIAL_CAPITAL,
        description="Starting capital",
    )


class PatternScanRequest(PeriodRequest):
    """Request model for a pattern scan."""


class OrderRequest(BaseModel):
    """Request model for conditional order creation."""

    user_id: str = Field(..., min_length=1)
    order_type: OrderType
    direction: TradeDirection
    quantity: float = Field(..., gt=0)
    trigger_price: float | None = Field(default=None, gt=0)
    limit_price: float | None = Field(default=None, gt=0)
    trailing_percent: float | None = Field(default=None, gt=0, le=100)
    expires_at: datetime | None = None


class TickRequest(BaseModel):
    """Request model for processing one price tick; latest stored price when omitted."""

    current_price: float | None = Field(default=None, gt=0)
    now: datetime | None = None


class TradeSnapshotModel(BaseModel):
    """One trade with the rules active when it was opened."""

    trade_id: str
    active_rule_ids: list[str] = Field(default_factory=list)
    rule_names: list[str] = Field(default_factory=list)
    profit_loss: float | None = None
    profit_loss_percent: float | None = None
    hold_duration_seconds: int | None = Field(default=None, ge=0)
    created_at: datetime

    def to_domain(self) -> TradeSnapshot:
        return TradeSnapshot(
            trade_id=self.trade_id,
            active_rule_ids=tuple(self.active_rule_ids),
            rule_names=tuple(self.rule_names),
            profit_loss=self.profit_loss,
            created_at=self.created_at,
            profit_loss_percent=self.profit_loss_percent,
            hold_duration_seconds=self.hold_duration_seconds,
        )


class PerformanceRequest(BaseModel):
    """Request model for rule performance analysis."""

    snapshots: list[TradeSnapshotModel]
    active_rule_ids: list[str] = Field(default_factory=list)


class SignalRequest(BaseModel):
    """MACD and signal line of the previous sample; read from history when omitted."""

    previous_macd: float | None = None
    previous_signal: float | None = None

    def previous(self) -> tuple[float, float] | None:
        if self.previous_macd is None or self.previous_signal is None:
            return None
        return (self.previous_macd, self.previous_signal)


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str
    message: str
    details: dict | None = None
