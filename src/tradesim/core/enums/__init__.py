"""
Core enumerations for the trading engine.

This module provides centralized enumerations for domain concepts
like trade directions, condition operators, order types and patterns.
"""

from .conditions import ComparisonOperator, ConditionKind, MacdSignal, PriceDirection
from .indicators import CalculatorMode, RsiSmoothing, SeriesOrder
from .orders import OrderStatus, OrderType
from .patterns import (
    PatternDirection,
    PatternType,
    RecommendationType,
    SignalStrength,
    SignalType,
)
from .trading import ExitReason, LogicOperator, TradeDirection

__all__ = [
    "CalculatorMode",
    "ComparisonOperator",
    "ConditionKind",
    "ExitReason",
    "LogicOperator",
    "MacdSignal",
    "OrderStatus",
    "OrderType",
    "PatternDirection",
    "PatternType",
    "PriceDirection",
    "RecommendationType",
    "RsiSmoothing",
    "SeriesOrder",
    "SignalStrength",
    "SignalType",
    "TradeDirection",
]
