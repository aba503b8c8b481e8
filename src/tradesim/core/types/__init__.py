"""
Core type definitions and utilities.
"""

# Re-export financial utilities for easy access
from .financial import (
    FINANCIAL_DECIMALS,
    HUNDRED,
    PERCENTAGE_DECIMALS,
    PRICE_DECIMALS,
    ZERO,
    directional_percent_move,
    percent_change,
    profit_from_percent,
    round_amount,
    round_percentage,
    round_price,
)

__all__ = [
    # Utility functions
    "round_price",
    "round_amount",
    "round_percentage",
    "percent_change",
    "directional_percent_move",
    "profit_from_percent",
    # Constants
    "FINANCIAL_DECIMALS",
    "PERCENTAGE_DECIMALS",
    "PRICE_DECIMALS",
    "ZERO",
    "HUNDRED",
]
