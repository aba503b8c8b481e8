"""
Price data infrastructure.

This module provides price loading, validation and technical indicator
calculation for historical market data.
"""

from .price_loader import load_price_csv
from .price_validator import PriceSeriesValidator
from .technical_indicators import TechnicalIndicatorsCalculator

__all__ = ["PriceSeriesValidator", "TechnicalIndicatorsCalculator", "load_price_csv"]
