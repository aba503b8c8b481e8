"""
Pattern and signal enumerations.
"""

from enum import StrEnum


class PatternType(StrEnum):
    """Technical setups recognised by the pattern scanner."""

    RSI_OVERSOLD_BOUNCE = "RSI_OVERSOLD_BOUNCE"
    MACD_GOLDEN_CROSS = "MACD_GOLDEN_CROSS"
    VOLATILITY_SQUEEZE = "VOLATILITY_SQUEEZE"
    MEAN_REVERSION = "MEAN_REVERSION"
    MOMENTUM_BREAKOUT = "MOMENTUM_BREAKOUT"
    DOUBLE_BOTTOM = "DOUBLE_BOTTOM"

    @property
    def display_name(self) -> str:
        """Human readable pattern name."""
        return self.value.replace("_", " ").title().replace("Rsi", "RSI").replace("Macd", "MACD")


class PatternDirection(StrEnum):
    """Expected move after a pattern completes."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"


class SignalType(StrEnum):
    """Trading recommendation derived from indicator thresholds."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class SignalStrength(StrEnum):
    """How strongly the indicators agree on a signal."""

    STRONG = "STRONG"
    MODERATE = "MODERATE"
    WEAK = "WEAK"


class RecommendationType(StrEnum):
    """Rule recommendation records produced by the performance rollup."""

    ENABLE_RULE = "enable_rule"
    DISABLE_RULE = "disable_rule"
    TRY_COMBINATION = "try_combination"
