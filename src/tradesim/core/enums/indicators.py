"""
Indicator calculation mode enumerations.
"""

from enum import StrEnum


class SeriesOrder(StrEnum):
    """
    Ordering of a price sequence.

    Every calculator works on oldest-first data; newest-first input
    is reversed at the boundary.
    """

    OLDEST_FIRST = "oldest_first"
    NEWEST_FIRST = "newest_first"


class CalculatorMode(StrEnum):
    """
    How exponential averages are seeded.

    STREAMING seeds from the oldest value, so each value depends only
    on the samples before it. BATCH seeds from the SMA of the first
    period values and zero-fills the warm-up.
    """

    STREAMING = "streaming"
    BATCH = "batch"


class RsiSmoothing(StrEnum):
    """Averaging used for RSI gains and losses."""

    SIMPLE = "simple"  # Plain mean over the trailing window
    WILDER = "wilder"  # Recursive Wilder smoothing
