"""
Pattern scan service.
"""

from datetime import datetime

from tradesim.core.constants import MIN_PATTERN_DATA_POINTS
from tradesim.core.exceptions.engine import InsufficientDataError
from tradesim.core.interfaces.collaborators import PatternStore, PriceHistoryStore
from tradesim.core.models.pattern import PatternScanResult
from tradesim.core.utils.decorators import log_operation
from tradesim.engine.patterns import PatternDetector


class PatternService:
    """Scans stored price history and records new pattern occurrences."""

    def __init__(self, price_store: PriceHistoryStore, pattern_store: PatternStore):
        self.price_store = price_store
        self.pattern_store = pattern_store
        self.detector = PatternDetector()

    @log_operation
    def scan(
        self, period_start: datetime | None = None, period_end: datetime | None = None
    ) -> PatternScanResult:
        """
        Detect patterns over the stored history.

        Raises:
            InsufficientDataError: If fewer than 50 price points are available
        """
        series = self.price_store.load_series(period_start, period_end)
        if len(series) < MIN_PATTERN_DATA_POINTS:
            raise InsufficientDataError(MIN_PATTERN_DATA_POINTS, len(series), "pattern scan")

        matches = self.detector.detect(series)
        inserted = self.pattern_store.upsert_many(matches)
        return PatternScanResult(
            matches=matches, inserted=inserted, data_points_analyzed=len(series)
        )
