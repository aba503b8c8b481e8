"""
Signal service.
"""

from tradesim.core.interfaces.collaborators import PriceHistoryStore
from tradesim.core.models.pattern import Signal
from tradesim.core.utils.decorators import log_operation
from tradesim.engine.signals import SignalGenerator


class SignalService:
    """Generates a signal for the newest stored price."""

    def __init__(self, price_store: PriceHistoryStore):
        self.price_store = price_store
        self.generator = SignalGenerator()

    @log_operation
    def current_signal(self, previous_macd: tuple[float, float] | None = None) -> Signal | None:
        return self.generator.generate(self.price_store.load_series(), previous_macd)
