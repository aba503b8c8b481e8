"""
Service wiring for the API.

The container is built once per application and stored on app.state;
route handlers receive it through get_container.
"""

from dataclasses import dataclass, field

from fastapi import Request

from tradesim.core.models.price import PriceSeries
from tradesim.engine.performance import PerformanceAnalyzer
from tradesim.infrastructure.storage.memory_store import (
    InMemoryBacktestResultStore,
    InMemoryOrderStore,
    InMemoryPatternStore,
    InMemoryPriceHistoryStore,
    InMemorySettingsProvider,
    InMemoryTradeBooker,
    LoggingNotificationDispatcher,
)
from tradesim.services.backtest_service import BacktestService
from tradesim.services.order_service import OrderService
from tradesim.services.pattern_service import PatternService
from tradesim.services.signal_service import SignalService


@dataclass
class ServiceContainer:
    """Collaborators and services shared by every request."""

    price_store: InMemoryPriceHistoryStore = field(default_factory=InMemoryPriceHistoryStore)
    result_store: InMemoryBacktestResultStore = field(default_factory=InMemoryBacktestResultStore)
    order_store: InMemoryOrderStore = field(default_factory=InMemoryOrderStore)
    pattern_store: InMemoryPatternStore = field(default_factory=InMemoryPatternStore)
    settings_provider: InMemorySettingsProvider = field(default_factory=InMemorySettingsProvider)
    booker: InMemoryTradeBooker = field(default_factory=InMemoryTradeBooker)
    notifier: LoggingNotificationDispatcher = field(default_factory=LoggingNotificationDispatcher)

    def __post_init__(self) -> None:
        self.backtests = BacktestService(self.price_store, self.result_store)
        self.orders = OrderService(
            self.order_store, self.price_store, self.settings_provider, self.booker, self.notifier
        )
        self.patterns = PatternService(self.price_store, self.pattern_store)
        self.signals = SignalService(self.price_store)
        self.performance = PerformanceAnalyzer()


def create_container(series: PriceSeries | None = None) -> ServiceContainer:
    """Build a container, optionally preloaded with price history."""
    return ServiceContainer(price_store=InMemoryPriceHistoryStore(series))


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the application's container."""
    return request.app.state.container
