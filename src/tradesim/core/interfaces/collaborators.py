"""
Collaborator interfaces.

The engine never touches storage, brokers or notification transports
directly; services receive these collaborators instead.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from tradesim.core.models.backtest import BacktestResult
from tradesim.core.models.order import AccountSettings, ConditionalOrder, OrderNotification
from tradesim.core.models.pattern import PatternMatch
from tradesim.core.models.price import PriceSeries


class PriceHistoryStore(ABC):
    """Abstract interface for historical price access."""

    @abstractmethod
    def load_series(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> PriceSeries:
        """Load the oldest-first price series between start and end (inclusive)."""
        pass

    @abstractmethod
    def latest_price(self) -> float | None:
        """Most recent close, or None when no price is known."""
        pass


class BacktestResultStore(ABC):
    """Abstract interface for backtest result persistence."""

    @abstractmethod
    def save(self, result: BacktestResult) -> str:
        """Persist a result and return its id."""
        pass

    @abstractmethod
    def get(self, result_id: str) -> BacktestResult | None:
        """Fetch a stored result."""
        pass


class OrderStore(ABC):
    """Abstract interface for conditional order persistence."""

    @abstractmethod
    def add(self, order: ConditionalOrder) -> None:
        """Store a new order."""
        pass

    @abstractmethod
    def get(self, order_id: str) -> ConditionalOrder | None:
        """Fetch an order by id."""
        pass

    @abstractmethod
    def save(self, order: ConditionalOrder) -> None:
        """Persist the current state of an existing order."""
        pass

    @abstractmethod
    def pending_orders(self) -> list[ConditionalOrder]:
        """All orders currently in PENDING status."""
        pass


class AccountSettingsProvider(ABC):
    """Abstract interface for per-user execution settings."""

    @abstractmethod
    def get_settings(self, user_id: str) -> AccountSettings:
        """Settings for user_id; defaults when the user has none."""
        pass


class TradeBooker(ABC):
    """Abstract interface for booking triggered orders."""

    @abstractmethod
    def book_paper_trade(self, order: ConditionalOrder, price: float, at: datetime) -> None:
        """Record a simulated fill."""
        pass

    @abstractmethod
    def submit_live_order(
        self, order: ConditionalOrder, price: float, brokerage_account_id: str
    ) -> None:
        """Hand a triggered order to a brokerage account."""
        pass


class NotificationDispatcher(ABC):
    """Abstract interface for user notifications."""

    @abstractmethod
    def dispatch(self, notification: OrderNotification) -> None:
        """Deliver one notification."""
        pass


class PatternStore(ABC):
    """Abstract interface for pattern occurrence persistence."""

    @abstractmethod
    def upsert_many(self, matches: Sequence[PatternMatch]) -> int:
        """Store matches, ignoring ones already stored. Returns the number inserted."""
        pass
