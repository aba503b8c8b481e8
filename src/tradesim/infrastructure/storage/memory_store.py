"""
In-memory collaborator implementations.

Thread-safe reference stores used by the API, the scripts and the
tests. Every store guards its state with an RLock.
"""

import uuid
from collections import deque
from collections.abc import Sequence
from datetime import datetime
from threading import RLock
from typing import Any

from cachetools import LRUCache
from loguru import logger

from tradesim.core.constants import MAX_RECORDED_EVENTS, MAX_STORED_BACKTEST_RESULTS
from tradesim.core.enums import OrderStatus
from tradesim.core.exceptions.engine import OrderNotFoundError, ValidationError
from tradesim.core.interfaces.collaborators import (
    AccountSettingsProvider,
    BacktestResultStore,
    NotificationDispatcher,
    OrderStore,
    PatternStore,
    PriceHistoryStore,
    TradeBooker,
)
from tradesim.core.models.backtest import BacktestResult
from tradesim.core.models.order import AccountSettings, ConditionalOrder, OrderNotification
from tradesim.core.models.pattern import PatternMatch
from tradesim.core.models.price import PriceSeries


class InMemoryPriceHistoryStore(PriceHistoryStore):
    """Holds one oldest-first price series."""

    def __init__(self, series: PriceSeries | None = None):
        self._series = series
        self._lock = RLock()

    def set_series(self, series: PriceSeries) -> None:
        """Replace the stored history."""
        with self._lock:
            self._series = series
        logger.info(f"Price history replaced: {series!r}")

    def load_series(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> PriceSeries:
        with self._lock:
            series = self._series
        if series is None:
            return PriceSeries.from_closes([])
        if start is None and end is None:
            return series
        return series.window(start, end)

    def latest_price(self) -> float | None:
        with self._lock:
            series = self._series
        if series is None or series.empty:
            return None
        return series.close_at(-1)


class InMemoryBacktestResultStore(BacktestResultStore):
    """Bounded LRU store of backtest results."""

    def __init__(self, max_results: int = MAX_STORED_BACKTEST_RESULTS):
        if max_results <= 0:
            raise ValueError("max_results must be positive")
        self._results: LRUCache[str, BacktestResult] = LRUCache(maxsize=max_results)
        self._lock = RLock()

    def save(self, result: BacktestResult) -> str:
        result_id = result.result_id or str(uuid.uuid4())
        with self._lock:
            self._results[result_id] = result.with_persistence(result_id, True)
        logger.debug(f"Stored backtest result {result_id} for rule '{result.rule_name}'")
        return result_id

    def get(self, result_id: str) -> BacktestResult | None:
        with self._lock:
            return self._results.get(result_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


class InMemoryOrderStore(OrderStore):
    """Conditional orders keyed by id."""

    def __init__(self) -> None:
        self._orders: dict[str, ConditionalOrder] = {}
        self._lock = RLock()

    def add(self, order: ConditionalOrder) -> None:
        with self._lock:
            if order.order_id in self._orders:
                raise ValidationError(f"Order already exists: {order.order_id}")
            self._orders[order.order_id] = order

    def get(self, order_id: str) -> ConditionalOrder | None:
        with self._lock:
            return self._orders.get(order_id)

    def save(self, order: ConditionalOrder) -> None:
        with self._lock:
            if order.order_id not in self._orders:
                raise OrderNotFoundError(order.order_id)
            self._orders[order.order_id] = order

    def pending_orders(self) -> list[ConditionalOrder]:
        with self._lock:
            return [o for o in self._orders.values() if o.status == OrderStatus.PENDING]

    def all_orders(self) -> list[ConditionalOrder]:
        with self._lock:
            return list(self._orders.values())


class InMemorySettingsProvider(AccountSettingsProvider):
    """Per-user settings; users without an entry get paper/auto disabled."""

    def __init__(self, settings: Sequence[AccountSettings] = ()):
        self._settings = {s.user_id: s for s in settings}
        self._lock = RLock()

    def set_settings(self, settings: AccountSettings) -> None:
        with self._lock:
            self._settings[settings.user_id] = settings

    def get_settings(self, user_id: str) -> AccountSettings:
        with self._lock:
            return self._settings.get(user_id) or AccountSettings(user_id=user_id)


class InMemoryTradeBooker(TradeBooker):
    """Records the most recent paper fills and live submissions instead of sending them."""

    def __init__(self, max_records: int = MAX_RECORDED_EVENTS) -> None:
        self.paper_trades: deque[dict[str, Any]] = deque(maxlen=max_records)
        self.live_submissions: deque[dict[str, Any]] = deque(maxlen=max_records)
        self._lock = RLock()

    def book_paper_trade(self, order: ConditionalOrder, price: float, at: datetime) -> None:
        trade = {
            "order_id": order.order_id,
            "user_id": order.user_id,
            "direction": order.direction.value,
            "quantity": order.quantity,
            "price": price,
            "executed_at": at.isoformat(),
        }
        with self._lock:
            self.paper_trades.append(trade)
        logger.info(f"Paper {order.direction} {order.quantity} @ {price:.2f} for {order.user_id}")

    def submit_live_order(
        self, order: ConditionalOrder, price: float, brokerage_account_id: str
    ) -> None:
        submission = {
            "order_id": order.order_id,
            "user_id": order.user_id,
            "brokerage_account_id": brokerage_account_id,
            "direction": order.direction.value,
            "quantity": order.quantity,
            "price": price,
        }
        with self._lock:
            self.live_submissions.append(submission)
        logger.info(f"Queued live order {order.order_id} for account {brokerage_account_id}")


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Logs notifications and keeps the most recent ones for inspection."""

    def __init__(self, max_records: int = MAX_RECORDED_EVENTS) -> None:
        self.sent: deque[OrderNotification] = deque(maxlen=max_records)
        self._lock = RLock()

    def dispatch(self, notification: OrderNotification) -> None:
        with self._lock:
            self.sent.append(notification)
        logger.info(f"Notify {notification.user_id}: {notification.title} - {notification.message}")


class InMemoryPatternStore(PatternStore):
    """Pattern occurrences unique on (pattern_type, end_time)."""

    def __init__(self) -> None:
        self._matches: dict[tuple, PatternMatch] = {}
        self._lock = RLock()

    def upsert_many(self, matches: Sequence[PatternMatch]) -> int:
        inserted = 0
        with self._lock:
            for match in matches:
                if match.dedup_key in self._matches:
                    continue
                self._matches[match.dedup_key] = match
                inserted += 1
        logger.debug(f"Stored {inserted} of {len(matches)} pattern matches")
        return inserted

    def all_matches(self) -> list[PatternMatch]:
        with self._lock:
            return list(self._matches.values())
