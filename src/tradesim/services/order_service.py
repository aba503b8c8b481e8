"""
Conditional order service.

Creates and cancels orders and applies price ticks to every pending
order through the ConditionalOrderEngine.
"""

from datetime import UTC, datetime

from loguru import logger

from tradesim.core.enums import OrderType, TradeDirection
from tradesim.core.exceptions.engine import OrderNotFoundError, OrderProcessingError
from tradesim.core.interfaces.collaborators import (
    AccountSettingsProvider,
    NotificationDispatcher,
    OrderStore,
    PriceHistoryStore,
    TradeBooker,
)
from tradesim.core.models.order import ConditionalOrder, TickReport
from tradesim.core.utils.decorators import log_operation
from tradesim.engine.conditional_orders import ConditionalOrderEngine


class OrderService:
    """Entry points for conditional order management."""

    def __init__(
        self,
        order_store: OrderStore,
        price_store: PriceHistoryStore,
        settings_provider: AccountSettingsProvider,
        booker: TradeBooker,
        notifier: NotificationDispatcher,
    ):
        self.order_store = order_store
        self.price_store = price_store
        self.settings_provider = settings_provider
        self.engine = ConditionalOrderEngine(booker, notifier)

    @log_operation
    def create_order(
        self,
        user_id: str,
        order_type: OrderType,
        direction: TradeDirection,
        quantity: float,
        trigger_price: float | None = None,
        limit_price: float | None = None,
        trailing_percent: float | None = None,
        expires_at: datetime | None = None,
    ) -> ConditionalOrder:
        """Create and store a PENDING order."""
        order = ConditionalOrder.create(
            user_id=user_id,
            order_type=order_type,
            direction=direction,
            quantity=quantity,
            trigger_price=trigger_price,
            limit_price=limit_price,
            trailing_percent=trailing_percent,
            expires_at=expires_at,
        )
        self.order_store.add(order)
        return order

    def get_order(self, order_id: str) -> ConditionalOrder:
        """
        Fetch an order.

        Raises:
            OrderNotFoundError: If no order has order_id
        """
        order = self.order_store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    @log_operation
    def cancel_order(self, order_id: str) -> ConditionalOrder:
        """
        Cancel a PENDING order.

        Raises:
            OrderNotFoundError: If no order has order_id
            OrderStateError: If the order is no longer PENDING
        """
        order = self.get_order(order_id)
        order.cancel()
        self.order_store.save(order)
        return order

    @log_operation
    def process_tick(
        self, current_price: float | None = None, now: datetime | None = None
    ) -> TickReport:
        """
        Apply one price tick to every pending order.

        Uses the latest stored price when current_price is omitted. Order
        state is saved for every processed order, including ones whose
        processing failed part way.

        Raises:
            OrderProcessingError: If no current price is available
        """
        price = current_price if current_price is not None else self.price_store.latest_price()
        if price is None:
            raise OrderProcessingError("No current price available for order tick")

        now = now or datetime.now(UTC)
        orders = self.order_store.pending_orders()
        report = self.engine.process_tick(orders, price, now, self.settings_provider.get_settings)

        for order in orders:
            try:
                self.order_store.save(order)
            except OrderNotFoundError as e:
                logger.error(f"Could not save order {order.order_id} after tick: {e}")
                report.failures.setdefault(order.order_id, str(e))

        return report
