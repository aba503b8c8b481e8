"""
Conditional order engine.

Processes pending conditional orders against the current price: expiry,
trigger evaluation per order type, trailing-stop maintenance, execution
routing and notification.
"""

import math
from collections.abc import Callable, Iterable
from datetime import datetime

from loguru import logger

from tradesim.core.enums import OrderType
from tradesim.core.exceptions.engine import OrderProcessingError
from tradesim.core.interfaces.collaborators import NotificationDispatcher, TradeBooker
from tradesim.core.models.order import (
    AccountSettings,
    ConditionalOrder,
    ExecutionResult,
    OrderNotification,
    OrderTickOutcome,
    TickReport,
)
from tradesim.core.types import HUNDRED

SettingsLookup = Callable[[str], AccountSettings]


def update_trailing_stop(order: ConditionalOrder, current_price: float) -> bool:
    """
    Advance the trailing state of a TRAILING_STOP order.

    SELL orders follow the peak, BUY orders follow the trough. A new
    trigger is committed only when none exists yet or it is tighter in
    the holder's favour.

    Returns:
        True if a new trigger price was committed
    """
    if order.trailing_percent is None:
        return False

    offset = order.trailing_percent / HUNDRED

    if order.direction.is_buy:
        if order.trough_price is None or current_price < order.trough_price:
            order.trough_price = current_price
        candidate = order.trough_price * (1 + offset)
        improves = order.trigger_price is None or candidate < order.trigger_price
    else:
        if order.peak_price is None or current_price > order.peak_price:
            order.peak_price = current_price
        candidate = order.peak_price * (1 - offset)
        improves = order.trigger_price is None or candidate > order.trigger_price

    if not improves:
        return False

    if order.initial_trigger_price is None:
        # A trigger supplied at creation counts as the starting one
        order.initial_trigger_price = (
            order.trigger_price if order.trigger_price is not None else candidate
        )
    order.trigger_price = candidate
    logger.debug(
        f"Trailing {order.direction} order {order.order_id}: trigger moved to {candidate:.4f}"
    )
    return True


def _stop_crossed(order: ConditionalOrder, current_price: float) -> bool:
    if order.trigger_price is None:
        return False
    if order.direction.is_buy:
        return current_price >= order.trigger_price
    return current_price <= order.trigger_price


def _limit_satisfied(order: ConditionalOrder, current_price: float) -> bool:
    if order.limit_price is None:
        return False
    if order.direction.is_buy:
        return current_price <= order.limit_price
    return current_price >= order.limit_price


def should_trigger(order: ConditionalOrder, current_price: float) -> bool:
    """
    Check if order triggers at current_price.

    Missing price fields never trigger. For trailing stops the committed
    trigger price is used, so call update_trailing_stop first.
    """
    match order.order_type:
        case OrderType.LIMIT:
            return _limit_satisfied(order, current_price)
        case OrderType.STOP | OrderType.TRAILING_STOP:
            return _stop_crossed(order, current_price)
        case OrderType.STOP_LIMIT:
            return _stop_crossed(order, current_price) and _limit_satisfied(order, current_price)
    return False


class ConditionalOrderEngine:
    """Applies one price tick to conditional orders."""

    def __init__(self, booker: TradeBooker, notifier: NotificationDispatcher):
        self.booker = booker
        self.notifier = notifier

    def process_order(
        self,
        order: ConditionalOrder,
        current_price: float,
        now: datetime,
        settings: AccountSettings,
    ) -> OrderTickOutcome:
        """
        Process one order for one tick.

        Orders that are not PENDING are left untouched. An order goes
        through at most one trigger transition per call.
        """
        previous_status = order.status
        if not order.is_pending:
            return OrderTickOutcome(order.order_id, previous_status, order.status)

        if order.is_expired(now):
            order.expire()
            logger.info(f"Order {order.order_id} expired")
            return OrderTickOutcome(order.order_id, previous_status, order.status)

        trailing_updated = False
        if order.order_type.is_trailing:
            trailing_updated = update_trailing_stop(order, current_price)

        if should_trigger(order, current_price):
            self._trigger(order, current_price, now, settings)

        return OrderTickOutcome(
            order.order_id, previous_status, order.status, trailing_updated=trailing_updated
        )

    def process_tick(
        self,
        orders: Iterable[ConditionalOrder],
        current_price: float,
        now: datetime,
        settings_lookup: SettingsLookup,
    ) -> TickReport:
        """
        Process every order for one tick.

        A failure on one order is logged and recorded in the report;
        other orders are still processed and state already committed on
        the failing order is kept.

        Raises:
            OrderProcessingError: If current_price is not a positive finite number
        """
        if not math.isfinite(current_price) or current_price <= 0:
            raise OrderProcessingError(f"Invalid current price for order tick: {current_price}")

        report = TickReport(current_price=current_price, processed_at=now)

        for order in orders:
            previous_status = order.status
            try:
                settings = settings_lookup(order.user_id)
                outcome = self.process_order(order, current_price, now, settings)
            except Exception as e:
                logger.exception(f"Failed to process order {order.order_id}: {e}")
                report.failures[order.order_id] = str(e)
                outcome = OrderTickOutcome(
                    order.order_id, previous_status, order.status, error=str(e)
                )
            report.outcomes.append(outcome)

        logger.info(
            f"Processed {len(report.outcomes)} orders at {current_price}: "
            f"{report.triggered_count} triggered, {report.expired_count} expired, "
            f"{report.trailing_updates} trailing updates, {len(report.failures)} failures"
        )
        return report

    def _trigger(
        self,
        order: ConditionalOrder,
        current_price: float,
        now: datetime,
        settings: AccountSettings,
    ) -> None:
        order.trigger(now)
        logger.info(
            f"Triggering order {order.order_id}: {order.order_type} {order.direction} "
            f"at {current_price}"
        )

        result = ExecutionResult(
            triggered_price=current_price,
            triggered_at=now,
            order_type=order.order_type,
            direction=order.direction,
            quantity=order.quantity,
            paper_mode=settings.paper_trading_enabled,
            auto_executed=settings.auto_trading_enabled,
            simulated=settings.paper_trading_enabled,
            peak_price=order.peak_price,
            trough_price=order.trough_price,
            initial_trigger=order.initial_trigger_price,
        )

        try:
            if settings.paper_trading_enabled:
                self.booker.book_paper_trade(order, current_price, now)
                order.mark_executed(result, now)
                logger.info(f"Paper trade executed for order {order.order_id}")
            elif settings.can_auto_execute:
                self.booker.submit_live_order(order, current_price, settings.brokerage_account_id)
                order.mark_executed(result, now)
                logger.info(f"Live order submitted for order {order.order_id}")
            else:
                logger.info(f"Order {order.order_id} awaits manual execution")
        finally:
            self.notifier.dispatch(
                OrderNotification(
                    user_id=order.user_id,
                    order_id=order.order_id,
                    title=f"{order.order_type} Order Triggered",
                    message=(
                        f"Your {order.direction} order was triggered at {current_price:.2f}"
                    ),
                    price=current_price,
                )
            )

