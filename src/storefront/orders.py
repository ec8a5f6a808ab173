"""
Order lifecycle: checkout into an immutable order snapshot, then a guarded
status machine.

    pending --confirm--> confirmed --process--> processing --ship--> shipped --deliver--> delivered
    pending | confirmed | processing --cancel--> cancelled

``confirm`` additionally requires the payment to be recorded as paid.
``delivered`` and ``cancelled`` are terminal. An administrator may force any
status with ``update_status(..., override=True)`` unless the order is
cancelled. Orders are never deleted.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, Optional, Sequence, Tuple, Union

from db.models import (
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    Cart,
    CartItem,
    Order,
    OrderFilter,
    OrderItem,
    Page,
    ShippingAddress,
)
from db.stores import CustomerStore, OrderStore
from storefront.numbering import SequenceNumberGenerator
from utils import config
from utils.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from utils.logger import get_logger
from utils.pure import round_money

_logger = get_logger(__name__)

# event -> (allowed source statuses, target status)
TRANSITIONS: Dict[str, Tuple[FrozenSet[str], str]] = {
    "confirm": (frozenset({"pending"}), "confirmed"),
    "process": (frozenset({"confirmed"}), "processing"),
    "ship": (frozenset({"processing"}), "shipped"),
    "deliver": (frozenset({"shipped"}), "delivered"),
    "cancel": (frozenset({"pending", "confirmed", "processing"}), "cancelled"),
}
TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})

MAX_NUMBER_ATTEMPTS = 5


def _event_for(current: str, target: str) -> Optional[str]:
    for event, (sources, to) in TRANSITIONS.items():
        if to == target and current in sources:
            return event
    return None


class OrderService:
    def __init__(
        self,
        orders: OrderStore,
        customers: CustomerStore,
        lead_time_days: int = config.DELIVERY_LEAD_DAYS,
        default_country: str = config.DEFAULT_COUNTRY,
        number_generator: Optional[Callable[[datetime], str]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.orders = orders
        self.customers = customers
        self.lead_time_days = lead_time_days
        self.default_country = default_country
        self._next_number = number_generator or SequenceNumberGenerator(
            config.ORDER_NUMBER_PREFIX
        )
        self._clock = clock

    # ---------------------------
    # Checkout
    # ---------------------------

    async def create_order(
        self,
        customer_id: str,
        cart: Union[Cart, Sequence[CartItem]],
        shipping_address: Union[ShippingAddress, dict, None],
        notes: str = "",
    ) -> Order:
        """
        Turn priced cart lines into a persisted pending order.

        The order keeps its own copy of the lines, so later cart changes do not
        affect it. Clearing the cart afterwards is left to the caller.
        """
        lines = cart.items if isinstance(cart, Cart) else tuple(cart or ())
        if not lines:
            raise ValidationError("Order must contain at least one item", "items")
        items = tuple(OrderItem.from_cart_item(line) for line in lines)
        total_amount = round_money(sum(i.line_total for i in items))
        if total_amount <= 0:
            raise ValidationError("Valid total amount is required", "total_amount")
        if not isinstance(shipping_address, ShippingAddress):
            shipping_address = ShippingAddress.from_dict(
                shipping_address, self.default_country
            )

        customer = await self.customers.get(customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)

        order_date = self._clock()
        for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
            order = Order(
                order_number=self._next_number(order_date),
                user_id=customer.cid,
                items=items,
                total_amount=total_amount,
                shipping_address=shipping_address,
                order_date=order_date,
                estimated_delivery=order_date + timedelta(days=self.lead_time_days),
                notes=notes or "",
            )
            try:
                await self.orders.add(order)
                break
            except ConflictError:
                _logger.warning(
                    f"Order number {order.order_number} taken (attempt {attempt}), drawing another"
                )
                if attempt == MAX_NUMBER_ATTEMPTS:
                    raise

        _logger.info(
            f"Order created: {order.order_number} for {customer.email} (${total_amount:.2f})"
        )
        return order

    # ---------------------------
    # Reads
    # ---------------------------

    async def get_order(self, order_number: str) -> Order:
        order = await self.orders.get(order_number)
        if order is None:
            raise NotFoundError("Order", order_number)
        return order

    @staticmethod
    def _check_filter(query: OrderFilter) -> Optional[str]:
        status = query.status if query.status not in (None, "", "all") else None
        if status is not None and status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status '{status}'", "status")
        return status

    @staticmethod
    def _matches(order: Order, term: str) -> bool:
        return (
            term in order.order_number.lower()
            or term in order.shipping_address.full_name.lower()
            or term in order.shipping_address.email.lower()
        )

    async def _list(self, user_id: Optional[str], query: OrderFilter) -> Page[Order]:
        status = self._check_filter(query)
        orders = await self.orders.find(user_id=user_id, status=status)
        term = (query.search or "").strip().lower()
        if term:
            orders = [o for o in orders if self._matches(o, term)]
        return Page.build(orders, query.page, query.limit)

    async def list_orders_for_customer(
        self, customer_id: str, query: Optional[OrderFilter] = None
    ) -> Page[Order]:
        """A customer's orders, newest first, paginated."""
        return await self._list(customer_id, query or OrderFilter())

    async def list_orders(self, query: Optional[OrderFilter] = None) -> Page[Order]:
        """All orders (admin view), newest first, paginated."""
        return await self._list(None, query or OrderFilter())

    async def order_stats(self, customer_id: str) -> dict:
        orders = await self.orders.find(user_id=customer_id)
        return {
            "total_orders": len(orders),
            "total_spent": round_money(sum(o.total_amount for o in orders)),
            "total_items": sum(o.total_items for o in orders),
            "status_breakdown": dict(Counter(o.status for o in orders)),
        }

    # ---------------------------
    # Lifecycle
    # ---------------------------

    async def _fire(
        self, order_number: str, event: str, tracking_number: Optional[str] = None
    ) -> Order:
        order = await self.get_order(order_number)
        sources, target = TRANSITIONS[event]
        if order.status not in sources:
            message = None
            if event == "cancel":
                message = f"Order cannot be cancelled. Current status: {order.status}"
            _logger.warning(f"Rejected {event} on {order_number} in status {order.status}")
            raise InvalidTransitionError(order.status, target, message)
        if event == "confirm" and order.payment_status != "paid":
            _logger.warning(f"Rejected confirm on {order_number}: payment {order.payment_status}")
            raise InvalidTransitionError(
                order.status,
                target,
                f"Order cannot be confirmed before payment. Payment status: {order.payment_status}",
            )

        changes = {"status": target}
        if tracking_number:
            changes["tracking_number"] = tracking_number
        updated = replace(order, **changes)
        await self.orders.save(updated)
        _logger.info(f"Order {order_number}: {order.status} -> {target}")
        return updated

    async def confirm_order(self, order_number: str) -> Order:
        return await self._fire(order_number, "confirm")

    async def process_order(self, order_number: str) -> Order:
        return await self._fire(order_number, "process")

    async def ship_order(
        self, order_number: str, tracking_number: Optional[str] = None
    ) -> Order:
        return await self._fire(order_number, "ship", tracking_number)

    async def deliver_order(self, order_number: str) -> Order:
        return await self._fire(order_number, "deliver")

    async def cancel_order(self, order_number: str) -> Order:
        return await self._fire(order_number, "cancel")

    async def update_status(
        self,
        order_number: str,
        new_status: Optional[str] = None,
        tracking_number: Optional[str] = None,
        override: bool = False,
    ) -> Order:
        """
        Administrative status update.

        Without ``override`` the change must follow the transition table; a
        request for the current status only updates the tracking number, and
        is rejected when no tracking number is given.
        With ``override`` any status may be set unless the order is cancelled.
        A tracking number can be written as long as the order is not terminal.
        """
        if new_status is not None and new_status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status '{new_status}'", "status")
        if new_status is None and not tracking_number:
            raise ValidationError("Nothing to update", "status")

        order = await self.get_order(order_number)
        if new_status == order.status and not override and not tracking_number:
            raise ValidationError(f"Order is already {order.status}", "status")
        if new_status is None or (new_status == order.status and not override):
            if order.status in TERMINAL_STATUSES:
                raise InvalidTransitionError(
                    order.status,
                    order.status,
                    f"Order can no longer be changed. Current status: {order.status}",
                )
            updated = replace(order, tracking_number=tracking_number)
            await self.orders.save(updated)
            _logger.info(f"Order {order_number}: tracking number set to {tracking_number}")
            return updated

        if order.status == "cancelled":
            raise InvalidTransitionError(
                order.status,
                new_status,
                f"Cancelled orders cannot be changed. Current status: {order.status}",
            )

        if override:
            changes = {"status": new_status}
            if tracking_number:
                changes["tracking_number"] = tracking_number
            updated = replace(order, **changes)
            await self.orders.save(updated)
            _logger.warning(
                f"Order {order_number}: status forced {order.status} -> {new_status}"
            )
            return updated

        event = _event_for(order.status, new_status)
        if event is None:
            raise InvalidTransitionError(order.status, new_status)
        return await self._fire(order_number, event, tracking_number)

    async def update_payment_status(self, order_number: str, payment_status: str) -> Order:
        if payment_status not in PAYMENT_STATUSES:
            raise ValidationError(
                f"Unknown payment status '{payment_status}'", "payment_status"
            )
        order = await self.get_order(order_number)
        updated = replace(order, payment_status=payment_status)
        await self.orders.save(updated)
        _logger.info(f"Order {order_number}: payment {order.payment_status} -> {payment_status}")
        return updated
