import random
import unittest
from dataclasses import replace
from datetime import datetime, timedelta

from db.models import OrderFilter, ShippingAddress
from db.stores import MemoryCustomerStore, MemoryOrderStore
from storefront.app import Storefront
from storefront.orders import OrderService
from utils.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

ADDRESS = {
    "fullName": "Ada Buyer",
    "email": "ada@example.com",
    "phone": "555-0100",
    "address": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zipCode": "62701",
}


class OrderTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.shop = Storefront.in_memory()
        self.customer = await self.shop.customers.register("Ada Buyer", "ada@example.com", cid="c1")

    async def place(self, product_id=1, quantity=1, cid="c1"):
        cart = await self.shop.carts.add_item(cid, product_id, quantity)
        order = await self.shop.orders.create_order(cid, cart, ADDRESS)
        await self.shop.carts.clear(cid)
        return order

    async def order_in(self, status):
        """Drive a fresh order to ``status`` through the public lifecycle."""
        order = await self.place()
        orders = self.shop.orders
        if status == "pending":
            return order
        if status == "cancelled":
            return await orders.cancel_order(order.order_number)
        await orders.update_payment_status(order.order_number, "paid")
        order = await orders.confirm_order(order.order_number)
        for step, reached in (
            (orders.process_order, "processing"),
            (orders.ship_order, "shipped"),
            (orders.deliver_order, "delivered"),
        ):
            if order.status == status:
                return order
            order = await step(order.order_number)
            self.assertEqual(order.status, reached)
        return order

    # ---------- Checkout ----------

    async def test_create_order_snapshot(self):
        cart = await self.shop.carts.add_item("c1", 1, 2)
        cart = await self.shop.carts.add_item("c1", 6)
        order = await self.shop.orders.create_order("c1", cart, ADDRESS, notes="gift wrap")

        self.assertTrue(order.order_number.startswith("AR-"))
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.payment_status, "pending")
        self.assertEqual(order.total_amount, round(89.99 * 2 + 55.99, 2))
        self.assertEqual(order.total_items, 3)
        self.assertEqual(order.estimated_delivery - order.order_date, timedelta(days=10))
        self.assertEqual(order.shipping_address.street, "1 Main St")
        self.assertEqual(order.shipping_address.country, "USA")
        self.assertEqual(order.notes, "gift wrap")

        # later cart changes do not touch the order
        await self.shop.carts.update_quantity("c1", 1, 9)
        stored = await self.shop.orders.get_order(order.order_number)
        self.assertEqual(stored.items[0].quantity, 2)

    async def test_checkout_clears_cart(self):
        await self.shop.carts.add_item("c1", 3)
        order = await self.shop.checkout("c1", ADDRESS)
        self.assertEqual(order.total_amount, 110.99)
        cart = await self.shop.carts.get_cart("c1")
        self.assertEqual(cart.items, ())

        with self.assertRaises(ValidationError):
            await self.shop.checkout("c1", ADDRESS)

    async def test_create_order_validation(self):
        with self.assertRaises(ValidationError) as ctx:
            await self.shop.orders.create_order("c1", [], ADDRESS)
        self.assertEqual(ctx.exception.field, "items")

        cart = await self.shop.carts.add_item("c1", 1)
        incomplete = {k: v for k, v in ADDRESS.items() if k != "zipCode"}
        with self.assertRaises(ValidationError) as ctx:
            await self.shop.orders.create_order("c1", cart, incomplete)
        self.assertEqual(ctx.exception.field, "zip_code")

        with self.assertRaises(ValidationError):
            await self.shop.orders.create_order("c1", cart, {**ADDRESS, "city": "  "})
        with self.assertRaises(ValidationError):
            await self.shop.orders.create_order("c1", cart, None)
        with self.assertRaises(NotFoundError):
            await self.shop.orders.create_order("ghost", cart, ADDRESS)

    async def test_explicit_country_kept(self):
        cart = await self.shop.carts.add_item("c1", 1)
        address = ShippingAddress.from_dict({**ADDRESS, "country": "Canada"})
        order = await self.shop.orders.create_order("c1", cart, address)
        self.assertEqual(order.shipping_address.country, "Canada")

    async def test_order_numbers_unique_within_same_tick(self):
        fixed = datetime(2025, 11, 2, 14, 30, 15)
        orders = OrderService(MemoryOrderStore(), self.shop.customers.store, clock=lambda: fixed)
        cart = await self.shop.carts.add_item("c1", 2)
        numbers = set()
        for _ in range(100):
            order = await orders.create_order("c1", cart, ADDRESS)
            numbers.add(order.order_number)
        self.assertEqual(len(numbers), 100)

    async def test_number_conflict_draws_again(self):
        customers = MemoryCustomerStore()
        await customers.add(self.customer)
        drawn = iter(["AR-1", "AR-1", "AR-2"])
        orders = OrderService(MemoryOrderStore(), customers, number_generator=lambda when: next(drawn))
        cart = await self.shop.carts.add_item("c1", 2)

        first = await orders.create_order("c1", cart, ADDRESS)
        second = await orders.create_order("c1", cart, ADDRESS)
        self.assertEqual((first.order_number, second.order_number), ("AR-1", "AR-2"))

        stuck = OrderService(MemoryOrderStore(), customers, number_generator=lambda when: "AR-1")
        await stuck.create_order("c1", cart, ADDRESS)
        with self.assertRaises(ConflictError):
            await stuck.create_order("c1", cart, ADDRESS)

    async def test_services_sharing_a_store_do_not_exhaust_numbers(self):
        random.seed(7)
        fixed = datetime(2025, 11, 2, 14, 30, 15)
        shared = MemoryOrderStore()
        first = OrderService(shared, self.shop.customers.store, clock=lambda: fixed)
        second = OrderService(shared, self.shop.customers.store, clock=lambda: fixed)
        cart = await self.shop.carts.add_item("c1", 2)

        numbers = set()
        for service in (first, second):
            for _ in range(10):
                order = await service.create_order("c1", cart, ADDRESS)
                numbers.add(order.order_number)
        self.assertEqual(len(numbers), 20)

    # ---------- Lifecycle ----------

    async def test_cancel_allowed_before_shipping(self):
        for status in ("pending", "confirmed", "processing"):
            order = await self.order_in(status)
            self.assertEqual(order.status, status)
            cancelled = await self.shop.orders.cancel_order(order.order_number)
            self.assertEqual(cancelled.status, "cancelled")

    async def test_cancel_rejected_after_shipping(self):
        for status in ("shipped", "delivered", "cancelled"):
            order = await self.order_in(status)
            with self.assertRaises(InvalidTransitionError) as ctx:
                await self.shop.orders.cancel_order(order.order_number)
            self.assertEqual(
                ctx.exception.message, f"Order cannot be cancelled. Current status: {status}"
            )
            self.assertEqual(ctx.exception.current, status)
            stored = await self.shop.orders.get_order(order.order_number)
            self.assertEqual(stored.status, status)

    async def test_confirm_requires_payment(self):
        order = await self.place()
        with self.assertRaises(InvalidTransitionError):
            await self.shop.orders.confirm_order(order.order_number)
        await self.shop.orders.update_payment_status(order.order_number, "paid")
        confirmed = await self.shop.orders.confirm_order(order.order_number)
        self.assertEqual(confirmed.status, "confirmed")

        with self.assertRaises(ValidationError):
            await self.shop.orders.update_payment_status(order.order_number, "maybe")

    async def test_skipping_steps_rejected(self):
        order = await self.order_in("confirmed")
        with self.assertRaises(InvalidTransitionError):
            await self.shop.orders.ship_order(order.order_number)
        with self.assertRaises(InvalidTransitionError):
            await self.shop.orders.update_status(order.order_number, "delivered")
        with self.assertRaises(InvalidTransitionError):
            await self.shop.orders.update_status(order.order_number, "pending")

    async def test_update_status_follows_table_and_tracking(self):
        order = await self.order_in("processing")
        shipped = await self.shop.orders.update_status(order.order_number, "shipped", "1Z999")
        self.assertEqual(shipped.status, "shipped")
        self.assertEqual(shipped.tracking_number, "1Z999")

        retracked = await self.shop.orders.update_status(order.order_number, tracking_number="1Z000")
        self.assertEqual(retracked.status, "shipped")
        self.assertEqual(retracked.tracking_number, "1Z000")

        delivered = await self.shop.orders.deliver_order(order.order_number)
        with self.assertRaises(InvalidTransitionError):
            await self.shop.orders.update_status(delivered.order_number, tracking_number="late")

    async def test_same_status_without_tracking_rejected(self):
        order = await self.order_in("processing")
        with self.assertRaises(ValidationError):
            await self.shop.orders.update_status(order.order_number, "processing")
        stored = await self.shop.orders.get_order(order.order_number)
        self.assertEqual(stored, order)

        tracked = await self.shop.orders.update_status(order.order_number, "processing", "1Z111")
        self.assertEqual(tracked.status, "processing")
        self.assertEqual(tracked.tracking_number, "1Z111")

    async def test_update_status_validation(self):
        order = await self.place()
        with self.assertRaises(ValidationError):
            await self.shop.orders.update_status(order.order_number, "lost")
        with self.assertRaises(ValidationError):
            await self.shop.orders.update_status(order.order_number)
        with self.assertRaises(NotFoundError):
            await self.shop.orders.update_status("AR-missing", "confirmed")

    async def test_admin_override(self):
        order = await self.place()
        forced = await self.shop.orders.update_status(order.order_number, "shipped", override=True)
        self.assertEqual(forced.status, "shipped")
        forced = await self.shop.orders.update_status(order.order_number, "processing", override=True)
        self.assertEqual(forced.status, "processing")

        cancelled = await self.order_in("cancelled")
        with self.assertRaises(InvalidTransitionError):
            await self.shop.orders.update_status(cancelled.order_number, "pending", override=True)

    # ---------- Reads ----------

    async def test_listing_filters_and_pages(self):
        await self.shop.customers.register("Bo Other", "bo@example.com", cid="c2")
        start = datetime(2025, 1, 1, 9, 0, 0)
        ticks = iter(start + timedelta(minutes=i) for i in range(100))
        self.shop.orders._clock = lambda: next(ticks)

        mine = [await self.place() for _ in range(3)]
        cart = await self.shop.carts.add_item("c2", 2)
        other = await self.shop.orders.create_order(
            "c2", cart, {**ADDRESS, "fullName": "Bo Other", "email": "bo@example.com"}
        )
        await self.shop.orders.cancel_order(mine[0].order_number)

        page = await self.shop.orders.list_orders_for_customer("c1", OrderFilter(limit=2))
        self.assertEqual(page.total, 3)
        self.assertEqual(page.total_pages, 2)
        self.assertTrue(page.has_next)
        self.assertEqual([o.order_number for o in page.items], [mine[2].order_number, mine[1].order_number])

        page = await self.shop.orders.list_orders_for_customer("c1", OrderFilter(status="cancelled"))
        self.assertEqual([o.order_number for o in page.items], [mine[0].order_number])

        page = await self.shop.orders.list_orders(OrderFilter(search="bo other"))
        self.assertEqual([o.order_number for o in page.items], [other.order_number])

        page = await self.shop.orders.list_orders(OrderFilter(status="all"))
        self.assertEqual(page.total, 4)
        self.assertFalse(page.has_prev)

        with self.assertRaises(ValidationError):
            await self.shop.orders.list_orders(OrderFilter(status="lost"))
        with self.assertRaises(ValidationError):
            await self.shop.orders.list_orders(OrderFilter(page=0))

    async def test_order_stats(self):
        first = await self.place(1, 2)
        await self.place(6, 1)
        await self.shop.orders.cancel_order(first.order_number)

        stats = await self.shop.orders.order_stats("c1")
        self.assertEqual(stats["total_orders"], 2)
        self.assertEqual(stats["total_items"], 3)
        self.assertEqual(stats["total_spent"], round(89.99 * 2 + 55.99, 2))
        self.assertEqual(stats["status_breakdown"], {"cancelled": 1, "pending": 1})

    async def test_unknown_order(self):
        with self.assertRaises(NotFoundError):
            await self.shop.orders.get_order("AR-nope")
        with self.assertRaises(NotFoundError):
            await self.shop.orders.cancel_order("AR-nope")

    async def test_store_rejects_saving_unknown_order(self):
        order = await self.place()
        with self.assertRaises(NotFoundError):
            await self.shop.orders.orders.save(replace(order, order_number="AR-ghost"))


if __name__ == "__main__":
    unittest.main()
