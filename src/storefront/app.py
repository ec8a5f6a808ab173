# wires the storefront services to a set of stores
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from db.catalog import Catalog
from db.models import Order, ShippingAddress
from db.stores import (
    CartStore,
    CustomerStore,
    MemoryCartStore,
    MemoryCustomerStore,
    MemoryOrderStore,
    MemoryTicketStore,
    OrderStore,
    TicketStore,
)
from storefront.cart import CartService
from storefront.catalog import CatalogService
from storefront.customers import CustomerService
from storefront.orders import OrderService
from storefront.recommender import ChatResponse, QuizPreferences, Recommender
from storefront.support import SupportService
from utils.exceptions import ValidationError


@dataclass
class Storefront:
    """
    Centralized access to every storefront service.

    Fields:
      - catalog: product browsing
      - customers: customer registry
      - carts: cart engine
      - orders: order lifecycle
      - support: support tickets
      - recommender: chat recommendations
    """

    catalog: CatalogService
    customers: CustomerService
    carts: CartService
    orders: OrderService
    support: SupportService
    recommender: Recommender

    @classmethod
    def build(
        cls,
        customer_store: CustomerStore,
        cart_store: CartStore,
        order_store: OrderStore,
        ticket_store: TicketStore,
        catalog: Optional[Catalog] = None,
    ) -> "Storefront":
        catalog = catalog if catalog is not None else Catalog()
        return cls(
            catalog=CatalogService(catalog),
            customers=CustomerService(customer_store),
            carts=CartService(cart_store, catalog),
            orders=OrderService(order_store, customer_store),
            support=SupportService(ticket_store, customer_store),
            recommender=Recommender(catalog),
        )

    @classmethod
    def in_memory(cls, catalog: Optional[Catalog] = None) -> "Storefront":
        return cls.build(
            MemoryCustomerStore(),
            MemoryCartStore(),
            MemoryOrderStore(),
            MemoryTicketStore(),
            catalog,
        )

    @classmethod
    def sqlite(cls, catalog: Optional[Catalog] = None) -> "Storefront":
        from db.sqlite_stores import (
            SqliteCartStore,
            SqliteCustomerStore,
            SqliteOrderStore,
            SqliteTicketStore,
        )

        return cls.build(
            SqliteCustomerStore(),
            SqliteCartStore(),
            SqliteOrderStore(),
            SqliteTicketStore(),
            catalog,
        )

    async def checkout(
        self,
        customer_id: str,
        shipping_address: Union[ShippingAddress, dict, None],
        notes: str = "",
    ) -> Order:
        """
        Place an order for everything in the customer's cart, then empty the cart.

        The two steps are separate writes: if clearing fails the order stands
        and the cart keeps its lines.
        """
        cart = await self.carts.get_cart(customer_id)
        if not cart.items:
            raise ValidationError("Cart is empty", "items")
        order = await self.orders.create_order(customer_id, cart, shipping_address, notes)
        await self.carts.clear(customer_id)
        return order

    def chat(
        self,
        message: str,
        quiz_active: bool = False,
        preferences: Optional[QuizPreferences] = None,
    ) -> ChatResponse:
        return self.recommender.respond(message, quiz_active, preferences)
