"""
Storage interfaces used by the storefront services, plus in-memory versions.

Services only depend on the protocols below, so the same code runs against
the dict-backed stores here (tests, demos) or the aiosqlite stores in
``db.sqlite_stores``. Every method is one read or one write of a single
record; no operation spans several records.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from db import models
from utils.exceptions import ConflictError, NotFoundError


class CustomerStore(Protocol):
    async def get(self, cid: str) -> Optional[models.Customer]: ...

    async def get_by_email(self, email: str) -> Optional[models.Customer]: ...

    async def add(self, customer: models.Customer) -> None: ...

    async def count(self) -> int: ...


class CartStore(Protocol):
    async def load(self, customer_id: str) -> Optional[List[models.CartItem]]:
        """Return the cart lines, or None if the customer never had a cart."""
        ...

    async def save(self, customer_id: str, items: List[models.CartItem]) -> None: ...

    async def clear(self, customer_id: str) -> None: ...


class OrderStore(Protocol):
    async def add(self, order: models.Order) -> None: ...

    async def get(self, order_number: str) -> Optional[models.Order]: ...

    async def save(self, order: models.Order) -> None: ...

    async def find(
        self, user_id: Optional[str] = None, status: Optional[str] = None
    ) -> List[models.Order]:
        """Orders matching the given owner/status, newest first."""
        ...


class TicketStore(Protocol):
    async def add(self, ticket: models.SupportTicket) -> None: ...

    async def get(self, ticket_number: str) -> Optional[models.SupportTicket]: ...

    async def save(self, ticket: models.SupportTicket) -> None: ...

    async def find(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> List[models.SupportTicket]:
        """Tickets matching every given field, newest first."""
        ...


# ---------------------------
# In-memory implementations
# ---------------------------


class MemoryCustomerStore:
    def __init__(self):
        self._customers: Dict[str, models.Customer] = {}

    async def get(self, cid: str) -> Optional[models.Customer]:
        return self._customers.get(cid)

    async def get_by_email(self, email: str) -> Optional[models.Customer]:
        email = (email or "").lower()
        for customer in self._customers.values():
            if customer.email == email:
                return customer
        return None

    async def add(self, customer: models.Customer) -> None:
        if customer.cid in self._customers:
            raise ConflictError("Customer", customer.cid)
        if await self.get_by_email(customer.email):
            raise ConflictError("Customer", customer.email)
        self._customers[customer.cid] = customer

    async def count(self) -> int:
        return len(self._customers)


class MemoryCartStore:
    def __init__(self):
        self._carts: Dict[str, List[models.CartItem]] = {}

    async def load(self, customer_id: str) -> Optional[List[models.CartItem]]:
        items = self._carts.get(customer_id)
        return list(items) if items is not None else None

    async def save(self, customer_id: str, items: List[models.CartItem]) -> None:
        self._carts[customer_id] = list(items)

    async def clear(self, customer_id: str) -> None:
        self._carts[customer_id] = []


class MemoryOrderStore:
    def __init__(self):
        self._orders: Dict[str, models.Order] = {}

    async def add(self, order: models.Order) -> None:
        if order.order_number in self._orders:
            raise ConflictError("Order", order.order_number)
        self._orders[order.order_number] = order

    async def get(self, order_number: str) -> Optional[models.Order]:
        return self._orders.get(order_number)

    async def save(self, order: models.Order) -> None:
        if order.order_number not in self._orders:
            raise NotFoundError("Order", order.order_number)
        self._orders[order.order_number] = order

    async def find(
        self, user_id: Optional[str] = None, status: Optional[str] = None
    ) -> List[models.Order]:
        orders = [
            o
            for o in self._orders.values()
            if (user_id is None or o.user_id == user_id)
            and (status is None or o.status == status)
        ]
        return sorted(orders, key=lambda o: o.order_date, reverse=True)


class MemoryTicketStore:
    def __init__(self):
        self._tickets: Dict[str, models.SupportTicket] = {}

    async def add(self, ticket: models.SupportTicket) -> None:
        if ticket.ticket_number in self._tickets:
            raise ConflictError("Ticket", ticket.ticket_number)
        self._tickets[ticket.ticket_number] = ticket

    async def get(self, ticket_number: str) -> Optional[models.SupportTicket]:
        return self._tickets.get(ticket_number)

    async def save(self, ticket: models.SupportTicket) -> None:
        if ticket.ticket_number not in self._tickets:
            raise NotFoundError("Ticket", ticket.ticket_number)
        self._tickets[ticket.ticket_number] = ticket

    async def find(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> List[models.SupportTicket]:
        wanted = {
            "user_id": user_id,
            "status": status,
            "priority": priority,
            "category": category,
            "customer_email": customer_email,
        }
        tickets = [
            t
            for t in self._tickets.values()
            if all(v is None or getattr(t, k) == v for k, v in wanted.items())
        ]
        return sorted(tickets, key=lambda t: t.created_at, reverse=True)
