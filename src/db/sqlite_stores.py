# aiosqlite-backed implementations of the store protocols in db.stores
from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

import aiosqlite

from db import models
from db.database import connect
from utils.exceptions import ConflictError, NotFoundError


def _dumps(data) -> str:
    return json.dumps(data, separators=(",", ":"))


# ---------------------------
# Customers
# ---------------------------


def _row_to_customer(row) -> models.Customer:
    return models.Customer(
        cid=row[0],
        name=row[1],
        email=row[2],
        is_admin=bool(row[3]),
        created_at=datetime.fromisoformat(row[4]) if row[4] else None,
    )


class SqliteCustomerStore:
    async def get(self, cid: str) -> Optional[models.Customer]:
        """Return the customer row for a given cid, or None."""
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT cid, name, email, is_admin, created_at FROM customers WHERE cid = ?;",
                (cid,),
            )
            row = await cur.fetchone()
            await cur.close()
        return _row_to_customer(row) if row else None

    async def get_by_email(self, email: str) -> Optional[models.Customer]:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT cid, name, email, is_admin, created_at FROM customers WHERE email = ?;",
                ((email or "").lower(),),
            )
            row = await cur.fetchone()
            await cur.close()
        return _row_to_customer(row) if row else None

    async def add(self, customer: models.Customer) -> None:
        async with connect() as conn:
            try:
                await conn.execute(
                    "INSERT INTO customers(cid, name, email, is_admin, created_at) VALUES (?, ?, ?, ?, ?);",
                    (
                        customer.cid,
                        customer.name,
                        customer.email,
                        int(customer.is_admin),
                        customer.created_at.isoformat() if customer.created_at else None,
                    ),
                )
            except aiosqlite.IntegrityError:
                raise ConflictError("Customer", customer.email)
            await conn.commit()

    async def count(self) -> int:
        async with connect() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM customers;")
            row = await cur.fetchone()
            await cur.close()
        return int(row[0])


# ---------------------------
# Carts
# ---------------------------


class SqliteCartStore:
    """One row per customer; the line list is stored as a single JSON document."""

    async def load(self, customer_id: str) -> Optional[List[models.CartItem]]:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT items FROM carts WHERE customer_id = ?;", (customer_id,)
            )
            row = await cur.fetchone()
            await cur.close()
        if not row:
            return None
        return [models.CartItem.from_dict(d) for d in json.loads(row[0])]

    async def save(self, customer_id: str, items: List[models.CartItem]) -> None:
        async with connect() as conn:
            await conn.execute(
                """
                INSERT INTO carts(customer_id, items, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(customer_id) DO UPDATE
                SET items = excluded.items, updated_at = excluded.updated_at;
                """,
                (
                    customer_id,
                    _dumps([i.to_dict() for i in items]),
                    datetime.now().isoformat(),
                ),
            )
            await conn.commit()

    async def clear(self, customer_id: str) -> None:
        await self.save(customer_id, [])


# ---------------------------
# Orders
# ---------------------------


class SqliteOrderStore:
    async def add(self, order: models.Order) -> None:
        async with connect() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO orders(order_number, user_id, status, payment_status, total_amount,
                                       order_date, estimated_delivery, tracking_number, doc)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        order.order_number,
                        order.user_id,
                        order.status,
                        order.payment_status,
                        order.total_amount,
                        order.order_date.isoformat(),
                        order.estimated_delivery.isoformat(),
                        order.tracking_number,
                        _dumps(order.to_dict()),
                    ),
                )
            except aiosqlite.IntegrityError:
                raise ConflictError("Order", order.order_number)
            await conn.commit()

    async def get(self, order_number: str) -> Optional[models.Order]:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT doc FROM orders WHERE order_number = ?;", (order_number,)
            )
            row = await cur.fetchone()
            await cur.close()
        return models.Order.from_dict(json.loads(row[0])) if row else None

    async def save(self, order: models.Order) -> None:
        async with connect() as conn:
            res = await conn.execute(
                """
                UPDATE orders
                SET status = ?, payment_status = ?, tracking_number = ?, doc = ?
                WHERE order_number = ?;
                """,
                (
                    order.status,
                    order.payment_status,
                    order.tracking_number,
                    _dumps(order.to_dict()),
                    order.order_number,
                ),
            )
            await conn.commit()
            if res.rowcount == 0:
                raise NotFoundError("Order", order.order_number)

    async def find(
        self, user_id: Optional[str] = None, status: Optional[str] = None
    ) -> List[models.Order]:
        clauses: List[str] = []
        params: List[str] = []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        if status is not None:
            clauses.append("status = ?")
            params.append(status)
        where_clause = " AND ".join(clauses) if clauses else "1 = 1"
        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT doc FROM orders WHERE {where_clause} ORDER BY order_date DESC, rowid;",
                tuple(params),
            )
            rows = await cur.fetchall()
            await cur.close()
        return [models.Order.from_dict(json.loads(row[0])) for row in rows]


# ---------------------------
# Support tickets
# ---------------------------


class SqliteTicketStore:
    async def add(self, ticket: models.SupportTicket) -> None:
        async with connect() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO tickets(ticket_number, user_id, customer_email, status,
                                        priority, category, created_at, doc)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        ticket.ticket_number,
                        ticket.user_id,
                        ticket.customer_email,
                        ticket.status,
                        ticket.priority,
                        ticket.category,
                        ticket.created_at.isoformat(),
                        _dumps(ticket.to_dict()),
                    ),
                )
            except aiosqlite.IntegrityError:
                raise ConflictError("Ticket", ticket.ticket_number)
            await conn.commit()

    async def get(self, ticket_number: str) -> Optional[models.SupportTicket]:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT doc FROM tickets WHERE ticket_number = ?;", (ticket_number,)
            )
            row = await cur.fetchone()
            await cur.close()
        return models.SupportTicket.from_dict(json.loads(row[0])) if row else None

    async def save(self, ticket: models.SupportTicket) -> None:
        async with connect() as conn:
            res = await conn.execute(
                """
                UPDATE tickets
                SET status = ?, priority = ?, category = ?, doc = ?
                WHERE ticket_number = ?;
                """,
                (
                    ticket.status,
                    ticket.priority,
                    ticket.category,
                    _dumps(ticket.to_dict()),
                    ticket.ticket_number,
                ),
            )
            await conn.commit()
            if res.rowcount == 0:
                raise NotFoundError("Ticket", ticket.ticket_number)

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
        clauses = [f"{col} = ?" for col, val in wanted.items() if val is not None]
        params = [val for val in wanted.values() if val is not None]
        where_clause = " AND ".join(clauses) if clauses else "1 = 1"
        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT doc FROM tickets WHERE {where_clause} ORDER BY created_at DESC, rowid;",
                tuple(params),
            )
            rows = await cur.fetchall()
            await cur.close()
        return [models.SupportTicket.from_dict(json.loads(row[0])) for row in rows]
