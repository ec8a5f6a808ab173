# support desk: customer tickets with an append-only response thread
from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from db.models import (
    TICKET_CATEGORIES,
    TICKET_PRIORITIES,
    TICKET_STATUSES,
    Page,
    SupportTicket,
    TicketFilter,
    TicketResponse,
)
from db.stores import CustomerStore, TicketStore
from storefront.numbering import SequenceNumberGenerator
from utils import config
from utils.exceptions import ConflictError, NotFoundError, ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)

MAX_NUMBER_ATTEMPTS = 5


def _check_choice(value: Optional[str], choices, field: str) -> Optional[str]:
    if value in (None, "", "all"):
        return None
    if value not in choices:
        raise ValidationError(f"Unknown {field} '{value}'", field)
    return value


def _required(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field.capitalize()} is required", field)
    return value


class SupportService:
    """
    Ticket workflow.

    Unlike orders, ticket status is not guarded: staff may set any status at
    any time. The only automatic change is open -> in-progress on the first
    staff response.
    """

    def __init__(
        self,
        tickets: TicketStore,
        customers: CustomerStore,
        number_generator: Optional[Callable[[datetime], str]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.tickets = tickets
        self.customers = customers
        self._next_number = number_generator or SequenceNumberGenerator(
            config.TICKET_NUMBER_PREFIX
        )
        self._clock = clock

    async def create_ticket(
        self,
        customer_id: str,
        subject: str,
        message: str,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        order_reference: Optional[str] = None,
    ) -> SupportTicket:
        subject = _required(subject, "subject")
        message = _required(message, "message")
        category = _check_choice(category, TICKET_CATEGORIES, "category") or "other"
        priority = _check_choice(priority, TICKET_PRIORITIES, "priority") or "medium"

        customer = await self.customers.get(customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)

        now = self._clock()
        for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
            ticket = SupportTicket(
                ticket_number=self._next_number(now),
                user_id=customer.cid,
                customer_name=customer.name,
                customer_email=customer.email,
                subject=subject,
                message=message,
                created_at=now,
                category=category,
                priority=priority,
                order_reference=order_reference or None,
                updated_at=now,
            )
            try:
                await self.tickets.add(ticket)
                break
            except ConflictError:
                _logger.warning(
                    f"Ticket number {ticket.ticket_number} taken (attempt {attempt}), drawing another"
                )
                if attempt == MAX_NUMBER_ATTEMPTS:
                    raise

        _logger.info(f"Support ticket created: {ticket.ticket_number} for {customer.email}")
        return ticket

    async def get_ticket(self, ticket_number: str) -> SupportTicket:
        ticket = await self.tickets.get(ticket_number)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_number)
        return ticket

    async def list_tickets(self, query: Optional[TicketFilter] = None) -> Page[SupportTicket]:
        query = query or TicketFilter()
        tickets = await self.tickets.find(
            status=_check_choice(query.status, TICKET_STATUSES, "status"),
            priority=_check_choice(query.priority, TICKET_PRIORITIES, "priority"),
            category=_check_choice(query.category, TICKET_CATEGORIES, "category"),
            customer_email=(query.customer_email or "").strip().lower() or None,
        )
        term = (query.search or "").strip().lower()
        if term:
            tickets = [
                t
                for t in tickets
                if term in t.ticket_number.lower()
                or term in t.subject.lower()
                or term in t.customer_name.lower()
            ]
        return Page.build(tickets, query.page, query.limit)

    async def tickets_for_email(self, email: str) -> List[SupportTicket]:
        """Every ticket filed under an email address, newest first."""
        return await self.tickets.find(customer_email=(email or "").strip().lower())

    async def add_response(
        self, ticket_number: str, message: str, author: str, is_admin: bool = False
    ) -> SupportTicket:
        message = _required(message, "message")
        author = _required(author, "author")
        ticket = await self.get_ticket(ticket_number)
        now = self._clock()
        response = TicketResponse(
            id=uuid.uuid4().hex,
            message=message,
            author=author,
            timestamp=now,
            is_admin=is_admin,
        )
        status = ticket.status
        if is_admin and status == "open":
            status = "in-progress"
        updated = replace(
            ticket,
            responses=ticket.responses + (response,),
            status=status,
            updated_at=now,
        )
        await self.tickets.save(updated)
        _logger.info(f"Response added to ticket {ticket_number} by {author}")
        return updated

    async def update_status(
        self, ticket_number: str, new_status: str, assigned_to: Optional[str] = None
    ) -> SupportTicket:
        if new_status not in TICKET_STATUSES:
            raise ValidationError(f"Unknown status '{new_status}'", "status")
        ticket = await self.get_ticket(ticket_number)
        updated = replace(
            ticket,
            status=new_status,
            assigned_to=assigned_to or ticket.assigned_to,
            updated_at=self._clock(),
        )
        await self.tickets.save(updated)
        _logger.info(f"Ticket {ticket_number} status updated to {new_status}")
        return updated
