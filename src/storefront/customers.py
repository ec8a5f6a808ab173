# customer registry, the identity source for orders and tickets
import uuid
from datetime import datetime
from typing import Optional

from db.models import Customer
from db.stores import CustomerStore
from utils.exceptions import NotFoundError, ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)


class CustomerService:
    def __init__(self, store: CustomerStore):
        self.store = store

    async def register(
        self,
        name: str,
        email: str,
        cid: Optional[str] = None,
        is_admin: bool = False,
    ) -> Customer:
        """
        Create a customer account. Emails are stored lowercased and must be unique;
        a duplicate raises ConflictError from the store.
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name:
            raise ValidationError("Name is required", "name")
        if "@" not in email:
            raise ValidationError("A valid email is required", "email")
        customer = Customer(
            cid=cid or uuid.uuid4().hex,
            name=name,
            email=email,
            is_admin=is_admin,
            created_at=datetime.now(),
        )
        await self.store.add(customer)
        _logger.info(f"Registered customer {customer.cid} <{email}>")
        return customer

    async def get(self, cid: str) -> Customer:
        customer = await self.store.get(cid)
        if customer is None:
            raise NotFoundError("Customer", cid)
        return customer

    async def email_available(self, email: str) -> bool:
        """True if no customer already registered with the given email."""
        return await self.store.get_by_email(email) is None
