# provide dataclass models
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Generic, List, Literal, Optional, Tuple, TypeVar

from utils.config import DEFAULT_COUNTRY, DEFAULT_PAGE_SIZE
from utils.exceptions import ValidationError
from utils.pure import paginate, total_pages

T = TypeVar("T")

Category = Literal["men", "women", "unisex"]
OrderStatus = Literal[
    "pending", "confirmed", "processing", "shipped", "delivered", "cancelled"
]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
TicketStatus = Literal["open", "in-progress", "resolved", "closed"]
TicketPriority = Literal["low", "medium", "high", "urgent"]

CATEGORIES = ("men", "women", "unisex")
ORDER_STATUSES = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
)
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
TICKET_STATUSES = ("open", "in-progress", "resolved", "closed")
TICKET_PRIORITIES = ("low", "medium", "high", "urgent")
TICKET_CATEGORIES = (
    "order-issue",
    "product-inquiry",
    "shipping",
    "refund",
    "technical",
    "other",
)
PRODUCT_SORTS = ("price-low", "price-high", "rating", "name")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# ---------------------------
# Catalog
# ---------------------------


@dataclass(frozen=True)
class FragranceNotes:
    top: Tuple[str, ...] = ()
    middle: Tuple[str, ...] = ()
    base: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    brand: str
    category: str  # "men", "women" or "unisex"
    price: float
    original_price: Optional[float]  # pre-discount price, display only
    description: str
    notes: FragranceNotes
    size: str
    stock: int
    rating: float  # 0..5
    reviews: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        notes = data.get("notes") or {}
        return cls(
            id=int(data["id"]),
            name=data["name"],
            brand=data["brand"],
            category=data["category"],
            price=float(data["price"]),
            original_price=data.get("original_price"),
            description=data.get("description", ""),
            notes=FragranceNotes(
                top=tuple(notes.get("top", ())),
                middle=tuple(notes.get("middle", ())),
                base=tuple(notes.get("base", ())),
            ),
            size=data.get("size", "50ml"),
            stock=int(data.get("stock", 0)),
            rating=float(data.get("rating", 0)),
            reviews=int(data.get("reviews", 0)),
        )


# ---------------------------
# Customers
# ---------------------------


@dataclass(frozen=True)
class Customer:
    cid: str
    name: str
    email: str
    is_admin: bool = False
    created_at: Optional[datetime] = None


# ---------------------------
# Cart
# ---------------------------


@dataclass(frozen=True)
class CartItem:
    product: Product  # snapshot taken when the line was first added
    quantity: int
    added_at: datetime

    @property
    def item_id(self) -> int:
        return self.product.id

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "added_at": _iso(self.added_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            product=Product.from_dict(data["product"]),
            quantity=int(data["quantity"]),
            added_at=_parse_dt(data["added_at"]),
        )


@dataclass(frozen=True)
class CartSummary:
    subtotal: float
    shipping: float
    tax: float
    total: float
    item_count: int


@dataclass(frozen=True)
class Cart:
    customer_id: str
    items: Tuple[CartItem, ...]
    summary: CartSummary


# ---------------------------
# Orders
# ---------------------------


@dataclass(frozen=True)
class OrderItem:
    product_id: int
    name: str
    brand: str
    price: float  # unit price at time of order
    quantity: int
    size: str = "50ml"

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "OrderItem":
        return cls(
            product_id=item.product.id,
            name=item.product.name,
            brand=item.product.brand,
            price=item.product.price,
            quantity=item.quantity,
            size=item.product.size,
        )


@dataclass(frozen=True)
class ShippingAddress:
    full_name: str
    email: str
    phone: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str = DEFAULT_COUNTRY

    REQUIRED = ("full_name", "email", "phone", "street", "city", "state", "zip_code")

    # camelCase keys as sent by the storefront checkout form
    _ALIASES = {
        "fullName": "full_name",
        "zipCode": "zip_code",
        "address": "street",
    }

    @classmethod
    def from_dict(
        cls, data: Optional[dict], default_country: str = DEFAULT_COUNTRY
    ) -> "ShippingAddress":
        """Build an address from form data, raising ValidationError on a missing field."""
        if not data:
            raise ValidationError("Complete shipping address is required", "shipping_address")
        normalized = {}
        for key, value in data.items():
            normalized[cls._ALIASES.get(key, key)] = value
        values = {}
        for name in cls.REQUIRED:
            value = normalized.get(name)
            if value is None or not str(value).strip():
                raise ValidationError(
                    f"Shipping address field '{name}' is required", name
                )
            values[name] = str(value).strip()
        country = normalized.get("country")
        values["country"] = str(country).strip() if country else default_country
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Order:
    order_number: str
    user_id: str
    items: Tuple[OrderItem, ...]
    total_amount: float
    shipping_address: ShippingAddress
    order_date: datetime
    estimated_delivery: datetime
    status: str = "pending"
    payment_status: str = "pending"
    tracking_number: Optional[str] = None
    notes: str = ""

    @property
    def total_items(self) -> int:
        return sum(i.quantity for i in self.items)

    def to_dict(self) -> dict:
        return {
            "order_number": self.order_number,
            "user_id": self.user_id,
            "items": [asdict(i) for i in self.items],
            "total_amount": self.total_amount,
            "shipping_address": self.shipping_address.to_dict(),
            "order_date": _iso(self.order_date),
            "estimated_delivery": _iso(self.estimated_delivery),
            "status": self.status,
            "payment_status": self.payment_status,
            "tracking_number": self.tracking_number,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        return cls(
            order_number=data["order_number"],
            user_id=data["user_id"],
            items=tuple(OrderItem(**i) for i in data["items"]),
            total_amount=float(data["total_amount"]),
            shipping_address=ShippingAddress(**data["shipping_address"]),
            order_date=_parse_dt(data["order_date"]),
            estimated_delivery=_parse_dt(data["estimated_delivery"]),
            status=data.get("status", "pending"),
            payment_status=data.get("payment_status", "pending"),
            tracking_number=data.get("tracking_number"),
            notes=data.get("notes") or "",
        )


# ---------------------------
# Support
# ---------------------------


@dataclass(frozen=True)
class TicketResponse:
    id: str
    message: str
    author: str
    timestamp: datetime
    is_admin: bool = False


@dataclass(frozen=True)
class SupportTicket:
    ticket_number: str
    user_id: str
    customer_name: str
    customer_email: str
    subject: str
    message: str
    created_at: datetime
    category: str = "other"
    priority: str = "medium"
    status: str = "open"
    assigned_to: Optional[str] = None
    responses: Tuple[TicketResponse, ...] = ()
    order_reference: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        data["responses"] = [
            {**asdict(r), "timestamp": _iso(r.timestamp)} for r in self.responses
        ]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SupportTicket":
        responses = tuple(
            TicketResponse(
                id=r["id"],
                message=r["message"],
                author=r["author"],
                timestamp=_parse_dt(r["timestamp"]),
                is_admin=bool(r.get("is_admin", False)),
            )
            for r in data.get("responses") or ()
        )
        return cls(
            ticket_number=data["ticket_number"],
            user_id=data["user_id"],
            customer_name=data["customer_name"],
            customer_email=data["customer_email"],
            subject=data["subject"],
            message=data["message"],
            created_at=_parse_dt(data["created_at"]),
            category=data.get("category", "other"),
            priority=data.get("priority", "medium"),
            status=data.get("status", "open"),
            assigned_to=data.get("assigned_to"),
            responses=responses,
            order_reference=data.get("order_reference"),
            updated_at=_parse_dt(data.get("updated_at")),
        )


# ---------------------------
# Query filters & pages
# ---------------------------


@dataclass(frozen=True)
class ProductFilter:
    category: Optional[str] = None  # "all" or None means every category
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort: Optional[str] = None  # one of PRODUCT_SORTS


@dataclass(frozen=True)
class OrderFilter:
    status: Optional[str] = None  # "all" or None means every status
    search: Optional[str] = None  # order number, recipient name or email
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class TicketFilter:
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    customer_email: Optional[str] = None
    search: Optional[str] = None  # ticket number, subject or customer name
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.limit)

    @property
    def has_next(self) -> bool:
        return (self.page - 1) * self.limit + len(self.items) < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @classmethod
    def build(cls, items: List[T], page: int, limit: int) -> "Page[T]":
        """Slice a full result list down to one 1-based page."""
        if page < 1:
            raise ValidationError("Page must be 1 or greater", "page")
        if limit < 1:
            raise ValidationError("Limit must be 1 or greater", "limit")
        page_items, total = paginate(items, page, limit)
        return cls(items=page_items, total=total, page=page, limit=limit)
