# cart engine: per-customer line items and the derived pricing summary
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from db.catalog import Catalog
from db.models import Cart, CartItem, CartSummary
from db.stores import CartStore
from utils import config
from utils.exceptions import NotFoundError, ValidationError
from utils.logger import get_logger
from utils.pure import round_money

_logger = get_logger(__name__)


def _to_int(val) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be a whole number.", "quantity")
    return quantity


def summarize(
    items: Sequence[CartItem],
    shipping_threshold: float = config.SHIPPING_THRESHOLD,
    shipping_fee: float = config.SHIPPING_FEE,
    tax_rate: float = config.TAX_RATE,
) -> CartSummary:
    """
    Price a list of cart lines.

    Shipping is free only when the subtotal is strictly greater than the
    threshold, so a subtotal of exactly the threshold still pays the fee.
    Every amount is rounded to cents and the total is the sum of the
    rounded parts.
    """
    subtotal = round_money(sum(i.line_total for i in items))
    shipping = 0.0 if subtotal > shipping_threshold else round_money(shipping_fee)
    tax = round_money(subtotal * tax_rate)
    return CartSummary(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=round_money(subtotal + shipping + tax),
        item_count=sum(i.quantity for i in items),
    )


class CartService:
    """
    Cart operations for one store of carts.

    Every mutation is a single load-modify-save of the customer's cart;
    the summary is computed on each read and never stored.
    """

    def __init__(
        self,
        store: CartStore,
        catalog: Optional[Catalog] = None,
        shipping_threshold: float = config.SHIPPING_THRESHOLD,
        shipping_fee: float = config.SHIPPING_FEE,
        tax_rate: float = config.TAX_RATE,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.catalog = catalog if catalog is not None else Catalog()
        self.shipping_threshold = shipping_threshold
        self.shipping_fee = shipping_fee
        self.tax_rate = tax_rate
        self._clock = clock

    def _summary(self, items: Sequence[CartItem]) -> CartSummary:
        return summarize(items, self.shipping_threshold, self.shipping_fee, self.tax_rate)

    async def _load_existing(self, customer_id: str) -> List[CartItem]:
        items = await self.store.load(customer_id)
        if items is None:
            raise NotFoundError("Cart", customer_id)
        return items

    @staticmethod
    def _index_of(items: List[CartItem], item_id) -> int:
        item_id = _to_int(item_id)
        for idx, item in enumerate(items):
            if item.item_id == item_id:
                return idx
        return -1

    async def get_cart(self, customer_id: str) -> Cart:
        items = await self.store.load(customer_id) or []
        return Cart(customer_id=customer_id, items=tuple(items), summary=self._summary(items))

    async def get_summary(self, customer_id: str) -> CartSummary:
        items = await self.store.load(customer_id) or []
        return self._summary(items)

    async def add_item(self, customer_id: str, product_id, quantity: int = 1) -> Cart:
        """
        Add a product to the customer's cart. An existing line for the same
        product has its quantity increased instead of a second line being added.
        Stock is not reserved here.
        """
        quantity = _check_quantity(quantity)
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1.", "quantity")
        product = self.catalog.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        items = await self.store.load(customer_id) or []
        idx = self._index_of(items, product.id)
        if idx > -1:
            items[idx] = replace(items[idx], quantity=items[idx].quantity + quantity)
        else:
            items.append(CartItem(product=product, quantity=quantity, added_at=self._clock()))
        await self.store.save(customer_id, items)
        _logger.debug(f"Cart {customer_id}: +{quantity} x product {product.id}")
        return Cart(customer_id=customer_id, items=tuple(items), summary=self._summary(items))

    async def update_quantity(self, customer_id: str, item_id, quantity: int) -> Cart:
        """Set a line's quantity; zero or less removes the line."""
        quantity = _check_quantity(quantity)
        items = await self._load_existing(customer_id)
        idx = self._index_of(items, item_id)
        if idx == -1:
            raise NotFoundError("Cart item", item_id)
        if quantity <= 0:
            items.pop(idx)
        else:
            items[idx] = replace(items[idx], quantity=quantity)
        await self.store.save(customer_id, items)
        return Cart(customer_id=customer_id, items=tuple(items), summary=self._summary(items))

    async def remove_item(self, customer_id: str, item_id) -> Cart:
        items = await self._load_existing(customer_id)
        idx = self._index_of(items, item_id)
        if idx == -1:
            raise NotFoundError("Cart item", item_id)
        items.pop(idx)
        await self.store.save(customer_id, items)
        return Cart(customer_id=customer_id, items=tuple(items), summary=self._summary(items))

    async def clear(self, customer_id: str) -> None:
        await self.store.clear(customer_id)
        _logger.info(f"Cart {customer_id} cleared")
