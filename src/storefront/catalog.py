# product browsing over the static catalog
from typing import List, Optional

from db.catalog import Catalog
from db.models import CATEGORIES, PRODUCT_SORTS, Product, ProductFilter
from utils.exceptions import NotFoundError, ValidationError
from utils.pure import contains_any


class CatalogService:
    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog if catalog is not None else Catalog()

    def get_product(self, product_id) -> Product:
        """Fetch a product by id, raising NotFoundError if absent."""
        product = self.catalog.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def categories(self) -> List[str]:
        seen: List[str] = []
        for p in self.catalog.all():
            if p.category not in seen:
                seen.append(p.category)
        return ["all", *seen]

    def list_products(self, query: Optional[ProductFilter] = None) -> List[Product]:
        """
        Filter and sort the catalog.
        Rules:
        - category: case-insensitive exact match; "all" or None keeps everything.
        - search: substring of name, brand or description, case-insensitive.
        - min_price / max_price: inclusive bounds.
        - sort: price-low, price-high, rating (best first) or name; None keeps catalog order.
        """
        query = query or ProductFilter()
        products = self.catalog.all()

        category = (query.category or "").strip().lower()
        if category and category != "all":
            if category not in CATEGORIES:
                raise ValidationError(f"Unknown category '{query.category}'", "category")
            products = [p for p in products if p.category == category]

        term = (query.search or "").strip().lower()
        if term:
            products = [
                p
                for p in products
                if contains_any(p.name, [term])
                or contains_any(p.brand, [term])
                or contains_any(p.description, [term])
            ]

        if query.min_price is not None:
            products = [p for p in products if p.price >= query.min_price]
        if query.max_price is not None:
            products = [p for p in products if p.price <= query.max_price]

        if query.sort is None:
            return products
        if query.sort not in PRODUCT_SORTS:
            raise ValidationError(f"Unknown sort '{query.sort}'", "sort")
        if query.sort == "price-low":
            return sorted(products, key=lambda p: p.price)
        if query.sort == "price-high":
            return sorted(products, key=lambda p: p.price, reverse=True)
        if query.sort == "rating":
            return sorted(products, key=lambda p: p.rating, reverse=True)
        return sorted(products, key=lambda p: p.name.lower())
