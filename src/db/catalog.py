# static perfume catalog; products are read-only for the life of the process
from typing import Dict, List, Optional, Sequence

from db.models import FragranceNotes, Product

PERFUMES: Sequence[Product] = (
    Product(
        id=1,
        name="Mystic Rose",
        brand="Aroma Exclusive",
        category="women",
        price=89.99,
        original_price=120.00,
        description="A captivating blend of Bulgarian rose, vanilla, and sandalwood. Perfect for romantic evenings.",
        notes=FragranceNotes(
            top=("Rose Petals", "Bergamot", "Pink Pepper"),
            middle=("Bulgarian Rose", "Jasmine", "Lily of Valley"),
            base=("Sandalwood", "Vanilla", "Musk"),
        ),
        size="50ml",
        stock=25,
        rating=4.8,
        reviews=124,
    ),
    Product(
        id=2,
        name="Ocean Breeze",
        brand="Aroma Marine",
        category="men",
        price=75.99,
        original_price=95.00,
        description="Fresh aquatic scent with citrus top notes and woody base. Ideal for daily wear.",
        notes=FragranceNotes(
            top=("Sea Salt", "Lime", "Grapefruit"),
            middle=("Marine Accord", "Lavender", "Geranium"),
            base=("Cedarwood", "Ambergris", "White Musk"),
        ),
        size="75ml",
        stock=18,
        rating=4.6,
        reviews=89,
    ),
    Product(
        id=3,
        name="Golden Sunset",
        brand="Aroma Luxury",
        category="unisex",
        price=110.99,
        original_price=140.00,
        description="Warm and sophisticated with amber, oud, and spices. A luxurious evening fragrance.",
        notes=FragranceNotes(
            top=("Saffron", "Cardamom", "Orange Blossom"),
            middle=("Rose", "Oud", "Patchouli"),
            base=("Amber", "Vanilla", "Benzoin"),
        ),
        size="100ml",
        stock=12,
        rating=4.9,
        reviews=67,
    ),
    Product(
        id=4,
        name="Fresh Garden",
        brand="Aroma Natural",
        category="women",
        price=65.99,
        original_price=85.00,
        description="Light and refreshing with green notes and white flowers. Perfect for spring and summer.",
        notes=FragranceNotes(
            top=("Green Leaves", "Cucumber", "Lemon"),
            middle=("White Tea", "Magnolia", "Freesia"),
            base=("White Musk", "Cedar", "Amber"),
        ),
        size="50ml",
        stock=30,
        rating=4.5,
        reviews=156,
    ),
    Product(
        id=5,
        name="Dark Knight",
        brand="Aroma Intense",
        category="men",
        price=95.99,
        original_price=125.00,
        description="Bold and masculine with tobacco, leather, and dark woods. For the confident man.",
        notes=FragranceNotes(
            top=("Black Pepper", "Ginger", "Elemi"),
            middle=("Tobacco", "Leather", "Rose"),
            base=("Oud", "Sandalwood", "Patchouli"),
        ),
        size="75ml",
        stock=8,
        rating=4.7,
        reviews=93,
    ),
    Product(
        id=6,
        name="Citrus Burst",
        brand="Aroma Fresh",
        category="unisex",
        price=55.99,
        original_price=70.00,
        description="Energizing citrus blend perfect for morning wear. Uplifting and invigorating.",
        notes=FragranceNotes(
            top=("Lemon", "Orange", "Grapefruit"),
            middle=("Mint", "Basil", "Green Tea"),
            base=("White Musk", "Vetiver", "Amberwood"),
        ),
        size="30ml",
        stock=45,
        rating=4.4,
        reviews=201,
    ),
)


class Catalog:
    """In-memory product store, indexed by product id."""

    def __init__(self, products: Optional[Sequence[Product]] = None):
        self._products: List[Product] = list(PERFUMES if products is None else products)
        self._by_id: Dict[int, Product] = {p.id: p for p in self._products}

    def all(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id) -> Optional[Product]:
        try:
            return self._by_id.get(int(product_id))
        except (TypeError, ValueError):
            return None
