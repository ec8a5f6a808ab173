import unittest

from db.catalog import Catalog
from db.models import ProductFilter
from storefront.catalog import CatalogService
from utils.exceptions import NotFoundError, ValidationError


class CatalogServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.service = CatalogService()

    def ids(self, **kw):
        return [p.id for p in self.service.list_products(ProductFilter(**kw))]

    def test_unfiltered_keeps_catalog_order(self):
        self.assertEqual(self.ids(), [1, 2, 3, 4, 5, 6])
        self.assertEqual(self.ids(category="all"), [1, 2, 3, 4, 5, 6])

    def test_category_filter_is_case_insensitive(self):
        self.assertEqual(self.ids(category="Women"), [1, 4])
        self.assertEqual(self.ids(category="unisex"), [3, 6])
        with self.assertRaises(ValidationError):
            self.ids(category="kids")

    def test_search_covers_name_brand_and_description(self):
        self.assertEqual(self.ids(search="rose"), [1])
        self.assertEqual(self.ids(search="aroma marine"), [2])
        self.assertEqual(self.ids(search="ENERGIZING"), [6])
        self.assertEqual(self.ids(search="nothing like this"), [])

    def test_price_bounds_are_inclusive(self):
        self.assertEqual(self.ids(min_price=75.99, max_price=95.99), [1, 2, 5])
        self.assertEqual(self.ids(min_price=100), [3])

    def test_sorting(self):
        self.assertEqual(self.ids(sort="price-low"), [6, 4, 2, 1, 5, 3])
        self.assertEqual(self.ids(sort="price-high"), [3, 5, 1, 2, 4, 6])
        self.assertEqual(self.ids(sort="rating"), [3, 1, 5, 2, 4, 6])
        self.assertEqual(self.ids(sort="name"), [6, 5, 4, 3, 1, 2])
        self.assertEqual(self.ids(category="men", sort="price-low"), [2, 5])
        with self.assertRaises(ValidationError):
            self.ids(sort="newest")

    def test_get_product(self):
        self.assertEqual(self.service.get_product("3").name, "Golden Sunset")
        with self.assertRaises(NotFoundError):
            self.service.get_product(42)
        with self.assertRaises(NotFoundError):
            self.service.get_product("abc")

    def test_categories(self):
        self.assertEqual(self.service.categories(), ["all", "women", "men", "unisex"])
        self.assertEqual(CatalogService(Catalog([])).categories(), ["all"])


if __name__ == "__main__":
    unittest.main()
