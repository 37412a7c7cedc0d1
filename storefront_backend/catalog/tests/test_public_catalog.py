# catalog/tests/test_public_catalog.py

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from catalog.models import Category, Product
from orders.models import Order
from supplier.services.client import StockInfo
from supplier.services.exceptions import ProxyFetchError

User = get_user_model()


class PublicCatalogTests(TestCase):
    """
    GUARANTEES:
    - Only active products are visible
    - Filtering by a parent category includes its subcategories
    - Search, price range, rating and in_stock filters apply
    - Sorts follow price and completed sales
    - The list defaults to recommended order: completed sales, then newest
    """

    def setUp(self):
        self.client = APIClient()
        self.accounts = Category.objects.create(name="Accounts")
        self.email = Category.objects.create(name="Email Accounts", parent=self.accounts)
        self.software = Category.objects.create(name="Software")

        self.gmail = Product.objects.create(
            title="Gmail Account", category=self.email, price=Decimal("2.50"), stock=10, rating=Decimal("4.50")
        )
        self.outlook = Product.objects.create(
            title="Outlook Account", category=self.email, price=Decimal("1.20"), stock=0, rating=Decimal("3.00")
        )
        self.office = Product.objects.create(
            title="Office Key",
            category=self.software,
            price=Decimal("12.00"),
            original_price=Decimal("25.00"),
            stock=5,
            short_description="Lifetime licence",
        )
        self.hidden = Product.objects.create(
            title="Hidden Account", category=self.email, price=Decimal("9.00"), stock=3, is_active=False
        )
        self.url = reverse("catalog:products-list")

    def _slugs(self, res):
        return [row["slug"] for row in res.data["results"]]

    def test_inactive_hidden(self):
        res = self.client.get(self.url)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 3)
        self.assertNotIn(self.hidden.slug, self._slugs(res))

        detail = self.client.get(reverse("catalog:products-detail", args=[self.hidden.slug]))
        self.assertEqual(detail.status_code, 404)

    def test_parent_category_includes_children(self):
        res = self.client.get(self.url, {"category": self.accounts.slug})
        self.assertEqual(set(self._slugs(res)), {self.gmail.slug, self.outlook.slug})

    def test_unknown_category_is_empty(self):
        res = self.client.get(self.url, {"category": "nope"})
        self.assertEqual(res.data["count"], 0)

    def test_search_and_ranges(self):
        self.assertEqual(self._slugs(self.client.get(self.url, {"q": "lifetime"})), [self.office.slug])
        self.assertEqual(
            set(self._slugs(self.client.get(self.url, {"min_price": "2", "max_price": "13"}))),
            {self.gmail.slug, self.office.slug},
        )
        self.assertEqual(self._slugs(self.client.get(self.url, {"min_rating": "4"})), [self.gmail.slug])
        self.assertNotIn(self.outlook.slug, self._slugs(self.client.get(self.url, {"in_stock": "true"})))

    def test_price_sorts(self):
        low = self._slugs(self.client.get(self.url, {"sort": "price-low"}))
        high = self._slugs(self.client.get(self.url, {"sort": "price-high"}))

        self.assertEqual(low, [self.outlook.slug, self.gmail.slug, self.office.slug])
        self.assertEqual(high, list(reversed(low)))

    def test_popular_counts_completed_orders_only(self):
        buyer = User.objects.create_user(email="buyer@example.com", password="pass12345")
        Order.objects.create(
            user=buyer, product=self.office, quantity=3, unit_price="12.00", total_price="36.00", status="completed"
        )
        Order.objects.create(
            user=buyer, product=self.gmail, quantity=9, unit_price="2.50", total_price="22.50", status="failed"
        )

        res = self.client.get(self.url, {"sort": "popular"})

        self.assertEqual(self._slugs(res)[0], self.office.slug)
        self.assertEqual(res.data["results"][0]["sales_count"], 3)

    def _age_products(self):
        now = timezone.now()
        Product.objects.filter(pk=self.gmail.pk).update(created_at=now - timedelta(days=3), rating=Decimal("5.00"))
        Product.objects.filter(pk=self.outlook.pk).update(created_at=now - timedelta(days=1), rating=Decimal("1.00"))
        Product.objects.filter(pk=self.office.pk).update(created_at=now - timedelta(days=5))

    def test_recommended_is_sales_then_newest(self):
        self._age_products()

        res = self.client.get(self.url, {"sort": "recommended"})

        self.assertEqual(self._slugs(res), [self.outlook.slug, self.gmail.slug, self.office.slug])

    def test_recommended_puts_best_sellers_first(self):
        self._age_products()
        buyer = User.objects.create_user(email="buyer@example.com", password="pass12345")
        Order.objects.create(
            user=buyer, product=self.office, quantity=1, unit_price="12.00", total_price="12.00", status="completed"
        )

        res = self.client.get(self.url, {"sort": "recommended"})

        self.assertEqual(self._slugs(res), [self.office.slug, self.outlook.slug, self.gmail.slug])

    def test_default_order_is_recommended(self):
        self._age_products()

        res = self.client.get(self.url)

        self.assertEqual(self._slugs(res), [self.outlook.slug, self.gmail.slug, self.office.slug])
        self.assertEqual(
            self._slugs(res), self._slugs(self.client.get(self.url, {"sort": "recommended"}))
        )

    def test_discount_percentage(self):
        res = self.client.get(reverse("catalog:products-detail", args=[self.office.slug]))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["discount_percentage"], 52)

    def test_related_products(self):
        res = self.client.get(reverse("catalog:products-related", args=[self.gmail.slug]))

        self.assertEqual([row["slug"] for row in res.data], [self.outlook.slug])

    def test_category_tree(self):
        res = self.client.get(reverse("catalog:categories-list"))

        self.assertEqual(res.status_code, 200)
        by_slug = {row["slug"]: row for row in res.data}
        self.assertEqual(set(by_slug), {self.accounts.slug, self.software.slug})
        self.assertEqual(by_slug[self.accounts.slug]["product_count"], 2)
        self.assertEqual(by_slug[self.accounts.slug]["subcategories"][0]["slug"], self.email.slug)


class StockEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.product = Product.objects.create(title="Supplier Key", price=Decimal("3.00"), stock=2, kiosk_token="KIOSK")
        self.url = reverse("catalog:products-stock", args=[self.product.slug])

    def test_local_stock_only_by_default(self):
        res = self.client.get(self.url)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["stock"], 2)
        self.assertTrue(res.data["in_stock"])
        self.assertIsNone(res.data["supplier"])

    @patch("catalog.views.public.check_stock")
    def test_live_supplier_stock(self, check_stock):
        check_stock.return_value = StockInfo(name="Supplier Key", stock=40, price=Decimal("2.10"), raw={})

        res = self.client.get(self.url, {"live": "true"})

        self.assertEqual(res.data["supplier"]["stock"], 40)
        check_stock.assert_called_once()

    @patch("catalog.views.public.check_stock", side_effect=ProxyFetchError("all proxies failed"))
    def test_live_supplier_failure_is_reported(self, _):
        res = self.client.get(self.url, {"live": "1"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["supplier"], {"error": "all proxies failed"})


class ProductModelTests(TestCase):
    def test_in_stock_follows_stock(self):
        product = Product.objects.create(title="Thing", price=Decimal("1.00"), stock=0)
        self.assertFalse(product.in_stock)

        product.stock = 4
        product.save(update_fields=["stock"])
        product.refresh_from_db()
        self.assertTrue(product.in_stock)

    def test_slugs_are_unique(self):
        a = Product.objects.create(title="Same Name", price=Decimal("1.00"))
        b = Product.objects.create(title="Same Name", price=Decimal("1.00"))

        self.assertEqual(a.slug, "same-name")
        self.assertEqual(b.slug, "same-name-2")
