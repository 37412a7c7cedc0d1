# orders/tests/test_purchase.py

import re
import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from catalog.models import Product
from orders.models import Order, OrderActivity
from orders.services.exceptions import InvalidQuantityError, OutOfStockError, ProductUnavailableError
from orders.services.purchase_service import purchase_product
from security.models import SecurityEvent
from wallet.models import Transaction
from wallet.services.balance_service import get_balance, update_user_balance
from wallet.services.exceptions import InsufficientBalanceError

User = get_user_model()

KEY_PATTERN = re.compile(r"^[A-Z]{3}-[A-Z]{3}-[A-Z]{3}$")


def fund(user, amount):
    update_user_balance(user=user, amount=Decimal(amount), tx_type=Transaction.TYPE_DEPOSIT)


class PurchaseServiceTests(TestCase):
    """
    GUARANTEES:
    - A local product purchase debits the balance, decrements stock and
      delivers one key per unit
    - The purchase ledger line carries the order number
    - Refused purchases write nothing and leave a failed purchase event
    """

    def setUp(self):
        self.buyer = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.product = Product.objects.create(title="Netflix Premium", price=Decimal("3.50"), stock=10)

    def test_local_purchase_completes_with_keys(self):
        fund(self.buyer, "20.00")

        order = purchase_product(user=self.buyer, product_id=self.product.id, quantity=2)

        self.assertEqual(order.status, Order.STATUS_COMPLETED)
        self.assertEqual(order.total_price, Decimal("7.00"))
        self.assertEqual(len(order.keys), 2)
        for key in order.keys:
            self.assertRegex(key, KEY_PATTERN)
        self.assertIsNotNone(order.completed_at)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 8)
        self.assertEqual(get_balance(self.buyer), Decimal("13.00"))

        txn = Transaction.objects.get(user=self.buyer, type=Transaction.TYPE_PURCHASE)
        self.assertEqual(txn.amount, Decimal("-7.00"))
        self.assertEqual(txn.transaction_id, order.order_number)

        actions = set(order.activities.values_list("action", flat=True))
        self.assertEqual(actions, {OrderActivity.ACTION_CREATED, OrderActivity.ACTION_KEYS_DELIVERED})

        self.assertTrue(
            SecurityEvent.objects.filter(
                user=self.buyer, event_type=SecurityEvent.TYPE_PURCHASE, success=True
            ).exists()
        )

    def test_insufficient_balance_writes_nothing(self):
        fund(self.buyer, "1.00")

        with self.assertRaises(InsufficientBalanceError):
            purchase_product(user=self.buyer, product_id=self.product.id, quantity=1)

        self.assertFalse(Order.objects.exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertEqual(get_balance(self.buyer), Decimal("1.00"))
        self.assertTrue(
            SecurityEvent.objects.filter(
                user=self.buyer, event_type=SecurityEvent.TYPE_PURCHASE, success=False
            ).exists()
        )

    def test_out_of_stock(self):
        fund(self.buyer, "100.00")

        with self.assertRaises(OutOfStockError):
            purchase_product(user=self.buyer, product_id=self.product.id, quantity=11)

        self.assertEqual(get_balance(self.buyer), Decimal("100.00"))

    def test_inactive_product_unavailable(self):
        fund(self.buyer, "100.00")
        self.product.is_active = False
        self.product.save()

        with self.assertRaises(ProductUnavailableError):
            purchase_product(user=self.buyer, product_id=self.product.id)

    def test_unknown_product_unavailable(self):
        with self.assertRaises(ProductUnavailableError):
            purchase_product(user=self.buyer, product_id=uuid.uuid4())

    def test_fractional_quantity_rejected(self):
        fund(self.buyer, "100.00")

        with self.assertRaises(InvalidQuantityError):
            purchase_product(user=self.buyer, product_id=self.product.id, quantity="1.5")


class PurchaseEndpointTests(TestCase):
    """
    GUARANTEES:
    - 201 for a new purchase, 200 + Idempotent-Replayed for a retried key
    - A replayed key never buys twice
    - Errors map to 402 / 404 / 409
    """

    def setUp(self):
        self.client = APIClient()
        self.buyer = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.product = Product.objects.create(title="Spotify Family", price=Decimal("5.00"), stock=3)
        self.client.force_authenticate(self.buyer)
        self.url = reverse("orders:purchase")

    def test_requires_auth(self):
        res = APIClient().post(self.url, {"product_id": str(self.product.id)}, format="json")
        self.assertEqual(res.status_code, 401)

    def test_purchase_created(self):
        fund(self.buyer, "10.00")

        res = self.client.post(self.url, {"product_id": str(self.product.id), "quantity": 1}, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["status"], Order.STATUS_COMPLETED)
        self.assertEqual(res.data["total_price"], "5.00")
        self.assertEqual(len(res.data["keys"]), 1)

    def test_idempotent_replay(self):
        fund(self.buyer, "10.00")
        payload = {"product_id": str(self.product.id), "quantity": 1}

        first = self.client.post(self.url, payload, format="json", HTTP_IDEMPOTENCY_KEY="purchase_abc_1")
        second = self.client.post(self.url, payload, format="json", HTTP_IDEMPOTENCY_KEY="purchase_abc_1")

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second["Idempotent-Replayed"], "true")
        self.assertEqual(second.data["order_number"], first.data["order_number"])
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(get_balance(self.buyer), Decimal("5.00"))

    def test_insufficient_balance_402(self):
        res = self.client.post(self.url, {"product_id": str(self.product.id)}, format="json")

        self.assertEqual(res.status_code, 402)
        self.assertEqual(res.data["error"]["code"], "INSUFFICIENT_BALANCE")

    def test_out_of_stock_409(self):
        fund(self.buyer, "100.00")

        res = self.client.post(self.url, {"product_id": str(self.product.id), "quantity": 4}, format="json")

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "OUT_OF_STOCK")

    def test_unknown_product_404(self):
        fund(self.buyer, "100.00")

        res = self.client.post(self.url, {"product_id": str(uuid.uuid4())}, format="json")

        self.assertEqual(res.status_code, 404)

    def test_zero_quantity_400(self):
        res = self.client.post(self.url, {"product_id": str(self.product.id), "quantity": 0}, format="json")
        self.assertEqual(res.status_code, 400)
