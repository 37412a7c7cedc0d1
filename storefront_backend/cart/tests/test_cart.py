# cart/tests/test_cart.py

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from cart.models import Cart, CartItem
from catalog.models import Product
from orders.models import Order
from wallet.models import Transaction
from wallet.services.balance_service import get_balance, update_user_balance

User = get_user_model()


class CartItemTests(TestCase):
    """
    GUARANTEES:
    - The active cart is created on demand
    - Adding a product twice increments the line
    - Quantities never exceed the product stock
    - Lines belong to their owner's cart only
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.product = Product.objects.create(title="ChatGPT Plus", price=Decimal("4.25"), stock=3)
        self.client.force_authenticate(self.user)

    def _add(self, product=None, quantity=1):
        return self.client.post(
            reverse("cart:add-item"),
            {"product_id": str((product or self.product).id), "quantity": quantity},
            format="json",
        )

    def test_active_cart_created(self):
        res = self.client.get(reverse("cart:active-cart"))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["items"], [])
        self.assertEqual(Cart.objects.filter(user=self.user, is_active=True).count(), 1)

    def test_add_increments(self):
        self._add()
        res = self._add(quantity=2)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["items"]), 1)
        self.assertEqual(res.data["items"][0]["quantity"], 3)
        self.assertEqual(res.data["item_count"], 3)
        self.assertEqual(Decimal(res.data["subtotal_amount"]), Decimal("12.75"))

    def test_add_over_stock_409(self):
        self._add(quantity=2)
        res = self._add(quantity=2)

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "OUT_OF_STOCK")
        self.assertEqual(CartItem.objects.get().quantity, 2)

    def test_add_inactive_product_404(self):
        self.product.is_active = False
        self.product.save()

        self.assertEqual(self._add().status_code, 404)

    def test_add_unknown_product_404(self):
        res = self.client.post(
            reverse("cart:add-item"), {"product_id": str(uuid.uuid4())}, format="json"
        )
        self.assertEqual(res.status_code, 404)

    def test_update_and_remove(self):
        self._add()
        item = CartItem.objects.get()
        url = reverse("cart:item", args=[item.id])

        res = self.client.patch(url, {"quantity": 2}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["items"][0]["quantity"], 2)

        res = self.client.patch(url, {"quantity": 9}, format="json")
        self.assertEqual(res.status_code, 409)

        res = self.client.patch(url, {"quantity": 0}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.delete(url)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["items"], [])

    def test_other_users_item_404(self):
        self._add()
        item = CartItem.objects.get()

        stranger = APIClient()
        stranger.force_authenticate(User.objects.create_user(email="other@test.com", password="pass12345"))

        res = stranger.delete(reverse("cart:item", args=[item.id]))

        self.assertEqual(res.status_code, 404)
        self.assertTrue(CartItem.objects.filter(id=item.id).exists())

    def test_clear(self):
        self._add()
        self._add(Product.objects.create(title="Grammarly", price=Decimal("2.00"), stock=5))

        res = self.client.delete(reverse("cart:clear"))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["item_count"], 0)
        self.assertFalse(CartItem.objects.exists())


class CheckoutTests(TestCase):
    """
    GUARANTEES:
    - Checkout creates one order per line and empties the cart
    - Lines are charged at the current product price
    - A refused checkout charges nothing and keeps the cart
    - A retried Idempotency-Key replays the first checkout
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.client.force_authenticate(self.user)
        self.first = Product.objects.create(title="Duolingo Super", price=Decimal("2.00"), stock=5)
        self.second = Product.objects.create(title="YouTube Premium", price=Decimal("3.00"), stock=5)

        for product, qty in ((self.first, 2), (self.second, 1)):
            self.client.post(
                reverse("cart:add-item"), {"product_id": str(product.id), "quantity": qty}, format="json"
            )
        self.url = reverse("cart:checkout")

    def _fund(self, amount):
        update_user_balance(user=self.user, amount=Decimal(amount), tx_type=Transaction.TYPE_DEPOSIT)

    def test_checkout_creates_orders(self):
        self._fund("20.00")

        res = self.client.post(self.url, {}, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(len(res.data["orders"]), 2)
        self.assertEqual(Order.objects.filter(user=self.user, status=Order.STATUS_COMPLETED).count(), 2)
        self.assertEqual(get_balance(self.user), Decimal("13.00"))
        self.assertFalse(CartItem.objects.exists())

    def test_checkout_uses_current_price(self):
        self._fund("20.00")
        self.second.price = Decimal("5.00")
        self.second.save()

        self.client.post(self.url, {}, format="json")

        self.assertEqual(get_balance(self.user), Decimal("11.00"))

    def test_insufficient_balance_keeps_cart(self):
        self._fund("5.00")

        res = self.client.post(self.url, {}, format="json")

        self.assertEqual(res.status_code, 402)
        self.assertFalse(Order.objects.exists())
        self.assertEqual(CartItem.objects.count(), 2)
        self.assertEqual(get_balance(self.user), Decimal("5.00"))

        self.first.refresh_from_db()
        self.assertEqual(self.first.stock, 5)

    def test_empty_cart_400(self):
        self.client.delete(reverse("cart:clear"))

        res = self.client.post(self.url, {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "EMPTY_CART")

    def test_idempotent_checkout(self):
        self._fund("20.00")

        first = self.client.post(self.url, {}, format="json", HTTP_IDEMPOTENCY_KEY="checkout_k1")
        second = self.client.post(self.url, {}, format="json", HTTP_IDEMPOTENCY_KEY="checkout_k1")

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second["Idempotent-Replayed"], "true")
        self.assertEqual(Order.objects.count(), 2)
        self.assertEqual(get_balance(self.user), Decimal("13.00"))
