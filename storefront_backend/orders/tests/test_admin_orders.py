# orders/tests/test_admin_orders.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from catalog.models import Product
from orders.models import Invoice, Order, OrderActivity
from wallet.models import Transaction
from wallet.services.balance_service import get_balance

User = get_user_model()


def make_order(user, product, *, status=Order.STATUS_COMPLETED, total="6.00"):
    return Order.objects.create(
        user=user,
        product=product,
        quantity=2,
        unit_price=Decimal(total) / 2,
        total_price=Decimal(total),
        status=status,
        keys=["AAA-BBB-CCC", "DDD-EEE-FFF"] if status == Order.STATUS_COMPLETED else [],
    )


class CustomerOrderTests(TestCase):
    """
    GUARANTEES:
    - Customers only see their own orders
    - Invoices are issued once for completed orders and replayed afterwards
    """

    def setUp(self):
        self.client = APIClient()
        self.buyer = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.other = User.objects.create_user(email="other@test.com", password="pass12345")
        self.product = Product.objects.create(title="Canva Pro", price=Decimal("3.00"), stock=5)

        self.order = make_order(self.buyer, self.product)
        make_order(self.other, self.product)
        self.client.force_authenticate(self.buyer)

    def test_list_own_orders(self):
        res = self.client.get(reverse("orders:orders-list"))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["order_number"], self.order.order_number)

    def test_invoice_issued_once(self):
        url = reverse("orders:orders-invoice", args=[self.order.id])

        first = self.client.get(url)
        second = self.client.get(url)

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(first.data["invoice_number"], second.data["invoice_number"])
        self.assertEqual(Invoice.objects.filter(order=self.order).count(), 1)

        invoice = Invoice.objects.get(order=self.order)
        self.assertEqual(invoice.amount, Decimal("6.00"))
        self.assertEqual(invoice.details["recipient"]["email"], "buyer@test.com")
        self.assertEqual(invoice.details["products"][0]["quantity"], 2)

    def test_invoice_refused_for_processing_order(self):
        pending = make_order(self.buyer, self.product, status=Order.STATUS_PROCESSING)

        res = self.client.get(reverse("orders:orders-invoice", args=[pending.id]))

        self.assertEqual(res.status_code, 400)
        self.assertFalse(Invoice.objects.filter(order=pending).exists())


class AdminOrderTests(TestCase):
    """
    GUARANTEES:
    - Back-office order endpoints are capability protected
    - Status changes follow the lifecycle and are logged
    - Refunds credit the buyer exactly once; staff cannot refund
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="admin@test.com", password="pass12345", role="admin")
        self.staff = User.objects.create_user(email="staff@test.com", password="pass12345", role="staff")
        self.buyer = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.product = Product.objects.create(title="Adobe CC", price=Decimal("3.00"), stock=5)
        self.order = make_order(self.buyer, self.product)

    def test_customer_forbidden(self):
        self.client.force_authenticate(self.buyer)

        res = self.client.get(reverse("orders:admin-orders-list"))

        self.assertEqual(res.status_code, 403)

    def test_staff_search(self):
        self.client.force_authenticate(self.staff)

        res = self.client.get(reverse("orders:admin-orders-list"), {"q": "buyer@"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["user_email"], "buyer@test.com")

    def test_update_status_logged(self):
        pending = make_order(self.buyer, self.product, status=Order.STATUS_PENDING)
        self.client.force_authenticate(self.staff)

        res = self.client.post(
            reverse("orders:admin-orders-update-status", args=[pending.id]),
            {"status": Order.STATUS_CANCELLED, "note": "customer request"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Order.STATUS_CANCELLED)
        activity = pending.activities.get(action=OrderActivity.ACTION_STATUS_CHANGED)
        self.assertEqual(activity.old_status, Order.STATUS_PENDING)
        self.assertEqual(activity.metadata, {"note": "customer request"})

    def test_invalid_transition_400(self):
        self.client.force_authenticate(self.staff)

        res = self.client.post(
            reverse("orders:admin-orders-update-status", args=[self.order.id]),
            {"status": Order.STATUS_PENDING},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_TRANSITION")

    def test_refund_via_status_change_refused(self):
        self.client.force_authenticate(self.admin)

        res = self.client.post(
            reverse("orders:admin-orders-update-status", args=[self.order.id]),
            {"status": Order.STATUS_REFUNDED},
            format="json",
        )

        self.assertEqual(res.status_code, 400)

    def test_staff_cannot_refund(self):
        self.client.force_authenticate(self.staff)

        res = self.client.post(reverse("orders:admin-orders-refund", args=[self.order.id]), {}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_refund_once(self):
        self.client.force_authenticate(self.admin)
        url = reverse("orders:admin-orders-refund", args=[self.order.id])

        first = self.client.post(url, {"reason": "duplicate charge"}, format="json")
        second = self.client.post(url, {}, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.data["status"], Order.STATUS_REFUNDED)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.data["error"]["code"], "ALREADY_REFUNDED")

        self.assertEqual(get_balance(self.buyer), Decimal("6.00"))
        self.assertEqual(Transaction.objects.filter(type=Transaction.TYPE_REFUND).count(), 1)

    def test_refund_cancelled_order_refused(self):
        cancelled = make_order(self.buyer, self.product, status=Order.STATUS_CANCELLED)
        self.client.force_authenticate(self.admin)

        res = self.client.post(reverse("orders:admin-orders-refund", args=[cancelled.id]), {}, format="json")

        self.assertEqual(res.status_code, 400)

    def test_activities(self):
        self.client.force_authenticate(self.admin)
        self.client.post(reverse("orders:admin-orders-refund", args=[self.order.id]), {}, format="json")

        res = self.client.get(reverse("orders:admin-orders-activities", args=[self.order.id]))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data[0]["action"], OrderActivity.ACTION_REFUNDED)
        self.assertEqual(res.data[0]["user_email"], "admin@test.com")


class AdminStatsTests(TestCase):
    """
    GUARANTEES:
    - Revenue counts completed orders only
    - Date parameters are validated
    """

    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(email="staff@test.com", password="pass12345", role="staff")
        buyer = User.objects.create_user(email="buyer@test.com", password="pass12345")
        product = Product.objects.create(title="Windows 11 Pro", price=Decimal("3.00"), stock=5)
        make_order(buyer, product, total="6.00")
        make_order(buyer, product, total="9.00")
        make_order(buyer, product, status=Order.STATUS_FAILED, total="100.00")
        self.client.force_authenticate(self.staff)
        self.url = reverse("orders:admin-stats")

    def test_dashboard_totals(self):
        res = self.client.get(self.url)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["revenue"], "15.00")
        self.assertEqual(res.data["orders_total"], 3)
        self.assertEqual(res.data["orders_by_status"][Order.STATUS_FAILED], 1)
        self.assertEqual(res.data["top_products"][0]["quantity"], 4)
        self.assertEqual(res.data["new_users"], 2)

    def test_bad_dates(self):
        self.assertEqual(self.client.get(self.url, {"start_date": "yesterday"}).status_code, 400)
        self.assertEqual(
            self.client.get(self.url, {"start_date": "2026-02-01", "end_date": "2026-01-01"}).status_code,
            400,
        )

    def test_range_without_orders(self):
        res = self.client.get(self.url, {"start_date": "2020-01-01", "end_date": "2020-01-31"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["revenue"], "0.00")
        self.assertEqual(res.data["start_date"], date(2020, 1, 1).isoformat())
