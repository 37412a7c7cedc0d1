# payments/tests/test_deposits.py

from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from notifications.models import Notification
from payments.models import Deposit
from payments.services.deposit_service import (
    calculate_fee,
    capture_deposit,
    check_payment,
    create_deposit,
    process_deposit_balance,
    refresh_balance,
)
from payments.services.exceptions import (
    DepositAmountError,
    DepositNotFound,
    PaymentPendingError,
    PaymentVerificationError,
    PayPalError,
)
from wallet.models import Transaction
from wallet.services.balance_service import get_balance

User = get_user_model()


def captured_order(deposit, *, amount="10.00", currency="USD", capture_status="COMPLETED",
                   order_status="COMPLETED", capture_id="CAP-1"):
    return {
        "id": "PP-ORDER-1",
        "status": order_status,
        "payer": {"email_address": "payer@paypal.test", "payer_id": "PAYER1"},
        "purchase_units": [
            {
                "custom_id": str(deposit.id),
                "amount": {"value": amount, "currency_code": currency},
                "payments": {
                    "captures": [
                        {
                            "id": capture_id,
                            "status": capture_status,
                            "amount": {"value": amount, "currency_code": currency},
                            "custom_id": str(deposit.id),
                        }
                    ]
                },
            }
        ],
    }


class FeeTests(TestCase):
    """
    GUARANTEES:
    - fee = 3.9% + 0.30, rounded half-up to cents
    - Deposits below the minimum, or that do not cover the fee, are refused
    """

    def setUp(self):
        self.user = User.objects.create_user(email="payer@test.com", password="pass12345")

    def test_fee_math(self):
        self.assertEqual(calculate_fee("10.00"), (Decimal("0.69"), Decimal("9.31")))
        self.assertEqual(calculate_fee("100"), (Decimal("4.20"), Decimal("95.80")))

    def test_create_deposit_snapshots_fee(self):
        deposit = create_deposit(user=self.user, amount="25.00")

        self.assertEqual(deposit.status, Deposit.STATUS_PENDING)
        self.assertEqual(deposit.fee, Decimal("1.28"))
        self.assertEqual(deposit.net_amount, Decimal("23.72"))
        self.assertEqual(deposit.currency, "USD")
        self.assertFalse(deposit.is_processed)

    def test_minimum_deposit(self):
        with self.assertRaises(DepositAmountError):
            create_deposit(user=self.user, amount="0.50")

    def test_garbage_amount(self):
        with self.assertRaises(DepositAmountError):
            create_deposit(user=self.user, amount="ten")


class CaptureTests(TestCase):
    """
    GUARANTEES:
    - A verified capture credits net_amount once and completes the deposit
    - Amount, currency and ownership mismatches fail the deposit, no credit
    - Re-processing a completed deposit never credits twice
    """

    def setUp(self):
        self.user = User.objects.create_user(email="payer@test.com", password="pass12345")
        self.deposit = create_deposit(user=self.user, amount="10.00")
        self.deposit.paypal_order_id = "PP-ORDER-1"
        self.deposit.save()

    @patch("payments.services.paypal.capture_order")
    def test_capture_credits_net(self, capture):
        capture.return_value = captured_order(self.deposit)

        deposit = capture_deposit(deposit=self.deposit, paypal_order_id="PP-ORDER-1")

        self.assertEqual(deposit.status, Deposit.STATUS_COMPLETED)
        self.assertTrue(deposit.is_processed)
        self.assertEqual(deposit.transaction_id, "CAP-1")
        self.assertEqual(deposit.payer_email, "payer@paypal.test")
        self.assertEqual(get_balance(self.user), Decimal("9.31"))

        txn = Transaction.objects.get(user=self.user, type=Transaction.TYPE_DEPOSIT)
        self.assertEqual(txn.transaction_id, "CAP-1")
        self.assertEqual(txn.payment_method, "paypal")
        self.assertTrue(
            Notification.objects.filter(user=self.user, type=Notification.TYPE_DEPOSIT).exists()
        )

    @patch("payments.services.paypal.capture_order")
    def test_underpaid_capture_fails_deposit(self, capture):
        capture.return_value = captured_order(self.deposit, amount="1.00")

        with self.assertRaises(PaymentVerificationError):
            capture_deposit(deposit=self.deposit, paypal_order_id="PP-ORDER-1")

        self.deposit.refresh_from_db()
        self.assertEqual(self.deposit.status, Deposit.STATUS_FAILED)
        self.assertIn("Amount mismatch", self.deposit.failure_reason)
        self.assertEqual(get_balance(self.user), Decimal("0.00"))

    @patch("payments.services.paypal.capture_order")
    def test_currency_mismatch(self, capture):
        capture.return_value = captured_order(self.deposit, currency="EUR")

        with self.assertRaises(PaymentVerificationError):
            capture_deposit(deposit=self.deposit, paypal_order_id="PP-ORDER-1")

    @patch("payments.services.paypal.capture_order")
    def test_incomplete_capture(self, capture):
        capture.return_value = captured_order(self.deposit, capture_status="PENDING", order_status="APPROVED")

        with self.assertRaises(PaymentPendingError):
            capture_deposit(deposit=self.deposit, paypal_order_id="PP-ORDER-1")

        self.deposit.refresh_from_db()
        self.assertEqual(self.deposit.status, Deposit.STATUS_PENDING)

    @patch("payments.services.paypal.capture_order")
    def test_completed_order_with_unsettled_capture_not_credited(self, capture):
        capture.return_value = captured_order(self.deposit, capture_status="PENDING", order_status="COMPLETED")

        with self.assertRaises(PaymentPendingError):
            capture_deposit(deposit=self.deposit, paypal_order_id="PP-ORDER-1")

        self.deposit.refresh_from_db()
        self.assertEqual(self.deposit.status, Deposit.STATUS_PENDING)
        self.assertFalse(self.deposit.is_processed)
        self.assertEqual(self.deposit.transaction_id, "")
        self.assertEqual(get_balance(self.user), Decimal("0.00"))
        self.assertFalse(Transaction.objects.filter(type=Transaction.TYPE_DEPOSIT).exists())

    @patch("payments.services.paypal.capture_order")
    def test_capture_for_other_deposit(self, capture):
        other = create_deposit(user=self.user, amount="10.00")
        capture.return_value = captured_order(other)

        with self.assertRaises(PaymentVerificationError):
            capture_deposit(deposit=self.deposit, paypal_order_id="PP-ORDER-1")

    def test_process_is_idempotent(self):
        self.deposit.transaction_id = "CAP-9"
        self.deposit.save()

        _, first = process_deposit_balance(self.deposit)
        _, second = process_deposit_balance(self.deposit)

        self.assertTrue(first)
        self.assertFalse(second)
        self.assertEqual(get_balance(self.user), Decimal("9.31"))
        self.assertEqual(Transaction.objects.filter(type=Transaction.TYPE_DEPOSIT).count(), 1)

    def test_existing_ledger_line_not_credited_again(self):
        self.deposit.transaction_id = "CAP-10"
        self.deposit.save()
        Transaction.objects.create(
            user=self.user,
            amount=Decimal("9.31"),
            type=Transaction.TYPE_DEPOSIT,
            status=Transaction.STATUS_COMPLETED,
            transaction_id="CAP-10",
        )

        deposit, credited = process_deposit_balance(self.deposit)

        self.assertFalse(credited)
        self.assertEqual(deposit.status, Deposit.STATUS_COMPLETED)

    def test_uncaptured_deposit_not_credited(self):
        with self.assertRaises(PaymentVerificationError):
            process_deposit_balance(self.deposit)


class CheckPaymentTests(TestCase):
    """
    GUARANTEES:
    - Pending captured deposits are finalized on lookup
    - Completed deposits report their summary
    - Unknown or foreign transaction ids are not found
    """

    def setUp(self):
        self.user = User.objects.create_user(email="payer@test.com", password="pass12345")
        self.deposit = create_deposit(user=self.user, amount="10.00")
        self.deposit.transaction_id = "CAP-77"
        self.deposit.save()

    def test_pending_is_finalized(self):
        payload = check_payment(transaction_id="CAP-77", user=self.user)

        self.assertEqual(payload["status"], Deposit.STATUS_COMPLETED)
        self.assertEqual(payload["message"], "Deposit marked as completed and user balance updated")
        self.assertEqual(get_balance(self.user), Decimal("9.31"))

    def test_completed_summary(self):
        check_payment(transaction_id="CAP-77", user=self.user)

        payload = check_payment(transaction_id="CAP-77", user=self.user)

        self.assertEqual(payload["deposit"]["net_amount"], "9.31")
        self.assertEqual(get_balance(self.user), Decimal("9.31"))

    def test_failed_status_reported(self):
        Deposit.objects.filter(pk=self.deposit.pk).update(status=Deposit.STATUS_FAILED)

        payload = check_payment(transaction_id="CAP-77")

        self.assertEqual(payload["message"], "Deposit is in failed status")

    def test_not_found(self):
        stranger = User.objects.create_user(email="other@test.com", password="pass12345")

        with self.assertRaises(DepositNotFound):
            check_payment(transaction_id="CAP-77", user=stranger)
        with self.assertRaises(DepositNotFound):
            check_payment(transaction_id="")

    def test_refresh_balance(self):
        result = refresh_balance(self.user)

        self.assertEqual(result, {"balance": Decimal("9.31"), "processed": 1})
        self.assertEqual(refresh_balance(self.user)["processed"], 0)


class DepositEndpointTests(TestCase):
    """
    GUARANTEES:
    - Creating a deposit returns the PayPal approve URL
    - A retried Idempotency-Key does not open a second PayPal order
    - Capture maps verification and transport failures to 400 / 502
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="payer@test.com", password="pass12345")
        self.client.force_authenticate(self.user)
        self.url = reverse("payments:deposits-list")

    @patch("payments.services.paypal.create_order")
    def test_create(self, create_order):
        create_order.return_value = {
            "id": "PP-ORDER-5",
            "links": [{"rel": "approve", "href": "https://www.sandbox.paypal.com/checkoutnow?token=PP-ORDER-5"}],
        }

        res = self.client.post(self.url, {"amount": "10.00"}, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["paypal_order_id"], "PP-ORDER-5")
        self.assertIn("token=PP-ORDER-5", res.data["approve_url"])
        self.assertEqual(res.data["deposit"]["fee"], "0.69")

        deposit = Deposit.objects.get()
        self.assertEqual(create_order.call_args.kwargs["custom_id"], str(deposit.id))
        self.assertEqual(deposit.paypal_order_id, "PP-ORDER-5")

    @patch("payments.services.paypal.create_order", return_value={"id": "PP-ORDER-6", "links": []})
    def test_create_idempotent(self, create_order):
        first = self.client.post(self.url, {"amount": "10.00"}, format="json", HTTP_IDEMPOTENCY_KEY="deposit_k1")
        second = self.client.post(self.url, {"amount": "10.00"}, format="json", HTTP_IDEMPOTENCY_KEY="deposit_k1")

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(create_order.call_count, 1)
        self.assertEqual(Deposit.objects.count(), 1)

    def test_create_below_minimum(self):
        res = self.client.post(self.url, {"amount": "0.50"}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_AMOUNT")

    @patch("payments.services.paypal.create_order", side_effect=PayPalError("PayPal HTTP 503"))
    def test_create_paypal_down(self, create_order):
        res = self.client.post(self.url, {"amount": "10.00"}, format="json")

        self.assertEqual(res.status_code, 502)

    @patch("payments.services.paypal.capture_order")
    def test_capture_endpoint(self, capture):
        deposit = create_deposit(user=self.user, amount="10.00")
        Deposit.objects.filter(pk=deposit.pk).update(paypal_order_id="PP-ORDER-1")
        capture.return_value = captured_order(deposit)

        res = self.client.post(reverse("payments:deposits-capture", args=[deposit.id]), {}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Deposit.STATUS_COMPLETED)
        capture.assert_called_once_with("PP-ORDER-1")

    @patch("payments.services.paypal.capture_order")
    def test_capture_still_settling_202(self, capture):
        deposit = create_deposit(user=self.user, amount="10.00")
        Deposit.objects.filter(pk=deposit.pk).update(paypal_order_id="PP-ORDER-1")
        capture.return_value = captured_order(deposit, capture_status="PENDING")

        res = self.client.post(reverse("payments:deposits-capture", args=[deposit.id]), {}, format="json")

        self.assertEqual(res.status_code, 202)
        self.assertEqual(res.data["status"], Deposit.STATUS_PENDING)
        self.assertEqual(get_balance(self.user), Decimal("0.00"))

    def test_capture_order_mismatch(self):
        deposit = create_deposit(user=self.user, amount="10.00")
        Deposit.objects.filter(pk=deposit.pk).update(paypal_order_id="PP-ORDER-1")

        res = self.client.post(
            reverse("payments:deposits-capture", args=[deposit.id]),
            {"paypal_order_id": "PP-OTHER"},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "ORDER_MISMATCH")

    def test_capture_without_order(self):
        deposit = create_deposit(user=self.user, amount="10.00")

        res = self.client.post(reverse("payments:deposits-capture", args=[deposit.id]), {}, format="json")

        self.assertEqual(res.data["error"]["code"], "MISSING_ORDER")

    def test_fee_preview(self):
        res = self.client.get(reverse("payments:fee"), {"amount": "10.00"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["fee"], Decimal("0.69"))
        self.assertEqual(res.data["net_amount"], Decimal("9.31"))

    def test_list_own_deposits(self):
        create_deposit(user=self.user, amount="10.00")
        create_deposit(user=User.objects.create_user(email="x@test.com", password="pass12345"), amount="5.00")

        res = self.client.get(self.url)

        self.assertEqual(res.data["count"], 1)

    def test_check_payment_endpoint(self):
        res = self.client.post(reverse("payments:check-payment"), {"transaction_id": "nope"}, format="json")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")
