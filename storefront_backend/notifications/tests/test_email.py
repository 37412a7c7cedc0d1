# notifications/tests/test_email.py

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from notifications.services.email import (
    EMAIL_DEPOSIT_SUCCESS,
    EMAIL_VERIFY,
    EmailDispatchError,
    render_email,
    send_email,
    send_email_safely,
)

User = get_user_model()

RESEND_ON = {"ENABLED": True, "RESEND_API_KEY": "re_test", "FROM_ADDRESS": "shop@example.com"}


class RenderEmailTests(TestCase):
    def test_deposit_template(self):
        rendered = render_email(
            EMAIL_DEPOSIT_SUCCESS,
            {"amount": "9.31", "transaction_id": "CAP-1", "date": "2026-01-01 10:00", "new_balance": "9.31"},
        )

        self.assertIn("CAP-1", rendered["html"])
        self.assertIn("9.31", rendered["text"])
        self.assertTrue(rendered["subject"].startswith("Deposit confirmed"))

    def test_custom_subject(self):
        rendered = render_email(EMAIL_VERIFY, {"verify_url": "https://x"}, subject="Hello")
        self.assertEqual(rendered["subject"], "Hello")

    def test_unknown_type(self):
        with self.assertRaises(EmailDispatchError):
            render_email("newsletter")


class SendEmailTests(TestCase):
    """
    GUARANTEES:
    - Disabled dispatch skips the provider call
    - Enabled dispatch sends through Resend and returns the email id
    - Provider failures surface as EmailDispatchError; the safe variant never raises
    """

    @patch("notifications.services.email.resend.Emails.send")
    def test_disabled_skips(self, send):
        result = send_email(to="a@test.com", email_type=EMAIL_VERIFY, data={"verify_url": "https://x"})

        self.assertEqual(result, {"id": None, "skipped": True})
        send.assert_not_called()

    @override_settings(EMAIL_DISPATCH=RESEND_ON)
    @patch("notifications.services.email.resend.Emails.send", return_value={"id": "em_123"})
    def test_sent_through_resend(self, send):
        result = send_email(to="a@test.com", email_type=EMAIL_VERIFY, data={"verify_url": "https://x"})

        self.assertEqual(result, {"id": "em_123", "skipped": False})
        params = send.call_args.args[0]
        self.assertEqual(params["to"], ["a@test.com"])
        self.assertIn("shop@example.com", params["from"])
        self.assertIn("https://x", params["html"])

    @override_settings(EMAIL_DISPATCH=RESEND_ON)
    @patch("notifications.services.email.resend.Emails.send", side_effect=RuntimeError("boom"))
    def test_provider_failure(self, send):
        with self.assertRaises(EmailDispatchError):
            send_email(to="a@test.com", email_type=EMAIL_VERIFY)

        self.assertFalse(send_email_safely(to="a@test.com", email_type=EMAIL_VERIFY))

    @override_settings(EMAIL_DISPATCH={"ENABLED": True, "RESEND_API_KEY": ""})
    def test_missing_api_key(self):
        with self.assertRaises(EmailDispatchError):
            send_email(to="a@test.com", email_type=EMAIL_VERIFY)


class SendEmailEndpointTests(TestCase):
    """
    GUARANTEES:
    - Customers may only email their own address
    - Staff (notifications.email) may email anyone
    - Unknown types are 400, provider failures 502
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.staff = User.objects.create_user(email="staff@test.com", password="pass12345", role="staff")
        self.url = reverse("notifications:send-email")

    def test_own_address(self):
        self.client.force_authenticate(self.user)

        res = self.client.post(
            self.url, {"to": "Buyer@test.com", "type": "password_changed", "data": {"name": "B"}}, format="json"
        )

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["skipped"])

    def test_foreign_address_forbidden(self):
        self.client.force_authenticate(self.user)

        res = self.client.post(self.url, {"to": "victim@test.com", "type": "password_changed"}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_staff_any_address(self):
        self.client.force_authenticate(self.staff)

        res = self.client.post(self.url, {"to": "buyer@test.com", "type": "order_processed"}, format="json")

        self.assertEqual(res.status_code, 200)

    def test_unknown_type(self):
        self.client.force_authenticate(self.user)

        res = self.client.post(self.url, {"to": "buyer@test.com", "type": "newsletter"}, format="json")

        self.assertEqual(res.status_code, 400)

    @override_settings(EMAIL_DISPATCH=RESEND_ON)
    @patch("notifications.services.email.resend.Emails.send", side_effect=RuntimeError("boom"))
    def test_provider_failure_502(self, send):
        self.client.force_authenticate(self.user)

        res = self.client.post(self.url, {"to": "buyer@test.com", "type": "password_changed"}, format="json")

        self.assertEqual(res.status_code, 502)
