# users/tests/test_password_reset.py

from unittest.mock import patch
from urllib.parse import parse_qs, urlsplit

from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.tokens import RefreshToken

from notifications.services.email import EMAIL_PASSWORD_RESET, render_email
from users.services.password_reset import build_reset_link

User = get_user_model()


@override_settings(FRONTEND_BASE_URL="https://shop.example.com")
class PasswordResetRequestTests(TestCase):
    """
    GUARANTEES:
    - Unknown and inactive emails get the same 200 and no email
    - Active accounts receive a password_reset email with a frontend link
    """

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("users:password-reset")
        self.user = User.objects.create_user(email="reset@example.com", password="OldPass!2345")

    @patch("users.services.password_reset.send_email_safely")
    def test_unknown_email_still_200(self, send):
        res = self.client.post(self.url, {"email": "ghost@example.com"}, format="json")

        self.assertEqual(res.status_code, 200)
        send.assert_not_called()

    @patch("users.services.password_reset.send_email_safely")
    def test_inactive_account_ignored(self, send):
        self.user.is_active = False
        self.user.save()

        res = self.client.post(self.url, {"email": "reset@example.com"}, format="json")

        self.assertEqual(res.status_code, 200)
        send.assert_not_called()

    @patch("users.services.password_reset.send_email_safely")
    def test_link_sent(self, send):
        res = self.client.post(self.url, {"email": "Reset@Example.com"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(
            res.data["message"], "If the account exists, a password reset email has been sent"
        )
        kwargs = send.call_args.kwargs
        self.assertEqual(kwargs["to"], "reset@example.com")
        self.assertEqual(kwargs["email_type"], EMAIL_PASSWORD_RESET)

        link = urlsplit(kwargs["data"]["reset_url"])
        self.assertEqual(link.netloc, "shop.example.com")
        self.assertEqual(link.path, "/auth/reset-password")
        query = parse_qs(link.query)
        self.assertEqual(query["uid"], [urlsafe_base64_encode(force_bytes(self.user.pk))])
        self.assertTrue(default_token_generator.check_token(self.user, query["token"][0]))

    def test_template_renders_link(self):
        rendered = render_email(EMAIL_PASSWORD_RESET, {"reset_url": build_reset_link(self.user)})

        self.assertIn("https://shop.example.com/auth/reset-password?uid=", rendered["html"])
        self.assertTrue(rendered["subject"].startswith("Reset your password"))


class PasswordResetConfirmTests(TestCase):
    """
    GUARANTEES:
    - A valid uid + token sets the new password and revokes refresh tokens
    - A link works once; bad uids and tokens are 400
    - Weak passwords are rejected by the password validators
    """

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("users:password-reset-confirm")
        self.user = User.objects.create_user(email="reset@example.com", password="OldPass!2345")
        self.uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        self.token = default_token_generator.make_token(self.user)

    def _confirm(self, **overrides):
        payload = {"uid": self.uid, "token": self.token, "new_password": "N3w-Secret-Phrase!"}
        payload.update(overrides)
        return self.client.post(self.url, payload, format="json")

    @patch("users.services.password_reset.send_email_safely")
    def test_reset_sets_password_and_revokes_tokens(self, send):
        RefreshToken.for_user(self.user)

        with self.captureOnCommitCallbacks(execute=True):
            res = self._confirm()

        self.assertEqual(res.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("N3w-Secret-Phrase!"))
        self.assertEqual(BlacklistedToken.objects.filter(token__user=self.user).count(), 1)
        send.assert_called_once()
        self.assertEqual(send.call_args.kwargs["email_type"], "password_changed")

    def test_link_works_once(self):
        self.assertEqual(self._confirm().status_code, 200)

        res = self._confirm(new_password="An0ther-Secret-Phrase!")

        self.assertEqual(res.status_code, 400)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("N3w-Secret-Phrase!"))

    def test_bad_token(self):
        res = self._confirm(token="1-abcdef")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "Invalid or expired reset link")

    def test_bad_uid(self):
        self.assertEqual(self._confirm(uid="not-base64!").status_code, 400)
        self.assertEqual(self._confirm(uid=urlsafe_base64_encode(b"not-a-uuid")).status_code, 400)

    def test_weak_password(self):
        res = self._confirm(new_password="123")

        self.assertEqual(res.status_code, 400)
        self.assertIn("new_password", res.data)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("OldPass!2345"))
