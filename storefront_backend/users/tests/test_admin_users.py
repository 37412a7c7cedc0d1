# users/tests/test_admin_users.py

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.tokens import RefreshToken

from orders.models import Order
from catalog.models import Product
from users.services.cleanup import purge_unverified_accounts

User = get_user_model()


class AdminUserManagementTests(TestCase):
    """
    GUARANTEES:
    - Customers cannot reach user management
    - Staff can list but not ban
    - Ban deactivates and revokes refresh tokens; unban restores
    - remove_role falls back to "user"
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="admin@example.com", password="pass12345", role="admin")
        self.staff = User.objects.create_user(email="staff@example.com", password="pass12345", role="staff")
        self.customer = User.objects.create_user(email="customer@example.com", password="pass12345")

    def test_customer_forbidden(self):
        self.client.force_authenticate(self.customer)
        res = self.client.get(reverse("users:admin-users-list"))
        self.assertEqual(res.status_code, 403)

    def test_staff_can_list_not_ban(self):
        self.client.force_authenticate(self.staff)

        res = self.client.get(reverse("users:admin-users-list"), {"q": "customer"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)

        res = self.client.post(
            reverse("users:admin-users-ban", args=[self.customer.pk]), {"days": 3}, format="json"
        )
        self.assertEqual(res.status_code, 403)

    def test_ban_and_unban(self):
        RefreshToken.for_user(self.customer)
        self.client.force_authenticate(self.admin)

        res = self.client.post(
            reverse("users:admin-users-ban", args=[self.customer.pk]), {"days": 7}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.customer.refresh_from_db()
        self.assertFalse(self.customer.is_active)
        self.assertTrue(self.customer.is_banned)
        self.assertEqual(BlacklistedToken.objects.filter(token__user=self.customer).count(), 1)

        res = self.client.post(reverse("users:admin-users-unban", args=[self.customer.pk]), format="json")
        self.assertEqual(res.status_code, 200)
        self.customer.refresh_from_db()
        self.assertTrue(self.customer.is_active)
        self.assertFalse(self.customer.is_banned)

    def test_admin_cannot_ban_self(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(reverse("users:admin-users-ban", args=[self.admin.pk]), {"days": 1}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_assign_and_remove_role(self):
        self.client.force_authenticate(self.admin)

        res = self.client.post(
            reverse("users:admin-users-assign-role", args=[self.customer.pk]), {"role": "staff"}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.role, "staff")
        self.assertTrue(self.customer.is_staff)

        res = self.client.post(
            reverse("users:admin-users-remove-role", args=[self.customer.pk]), {"role": "staff"}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.role, "user")
        self.assertFalse(self.customer.is_staff)


class PurgeUnverifiedAccountsTests(TestCase):
    """
    GUARANTEES:
    - Unverified customer accounts older than 24h are deleted
    - Verified, recent, back-office and purchasing accounts are kept
    """

    def _aged(self, email, **extra):
        user = User.objects.create_user(email=email, password="pass12345", **extra)
        User.objects.filter(pk=user.pk).update(created_at=timezone.now() - timedelta(hours=25))
        return user

    def test_purge(self):
        stale = self._aged("stale@example.com")
        verified = self._aged("verified@example.com", email_verified_at=timezone.now())
        staff = self._aged("staff@example.com", role="staff")
        buyer = self._aged("buyer@example.com")
        fresh = User.objects.create_user(email="fresh@example.com", password="pass12345")

        product = Product.objects.create(title="Key", price="5.00", stock=3)
        Order.objects.create(
            user=buyer, product=product, quantity=1, unit_price="5.00", total_price="5.00"
        )

        deleted = purge_unverified_accounts()

        self.assertEqual(deleted, 1)
        self.assertFalse(User.objects.filter(pk=stale.pk).exists())
        for kept in (verified, staff, buyer, fresh):
            self.assertTrue(User.objects.filter(pk=kept.pk).exists())
