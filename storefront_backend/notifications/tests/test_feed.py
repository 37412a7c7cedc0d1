# notifications/tests/test_feed.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from notifications.models import Notification
from notifications.services.notify import notify_admins, notify_user

User = get_user_model()


class NotificationFeedTests(TestCase):
    """
    GUARANTEES:
    - Customers see only their own notifications
    - The admin feed needs orders.view; customers asking for it get their own feed
    - mark-all-read only touches the selected feed
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="buyer@test.com", password="pass12345")
        self.other = User.objects.create_user(email="other@test.com", password="pass12345")
        self.staff = User.objects.create_user(email="staff@test.com", password="pass12345", role="staff")

        notify_user(user=self.user, message="Order ready", notification_type=Notification.TYPE_ORDER)
        notify_user(user=self.other, message="Deposit credited", notification_type=Notification.TYPE_DEPOSIT)
        notify_admins(message="New order", notification_type=Notification.TYPE_ORDER)
        self.url = reverse("notifications:feed-list")

    def _messages(self, res):
        return [row["message"] for row in res.data["results"]]

    def test_own_feed(self):
        self.client.force_authenticate(self.user)

        res = self.client.get(self.url)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(self._messages(res), ["Order ready"])

    def test_admin_scope_requires_capability(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self._messages(self.client.get(self.url, {"scope": "admin"})), ["Order ready"])

        self.client.force_authenticate(self.staff)
        self.assertEqual(self._messages(self.client.get(self.url, {"scope": "admin"})), ["New order"])

    def test_mark_one_read(self):
        self.client.force_authenticate(self.user)
        note = Notification.objects.get(user=self.user)

        res = self.client.patch(reverse("notifications:feed-detail", args=[note.id]), {"read": True}, format="json")

        self.assertEqual(res.status_code, 200)
        note.refresh_from_db()
        self.assertTrue(note.read)

    def test_cannot_touch_foreign_notification(self):
        self.client.force_authenticate(self.user)
        foreign = Notification.objects.get(user=self.other)

        res = self.client.patch(reverse("notifications:feed-detail", args=[foreign.id]), {"read": True}, format="json")

        self.assertEqual(res.status_code, 404)

    def test_mark_all_read(self):
        self.client.force_authenticate(self.staff)

        res = self.client.post(reverse("notifications:feed-mark-all-read") + "?scope=admin")

        self.assertEqual(res.data, {"updated": 1})
        self.assertFalse(Notification.objects.filter(admin_only=True, read=False).exists())
        self.assertTrue(Notification.objects.filter(user=self.user, read=False).exists())
