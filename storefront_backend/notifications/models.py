# notifications/models.py

import uuid

from django.conf import settings
from django.db import models


class Notification(models.Model):
    """
    In-app notification.

    admin_only rows are the back-office feed (new orders, suspicious activity);
    the rest belong to `user`.
    """

    TYPE_ORDER = "order"
    TYPE_DEPOSIT = "deposit"
    TYPE_SECURITY = "security"
    TYPE_SYSTEM = "system"

    TYPE_CHOICES = [
        (TYPE_ORDER, "Order"),
        (TYPE_DEPOSIT, "Deposit"),
        (TYPE_SECURITY, "Security"),
        (TYPE_SYSTEM, "System"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
    )
    message = models.TextField()
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_SYSTEM)
    admin_only = models.BooleanField(default=False)
    read = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["admin_only", "read"]),
            models.Index(fields=["user", "read"]),
        ]

    def __str__(self):
        return f"[{self.type}] {self.message[:60]}"
