# security/models/security_event.py

import uuid

from django.conf import settings
from django.db import models


class SecurityEvent(models.Model):
    """
    Raw audit trail of login and purchase attempts.
    Fraud detection reads its sliding windows from this table.
    """

    TYPE_LOGIN = "login"
    TYPE_PURCHASE = "purchase"

    TYPE_CHOICES = [
        (TYPE_LOGIN, "Login"),
        (TYPE_PURCHASE, "Purchase"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="security_events",
    )
    email = models.EmailField(blank=True, db_index=True)

    event_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True)
    success = models.BooleanField(default=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event_type", "email", "created_at"]),
            models.Index(fields=["event_type", "user", "created_at"]),
        ]

    def __str__(self):
        outcome = "ok" if self.success else "failed"
        return f"{self.event_type} {outcome} {self.email or self.user_id}"
