# orders/models/order_activity.py

import uuid

from django.conf import settings
from django.db import models


class OrderActivity(models.Model):
    """Append-only audit line for an order."""

    ACTION_CREATED = "created"
    ACTION_STATUS_CHANGED = "status_changed"
    ACTION_KEYS_DELIVERED = "keys_delivered"
    ACTION_SUPPLIER_ORDER = "supplier_order_placed"
    ACTION_FAILED = "failed"
    ACTION_REFUNDED = "refunded"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="activities",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_activities",
    )

    action = models.CharField(max_length=40)
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.action} {self.old_status}->{self.new_status}"
