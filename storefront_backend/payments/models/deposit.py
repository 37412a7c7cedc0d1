# payments/models/deposit.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Deposit(models.Model):
    """
    A balance top-up paid through PayPal.

    Lifecycle:
    - pending     created locally, PayPal order not yet captured
    - pending + transaction_id   captured at PayPal, balance not yet credited
    - completed   net_amount credited (is_processed=True), exactly once
    - failed      capture rejected, or abandoned without a capture

    transaction_id is the PayPal capture id; paypal_order_id the checkout order.
    """

    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    METHOD_PAYPAL = "paypal"

    METHOD_CHOICES = [
        (METHOD_PAYPAL, "PayPal"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="deposits",
    )

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    fee = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    net_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=8, default="USD")

    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default=METHOD_PAYPAL)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    transaction_id = models.CharField(max_length=128, blank=True, db_index=True)
    paypal_order_id = models.CharField(max_length=128, blank=True, db_index=True)
    payer_email = models.EmailField(blank=True)
    payer_id = models.CharField(max_length=64, blank=True)

    is_processed = models.BooleanField(default=False)
    process_attempts = models.PositiveIntegerField(default=0)
    last_attempt_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)

    provider_payload = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"]),
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self):
        return f"Deposit {self.amount} {self.currency} ({self.status})"
