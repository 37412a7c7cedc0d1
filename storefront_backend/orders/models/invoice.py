# orders/models/invoice.py

import random
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_invoice_number() -> str:
    return f"INV-{timezone.now():%Y%m%d}-{random.randint(10000, 99999)}"


class Invoice(models.Model):
    STATUS_ISSUED = "issued"

    STATUS_CHOICES = [
        (STATUS_ISSUED, "Issued"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(max_length=32, unique=True)
    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="invoice",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    # {"products": [{"title", "price", "quantity"}], "recipient": {...}}
    details = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ISSUED)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.invoice_number
