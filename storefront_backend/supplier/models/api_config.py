# supplier/models/api_config.py

import uuid

from django.db import models


class ApiConfig(models.Model):
    """
    Supplier account credentials.

    The first active config (oldest first) is the one used for purchases
    and product sync. kiosk_token here is only a default for API testing;
    each product carries its own kiosk_token.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120)
    kiosk_token = models.CharField(max_length=255, blank=True)
    user_token = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return self.name
