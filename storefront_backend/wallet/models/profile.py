# wallet/models/profile.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class Profile(models.Model):
    """
    Spendable balance of a storefront account.

    Balance is only ever changed through wallet.services.balance_service,
    which row-locks the profile and refuses to go negative.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name="wallet_profile_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} balance={self.balance}"
