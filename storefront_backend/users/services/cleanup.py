# users/services/cleanup.py

"""
UNVERIFIED ACCOUNT CLEANUP

- Accounts that never verified their email are removed after 24 hours.
- Back-office roles, superusers and accounts with orders or deposits are kept.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from permissions.roles import ROLE_USER

logger = logging.getLogger(__name__)

UNVERIFIED_MAX_AGE_HOURS = 24


def unverified_accounts(*, older_than_hours: int = UNVERIFIED_MAX_AGE_HOURS, now=None):
    now = now or timezone.now()
    return get_user_model().objects.filter(
        email_verified_at__isnull=True,
        created_at__lt=now - timedelta(hours=older_than_hours),
        role=ROLE_USER,
        is_superuser=False,
        orders__isnull=True,
        deposits__isnull=True,
    ).distinct()


def purge_unverified_accounts(*, older_than_hours: int = UNVERIFIED_MAX_AGE_HOURS, now=None) -> int:
    deleted = 0
    for user in unverified_accounts(older_than_hours=older_than_hours, now=now):
        user_id = str(user.pk)
        user.delete()
        deleted += 1
        logger.info("Unverified account deleted", extra={"user_id": user_id})
    return deleted
