# users/services/moderation.py

"""
ACCOUNT MODERATION (back-office)

- ban_user: deactivate for N days (banned_until) and revoke refresh tokens.
- unban_user / lift_expired_ban: reactivate.
- assign_role / remove_role: role changes keep is_staff in sync
  (back-office roles can sign in to Django admin).
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from permissions.roles import ALL_ROLES, BACKOFFICE_ROLES, ROLE_USER
from users.services.exceptions import AccountError

logger = logging.getLogger(__name__)


def revoke_refresh_tokens(user) -> int:
    revoked = 0
    for token in OutstandingToken.objects.filter(user=user, expires_at__gt=timezone.now()):
        _, created = BlacklistedToken.objects.get_or_create(token=token)
        revoked += int(created)
    return revoked


@transaction.atomic
def ban_user(*, user, days: int, actor=None):
    if days <= 0:
        raise AccountError("Ban duration must be at least one day")
    if actor is not None and actor.pk == user.pk:
        raise AccountError("You cannot ban your own account")

    user.banned_until = timezone.now() + timedelta(days=days)
    user.is_active = False
    user.save(update_fields=["banned_until", "is_active", "updated_at"])
    revoked = revoke_refresh_tokens(user)

    logger.warning(
        "User banned",
        extra={
            "user_id": str(user.pk),
            "days": days,
            "actor_id": str(getattr(actor, "pk", "")),
            "revoked_tokens": revoked,
        },
    )
    return user


def unban_user(*, user, actor=None):
    user.banned_until = None
    user.is_active = True
    user.save(update_fields=["banned_until", "is_active", "updated_at"])
    logger.info("User unbanned", extra={"user_id": str(user.pk), "actor_id": str(getattr(actor, "pk", ""))})
    return user


def lift_expired_ban(user) -> bool:
    if user.banned_until and user.banned_until <= timezone.now():
        unban_user(user=user)
        return True
    return False


def assign_role(*, user, role: str, actor=None):
    role = (role or "").strip().lower()
    if role not in ALL_ROLES:
        raise AccountError(f"Unknown role: {role}")

    user.role = role
    user.is_staff = role in BACKOFFICE_ROLES
    user.save(update_fields=["role", "is_staff", "updated_at"])
    logger.info("Role assigned", extra={"user_id": str(user.pk), "role": role, "actor_id": str(getattr(actor, "pk", ""))})
    return user


def remove_role(*, user, role: str, actor=None):
    if user.role != role:
        raise AccountError(f"User does not have role {role}")
    return assign_role(user=user, role=ROLE_USER, actor=actor)
