# users/services/password_reset.py

"""
PASSWORD RESET

- request_password_reset: mail a one-time link to an active account.
  Unknown or inactive emails are silently ignored.
- reset_password: check uid + token, set the new password, revoke every
  refresh token and send the password_changed email.

Tokens come from django.contrib.auth.tokens.default_token_generator: they
expire after PASSWORD_RESET_TIMEOUT and stop working once the password
(or last_login) changes, so a link can be used only once.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

from notifications.services.email import EMAIL_PASSWORD_CHANGED, EMAIL_PASSWORD_RESET, send_email_safely
from users.services.exceptions import PasswordResetError
from users.services.moderation import revoke_refresh_tokens

logger = logging.getLogger(__name__)

User = get_user_model()


def build_reset_link(user) -> str:
    params = {
        "uid": urlsafe_base64_encode(force_bytes(user.pk)),
        "token": default_token_generator.make_token(user),
    }
    return f"{settings.FRONTEND_BASE_URL.rstrip('/')}{settings.PASSWORD_RESET_PATH}?{urlencode(params)}"


def request_password_reset(email: str) -> bool:
    """Returns whether an email was queued; callers must not expose it."""
    email = (email or "").strip()
    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user is None:
        logger.info("Password reset requested for unknown account")
        return False

    send_email_safely(
        to=user.email,
        email_type=EMAIL_PASSWORD_RESET,
        data={"name": user.display_name or user.email, "reset_url": build_reset_link(user)},
    )
    logger.info("Password reset link sent", extra={"user_id": str(user.pk)})
    return True


def _user_from_uid(uid: str):
    try:
        pk = force_str(urlsafe_base64_decode(uid))
    except (TypeError, ValueError):
        return None
    try:
        return User.objects.filter(pk=pk, is_active=True).first()
    except (ValidationError, ValueError):
        return None


@transaction.atomic
def reset_password(*, uid: str, token: str, new_password: str):
    user = _user_from_uid(uid or "")
    if user is None or not default_token_generator.check_token(user, token or ""):
        raise PasswordResetError("Invalid or expired reset link")

    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])
    revoked = revoke_refresh_tokens(user)

    transaction.on_commit(
        lambda: send_email_safely(
            to=user.email,
            email_type=EMAIL_PASSWORD_CHANGED,
            data={"name": user.display_name or user.email},
        )
    )
    logger.info("Password reset", extra={"user_id": str(user.pk), "revoked_tokens": revoked})
    return user
