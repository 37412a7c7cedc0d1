# users/services/registration.py

"""
REGISTRATION SERVICE

Purpose:
- Per-email registration rate limit (RegistrationAttempt, row-locked).
- Create the account + wallet profile in one transaction.
- Queue the verification email after commit.

Rules (SECURITY_POLICY):
- REGISTRATION_MAX_ATTEMPTS per REGISTRATION_WINDOW_MINUTES.
- Exceeding the limit locks the email for REGISTRATION_LOCKOUT_MINUTES.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from notifications.services.email import EMAIL_VERIFY, send_email_safely
from users.models import RegistrationAttempt
from users.services.exceptions import EmailAlreadyRegistered, RegistrationRateLimited
from users.services.verification import build_verification_link
from wallet.services.balance_service import ensure_profile

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    attempts: int
    retry_after_seconds: int = 0


def _policy(name: str) -> int:
    return int(settings.SECURITY_POLICY[name])


@transaction.atomic
def check_registration_rate_limit(email: str, *, now=None) -> RateLimitDecision:
    now = now or timezone.now()
    email = (email or "").strip().lower()

    max_attempts = _policy("REGISTRATION_MAX_ATTEMPTS")
    window = timedelta(minutes=_policy("REGISTRATION_WINDOW_MINUTES"))
    lockout = timedelta(minutes=_policy("REGISTRATION_LOCKOUT_MINUTES"))

    RegistrationAttempt.objects.get_or_create(
        email=email,
        defaults={"first_attempt_at": now, "last_attempt_at": now},
    )
    attempt = RegistrationAttempt.objects.select_for_update().get(email=email)

    if attempt.locked_until and attempt.locked_until > now:
        retry = math.ceil((attempt.locked_until - now).total_seconds())
        return RateLimitDecision(allowed=False, attempts=attempt.attempt_count, retry_after_seconds=retry)

    if attempt.first_attempt_at + window <= now or attempt.locked_until:
        attempt.attempt_count = 0
        attempt.first_attempt_at = now
        attempt.locked_until = None

    attempt.attempt_count += 1
    attempt.last_attempt_at = now

    allowed = attempt.attempt_count <= max_attempts
    if not allowed:
        attempt.locked_until = now + lockout
        logger.warning("Registration locked", extra={"email": email, "attempts": attempt.attempt_count})

    attempt.save()

    return RateLimitDecision(
        allowed=allowed,
        attempts=attempt.attempt_count,
        retry_after_seconds=0 if allowed else int(lockout.total_seconds()),
    )


def register_user(*, email: str, password: str, display_name: str = ""):
    decision = check_registration_rate_limit(email)
    if not decision.allowed:
        raise RegistrationRateLimited(decision.retry_after_seconds)

    with transaction.atomic():
        if User.objects.filter(email__iexact=email.strip()).exists():
            raise EmailAlreadyRegistered("An account with this email already exists")

        user = User.objects.create_user(
            email=email,
            password=password,
            display_name=display_name,
        )
        ensure_profile(user)

        transaction.on_commit(lambda: send_verification_email(user))

    logger.info("User registered", extra={"user_id": str(user.pk)})
    return user


def send_verification_email(user, *, redirect_to: str = "") -> bool:
    return send_email_safely(
        to=user.email,
        email_type=EMAIL_VERIFY,
        data={
            "name": user.display_name or user.email,
            "verify_url": build_verification_link(user, redirect_to=redirect_to),
        },
    )
