# users/services/verification.py

"""
EMAIL VERIFICATION TOKENS + REDIRECTS

Tokens are signed with django.core.signing (salted, timestamped) and carry
the user id and the email they were issued for. Changing the email
invalidates older links.

Redirect targets are restricted to the frontend host; anything else falls
back to {FRONTEND_BASE_URL}/auth/verified.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing
from django.urls import reverse
from django.utils import timezone
from django.utils.http import url_has_allowed_host_and_scheme

from users.services.exceptions import VerificationError

logger = logging.getLogger(__name__)

User = get_user_model()

TOKEN_SALT = "users.email-verification"


def make_verification_token(user) -> str:
    return signing.dumps({"uid": str(user.pk), "email": user.email}, salt=TOKEN_SALT)


def build_verification_link(user, *, redirect_to: str = "") -> str:
    params = {"token": make_verification_token(user)}
    if redirect_to:
        params["redirect"] = redirect_to
    return f"{settings.API_BASE_URL}{reverse('users:verify-email')}?{urlencode(params)}"


def default_redirect() -> str:
    return f"{settings.FRONTEND_BASE_URL.rstrip('/')}/auth/verified"


def safe_redirect_target(candidate: str | None) -> str:
    candidate = (candidate or "").strip()
    if not candidate:
        return default_redirect()

    frontend_host = urlsplit(settings.FRONTEND_BASE_URL).netloc
    if url_has_allowed_host_and_scheme(
        candidate,
        allowed_hosts={frontend_host},
        require_https=settings.FRONTEND_BASE_URL.startswith("https://"),
    ) and urlsplit(candidate).netloc:
        return candidate

    logger.warning("Rejected verification redirect target", extra={"redirect": candidate})
    return default_redirect()


def with_query(url: str, **params) -> str:
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query))
    query.update({k: str(v) for k, v in params.items()})
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def verify_email_token(token: str):
    """
    Validate a verification token and mark the account verified.
    Returns the user; raises VerificationError with an HTTP-ish status.
    """
    try:
        payload = signing.loads(
            token,
            salt=TOKEN_SALT,
            max_age=settings.EMAIL_VERIFICATION_MAX_AGE_SECONDS,
        )
    except signing.SignatureExpired as exc:
        raise VerificationError("Verification link has expired", status_code=410) from exc
    except signing.BadSignature as exc:
        raise VerificationError("Invalid verification link", status_code=400) from exc

    user = User.objects.filter(pk=payload.get("uid")).first()
    if user is None or user.email != payload.get("email"):
        raise VerificationError("Account not found for this link", status_code=404)

    if user.email_verified_at is None:
        user.email_verified_at = timezone.now()
        user.save(update_fields=["email_verified_at", "updated_at"])
        logger.info("Email verified", extra={"user_id": str(user.pk)})

    return user
