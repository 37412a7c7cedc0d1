# notifications/services/email.py

"""
TRANSACTIONAL EMAIL (Resend)

Purpose:
- Render a typed email from templates/notifications/email/<type>.html
- Send it through the Resend API.

Types:
- password_changed   data: name
- deposit_success    data: amount, transaction_id, date, new_balance
- order_processed    data: order_id, product, amount, date
- verify_email       data: name, verify_url
- password_reset     data: name, reset_url

Rules:
- Unknown type -> EmailDispatchError (the API maps it to 400).
- EMAIL_DISPATCH["ENABLED"] = False (tests/dev) logs and skips the send.
- send_email_safely never raises; it is used from on_commit hooks where a
  mail outage must not break a completed payment or purchase.
"""

from __future__ import annotations

import logging

import resend
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)

EMAIL_PASSWORD_CHANGED = "password_changed"
EMAIL_DEPOSIT_SUCCESS = "deposit_success"
EMAIL_ORDER_PROCESSED = "order_processed"
EMAIL_VERIFY = "verify_email"
EMAIL_PASSWORD_RESET = "password_reset"

EMAIL_SUBJECTS = {
    EMAIL_PASSWORD_CHANGED: "Your password was changed",
    EMAIL_DEPOSIT_SUCCESS: "Deposit confirmed",
    EMAIL_ORDER_PROCESSED: "Your order has been processed",
    EMAIL_VERIFY: "Confirm your email address",
    EMAIL_PASSWORD_RESET: "Reset your password",
}

EMAIL_TYPES = set(EMAIL_SUBJECTS)


class EmailDispatchError(Exception):
    """Raised when an email cannot be rendered or sent."""


def _cfg() -> dict:
    return getattr(settings, "EMAIL_DISPATCH", {}) or {}


def _from_address() -> str:
    return f"{settings.SITE_NAME} <{_cfg().get('FROM_ADDRESS') or 'onboarding@resend.dev'}>"


def render_email(email_type: str, data: dict | None = None, *, subject: str = "") -> dict:
    if email_type not in EMAIL_TYPES:
        raise EmailDispatchError(f"Invalid email type: {email_type}")

    context = {
        "site_name": settings.SITE_NAME,
        "now": timezone.now(),
        **(data or {}),
    }
    html = render_to_string(f"notifications/email/{email_type}.html", context)
    return {
        "subject": subject or f"{EMAIL_SUBJECTS[email_type]} - {settings.SITE_NAME}",
        "html": html,
        "text": strip_tags(html).strip(),
    }


def send_email(*, to: str, email_type: str, data: dict | None = None, subject: str = "") -> dict:
    rendered = render_email(email_type, data, subject=subject)

    if not _cfg().get("ENABLED"):
        logger.info("Email dispatch disabled; skipping", extra={"to": to, "email_type": email_type})
        return {"id": None, "skipped": True}

    api_key = (_cfg().get("RESEND_API_KEY") or "").strip()
    if not api_key:
        raise EmailDispatchError("RESEND_API_KEY is not configured")

    resend.api_key = api_key
    try:
        response = resend.Emails.send(
            {
                "from": _from_address(),
                "to": [to],
                "subject": rendered["subject"],
                "html": rendered["html"],
                "text": rendered["text"],
            }
        )
    except Exception as exc:
        raise EmailDispatchError(f"Resend request failed: {exc}") from exc

    email_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
    if not email_id:
        raise EmailDispatchError(f"Resend returned no id: {response!r}")

    logger.info("Email sent", extra={"to": to, "email_type": email_type, "email_id": email_id})
    return {"id": email_id, "skipped": False}


def send_email_safely(*, to: str, email_type: str, data: dict | None = None) -> bool:
    try:
        send_email(to=to, email_type=email_type, data=data)
    except EmailDispatchError:
        logger.exception("Email dispatch failed", extra={"to": to, "email_type": email_type})
        return False
    return True
