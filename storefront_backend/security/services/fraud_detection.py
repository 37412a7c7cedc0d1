# security/services/fraud_detection.py

"""
FRAUD DETECTION (sliding windows over SecurityEvent)

Login (per email):
- LOGIN_FAILURE_LIMIT failures within LOGIN_FAILURE_WINDOW_MINUTES
- more than LOGIN_DISTINCT_IP_LIMIT distinct IPs with more than
  LOGIN_DISTINCT_IP_MIN_ATTEMPTS attempts in the same window

Purchase (per user):
- more than PURCHASE_DAILY_LIMIT purchases in 24h
- a single amount above PURCHASE_AMOUNT_LIMIT
- PURCHASE_BURST_COUNT purchases within PURCHASE_BURST_WINDOW_MINUTES

Detection never blocks the request. A positive result opens a
suspicious_* alert and notifies back-office staff.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from notifications.models import Notification
from notifications.services.notify import notify_admins
from security.models import SecurityAlert, SecurityEvent

logger = logging.getLogger(__name__)


def _policy(name: str):
    return settings.SECURITY_POLICY[name]


def detect_suspicious_login(email: str, *, now=None) -> list[str]:
    now = now or timezone.now()
    email = (email or "").strip().lower()
    if not email:
        return []

    since = now - timedelta(minutes=int(_policy("LOGIN_FAILURE_WINDOW_MINUTES")))
    attempts = SecurityEvent.objects.filter(
        event_type=SecurityEvent.TYPE_LOGIN,
        email=email,
        created_at__gte=since,
    )

    reasons = []

    failures = attempts.filter(success=False).count()
    if failures >= int(_policy("LOGIN_FAILURE_LIMIT")):
        reasons.append(f"{failures} failed logins in {_policy('LOGIN_FAILURE_WINDOW_MINUTES')} minutes")

    total = attempts.count()
    distinct_ips = attempts.exclude(ip_address__isnull=True).values("ip_address").distinct().count()
    if distinct_ips > int(_policy("LOGIN_DISTINCT_IP_LIMIT")) and total > int(
        _policy("LOGIN_DISTINCT_IP_MIN_ATTEMPTS")
    ):
        reasons.append(f"{total} login attempts from {distinct_ips} different IPs")

    return reasons


def detect_suspicious_purchase(user, amount, *, now=None) -> list[str]:
    now = now or timezone.now()
    purchases = SecurityEvent.objects.filter(
        event_type=SecurityEvent.TYPE_PURCHASE,
        user=user,
        success=True,
    )

    reasons = []

    daily = purchases.filter(created_at__gte=now - timedelta(hours=24)).count()
    if daily > int(_policy("PURCHASE_DAILY_LIMIT")):
        reasons.append(f"{daily} purchases in 24 hours")

    if Decimal(str(amount)) > Decimal(str(_policy("PURCHASE_AMOUNT_LIMIT"))):
        reasons.append(f"unusually large purchase amount {amount}")

    burst_window = timedelta(minutes=int(_policy("PURCHASE_BURST_WINDOW_MINUTES")))
    burst = purchases.filter(created_at__gte=now - burst_window).count()
    if burst >= int(_policy("PURCHASE_BURST_COUNT")):
        reasons.append(f"{burst} purchases within {_policy('PURCHASE_BURST_WINDOW_MINUTES')} minutes")

    return reasons


def _open_alert(*, alert_type: str, user, reasons: list[str], ip_address=None) -> SecurityAlert:
    details = "; ".join(reasons)
    alert = SecurityAlert.objects.create(
        user=user,
        alert_type=alert_type,
        details=details,
        ip_address=ip_address,
    )
    who = getattr(user, "email", None) or "unknown user"
    notify_admins(
        message=f"Suspicious activity ({alert_type}) for {who}: {details}",
        notification_type=Notification.TYPE_SECURITY,
    )
    logger.warning(
        "Suspicious activity detected",
        extra={"alert_type": alert_type, "user_id": str(getattr(user, "pk", "")), "reasons": reasons},
    )
    return alert


def evaluate_login(*, email: str, ip_address=None, user=None) -> list[str]:
    reasons = detect_suspicious_login(email)
    if reasons:
        _open_alert(alert_type="suspicious_login", user=user, reasons=reasons, ip_address=ip_address)
    return reasons


def evaluate_purchase(*, user, amount, ip_address=None) -> list[str]:
    """
    Call before the purchase event for this request is recorded, so the
    burst rule counts earlier purchases only.
    """
    reasons = detect_suspicious_purchase(user, amount)
    if reasons:
        _open_alert(alert_type="suspicious_purchase", user=user, reasons=reasons, ip_address=ip_address)
    return reasons
