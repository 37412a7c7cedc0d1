# security/services/events.py

"""
SECURITY EVENT RECORDING

- record_security_event: store a login/purchase attempt; a failed attempt
  also opens a "failed_<type>" alert.
- client_ip / client_user_agent: request helpers (X-Forwarded-For aware).
"""

from __future__ import annotations

import ipaddress
import logging

from security.models import SecurityAlert, SecurityEvent

logger = logging.getLogger(__name__)


def _valid_ip(value: str | None) -> str | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


def client_ip(request) -> str | None:
    forwarded = (request.META.get("HTTP_X_FORWARDED_FOR") or "").split(",")[0]
    return _valid_ip(forwarded) or _valid_ip(request.META.get("REMOTE_ADDR"))


def client_user_agent(request) -> str:
    return (request.META.get("HTTP_USER_AGENT") or "")[:512]


def record_security_event(
    *,
    event_type: str,
    success: bool,
    ip_address: str | None,
    user_agent: str = "",
    user=None,
    email: str = "",
    metadata: dict | None = None,
) -> SecurityEvent:
    email = (email or getattr(user, "email", "") or "").strip().lower()

    event = SecurityEvent.objects.create(
        event_type=event_type,
        success=success,
        ip_address=_valid_ip(ip_address),
        user_agent=(user_agent or "")[:512],
        user=user,
        email=email,
        metadata=metadata or {},
    )

    if not success:
        SecurityAlert.objects.create(
            user=user,
            alert_type=f"failed_{event_type}",
            details=f"Failed {event_type} attempt from IP {ip_address or 'unknown'}",
            ip_address=event.ip_address,
        )
        logger.warning(
            "Failed security event",
            extra={"event_type": event_type, "email": email, "ip": ip_address},
        )

    return event
