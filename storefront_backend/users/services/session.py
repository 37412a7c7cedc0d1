# users/services/session.py

"""
SESSION REFRESH PLANNING

The browser client keeps one refresh timer per session. Given the access
token's expiry this decides what the client should do now:

- expires in < REFRESH_THRESHOLD_SECONDS           -> refresh_now
- expires in > SCHEDULE_LEAD_SECONDS               -> schedule (delay = ttl - threshold)
- otherwise (between threshold and lead)           -> wait (periodic check picks it up)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from django.utils import timezone

ACTION_REFRESH_NOW = "refresh_now"
ACTION_SCHEDULE = "schedule"
ACTION_WAIT = "wait"


@dataclass(frozen=True)
class RefreshPlan:
    action: str
    expires_in_seconds: int
    delay_seconds: int
    inactivity_timeout_seconds: int

    def as_dict(self) -> dict:
        return {
            "action": self.action,
            "expires_in_seconds": self.expires_in_seconds,
            "refresh_in_seconds": self.delay_seconds,
            "inactivity_timeout_seconds": self.inactivity_timeout_seconds,
        }


def plan_token_refresh(expires_at: datetime, *, now: datetime | None = None) -> RefreshPlan:
    policy = settings.SESSION_POLICY
    threshold = int(policy["REFRESH_THRESHOLD_SECONDS"])
    lead = int(policy["SCHEDULE_LEAD_SECONDS"])
    inactivity = int(policy["INACTIVITY_TIMEOUT_SECONDS"])

    now = now or timezone.now()
    ttl = int((expires_at - now).total_seconds())

    if ttl < threshold:
        return RefreshPlan(ACTION_REFRESH_NOW, max(ttl, 0), 0, inactivity)
    if ttl > lead:
        return RefreshPlan(ACTION_SCHEDULE, ttl, ttl - threshold, inactivity)
    return RefreshPlan(ACTION_WAIT, ttl, 0, inactivity)


def expiry_from_exp_claim(exp) -> datetime:
    return datetime.fromtimestamp(int(exp), tz=dt_timezone.utc)
