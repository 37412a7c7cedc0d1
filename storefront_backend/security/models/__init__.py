from .security_alert import SecurityAlert
from .security_event import SecurityEvent

__all__ = [
    "SecurityEvent",
    "SecurityAlert",
]
