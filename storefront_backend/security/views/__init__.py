from .alerts import SecurityAlertViewSet, SecurityEventViewSet
from .events import SecurityEventCreateView

__all__ = [
    "SecurityEventCreateView",
    "SecurityAlertViewSet",
    "SecurityEventViewSet",
]
