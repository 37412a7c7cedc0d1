from .email import SendEmailView
from .feed import NotificationViewSet

__all__ = [
    "SendEmailView",
    "NotificationViewSet",
]
