# notifications/services/notify.py

from __future__ import annotations

from notifications.models import Notification


def notify_admins(*, message: str, notification_type: str = Notification.TYPE_SYSTEM) -> Notification:
    return Notification.objects.create(
        message=message,
        type=notification_type,
        admin_only=True,
    )


def notify_user(*, user, message: str, notification_type: str = Notification.TYPE_SYSTEM) -> Notification:
    return Notification.objects.create(
        user=user,
        message=message,
        type=notification_type,
    )
