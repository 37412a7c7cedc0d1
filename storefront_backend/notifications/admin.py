# notifications/admin.py

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("type", "message", "user", "admin_only", "read", "created_at")
    list_filter = ("type", "admin_only", "read")
    search_fields = ("message", "user__email")
