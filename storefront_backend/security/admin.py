# security/admin.py

from django.contrib import admin

from security.models import SecurityAlert, SecurityEvent


@admin.register(SecurityEvent)
class SecurityEventAdmin(admin.ModelAdmin):
    list_display = ("event_type", "email", "ip_address", "success", "created_at")
    list_filter = ("event_type", "success")
    search_fields = ("email", "ip_address")
    date_hierarchy = "created_at"


@admin.register(SecurityAlert)
class SecurityAlertAdmin(admin.ModelAdmin):
    list_display = ("alert_type", "user", "ip_address", "status", "created_at")
    list_filter = ("status", "alert_type")
    search_fields = ("details", "user__email")
