# supplier/admin.py

from django.contrib import admin

from supplier.models import ApiConfig, ProxySetting, SyncLog


@admin.register(ApiConfig)
class ApiConfigAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "kiosk_token")


@admin.register(ProxySetting)
class ProxySettingAdmin(admin.ModelAdmin):
    list_display = ("proxy_type", "custom_url", "updated_at")


@admin.register(SyncLog)
class SyncLogAdmin(admin.ModelAdmin):
    list_display = ("action", "status", "product", "created_at")
    list_filter = ("status", "action")
    readonly_fields = ("product", "action", "status", "message", "created_at")
