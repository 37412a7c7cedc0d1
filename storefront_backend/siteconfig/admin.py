# siteconfig/admin.py

from django.contrib import admin

from siteconfig.models import SiteSetting


@admin.register(SiteSetting)
class SiteSettingAdmin(admin.ModelAdmin):
    list_display = ("key", "is_public", "updated_at")
    list_filter = ("is_public",)
    search_fields = ("key",)
