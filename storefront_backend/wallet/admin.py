# wallet/admin.py

from django.contrib import admin

from wallet.models import IdempotencyRecord, Profile, Transaction


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "balance", "updated_at")
    search_fields = ("user__email",)
    readonly_fields = ("balance",)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("user", "type", "amount", "status", "transaction_id", "created_at")
    list_filter = ("type", "status")
    search_fields = ("user__email", "transaction_id")
    date_hierarchy = "created_at"


@admin.register(IdempotencyRecord)
class IdempotencyRecordAdmin(admin.ModelAdmin):
    list_display = ("key", "request_type", "status", "created_at")
    list_filter = ("request_type", "status")
    search_fields = ("key",)
