from django.contrib import admin

from payments.models import Deposit


@admin.register(Deposit)
class DepositAdmin(admin.ModelAdmin):
    list_display = ("user", "amount", "net_amount", "currency", "status", "transaction_id", "created_at")
    list_filter = ("status", "currency", "is_processed")
    search_fields = ("transaction_id", "paypal_order_id", "user__email", "payer_email")
    readonly_fields = ("provider_payload", "created_at", "updated_at", "completed_at")
