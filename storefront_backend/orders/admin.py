# orders/admin.py

from django.contrib import admin

from orders.models import Invoice, Order, OrderActivity


class OrderActivityInline(admin.TabularInline):
    model = OrderActivity
    extra = 0
    can_delete = False
    readonly_fields = ("action", "old_status", "new_status", "user", "metadata", "created_at")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user", "product", "quantity", "total_price", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("order_number", "user__email", "product__title", "external_order_id")
    readonly_fields = ("order_number", "unit_price", "total_price", "keys", "idempotency_key", "created_at")
    inlines = [OrderActivityInline]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "order", "user", "amount", "status", "created_at")
    search_fields = ("invoice_number", "order__order_number", "user__email")
