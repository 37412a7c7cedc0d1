# orders/serializers/invoice.py

from rest_framework import serializers

from orders.models import Invoice


class InvoiceSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = Invoice
        fields = ["id", "invoice_number", "order", "order_number", "amount", "details", "status", "created_at"]
        read_only_fields = fields
