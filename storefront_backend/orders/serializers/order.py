# orders/serializers/order.py

from rest_framework import serializers

from orders.models import Order, OrderActivity


class OrderSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(source="product.id", read_only=True)
    product_title = serializers.CharField(source="product.title", read_only=True)
    product_slug = serializers.CharField(source="product.slug", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "product_id",
            "product_title",
            "product_slug",
            "quantity",
            "unit_price",
            "total_price",
            "status",
            "keys",
            "promotion_code",
            "failure_reason",
            "created_at",
            "completed_at",
        ]
        read_only_fields = fields


class AdminOrderSerializer(OrderSerializer):
    user_id = serializers.UUIDField(source="user.id", read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + [
            "user_id",
            "user_email",
            "external_order_id",
            "idempotency_key",
            "updated_at",
        ]
        read_only_fields = fields


class OrderActivitySerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)

    class Meta:
        model = OrderActivity
        fields = ["id", "action", "old_status", "new_status", "metadata", "user_email", "created_at"]
        read_only_fields = fields


class PurchaseSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    promotion_code = serializers.CharField(required=False, allow_blank=True, max_length=64, default="")


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    note = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")


class RefundSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
