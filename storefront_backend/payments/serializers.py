# payments/serializers.py

from decimal import Decimal

from rest_framework import serializers

from payments.models import Deposit


class DepositSerializer(serializers.ModelSerializer):
    class Meta:
        model = Deposit
        fields = [
            "id",
            "amount",
            "fee",
            "net_amount",
            "currency",
            "payment_method",
            "status",
            "transaction_id",
            "paypal_order_id",
            "failure_reason",
            "created_at",
            "completed_at",
        ]
        read_only_fields = fields


class AdminDepositSerializer(DepositSerializer):
    user_id = serializers.UUIDField(source="user.id", read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta(DepositSerializer.Meta):
        fields = DepositSerializer.Meta.fields + [
            "user_id",
            "user_email",
            "payer_email",
            "payer_id",
            "is_processed",
            "process_attempts",
            "last_attempt_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreateDepositSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))


class FeePreviewSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))


class CaptureDepositSerializer(serializers.Serializer):
    paypal_order_id = serializers.CharField(max_length=128, required=False, allow_blank=True)


class CheckPaymentSerializer(serializers.Serializer):
    transaction_id = serializers.CharField(max_length=128)


class RetryDepositsSerializer(serializers.Serializer):
    max_attempts = serializers.IntegerField(min_value=1, max_value=50, default=5)
    max_age_minutes = serializers.IntegerField(min_value=1, max_value=60 * 24 * 7, default=60)
    limit = serializers.IntegerField(min_value=1, max_value=200, default=10)
