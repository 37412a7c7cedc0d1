# wallet/serializers.py

from decimal import Decimal

from rest_framework import serializers

from wallet.models import Transaction


class BalanceSerializer(serializers.Serializer):
    balance = serializers.DecimalField(max_digits=14, decimal_places=2)


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = [
            "id",
            "amount",
            "type",
            "status",
            "payment_method",
            "transaction_id",
            "description",
            "created_at",
        ]
        read_only_fields = fields


class BalanceAdjustmentSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    reason = serializers.CharField(max_length=255)

    def validate_amount(self, value):
        if value == Decimal("0.00"):
            raise serializers.ValidationError("amount must not be zero")
        return value
