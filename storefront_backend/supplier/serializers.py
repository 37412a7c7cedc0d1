# supplier/serializers.py

from rest_framework import serializers

from supplier.models import ApiConfig, ProxySetting, SyncLog


class ApiConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = ApiConfig
        fields = ["id", "name", "kiosk_token", "user_token", "is_active", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {"user_token": {"write_only": True}}

    def to_representation(self, instance):
        data = super().to_representation(instance)
        token = instance.user_token or ""
        data["user_token_hint"] = f"...{token[-4:]}" if len(token) > 4 else ""
        return data


class ProxySettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProxySetting
        fields = ["proxy_type", "custom_url", "updated_at"]
        read_only_fields = ["updated_at"]

    def validate(self, attrs):
        proxy_type = attrs.get("proxy_type", getattr(self.instance, "proxy_type", ProxySetting.TYPE_DIRECT))
        custom_url = attrs.get("custom_url", getattr(self.instance, "custom_url", ""))
        if proxy_type == ProxySetting.TYPE_CUSTOM and not (custom_url or "").strip():
            raise serializers.ValidationError({"custom_url": "Custom proxy URL is required"})
        return attrs


class ProxyTestSerializer(serializers.Serializer):
    kiosk_token = serializers.CharField(required=False, allow_blank=True)
    proxy_type = serializers.ChoiceField(choices=ProxySetting.TYPE_CHOICES, required=False)
    custom_url = serializers.CharField(required=False, allow_blank=True)


class SyncRequestSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(required=False)


class SyncLogSerializer(serializers.ModelSerializer):
    product_title = serializers.CharField(source="product.title", read_only=True, default=None)

    class Meta:
        model = SyncLog
        fields = ["id", "product", "product_title", "action", "status", "message", "created_at"]
