# security/serializers.py

from rest_framework import serializers

from security.models import SecurityAlert, SecurityEvent


class SecurityEventInputSerializer(serializers.Serializer):
    """
    Input for POST /api/security/events/.

    Required: type, ip_address, user_agent and one of user_id / email.
    """

    type = serializers.ChoiceField(choices=[c[0] for c in SecurityEvent.TYPE_CHOICES])
    ip_address = serializers.IPAddressField()
    user_agent = serializers.CharField(max_length=512)
    success = serializers.BooleanField(default=True)
    user_id = serializers.UUIDField(required=False, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    metadata = serializers.JSONField(required=False)

    def validate(self, attrs):
        if not attrs.get("user_id") and not attrs.get("email"):
            raise serializers.ValidationError("Either user_id or email is required")
        return attrs


class SecurityEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = SecurityEvent
        fields = [
            "id",
            "event_type",
            "user",
            "email",
            "ip_address",
            "user_agent",
            "success",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class SecurityAlertSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)

    class Meta:
        model = SecurityAlert
        fields = [
            "id",
            "alert_type",
            "user",
            "user_email",
            "details",
            "ip_address",
            "status",
            "resolved_at",
            "created_at",
        ]
        read_only_fields = fields
