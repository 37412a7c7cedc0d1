# notifications/serializers.py

from rest_framework import serializers

from notifications.models import Notification
from notifications.services.email import EMAIL_TYPES


class SendEmailSerializer(serializers.Serializer):
    to = serializers.EmailField()
    type = serializers.ChoiceField(choices=sorted(EMAIL_TYPES))
    subject = serializers.CharField(required=False, allow_blank=True, max_length=200)
    data = serializers.DictField(required=False)


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "message", "type", "admin_only", "read", "created_at"]
        read_only_fields = ["id", "message", "type", "admin_only", "created_at"]
