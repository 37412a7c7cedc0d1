# siteconfig/serializers.py

from rest_framework import serializers

from siteconfig.models import SiteSetting


class ConfigLookupSerializer(serializers.Serializer):
    key = serializers.CharField(required=False, allow_blank=True, max_length=100)


class SiteSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SiteSetting
        fields = ["key", "value", "is_public", "updated_at"]
        read_only_fields = ["updated_at"]
