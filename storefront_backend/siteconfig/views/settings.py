# siteconfig/views/settings.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_SETTINGS_MANAGE, HasCapability, user_has_capability
from siteconfig.models import SiteSetting
from siteconfig.serializers import SiteSettingSerializer
from siteconfig.services.currency import site_currency, vnd_per_usd


class SiteSettingViewSet(viewsets.ModelViewSet):
    """
    - anyone: list/retrieve public settings
    - settings.manage: everything, including writes
    """

    serializer_class = SiteSettingSerializer
    lookup_field = "key"
    pagination_class = None

    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            return [AllowAny()]

        self.required_capability = CAP_SETTINGS_MANAGE
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        if user_has_capability(self.request.user, CAP_SETTINGS_MANAGE):
            return SiteSetting.objects.all()
        return SiteSetting.objects.filter(is_public=True)


class CurrencyView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: dict})
    def get(self, request):
        return Response({"currency": site_currency(), "vnd_per_usd": str(vnd_per_usd())})
