# supplier/views/config.py

"""
SUPPLIER CONFIGURATION (supplier.manage)

- /api/supplier/api-configs/      CRUD for supplier credentials
- /api/supplier/proxy/            GET / PUT / PATCH the proxy route
- /api/supplier/proxy/test/       POST: one getStock call through a proxy, no fallback
"""

from __future__ import annotations

from urllib.parse import urlencode

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_SUPPLIER_MANAGE, HasCapability
from supplier.models import ApiConfig, ProxySetting
from supplier.serializers import ApiConfigSerializer, ProxySettingSerializer, ProxyTestSerializer
from supplier.services.client import active_api_config
from supplier.services.exceptions import SupplierError
from supplier.services.proxy import ProxyConfig, build_proxy_url, fetch_via_proxy


class _SupplierManagePolicy:
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SUPPLIER_MANAGE


class ApiConfigViewSet(_SupplierManagePolicy, viewsets.ModelViewSet):
    serializer_class = ApiConfigSerializer
    queryset = ApiConfig.objects.order_by("created_at")
    filterset_fields = ["is_active"]


class ProxySettingView(_SupplierManagePolicy, APIView):
    @extend_schema(responses={200: ProxySettingSerializer})
    def get(self, request):
        return Response(ProxySettingSerializer(ProxySetting.current()).data)

    def _update(self, request, partial: bool):
        setting = ProxySetting.current()
        serializer = ProxySettingSerializer(setting, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    @extend_schema(request=ProxySettingSerializer, responses={200: ProxySettingSerializer})
    def put(self, request):
        return self._update(request, partial=False)

    @extend_schema(request=ProxySettingSerializer, responses={200: ProxySettingSerializer})
    def patch(self, request):
        return self._update(request, partial=True)


class ProxyTestView(_SupplierManagePolicy, APIView):
    @extend_schema(request=ProxyTestSerializer, responses={200: dict, 400: dict, 502: dict})
    def post(self, request):
        serializer = ProxyTestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            api_config = active_api_config()
        except SupplierError as exc:
            return Response({"success": False, "error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        current = ProxySetting.current()
        config = ProxyConfig(
            proxy_type=data.get("proxy_type") or current.proxy_type,
            custom_url=data.get("custom_url", current.custom_url) or "",
        )
        kiosk_token = (data.get("kiosk_token") or api_config.kiosk_token or "").strip()
        if not kiosk_token:
            return Response(
                {"success": False, "error": "kiosk_token is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        target = f"{settings.SUPPLIER['API_BASE']}/getStock?" + urlencode(
            {"kioskToken": kiosk_token, "userToken": api_config.user_token}
        )

        try:
            proxy_url = build_proxy_url(target, config.proxy_type, config.custom_url)
            payload = fetch_via_proxy(target, config)
        except SupplierError as exc:
            return Response(
                {"success": False, "proxy_type": config.proxy_type, "error": str(exc)},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(
            {
                "success": True,
                "proxy_type": config.proxy_type,
                # the user token is part of the target; only show the proxy host
                "proxy_host": proxy_url.split("?")[0],
                "response": payload,
            }
        )
