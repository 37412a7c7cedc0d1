# siteconfig/views/config.py

"""
CONFIG LOOKUP

POST /api/config/lookup/   {key}
- 400 when key is missing
- 404 when the key is not public or has no value
- 200 {value, domain}   (domain = request Origin or Host)
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from security.views.events import EdgeThrottle
from siteconfig.serializers import ConfigLookupSerializer
from siteconfig.services.config_lookup import ConfigKeyNotFound, lookup_public_config


class ConfigLookupView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [EdgeThrottle]

    @extend_schema(request=ConfigLookupSerializer, responses={200: dict, 400: dict, 404: dict})
    def post(self, request):
        serializer = ConfigLookupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        key = (serializer.validated_data.get("key") or "").strip()
        if not key:
            return Response({"error": "Missing key parameter"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            value = lookup_public_config(key)
        except ConfigKeyNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        domain = request.headers.get("Origin") or request.get_host()
        return Response({"value": value, "domain": domain})
