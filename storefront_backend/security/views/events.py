# security/views/events.py

"""
SECURITY EVENT INGEST

POST /api/security/events/
- AllowAny (the storefront reports client-side login/purchase outcomes).
- 400 on missing/invalid fields; 201 with the stored event id.
- A failed event opens a failed_<type> alert.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from security.serializers import SecurityEventInputSerializer
from security.services.events import record_security_event

User = get_user_model()


class EdgeThrottle(AnonRateThrottle):
    scope = "edge"


class SecurityEventCreateView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [EdgeThrottle]

    @extend_schema(
        request=SecurityEventInputSerializer,
        responses={201: dict, 400: dict},
        description="Record a login or purchase security event.",
    )
    def post(self, request):
        serializer = SecurityEventInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = None
        if data.get("user_id"):
            user = User.objects.filter(pk=data["user_id"]).first()

        event = record_security_event(
            event_type=data["type"],
            success=data["success"],
            ip_address=data["ip_address"],
            user_agent=data["user_agent"],
            user=user,
            email=data.get("email") or "",
            metadata=data.get("metadata") or {},
        )

        return Response({"success": True, "id": str(event.id)}, status=status.HTTP_201_CREATED)
