# security/views/alerts.py

from __future__ import annotations

from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import CAP_SECURITY_VIEW, HasCapability
from security.models import SecurityAlert, SecurityEvent
from security.serializers import SecurityAlertSerializer, SecurityEventSerializer


class SecurityAlertViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SecurityAlertSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SECURITY_VIEW
    filterset_fields = ["status", "alert_type"]
    queryset = SecurityAlert.objects.select_related("user").order_by("-created_at")

    @extend_schema(request=None, responses={200: SecurityAlertSerializer})
    @action(detail=True, methods=["post"])
    def resolve(self, request, pk=None):
        alert = self.get_object()
        if alert.status != SecurityAlert.STATUS_RESOLVED:
            alert.status = SecurityAlert.STATUS_RESOLVED
            alert.resolved_by = request.user
            alert.resolved_at = timezone.now()
            alert.save(update_fields=["status", "resolved_by", "resolved_at"])
        return Response(SecurityAlertSerializer(alert).data)


class SecurityEventViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SecurityEventSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SECURITY_VIEW
    filterset_fields = ["event_type", "success", "email"]
    queryset = SecurityEvent.objects.order_by("-created_at")
