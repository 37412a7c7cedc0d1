# notifications/views/feed.py

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from notifications.models import Notification
from notifications.serializers import NotificationSerializer
from permissions.roles import CAP_ORDERS_VIEW, user_has_capability


class NotificationViewSet(mixins.ListModelMixin, mixins.UpdateModelMixin, viewsets.GenericViewSet):
    """
    GET   /api/notifications/feed/?scope=admin&read=false
    PATCH /api/notifications/feed/<id>/          {read: true}
    POST  /api/notifications/feed/mark-all-read/?scope=admin
    """

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["read", "type"]
    http_method_names = ["get", "patch", "post"]

    def _admin_scope(self) -> bool:
        return self.request.query_params.get("scope") == "admin" and user_has_capability(
            self.request.user, CAP_ORDERS_VIEW
        )

    def get_queryset(self):
        if self._admin_scope():
            return Notification.objects.filter(admin_only=True)
        return Notification.objects.filter(user=self.request.user, admin_only=False)

    @extend_schema(
        parameters=[OpenApiParameter("scope", str, OpenApiParameter.QUERY, required=False)],
        request=None,
        responses={200: dict},
    )
    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        updated = self.get_queryset().filter(read=False).update(read=True)
        return Response({"updated": updated})
