# users/views/admin_users.py

"""
BACK-OFFICE USER MANAGEMENT

- GET  /api/auth/admin/users/?q=&role=&is_active=
- POST /api/auth/admin/users/<id>/ban/          {days}
- POST /api/auth/admin/users/<id>/unban/
- POST /api/auth/admin/users/<id>/assign-role/  {role}
- POST /api/auth/admin/users/<id>/remove-role/  {role}

Reads need users.view; mutations need users.manage.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import CAP_USERS_MANAGE, CAP_USERS_VIEW, HasCapability
from users.serializers import AdminUserSerializer, BanSerializer, RoleSerializer
from users.services.exceptions import AccountError
from users.services import moderation

User = get_user_model()


class AdminUserViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AdminUserSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_fields = ["role", "is_active"]

    @property
    def required_capability(self):
        if self.action in {"list", "retrieve"}:
            return CAP_USERS_VIEW
        return CAP_USERS_MANAGE

    def get_queryset(self):
        qs = User.objects.select_related("profile").order_by("-created_at")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(email__icontains=q) | Q(display_name__icontains=q))
        return qs

    def _respond(self, fn, *args, **kwargs):
        try:
            user = fn(*args, **kwargs)
        except AccountError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(AdminUserSerializer(user).data)

    @extend_schema(request=BanSerializer, responses={200: AdminUserSerializer})
    @action(detail=True, methods=["post"])
    def ban(self, request, pk=None):
        serializer = BanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(
            moderation.ban_user, user=self.get_object(), days=serializer.validated_data["days"], actor=request.user
        )

    @extend_schema(request=None, responses={200: AdminUserSerializer})
    @action(detail=True, methods=["post"])
    def unban(self, request, pk=None):
        return self._respond(moderation.unban_user, user=self.get_object(), actor=request.user)

    @extend_schema(request=RoleSerializer, responses={200: AdminUserSerializer})
    @action(detail=True, methods=["post"], url_path="assign-role")
    def assign_role(self, request, pk=None):
        serializer = RoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(
            moderation.assign_role, user=self.get_object(), role=serializer.validated_data["role"], actor=request.user
        )

    @extend_schema(request=RoleSerializer, responses={200: AdminUserSerializer})
    @action(detail=True, methods=["post"], url_path="remove-role")
    def remove_role(self, request, pk=None):
        serializer = RoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(
            moderation.remove_role, user=self.get_object(), role=serializer.validated_data["role"], actor=request.user
        )
