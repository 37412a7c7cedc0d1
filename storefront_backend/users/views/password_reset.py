# users/views/password_reset.py

"""
PASSWORD RESET

POST /api/auth/password-reset/           {email}
  - always 200, whether or not the account exists
POST /api/auth/password-reset/confirm/   {uid, token, new_password}
  - 200 on success, 400 for a bad/expired/used link or a weak password
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import PasswordResetConfirmSerializer, PasswordResetRequestSerializer
from users.services.exceptions import PasswordResetError
from users.services.password_reset import request_password_reset, reset_password
from users.views.auth import AuthThrottle


class PasswordResetRequestView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthThrottle]

    @extend_schema(request=PasswordResetRequestSerializer, responses={200: dict})
    def post(self, request):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        request_password_reset(serializer.validated_data["email"])
        return Response({"message": "If the account exists, a password reset email has been sent"})


class PasswordResetConfirmView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthThrottle]

    @extend_schema(request=PasswordResetConfirmSerializer, responses={200: dict, 400: dict})
    def post(self, request):
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reset_password(
                uid=serializer.validated_data["uid"],
                token=serializer.validated_data["token"],
                new_password=serializer.validated_data["new_password"],
            )
        except PasswordResetError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({"message": "Password updated"})
