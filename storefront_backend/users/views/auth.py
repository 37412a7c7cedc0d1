# users/views/auth.py

"""
AUTH ENDPOINTS

- POST /api/auth/register/         (AllowAny, per-email registration lockout)
- POST /api/auth/login/            (AllowAny, returns JWT pair; every attempt is a security event)
- POST /api/auth/logout/           (blacklists the refresh token)
- POST /api/auth/change-password/  (sends password_changed email)
"""

from __future__ import annotations

import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from notifications.services.email import EMAIL_PASSWORD_CHANGED, send_email_safely
from security.models import SecurityEvent
from security.services.events import client_ip, client_user_agent, record_security_event
from security.services.fraud_detection import evaluate_login
from users.serializers import (
    ChangePasswordSerializer,
    LoginSerializer,
    LogoutSerializer,
    RegisterSerializer,
    UserSerializer,
)
from users.services.exceptions import EmailAlreadyRegistered, RegistrationRateLimited
from users.services.moderation import lift_expired_ban
from users.services.registration import register_user

logger = logging.getLogger(__name__)

User = get_user_model()


class AuthThrottle(AnonRateThrottle):
    scope = "auth"


def _token_pair(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


class RegisterView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthThrottle]
    serializer_class = RegisterSerializer

    @extend_schema(
        request=RegisterSerializer,
        responses={201: UserSerializer},
        description="Register a new storefront account. A verification email is sent.",
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            user = register_user(
                email=data["email"],
                password=data["password"],
                display_name=data.get("display_name", ""),
            )
        except RegistrationRateLimited as exc:
            return Response(
                {"detail": str(exc), "retry_after": exc.retry_after_seconds},
                status=status.HTTP_429_TOO_MANY_REQUESTS,
                headers={"Retry-After": str(exc.retry_after_seconds)},
            )
        except EmailAlreadyRegistered as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {"message": "User registered successfully", "user": UserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthThrottle]
    serializer_class = LoginSerializer

    @extend_schema(
        request=LoginSerializer,
        responses={200: dict},
        description="Authenticate with email and password; returns access/refresh JWT.",
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data["email"].strip().lower()
        password = serializer.validated_data["password"]
        ip = client_ip(request)
        ua = client_user_agent(request)

        existing = User.objects.filter(email__iexact=email).first()
        if existing is not None:
            lift_expired_ban(existing)
            if existing.is_banned:
                record_security_event(
                    event_type=SecurityEvent.TYPE_LOGIN,
                    success=False,
                    ip_address=ip,
                    user_agent=ua,
                    user=existing,
                    email=email,
                    metadata={"reason": "banned"},
                )
                return Response(
                    {"detail": "Account is banned", "banned_until": existing.banned_until},
                    status=status.HTTP_403_FORBIDDEN,
                )

        user = authenticate(request=request, email=email, password=password)

        record_security_event(
            event_type=SecurityEvent.TYPE_LOGIN,
            success=user is not None,
            ip_address=ip,
            user_agent=ua,
            user=user or existing,
            email=email,
        )
        evaluate_login(email=email, ip_address=ip, user=user or existing)

        if not user:
            return Response(
                {"detail": "Invalid credentials"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        return Response(
            {
                "message": "Login successful",
                **_token_pair(user),
                "user": UserSerializer(user).data,
            }
        )


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=LogoutSerializer, responses={205: None})
    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            RefreshToken(serializer.validated_data["refresh"]).blacklist()
        except TokenError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_205_RESET_CONTENT)


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=ChangePasswordSerializer, responses={200: dict})
    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        if not user.check_password(serializer.validated_data["old_password"]):
            return Response(
                {"old_password": ["Current password is incorrect"]},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user.set_password(serializer.validated_data["new_password"])
        user.save(update_fields=["password", "updated_at"])

        transaction.on_commit(
            lambda: send_email_safely(
                to=user.email,
                email_type=EMAIL_PASSWORD_CHANGED,
                data={"name": user.display_name or user.email},
            )
        )
        logger.info("Password changed", extra={"user_id": str(user.pk)})
        return Response({"message": "Password updated"})
