# users/views/verification.py

"""
EMAIL VERIFICATION

GET  /api/auth/verify/?token=<signed>&redirect=<frontend url>
  - missing token            -> 400 JSON
  - invalid / expired token  -> 302 redirect?error=<message>&status=<code>
  - success                  -> 302 redirect?success=true

POST /api/auth/resend-verification/   {email, redirect?}
  - always 200, whether or not the account exists
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.http import HttpResponseRedirect
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import ResendVerificationSerializer
from users.services.exceptions import VerificationError
from users.services.registration import send_verification_email
from users.services.verification import safe_redirect_target, verify_email_token, with_query
from users.views.auth import AuthThrottle

logger = logging.getLogger(__name__)

User = get_user_model()


class VerifyEmailRedirectView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        parameters=[
            OpenApiParameter("token", str, OpenApiParameter.QUERY, required=True),
            OpenApiParameter("redirect", str, OpenApiParameter.QUERY, required=False),
        ],
        responses={302: None, 400: dict},
        description="Verify an email token and redirect back to the storefront.",
    )
    def get(self, request):
        token = (request.query_params.get("token") or "").strip()
        if not token:
            return Response({"detail": "Missing token"}, status=status.HTTP_400_BAD_REQUEST)

        target = safe_redirect_target(request.query_params.get("redirect"))

        try:
            verify_email_token(token)
        except VerificationError as exc:
            logger.info("Email verification failed", extra={"reason": str(exc)})
            return HttpResponseRedirect(with_query(target, error=str(exc), status=exc.status_code))

        return HttpResponseRedirect(with_query(target, success="true"))


class ResendVerificationView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthThrottle]

    @extend_schema(request=ResendVerificationSerializer, responses={200: dict})
    def post(self, request):
        serializer = ResendVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = User.objects.filter(email__iexact=serializer.validated_data["email"]).first()
        if user is not None and not user.is_email_verified:
            send_verification_email(user, redirect_to=serializer.validated_data.get("redirect", ""))

        return Response({"message": "If the account exists, a verification email has been sent"})
