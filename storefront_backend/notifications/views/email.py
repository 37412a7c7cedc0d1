# notifications/views/email.py

"""
POST /api/notifications/email/   {to, type, subject?, data?}

- Customers may only send to their own address (e.g. password_changed).
- Holders of notifications.email may send to any address.
- 400 for unknown types, 502 when Resend rejects the request.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from notifications.serializers import SendEmailSerializer
from notifications.services.email import EmailDispatchError, send_email
from permissions.roles import CAP_EMAIL_SEND, user_has_capability

logger = logging.getLogger(__name__)


class EdgeUserThrottle(UserRateThrottle):
    scope = "edge"


class SendEmailView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [EdgeUserThrottle]

    @extend_schema(request=SendEmailSerializer, responses={200: dict, 400: dict, 502: dict})
    def post(self, request):
        serializer = SendEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        recipient = data["to"].strip().lower()
        if recipient != request.user.email.lower() and not user_has_capability(request.user, CAP_EMAIL_SEND):
            return Response(
                {"detail": "You can only send notifications to your own address"},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            result = send_email(
                to=recipient,
                email_type=data["type"],
                data=data.get("data") or {},
                subject=data.get("subject") or "",
            )
        except EmailDispatchError as exc:
            logger.exception("Email endpoint failed", extra={"email_type": data["type"]})
            return Response({"error": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response(result)
