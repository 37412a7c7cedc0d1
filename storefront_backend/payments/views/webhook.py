# payments/views/webhook.py

"""
PAYPAL WEBHOOK

POST /api/payments/webhooks/paypal/

- No session/JWT: the PayPal transmission signature is the authentication.
- Unverified events are rejected with 400 and never touch balances.
- PAYMENT.CAPTURE.COMPLETED credits the matching deposit once.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from orders.views.purchase import error_response
from payments.services import paypal
from payments.services.deposit_service import handle_webhook_event
from payments.services.exceptions import DepositNotFound, PaymentVerificationError, PayPalError

logger = logging.getLogger(__name__)


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


class PayPalWebhookView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [WebhookThrottle]

    @extend_schema(request=dict, responses={200: dict}, description="PayPal webhook receiver.")
    def post(self, request):
        event = request.data if isinstance(request.data, dict) else {}

        try:
            verified = paypal.verify_webhook_signature(headers=request.headers, event=event)
        except PayPalError as exc:
            logger.warning("PayPal webhook verification errored", extra={"error": str(exc)})
            verified = False

        if not verified:
            logger.warning("PayPal webhook rejected", extra={"event_id": event.get("id")})
            return error_response(
                code="INVALID_SIGNATURE",
                message="Webhook signature verification failed",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            payload = handle_webhook_event(event)
        except DepositNotFound as exc:
            return error_response(code="NOT_FOUND", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
        except PaymentVerificationError as exc:
            return error_response(code="PAYMENT_NOT_VERIFIED", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)

        logger.info("PayPal webhook handled", extra={"event_id": event.get("id"), "event_type": event.get("event_type")})
        return Response(payload)
