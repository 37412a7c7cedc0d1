# payments/views/deposits.py

"""
DEPOSIT ENDPOINTS (customer)

- GET  /api/payments/deposits/                 own deposits
- POST /api/payments/deposits/                 {amount} -> deposit + PayPal approve_url
- POST /api/payments/deposits/{id}/capture/    {paypal_order_id?} after PayPal approval
                                               (202 while the capture is still settling)
- GET  /api/payments/fee/?amount=              fee / net preview
- POST /api/payments/check-payment/            {transaction_id}
- POST /api/payments/refresh-balance/          credit captured-but-uncredited deposits

POST /deposits/ honours the Idempotency-Key header.
"""

from __future__ import annotations

import logging

from django.db import transaction
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.views.purchase import IDEMPOTENCY_HEADER, error_response
from payments.models import Deposit
from payments.serializers import (
    CaptureDepositSerializer,
    CheckPaymentSerializer,
    CreateDepositSerializer,
    DepositSerializer,
    FeePreviewSerializer,
)
from payments.services.deposit_service import (
    calculate_fee,
    capture_deposit,
    check_payment,
    create_deposit,
    refresh_balance,
    start_paypal_checkout,
)
from payments.services.exceptions import (
    DepositAmountError,
    DepositNotFound,
    PaymentPendingError,
    PaymentVerificationError,
    PayPalError,
)
from wallet.services.exceptions import IdempotencyConflictError
from wallet.services.idempotency import process_with_idempotency

logger = logging.getLogger(__name__)


class DepositViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = DepositSerializer
    filterset_fields = ["status"]

    def get_queryset(self):
        return Deposit.objects.filter(user=self.request.user).order_by("-created_at")

    @extend_schema(
        request=CreateDepositSerializer,
        responses={201: dict},
        parameters=[
            OpenApiParameter(name=IDEMPOTENCY_HEADER, type=str, location=OpenApiParameter.HEADER, required=False)
        ],
        description="Start a PayPal deposit. Redirect the user to approve_url.",
    )
    def create(self, request):
        serializer = CreateDepositSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        key = (request.headers.get(IDEMPOTENCY_HEADER) or "").strip()

        def run():
            with transaction.atomic():
                deposit = create_deposit(user=request.user, amount=serializer.validated_data["amount"])
            checkout = start_paypal_checkout(deposit)
            deposit.refresh_from_db()
            return {"deposit": DepositSerializer(deposit).data, **checkout}

        try:
            outcome = process_with_idempotency(key=key, request_type="deposit", user=request.user, fn=run)
        except DepositAmountError as exc:
            return error_response(code="INVALID_AMOUNT", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
        except IdempotencyConflictError as exc:
            return error_response(code="IDEMPOTENCY_CONFLICT", message=str(exc), http_status=status.HTTP_409_CONFLICT)
        except PayPalError as exc:
            logger.warning("PayPal order creation failed", extra={"user_id": str(request.user.pk), "error": str(exc)})
            return error_response(code="PAYPAL_ERROR", message=str(exc), http_status=status.HTTP_502_BAD_GATEWAY)

        if not outcome.is_new:
            return Response(outcome.result, status=status.HTTP_200_OK, headers={"Idempotent-Replayed": "true"})
        return Response(outcome.result, status=status.HTTP_201_CREATED)

    @extend_schema(request=CaptureDepositSerializer, responses={200: DepositSerializer})
    @action(detail=True, methods=["post"])
    def capture(self, request, pk=None):
        deposit = self.get_object()
        serializer = CaptureDepositSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        paypal_order_id = (serializer.validated_data.get("paypal_order_id") or deposit.paypal_order_id).strip()
        if not paypal_order_id:
            return error_response(
                code="MISSING_ORDER",
                message="paypal_order_id is required",
                http_status=status.HTTP_400_BAD_REQUEST,
            )
        if deposit.paypal_order_id and paypal_order_id != deposit.paypal_order_id:
            return error_response(
                code="ORDER_MISMATCH",
                message="PayPal order does not belong to this deposit",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            deposit = capture_deposit(deposit=deposit, paypal_order_id=paypal_order_id)
        except PaymentPendingError:
            deposit.refresh_from_db()
            return Response(DepositSerializer(deposit).data, status=status.HTTP_202_ACCEPTED)
        except PaymentVerificationError as exc:
            return error_response(code="PAYMENT_NOT_VERIFIED", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
        except PayPalError as exc:
            return error_response(code="PAYPAL_ERROR", message=str(exc), http_status=status.HTTP_502_BAD_GATEWAY)

        return Response(DepositSerializer(deposit).data)


class FeePreviewView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(parameters=[FeePreviewSerializer], responses={200: dict})
    def get(self, request):
        serializer = FeePreviewSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        amount = serializer.validated_data["amount"]
        fee, net = calculate_fee(amount)
        return Response({"amount": amount, "fee": fee, "net_amount": net})


class CheckPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=CheckPaymentSerializer,
        responses={200: dict},
        description="Look up a deposit by PayPal transaction id; finalizes it if it was captured but not credited.",
    )
    def post(self, request):
        serializer = CheckPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            payload = check_payment(transaction_id=serializer.validated_data["transaction_id"], user=request.user)
        except DepositNotFound as exc:
            return error_response(code="NOT_FOUND", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
        except PaymentVerificationError as exc:
            return error_response(code="PAYMENT_NOT_VERIFIED", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)

        return Response(payload)


class RefreshBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: dict})
    def post(self, request):
        return Response(refresh_balance(request.user))
