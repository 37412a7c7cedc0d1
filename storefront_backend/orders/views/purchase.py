# orders/views/purchase.py

"""
PURCHASE ENDPOINT

POST /api/orders/purchase/   {product_id, quantity, promotion_code}
Headers:
- Idempotency-Key (optional): a retried request with the same key replays the
  first response instead of buying twice.

Responses:
- 201 new order, 200 replayed order (Idempotent-Replayed: true)
- 402 insufficient balance, 404 product unavailable, 409 out of stock or
  idempotency conflict, 400 invalid input
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from orders.serializers import OrderSerializer, PurchaseSerializer
from orders.services.exceptions import (
    InvalidQuantityError,
    OutOfStockError,
    ProductUnavailableError,
    PurchaseError,
)
from orders.services.purchase_service import purchase_product
from security.services.events import client_ip, client_user_agent
from wallet.services.exceptions import IdempotencyConflictError, InsufficientBalanceError, WalletError
from wallet.services.idempotency import process_with_idempotency

IDEMPOTENCY_HEADER = "Idempotency-Key"


class PurchaseThrottle(UserRateThrottle):
    scope = "purchase"


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def purchase_error_response(exc: Exception) -> Response:
    if isinstance(exc, InsufficientBalanceError):
        return error_response(code="INSUFFICIENT_BALANCE", message=str(exc), http_status=status.HTTP_402_PAYMENT_REQUIRED)
    if isinstance(exc, ProductUnavailableError):
        return error_response(code="PRODUCT_UNAVAILABLE", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, OutOfStockError):
        return error_response(code="OUT_OF_STOCK", message=str(exc), http_status=status.HTTP_409_CONFLICT)
    if isinstance(exc, IdempotencyConflictError):
        return error_response(code="IDEMPOTENCY_CONFLICT", message=str(exc), http_status=status.HTTP_409_CONFLICT)
    if isinstance(exc, InvalidQuantityError):
        return error_response(code="INVALID_QUANTITY", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
    return error_response(code="PURCHASE_FAILED", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)


class PurchaseView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [PurchaseThrottle]

    @extend_schema(
        request=PurchaseSerializer,
        responses={201: OrderSerializer, 200: OrderSerializer},
        parameters=[
            OpenApiParameter(
                name=IDEMPOTENCY_HEADER,
                type=str,
                location=OpenApiParameter.HEADER,
                required=False,
            )
        ],
        description="Buy a product with the account balance.",
    )
    def post(self, request):
        serializer = PurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        key = (request.headers.get(IDEMPOTENCY_HEADER) or "").strip()

        def run():
            order = purchase_product(
                user=request.user,
                product_id=data["product_id"],
                quantity=data["quantity"],
                promotion_code=data.get("promotion_code", ""),
                idempotency_key=key,
                ip_address=client_ip(request),
                user_agent=client_user_agent(request),
            )
            return OrderSerializer(order).data

        try:
            outcome = process_with_idempotency(key=key, request_type="purchase", user=request.user, fn=run)
        except (PurchaseError, WalletError) as exc:
            return purchase_error_response(exc)

        if not outcome.is_new:
            return Response(outcome.result, status=status.HTTP_200_OK, headers={"Idempotent-Replayed": "true"})
        return Response(outcome.result, status=status.HTTP_201_CREATED)
