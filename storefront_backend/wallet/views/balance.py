# wallet/views/balance.py

"""
WALLET ENDPOINTS

- GET  /api/wallet/balance/                 current user's balance
- GET  /api/wallet/transactions/?type=&status=
- POST /api/wallet/admin/adjust/            manual correction (capability: wallet.adjust)
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_WALLET_ADJUST, HasCapability
from wallet.models import Transaction
from wallet.serializers import (
    BalanceAdjustmentSerializer,
    BalanceSerializer,
    TransactionSerializer,
)
from wallet.services.balance_service import get_balance, update_user_balance
from wallet.services.exceptions import InsufficientBalanceError

logger = logging.getLogger(__name__)

User = get_user_model()


class BalanceView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: BalanceSerializer}, description="Current wallet balance")
    def get(self, request):
        return Response({"balance": get_balance(request.user)})


class TransactionListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = TransactionSerializer
    filterset_fields = ["type", "status"]

    def get_queryset(self):
        return Transaction.objects.filter(user=self.request.user).order_by("-created_at")


class BalanceAdjustmentView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_WALLET_ADJUST

    @extend_schema(
        request=BalanceAdjustmentSerializer,
        responses={200: BalanceSerializer},
        description="Credit or debit a user's balance with an audit reason.",
    )
    def post(self, request):
        serializer = BalanceAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        target = get_object_or_404(User, pk=data["user_id"])

        try:
            balance = update_user_balance(
                user=target,
                amount=data["amount"],
                tx_type=Transaction.TYPE_ADJUSTMENT,
                description=f"{data['reason']} (by {request.user.email})",
            )
        except InsufficientBalanceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        logger.info(
            "Manual balance adjustment",
            extra={"admin_id": str(request.user.pk), "user_id": str(target.pk), "amount": str(data["amount"])},
        )
        return Response({"balance": balance})
