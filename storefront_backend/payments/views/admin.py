# payments/views/admin.py

"""
BACK-OFFICE DEPOSITS

- list/retrieve:  reports.view
- retry:          wallet.adjust (runs the pending-deposit recovery now)
"""

from __future__ import annotations

from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from payments.models import Deposit
from payments.serializers import AdminDepositSerializer, RetryDepositsSerializer
from payments.services.deposit_service import retry_pending_deposits
from permissions.roles import CAP_REPORTS_VIEW, CAP_WALLET_ADJUST, HasCapability


class AdminDepositViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AdminDepositSerializer
    filterset_fields = ["status", "user", "is_processed"]

    def get_permissions(self):
        self.required_capability = CAP_WALLET_ADJUST if self.action == "retry" else CAP_REPORTS_VIEW
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        qs = Deposit.objects.select_related("user").order_by("-created_at")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(transaction_id__icontains=q)
                | Q(paypal_order_id__icontains=q)
                | Q(user__email__icontains=q)
                | Q(payer_email__icontains=q)
            )
        return qs

    @extend_schema(request=RetryDepositsSerializer, responses={200: dict})
    @action(detail=False, methods=["post"])
    def retry(self, request):
        serializer = RetryDepositsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(retry_pending_deposits(**serializer.validated_data))
