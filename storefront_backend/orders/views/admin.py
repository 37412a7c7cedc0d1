# orders/views/admin.py

"""
BACK-OFFICE ORDERS

- list/retrieve/activities:   orders.view
- update-status:              orders.manage
- refund:                     orders.refund
- /api/orders/admin/stats/:   reports.view
"""

from __future__ import annotations

from datetime import datetime, timedelta

from django.db.models import Q
from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Order
from orders.serializers import (
    AdminOrderSerializer,
    OrderActivitySerializer,
    OrderStatusUpdateSerializer,
    RefundSerializer,
)
from orders.services.admin_service import process_refund, update_order_status
from orders.services.exceptions import DuplicateRefundError, InvalidOrderTransitionError
from orders.services.stats import dashboard_stats
from orders.views.purchase import error_response
from permissions.roles import (
    CAP_ORDERS_MANAGE,
    CAP_ORDERS_REFUND,
    CAP_ORDERS_VIEW,
    CAP_REPORTS_VIEW,
    HasCapability,
)

DEFAULT_STATS_DAYS = 30


class AdminOrderViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AdminOrderSerializer
    filterset_fields = ["status", "user", "product"]

    def get_permissions(self):
        if self.action == "update_status":
            self.required_capability = CAP_ORDERS_MANAGE
        elif self.action == "refund":
            self.required_capability = CAP_ORDERS_REFUND
        else:
            self.required_capability = CAP_ORDERS_VIEW
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        qs = Order.objects.select_related("user", "product").order_by("-created_at")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(order_number__icontains=q)
                | Q(user__email__icontains=q)
                | Q(product__title__icontains=q)
                | Q(external_order_id__icontains=q)
            )
        return qs

    @extend_schema(request=OrderStatusUpdateSerializer, responses={200: AdminOrderSerializer})
    @action(detail=True, methods=["post"], url_path="update-status")
    def update_status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = update_order_status(
                order=order,
                new_status=serializer.validated_data["status"],
                actor=request.user,
                note=serializer.validated_data.get("note", ""),
            )
        except InvalidOrderTransitionError as exc:
            return error_response(code="INVALID_TRANSITION", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)

        return Response(AdminOrderSerializer(order).data)

    @extend_schema(request=RefundSerializer, responses={200: AdminOrderSerializer})
    @action(detail=True, methods=["post"])
    def refund(self, request, pk=None):
        order = self.get_object()
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = process_refund(
                order=order,
                actor=request.user,
                reason=serializer.validated_data.get("reason", ""),
            )
        except DuplicateRefundError as exc:
            return error_response(code="ALREADY_REFUNDED", message=str(exc), http_status=status.HTTP_409_CONFLICT)
        except InvalidOrderTransitionError as exc:
            return error_response(code="INVALID_TRANSITION", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)

        return Response(AdminOrderSerializer(order).data)

    @extend_schema(responses={200: OrderActivitySerializer(many=True)})
    @action(detail=True, methods=["get"])
    def activities(self, request, pk=None):
        order = self.get_object()
        return Response(OrderActivitySerializer(order.activities.select_related("user"), many=True).data)


def _parse_date(value: str | None):
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


class AdminStatsView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REPORTS_VIEW

    @extend_schema(
        parameters=[
            OpenApiParameter(name="start_date", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="end_date", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: dict},
        description="Dashboard totals over a date range (YYYY-MM-DD, defaults to the last 30 days).",
    )
    def get(self, request):
        today = timezone.localdate()
        raw_start = request.query_params.get("start_date")
        raw_end = request.query_params.get("end_date")

        end_date = _parse_date(raw_end) if raw_end else today
        start_date = _parse_date(raw_start) if raw_start else (end_date or today) - timedelta(days=DEFAULT_STATS_DAYS - 1)

        if start_date is None or end_date is None:
            return Response({"detail": "Dates must be YYYY-MM-DD"}, status=status.HTTP_400_BAD_REQUEST)
        if start_date > end_date:
            return Response({"detail": "start_date must be before end_date"}, status=status.HTTP_400_BAD_REQUEST)

        return Response(dashboard_stats(start_date=start_date, end_date=end_date))
