# orders/views/orders.py

"""
CUSTOMER ORDER ENDPOINTS (own orders only)

- GET  /api/orders/                  ?status=
- GET  /api/orders/<id>/
- GET  /api/orders/<id>/invoice/     issues the invoice on first request
- POST /api/orders/<id>/refresh/     poll the supplier for a processing order
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orders.models import Order
from orders.serializers import InvoiceSerializer, OrderSerializer
from orders.services.exceptions import InvoiceError
from orders.services.fulfillment import refresh_order
from orders.services.invoice_service import create_invoice
from supplier.services.exceptions import SupplierError


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status"]

    def get_queryset(self):
        return (
            Order.objects.filter(user=self.request.user)
            .select_related("product")
            .order_by("-created_at")
        )

    @extend_schema(responses={200: InvoiceSerializer, 201: InvoiceSerializer, 400: dict})
    @action(detail=True, methods=["get"])
    def invoice(self, request, pk=None):
        order = self.get_object()
        try:
            invoice, created = create_invoice(order)
        except InvoiceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            InvoiceSerializer(invoice).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(request=None, responses={200: OrderSerializer, 502: dict})
    @action(detail=True, methods=["post"])
    def refresh(self, request, pk=None):
        order = self.get_object()
        try:
            order = refresh_order(order)
        except SupplierError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(OrderSerializer(order).data)
