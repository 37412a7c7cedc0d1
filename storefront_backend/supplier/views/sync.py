# supplier/views/sync.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.models import Product
from catalog.serializers import ProductAdminSerializer
from permissions.roles import CAP_SUPPLIER_MANAGE, HasCapability
from supplier.models import SyncLog
from supplier.serializers import SyncLogSerializer, SyncRequestSerializer
from supplier.services.exceptions import SupplierError
from supplier.services.sync import sync_all_products, sync_product


class SyncView(APIView):
    """
    POST {product_id}  -> sync one product
    POST {}            -> sync every active supplier-backed product
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SUPPLIER_MANAGE

    @extend_schema(request=SyncRequestSerializer, responses={200: dict, 404: dict, 502: dict})
    def post(self, request):
        serializer = SyncRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product_id = serializer.validated_data.get("product_id")

        if product_id is None:
            summary = sync_all_products()
            return Response({"success": summary.failed == 0, **summary.as_dict()})

        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            return Response(
                {"error": f"Product {product_id} not found"},
                status=status.HTTP_404_NOT_FOUND,
            )

        try:
            product = sync_product(product)
        except SupplierError as exc:
            return Response({"success": False, "error": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({"success": True, "product": ProductAdminSerializer(product).data})


class SyncLogViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SyncLogSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SUPPLIER_MANAGE
    filterset_fields = ["status", "action", "product"]
    queryset = SyncLog.objects.select_related("product").order_by("-created_at")
