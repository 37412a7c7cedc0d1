# catalog/views/public.py

"""
PUBLIC CATALOG (AllowAny)

- GET /api/catalog/categories/                 top-level tree with subcategories
- GET /api/catalog/categories/<slug>/
- GET /api/catalog/products/?category=&q=&min_price=&max_price=&min_rating=&in_stock=&sort=
- GET /api/catalog/products/<slug>/
- GET /api/catalog/products/<slug>/related/
- GET /api/catalog/products/<slug>/stock/?live=true

Only active products/categories are visible.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from catalog.filters import ProductFilter
from catalog.models import Category
from catalog.serializers import CategorySerializer, ProductDetailSerializer, ProductListSerializer
from catalog.services.browsing import SORT_RECOMMENDED, apply_sort, category_tree, public_products, related_products
from supplier.services.exceptions import SupplierError
from supplier.services.sync import check_stock

logger = logging.getLogger(__name__)


class PublicCatalogThrottle(AnonRateThrottle):
    scope = "public_catalog"


class PublicCategoryViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = CategorySerializer
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [PublicCatalogThrottle]
    lookup_field = "slug"
    pagination_class = None

    def get_queryset(self):
        if self.action == "retrieve":
            return Category.objects.filter(is_active=True).prefetch_related("subcategories")
        return category_tree()


class PublicProductViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [PublicCatalogThrottle]
    filterset_class = ProductFilter
    lookup_field = "slug"

    def get_queryset(self):
        # the sales_count annotation groups the query, so Meta.ordering no longer applies;
        # ProductFilter re-orders when ?sort= is given
        return apply_sort(public_products(), SORT_RECOMMENDED)

    def get_serializer_class(self):
        if self.action == "list":
            return ProductListSerializer
        return ProductDetailSerializer

    @extend_schema(responses={200: ProductListSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def related(self, request, slug=None):
        product = self.get_object()
        return Response(ProductListSerializer(related_products(product), many=True).data)

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="live",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Also query the supplier for supplier-backed products.",
            )
        ],
        responses={200: dict},
    )
    @action(detail=True, methods=["get"])
    def stock(self, request, slug=None):
        product = self.get_object()
        payload = {
            "product_id": str(product.id),
            "stock": product.stock,
            "in_stock": product.in_stock,
            "supplier": None,
        }

        live = (request.query_params.get("live") or "").lower() in {"1", "true", "yes"}
        if live and product.is_supplier_backed:
            try:
                info = check_stock(product)
                payload["supplier"] = {"name": info.name, "stock": info.stock, "price": info.price}
            except SupplierError as exc:
                logger.warning("Live stock check failed", extra={"product_id": str(product.id), "error": str(exc)})
                payload["supplier"] = {"error": str(exc)}

        return Response(payload)
