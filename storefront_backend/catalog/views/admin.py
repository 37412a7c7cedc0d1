# catalog/views/admin.py

"""
BACK-OFFICE CATALOG MANAGEMENT

Policy:
- Back-office roles can READ everything (including inactive rows)
- Writes require catalog.edit
"""

from __future__ import annotations

from django.db.models import Q
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from catalog.models import Category, Product
from catalog.serializers import CategoryAdminSerializer, ProductAdminSerializer
from permissions.roles import CAP_CATALOG_EDIT, HasCapability, IsBackOffice


class _CatalogWritePolicy:
    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            return [IsAuthenticated(), IsBackOffice()]

        self.required_capability = CAP_CATALOG_EDIT
        return [IsAuthenticated(), HasCapability()]


class AdminCategoryViewSet(_CatalogWritePolicy, viewsets.ModelViewSet):
    queryset = Category.objects.select_related("parent").order_by("name")
    serializer_class = CategoryAdminSerializer
    filterset_fields = ["is_active", "parent"]


class AdminProductViewSet(_CatalogWritePolicy, viewsets.ModelViewSet):
    serializer_class = ProductAdminSerializer
    filterset_fields = ["is_active", "in_stock", "category"]

    def get_queryset(self):
        qs = Product.objects.select_related("category").order_by("-created_at")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(title__icontains=q) | Q(slug__icontains=q) | Q(external_id__icontains=q))
        supplier = self.request.query_params.get("supplier")
        if supplier == "true":
            qs = qs.exclude(kiosk_token="")
        elif supplier == "false":
            qs = qs.filter(kiosk_token="")
        return qs
