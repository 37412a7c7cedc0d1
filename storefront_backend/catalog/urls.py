# catalog/urls.py

"""
CATALOG URLS

- /api/catalog/categories/, /api/catalog/products/            (AllowAny)
- /api/catalog/admin/categories/, /api/catalog/admin/products/ (back-office)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from catalog.views import (
    AdminCategoryViewSet,
    AdminProductViewSet,
    PublicCategoryViewSet,
    PublicProductViewSet,
)

app_name = "catalog"

router = DefaultRouter()
router.register(r"categories", PublicCategoryViewSet, basename="categories")
router.register(r"products", PublicProductViewSet, basename="products")
router.register(r"admin/categories", AdminCategoryViewSet, basename="admin-categories")
router.register(r"admin/products", AdminProductViewSet, basename="admin-products")

urlpatterns = [
    path("", include(router.urls)),
]
