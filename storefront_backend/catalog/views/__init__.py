from .admin import AdminCategoryViewSet, AdminProductViewSet
from .public import PublicCategoryViewSet, PublicProductViewSet

__all__ = [
    "PublicCategoryViewSet",
    "PublicProductViewSet",
    "AdminCategoryViewSet",
    "AdminProductViewSet",
]
