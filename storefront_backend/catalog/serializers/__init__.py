from .category import CategoryAdminSerializer, CategorySerializer, SubcategorySerializer
from .product import ProductAdminSerializer, ProductDetailSerializer, ProductListSerializer

__all__ = [
    "CategorySerializer",
    "CategoryAdminSerializer",
    "SubcategorySerializer",
    "ProductListSerializer",
    "ProductDetailSerializer",
    "ProductAdminSerializer",
]
