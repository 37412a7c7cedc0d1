# catalog/services/browsing.py

"""
CATALOG BROWSING HELPERS

- sales_count annotation: completed order quantity per product
- sort keys used by the storefront; "recommended" is the default list order
- related products (same category, excluding the product itself)
"""

from __future__ import annotations

from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from catalog.models import Category, Product

SORT_NEWEST = "newest"
SORT_POPULAR = "popular"
SORT_PRICE_LOW = "price-low"
SORT_PRICE_HIGH = "price-high"
SORT_RECOMMENDED = "recommended"

SORT_CHOICES = [
    (SORT_NEWEST, "Newest"),
    (SORT_POPULAR, "Popular"),
    (SORT_PRICE_LOW, "Price: low to high"),
    (SORT_PRICE_HIGH, "Price: high to low"),
    (SORT_RECOMMENDED, "Recommended"),
]

COMPLETED_SALE = Q(orders__status="completed")


def public_products():
    return (
        Product.objects.filter(is_active=True)
        .select_related("category")
        .annotate(sales_count=Coalesce(Sum("orders__quantity", filter=COMPLETED_SALE), 0))
    )


def apply_sort(queryset, sort: str | None):
    if sort == SORT_POPULAR:
        return queryset.order_by("-sales_count", "-created_at")
    if sort == SORT_PRICE_LOW:
        return queryset.order_by("price", "-created_at")
    if sort == SORT_PRICE_HIGH:
        return queryset.order_by("-price", "-created_at")
    if sort == SORT_RECOMMENDED:
        return queryset.order_by("-sales_count", "-created_at")
    return queryset.order_by("-created_at")


def related_products(product: Product, *, limit: int = 4):
    if not product.category_id:
        return public_products().none()
    return (
        public_products()
        .filter(category_id=product.category_id)
        .exclude(pk=product.pk)
        .order_by("-sales_count", "-created_at")[:limit]
    )


def category_tree():
    active_products = Q(products__is_active=True)
    return (
        Category.objects.filter(is_active=True, parent__isnull=True)
        .annotate(product_count=Count("products", filter=active_products))
        .prefetch_related("subcategories")
        .order_by("name")
    )
