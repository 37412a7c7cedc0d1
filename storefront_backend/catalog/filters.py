# catalog/filters.py

"""
PUBLIC PRODUCT FILTERS (django-filter)

Query params:
- category=<slug>        includes products of its subcategories
- q=<text>               title / short description / description
- min_price, max_price
- min_rating
- in_stock=true|false
- sort=newest|popular|price-low|price-high|recommended
"""

from __future__ import annotations

import django_filters
from django.db.models import Q

from catalog.models import Category, Product
from catalog.services.browsing import SORT_CHOICES, apply_sort


class ProductFilter(django_filters.FilterSet):
    category = django_filters.CharFilter(method="filter_category")
    q = django_filters.CharFilter(method="filter_search")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    min_rating = django_filters.NumberFilter(field_name="rating", lookup_expr="gte")
    in_stock = django_filters.BooleanFilter(field_name="in_stock")
    sort = django_filters.ChoiceFilter(choices=SORT_CHOICES, method="filter_sort")

    class Meta:
        model = Product
        fields = ["category", "q", "min_price", "max_price", "min_rating", "in_stock", "sort"]

    def filter_category(self, queryset, name, value):
        category = Category.objects.filter(slug=value, is_active=True).first()
        if category is None:
            return queryset.none()
        return queryset.filter(category_id__in=category.descendant_ids())

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value)
            | Q(short_description__icontains=value)
            | Q(description__icontains=value)
        )

    def filter_sort(self, queryset, name, value):
        return apply_sort(queryset, value)
