# catalog/admin.py

from django.contrib import admin

from catalog.models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "parent", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "price", "stock", "in_stock", "is_active", "last_synced_at")
    list_filter = ("is_active", "in_stock", "category")
    search_fields = ("title", "slug", "external_id")
    readonly_fields = ("in_stock", "api_name", "api_price", "api_stock", "last_synced_at")
    prepopulated_fields = {"slug": ("title",)}
