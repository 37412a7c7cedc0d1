# catalog/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from .category import Category
from .slugs import unique_slug


class Product(models.Model):
    """
    A sellable digital good (account, licence key, subscription...).

    STOCK MODEL:
    - `stock` is the sellable unit count; purchases decrement it under a row lock.
    - `in_stock` mirrors stock > 0 and is kept in sync on every save.

    SUPPLIER-BACKED PRODUCTS:
    - kiosk_token set => fulfilment goes through the supplier API.
    - api_* fields are the last values seen by product sync; they are
      informational, `price` stays the storefront selling price.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    title = models.CharField(max_length=255, db_index=True)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True)
    short_description = models.CharField(max_length=500, blank=True)

    price = models.DecimalField(max_digits=14, decimal_places=2)
    original_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    stock = models.PositiveIntegerField(default=0)
    in_stock = models.BooleanField(default=False)

    images = models.JSONField(default=list, blank=True)
    features = models.JSONField(default=list, blank=True)
    badges = models.JSONField(default=list, blank=True)
    specifications = models.JSONField(default=dict, blank=True)

    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal("0.00"))
    review_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    # Supplier linkage
    kiosk_token = models.CharField(max_length=255, blank=True)
    external_id = models.CharField(max_length=255, blank=True)
    api_name = models.CharField(max_length=255, blank=True)
    api_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    api_stock = models.IntegerField(null=True, blank=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["slug"]),
            models.Index(fields=["is_active", "in_stock"]),
            models.Index(fields=["price"]),
        ]

    def __str__(self):
        return self.title

    @property
    def is_supplier_backed(self) -> bool:
        return bool((self.kiosk_token or "").strip())

    def clean(self):
        if self.price is None or Decimal(self.price) <= 0:
            raise ValidationError({"price": "Price must be greater than zero"})
        if self.original_price is not None and Decimal(self.original_price) < 0:
            raise ValidationError({"original_price": "Original price cannot be negative"})
        if self.rating is not None and not (Decimal("0") <= Decimal(self.rating) <= Decimal("5")):
            raise ValidationError({"rating": "Rating must be between 0 and 5"})

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Product, self.title, instance_pk=self.pk)
        self.in_stock = (self.stock or 0) > 0
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "stock" in update_fields and "in_stock" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "in_stock"]
        super().save(*args, **kwargs)
