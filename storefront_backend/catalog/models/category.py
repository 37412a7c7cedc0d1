# catalog/models/category.py

import uuid

from django.db import models

from .slugs import unique_slug


class Category(models.Model):
    """
    Two-level category tree: top-level categories and their subcategories.
    Browsing a parent includes products of its subcategories.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True)
    image = models.URLField(max_length=500, blank=True)
    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="subcategories",
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Category, self.name, instance_pk=self.pk)
        super().save(*args, **kwargs)

    def descendant_ids(self) -> list:
        return [self.pk, *self.subcategories.values_list("pk", flat=True)]

    def __str__(self):
        return self.name if not self.parent_id else f"{self.parent} / {self.name}"
