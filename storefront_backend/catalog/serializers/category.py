# catalog/serializers/category.py

from rest_framework import serializers

from catalog.models import Category, Product


class SubcategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "image"]


class CategorySerializer(serializers.ModelSerializer):
    """
    Public category representation.

    product_count includes products of subcategories.
    """

    subcategories = serializers.SerializerMethodField()
    product_count = serializers.SerializerMethodField()
    parent_slug = serializers.SlugRelatedField(source="parent", slug_field="slug", read_only=True)

    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "image",
            "parent_slug",
            "subcategories",
            "product_count",
        ]

    def get_subcategories(self, obj):
        subs = [c for c in obj.subcategories.all() if c.is_active]
        return SubcategorySerializer(subs, many=True).data

    def get_product_count(self, obj):
        return Product.objects.filter(category_id__in=obj.descendant_ids(), is_active=True).count()


class CategoryAdminSerializer(serializers.ModelSerializer):
    """
    Back-office category writes.

    Rules:
    - slug is generated from name when blank
    - only two levels: a subcategory cannot itself be a parent
    """

    name = serializers.CharField(required=True, allow_blank=False, max_length=255)
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=255)

    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "image", "parent", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value: str):
        v = (value or "").strip()
        if not v:
            raise serializers.ValidationError("name cannot be blank")
        return v

    def validate_parent(self, parent):
        if parent is not None and parent.parent_id is not None:
            raise serializers.ValidationError("Subcategories cannot have children")
        if parent is not None and self.instance is not None and parent.pk == self.instance.pk:
            raise serializers.ValidationError("A category cannot be its own parent")
        return parent

    def validate_slug(self, value):
        value = (value or "").strip()
        if value:
            qs = Category.objects.filter(slug=value)
            if self.instance is not None:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise serializers.ValidationError("A category with this slug already exists")
        return value
