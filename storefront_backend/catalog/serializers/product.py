# catalog/serializers/product.py

from rest_framework import serializers

from catalog.models import Category, Product
from siteconfig.services.currency import price_with_discount, site_currency


class ProductListSerializer(serializers.ModelSerializer):
    """
    Storefront card representation. Supplier credentials are never exposed.
    """

    category_slug = serializers.SlugRelatedField(source="category", slug_field="slug", read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    discount_percentage = serializers.SerializerMethodField()
    formatted_price = serializers.SerializerMethodField()
    formatted_original_price = serializers.SerializerMethodField()
    sales_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "slug",
            "short_description",
            "price",
            "original_price",
            "discount_percentage",
            "formatted_price",
            "formatted_original_price",
            "stock",
            "in_stock",
            "images",
            "badges",
            "rating",
            "review_count",
            "category_slug",
            "category_name",
            "sales_count",
            "created_at",
        ]

    def _pricing(self, obj) -> dict:
        # one currency lookup per response, shared by every row
        if "currency" not in self.context:
            self.context["currency"] = site_currency()
        return price_with_discount(obj.price, obj.original_price, self.context["currency"])

    def get_discount_percentage(self, obj) -> int:
        return self._pricing(obj)["discount_percentage"]

    def get_formatted_price(self, obj) -> str:
        return self._pricing(obj)["formatted_price"]

    def get_formatted_original_price(self, obj) -> str | None:
        return self._pricing(obj)["formatted_original_price"]


class ProductDetailSerializer(ProductListSerializer):
    class Meta(ProductListSerializer.Meta):
        fields = ProductListSerializer.Meta.fields + [
            "description",
            "features",
            "specifications",
            "is_supplier_backed",
        ]


class ProductAdminSerializer(serializers.ModelSerializer):
    """
    Back-office product writes (including supplier linkage).
    """

    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=255)

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "slug",
            "description",
            "short_description",
            "price",
            "original_price",
            "stock",
            "in_stock",
            "category",
            "images",
            "features",
            "badges",
            "specifications",
            "rating",
            "review_count",
            "is_active",
            "kiosk_token",
            "external_id",
            "api_name",
            "api_price",
            "api_stock",
            "last_synced_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "in_stock",
            "api_name",
            "api_price",
            "api_stock",
            "last_synced_at",
            "created_at",
            "updated_at",
        ]

    def validate_price(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("price must be greater than zero")
        return value

    def validate_rating(self, value):
        if value is not None and not (0 <= value <= 5):
            raise serializers.ValidationError("rating must be between 0 and 5")
        return value

    def validate(self, attrs):
        for field in ("images", "features", "badges"):
            if field in attrs and not isinstance(attrs[field], list):
                raise serializers.ValidationError({field: "must be a list"})
        if "specifications" in attrs and not isinstance(attrs["specifications"], dict):
            raise serializers.ValidationError({"specifications": "must be an object"})
        return attrs

    def validate_slug(self, value):
        value = (value or "").strip()
        if value:
            qs = Product.objects.filter(slug=value)
            if self.instance is not None:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise serializers.ValidationError("A product with this slug already exists")
        return value
