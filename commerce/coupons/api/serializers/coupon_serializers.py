from rest_framework import serializers

from commerce.api.serializers import BaseResponseSerializer
from commerce.coupons.domain.models.coupon import Coupon

MONEY = {"max_digits": 12, "decimal_places": 2}

# camelCase input field -> model field
FIELD_MAP = {
    "code": "code",
    "description": "description",
    "discountType": "discount_type",
    "discountValue": "discount_value",
    "freeShipping": "free_shipping",
    "expiryDate": "expiry_date",
    "maxUsage": "max_usage",
    "minimumSpend": "minimum_spend",
    "maximumSpend": "maximum_spend",
    "allowedEmails": "allowed_emails",
    "applicableProducts": "applicable_products",
    "excludedProducts": "excluded_products",
    "applicableCategories": "applicable_categories",
    "excludedCategories": "excluded_categories",
}


class CouponSerializer(serializers.ModelSerializer):
    """Coupon as shown to store managers"""

    discountType = serializers.CharField(source="discount_type", allow_null=True)
    discountValue = serializers.DecimalField(source="discount_value", **MONEY)
    freeShipping = serializers.BooleanField(source="free_shipping")
    expiryDate = serializers.DateTimeField(source="expiry_date", allow_null=True)
    maxUsage = serializers.IntegerField(source="max_usage", allow_null=True)
    usageCount = serializers.IntegerField(source="usage_count")
    minimumSpend = serializers.DecimalField(source="minimum_spend", allow_null=True, **MONEY)
    maximumSpend = serializers.DecimalField(source="maximum_spend", allow_null=True, **MONEY)
    allowedEmails = serializers.ListField(source="allowed_emails", child=serializers.EmailField())
    applicableProducts = serializers.PrimaryKeyRelatedField(source="applicable_products", many=True, read_only=True)
    excludedProducts = serializers.PrimaryKeyRelatedField(source="excluded_products", many=True, read_only=True)
    applicableCategories = serializers.PrimaryKeyRelatedField(
        source="applicable_categories", many=True, read_only=True
    )
    excludedCategories = serializers.PrimaryKeyRelatedField(source="excluded_categories", many=True, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "description",
            "discountType",
            "discountValue",
            "freeShipping",
            "expiryDate",
            "maxUsage",
            "usageCount",
            "minimumSpend",
            "maximumSpend",
            "allowedEmails",
            "applicableProducts",
            "excludedProducts",
            "applicableCategories",
            "excludedCategories",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields


class CouponWriteSerializer(serializers.Serializer):
    """Request body for creating or updating a coupon"""

    code = serializers.CharField(max_length=50, help_text="Coupon code (stored upper-cased)")
    description = serializers.CharField(required=False, allow_blank=True)
    discountType = serializers.ChoiceField(
        choices=[choice for choice, _ in Coupon.DISCOUNT_TYPE_CHOICES], required=False, allow_null=True
    )
    discountValue = serializers.DecimalField(required=False, min_value=0, **MONEY)
    freeShipping = serializers.BooleanField(required=False)
    expiryDate = serializers.DateTimeField(required=False, allow_null=True)
    maxUsage = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    minimumSpend = serializers.DecimalField(required=False, allow_null=True, min_value=0, **MONEY)
    maximumSpend = serializers.DecimalField(required=False, allow_null=True, min_value=0, **MONEY)
    allowedEmails = serializers.ListField(child=serializers.EmailField(), required=False)
    applicableProducts = serializers.ListField(child=serializers.UUIDField(), required=False)
    excludedProducts = serializers.ListField(child=serializers.UUIDField(), required=False)
    applicableCategories = serializers.ListField(child=serializers.UUIDField(), required=False)
    excludedCategories = serializers.ListField(child=serializers.UUIDField(), required=False)

    def validate_code(self, value):
        if not value.strip():
            raise serializers.ValidationError("Code is required")
        return value.strip()

    def to_service_data(self):
        """Validated data keyed by model field names."""
        return {FIELD_MAP[key]: value for key, value in self.validated_data.items()}


class CouponResponseSerializer(BaseResponseSerializer):
    """CouponResponse envelope"""

    coupon = CouponSerializer()


class CouponListResponseSerializer(BaseResponseSerializer):
    """CouponsResponse envelope"""

    coupons = CouponSerializer(many=True)
