from rest_framework import serializers

from commerce.api.serializers import BaseResponseSerializer

MONEY = {"max_digits": 14, "decimal_places": 2}


class CartLineSerializer(serializers.Serializer):
    """Cart line with its price, discount and tax"""

    id = serializers.UUIDField(source="item_id")
    productId = serializers.UUIDField(source="product_id")
    variationId = serializers.UUIDField(source="variation_id", allow_null=True)
    quantity = serializers.IntegerField()
    unitPrice = serializers.DecimalField(source="unit_price", **MONEY)
    lineTotal = serializers.DecimalField(source="line_total", **MONEY)
    discount = serializers.DecimalField(**MONEY)
    tax = serializers.DecimalField(**MONEY)


class CartSerializer(serializers.Serializer):
    """Calculated cart totals"""

    id = serializers.UUIDField(source="cart_id")
    items = CartLineSerializer(many=True)
    subtotal = serializers.DecimalField(**MONEY)
    discountTotal = serializers.DecimalField(source="discount_total", **MONEY)
    productTotalWithoutTax = serializers.DecimalField(source="product_total_without_tax", **MONEY)
    productTax = serializers.DecimalField(source="product_tax", **MONEY)
    productTotalCostWithTax = serializers.DecimalField(source="product_total_cost_with_tax", **MONEY)
    shippingCost = serializers.DecimalField(source="shipping_cost", **MONEY)
    shippingTax = serializers.DecimalField(source="shipping_tax", **MONEY)
    shippingTotalCostWithTax = serializers.DecimalField(source="shipping_total_cost_with_tax", **MONEY)
    shippingMethod = serializers.CharField(source="shipping.method_title", allow_null=True)
    shippingZone = serializers.CharField(source="shipping.zone_name", allow_null=True)
    inTotal = serializers.DecimalField(source="in_total", **MONEY)
    appliedCoupons = serializers.ListField(source="applied_coupon_codes", child=serializers.CharField())
    couponDiscounts = serializers.DictField(source="coupon_discounts", child=serializers.DecimalField(**MONEY))
    freeShippingApplied = serializers.BooleanField(source="free_shipping_applied")


class CartResponseSerializer(BaseResponseSerializer):
    """CartResponse envelope"""

    cart = CartSerializer()


# ===== Requests =====


class CartQuerySerializer(serializers.Serializer):
    """Query parameters of the cart read"""

    shippingAddressId = serializers.CharField(required=False, allow_blank=True, help_text="Address book entry id")
    billingAddressId = serializers.CharField(required=False, allow_blank=True, help_text="Address book entry id")


class ApplyCouponRequestSerializer(CartQuerySerializer):
    """Request body for applying coupons"""

    couponCodes = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        required=False,
        default=list,
        help_text="Coupon codes to apply (case-insensitive)",
    )


class RemoveCouponRequestSerializer(serializers.Serializer):
    """Request body for removing a coupon"""

    couponCode = serializers.CharField(help_text="Coupon code to remove")


class CartItemRequestSerializer(serializers.Serializer):
    """Request body for adding an item"""

    productId = serializers.UUIDField(help_text="Product UUID")
    variationId = serializers.UUIDField(required=False, allow_null=True, help_text="Variation UUID")
    quantity = serializers.IntegerField(min_value=1, default=1, help_text="Quantity to add (default: 1)")


class CartItemUpdateRequestSerializer(serializers.Serializer):
    """Request body for changing an item's quantity"""

    productId = serializers.UUIDField(help_text="Product UUID")
    variationId = serializers.UUIDField(required=False, allow_null=True, help_text="Variation UUID")
    quantity = serializers.IntegerField(help_text="New quantity")


class CartItemRemoveRequestSerializer(serializers.Serializer):
    """Request body for removing an item"""

    productId = serializers.UUIDField(help_text="Product UUID")
    variationId = serializers.UUIDField(required=False, allow_null=True, help_text="Variation UUID")
