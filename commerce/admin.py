from django.contrib import admin

from .models import (
    Cart,
    CartCoupon,
    CartItem,
    Category,
    Coupon,
    FlatRate,
    FlatRateCost,
    FreeShipping,
    LocalPickUp,
    Product,
    ProductPrice,
    ProductTieredPrice,
    ProductVariation,
    ShippingClass,
    ShippingMethod,
    ShippingZone,
    TaxClass,
    TaxOptions,
    TaxRate,
    Ups,
)


class SoftDeleteAdmin(admin.ModelAdmin):
    """Shows soft-deleted rows too, so they can be restored."""

    actions = ["soft_delete_selected", "restore_selected"]

    def get_queryset(self, request):
        return self.model.all_objects.all()

    # Row by row so the cache invalidation signals fire
    @admin.action(description="Soft delete selected rows")
    def soft_delete_selected(self, request, queryset):
        for obj in queryset.alive():
            obj.soft_delete()

    @admin.action(description="Restore selected rows")
    def restore_selected(self, request, queryset):
        for obj in queryset.dead():
            obj.restore()


# ===== Catalog =====


class ProductVariationInline(admin.TabularInline):
    model = ProductVariation
    extra = 0
    fields = ("sku", "regular_price", "sale_price", "tax_class", "manage_stock", "stock_quantity", "is_active")


class ProductTieredPriceInline(admin.TabularInline):
    model = ProductTieredPrice
    extra = 1
    fields = ("min_quantity", "max_quantity", "fixed_price", "percentage_discount")


@admin.register(Category)
class CategoryAdmin(SoftDeleteAdmin):
    list_display = ("name", "parent", "deleted_at", "created_at")
    search_fields = ("name", "description")
    readonly_fields = ("created_at",)


@admin.register(Product)
class ProductAdmin(SoftDeleteAdmin):
    list_display = ("name", "sku", "regular_price", "sale_price", "tax_status", "is_visible", "deleted_at")
    list_filter = ("is_visible", "tax_status", "manage_stock", "created_at")
    search_fields = ("name", "sku", "description")
    filter_horizontal = ("categories",)
    readonly_fields = ("created_at", "updated_at")
    inlines = [ProductVariationInline]

    fieldsets = (
        (None, {"fields": ("name", "slug", "sku", "description", "categories", "is_visible")}),
        (
            "Pricing",
            {
                "fields": (
                    "regular_price",
                    "sale_price",
                    "sale_price_start_at",
                    "sale_price_end_at",
                    "tier_pricing_info",
                )
            },
        ),
        ("Tax and shipping", {"fields": ("tax_status", "tax_class", "shipping_class")}),
        ("Purchase rules", {"fields": ("sold_individually", "min_quantity", "max_quantity", "quantity_step")}),
        ("Inventory", {"fields": ("manage_stock", "stock_quantity", "allow_back_orders")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


@admin.register(ProductPrice)
class ProductPriceAdmin(admin.ModelAdmin):
    list_display = ("id", "pricing_type", "created_at")
    inlines = [ProductTieredPriceInline]


# ===== Coupons =====


@admin.register(Coupon)
class CouponAdmin(SoftDeleteAdmin):
    list_display = (
        "code",
        "discount_type",
        "discount_value",
        "free_shipping",
        "usage_count",
        "max_usage",
        "expiry_date",
    )
    list_filter = ("discount_type", "free_shipping", "expiry_date")
    search_fields = ("code", "description")
    filter_horizontal = ("applicable_products", "excluded_products", "applicable_categories", "excluded_categories")
    readonly_fields = ("usage_count", "created_by", "created_at", "updated_at")


# ===== Cart =====


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ("added_at", "updated_at")


class CartCouponInline(admin.TabularInline):
    model = CartCoupon
    extra = 0
    readonly_fields = ("applied_at",)


@admin.register(Cart)
class CartAdmin(SoftDeleteAdmin):
    list_display = ("created_by", "version", "created_at", "updated_at", "deleted_at")
    search_fields = ("created_by__email", "created_by__username")
    readonly_fields = ("version", "created_at", "updated_at")
    inlines = [CartItemInline, CartCouponInline]


# ===== Tax =====


class TaxRateInline(admin.TabularInline):
    model = TaxRate
    extra = 1
    fields = ("country", "state", "city", "postcode", "rate", "label", "priority")


@admin.register(TaxClass)
class TaxClassAdmin(SoftDeleteAdmin):
    list_display = ("name", "created_at", "deleted_at")
    search_fields = ("name",)
    inlines = [TaxRateInline]


@admin.register(TaxRate)
class TaxRateAdmin(SoftDeleteAdmin):
    list_display = ("tax_class", "country", "state", "city", "postcode", "rate", "priority")
    list_filter = ("tax_class", "country")


@admin.register(TaxOptions)
class TaxOptionsAdmin(admin.ModelAdmin):
    list_display = ("calculate_tax_based_on", "prices_entered_with_tax", "shipping_tax_class", "updated_at")

    def has_add_permission(self, request):
        return not TaxOptions.objects.exists()


# ===== Shipping =====


class ShippingMethodInline(admin.StackedInline):
    model = ShippingMethod
    extra = 0
    fields = ("title", "status", "position", "flat_rate", "free_shipping", "local_pick_up", "ups")


class FlatRateCostInline(admin.TabularInline):
    model = FlatRateCost
    extra = 0


@admin.register(ShippingZone)
class ShippingZoneAdmin(SoftDeleteAdmin):
    list_display = ("name", "position", "created_at", "deleted_at")
    inlines = [ShippingMethodInline]


@admin.register(ShippingMethod)
class ShippingMethodAdmin(SoftDeleteAdmin):
    list_display = ("title", "shipping_zone", "status", "position")
    list_filter = ("status", "shipping_zone")


@admin.register(FlatRate)
class FlatRateAdmin(admin.ModelAdmin):
    list_display = ("title", "cost", "tax_status")
    inlines = [FlatRateCostInline]


admin.site.register(ShippingClass, SoftDeleteAdmin)
admin.site.register(FreeShipping)
admin.site.register(LocalPickUp)
admin.site.register(Ups)
