import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.text import slugify

from commerce.domain.models import SoftDeleteModel


class Category(SoftDeleteModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=140, unique=True, blank=True)
    description = models.TextField(blank=True)
    parent = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="subcategories"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Categories"
        app_label = "commerce"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(f"{self.name}-{str(self.id)[:8]}")
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class ProductPrice(models.Model):
    """Quantity-bracketed pricing rules attached to a product or a variation."""

    PRICING_FIXED = "Fixed"
    PRICING_PERCENTAGE = "Percentage"
    PRICING_TYPE_CHOICES = [
        (PRICING_FIXED, "Fixed"),
        (PRICING_PERCENTAGE, "Percentage"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    pricing_type = models.CharField(max_length=20, choices=PRICING_TYPE_CHOICES, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "commerce"

    def ordered_tiers(self):
        return list(self.tiered_prices.order_by("min_quantity", "created_at", "id"))

    def __str__(self):
        return f"{self.pricing_type or 'Unset'} tier pricing"


class ProductTieredPrice(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product_price = models.ForeignKey(ProductPrice, on_delete=models.CASCADE, related_name="tiered_prices")
    min_quantity = models.PositiveIntegerField(null=True, blank=True)
    max_quantity = models.PositiveIntegerField(null=True, blank=True)
    quantity_unit = models.CharField(max_length=30, blank=True)
    fixed_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    percentage_discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["min_quantity", "created_at", "id"]
        app_label = "commerce"

    def __str__(self):
        return f"{self.min_quantity}-{self.max_quantity}"


class Product(SoftDeleteModel):
    TAX_STATUS_TAXABLE = "TAXABLE"
    TAX_STATUS_SHIPPING_ONLY = "SHIPPING_ONLY"
    TAX_STATUS_NONE = "NONE"
    TAX_STATUS_CHOICES = [
        (TAX_STATUS_TAXABLE, "Taxable"),
        (TAX_STATUS_SHIPPING_ONLY, "Shipping only"),
        (TAX_STATUS_NONE, "None"),
    ]

    # Basic Information
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True, blank=True)
    sku = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    categories = models.ManyToManyField(Category, blank=True, related_name="products")

    # Pricing
    regular_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    sale_price_start_at = models.DateTimeField(null=True, blank=True)
    sale_price_end_at = models.DateTimeField(null=True, blank=True)
    tier_pricing_info = models.OneToOneField(
        ProductPrice, on_delete=models.SET_NULL, null=True, blank=True, related_name="product"
    )

    # Tax and Shipping
    tax_status = models.CharField(max_length=20, choices=TAX_STATUS_CHOICES, default=TAX_STATUS_TAXABLE)
    tax_class = models.ForeignKey(
        "commerce.TaxClass", on_delete=models.SET_NULL, null=True, blank=True, related_name="products"
    )
    shipping_class = models.ForeignKey(
        "commerce.ShippingClass", on_delete=models.SET_NULL, null=True, blank=True, related_name="products"
    )

    # Purchase rules
    is_visible = models.BooleanField(default=True)
    sold_individually = models.BooleanField(default=False)
    min_quantity = models.PositiveIntegerField(null=True, blank=True)
    max_quantity = models.PositiveIntegerField(null=True, blank=True)
    quantity_step = models.PositiveIntegerField(default=1)

    # Inventory
    manage_stock = models.BooleanField(default=False)
    stock_quantity = models.IntegerField(null=True, blank=True)
    allow_back_orders = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "commerce"
        indexes = [
            models.Index(fields=["is_visible", "-created_at"], name="product_visible_created_idx"),
            models.Index(fields=["sku"], name="product_sku_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(f"{self.name}-{str(self.id)[:8]}")
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class ProductVariation(SoftDeleteModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variations")
    sku = models.CharField(max_length=100, blank=True)
    attributes = models.JSONField(default=dict, blank=True, help_text="e.g. {'color': 'red'}")

    # Pricing (null means "inherit from the product")
    regular_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    sale_price_start_at = models.DateTimeField(null=True, blank=True)
    sale_price_end_at = models.DateTimeField(null=True, blank=True)
    tier_pricing_info = models.OneToOneField(
        ProductPrice, on_delete=models.SET_NULL, null=True, blank=True, related_name="variation"
    )

    tax_class = models.ForeignKey(
        "commerce.TaxClass", on_delete=models.SET_NULL, null=True, blank=True, related_name="variations"
    )
    shipping_class = models.ForeignKey(
        "commerce.ShippingClass", on_delete=models.SET_NULL, null=True, blank=True, related_name="variations"
    )

    manage_stock = models.BooleanField(default=False)
    stock_quantity = models.IntegerField(null=True, blank=True)
    allow_back_orders = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        app_label = "commerce"

    def __str__(self):
        return f"{self.product.name} ({self.sku or self.id})"
