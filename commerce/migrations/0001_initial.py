import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # ===== Catalog =====
        migrations.CreateModel(
            name="Category",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120)),
                ("slug", models.SlugField(blank=True, max_length=140, unique=True)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="subcategories",
                        to="commerce.category",
                    ),
                ),
            ],
            options={"verbose_name_plural": "Categories", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="ProductPrice",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "pricing_type",
                    models.CharField(
                        blank=True,
                        choices=[("Fixed", "Fixed"), ("Percentage", "Percentage")],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="ProductTieredPrice",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("min_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("max_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("quantity_unit", models.CharField(blank=True, max_length=30)),
                ("fixed_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                (
                    "percentage_discount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=5,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product_price",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tiered_prices",
                        to="commerce.productprice",
                    ),
                ),
            ],
            options={"ordering": ["min_quantity", "created_at", "id"]},
        ),
        # ===== Tax =====
        migrations.CreateModel(
            name="TaxClass",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"verbose_name_plural": "Tax classes", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="TaxRate",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("country", models.CharField(max_length=100)),
                ("state", models.CharField(blank=True, max_length=100, null=True)),
                ("city", models.CharField(blank=True, max_length=100, null=True)),
                ("postcode", models.CharField(blank=True, max_length=20, null=True)),
                ("rate", models.DecimalField(decimal_places=4, help_text="Percentage, e.g. 7.2500", max_digits=7)),
                ("label", models.CharField(blank=True, max_length=100)),
                ("applies_to_shipping", models.BooleanField(default=False)),
                ("is_compound", models.BooleanField(default=False)),
                ("priority", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "tax_class",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tax_rates",
                        to="commerce.taxclass",
                    ),
                ),
            ],
            options={
                "ordering": ["priority", "created_at"],
                "indexes": [models.Index(fields=["tax_class", "country"], name="tax_rate_class_country_idx")],
            },
        ),
        migrations.CreateModel(
            name="TaxOptions",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("prices_entered_with_tax", models.BooleanField(default=False)),
                (
                    "calculate_tax_based_on",
                    models.CharField(
                        choices=[
                            ("SHIPPING_ADDRESS", "Customer shipping address"),
                            ("BILLING_ADDRESS", "Customer billing address"),
                            ("STORE_ADDRESS", "Store base address"),
                        ],
                        default="SHIPPING_ADDRESS",
                        max_length=20,
                    ),
                ),
                ("round_tax_at_subtotal", models.BooleanField(default=False)),
                ("display_prices_in_shop", models.CharField(default="EXCLUDING_TAX", max_length=20)),
                ("display_prices_during_cart_and_checkout", models.CharField(default="EXCLUDING_TAX", max_length=20)),
                ("display_tax_totals", models.CharField(default="ITEMIZED", max_length=20)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "shipping_tax_class",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="commerce.taxclass",
                    ),
                ),
            ],
            options={"verbose_name_plural": "Tax options"},
        ),
        # ===== Shipping =====
        migrations.CreateModel(
            name="ShippingClass",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"verbose_name_plural": "Shipping classes", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="FlatRate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=100)),
                ("tax_status", models.BooleanField(default=False, help_text="Charge tax on this shipping cost")),
                ("cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
            ],
        ),
        migrations.CreateModel(
            name="FlatRateCost",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("cost", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "flat_rate",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="costs", to="commerce.flatrate"
                    ),
                ),
                (
                    "shipping_class",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="flat_rate_costs",
                        to="commerce.shippingclass",
                    ),
                ),
            ],
            options={"unique_together": {("flat_rate", "shipping_class")}},
        ),
        migrations.CreateModel(
            name="FreeShipping",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=100)),
                (
                    "conditions",
                    models.CharField(
                        choices=[
                            ("NA", "Always"),
                            ("COUPON", "A valid free shipping coupon"),
                            ("MINIMUM_ORDER_AMOUNT", "A minimum order amount"),
                            ("MINIMUM_ORDER_AMOUNT_OR_COUPON", "A minimum order amount OR a coupon"),
                            ("MINIMUM_ORDER_AMOUNT_AND_COUPON", "A minimum order amount AND a coupon"),
                        ],
                        default="NA",
                        max_length=40,
                    ),
                ),
                ("minimum_order_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
            ],
        ),
        migrations.CreateModel(
            name="LocalPickUp",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=100)),
                ("tax_status", models.BooleanField(default=False)),
                ("cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
            ],
        ),
        migrations.CreateModel(
            name="Ups",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=100)),
            ],
            options={"verbose_name": "UPS"},
        ),
        migrations.CreateModel(
            name="ShippingZone",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("regions", models.JSONField(blank=True, default=list)),
                ("zip_codes", models.JSONField(blank=True, default=list)),
                ("position", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["position", "created_at", "id"]},
        ),
        migrations.CreateModel(
            name="ShippingMethod",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                ("status", models.BooleanField(default=True, help_text="Active methods are offered at checkout")),
                ("position", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "shipping_zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="shipping_methods",
                        to="commerce.shippingzone",
                    ),
                ),
                (
                    "flat_rate",
                    models.OneToOneField(
                        blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, to="commerce.flatrate"
                    ),
                ),
                (
                    "free_shipping",
                    models.OneToOneField(
                        blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, to="commerce.freeshipping"
                    ),
                ),
                (
                    "local_pick_up",
                    models.OneToOneField(
                        blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, to="commerce.localpickup"
                    ),
                ),
                (
                    "ups",
                    models.OneToOneField(
                        blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, to="commerce.ups"
                    ),
                ),
            ],
            options={"ordering": ["position", "created_at", "id"]},
        ),
        # ===== Products =====
        migrations.CreateModel(
            name="Product",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(blank=True, max_length=220, unique=True)),
                ("sku", models.CharField(blank=True, max_length=100)),
                ("description", models.TextField(blank=True)),
                ("regular_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("sale_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("sale_price_start_at", models.DateTimeField(blank=True, null=True)),
                ("sale_price_end_at", models.DateTimeField(blank=True, null=True)),
                (
                    "tax_status",
                    models.CharField(
                        choices=[("TAXABLE", "Taxable"), ("SHIPPING_ONLY", "Shipping only"), ("NONE", "None")],
                        default="TAXABLE",
                        max_length=20,
                    ),
                ),
                ("is_visible", models.BooleanField(default=True)),
                ("sold_individually", models.BooleanField(default=False)),
                ("min_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("max_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("quantity_step", models.PositiveIntegerField(default=1)),
                ("manage_stock", models.BooleanField(default=False)),
                ("stock_quantity", models.IntegerField(blank=True, null=True)),
                ("allow_back_orders", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("categories", models.ManyToManyField(blank=True, related_name="products", to="commerce.category")),
                (
                    "tier_pricing_info",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="product",
                        to="commerce.productprice",
                    ),
                ),
                (
                    "tax_class",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="commerce.taxclass",
                    ),
                ),
                (
                    "shipping_class",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="commerce.shippingclass",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["is_visible", "-created_at"], name="product_visible_created_idx"),
                    models.Index(fields=["sku"], name="product_sku_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductVariation",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(blank=True, max_length=100)),
                ("attributes", models.JSONField(blank=True, default=dict, help_text="e.g. {'color': 'red'}")),
                ("regular_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("sale_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("sale_price_start_at", models.DateTimeField(blank=True, null=True)),
                ("sale_price_end_at", models.DateTimeField(blank=True, null=True)),
                ("manage_stock", models.BooleanField(default=False)),
                ("stock_quantity", models.IntegerField(blank=True, null=True)),
                ("allow_back_orders", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variations",
                        to="commerce.product",
                    ),
                ),
                (
                    "tier_pricing_info",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="variation",
                        to="commerce.productprice",
                    ),
                ),
                (
                    "tax_class",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="variations",
                        to="commerce.taxclass",
                    ),
                ),
                (
                    "shipping_class",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="variations",
                        to="commerce.shippingclass",
                    ),
                ),
            ],
            options={"ordering": ["created_at"]},
        ),
        # ===== Coupons =====
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(help_text="Stored upper-cased", max_length=50, unique=True)),
                ("description", models.TextField(blank=True)),
                (
                    "discount_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("PERCENTAGE_DISCOUNT", "Percentage discount"),
                            ("FIXED_CART_DISCOUNT", "Fixed cart discount"),
                            ("FIXED_PRODUCT_DISCOUNT", "Fixed product discount"),
                        ],
                        max_length=30,
                        null=True,
                    ),
                ),
                ("discount_value", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("free_shipping", models.BooleanField(default=False)),
                ("expiry_date", models.DateTimeField(blank=True, null=True)),
                ("max_usage", models.PositiveIntegerField(blank=True, null=True)),
                ("usage_count", models.PositiveIntegerField(default=0)),
                ("minimum_spend", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("maximum_spend", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("allowed_emails", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "applicable_products",
                    models.ManyToManyField(blank=True, related_name="applicable_coupons", to="commerce.product"),
                ),
                (
                    "excluded_products",
                    models.ManyToManyField(blank=True, related_name="excluded_coupons", to="commerce.product"),
                ),
                (
                    "applicable_categories",
                    models.ManyToManyField(blank=True, related_name="applicable_coupons", to="commerce.category"),
                ),
                (
                    "excluded_categories",
                    models.ManyToManyField(blank=True, related_name="excluded_coupons", to="commerce.category"),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_coupons",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-created_at"]},
        ),
        # ===== Cart =====
        migrations.CreateModel(
            name="Cart",
            fields=[
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="carts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Shopping Cart",
                "verbose_name_plural": "Shopping Carts",
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("deleted_at__isnull", True)),
                        fields=("created_by",),
                        name="unique_live_cart_per_user",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="CartCoupon",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("applied_at", models.DateTimeField(auto_now_add=True)),
                (
                    "cart",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="coupon_links", to="commerce.cart"
                    ),
                ),
                (
                    "coupon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="cart_links", to="commerce.coupon"
                    ),
                ),
            ],
            options={"ordering": ["applied_at", "id"], "unique_together": {("cart", "coupon")}},
        ),
        migrations.AddField(
            model_name="cart",
            name="coupons",
            field=models.ManyToManyField(
                blank=True, related_name="carts", through="commerce.CartCoupon", to="commerce.coupon"
            ),
        ),
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "quantity",
                    models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("added_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cart",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="items", to="commerce.cart"
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_items",
                        to="commerce.product",
                    ),
                ),
                (
                    "product_variation",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_items",
                        to="commerce.productvariation",
                    ),
                ),
            ],
            options={
                "ordering": ["added_at", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("cart", "product", "product_variation"), name="unique_cart_line")
                ],
            },
        ),
    ]
