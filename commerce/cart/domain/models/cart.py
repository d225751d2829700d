import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from commerce.catalog.domain.models.catalog import Product, ProductVariation
from commerce.coupons.domain.models.coupon import Coupon
from commerce.domain.models import SoftDeleteModel


class Cart(SoftDeleteModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="carts")
    coupons = models.ManyToManyField(Coupon, through="CartCoupon", blank=True, related_name="carts")
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Shopping Cart"
        verbose_name_plural = "Shopping Carts"
        app_label = "commerce"
        constraints = [
            models.UniqueConstraint(
                fields=["created_by"],
                condition=Q(deleted_at__isnull=True),
                name="unique_live_cart_per_user",
            ),
        ]

    @classmethod
    def for_user(cls, user):
        """Live cart of ``user`` or None."""
        return cls.objects.filter(created_by=user).first()

    @classmethod
    def get_or_create_cart(cls, user):
        cart, _ = cls.objects.get_or_create(created_by=user)
        return cart

    def applied_coupons(self):
        """Live coupons on this cart in the order they were applied."""
        links = (
            self.coupon_links.select_related("coupon")
            .prefetch_related(
                "coupon__applicable_products",
                "coupon__excluded_products",
                "coupon__applicable_categories",
                "coupon__excluded_categories",
            )
            .filter(coupon__deleted_at__isnull=True)
            .order_by("applied_at", "id")
        )
        return [link.coupon for link in links]

    def priced_items(self):
        """Items with everything the pricing pipeline reads."""
        return list(
            self.items.select_related(
                "product",
                "product__tier_pricing_info",
                "product_variation",
                "product_variation__tier_pricing_info",
            )
            .prefetch_related(
                "product__categories",
                "product__tier_pricing_info__tiered_prices",
                "product_variation__tier_pricing_info__tiered_prices",
            )
            .order_by("added_at", "id")
        )

    def bump_version(self, expected_version: int) -> bool:
        """
        Compare-and-swap the optimistic concurrency token.

        Returns False when another request changed the cart since
        ``expected_version`` was read.
        """
        updated = Cart.objects.filter(pk=self.pk, version=expected_version).update(
            version=F("version") + 1, updated_at=timezone.now()
        )
        if updated:
            self.version = expected_version + 1
        return updated == 1

    def __str__(self):
        return f"Cart for {self.created_by}"


class CartCoupon(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="coupon_links")
    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name="cart_links")
    applied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ["cart", "coupon"]
        ordering = ["applied_at", "id"]
        app_label = "commerce"


class CartItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="cart_items")
    product_variation = models.ForeignKey(
        ProductVariation, on_delete=models.CASCADE, null=True, blank=True, related_name="cart_items"
    )
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["added_at", "id"]
        app_label = "commerce"
        constraints = [
            models.UniqueConstraint(fields=["cart", "product", "product_variation"], name="unique_cart_line"),
        ]

    def __str__(self):
        return f"{self.quantity}x {self.product.name} in cart {self.cart_id}"
