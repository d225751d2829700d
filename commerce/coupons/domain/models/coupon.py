import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from commerce.domain.models import SoftDeleteModel
from commerce.domain.models.soft_delete import SoftDeleteManager


class CouponManager(SoftDeleteManager):
    def find_by_codes(self, codes):
        """Live coupons whose code matches one of ``codes`` ignoring case."""
        normalized = {Coupon.normalize_code(code) for code in codes if code}
        return self.filter(code__in=normalized)

    def increment_usage(self, coupon_id) -> bool:
        """
        Count one more use of a coupon unless that would pass ``max_usage``.

        Single conditional UPDATE; returns False when no row was updated, i.e.
        the coupon is gone or its limit was reached concurrently.
        """
        updated = (
            self.filter(pk=coupon_id)
            .filter(Q(max_usage__isnull=True) | Q(usage_count__lt=F("max_usage")))
            .update(usage_count=F("usage_count") + 1)
        )
        return updated == 1

    def release_usage(self, coupon_id) -> bool:
        updated = self.filter(pk=coupon_id, usage_count__gt=0).update(usage_count=F("usage_count") - 1)
        return updated == 1


class Coupon(SoftDeleteModel):
    PERCENTAGE_DISCOUNT = "PERCENTAGE_DISCOUNT"
    FIXED_CART_DISCOUNT = "FIXED_CART_DISCOUNT"
    FIXED_PRODUCT_DISCOUNT = "FIXED_PRODUCT_DISCOUNT"
    DISCOUNT_TYPE_CHOICES = [
        (PERCENTAGE_DISCOUNT, "Percentage discount"),
        (FIXED_CART_DISCOUNT, "Fixed cart discount"),
        (FIXED_PRODUCT_DISCOUNT, "Fixed product discount"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=50, unique=True, help_text="Stored upper-cased")
    description = models.TextField(blank=True)

    discount_type = models.CharField(max_length=30, choices=DISCOUNT_TYPE_CHOICES, null=True, blank=True)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    free_shipping = models.BooleanField(default=False)

    expiry_date = models.DateTimeField(null=True, blank=True)
    max_usage = models.PositiveIntegerField(null=True, blank=True)
    usage_count = models.PositiveIntegerField(default=0)
    minimum_spend = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    maximum_spend = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    # Scope
    applicable_products = models.ManyToManyField(
        "commerce.Product", blank=True, related_name="applicable_coupons"
    )
    excluded_products = models.ManyToManyField("commerce.Product", blank=True, related_name="excluded_coupons")
    applicable_categories = models.ManyToManyField(
        "commerce.Category", blank=True, related_name="applicable_coupons"
    )
    excluded_categories = models.ManyToManyField(
        "commerce.Category", blank=True, related_name="excluded_coupons"
    )
    allowed_emails = models.JSONField(default=list, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="created_coupons"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CouponManager()

    class Meta:
        ordering = ["-created_at"]
        app_label = "commerce"

    @staticmethod
    def normalize_code(code: str) -> str:
        return code.strip().upper()

    def save(self, *args, **kwargs):
        self.code = self.normalize_code(self.code)
        self.allowed_emails = [email.strip().lower() for email in (self.allowed_emails or []) if email.strip()]
        super().save(*args, **kwargs)

    def __str__(self):
        return self.code
