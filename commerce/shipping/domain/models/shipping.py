import uuid

from django.core.exceptions import ValidationError
from django.db import models

from commerce.domain.models import SoftDeleteModel


class ShippingClass(SoftDeleteModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Shipping classes"
        app_label = "commerce"

    def __str__(self):
        return self.name


class FlatRate(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=100)
    tax_status = models.BooleanField(default=False, help_text="Charge tax on this shipping cost")
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        app_label = "commerce"

    def __str__(self):
        return f"{self.title} ({self.cost})"


class FlatRateCost(models.Model):
    """Per shipping class override of a flat rate's default cost."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    flat_rate = models.ForeignKey(FlatRate, on_delete=models.CASCADE, related_name="costs")
    shipping_class = models.ForeignKey(ShippingClass, on_delete=models.CASCADE, related_name="flat_rate_costs")
    cost = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        unique_together = ["flat_rate", "shipping_class"]
        app_label = "commerce"


class FreeShipping(models.Model):
    CONDITION_NA = "NA"
    CONDITION_COUPON = "COUPON"
    CONDITION_MINIMUM_ORDER_AMOUNT = "MINIMUM_ORDER_AMOUNT"
    CONDITION_MINIMUM_ORDER_AMOUNT_OR_COUPON = "MINIMUM_ORDER_AMOUNT_OR_COUPON"
    CONDITION_MINIMUM_ORDER_AMOUNT_AND_COUPON = "MINIMUM_ORDER_AMOUNT_AND_COUPON"
    CONDITION_CHOICES = [
        (CONDITION_NA, "Always"),
        (CONDITION_COUPON, "A valid free shipping coupon"),
        (CONDITION_MINIMUM_ORDER_AMOUNT, "A minimum order amount"),
        (CONDITION_MINIMUM_ORDER_AMOUNT_OR_COUPON, "A minimum order amount OR a coupon"),
        (CONDITION_MINIMUM_ORDER_AMOUNT_AND_COUPON, "A minimum order amount AND a coupon"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=100)
    conditions = models.CharField(max_length=40, choices=CONDITION_CHOICES, default=CONDITION_NA)
    minimum_order_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    class Meta:
        app_label = "commerce"

    def __str__(self):
        return f"{self.title} ({self.conditions})"


class LocalPickUp(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=100)
    tax_status = models.BooleanField(default=False)
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        app_label = "commerce"

    def __str__(self):
        return self.title


class Ups(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=100)

    class Meta:
        verbose_name = "UPS"
        app_label = "commerce"

    def __str__(self):
        return self.title


class ShippingZone(SoftDeleteModel):
    """
    A named destination area.

    ``regions`` is a list of ``{"country": ..., "state": ..., "city": ...}``
    dicts (state and city optional); ``zip_codes`` an explicit list of postal
    codes. Zones are consulted in ``position`` order.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    regions = models.JSONField(default=list, blank=True)
    zip_codes = models.JSONField(default=list, blank=True)
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "created_at", "id"]
        app_label = "commerce"

    def __str__(self):
        return self.name


class ShippingMethod(SoftDeleteModel):
    KIND_FLAT_RATE = "FLAT_RATE"
    KIND_FREE_SHIPPING = "FREE_SHIPPING"
    KIND_LOCAL_PICK_UP = "LOCAL_PICK_UP"
    KIND_UPS = "UPS"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shipping_zone = models.ForeignKey(ShippingZone, on_delete=models.CASCADE, related_name="shipping_methods")
    title = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    status = models.BooleanField(default=True, help_text="Active methods are offered at checkout")
    position = models.PositiveIntegerField(default=0)

    flat_rate = models.OneToOneField(FlatRate, on_delete=models.CASCADE, null=True, blank=True)
    free_shipping = models.OneToOneField(FreeShipping, on_delete=models.CASCADE, null=True, blank=True)
    local_pick_up = models.OneToOneField(LocalPickUp, on_delete=models.CASCADE, null=True, blank=True)
    ups = models.OneToOneField(Ups, on_delete=models.CASCADE, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "created_at", "id"]
        app_label = "commerce"

    @property
    def kind(self):
        if self.flat_rate_id:
            return self.KIND_FLAT_RATE
        if self.free_shipping_id:
            return self.KIND_FREE_SHIPPING
        if self.local_pick_up_id:
            return self.KIND_LOCAL_PICK_UP
        if self.ups_id:
            return self.KIND_UPS
        return None

    def clean(self):
        configured = [
            self.flat_rate_id,
            self.free_shipping_id,
            self.local_pick_up_id,
            self.ups_id,
        ]
        if sum(1 for value in configured if value) != 1:
            raise ValidationError("A shipping method must configure exactly one method type.")

    def __str__(self):
        return f"{self.title} ({self.kind})"
