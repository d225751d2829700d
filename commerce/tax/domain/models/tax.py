import uuid

from django.core.exceptions import ValidationError
from django.db import models

from commerce.domain.models import SoftDeleteModel


class TaxClass(SoftDeleteModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Tax classes"
        app_label = "commerce"

    def __str__(self):
        return self.name


class TaxRate(SoftDeleteModel):
    """
    A location-scoped percentage inside a tax class.

    ``country`` is always required. ``state``, ``city`` and ``postcode`` left
    empty (NULL) match any value of that field; filled in, they must equal the
    address value ignoring case.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tax_class = models.ForeignKey(TaxClass, on_delete=models.CASCADE, related_name="tax_rates")
    country = models.CharField(max_length=100)
    state = models.CharField(max_length=100, null=True, blank=True)
    city = models.CharField(max_length=100, null=True, blank=True)
    postcode = models.CharField(max_length=20, null=True, blank=True)
    rate = models.DecimalField(max_digits=7, decimal_places=4, help_text="Percentage, e.g. 7.2500")
    label = models.CharField(max_length=100, blank=True)
    applies_to_shipping = models.BooleanField(default=False)
    is_compound = models.BooleanField(default=False)
    priority = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["priority", "created_at"]
        app_label = "commerce"
        indexes = [
            models.Index(fields=["tax_class", "country"], name="tax_rate_class_country_idx"),
        ]

    def save(self, *args, **kwargs):
        # Blank strings would stop acting as wildcards
        for field_name in ("state", "city", "postcode"):
            value = getattr(self, field_name)
            if value is not None and not value.strip():
                setattr(self, field_name, None)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.label or self.country} {self.rate}%"


class TaxOptions(models.Model):
    """Store-wide tax configuration. At most one row exists."""

    BASED_ON_SHIPPING = "SHIPPING_ADDRESS"
    BASED_ON_BILLING = "BILLING_ADDRESS"
    BASED_ON_STORE = "STORE_ADDRESS"
    CALCULATE_TAX_BASED_ON_CHOICES = [
        (BASED_ON_SHIPPING, "Customer shipping address"),
        (BASED_ON_BILLING, "Customer billing address"),
        (BASED_ON_STORE, "Store base address"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    prices_entered_with_tax = models.BooleanField(default=False)
    calculate_tax_based_on = models.CharField(
        max_length=20, choices=CALCULATE_TAX_BASED_ON_CHOICES, default=BASED_ON_SHIPPING
    )
    shipping_tax_class = models.ForeignKey(
        TaxClass, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    round_tax_at_subtotal = models.BooleanField(default=False)
    display_prices_in_shop = models.CharField(max_length=20, default="EXCLUDING_TAX")
    display_prices_during_cart_and_checkout = models.CharField(max_length=20, default="EXCLUDING_TAX")
    display_tax_totals = models.CharField(max_length=20, default="ITEMIZED")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "Tax options"
        app_label = "commerce"

    @classmethod
    def load(cls):
        return cls.objects.select_related("shipping_tax_class").first()

    def clean(self):
        if TaxOptions.objects.exclude(pk=self.pk).exists():
            raise ValidationError("Tax options already exist; update the existing row instead.")

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"Tax options ({self.calculate_tax_based_on})"
