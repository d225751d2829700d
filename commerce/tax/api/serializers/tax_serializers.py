from rest_framework import serializers

from commerce.api.serializers import BaseResponseSerializer
from commerce.tax.domain.models.tax import TaxClass, TaxOptions

DISPLAY_PRICE_CHOICES = ["INCLUDING_TAX", "EXCLUDING_TAX"]
DISPLAY_TOTAL_CHOICES = ["SINGLE_TOTAL", "ITEMIZED"]

# camelCase input field -> model field
FIELD_MAP = {
    "pricesEnteredWithTax": "prices_entered_with_tax",
    "calculateTaxBasedOn": "calculate_tax_based_on",
    "shippingTaxClass": "shipping_tax_class",
    "roundTaxAtSubtotal": "round_tax_at_subtotal",
    "displayPricesInShop": "display_prices_in_shop",
    "displayPricesDuringCartAndCheckout": "display_prices_during_cart_and_checkout",
    "displayTaxTotals": "display_tax_totals",
}


class TaxOptionsSerializer(serializers.Serializer):
    """Store-wide tax options"""

    id = serializers.UUIDField()
    pricesEnteredWithTax = serializers.BooleanField(source="prices_entered_with_tax")
    calculateTaxBasedOn = serializers.CharField(source="calculate_tax_based_on")
    shippingTaxClass = serializers.UUIDField(source="shipping_tax_class_id", allow_null=True)
    roundTaxAtSubtotal = serializers.BooleanField(source="round_tax_at_subtotal")
    displayPricesInShop = serializers.CharField(source="display_prices_in_shop")
    displayPricesDuringCartAndCheckout = serializers.CharField(source="display_prices_during_cart_and_checkout")
    displayTaxTotals = serializers.CharField(source="display_tax_totals")
    updatedAt = serializers.DateTimeField(source="updated_at")


class TaxOptionsUpdateSerializer(serializers.Serializer):
    """Request body for updating the tax options. Omitted fields keep their value."""

    pricesEnteredWithTax = serializers.BooleanField(required=False)
    calculateTaxBasedOn = serializers.ChoiceField(
        choices=[choice for choice, _ in TaxOptions.CALCULATE_TAX_BASED_ON_CHOICES], required=False
    )
    shippingTaxClass = serializers.PrimaryKeyRelatedField(
        queryset=TaxClass.objects.all(), required=False, allow_null=True, help_text="Tax class applied to shipping"
    )
    roundTaxAtSubtotal = serializers.BooleanField(required=False)
    displayPricesInShop = serializers.ChoiceField(choices=DISPLAY_PRICE_CHOICES, required=False)
    displayPricesDuringCartAndCheckout = serializers.ChoiceField(choices=DISPLAY_PRICE_CHOICES, required=False)
    displayTaxTotals = serializers.ChoiceField(choices=DISPLAY_TOTAL_CHOICES, required=False)

    def to_service_data(self):
        return {FIELD_MAP[key]: value for key, value in self.validated_data.items()}


class TaxOptionsResponseSerializer(BaseResponseSerializer):
    """TaxOptionsResponse envelope"""

    taxOptions = TaxOptionsSerializer(source="tax_options")
