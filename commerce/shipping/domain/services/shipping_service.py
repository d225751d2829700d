"""
ShippingService - Shipping Zone Matching and Cost Calculation

Matches the destination to a shipping zone, picks the zone's first active
method and prices it. Free shipping that the cart does not qualify for falls
back to the next active method (one level only).
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from commerce.domain.address import Address
from commerce.domain.totals import PricedLine, ShippingQuote
from commerce.services.base import BaseService
from commerce.services.money import ZERO, to_decimal, to_money
from commerce.shipping.domain.models.shipping import FreeShipping, ShippingMethod
from commerce.tax.domain.services.tax_service import TaxService

logger = logging.getLogger(__name__)


def _norm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip().lower()
    return value or None


def region_matches(region: dict, address: Address) -> bool:
    """Country must match; state and city are compared only when both sides give them."""
    region_country = _norm(region.get("country"))
    if region_country is None or region_country != _norm(address.country):
        return False
    for key, address_value in (("state", address.state), ("city", address.city)):
        region_value = _norm(region.get(key))
        if region_value is not None and _norm(address_value) is not None and region_value != _norm(address_value):
            return False
    return True


def match_zone(zones: Iterable, address: Optional[Address]):
    """
    First zone listing the address zip code; failing that, the first zone with
    a matching region. ``zones`` must already be in precedence order.
    """
    if address is None:
        return None
    zones = [zone for zone in zones if getattr(zone, "deleted_at", None) is None]

    postcode = _norm(address.postcode)
    if postcode is not None:
        for zone in zones:
            if postcode in {_norm(code) for code in (zone.zip_codes or [])}:
                return zone

    for zone in zones:
        if any(region_matches(region, address) for region in (zone.regions or [])):
            return zone
    return None


def active_methods(zone) -> List:
    methods = [
        method
        for method in zone.shipping_methods.all()
        if method.status and getattr(method, "deleted_at", None) is None
    ]

    def sort_key(method):
        created_at = getattr(method, "created_at", None)
        return (method.position, created_at.timestamp() if created_at else 0, str(method.id))

    return sorted(methods, key=sort_key)


def free_shipping_eligible(free_shipping, adjusted_cart_total: Decimal, has_free_shipping_coupon: bool) -> bool:
    minimum = free_shipping.minimum_order_amount
    meets_minimum = minimum is not None and to_decimal(adjusted_cart_total) >= to_decimal(minimum)
    conditions = free_shipping.conditions

    if conditions == FreeShipping.CONDITION_NA:
        return True
    if conditions == FreeShipping.CONDITION_COUPON:
        return has_free_shipping_coupon
    if conditions == FreeShipping.CONDITION_MINIMUM_ORDER_AMOUNT:
        return meets_minimum
    if conditions == FreeShipping.CONDITION_MINIMUM_ORDER_AMOUNT_OR_COUPON:
        return meets_minimum or has_free_shipping_coupon
    if conditions == FreeShipping.CONDITION_MINIMUM_ORDER_AMOUNT_AND_COUPON:
        return meets_minimum and has_free_shipping_coupon
    return False


def _line_shipping_class_id(line: PricedLine):
    variation = line.variation
    if variation is not None and variation.shipping_class_id:
        return variation.shipping_class_id
    return line.product.shipping_class_id if line.product is not None else None


def flat_rate_cost(flat_rate, lines: Sequence[PricedLine]) -> Decimal:
    overrides = {cost.shipping_class_id: to_decimal(cost.cost) for cost in flat_rate.costs.all()}
    default_cost = to_decimal(flat_rate.cost)
    total = Decimal("0")
    for line in lines:
        total += overrides.get(_line_shipping_class_id(line), default_cost) * line.quantity
    return total


class ShippingService(BaseService):
    """
    Service for shipping cost and shipping tax.

    Dependencies:
    - TaxService: rate lookup for the store's shipping tax class
    """

    def __init__(self, tax_service: TaxService = None):
        super().__init__()
        self.tax_service = tax_service or TaxService()

    def match_zone(self, zones, address: Optional[Address]):
        zone = match_zone(zones, address)
        if zone is None and address is not None:
            self.logger.info(f"No shipping zone matches {address.country}/{address.state}/{address.postcode}")
        return zone

    @BaseService.log_performance
    def compute_shipping(
        self,
        zone,
        lines: Sequence[PricedLine],
        tax_address: Optional[Address],
        prices_entered_with_tax: bool,
        adjusted_cart_total: Decimal,
        has_free_shipping_coupon: bool,
        shipping_tax_class_id=None,
    ) -> ShippingQuote:
        """
        Price shipping for the cart.

        Args:
            zone: Matched ShippingZone (None means no shipping charge)
            lines: Priced cart lines
            tax_address: Address for shipping tax (None means untaxed)
            prices_entered_with_tax: Whether costs already include tax
            adjusted_cart_total: Cart total after coupon discounts
            has_free_shipping_coupon: Whether a valid free-shipping coupon is applied
            shipping_tax_class_id: TaxOptions shipping tax class

        Returns:
            ShippingQuote with cost, tax and their sum, each rounded to cents
        """
        if zone is None:
            return ShippingQuote()

        methods = active_methods(zone)
        if not methods:
            return ShippingQuote(zone_name=zone.name)

        method = methods[0]
        if method.kind == ShippingMethod.KIND_FREE_SHIPPING:
            if free_shipping_eligible(method.free_shipping, adjusted_cart_total, has_free_shipping_coupon):
                return ShippingQuote(
                    method_title=method.title, method_kind=method.kind, zone_name=zone.name
                )
            fallback = methods[1] if len(methods) > 1 else None
            if fallback is None or fallback.kind not in (
                ShippingMethod.KIND_FLAT_RATE,
                ShippingMethod.KIND_LOCAL_PICK_UP,
            ):
                self.logger.info(f"Cart does not qualify for {method.title} and zone {zone.name} has no fallback")
                return ShippingQuote(method_title=method.title, method_kind=method.kind, zone_name=zone.name)
            method = fallback

        cost, taxable = self._method_cost(method, lines)
        cost = to_money(cost)
        tax = ZERO
        if taxable and tax_address is not None and shipping_tax_class_id is not None:
            tax = to_money(
                self.tax_service.shipping_tax(shipping_tax_class_id, tax_address, cost, prices_entered_with_tax)
            )

        return ShippingQuote(
            cost=cost,
            tax=tax,
            total_with_tax=to_money(cost + tax),
            method_title=method.title,
            method_kind=method.kind,
            zone_name=zone.name,
        )

    def _method_cost(self, method, lines):
        kind = method.kind
        if kind == ShippingMethod.KIND_FLAT_RATE:
            return flat_rate_cost(method.flat_rate, lines), method.flat_rate.tax_status
        if kind == ShippingMethod.KIND_LOCAL_PICK_UP:
            return to_decimal(method.local_pick_up.cost), method.local_pick_up.tax_status
        # UPS rates are not computed locally
        return ZERO, False
