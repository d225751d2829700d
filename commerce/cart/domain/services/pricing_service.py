"""
PricingService - Unit Price Resolution

Resolves the effective unit price of a cart line: regular price, time-boxed
sale price, then quantity-bracketed tier pricing. All calculations use Decimal
and the result is rounded to cents once the tier step has run.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from django.utils import timezone

from commerce.catalog.domain.models.catalog import ProductPrice
from commerce.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from commerce.services.money import HUNDRED, to_decimal, to_money

logger = logging.getLogger(__name__)


def is_sale_active(sale_price, start_at: Optional[datetime], end_at: Optional[datetime], as_of: datetime) -> bool:
    if sale_price is None:
        return False
    if start_at is not None and start_at > as_of:
        return False
    if end_at is not None and end_at < as_of:
        return False
    return True


def base_unit_price(product, variation, as_of: datetime) -> Decimal:
    """
    Price before tiers.

    The product's regular (or active sale) price is the starting point; a
    selected variation replaces it with its own regular price when it has one,
    and its own active sale price beats everything else.
    """
    price = to_decimal(product.regular_price)
    if is_sale_active(product.sale_price, product.sale_price_start_at, product.sale_price_end_at, as_of):
        price = to_decimal(product.sale_price)

    if variation is not None:
        if variation.regular_price is not None:
            price = to_decimal(variation.regular_price)
        if is_sale_active(
            variation.sale_price, variation.sale_price_start_at, variation.sale_price_end_at, as_of
        ):
            price = to_decimal(variation.sale_price)

    return price


def _tier_sort_key(tier):
    created_at = getattr(tier, "created_at", None)
    return (
        tier.min_quantity if tier.min_quantity is not None else -1,
        created_at.timestamp() if created_at else 0,
        str(getattr(tier, "id", "")),
    )


def ordered_tiers(tier_pricing_info) -> List:
    """Tiers of a ProductPrice sorted by (min_quantity, created_at, id)."""
    if tier_pricing_info is None:
        return []
    return sorted(tier_pricing_info.tiered_prices.all(), key=_tier_sort_key)


def find_tier(tiers: Iterable, quantity: int):
    """First tier whose closed [min, max] range holds ``quantity``; open-ended tiers never match."""
    for tier in tiers:
        if tier.min_quantity is None or tier.max_quantity is None:
            continue
        if tier.min_quantity <= quantity <= tier.max_quantity:
            return tier
    return None


def apply_tier(base_price: Decimal, pricing_type: Optional[str], tier) -> Decimal:
    if tier is None or not pricing_type:
        return base_price
    if pricing_type == ProductPrice.PRICING_FIXED and tier.fixed_price is not None:
        return to_decimal(tier.fixed_price)
    if pricing_type == ProductPrice.PRICING_PERCENTAGE and tier.percentage_discount is not None:
        percentage = min(max(to_decimal(tier.percentage_discount), Decimal("0")), HUNDRED)
        return base_price * (1 - percentage / HUNDRED)
    return base_price


def unit_price(product, variation, quantity: int, as_of: datetime) -> Decimal:
    price = base_unit_price(product, variation, as_of)
    tier_info = variation.tier_pricing_info if variation is not None else product.tier_pricing_info
    if tier_info is not None:
        tier = find_tier(ordered_tiers(tier_info), quantity)
        price = apply_tier(price, tier_info.pricing_type, tier)
    return to_money(price)


class PricingService(BaseService):
    """
    Service for resolving cart line prices.

    Stateless: the same line, quantity and instant always give the same price.
    """

    def price_for(self, product, variation, quantity: int, as_of: datetime) -> Decimal:
        return unit_price(product, variation, quantity, as_of)

    @BaseService.log_performance
    def resolve_unit_price(self, item, as_of: Optional[datetime] = None) -> ServiceResult[Decimal]:
        """
        Resolve the effective unit price of a cart item.

        Args:
            item: Object with ``product``, ``product_variation`` and ``quantity``
            as_of: Instant used for sale windows (default: now)

        Returns:
            ServiceResult with the unit price rounded to cents

        Example:
            >>> result = pricing_service.resolve_unit_price(cart_item)
            >>> if result.ok:
            ...     print(f"Unit price: {result.value}")
        """
        as_of = as_of or timezone.now()
        try:
            if item.product is None:
                return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Cart item has no product")
            if item.quantity is None or item.quantity < 1:
                return service_err(ErrorCodes.INVALID_QUANTITY, f"Invalid quantity: {item.quantity}")

            return service_ok(unit_price(item.product, item.product_variation, item.quantity, as_of))

        except Exception as e:
            self.logger.error(f"Error resolving unit price for item {getattr(item, 'id', None)}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
