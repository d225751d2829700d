"""
Value objects passed through the cart pricing pipeline.

Everything the pipeline needs for one request is loaded up front into a
CartPricingContext and threaded through explicitly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional

from commerce.domain.address import Address
from commerce.services.money import ZERO


@dataclass(frozen=True)
class PricedLine:
    """A cart line after unit price resolution."""

    key: Any
    product_id: Any
    category_ids: FrozenSet[Any]
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    product: Any = None
    variation: Any = None


@dataclass
class CartPricingContext:
    """
    Per-request configuration for the cart pipeline.

    ``tax_address`` is None whenever no tax should be charged (exemption,
    missing tax options, store address not flagged for tax).
    """

    now: datetime
    user_email: Optional[str] = None
    tax_options: Any = None
    calculate_tax: bool = False
    tax_address: Optional[Address] = None
    shipping_address: Optional[Address] = None
    zones: List[Any] = field(default_factory=list)

    @property
    def prices_entered_with_tax(self) -> bool:
        return bool(self.tax_options and self.tax_options.prices_entered_with_tax)

    @property
    def shipping_tax_class_id(self):
        if self.tax_options is None:
            return None
        return self.tax_options.shipping_tax_class_id


@dataclass
class LineTotals:
    item_id: Any
    product_id: Any
    variation_id: Any
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    discount: Decimal = ZERO
    tax: Decimal = ZERO


@dataclass
class ShippingQuote:
    cost: Decimal = ZERO
    tax: Decimal = ZERO
    total_with_tax: Decimal = ZERO
    method_title: Optional[str] = None
    method_kind: Optional[str] = None
    zone_name: Optional[str] = None


@dataclass
class CartTotals:
    cart_id: Any
    items: List[LineTotals]
    subtotal: Decimal
    discount_total: Decimal
    product_total_without_tax: Decimal
    product_tax: Decimal
    product_total_cost_with_tax: Decimal
    shipping: ShippingQuote
    in_total: Decimal
    applied_coupon_codes: List[str] = field(default_factory=list)
    coupon_discounts: Dict[str, Decimal] = field(default_factory=dict)
    free_shipping_applied: bool = False

    @property
    def shipping_cost(self) -> Decimal:
        return self.shipping.cost

    @property
    def shipping_tax(self) -> Decimal:
        return self.shipping.tax

    @property
    def shipping_total_cost_with_tax(self) -> Decimal:
        return self.shipping.total_with_tax
