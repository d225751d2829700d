"""
Coupon Evaluator

Decides whether a coupon applies to a priced cart and how much it takes off.
Pure: no database access beyond reading the coupon's (prefetched) scope
relations, no writes. The same rules back both the cart read path, where an
inapplicable coupon simply contributes nothing, and the apply-coupon path,
where the first failure aborts the request with its reason.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterable, Optional, Sequence

from commerce.coupons.domain.models.coupon import Coupon
from commerce.domain.totals import PricedLine
from commerce.services.base import ErrorCodes
from commerce.services.money import HUNDRED, ZERO, to_decimal, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponScope:
    applicable_products: FrozenSet[Any] = frozenset()
    excluded_products: FrozenSet[Any] = frozenset()
    applicable_categories: FrozenSet[Any] = frozenset()
    excluded_categories: FrozenSet[Any] = frozenset()

    @classmethod
    def from_coupon(cls, coupon) -> "CouponScope":
        def ids(relation):
            return frozenset(obj.id for obj in relation.all())

        return cls(
            applicable_products=ids(coupon.applicable_products),
            excluded_products=ids(coupon.excluded_products),
            applicable_categories=ids(coupon.applicable_categories),
            excluded_categories=ids(coupon.excluded_categories),
        )

    def includes(self, line: PricedLine) -> bool:
        if self.applicable_products and line.product_id not in self.applicable_products:
            return False
        if self.applicable_categories and not (self.applicable_categories & line.category_ids):
            return False
        return True

    def excludes(self, line: PricedLine) -> bool:
        if line.product_id in self.excluded_products:
            return True
        return bool(self.excluded_categories & line.category_ids)

    def eligible(self, line: PricedLine) -> bool:
        return self.includes(line) and not self.excludes(line)


@dataclass
class CouponEvaluation:
    code: str
    applicable: bool
    discount: Decimal = ZERO
    item_discounts: Dict[Any, Decimal] = field(default_factory=dict)
    reason: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def rejected(cls, code: str, error_code: str, reason: str) -> "CouponEvaluation":
        return cls(code=code, applicable=False, reason=reason, error_code=error_code)


def email_allowed(coupon, user_email: Optional[str]) -> bool:
    allowed = {email.strip().lower() for email in (coupon.allowed_emails or []) if email}
    if not allowed:
        return True
    return bool(user_email) and user_email.strip().lower() in allowed


def is_expired(coupon, now: datetime) -> bool:
    return coupon.expiry_date is not None and coupon.expiry_date <= now


def usage_exhausted(coupon) -> bool:
    return coupon.max_usage is not None and (coupon.usage_count or 0) >= coupon.max_usage


def has_valid_discount_value(coupon) -> bool:
    if coupon.discount_type is None:
        return True
    value = to_decimal(coupon.discount_value)
    if coupon.discount_type == Coupon.PERCENTAGE_DISCOUNT:
        return Decimal("0") < value <= HUNDRED
    return value > 0


class CouponEvaluator:
    """
    Evaluates one coupon against a priced cart.

    Check order: email allowlist, expiry, scope, exclusions, usage cap,
    discount value, then spend bounds. Spend bounds are checked against the
    running cart total after this coupon's own discount.
    """

    def evaluate(
        self,
        coupon,
        lines: Sequence[PricedLine],
        subtotal_before: Decimal,
        user_email: Optional[str],
        now: datetime,
        already_discounted: Optional[Dict[Any, Decimal]] = None,
        check_usage: bool = True,
        scope: Optional[CouponScope] = None,
    ) -> CouponEvaluation:
        code = coupon.code
        scope = scope or CouponScope.from_coupon(coupon)
        already_discounted = already_discounted or {}

        if not email_allowed(coupon, user_email):
            return CouponEvaluation.rejected(
                code, ErrorCodes.COUPON_EMAIL_NOT_ALLOWED, f"Coupon {code} is not allowed for your email address."
            )

        if is_expired(coupon, now):
            return CouponEvaluation.rejected(code, ErrorCodes.COUPON_EXPIRED, f"Coupon {code} has expired.")

        eligible = [line for line in lines if scope.eligible(line)]
        if not eligible:
            return CouponEvaluation.rejected(
                code, ErrorCodes.COUPON_NOT_APPLICABLE, f"Coupon {code} is not applicable to your cart items."
            )

        if coupon.discount_type == Coupon.FIXED_CART_DISCOUNT and any(scope.excludes(line) for line in lines):
            return CouponEvaluation.rejected(
                code,
                ErrorCodes.COUPON_EXCLUDED_ITEMS,
                f"Coupon {code} cannot be applied to some items in your cart.",
            )

        if check_usage and usage_exhausted(coupon):
            return CouponEvaluation.rejected(
                code,
                ErrorCodes.COUPON_USAGE_LIMIT_REACHED,
                f"Coupon {code} has reached its maximum usage limit.",
            )

        if not has_valid_discount_value(coupon):
            return CouponEvaluation.rejected(
                code, ErrorCodes.COUPON_INVALID_VALUE, f"Coupon {code} has an invalid discount value."
            )

        subtotal_before = max(to_money(subtotal_before), ZERO)
        item_discounts = self._item_discounts(coupon, eligible, already_discounted)
        if coupon.discount_type == Coupon.FIXED_CART_DISCOUNT:
            discount = min(to_money(coupon.discount_value), subtotal_before)
        else:
            discount = to_money(sum(item_discounts.values(), ZERO))

        adjusted_total = subtotal_before - discount
        if coupon.minimum_spend is not None and adjusted_total < to_decimal(coupon.minimum_spend):
            return CouponEvaluation.rejected(
                code,
                ErrorCodes.COUPON_SPEND_NOT_MET,
                f"Coupon {code} requires a minimum spend of {to_money(coupon.minimum_spend)}.",
            )
        if coupon.maximum_spend is not None and adjusted_total > to_decimal(coupon.maximum_spend):
            return CouponEvaluation.rejected(
                code,
                ErrorCodes.COUPON_SPEND_NOT_MET,
                f"Coupon {code} cannot be applied to a cart total exceeding {to_money(coupon.maximum_spend)}.",
            )

        return CouponEvaluation(code=code, applicable=True, discount=discount, item_discounts=item_discounts)

    def _item_discounts(self, coupon, eligible: Iterable[PricedLine], already_discounted) -> Dict[Any, Decimal]:
        """
        Per-line discounts, each capped at what is left of its line.

        This cap keeps line tax bases non-negative; the aggregator separately
        caps the combined discount (FIXED_CART included) at the cart subtotal.
        """
        if coupon.discount_type not in (Coupon.PERCENTAGE_DISCOUNT, Coupon.FIXED_PRODUCT_DISCOUNT):
            return {}

        value = to_decimal(coupon.discount_value)
        discounts = {}
        for line in eligible:
            if coupon.discount_type == Coupon.PERCENTAGE_DISCOUNT:
                raw = line.line_total * value / HUNDRED
            else:
                raw = value * line.quantity
            remaining = max(line.line_total - already_discounted.get(line.key, ZERO), ZERO)
            discounts[line.key] = min(to_money(raw), remaining)
        return discounts

    def is_valid_free_shipping_coupon(
        self,
        coupon,
        lines: Sequence[PricedLine],
        adjusted_cart_total: Decimal,
        user_email: Optional[str],
        now: datetime,
        check_usage: bool = True,
        scope: Optional[CouponScope] = None,
    ) -> bool:
        """A coupon grants free shipping when it is valid for the discount-adjusted cart."""
        if not coupon.free_shipping or is_expired(coupon, now):
            return False
        if coupon.minimum_spend is not None and adjusted_cart_total < to_decimal(coupon.minimum_spend):
            return False
        if coupon.maximum_spend is not None and adjusted_cart_total > to_decimal(coupon.maximum_spend):
            return False
        if check_usage and usage_exhausted(coupon):
            return False
        if not email_allowed(coupon, user_email):
            return False

        scope = scope or CouponScope.from_coupon(coupon)
        return any(scope.eligible(line) for line in lines)
