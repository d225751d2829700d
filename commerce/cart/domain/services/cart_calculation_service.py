"""
CartCalculationService - Cart Totals

Single implementation of the cart pricing pipeline shared by the cart read
and apply-coupon paths:

1. resolve each line's unit price (PricingService)
2. evaluate applied coupons: per-item coupons in the order they were applied,
   then fixed cart coupons; the combined discount never exceeds the subtotal
3. tax each line net of its own discount (TaxService)
4. decide free shipping from the applied coupons and price shipping on the
   discount-adjusted subtotal (ShippingService)
5. assemble the totals

Amounts are rounded to cents at every step; those intermediate roundings are
part of the returned figures.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from commerce.cart.domain.services.pricing_service import PricingService
from commerce.catalog.domain.models.catalog import Product
from commerce.coupons.domain.models.coupon import Coupon
from commerce.coupons.domain.services.coupon_evaluator import CouponEvaluation, CouponEvaluator, CouponScope
from commerce.domain.totals import CartPricingContext, CartTotals, LineTotals, PricedLine
from commerce.infra.observability.metrics import cart_calculation_duration, cart_calculations_total, cart_in_total
from commerce.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from commerce.services.money import ZERO, to_money
from commerce.shipping.domain.services.shipping_service import ShippingService
from commerce.tax.domain.services.tax_service import TaxService

logger = logging.getLogger(__name__)


def coupon_application_order(coupons: Sequence) -> List:
    """Per-item coupons first (stable), fixed cart coupons last."""
    per_item = [coupon for coupon in coupons if coupon.discount_type != Coupon.FIXED_CART_DISCOUNT]
    fixed_cart = [coupon for coupon in coupons if coupon.discount_type == Coupon.FIXED_CART_DISCOUNT]
    return per_item + fixed_cart


@dataclass
class CouponDiscounts:
    """Discounts of a cart's coupons, evaluated in application order."""

    item_discounts: Dict[object, Decimal]
    coupon_discounts: Dict[str, Decimal]
    scopes: Dict[object, CouponScope]
    evaluations: Dict[str, CouponEvaluation] = field(default_factory=dict)
    discount_total: Decimal = ZERO


class CartCalculationService(BaseService):
    """
    Service computing cart totals.

    Dependencies:
    - PricingService: unit prices
    - TaxService: item tax
    - ShippingService: zone match, shipping cost and tax
    - CouponEvaluator: coupon applicability and discounts
    """

    def __init__(
        self,
        pricing_service: PricingService = None,
        tax_service: TaxService = None,
        shipping_service: ShippingService = None,
        coupon_evaluator: CouponEvaluator = None,
    ):
        super().__init__()
        self.pricing_service = pricing_service or PricingService()
        self.tax_service = tax_service or TaxService()
        self.shipping_service = shipping_service or ShippingService(tax_service=self.tax_service)
        self.coupon_evaluator = coupon_evaluator or CouponEvaluator()

    def price_lines(self, items, context: CartPricingContext) -> List[PricedLine]:
        """Resolve unit prices; lines whose product or variation is deleted are left out."""
        lines = []
        for item in items:
            product = item.product
            variation = item.product_variation
            if product is None or product.deleted_at is not None:
                self.logger.warning(f"Skipping cart item {item.id}: product unavailable")
                continue
            if variation is not None and variation.deleted_at is not None:
                self.logger.warning(f"Skipping cart item {item.id}: variation unavailable")
                continue

            price = self.pricing_service.price_for(product, variation, item.quantity, context.now)
            lines.append(
                PricedLine(
                    key=item.id,
                    product_id=product.id,
                    category_ids=frozenset(category.id for category in product.categories.all()),
                    quantity=item.quantity,
                    unit_price=price,
                    line_total=to_money(price * item.quantity),
                    product=product,
                    variation=variation,
                )
            )
        return lines

    @BaseService.log_performance
    def calculate(
        self, cart, context: CartPricingContext, items=None, coupons: Optional[Sequence] = None
    ) -> ServiceResult[CartTotals]:
        """
        Calculate all totals of a cart.

        Args:
            cart: Cart instance
            context: Per-request configuration (now, email, tax address, zones, ...)
            items: Cart items (default: loaded from the cart)
            coupons: Applied coupons in application order (default: loaded from the cart)

        Returns:
            ServiceResult with CartTotals

        Example:
            >>> result = calculation_service.calculate(cart, context)
            >>> if result.ok:
            ...     print(f"Grand total: {result.value.in_total}")
        """
        try:
            with cart_calculation_duration.time():
                totals = self._calculate(
                    cart,
                    context,
                    cart.priced_items() if items is None else list(items),
                    cart.applied_coupons() if coupons is None else list(coupons),
                )
            cart_calculations_total.labels(status="success").inc()
            cart_in_total.observe(float(totals.in_total))
            return service_ok(totals)

        except Exception as e:
            cart_calculations_total.labels(status="error").inc()
            self.logger.error(f"Error calculating totals for cart {cart.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def evaluate_coupons(
        self, lines: Sequence[PricedLine], coupons: Sequence, context: CartPricingContext, usage_checked=frozenset()
    ) -> CouponDiscounts:
        """
        Evaluate coupons in application order against the running cart total.

        Each coupon sees the total left after the coupons evaluated before it,
        and per-item discounts stack on what earlier coupons already took off
        a line. Inapplicable coupons contribute nothing.

        Args:
            lines: Priced cart lines
            coupons: Coupons in the order they were applied
            context: Per-request configuration
            usage_checked: Ids of coupons whose usage cap is still to be checked
                (coupons already attached to the cart have counted their use)

        Returns:
            CouponDiscounts (discount_total is not yet capped at the subtotal)
        """
        subtotal = to_money(sum((line.line_total for line in lines), ZERO))
        outcome = CouponDiscounts(
            item_discounts={line.key: ZERO for line in lines},
            coupon_discounts={coupon.code: ZERO for coupon in coupons},
            scopes={coupon.id: CouponScope.from_coupon(coupon) for coupon in coupons},
        )

        for coupon in coupon_application_order(coupons):
            evaluation = self.coupon_evaluator.evaluate(
                coupon,
                lines,
                subtotal - outcome.discount_total,
                context.user_email,
                context.now,
                already_discounted=outcome.item_discounts,
                check_usage=coupon.id in usage_checked,
                scope=outcome.scopes[coupon.id],
            )
            outcome.evaluations[coupon.code] = evaluation
            if not evaluation.applicable:
                continue
            for key, amount in evaluation.item_discounts.items():
                outcome.item_discounts[key] += amount
            outcome.discount_total += evaluation.discount
            outcome.coupon_discounts[coupon.code] = evaluation.discount

        return outcome

    def _calculate(self, cart, context: CartPricingContext, items, coupons) -> CartTotals:
        lines = self.price_lines(items, context)
        subtotal = to_money(sum((line.line_total for line in lines), ZERO))

        outcome = self.evaluate_coupons(lines, coupons, context)
        for evaluation in outcome.evaluations.values():
            if not evaluation.applicable:
                self.logger.info(f"Coupon {evaluation.code} skipped for cart {cart.id}: {evaluation.reason}")

        discount_total = to_money(min(outcome.discount_total, subtotal))

        line_totals = []
        product_tax = ZERO
        for line in lines:
            discount = to_money(outcome.item_discounts[line.key])
            tax = self._line_tax(line, discount, context)
            product_tax += tax
            line_totals.append(
                LineTotals(
                    item_id=line.key,
                    product_id=line.product_id,
                    variation_id=line.variation.id if line.variation is not None else None,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                    discount=discount,
                    tax=tax,
                )
            )
        product_tax = to_money(product_tax)

        adjusted_total = to_money(subtotal - discount_total)
        free_shipping = any(
            self.coupon_evaluator.is_valid_free_shipping_coupon(
                coupon,
                lines,
                adjusted_total,
                context.user_email,
                context.now,
                check_usage=False,
                scope=outcome.scopes[coupon.id],
            )
            for coupon in coupons
        )

        zone = self.shipping_service.match_zone(context.zones, context.shipping_address)
        shipping = self.shipping_service.compute_shipping(
            zone,
            lines,
            context.tax_address,
            context.prices_entered_with_tax,
            adjusted_total,
            free_shipping,
            shipping_tax_class_id=context.shipping_tax_class_id,
        )

        product_total_cost_with_tax = to_money(adjusted_total + product_tax)
        in_total = to_money(product_total_cost_with_tax + shipping.total_with_tax)

        self.logger.info(
            f"Cart {cart.id}: subtotal={subtotal} discount={discount_total} tax={product_tax} "
            f"shipping={shipping.total_with_tax} total={in_total}"
        )

        return CartTotals(
            cart_id=cart.id,
            items=line_totals,
            subtotal=subtotal,
            discount_total=discount_total,
            product_total_without_tax=adjusted_total,
            product_tax=product_tax,
            product_total_cost_with_tax=product_total_cost_with_tax,
            shipping=shipping,
            in_total=in_total,
            applied_coupon_codes=[coupon.code for coupon in coupons],
            coupon_discounts=outcome.coupon_discounts,
            free_shipping_applied=free_shipping,
        )

    def _line_tax(self, line: PricedLine, discount: Decimal, context: CartPricingContext) -> Decimal:
        if not context.calculate_tax or context.tax_address is None:
            return ZERO
        if line.product.tax_status != Product.TAX_STATUS_TAXABLE:
            return ZERO

        variation = line.variation
        tax_class_id = (
            variation.tax_class_id if variation is not None and variation.tax_class_id else line.product.tax_class_id
        )
        return self.tax_service.item_tax(
            tax_class_id,
            context.tax_address,
            line.unit_price,
            line.quantity,
            discount,
            context.prices_entered_with_tax,
        )
