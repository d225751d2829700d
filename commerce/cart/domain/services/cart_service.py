"""
CartService - Shopping Cart Operations

Entry points behind the cart API: fetching the priced cart, applying and
removing coupons, and editing cart lines. Pricing itself is delegated to
CartCalculationService so that reading the cart and applying a coupon can
never disagree on the totals.

Writes are guarded by the cart's ``version`` column (compare-and-swap); a
request that loses the race gets CART_CONFLICT and nothing it wrote is kept.
"""

import logging
from typing import Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db import transaction

from commerce.cart.domain.models.cart import Cart, CartCoupon, CartItem
from commerce.catalog.domain.models.catalog import Product, ProductVariation
from commerce.coupons.domain.models.coupon import Coupon
from commerce.domain.totals import CartTotals
from commerce.infra.observability.metrics import (
    cart_write_conflicts_total,
    coupon_applications_total,
    coupon_usage_increments_total,
)
from commerce.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.transaction_utils import retry_on_deadlock, rollback_safe_operation

from .cart_calculation_service import CartCalculationService, coupon_application_order
from .cart_context import CartContextLoader

User = get_user_model()
logger = logging.getLogger(__name__)


class CartWriteConflict(Exception):
    """Another request changed the cart first."""


class CouponUsageExhausted(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def validate_coupon_codes(coupon_codes) -> List[Dict[str, str]]:
    """Field errors for the apply-coupon input (empty list when valid)."""
    if not isinstance(coupon_codes, (list, tuple)) or not coupon_codes:
        return [{"field": "couponCodes", "message": "At least one coupon code is required"}]

    errors = []
    for index, code in enumerate(coupon_codes):
        if not isinstance(code, str) or not code.strip():
            errors.append({"field": f"couponCodes.{index}", "message": "Coupon code must be a non-empty string"})
    return errors


class CartService(BaseService):
    """
    Service for managing shopping cart operations.

    Responsibilities:
    - Get the user's cart with calculated totals
    - Apply / remove coupons
    - Add, update and remove cart lines
    - Clear the cart

    Dependencies:
    - CartContextLoader: per-request tax / address / shipping configuration
    - CartCalculationService: cart totals and coupon evaluation
    """

    def __init__(
        self,
        context_loader: CartContextLoader,
        calculation_service: CartCalculationService = None,
    ):
        """
        Initialize CartService.

        Args:
            context_loader: Loads the pricing context of a request (injected)
            calculation_service: Cart totals pipeline (injected)
        """
        super().__init__()
        self.context_loader = context_loader
        self.calculation_service = calculation_service or CartCalculationService()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def get_cart(
        self,
        user: User,
        token: Optional[str] = None,
        shipping_address_id: Optional[str] = None,
        billing_address_id: Optional[str] = None,
    ) -> ServiceResult[CartTotals]:
        """
        Get the user's cart with all totals calculated.

        Args:
            user: User whose cart to retrieve
            token: Bearer token forwarded to remote services
            shipping_address_id: Address book entry used for shipping
            billing_address_id: Address book entry used for billing

        Returns:
            ServiceResult with CartTotals

        Example:
            >>> result = cart_service.get_cart(user, token, shipping_address_id=address_id)
            >>> if result.ok:
            ...     print(result.value.in_total)
        """
        try:
            cart = Cart.for_user(user)
            if cart is None:
                return service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found.")

            context_result = self.context_loader.load(user, token, shipping_address_id, billing_address_id)
            if not context_result.ok:
                return context_result

            return self.calculation_service.calculate(cart, context_result.value)

        except Exception as e:
            self.logger.error(f"Error getting cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # ------------------------------------------------------------------
    # Coupons
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def apply_coupon(
        self,
        user: User,
        coupon_codes,
        token: Optional[str] = None,
        shipping_address_id: Optional[str] = None,
        billing_address_id: Optional[str] = None,
    ) -> ServiceResult[CartTotals]:
        """
        Apply one or more coupons to the user's cart.

        Every coupon is validated against the cart before anything is written;
        the first invalid coupon aborts the whole request. Coupons already on
        the cart are left as they are, so re-applying them changes nothing.

        Args:
            user: Cart owner
            coupon_codes: Codes to apply (case-insensitive)
            token: Bearer token forwarded to remote services
            shipping_address_id: Address book entry used for shipping
            billing_address_id: Address book entry used for billing

        Returns:
            ServiceResult with the recalculated CartTotals
        """
        try:
            errors = validate_coupon_codes(coupon_codes)
            if errors:
                return service_err(ErrorCodes.VALIDATION_ERROR, "Validation failed", errors=errors)

            cart = Cart.for_user(user)
            if cart is None:
                return service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found")

            codes = list(dict.fromkeys(Coupon.normalize_code(code) for code in coupon_codes))
            found = {
                coupon.code: coupon
                for coupon in Coupon.objects.find_by_codes(codes).prefetch_related(
                    "applicable_products", "excluded_products", "applicable_categories", "excluded_categories"
                )
            }
            if len(found) != len(codes):
                missing = [code for code in codes if code not in found]
                coupon_applications_total.labels(outcome="invalid_code").inc()
                self.logger.info(f"Unknown coupon codes for user {user.id}: {missing}")
                return service_err(ErrorCodes.COUPON_INVALID_CODES, "One or more coupon codes are invalid")
            coupons = [found[code] for code in codes]

            context_result = self.context_loader.load(user, token, shipping_address_id, billing_address_id)
            if not context_result.ok:
                return context_result
            context = context_result.value

            attached = list(cart.applied_coupons())
            attached_ids = {coupon.id for coupon in attached}
            new_coupons = [coupon for coupon in coupons if coupon.id not in attached_ids]
            requested_ids = {coupon.id for coupon in coupons}

            # Evaluated exactly as the cart read evaluates them
            lines = self.calculation_service.price_lines(cart.priced_items(), context)
            outcome = self.calculation_service.evaluate_coupons(
                lines,
                attached + new_coupons,
                context,
                usage_checked={coupon.id for coupon in new_coupons},
            )
            for coupon in coupon_application_order(attached + new_coupons):
                evaluation = outcome.evaluations[coupon.code]
                if coupon.id in requested_ids and not evaluation.applicable:
                    coupon_applications_total.labels(outcome=evaluation.error_code).inc()
                    return service_err(evaluation.error_code, evaluation.reason)

            if new_coupons:
                write_result = self._attach_coupons(cart, new_coupons)
                if not write_result.ok:
                    return write_result
            else:
                self.logger.info(f"Coupons {codes} already applied to cart {cart.id}")

            coupon_applications_total.labels(outcome="applied").inc()
            return self.calculation_service.calculate(cart, context)

        except Exception as e:
            self.logger.error(f"Error applying coupons for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @retry_on_deadlock(max_retries=2)
    def _attach_coupons(self, cart: Cart, coupons: List[Coupon]) -> ServiceResult[Cart]:
        expected_version = cart.version
        try:
            with transaction.atomic():
                for coupon in coupons:
                    if not Coupon.objects.increment_usage(coupon.id):
                        raise CouponUsageExhausted(coupon.code)
                    coupon_usage_increments_total.inc()
                    CartCoupon.objects.create(cart=cart, coupon=coupon)
                if not cart.bump_version(expected_version):
                    raise CartWriteConflict()

        except CouponUsageExhausted as e:
            coupon_applications_total.labels(outcome=ErrorCodes.COUPON_USAGE_LIMIT_REACHED).inc()
            return service_err(
                ErrorCodes.COUPON_USAGE_LIMIT_REACHED, f"Coupon {e.code} has reached its maximum usage limit."
            )
        except CartWriteConflict:
            return self._conflict(cart)

        self.logger.info(f"Applied coupons {[coupon.code for coupon in coupons]} to cart {cart.id}")
        return service_ok(cart)

    @BaseService.log_performance
    def remove_coupon(self, user: User, code: str) -> ServiceResult[Cart]:
        """
        Remove an applied coupon and give its use back.

        Args:
            user: Cart owner
            code: Coupon code (case-insensitive)

        Returns:
            ServiceResult with the Cart
        """
        try:
            if not isinstance(code, str) or not code.strip():
                return service_err(
                    ErrorCodes.VALIDATION_ERROR,
                    "Validation failed",
                    errors=[{"field": "couponCode", "message": "Coupon code is required"}],
                )

            cart = Cart.for_user(user)
            if cart is None:
                return service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found")

            normalized = Coupon.normalize_code(code)
            link = cart.coupon_links.select_related("coupon").filter(coupon__code=normalized).first()
            if link is None:
                return service_err(ErrorCodes.COUPON_NOT_APPLIED, f"Coupon {normalized} is not applied to your cart.")

            expected_version = cart.version
            try:
                with transaction.atomic():
                    coupon_id = link.coupon_id
                    link.delete()
                    Coupon.objects.release_usage(coupon_id)
                    if not cart.bump_version(expected_version):
                        raise CartWriteConflict()
            except CartWriteConflict:
                return self._conflict(cart)

            self.logger.info(f"Removed coupon {normalized} from cart {cart.id}")
            return service_ok(cart)

        except Exception as e:
            self.logger.error(f"Error removing coupon for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def add_to_cart(
        self, user: User, product_id: str, quantity: int = 1, variation_id: Optional[str] = None
    ) -> ServiceResult[Cart]:
        """
        Add a product (or one of its variations) to the cart.

        Creates the cart on first use. Adding a line that is already in the
        cart adds to its quantity.

        Args:
            user: Cart owner
            product_id: Product UUID
            quantity: Quantity to add (default: 1)
            variation_id: ProductVariation UUID (optional)

        Returns:
            ServiceResult with the Cart

        Example:
            >>> result = cart_service.add_to_cart(user, product_id, quantity=2)
            >>> if result.ok:
            ...     cart = result.value
        """
        try:
            if not isinstance(quantity, int) or quantity <= 0:
                return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be a positive integer")

            lookup = self._purchasable(product_id, variation_id)
            if not lookup.ok:
                return lookup
            product, variation = lookup.value

            cart = Cart.get_or_create_cart(user)
            expected_version = cart.version
            item = CartItem.objects.filter(cart=cart, product=product, product_variation=variation).first()
            new_quantity = quantity + (item.quantity if item else 0)

            check = self.check_quantity(product, variation, new_quantity)
            if not check.ok:
                return check

            try:
                with transaction.atomic():
                    if item is None:
                        CartItem.objects.create(
                            cart=cart, product=product, product_variation=variation, quantity=new_quantity
                        )
                    else:
                        item.quantity = new_quantity
                        item.save(update_fields=["quantity", "updated_at"])
                    if not cart.bump_version(expected_version):
                        raise CartWriteConflict()
            except CartWriteConflict:
                return self._conflict(cart)

            self.logger.info(f"Added to cart for user {user.id}: {quantity}x {product.name} (now {new_quantity})")
            return service_ok(cart)

        except Exception as e:
            self.logger.error(f"Error adding to cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def update_cart_item(
        self, user: User, product_id: str, quantity: int, variation_id: Optional[str] = None
    ) -> ServiceResult[Cart]:
        """
        Set the quantity of a cart line.

        Args:
            user: Cart owner
            product_id: Product UUID
            quantity: New quantity (must be > 0)
            variation_id: ProductVariation UUID (optional)

        Returns:
            ServiceResult with the Cart
        """
        try:
            if not isinstance(quantity, int) or quantity <= 0:
                return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be a positive integer")

            cart = Cart.for_user(user)
            if cart is None:
                return service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found")

            item = self._find_item(cart, product_id, variation_id)
            if item is None:
                return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")

            check = self.check_quantity(item.product, item.product_variation, quantity)
            if not check.ok:
                return check

            expected_version = cart.version
            old_quantity = item.quantity
            try:
                with transaction.atomic():
                    item.quantity = quantity
                    item.save(update_fields=["quantity", "updated_at"])
                    if not cart.bump_version(expected_version):
                        raise CartWriteConflict()
            except CartWriteConflict:
                return self._conflict(cart)

            self.logger.info(
                f"Updated cart quantity for user {user.id}: {item.product.name} {old_quantity} -> {quantity}"
            )
            return service_ok(cart)

        except Exception as e:
            self.logger.error(f"Error updating cart item for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def remove_item_from_cart(
        self, user: User, product_id: str, variation_id: Optional[str] = None
    ) -> ServiceResult[Cart]:
        """
        Remove a line from the cart.

        Args:
            user: Cart owner
            product_id: Product UUID
            variation_id: ProductVariation UUID (optional)

        Returns:
            ServiceResult with the Cart
        """
        try:
            cart = Cart.for_user(user)
            if cart is None:
                return service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found")

            item = self._find_item(cart, product_id, variation_id)
            if item is None:
                return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")

            expected_version = cart.version
            try:
                with transaction.atomic():
                    item.delete()
                    if not cart.bump_version(expected_version):
                        raise CartWriteConflict()
            except CartWriteConflict:
                return self._conflict(cart)

            self.logger.info(f"Removed from cart for user {user.id}: product {product_id}")
            return service_ok(cart)

        except Exception as e:
            self.logger.error(f"Error removing from cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def clear_cart(self, user: User) -> ServiceResult[bool]:
        """
        Remove every line and coupon from the cart.

        Args:
            user: Cart owner

        Returns:
            ServiceResult with True if cleared
        """
        try:
            cart = Cart.for_user(user)
            if cart is None:
                # Nothing to clear
                return service_ok(True)

            expected_version = cart.version
            try:
                with rollback_safe_operation(f"Clear cart {cart.id}"), transaction.atomic():
                    items_count, _ = cart.items.all().delete()
                    for link in cart.coupon_links.all():
                        Coupon.objects.release_usage(link.coupon_id)
                    cart.coupon_links.all().delete()
                    if not cart.bump_version(expected_version):
                        raise CartWriteConflict()
            except CartWriteConflict:
                return self._conflict(cart)

            self.logger.info(f"Cleared cart for user {user.id}: {items_count} items removed")
            return service_ok(True)

        except Exception as e:
            self.logger.error(f"Error clearing cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _conflict(self, cart: Cart) -> ServiceResult:
        cart_write_conflicts_total.inc()
        self.logger.warning(f"Concurrent update of cart {cart.id} detected")
        return service_err(ErrorCodes.CART_CONFLICT, "Cart was modified by another request. Please retry.")

    def _find_item(self, cart: Cart, product_id, variation_id) -> Optional[CartItem]:
        return (
            cart.items.select_related("product", "product_variation")
            .filter(product_id=product_id, product_variation_id=variation_id or None)
            .first()
        )

    def _purchasable(self, product_id, variation_id) -> ServiceResult:
        product = Product.objects.filter(id=product_id).first()
        if product is None:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        if not product.is_visible:
            return service_err(ErrorCodes.PRODUCT_UNAVAILABLE, f"{product.name} is not available")

        variation = None
        if variation_id:
            variation = ProductVariation.objects.filter(id=variation_id, product=product).first()
            if variation is None:
                return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Variation {variation_id} not found")
            if not variation.is_active:
                return service_err(ErrorCodes.PRODUCT_UNAVAILABLE, f"{variation} is not available")
        return service_ok((product, variation))

    def check_quantity(self, product: Product, variation: Optional[ProductVariation], quantity: int) -> ServiceResult:
        """Purchase rules of the product and stock of the variation (or product)."""
        name = product.name
        if product.sold_individually and quantity > 1:
            return service_err(ErrorCodes.INVALID_QUANTITY, f"{name} can only be purchased one at a time")
        if product.min_quantity and quantity < product.min_quantity:
            return service_err(ErrorCodes.INVALID_QUANTITY, f"Minimum quantity for {name} is {product.min_quantity}")
        if product.max_quantity and quantity > product.max_quantity:
            return service_err(ErrorCodes.INVALID_QUANTITY, f"Maximum quantity for {name} is {product.max_quantity}")
        if product.quantity_step and product.quantity_step > 1 and quantity % product.quantity_step:
            return service_err(
                ErrorCodes.INVALID_QUANTITY, f"Quantity for {name} must be a multiple of {product.quantity_step}"
            )

        stock = variation if variation is not None and variation.manage_stock else product
        if stock.manage_stock and not stock.allow_back_orders:
            available = stock.stock_quantity or 0
            if quantity > available:
                return service_err(
                    ErrorCodes.INSUFFICIENT_STOCK, f"Insufficient stock for {name}. Available: {available}"
                )
        return service_ok(True)
