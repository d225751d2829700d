from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone

from commerce.domain.address import Address
from commerce.domain.totals import CartPricingContext
from commerce.models import CartCoupon, Coupon, FreeShipping, Product, ShippingMethod
from commerce.tests.factories import (
    CartFactory,
    CartItemFactory,
    CouponFactory,
    FlatRateFactory,
    FreeShippingFactory,
    ProductFactory,
    ShippingMethodFactory,
    ShippingZoneFactory,
    TaxClassFactory,
    TaxOptionsFactory,
    TaxRateFactory,
    UserFactory,
    address_book_entry,
)
from infrastructure.container import container


class CartCalculationTest(TestCase):
    def setUp(self):
        container.reset()
        cache.clear()
        self.service = container.cart_calculation_service()

        self.user = UserFactory(email="buyer@example.com")
        self.product = ProductFactory(regular_price=Decimal("50.00"))
        self.cart = CartFactory(created_by=self.user)
        self.item = CartItemFactory(cart=self.cart, product=self.product, quantity=2)

    def context(self, **kwargs):
        return CartPricingContext(now=timezone.now(), user_email=self.user.email, **kwargs)

    def attach(self, *coupons):
        for coupon in coupons:
            CartCoupon.objects.create(cart=self.cart, coupon=coupon)

    def test_plain_cart_without_tax_or_shipping(self):
        result = self.service.calculate(self.cart, self.context())

        self.assertTrue(result.ok)
        totals = result.value
        self.assertEqual(totals.subtotal, Decimal("100.00"))
        self.assertEqual(totals.product_total_without_tax, Decimal("100.00"))
        self.assertEqual(totals.product_tax, Decimal("0.00"))
        self.assertEqual(totals.shipping_total_cost_with_tax, Decimal("0.00"))
        self.assertEqual(totals.in_total, Decimal("100.00"))
        self.assertEqual(totals.items[0].unit_price, Decimal("50.00"))

    def test_percentage_coupon(self):
        self.attach(CouponFactory(code="TEN", discount_value=Decimal("10.00")))

        totals = self.service.calculate(self.cart, self.context()).value

        self.assertEqual(totals.discount_total, Decimal("10.00"))
        self.assertEqual(totals.product_total_without_tax, Decimal("90.00"))
        self.assertEqual(totals.items[0].discount, Decimal("10.00"))
        self.assertEqual(totals.applied_coupon_codes, ["TEN"])
        self.assertEqual(totals.coupon_discounts, {"TEN": Decimal("10.00")})

    def test_combined_discounts_never_exceed_subtotal(self):
        self.attach(
            CouponFactory(code="SIXTY", discount_value=Decimal("60.00")),
            CouponFactory(code="MORE", discount_value=Decimal("60.00")),
            CouponFactory(
                code="FLAT", discount_type=Coupon.FIXED_CART_DISCOUNT, discount_value=Decimal("30.00")
            ),
        )

        totals = self.service.calculate(self.cart, self.context()).value

        self.assertEqual(totals.discount_total, Decimal("100.00"))
        self.assertEqual(totals.product_total_without_tax, Decimal("0.00"))
        self.assertEqual(totals.in_total, Decimal("0.00"))

    def test_fixed_cart_coupon_runs_after_per_item_coupons(self):
        # Applied first, but evaluated against the cart after the percentage coupon
        self.attach(
            CouponFactory(
                code="FLAT", discount_type=Coupon.FIXED_CART_DISCOUNT, discount_value=Decimal("95.00")
            ),
            CouponFactory(code="HALF", discount_value=Decimal("50.00")),
        )

        totals = self.service.calculate(self.cart, self.context()).value

        self.assertEqual(totals.coupon_discounts, {"FLAT": Decimal("50.00"), "HALF": Decimal("50.00")})
        self.assertEqual(totals.discount_total, Decimal("100.00"))

    def test_inapplicable_coupon_contributes_nothing(self):
        self.attach(CouponFactory(code="OLD", expiry_date=timezone.now() - timedelta(days=1)))

        result = self.service.calculate(self.cart, self.context())

        self.assertTrue(result.ok)
        self.assertEqual(result.value.discount_total, Decimal("0.00"))
        self.assertEqual(result.value.coupon_discounts, {"OLD": Decimal("0.00")})

    def test_deleted_product_is_left_out(self):
        other = ProductFactory(regular_price=Decimal("20.00"))
        CartItemFactory(cart=self.cart, product=other, quantity=1)
        other.soft_delete()

        totals = self.service.calculate(self.cart, self.context()).value

        self.assertEqual(len(totals.items), 1)
        self.assertEqual(totals.subtotal, Decimal("100.00"))

    def test_line_tax_net_of_discount(self):
        tax_class = TaxClassFactory()
        TaxRateFactory(tax_class=tax_class, country="US", rate=Decimal("10.0000"))
        self.product.tax_class = tax_class
        self.product.save()
        self.attach(CouponFactory(code="TEN", discount_value=Decimal("10.00")))

        context = self.context(calculate_tax=True, tax_address=Address(country="US", state="CA"))
        totals = self.service.calculate(self.cart, context).value

        self.assertEqual(totals.product_tax, Decimal("9.00"))
        self.assertEqual(totals.items[0].tax, Decimal("9.00"))
        self.assertEqual(totals.product_total_cost_with_tax, Decimal("99.00"))

    def test_shipping_only_products_are_not_taxed(self):
        tax_class = TaxClassFactory()
        TaxRateFactory(tax_class=tax_class, country="US", rate=Decimal("10.0000"))
        self.product.tax_class = tax_class
        self.product.tax_status = Product.TAX_STATUS_SHIPPING_ONLY
        self.product.save()

        context = self.context(calculate_tax=True, tax_address=Address(country="US"))
        totals = self.service.calculate(self.cart, context).value

        self.assertEqual(totals.product_tax, Decimal("0.00"))

    def test_free_shipping_below_minimum_charges_fallback(self):
        zone = ShippingZoneFactory(regions=[{"country": "US"}])
        ShippingMethodFactory(
            shipping_zone=zone,
            title="Free",
            position=0,
            free_shipping=FreeShippingFactory(
                conditions=FreeShipping.CONDITION_MINIMUM_ORDER_AMOUNT, minimum_order_amount=Decimal("100.00")
            ),
        )
        ShippingMethodFactory(
            shipping_zone=zone, title="Standard", position=1, flat_rate=FlatRateFactory(cost=Decimal("4.00"))
        )
        # 100.00 - 0.01 = 99.99
        self.attach(
            CouponFactory(code="CENT", discount_type=Coupon.FIXED_CART_DISCOUNT, discount_value=Decimal("0.01"))
        )

        context = self.context(shipping_address=Address(country="US"), zones=[zone])
        totals = self.service.calculate(self.cart, context).value

        self.assertEqual(totals.product_total_without_tax, Decimal("99.99"))
        self.assertEqual(totals.shipping_cost, Decimal("8.00"))
        self.assertEqual(totals.shipping.method_kind, ShippingMethod.KIND_FLAT_RATE)
        self.assertEqual(totals.in_total, Decimal("107.99"))

    def test_free_shipping_coupon(self):
        zone = ShippingZoneFactory(regions=[{"country": "US"}])
        ShippingMethodFactory(
            shipping_zone=zone,
            title="Free",
            free_shipping=FreeShippingFactory(conditions=FreeShipping.CONDITION_COUPON),
        )
        self.attach(CouponFactory(code="SHIPFREE", discount_type=None, discount_value=0, free_shipping=True))

        context = self.context(shipping_address=Address(country="US"), zones=[zone])
        totals = self.service.calculate(self.cart, context).value

        self.assertTrue(totals.free_shipping_applied)
        self.assertEqual(totals.shipping_cost, Decimal("0.00"))
        self.assertEqual(totals.in_total, Decimal("100.00"))


class CartPipelineTest(TestCase):
    """Cart read through the context loader: tax options, address book and zones."""

    def setUp(self):
        container.reset()
        cache.clear()
        self.subgraphs = container.subgraphs()

        self.user = UserFactory(email="buyer@example.com")
        self.tax_class = TaxClassFactory(name="Standard")
        TaxRateFactory(tax_class=self.tax_class, country="US", state=None, rate=Decimal("5.0000"), priority=2)
        TaxRateFactory(tax_class=self.tax_class, country="US", state="CA", rate=Decimal("10.0000"), priority=1)
        TaxOptionsFactory(shipping_tax_class=self.tax_class)

        self.product = ProductFactory(regular_price=Decimal("50.00"), tax_class=self.tax_class)
        self.cart = CartFactory(created_by=self.user)
        CartItemFactory(cart=self.cart, product=self.product, quantity=2)
        CartCoupon.objects.create(cart=self.cart, coupon=CouponFactory(code="TEN", discount_value=Decimal("10")))

        zone = ShippingZoneFactory(regions=[{"country": "US", "state": "CA"}])
        ShippingMethodFactory(
            shipping_zone=zone, flat_rate=FlatRateFactory(cost=Decimal("5.00"), tax_status=True)
        )

        self.address = address_book_entry(country="US", state="CA")
        self.subgraphs.add_address(self.user.id, self.address)

    def test_full_cart(self):
        result = container.cart_service().get_cart(self.user, "token", shipping_address_id=self.address.id)

        self.assertTrue(result.ok, result.error_detail)
        totals = result.value
        self.assertEqual(totals.subtotal, Decimal("100.00"))
        self.assertEqual(totals.discount_total, Decimal("10.00"))
        # California rate, not the country-wide one
        self.assertEqual(totals.product_tax, Decimal("9.00"))
        self.assertEqual(totals.shipping_cost, Decimal("10.00"))
        self.assertEqual(totals.shipping_tax, Decimal("1.00"))
        self.assertEqual(totals.shipping_total_cost_with_tax, Decimal("11.00"))
        self.assertEqual(totals.in_total, Decimal("110.00"))

    def test_read_and_apply_agree(self):
        read = container.cart_service().get_cart(self.user, "token", shipping_address_id=self.address.id)
        applied = container.cart_service().apply_coupon(
            self.user, ["ten"], "token", shipping_address_id=self.address.id
        )

        self.assertTrue(applied.ok, applied.error_detail)
        self.assertEqual(read.value.in_total, applied.value.in_total)
        self.assertEqual(read.value.product_tax, applied.value.product_tax)

    def assert_apply_matches_read(self, codes):
        applied = container.cart_service().apply_coupon(
            self.user, codes, "token", shipping_address_id=self.address.id
        )
        self.assertTrue(applied.ok, applied.error_detail)
        read = container.cart_service().get_cart(self.user, "token", shipping_address_id=self.address.id)

        self.assertEqual(read.value.coupon_discounts, applied.value.coupon_discounts)
        self.assertEqual(read.value.discount_total, applied.value.discount_total)
        self.assertEqual(read.value.product_tax, applied.value.product_tax)
        self.assertEqual(read.value.in_total, applied.value.in_total)
        return read.value

    def test_read_and_apply_agree_on_stacked_percentage_coupons(self):
        CouponFactory(code="HALF", discount_value=Decimal("50.00"))
        CouponFactory(code="MIN", discount_value=Decimal("10.00"), minimum_spend=Decimal("30.00"))

        totals = self.assert_apply_matches_read(["half", "min"])

        # TEN 10, HALF 50 of the 90 left on the line, MIN 10 leaving exactly 30
        self.assertEqual(
            totals.coupon_discounts,
            {"TEN": Decimal("10.00"), "HALF": Decimal("50.00"), "MIN": Decimal("10.00")},
        )
        self.assertEqual(totals.discount_total, Decimal("70.00"))

    def test_read_and_apply_agree_on_per_item_and_fixed_cart_coupons(self):
        CouponFactory(
            code="FLAT",
            discount_type=Coupon.FIXED_CART_DISCOUNT,
            discount_value=Decimal("20.00"),
            minimum_spend=Decimal("60.00"),
        )
        CouponFactory(code="PER", discount_type=Coupon.FIXED_PRODUCT_DISCOUNT, discount_value=Decimal("5.00"))

        # FLAT is requested first but evaluated after the per-item coupons
        totals = self.assert_apply_matches_read(["flat", "per"])

        self.assertEqual(
            totals.coupon_discounts,
            {"TEN": Decimal("10.00"), "FLAT": Decimal("20.00"), "PER": Decimal("10.00")},
        )
        self.assertEqual(totals.discount_total, Decimal("40.00"))

    def test_fixed_cart_spend_bound_uses_per_item_discounts_on_apply(self):
        flat = CouponFactory(
            code="FLAT",
            discount_type=Coupon.FIXED_CART_DISCOUNT,
            discount_value=Decimal("20.00"),
            minimum_spend=Decimal("70.00"),
        )
        CouponFactory(code="PER", discount_type=Coupon.FIXED_PRODUCT_DISCOUNT, discount_value=Decimal("5.00"))

        result = container.cart_service().apply_coupon(
            self.user, ["per", "flat"], "token", shipping_address_id=self.address.id
        )

        self.assertFalse(result.ok)
        self.assertIn("FLAT", result.error_detail)
        flat.refresh_from_db()
        self.assertEqual(flat.usage_count, 0)
        self.assertEqual([coupon.code for coupon in self.cart.applied_coupons()], ["TEN"])

    def test_missing_shipping_address(self):
        result = container.cart_service().get_cart(self.user, "token")

        self.assertFalse(result.ok)
        self.assertEqual(result.error_detail, "Shipping address is required for tax calculation")

    def test_tax_rate_change_is_picked_up(self):
        container.cart_service().get_cart(self.user, "token", shipping_address_id=self.address.id)
        rate = self.tax_class.tax_rates.get(state="CA")
        rate.rate = Decimal("20.0000")
        rate.save()

        result = container.cart_service().get_cart(self.user, "token", shipping_address_id=self.address.id)

        self.assertEqual(result.value.product_tax, Decimal("18.00"))
