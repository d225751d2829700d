import uuid
from decimal import Decimal

from django.test import TestCase

from commerce.coupons.domain.services.coupon_service import validate_coupon_rules
from commerce.models import Coupon
from commerce.services.base import ErrorCodes
from commerce.tests.factories import CategoryFactory, CouponFactory, ProductFactory, StoreManagerFactory
from infrastructure.container import container


class CouponServiceTest(TestCase):
    def setUp(self):
        container.reset()
        self.service = container.coupon_service()
        self.manager = StoreManagerFactory()

    def test_create_coupon(self):
        product = ProductFactory()
        category = CategoryFactory()

        result = self.service.create_coupon(
            {
                "code": " spring25 ",
                "discount_type": Coupon.PERCENTAGE_DISCOUNT,
                "discount_value": Decimal("25.00"),
                "allowed_emails": ["Buyer@Example.com"],
                "applicable_products": [product.id],
                "excluded_categories": [category.id],
            },
            self.manager,
        )

        self.assertTrue(result.ok, result.error_detail)
        coupon = result.value
        self.assertEqual(coupon.code, "SPRING25")
        self.assertEqual(coupon.allowed_emails, ["buyer@example.com"])
        self.assertEqual(coupon.created_by, self.manager)
        self.assertEqual(list(coupon.applicable_products.all()), [product])
        self.assertEqual(list(coupon.excluded_categories.all()), [category])

    def test_duplicate_code_ignores_case(self):
        CouponFactory(code="SUMMER")

        result = self.service.create_coupon(
            {"code": "summer", "discount_type": Coupon.FIXED_CART_DISCOUNT, "discount_value": Decimal("5")},
            self.manager,
        )

        self.assertEqual(result.error, ErrorCodes.DUPLICATE_COUPON_CODE)
        self.assertEqual(result.error_detail, "Coupon code SUMMER already exists")

    def test_deleted_code_cannot_be_reused(self):
        CouponFactory(code="RETIRED").soft_delete()

        result = self.service.create_coupon(
            {"code": "RETIRED", "discount_type": Coupon.FIXED_CART_DISCOUNT, "discount_value": Decimal("5")},
            self.manager,
        )

        self.assertEqual(result.error, ErrorCodes.DUPLICATE_COUPON_CODE)

    def test_missing_code(self):
        result = self.service.create_coupon({"code": "  ", "discount_value": Decimal("5")}, self.manager)

        self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)
        self.assertEqual(result.errors, [{"field": "code", "message": "Code is required"}])

    def test_unknown_scope_ids(self):
        missing = uuid.uuid4()

        result = self.service.create_coupon(
            {
                "code": "SCOPED",
                "discount_type": Coupon.PERCENTAGE_DISCOUNT,
                "discount_value": Decimal("10"),
                "applicable_products": [missing],
            },
            self.manager,
        )

        self.assertEqual(result.error, ErrorCodes.INVALID_INPUT)
        self.assertEqual(result.errors[0]["field"], "applicableProducts")
        self.assertFalse(Coupon.objects.filter(code="SCOPED").exists())

    def test_update_coupon(self):
        coupon = CouponFactory(code="EDITME", discount_value=Decimal("10.00"))

        result = self.service.update_coupon(
            coupon.id, {"discount_value": Decimal("15.00"), "max_usage": 100}, self.manager
        )

        self.assertTrue(result.ok, result.error_detail)
        coupon.refresh_from_db()
        self.assertEqual(coupon.discount_value, Decimal("15.00"))
        self.assertEqual(coupon.max_usage, 100)

    def test_update_max_usage_below_usage_count(self):
        coupon = CouponFactory(usage_count=5)

        result = self.service.update_coupon(coupon.id, {"max_usage": 3}, self.manager)

        self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)
        self.assertEqual(result.errors[0]["field"], "maxUsage")

    def test_update_to_taken_code(self):
        CouponFactory(code="TAKEN")
        coupon = CouponFactory(code="MINE")

        result = self.service.update_coupon(coupon.id, {"code": "taken"}, self.manager)

        self.assertEqual(result.error, ErrorCodes.DUPLICATE_COUPON_CODE)

    def test_update_replaces_scope(self):
        old, new = ProductFactory(), ProductFactory()
        coupon = CouponFactory(applicable_products=[old])

        self.service.update_coupon(coupon.id, {"applicable_products": [new.id]}, self.manager)

        self.assertEqual(list(coupon.applicable_products.all()), [new])

    def test_update_unknown_coupon(self):
        result = self.service.update_coupon(uuid.uuid4(), {"description": "x"}, self.manager)
        self.assertEqual(result.error, ErrorCodes.COUPON_NOT_FOUND)

    def test_delete_is_soft(self):
        coupon = CouponFactory()

        result = self.service.delete_coupon(coupon.id, self.manager)

        self.assertTrue(result.ok)
        self.assertFalse(Coupon.objects.filter(id=coupon.id).exists())
        self.assertTrue(Coupon.all_objects.filter(id=coupon.id).exists())

    def test_list_with_search(self):
        CouponFactory(code="WINTER10")
        CouponFactory(code="SUMMER10")

        result = self.service.list_coupons(search="wint")

        self.assertEqual([coupon.code for coupon in result.value], ["WINTER10"])

    def test_get_coupon(self):
        coupon = CouponFactory()
        self.assertEqual(self.service.get_coupon(coupon.id).value, coupon)
        self.assertEqual(self.service.get_coupon(uuid.uuid4()).error, ErrorCodes.COUPON_NOT_FOUND)


class CouponRulesTest(TestCase):
    def test_percentage_over_hundred(self):
        errors = validate_coupon_rules(
            {"discount_type": Coupon.PERCENTAGE_DISCOUNT, "discount_value": Decimal("101")}
        )
        self.assertEqual(errors[0]["field"], "discountValue")

    def test_free_shipping_only_coupon_is_valid(self):
        self.assertEqual(validate_coupon_rules({"discount_type": None, "free_shipping": True}), [])

    def test_coupon_without_effect(self):
        errors = validate_coupon_rules({"discount_type": None, "free_shipping": False})
        self.assertEqual(errors[0]["field"], "discountType")

    def test_minimum_above_maximum(self):
        errors = validate_coupon_rules(
            {
                "discount_type": Coupon.FIXED_CART_DISCOUNT,
                "discount_value": Decimal("5"),
                "minimum_spend": Decimal("100"),
                "maximum_spend": Decimal("50"),
            }
        )
        self.assertEqual(errors[0]["field"], "minimumSpend")
