import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from commerce.models import CartCoupon, CartItem, Coupon, TaxOptions
from commerce.tests.factories import (
    CartFactory,
    CartItemFactory,
    CouponFactory,
    ProductFactory,
    TaxClassFactory,
    TaxOptionsFactory,
    TaxRateFactory,
    UserFactory,
    address_book_entry,
)
from infrastructure.container import container


class CartViewIntegrationTest(TestCase):
    def setUp(self):
        container.reset()
        cache.clear()
        self.client = APIClient()

        self.user = UserFactory(username="buyer", email="buyer@example.com")
        self.product = ProductFactory(regular_price=Decimal("50.00"), manage_stock=True, stock_quantity=10)
        self.cart = CartFactory(created_by=self.user)
        self.item = CartItemFactory(cart=self.cart, product=self.product, quantity=2)

        # URLs for the CartViewSet actions, using app_name and basename
        self.cart_list_url = reverse("commerce:cart-list")
        self.apply_coupon_url = reverse("commerce:cart-apply-coupon")
        self.remove_coupon_url = reverse("commerce:cart-remove-coupon")
        self.add_item_url = reverse("commerce:cart-add-item")
        self.update_item_url = reverse("commerce:cart-update-item")
        self.remove_item_url = reverse("commerce:cart-remove-item")
        self.clear_url = reverse("commerce:cart-clear")

    def test_requires_authentication(self):
        response = self.client.get(self.cart_list_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_get_cart(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.cart_list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["__typename"], "CartResponse")
        self.assertEqual(response.data["statusCode"], 200)
        self.assertTrue(response.data["success"])
        cart = response.data["cart"]
        self.assertEqual(Decimal(cart["productTotalWithoutTax"]), Decimal("100.00"))
        self.assertEqual(Decimal(cart["productTax"]), Decimal("0.00"))
        self.assertEqual(Decimal(cart["inTotal"]), Decimal("100.00"))
        self.assertEqual(cart["items"][0]["productId"], str(self.product.id))
        self.assertEqual(cart["items"][0]["quantity"], 2)

    def test_get_cart_not_found(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(self.cart_list_url)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["__typename"], "BaseResponse")
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["message"], "Cart not found.")

    def test_get_cart_with_tax_address(self):
        tax_class = TaxClassFactory()
        TaxRateFactory(tax_class=tax_class, country="US", rate=Decimal("10.0000"))
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_SHIPPING)
        self.product.tax_class = tax_class
        self.product.save()
        entry = address_book_entry(country="US", state="CA")
        container.subgraphs().add_address(self.user.id, entry)
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.cart_list_url, {"shippingAddressId": entry.id})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data["cart"]["productTax"]), Decimal("10.00"))
        self.assertEqual(Decimal(response.data["cart"]["inTotal"]), Decimal("110.00"))

    def test_get_cart_missing_tax_address(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_SHIPPING)
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.cart_list_url)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Shipping address is required for tax calculation")

    def test_unknown_address_keeps_remote_status(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.cart_list_url, {"shippingAddressId": str(uuid.uuid4())})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Address book entry not found")

    def test_apply_coupon(self):
        CouponFactory(code="SAVE10", discount_value=Decimal("10.00"))
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.apply_coupon_url, {"couponCodes": ["save10"]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["__typename"], "CartResponse")
        self.assertEqual(Decimal(response.data["cart"]["discountTotal"]), Decimal("10.00"))
        self.assertEqual(Decimal(response.data["cart"]["productTotalWithoutTax"]), Decimal("90.00"))
        self.assertEqual(response.data["cart"]["appliedCoupons"], ["SAVE10"])

    def test_apply_expired_coupon(self):
        CouponFactory(code="LASTYEAR", expiry_date=timezone.now() - timedelta(days=30))
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.apply_coupon_url, {"couponCodes": ["LASTYEAR"]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["statusCode"], 400)
        self.assertFalse(response.data["success"])
        self.assertIn("LASTYEAR", response.data["message"])
        self.assertIn("expired", response.data["message"])

    def test_apply_coupon_email_not_allowed(self):
        CouponFactory(code="VIP", allowed_emails=["vip@example.com"])
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.apply_coupon_url, {"couponCodes": ["VIP"]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_apply_without_codes(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.apply_coupon_url, {"couponCodes": []}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["__typename"], "ErrorResponse")
        self.assertEqual(response.data["errors"][0]["field"], "couponCodes")

    def test_remove_coupon(self):
        coupon = CouponFactory(code="SAVE10")
        self.client.force_authenticate(user=self.user)
        self.client.post(self.apply_coupon_url, {"couponCodes": ["SAVE10"]}, format="json")

        response = self.client.post(self.remove_coupon_url, {"couponCode": "SAVE10"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["__typename"], "BaseResponse")
        self.assertFalse(CartCoupon.objects.exists())
        self.assertEqual(Coupon.objects.get(id=coupon.id).usage_count, 0)

    def test_add_item(self):
        other = ProductFactory(regular_price=Decimal("5.00"))
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.add_item_url, {"productId": str(other.id), "quantity": 3}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Item added to cart successfully")
        self.assertEqual(CartItem.objects.get(product=other).quantity, 3)

    def test_add_item_insufficient_stock(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(
            self.add_item_url, {"productId": str(self.product.id), "quantity": 100}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Insufficient stock", response.data["message"])

    def test_add_item_product_not_found(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.add_item_url, {"productId": str(uuid.uuid4()), "quantity": 1}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn("not found", response.data["message"])

    def test_add_item_invalid_body(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.add_item_url, {"productId": "not-a-uuid"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["errors"][0]["field"], "productId")

    def test_update_item_quantity(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.patch(
            self.update_item_url, {"productId": str(self.product.id), "quantity": 5}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity, 5)

    def test_remove_item(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.delete(self.remove_item_url, {"productId": str(self.product.id)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(CartItem.objects.filter(cart=self.cart).exists())

    def test_clear_cart(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.delete(self.clear_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Cart cleared successfully")
        self.assertFalse(CartItem.objects.filter(cart=self.cart).exists())

    def test_unexpected_error_shows_raw_message_outside_production(self):
        self.client.force_authenticate(user=self.user)

        with patch("commerce.cart.domain.services.cart_service.Cart.for_user", side_effect=RuntimeError("boom")):
            response = self.client.get(self.cart_list_url)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["__typename"], "ErrorResponse")
        self.assertEqual(response.data["message"], "boom")

    @override_settings(ENVIRONMENT="production")
    def test_unexpected_error_is_generic_in_production(self):
        self.client.force_authenticate(user=self.user)

        with patch("commerce.cart.domain.services.cart_service.Cart.for_user", side_effect=RuntimeError("boom")):
            response = self.client.get(self.cart_list_url)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertNotIn("boom", response.data["message"])
