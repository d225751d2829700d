from datetime import timedelta
from unittest.mock import Mock

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone

from commerce.cart.domain.services import CartContextLoader
from commerce.domain.address import Address
from commerce.models import TaxOptions
from commerce.services.base import ErrorCodes
from commerce.tests.factories import ShippingZoneFactory, TaxOptionsFactory, UserFactory, address_book_entry
from infrastructure.container import container
from infrastructure.subgraphs import (
    ADDRESS_TYPE_BILLING,
    ADDRESS_TYPE_SHIPPING,
    StoreAddress,
    SubgraphClientInterface,
    SubgraphResponse,
    TaxExemption,
)


class CartContextLoaderTest(TestCase):
    def setUp(self):
        container.reset()
        cache.clear()
        self.subgraphs = container.subgraphs()
        self.loader = container.cart_context_loader()

        self.user = UserFactory(email="buyer@example.com")
        self.shipping = address_book_entry(ADDRESS_TYPE_SHIPPING, country="US", state="CA", zip="90001")
        self.billing = address_book_entry(ADDRESS_TYPE_BILLING, country="US", state="NY", zip="10001")
        self.subgraphs.add_address(self.user.id, self.shipping)
        self.subgraphs.add_address(self.user.id, self.billing)

    def test_no_tax_options_means_no_tax(self):
        result = self.loader.load(self.user, "token", shipping_address_id=self.shipping.id)

        self.assertTrue(result.ok)
        context = result.value
        self.assertFalse(context.calculate_tax)
        self.assertIsNone(context.tax_address)
        self.assertEqual(
            context.shipping_address,
            Address(country="US", state="CA", city=self.shipping.city, postcode="90001"),
        )
        self.assertEqual(context.user_email, "buyer@example.com")

    def test_shipping_based_tax_address(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_SHIPPING)

        context = self.loader.load(self.user, "token", shipping_address_id=self.shipping.id).value

        self.assertTrue(context.calculate_tax)
        self.assertEqual(context.tax_address.state, "CA")

    def test_billing_based_tax_address(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_BILLING)

        context = self.loader.load(
            self.user, "token", shipping_address_id=self.shipping.id, billing_address_id=self.billing.id
        ).value

        self.assertEqual(context.tax_address.state, "NY")

    def test_billing_address_required(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_BILLING)

        result = self.loader.load(self.user, "token", shipping_address_id=self.shipping.id)

        self.assertEqual(result.error, ErrorCodes.TAX_ADDRESS_REQUIRED)
        self.assertEqual(result.error_detail, "Billing address is required for tax calculation")

    def test_store_based_tax_address(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_STORE)
        self.subgraphs.set_store_address(
            StoreAddress(id="shop", country="US", state="TX", zip_code="73301", is_default_for_tax=True)
        )

        context = self.loader.load(self.user, "token").value

        self.assertEqual(context.tax_address, Address(country="US", state="TX", postcode="73301"))

    def test_store_address_not_flagged_for_tax(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_STORE)
        self.subgraphs.set_store_address(StoreAddress(id="shop", country="US", is_default_for_tax=False))

        result = self.loader.load(self.user, "token")

        self.assertTrue(result.ok)
        self.assertFalse(result.value.calculate_tax)

    def test_approved_exemption_skips_tax(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_SHIPPING)
        self.subgraphs.set_tax_exemption(TaxExemption(id="ex", user_id=str(self.user.id), status="Approved"))

        result = self.loader.load(self.user, "token")

        # No shipping address needed once the buyer is exempt
        self.assertTrue(result.ok)
        self.assertIsNone(result.value.tax_address)

    def test_expired_exemption_is_ignored(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_SHIPPING)
        self.subgraphs.set_tax_exemption(
            TaxExemption(
                id="ex",
                user_id=str(self.user.id),
                status="Approved",
                expiry_date=timezone.now() - timedelta(days=1),
            )
        )

        context = self.loader.load(self.user, "token", shipping_address_id=self.shipping.id).value

        self.assertTrue(context.calculate_tax)

    def test_wrong_address_type(self):
        result = self.loader.load(self.user, "token", shipping_address_id=self.billing.id)

        self.assertEqual(result.error, ErrorCodes.INVALID_ADDRESS_TYPE)
        self.assertEqual(result.errors[0]["field"], "shippingAddressId")

    def test_unknown_address_keeps_remote_status(self):
        result = self.loader.load(self.user, "token", shipping_address_id="missing")

        self.assertEqual(result.error, ErrorCodes.UPSTREAM_ERROR)
        self.assertEqual(result.status_code, 404)
        self.assertEqual(result.error_detail, "Address book entry not found")

    def test_address_of_another_user(self):
        other = UserFactory()
        result = self.loader.load(other, "token", shipping_address_id=self.shipping.id)
        self.assertEqual(result.status_code, 404)

    def test_zones_loaded_only_with_shipping_address(self):
        ShippingZoneFactory()

        without = self.loader.load(self.user, "token").value
        with_address = self.loader.load(self.user, "token", shipping_address_id=self.shipping.id).value

        self.assertEqual(without.zones, [])
        self.assertEqual(len(with_address.zones), 1)

    def test_token_and_ids_are_forwarded(self):
        self.loader.load(self.user, "token", shipping_address_id=self.shipping.id)

        self.assertIn(("get_tax_exemption", (str(self.user.id),)), self.subgraphs.calls)
        self.assertIn(("get_address_book_entry", (self.shipping.id, str(self.user.id))), self.subgraphs.calls)

    def test_remote_failure_is_propagated(self):
        subgraphs = Mock(spec=SubgraphClientInterface)
        subgraphs.get_tax_exemption.return_value = SubgraphResponse.error(503, "User service unavailable")
        loader = CartContextLoader(subgraphs=subgraphs)

        result = loader.load(self.user, "token")

        self.assertEqual(result.error, ErrorCodes.UPSTREAM_ERROR)
        self.assertEqual(result.status_code, 503)
        self.assertEqual(result.error_detail, "User service unavailable")
