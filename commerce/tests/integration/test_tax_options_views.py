from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from commerce.models import TaxOptions
from commerce.tests.factories import StoreManagerFactory, TaxClassFactory, TaxOptionsFactory, UserFactory
from infrastructure.container import container


class TaxOptionsViewIntegrationTest(TestCase):
    def setUp(self):
        container.reset()
        cache.clear()
        self.client = APIClient()
        self.manager = StoreManagerFactory()
        self.url = reverse("commerce:tax-options")

    def test_not_configured(self):
        self.client.force_authenticate(user=self.manager)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Tax options are not configured")

    def test_get_options(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_BILLING)
        self.client.force_authenticate(user=self.manager)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["__typename"], "TaxOptionsResponse")
        self.assertEqual(response.data["taxOptions"]["calculateTaxBasedOn"], TaxOptions.BASED_ON_BILLING)
        self.assertFalse(response.data["taxOptions"]["pricesEnteredWithTax"])

    def test_put_creates_options(self):
        tax_class = TaxClassFactory()
        self.client.force_authenticate(user=self.manager)

        response = self.client.put(
            self.url,
            {
                "pricesEnteredWithTax": True,
                "calculateTaxBasedOn": "STORE_ADDRESS",
                "shippingTaxClass": str(tax_class.id),
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Tax options updated successfully")
        options = TaxOptions.objects.get()
        self.assertTrue(options.prices_entered_with_tax)
        self.assertEqual(options.calculate_tax_based_on, TaxOptions.BASED_ON_STORE)
        self.assertEqual(options.shipping_tax_class, tax_class)

    def test_put_keeps_omitted_fields(self):
        TaxOptionsFactory(prices_entered_with_tax=True)
        self.client.force_authenticate(user=self.manager)

        response = self.client.put(self.url, {"calculateTaxBasedOn": "BILLING_ADDRESS"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(TaxOptions.objects.count(), 1)
        options = TaxOptions.objects.get()
        self.assertTrue(options.prices_entered_with_tax)
        self.assertEqual(options.calculate_tax_based_on, TaxOptions.BASED_ON_BILLING)

    def test_update_is_visible_to_next_read(self):
        TaxOptionsFactory(calculate_tax_based_on=TaxOptions.BASED_ON_SHIPPING)
        self.client.force_authenticate(user=self.manager)
        self.client.get(self.url)

        self.client.put(self.url, {"calculateTaxBasedOn": "STORE_ADDRESS"}, format="json")
        response = self.client.get(self.url)

        self.assertEqual(response.data["taxOptions"]["calculateTaxBasedOn"], TaxOptions.BASED_ON_STORE)

    def test_invalid_choice(self):
        self.client.force_authenticate(user=self.manager)

        response = self.client.put(self.url, {"calculateTaxBasedOn": "MOON"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["errors"][0]["field"], "calculateTaxBasedOn")

    def test_customer_is_forbidden(self):
        self.client.force_authenticate(user=UserFactory())

        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.put(self.url, {"pricesEnteredWithTax": True}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(TaxOptions.objects.exists())


class MetricsViewTest(TestCase):
    def test_metrics_are_public(self):
        response = APIClient().get(reverse("commerce:commerce-metrics"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(b"commerce_cart_calculations_total", response.content)
