"""
Service Container Tests
========================

Unit tests for dependency injection container.
"""

from django.test import TestCase, override_settings

from commerce.cart.domain.services import CartCalculationService, CartContextLoader, CartService
from commerce.coupons.domain.services import CouponService
from commerce.tax.domain.services import TaxService
from infrastructure.container import ServiceContainer, container, get_subgraphs
from infrastructure.subgraphs import GraphQLSubgraphClient, MockSubgraphClient, SubgraphClientInterface


class ServiceContainerTest(TestCase):
    """Test ServiceContainer implementation."""

    def setUp(self):
        """Set up test fixtures."""
        # Reset container before each test
        container.reset()

    def test_container_is_singleton(self):
        """Test that ServiceContainer is a singleton."""
        container1 = ServiceContainer()
        container2 = ServiceContainer()

        self.assertIs(container1, container2)
        self.assertIs(container1, container)

    def test_get_subgraphs_uses_mock_in_tests(self):
        """Test settings select the in-memory subgraph client."""
        subgraphs = container.subgraphs()

        self.assertIsInstance(subgraphs, SubgraphClientInterface)
        self.assertIsInstance(subgraphs, MockSubgraphClient)

        # Second call should return cached instance
        self.assertIs(subgraphs, container.subgraphs())

    def test_subgraphs_with_explicit_backend(self):
        """Test getting subgraphs with explicit backend."""
        self.assertIsInstance(container.subgraphs("graphql"), GraphQLSubgraphClient)

    @override_settings(INFRASTRUCTURE={"SUBGRAPH_BACKEND": "graphql"})
    def test_subgraph_backend_from_settings(self):
        self.assertIsInstance(container.subgraphs(), GraphQLSubgraphClient)

    def test_cart_service_is_wired(self):
        """Test CartService receives the shared collaborators."""
        cart_service = container.cart_service()

        self.assertIsInstance(cart_service, CartService)
        self.assertIs(cart_service, container.cart_service())
        self.assertIs(cart_service.context_loader, container.cart_context_loader())
        self.assertIs(cart_service.calculation_service, container.cart_calculation_service())
        self.assertIs(cart_service.calculation_service.coupon_evaluator, container.coupon_evaluator())

    def test_calculation_service_shares_tax_service(self):
        calculation = container.cart_calculation_service()

        self.assertIsInstance(calculation, CartCalculationService)
        self.assertIsInstance(container.tax_service(), TaxService)
        self.assertIs(calculation.tax_service, container.tax_service())
        self.assertIs(container.shipping_service().tax_service, container.tax_service())

    def test_context_loader_uses_container_subgraphs(self):
        loader = container.cart_context_loader()

        self.assertIsInstance(loader, CartContextLoader)
        self.assertIs(loader.subgraphs, container.subgraphs())

    def test_reset_container(self):
        """Test resetting container clears cached instances."""
        subgraphs1 = container.subgraphs()
        coupon_service1 = container.coupon_service()

        # Reset container
        container.reset()

        # Should be different instances
        self.assertIsNot(subgraphs1, container.subgraphs())
        self.assertIsNot(coupon_service1, container.coupon_service())
        self.assertIsInstance(container.coupon_service(), CouponService)


class ConvenienceFunctionsTest(TestCase):
    """Test convenience functions for service access."""

    def setUp(self):
        """Set up test fixtures."""
        container.reset()

    def test_get_subgraphs_function(self):
        """Test get_subgraphs convenience function."""
        subgraphs = get_subgraphs()

        self.assertIsInstance(subgraphs, MockSubgraphClient)
        self.assertIs(subgraphs, container.subgraphs())
