"""
Dependency Injection Container
================================

Simple service locator pattern for managing infrastructure dependencies and
domain services. Implements the Dependency Inversion Principle by providing
centralized access to infrastructure services through their abstract
interfaces.

Usage:
    from infrastructure.container import container

    # In your view
    cart_service = container.cart_service()
    subgraphs = container.subgraphs()
"""

import logging
from typing import Optional

from .subgraphs import SubgraphClientInterface, SubgraphFactory

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies.

    Implements lazy initialization and caching of service instances.
    Singleton: every ``ServiceContainer()`` call returns the same object.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._subgraphs: Optional[SubgraphClientInterface] = None

            # Domain Services
            self._pricing_service = None
            self._tax_service = None
            self._shipping_service = None
            self._coupon_evaluator = None
            self._coupon_service = None
            self._cart_calculation_service = None
            self._cart_context_loader = None
            self._cart_service = None

            self._initialized = True
            logger.info("Service container initialized")

    def subgraphs(self, backend: Optional[str] = None) -> SubgraphClientInterface:
        """
        Get the remote subgraph client.

        Args:
            backend: 'graphql' or 'mock'. If None, uses configuration from settings

        Returns:
            SubgraphClientInterface implementation (cached)
        """
        if self._subgraphs is None or backend is not None:
            self._subgraphs = SubgraphFactory.create(backend)
            logger.debug(f"Created subgraph client: {type(self._subgraphs).__name__}")

        return self._subgraphs

    def pricing_service(self):
        """Get PricingService instance."""
        if self._pricing_service is None:
            from commerce.cart.domain.services import PricingService

            self._pricing_service = PricingService()
            logger.debug("Created PricingService")
        return self._pricing_service

    def tax_service(self):
        """Get TaxService instance."""
        if self._tax_service is None:
            from commerce.tax.domain.services import TaxService

            self._tax_service = TaxService()
            logger.debug("Created TaxService")
        return self._tax_service

    def shipping_service(self):
        """Get ShippingService instance."""
        if self._shipping_service is None:
            from commerce.shipping.domain.services import ShippingService

            self._shipping_service = ShippingService(tax_service=self.tax_service())
            logger.debug("Created ShippingService")
        return self._shipping_service

    def coupon_evaluator(self):
        """Get CouponEvaluator instance."""
        if self._coupon_evaluator is None:
            from commerce.coupons.domain.services import CouponEvaluator

            self._coupon_evaluator = CouponEvaluator()
        return self._coupon_evaluator

    def coupon_service(self):
        """Get CouponService instance."""
        if self._coupon_service is None:
            from commerce.coupons.domain.services import CouponService

            self._coupon_service = CouponService()
            logger.debug("Created CouponService")
        return self._coupon_service

    def cart_calculation_service(self):
        """Get CartCalculationService instance."""
        if self._cart_calculation_service is None:
            from commerce.cart.domain.services import CartCalculationService

            self._cart_calculation_service = CartCalculationService(
                pricing_service=self.pricing_service(),
                tax_service=self.tax_service(),
                shipping_service=self.shipping_service(),
                coupon_evaluator=self.coupon_evaluator(),
            )
            logger.debug("Created CartCalculationService")
        return self._cart_calculation_service

    def cart_context_loader(self):
        """Get CartContextLoader instance."""
        if self._cart_context_loader is None:
            from commerce.cart.domain.services import CartContextLoader

            self._cart_context_loader = CartContextLoader(
                subgraphs=self.subgraphs(), tax_service=self.tax_service()
            )
            logger.debug("Created CartContextLoader")
        return self._cart_context_loader

    def cart_service(self):
        """Get CartService instance."""
        if self._cart_service is None:
            from commerce.cart.domain.services import CartService

            # CartService depends on the context loader and the aggregator
            self._cart_service = CartService(
                context_loader=self.cart_context_loader(),
                calculation_service=self.cart_calculation_service(),
            )
            logger.debug("Created CartService")
        return self._cart_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._subgraphs = None
        self._pricing_service = None
        self._tax_service = None
        self._shipping_service = None
        self._coupon_evaluator = None
        self._coupon_service = None
        self._cart_calculation_service = None
        self._cart_context_loader = None
        self._cart_service = None
        logger.info("Service container reset")


# Global singleton instance
container = ServiceContainer()


def get_subgraphs() -> SubgraphClientInterface:
    """Get subgraph client from global container."""
    return container.subgraphs()
