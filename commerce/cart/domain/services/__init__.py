from .cart_calculation_service import CartCalculationService
from .cart_context import CartContextLoader
from .cart_service import CartService
from .pricing_service import PricingService

__all__ = ["CartCalculationService", "CartContextLoader", "CartService", "PricingService"]
