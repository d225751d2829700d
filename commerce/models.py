from commerce.cart.domain.models import Cart, CartCoupon, CartItem
from commerce.catalog.domain.models import Category, Product, ProductPrice, ProductTieredPrice, ProductVariation
from commerce.coupons.domain.models import Coupon
from commerce.shipping.domain.models import (
    FlatRate,
    FlatRateCost,
    FreeShipping,
    LocalPickUp,
    ShippingClass,
    ShippingMethod,
    ShippingZone,
    Ups,
)
from commerce.tax.domain.models import TaxClass, TaxOptions, TaxRate


__all__ = [
    "Cart",
    "CartCoupon",
    "CartItem",
    "Category",
    "Coupon",
    "FlatRate",
    "FlatRateCost",
    "FreeShipping",
    "LocalPickUp",
    "Product",
    "ProductPrice",
    "ProductTieredPrice",
    "ProductVariation",
    "ShippingClass",
    "ShippingMethod",
    "ShippingZone",
    "TaxClass",
    "TaxOptions",
    "TaxRate",
    "Ups",
]
