from .shipping import (
    FlatRate,
    FlatRateCost,
    FreeShipping,
    LocalPickUp,
    ShippingClass,
    ShippingMethod,
    ShippingZone,
    Ups,
)


__all__ = [
    "FlatRate",
    "FlatRateCost",
    "FreeShipping",
    "LocalPickUp",
    "ShippingClass",
    "ShippingMethod",
    "ShippingZone",
    "Ups",
]
