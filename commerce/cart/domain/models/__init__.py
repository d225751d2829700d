from .cart import Cart, CartCoupon, CartItem


__all__ = [
    "Cart",
    "CartCoupon",
    "CartItem",
]
