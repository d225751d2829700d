from .coupon_views import CouponViewSet

__all__ = ["CouponViewSet"]
