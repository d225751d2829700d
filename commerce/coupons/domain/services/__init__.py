from .coupon_evaluator import CouponEvaluation, CouponEvaluator, CouponScope
from .coupon_service import CouponService

__all__ = ["CouponEvaluation", "CouponEvaluator", "CouponScope", "CouponService"]
