from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import prometheus_metrics
from .cart.api.views import CartViewSet
from .coupons.api.views import CouponViewSet
from .tax.api.views import TaxOptionsView

router = DefaultRouter()
router.register(r"cart", CartViewSet, basename="cart")
router.register(r"coupons", CouponViewSet, basename="coupon")

app_name = "commerce"

urlpatterns = [
    path("", include(router.urls)),
    path("tax-options/", TaxOptionsView.as_view(), name="tax-options"),
    # Prometheus metrics endpoint
    path("metrics/", prometheus_metrics.commerce_prometheus_metrics, name="commerce-metrics"),
]
