from prometheus_client import Counter, Histogram


# Cart Metrics
cart_calculations_total = Counter("commerce_cart_calculations_total", "Cart total calculations", ["status"])
cart_calculation_duration = Histogram("commerce_cart_calculation_seconds", "Cart total calculation time")
cart_in_total = Histogram(
    "commerce_cart_in_total",
    "Calculated cart grand total distribution",
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, float("inf")],
)
cart_write_conflicts_total = Counter("commerce_cart_write_conflicts_total", "Cart writes lost to a concurrent update")

# Coupon Metrics
coupon_applications_total = Counter(
    "commerce_coupon_applications_total", "Coupon apply attempts by outcome", ["outcome"]
)
coupon_usage_increments_total = Counter("commerce_coupon_usage_increments_total", "Coupon usage counter increments")
