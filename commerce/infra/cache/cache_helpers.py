"""
Read-through cache helpers for store configuration.

Entries hold exactly what the ORM query returns (model instances with their
prefetched relations), so callers cannot tell a hit from a miss. Invalidation
happens in ``commerce.signals``.
"""

import logging

from django.conf import settings
from django.core.cache import cache

from commerce.shipping.domain.models.shipping import ShippingZone
from commerce.tax.domain.models.tax import TaxOptions, TaxRate

logger = logging.getLogger(__name__)

TAX_OPTIONS_KEY = "commerce_tax_options"
SHIPPING_ZONES_KEY = "commerce_shipping_zones"


def tax_rates_key(tax_class_id) -> str:
    return f"commerce_tax_rates_{tax_class_id}"


def cache_timeout() -> int:
    return getattr(settings, "COMMERCE", {}).get("CACHE_TIMEOUT", 300)


def get_tax_options():
    options = cache.get(TAX_OPTIONS_KEY)
    if options is not None:
        return options

    options = TaxOptions.load()
    if options is not None:
        cache.set(TAX_OPTIONS_KEY, options, cache_timeout())
    return options


def get_tax_rates(tax_class_id):
    key = tax_rates_key(tax_class_id)
    rates = cache.get(key)
    if rates is not None:
        return rates

    rates = list(TaxRate.objects.filter(tax_class_id=tax_class_id, tax_class__deleted_at__isnull=True))
    cache.set(key, rates, cache_timeout())
    logger.debug(f"Cached {len(rates)} tax rates for class {tax_class_id}")
    return rates


def get_shipping_zones():
    zones = cache.get(SHIPPING_ZONES_KEY)
    if zones is not None:
        return zones

    zones = list(
        ShippingZone.objects.order_by("position", "created_at", "id").prefetch_related(
            "shipping_methods__flat_rate__costs",
            "shipping_methods__free_shipping",
            "shipping_methods__local_pick_up",
            "shipping_methods__ups",
        )
    )
    cache.set(SHIPPING_ZONES_KEY, zones, cache_timeout())
    logger.debug(f"Cached {len(zones)} shipping zones")
    return zones


def invalidate_tax_options():
    cache.delete(TAX_OPTIONS_KEY)


def invalidate_tax_rates(tax_class_id):
    cache.delete(tax_rates_key(tax_class_id))


def invalidate_shipping_zones():
    cache.delete(SHIPPING_ZONES_KEY)
