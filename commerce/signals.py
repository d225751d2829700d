"""
Signal Handlers for Store Configuration Changes.

Tax options, tax rates and shipping zones are served from the cache (see
``commerce.infra.cache.cache_helpers``). Any write to the rows behind those
entries drops the entry so the next cart read rebuilds it.

Registered in CommerceConfig.ready().
"""

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from commerce.infra.cache import cache_helpers
from commerce.shipping.domain.models.shipping import (
    FlatRate,
    FlatRateCost,
    FreeShipping,
    LocalPickUp,
    ShippingMethod,
    ShippingZone,
    Ups,
)
from commerce.tax.domain.models.tax import TaxClass, TaxOptions, TaxRate

logger = logging.getLogger(__name__)

SHIPPING_MODELS = (ShippingZone, ShippingMethod, FlatRate, FlatRateCost, FreeShipping, LocalPickUp, Ups)


# ===== Tax =====


@receiver([post_save, post_delete], sender=TaxOptions)
def handle_tax_options_changed(sender, instance, **kwargs):
    logger.info("[SIGNAL] Tax options changed, invalidating cache")
    cache_helpers.invalidate_tax_options()


@receiver([post_save, post_delete], sender=TaxRate)
def handle_tax_rate_changed(sender, instance, **kwargs):
    logger.info(f"[SIGNAL] Tax rate {instance.pk} changed, invalidating class {instance.tax_class_id}")
    cache_helpers.invalidate_tax_rates(instance.tax_class_id)


@receiver([post_save, post_delete], sender=TaxClass)
def handle_tax_class_changed(sender, instance, **kwargs):
    """Soft-deleting a class hides its rates; the options row embeds the shipping class."""
    cache_helpers.invalidate_tax_rates(instance.pk)
    cache_helpers.invalidate_tax_options()


# ===== Shipping =====


def handle_shipping_changed(sender, instance, **kwargs):
    logger.info(f"[SIGNAL] {sender.__name__} changed, invalidating shipping zones")
    cache_helpers.invalidate_shipping_zones()


for shipping_model in SHIPPING_MODELS:
    post_save.connect(
        handle_shipping_changed, sender=shipping_model, dispatch_uid=f"shipping_save_{shipping_model.__name__}"
    )
    post_delete.connect(
        handle_shipping_changed, sender=shipping_model, dispatch_uid=f"shipping_delete_{shipping_model.__name__}"
    )
