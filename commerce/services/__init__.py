"""
Commerce Service Layer

Shared ServiceResult primitives used by the catalog, tax, shipping, coupon and
cart services. Domain services live next to their models under
``commerce/<context>/domain/services``.

Usage:
    from commerce.services import ErrorCodes, service_err, service_ok

    result = container.cart_service().get_cart(user, token)
    if result.ok:
        totals = result.value
    else:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

__all__ = [
    "BaseService",
    "ServiceResult",
    "ErrorCodes",
    "service_ok",
    "service_err",
]
