"""
CartContextLoader - Per-request pricing configuration

Gathers everything the cart pipeline reads besides the cart itself: the
buyer's tax exemption, the shipping and billing addresses from the address
book, the store tax options, the store tax address and the shipping zones.
Remote lookups go through the subgraph client; store configuration through
the cache.
"""

import logging
from typing import Optional

from django.utils import timezone

from commerce.domain.address import Address
from commerce.domain.totals import CartPricingContext
from commerce.infra.cache import cache_helpers
from commerce.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from commerce.tax.domain.models.tax import TaxOptions
from commerce.tax.domain.services.tax_service import TaxService, is_tax_exempt, resolve_tax_address
from infrastructure.subgraphs import (
    ADDRESS_TYPE_BILLING,
    ADDRESS_TYPE_SHIPPING,
    SubgraphClientInterface,
    SubgraphResponse,
)

logger = logging.getLogger(__name__)


def remote_error(response: SubgraphResponse) -> ServiceResult:
    """Carry a remote failure through with the status the remote service chose."""
    return service_err(
        ErrorCodes.UPSTREAM_ERROR,
        response.message or "Remote service error",
        errors=response.errors,
        status_code=response.status_code,
    )


class CartContextLoader(BaseService):
    """
    Loads a CartPricingContext once per request.

    Dependencies:
    - SubgraphClientInterface: tax exemption, address book, store address
    - TaxService: tax options
    """

    def __init__(self, subgraphs: SubgraphClientInterface, tax_service: TaxService = None):
        super().__init__()
        self.subgraphs = subgraphs
        self.tax_service = tax_service or TaxService()

    @BaseService.log_performance
    def load(
        self,
        user,
        token: Optional[str] = None,
        shipping_address_id: Optional[str] = None,
        billing_address_id: Optional[str] = None,
        now=None,
    ) -> ServiceResult[CartPricingContext]:
        """
        Load the pricing context of a request.

        Args:
            user: Authenticated user
            token: Bearer token forwarded to the remote services
            shipping_address_id: Address book entry used for shipping (optional)
            billing_address_id: Address book entry used for billing (optional)
            now: Evaluation time (default: timezone.now())

        Returns:
            ServiceResult with CartPricingContext, or the first failure
        """
        now = now or timezone.now()

        exemption_result = self._tax_exemption(user, token)
        if not exemption_result.ok:
            return exemption_result
        exempt = is_tax_exempt(exemption_result.value, now)

        shipping_result = self._address(shipping_address_id, ADDRESS_TYPE_SHIPPING, user, token)
        if not shipping_result.ok:
            return shipping_result
        billing_result = self._address(billing_address_id, ADDRESS_TYPE_BILLING, user, token)
        if not billing_result.ok:
            return billing_result
        shipping_address = shipping_result.value
        billing_address = billing_result.value

        tax_options = self.tax_service.get_tax_options()
        tax_address = None
        if exempt:
            self.logger.info(f"User {user.id} is tax exempt")
        elif tax_options is not None:
            store_address = None
            if tax_options.calculate_tax_based_on == TaxOptions.BASED_ON_STORE:
                store_result = self._store_tax_address(token)
                if not store_result.ok:
                    return store_result
                store_address = store_result.value

            address_result = resolve_tax_address(
                tax_options, shipping_address, billing_address, lambda: store_address
            )
            if not address_result.ok:
                return address_result
            tax_address = address_result.value

        zones = cache_helpers.get_shipping_zones() if shipping_address is not None else []

        return service_ok(
            CartPricingContext(
                now=now,
                user_email=getattr(user, "email", None),
                tax_options=tax_options,
                calculate_tax=tax_address is not None,
                tax_address=tax_address,
                shipping_address=shipping_address,
                zones=zones,
            )
        )

    def _tax_exemption(self, user, token) -> ServiceResult:
        response = self.subgraphs.get_tax_exemption(str(user.id), token)
        if response.ok:
            return service_ok(response.data)
        if response.status_code == 404:
            return service_ok(None)
        self.logger.warning(f"Tax exemption lookup failed for user {user.id}: {response.message}")
        return remote_error(response)

    def _address(self, address_id, expected_type: str, user, token) -> ServiceResult[Optional[Address]]:
        if not address_id:
            return service_ok(None)

        response = self.subgraphs.get_address_book_entry(str(address_id), str(user.id), token)
        if not response.ok:
            self.logger.warning(f"Address {address_id} lookup failed for user {user.id}: {response.message}")
            return remote_error(response)

        entry = response.data
        if entry is None or (entry.type or "").upper() != expected_type:
            return service_err(
                ErrorCodes.INVALID_ADDRESS_TYPE,
                f"Provided address is not a valid {expected_type.lower()} address.",
                errors=[
                    {
                        "field": f"{expected_type.lower()}AddressId",
                        "message": f"Address must be of type {expected_type}",
                    }
                ],
            )
        return service_ok(entry.to_address())

    def _store_tax_address(self, token) -> ServiceResult[Optional[Address]]:
        response = self.subgraphs.get_store_tax_address(token)
        if response.status_code == 404:
            return service_ok(None)
        if not response.ok:
            return remote_error(response)

        store = response.data
        if store is None or not store.is_default_for_tax:
            return service_ok(None)
        return service_ok(store.to_address())
