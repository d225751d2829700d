"""
TaxService - Tax Rate Resolution

Finds the tax rate that applies to an address within a tax class and computes
item and shipping tax, honouring the store's "prices entered with tax" option.

Rate matching rules:
- country must equal the address country (case-insensitive)
- state / city / postcode on the rate: NULL matches anything; a value must
  equal the address value (case-insensitive) and never matches an address
  that leaves the field out
- lowest ``priority`` wins, then the most specific rate, then the oldest
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

from commerce.domain.address import Address
from commerce.infra.cache import cache_helpers
from commerce.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from commerce.services.money import HUNDRED, ZERO, to_decimal, to_money
from commerce.tax.domain.models.tax import TaxOptions

logger = logging.getLogger(__name__)

TAX_EXEMPTION_APPROVED = "Approved"

LOCATION_FIELDS = ("state", "city", "postcode")


def _same(rate_value: Optional[str], address_value: Optional[str]) -> bool:
    if rate_value is None:
        return True
    if address_value is None:
        return False
    return rate_value.strip().lower() == address_value.strip().lower()


def rate_matches(rate, address: Optional[Address]) -> bool:
    if address is None or not address.country or not rate.country:
        return False
    if rate.country.strip().lower() != address.country.strip().lower():
        return False
    return all(_same(getattr(rate, name), getattr(address, name)) for name in LOCATION_FIELDS)


def specificity(rate) -> int:
    return sum(1 for name in LOCATION_FIELDS if getattr(rate, name) is not None)


def select_rate(rates: Iterable, address: Optional[Address]):
    """Pick the applicable rate for ``address`` or None."""
    candidates = [
        rate for rate in rates if getattr(rate, "deleted_at", None) is None and rate_matches(rate, address)
    ]
    if not candidates:
        return None

    def sort_key(rate):
        created_at = getattr(rate, "created_at", None)
        return (
            rate.priority,
            -specificity(rate),
            created_at.timestamp() if created_at else 0,
            str(getattr(rate, "id", "")),
        )

    return min(candidates, key=sort_key)


def compute_amount_tax(amount: Decimal, rate_percentage, prices_entered_with_tax: bool) -> Decimal:
    """
    Tax carried by ``amount``.

    Inclusive prices: the amount already contains the tax, so the base is
    backed out and the difference is the tax. Exclusive prices: tax is added
    on top.
    """
    amount = to_decimal(amount)
    if amount <= 0:
        return ZERO
    rate = to_decimal(rate_percentage) / HUNDRED
    if prices_entered_with_tax:
        base = amount / (1 + rate)
        return to_money(amount - base)
    return to_money(amount * rate)


def compute_item_tax(
    unit_price: Decimal, quantity: int, discount_share: Decimal, rate, prices_entered_with_tax: bool
) -> Decimal:
    """Tax on a line net of the discount already allocated to it."""
    if rate is None or quantity <= 0:
        return ZERO
    taxable = to_decimal(unit_price) * quantity - to_decimal(discount_share)
    return compute_amount_tax(taxable, rate.rate, prices_entered_with_tax)


def is_tax_exempt(exemption, now: datetime) -> bool:
    """Approved exemptions without an expiry date never lapse."""
    if exemption is None or exemption.status != TAX_EXEMPTION_APPROVED:
        return False
    return exemption.expiry_date is None or exemption.expiry_date > now


def resolve_tax_address(
    tax_options,
    shipping_address: Optional[Address],
    billing_address: Optional[Address],
    store_address_lookup: Callable[[], Optional[Address]],
) -> ServiceResult[Optional[Address]]:
    """
    Address that decides the tax rate.

    Returns None (no tax) when there are no tax options or the store has no
    address flagged for tax. A customer address the options require but the
    caller did not supply is an error.
    """
    if tax_options is None:
        return service_ok(None)

    based_on = tax_options.calculate_tax_based_on
    if based_on == TaxOptions.BASED_ON_SHIPPING:
        if shipping_address is None:
            return service_err(ErrorCodes.TAX_ADDRESS_REQUIRED, "Shipping address is required for tax calculation")
        return service_ok(shipping_address)

    if based_on == TaxOptions.BASED_ON_BILLING:
        if billing_address is None:
            return service_err(ErrorCodes.TAX_ADDRESS_REQUIRED, "Billing address is required for tax calculation")
        return service_ok(billing_address)

    if based_on == TaxOptions.BASED_ON_STORE:
        store_address = store_address_lookup()
        if store_address is None:
            logger.info("No store address flagged for tax; skipping tax calculation")
        return service_ok(store_address)

    return service_ok(None)


class TaxService(BaseService):
    """
    Service for tax rate lookup backed by the configuration cache.

    Responsibilities:
    - Load tax options (singleton row)
    - Find the applicable rate for a tax class and an address
    - Compute item and shipping tax
    """

    def get_tax_options(self):
        return cache_helpers.get_tax_options()

    @BaseService.log_performance
    def fetch_tax_options(self) -> ServiceResult[TaxOptions]:
        options = self.get_tax_options()
        if options is None:
            return service_err(ErrorCodes.TAX_OPTIONS_NOT_FOUND, "Tax options are not configured")
        return service_ok(options)

    def find_rate(self, tax_class_id, address: Optional[Address]):
        """
        Find the applicable rate of a tax class for an address.

        Args:
            tax_class_id: TaxClass id (None means untaxed)
            address: Address to match

        Returns:
            TaxRate or None when nothing matches (zero tax, not an error)
        """
        if tax_class_id is None or address is None:
            return None
        rate = select_rate(cache_helpers.get_tax_rates(tax_class_id), address)
        if rate is None:
            self.logger.debug(f"No tax rate in class {tax_class_id} for {address.country}/{address.state}")
        return rate

    def item_tax(self, tax_class_id, address, unit_price, quantity, discount_share, prices_entered_with_tax):
        rate = self.find_rate(tax_class_id, address)
        return compute_item_tax(unit_price, quantity, discount_share, rate, prices_entered_with_tax)

    def shipping_tax(self, tax_class_id, address, amount, prices_entered_with_tax) -> Decimal:
        rate = self.find_rate(tax_class_id, address)
        if rate is None:
            return ZERO
        return compute_amount_tax(amount, rate.rate, prices_entered_with_tax)

    @BaseService.log_performance
    def update_tax_options(self, **changes) -> ServiceResult[TaxOptions]:
        """
        Create or update the store's tax options.

        Args:
            changes: Field values (prices_entered_with_tax, calculate_tax_based_on,
                shipping_tax_class, ...)

        Returns:
            ServiceResult with the saved TaxOptions
        """
        try:
            options = TaxOptions.load() or TaxOptions()
            for field_name, value in changes.items():
                setattr(options, field_name, value)
            options.save()
            self.logger.info(f"Tax options updated: {sorted(changes)}")
            return service_ok(options)
        except Exception as e:
            self.logger.error(f"Error updating tax options: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
