"""
Mock Subgraph Client
====================

In-memory implementation of SubgraphClientInterface for tests and local
development. Fixtures are registered with the ``set_*`` / ``add_*`` helpers.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .interface import AddressBookEntry, StoreAddress, SubgraphClientInterface, SubgraphResponse, TaxExemption

logger = logging.getLogger(__name__)


class MockSubgraphClient(SubgraphClientInterface):
    """
    Mock subgraph client.

    Instead of calling remote services, this client:
        - Serves tax exemptions, addresses and the store address from memory
        - Records every call in ``calls`` for verification
        - Answers 404 for anything not registered
    """

    def __init__(self):
        self.exemptions: Dict[str, TaxExemption] = {}
        self.addresses: Dict[str, Tuple[str, AddressBookEntry]] = {}
        self.store_address: Optional[StoreAddress] = None
        self.calls: List[Tuple[str, tuple]] = []

    def set_tax_exemption(self, exemption: TaxExemption):
        self.exemptions[str(exemption.user_id)] = exemption

    def add_address(self, user_id, entry: AddressBookEntry):
        self.addresses[str(entry.id)] = (str(user_id), entry)

    def set_store_address(self, address: Optional[StoreAddress]):
        self.store_address = address

    def reset(self):
        self.exemptions.clear()
        self.addresses.clear()
        self.store_address = None
        self.calls.clear()

    def get_tax_exemption(self, user_id, token):
        self.calls.append(("get_tax_exemption", (str(user_id),)))
        exemption = self.exemptions.get(str(user_id))
        logger.info(f"[MOCK SUBGRAPH] tax exemption for {user_id}: {exemption.status if exemption else None}")
        if exemption is None:
            return SubgraphResponse.error(404, "Tax exemption entry not found")
        return SubgraphResponse(
            typename="TaxExemptionResponse",
            status_code=200,
            success=True,
            message="Tax exemption entry fetched successfully",
            data=exemption,
        )

    def get_address_book_entry(self, address_id, user_id, token):
        self.calls.append(("get_address_book_entry", (str(address_id), str(user_id))))
        owner_and_entry = self.addresses.get(str(address_id))
        if owner_and_entry is None or owner_and_entry[0] != str(user_id):
            return SubgraphResponse.error(404, "Address book entry not found")
        return SubgraphResponse(
            typename="AddressResponseBook",
            status_code=200,
            success=True,
            message="Address book entry fetched successfully",
            data=owner_and_entry[1],
        )

    def get_store_tax_address(self, token):
        self.calls.append(("get_store_tax_address", ()))
        if self.store_address is None:
            return SubgraphResponse.error(404, "No shop address found")
        return SubgraphResponse(
            typename="ShopAddressResponse",
            status_code=200,
            success=True,
            message="Shop address fetched successfully",
            data=self.store_address,
        )
