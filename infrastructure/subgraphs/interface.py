"""
Subgraph Client Interface
=========================

Abstract base class for the remote services the cart depends on: the user
service (tax exemptions, address book) and the site settings service (store
address used for tax).

Every call returns a SubgraphResponse mirroring the remote tagged union
(BaseResponse / ErrorResponse / <Domain>Response) with its status code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from commerce.domain.address import Address

ADDRESS_TYPE_SHIPPING = "SHIPPING"
ADDRESS_TYPE_BILLING = "BILLING"


@dataclass
class SubgraphResponse:
    """
    Response of a remote subgraph operation.

    Attributes:
        typename: Remote discriminant (e.g. "AddressResponseBook", "ErrorResponse")
        status_code: HTTP-like status reported by the remote service
        success: Remote success flag
        message: Remote message
        data: Parsed domain object (TaxExemption, AddressBookEntry, StoreAddress) or None
        errors: Field-level errors reported by the remote service
    """

    typename: str
    status_code: int
    success: bool
    message: str = ""
    data: Any = None
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.success and self.status_code == 200

    @classmethod
    def error(cls, status_code: int, message: str, errors=None) -> "SubgraphResponse":
        return cls(
            typename="ErrorResponse",
            status_code=status_code,
            success=False,
            message=message,
            errors=list(errors or []),
        )


@dataclass
class TaxExemption:
    id: str
    user_id: str
    status: str
    tax_number: Optional[str] = None
    assumption_reason: Optional[str] = None
    expiry_date: Optional[datetime] = None


@dataclass
class AddressBookEntry:
    id: str
    type: str
    country: str
    state: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    street_one: Optional[str] = None
    street_two: Optional[str] = None
    company: Optional[str] = None
    is_default: bool = False

    def to_address(self) -> Address:
        return Address.from_parts(self.country, self.state, self.city, self.zip)


@dataclass
class StoreAddress:
    id: str
    country: str
    state: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    branch_name: Optional[str] = None
    is_default_for_tax: bool = False

    def to_address(self) -> Address:
        return Address.from_parts(self.country, self.state, self.city, self.zip_code)


class SubgraphClientInterface(ABC):
    """
    Abstract interface for remote subgraph lookups.

    Concrete implementations:
        - GraphQLSubgraphClient: GraphQL over HTTP with the caller's bearer token
        - MockSubgraphClient: In-memory fixtures for tests and local development
    """

    @abstractmethod
    def get_tax_exemption(self, user_id: str, token: Optional[str]) -> SubgraphResponse:
        """
        Fetch the tax exemption entry of a user.

        Returns:
            SubgraphResponse whose data is a TaxExemption (or None when the user has none)
        """
        pass

    @abstractmethod
    def get_address_book_entry(self, address_id: str, user_id: str, token: Optional[str]) -> SubgraphResponse:
        """
        Fetch one address book entry owned by a user.

        Returns:
            SubgraphResponse whose data is an AddressBookEntry
        """
        pass

    @abstractmethod
    def get_store_tax_address(self, token: Optional[str]) -> SubgraphResponse:
        """
        Fetch the store address flagged as default for tax.

        Returns:
            SubgraphResponse whose data is a StoreAddress
        """
        pass
