"""
Remote subgraph clients (user service, site settings service).
"""

from .factory import SubgraphFactory
from .graphql_client import GraphQLSubgraphClient
from .interface import (
    ADDRESS_TYPE_BILLING,
    ADDRESS_TYPE_SHIPPING,
    AddressBookEntry,
    StoreAddress,
    SubgraphClientInterface,
    SubgraphResponse,
    TaxExemption,
)
from .mock_client import MockSubgraphClient

__all__ = [
    "ADDRESS_TYPE_BILLING",
    "ADDRESS_TYPE_SHIPPING",
    "AddressBookEntry",
    "GraphQLSubgraphClient",
    "MockSubgraphClient",
    "StoreAddress",
    "SubgraphClientInterface",
    "SubgraphFactory",
    "SubgraphResponse",
    "TaxExemption",
]
