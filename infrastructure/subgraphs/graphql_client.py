"""
GraphQL Subgraph Client
=======================

Calls the user and site settings subgraphs over HTTP with ``requests``,
forwarding the caller's bearer token.
"""

import logging
from typing import Any, Callable, Dict, Optional

import requests
from django.conf import settings
from django.utils.dateparse import parse_datetime
from prometheus_client import Counter

from utils.logging_utils import mask_fields, mask_value

from .interface import (
    AddressBookEntry,
    StoreAddress,
    SubgraphClientInterface,
    SubgraphResponse,
    TaxExemption,
)

logger = logging.getLogger(__name__)

subgraph_requests_total = Counter(
    "commerce_subgraph_requests_total", "Remote subgraph requests", ["operation", "outcome"]
)

GET_TAX_EXEMPTION = """
query GetTaxExemptionEntryByUserId($userId: ID!) {
  getTaxExemptionEntryByUserId(userId: $userId) {
    __typename
    ... on BaseResponse { statusCode success message }
    ... on TaxExemptionResponse {
      statusCode
      success
      message
      taxExemption { id taxNumber assumptionReason status expiryDate }
    }
    ... on ErrorResponse { statusCode success message errors { field message } }
  }
}
"""

GET_ADDRESS_BOOK = """
query GetAddressBookEntryById($addressBookEntryById: ID!, $userId: ID!) {
  getAddressBookEntryById(id: $addressBookEntryById, userId: $userId) {
    __typename
    ... on BaseResponse { statusCode success message }
    ... on AddressResponseBook {
      statusCode
      success
      message
      addressBook { id company streetOne streetTwo city state zip country type isDefault }
    }
    ... on ErrorResponse { statusCode success message errors { field message } }
  }
}
"""

GET_SHOP_FOR_TAX = """
query GetShopForDefaultTax {
  getShopForDefaultTax {
    __typename
    ... on BaseResponse { statusCode success message }
    ... on ShopAddressResponse {
      statusCode
      success
      message
      shopAddress { id brunchName city state country zipCode isDefaultForTax }
    }
    ... on ErrorResponse { statusCode success message errors { field message } }
  }
}
"""


def _parse_tax_exemption(payload: Dict[str, Any], user_id: str) -> Optional[TaxExemption]:
    entry = payload.get("taxExemption")
    if not entry:
        return None
    expiry = entry.get("expiryDate")
    return TaxExemption(
        id=entry.get("id"),
        user_id=user_id,
        status=entry.get("status"),
        tax_number=entry.get("taxNumber"),
        assumption_reason=entry.get("assumptionReason"),
        expiry_date=parse_datetime(expiry) if expiry else None,
    )


def _parse_address_book(payload: Dict[str, Any]) -> Optional[AddressBookEntry]:
    entry = payload.get("addressBook")
    if not entry:
        return None
    return AddressBookEntry(
        id=entry.get("id"),
        type=entry.get("type"),
        country=entry.get("country") or "",
        state=entry.get("state"),
        city=entry.get("city"),
        zip=entry.get("zip"),
        street_one=entry.get("streetOne"),
        street_two=entry.get("streetTwo"),
        company=entry.get("company"),
        is_default=bool(entry.get("isDefault")),
    )


def _parse_shop_address(payload: Dict[str, Any]) -> Optional[StoreAddress]:
    entry = payload.get("shopAddress")
    if not entry:
        return None
    return StoreAddress(
        id=entry.get("id"),
        country=entry.get("country") or "",
        state=entry.get("state"),
        city=entry.get("city"),
        zip_code=entry.get("zipCode"),
        branch_name=entry.get("brunchName"),
        is_default_for_tax=bool(entry.get("isDefaultForTax")),
    )


class GraphQLSubgraphClient(SubgraphClientInterface):
    """
    Production subgraph client.

    Configuration (settings):
        USER_GRAPH_URL: user service endpoint
        SITE_SETTINGS_URL: site settings service endpoint
        SUBGRAPH_TIMEOUT: request timeout in seconds
    """

    def __init__(self, user_graph_url: str = None, site_settings_url: str = None, timeout: int = None):
        self.user_graph_url = user_graph_url or getattr(settings, "USER_GRAPH_URL", "http://localhost:4001")
        self.site_settings_url = site_settings_url or getattr(
            settings, "SITE_SETTINGS_URL", "http://localhost:4004"
        )
        self.timeout = timeout or getattr(settings, "SUBGRAPH_TIMEOUT", 30)

    def get_tax_exemption(self, user_id, token):
        return self._execute(
            self.user_graph_url,
            "getTaxExemptionEntryByUserId",
            GET_TAX_EXEMPTION,
            {"userId": str(user_id)},
            token,
            lambda payload: _parse_tax_exemption(payload, str(user_id)),
        )

    def get_address_book_entry(self, address_id, user_id, token):
        return self._execute(
            self.user_graph_url,
            "getAddressBookEntryById",
            GET_ADDRESS_BOOK,
            {"addressBookEntryById": str(address_id), "userId": str(user_id)},
            token,
            _parse_address_book,
        )

    def get_store_tax_address(self, token):
        return self._execute(
            self.site_settings_url,
            "getShopForDefaultTax",
            GET_SHOP_FOR_TAX,
            {},
            token,
            _parse_shop_address,
        )

    def _execute(
        self,
        url: str,
        operation: str,
        query: str,
        variables: Dict[str, Any],
        token: Optional[str],
        parse: Callable[[Dict[str, Any]], Any],
    ) -> SubgraphResponse:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            logger.debug(
                f"Calling {operation} on {url} variables={mask_fields(variables, ('userId',))} "
                f"token={mask_value(token or '')}"
            )
            response = requests.post(
                url, json={"query": query, "variables": variables}, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.error(f"Subgraph request {operation} failed: {e}")
            subgraph_requests_total.labels(operation=operation, outcome="transport_error").inc()
            return SubgraphResponse.error(500, f"Failed to reach remote service for {operation}")
        except ValueError as e:
            logger.error(f"Subgraph response for {operation} is not JSON: {e}")
            subgraph_requests_total.labels(operation=operation, outcome="invalid_response").inc()
            return SubgraphResponse.error(500, f"Invalid response from remote service for {operation}")

        payload = (body.get("data") or {}).get(operation)
        if payload is None:
            messages = "; ".join(error.get("message", "") for error in body.get("errors") or [])
            logger.error(f"Subgraph {operation} returned no data: {messages}")
            subgraph_requests_total.labels(operation=operation, outcome="graphql_error").inc()
            return SubgraphResponse.error(500, messages or f"No data returned for {operation}")

        status_code = payload.get("statusCode") or 500
        result = SubgraphResponse(
            typename=payload.get("__typename") or ("ErrorResponse" if status_code != 200 else "BaseResponse"),
            status_code=status_code,
            success=bool(payload.get("success")),
            message=payload.get("message") or "",
            data=parse(payload) if status_code == 200 else None,
            errors=payload.get("errors") or [],
        )
        subgraph_requests_total.labels(operation=operation, outcome="ok" if result.ok else "error").inc()
        return result
