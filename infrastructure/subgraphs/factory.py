"""
Subgraph Client Factory
=======================

Factory pattern for creating subgraph clients based on configuration.
"""

import logging
from typing import Literal

from django.conf import settings

from .graphql_client import GraphQLSubgraphClient
from .interface import SubgraphClientInterface
from .mock_client import MockSubgraphClient

logger = logging.getLogger(__name__)

SubgraphBackend = Literal["graphql", "mock"]


class SubgraphFactory:
    """
    Factory for creating subgraph client instances.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"SUBGRAPH_BACKEND": "graphql"}  # or 'mock' for testing

        # In your code
        client = SubgraphFactory.create()
    """

    @staticmethod
    def create(backend: SubgraphBackend | None = None) -> SubgraphClientInterface:
        """
        Create a subgraph client.

        Args:
            backend: 'graphql' or 'mock'. If None, reads
                settings.INFRASTRUCTURE["SUBGRAPH_BACKEND"]

        Returns:
            SubgraphClientInterface implementation

        Raises:
            ValueError: If backend type is invalid
        """
        is_testing = getattr(settings, "TESTING", False)
        default_backend = "mock" if is_testing else "graphql"
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("SUBGRAPH_BACKEND", default_backend)

        logger.info(f"Creating subgraph client backend: {backend_type}")

        if backend_type == "graphql":
            return GraphQLSubgraphClient()
        elif backend_type == "mock":
            return MockSubgraphClient()
        else:
            raise ValueError(f"Invalid subgraph backend: {backend_type}. Must be 'graphql' or 'mock'")
