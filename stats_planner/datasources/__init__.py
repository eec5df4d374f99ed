"""Federated catalog connectors."""

from .base import ConnectorCapability, ConnectorError, ExternalConnector
from .memory import InMemoryConnector
from .duckdb import DuckDBConnector

__all__ = [
    "ConnectorCapability",
    "ConnectorError",
    "ExternalConnector",
    "InMemoryConnector",
    "DuckDBConnector",
]
