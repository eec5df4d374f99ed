"""Catalog for native metadata and registered federated connectors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional

from .schema import Database, Table

if TYPE_CHECKING:
    from ..datasources.base import ExternalConnector


class MetadataProvider(ABC):
    """Read-only view of native databases plus the federated connectors."""

    @abstractmethod
    def list_database_ids(self) -> List[int]:
        """List ids of all native databases."""
        pass

    @abstractmethod
    def get_database(self, db_id: int) -> Optional[Database]:
        """Get a native database by id, None if it was dropped."""
        pass

    @abstractmethod
    def get_tables(self, db_id: int) -> List[Table]:
        """List tables of a native database, empty if it was dropped."""
        pass

    @abstractmethod
    def get_table(self, db_id: int, table_id: int) -> Optional[Table]:
        """Get a native table by id, None if it was dropped."""
        pass

    @abstractmethod
    def get_connector(self, catalog_name: str) -> Optional[ExternalConnector]:
        """Get the connector serving a federated catalog."""
        pass


class Catalog(MetadataProvider):
    """In-memory catalog managing native databases and external connectors."""

    def __init__(self):
        """Initialize catalog."""
        self.databases: Dict[int, Database] = {}
        self.connectors: Dict[str, ExternalConnector] = {}

    def add_database(self, database: Database) -> None:
        """Register a native database.

        Args:
            database: Database to register
        """
        self.databases[database.id] = database

    def register_connector(self, connector: ExternalConnector) -> None:
        """Register a connector for a federated catalog.

        Args:
            connector: Connector to register, keyed by its name
        """
        self.connectors[connector.name] = connector

    def list_database_ids(self) -> List[int]:
        return list(self.databases.keys())

    def get_database(self, db_id: int) -> Optional[Database]:
        return self.databases.get(db_id)

    def get_database_by_name(self, name: str) -> Optional[Database]:
        """Get a native database by name.

        Args:
            name: Database name

        Returns:
            Database if found, None otherwise
        """
        for database in self.databases.values():
            if database.name.lower() == name.lower():
                return database
        return None

    def get_tables(self, db_id: int) -> List[Table]:
        database = self.get_database(db_id)
        if database is None:
            return []
        return list(database.tables.values())

    def get_table(self, db_id: int, table_id: int) -> Optional[Table]:
        database = self.get_database(db_id)
        if database is None:
            return None
        return database.get_table_by_id(table_id)

    def get_connector(self, catalog_name: str) -> Optional[ExternalConnector]:
        return self.connectors.get(catalog_name)

    def __repr__(self) -> str:
        return (
            f"Catalog(databases={len(self.databases)}, "
            f"connectors={len(self.connectors)})"
        )
