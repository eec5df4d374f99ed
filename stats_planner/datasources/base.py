"""Base connector interface for federated catalogs."""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ..catalog.schema import Database, Table
from ..errors import PlannerError


class ConnectorCapability(Enum):
    """Capabilities that a connector may support."""

    TABLE_UPDATE_TIME = "table_update_time"
    PARTITION_CHANGE_TRACKING = "partition_change_tracking"
    METADATA_REFRESH = "metadata_refresh"


class ConnectorError(PlannerError):
    """Raised when a connector cannot answer a metadata request."""


class ExternalConnector(ABC):
    """Abstract base class for federated catalog connectors.

    A connector exposes read-only metadata for one external catalog. All
    lookups return None (or an empty list) for entities that do not exist.
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """Initialize connector.

        Args:
            name: Catalog name this connector serves
            config: Configuration dictionary
        """
        self.name = name
        self.config = config
        self._connected = False

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the external catalog."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to the external catalog."""
        pass

    @abstractmethod
    def get_capabilities(self) -> List[ConnectorCapability]:
        """Return list of capabilities supported by this connector."""
        pass

    @abstractmethod
    def list_database_names(self) -> List[str]:
        """List all database names in the catalog."""
        pass

    @abstractmethod
    def get_database(self, db_name: str) -> Optional[Database]:
        """Get a database by name.

        Args:
            db_name: Database name

        Returns:
            Database if found, None otherwise
        """
        pass

    @abstractmethod
    def list_table_names(self, db_name: str) -> List[str]:
        """List all table names in a database.

        Args:
            db_name: Database name

        Returns:
            List of table names, empty if the database does not exist
        """
        pass

    @abstractmethod
    def get_table(self, db_name: str, table_name: str) -> Optional[Table]:
        """Get table metadata.

        Args:
            db_name: Database name
            table_name: Table name

        Returns:
            Table if found, None otherwise
        """
        pass

    @abstractmethod
    def list_partition_names(self, db_name: str, table_name: str) -> List[str]:
        """List partition names of a table.

        Args:
            db_name: Database name
            table_name: Table name

        Returns:
            Partition names, empty for an unknown table
        """
        pass

    def refresh_table(self, db_name: str, table: Table) -> Table:
        """Reload table metadata from the source.

        Connectors without METADATA_REFRESH return the table unchanged.

        Args:
            db_name: Database name
            table: Table to refresh

        Returns:
            Refreshed table metadata
        """
        return table

    def get_table_update_time(self, db_name: str, table: Table) -> Optional[datetime]:
        """Return the last time the table data changed, None if unknown."""
        return None

    def get_changed_partitions(
        self,
        db_name: str,
        table: Table,
        since: datetime,
        tolerance_seconds: int,
    ) -> Optional[Set[str]]:
        """Return names of partitions changed after a watermark.

        Args:
            db_name: Database name
            table: Table to inspect
            since: Watermark of the last successful collection
            tolerance_seconds: Lookback allowance subtracted from the watermark

        Returns:
            Set of partition names, or None when change tracking is unsupported

        Raises:
            ConnectorError: If the source failed to answer
        """
        return None

    def supports_capability(self, capability: ConnectorCapability) -> bool:
        """Check if connector supports a capability.

        Args:
            capability: Capability to check

        Returns:
            True if supported, False otherwise
        """
        return capability in self.get_capabilities()

    def is_connected(self) -> bool:
        return self._connected

    def ensure_connected(self) -> None:
        """Ensure connector is connected."""
        if not self.is_connected():
            self.connect()
            self._connected = True

    def __enter__(self):
        """Context manager entry."""
        self.ensure_connected()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
        self._connected = False
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
