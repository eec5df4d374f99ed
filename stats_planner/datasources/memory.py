"""In-memory connector backed by Database objects."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Set, Tuple

from ..catalog.schema import Database, Table
from .base import ConnectorCapability, ExternalConnector

logger = logging.getLogger(__name__)


class InMemoryConnector(ExternalConnector):
    """Connector serving metadata from in-memory Database objects.

    Config keys:
        - track_changes: Whether partition change tracking is supported
          (default: True)
    """

    def __init__(self, name: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(name, config or {})
        self.databases: Dict[str, Database] = {}
        self.update_times: Dict[Tuple[str, str], datetime] = {}
        self.track_changes = self.config.get("track_changes", True)
        self.refreshed: List[Tuple[str, str]] = []

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    def get_capabilities(self) -> List[ConnectorCapability]:
        capabilities = [
            ConnectorCapability.TABLE_UPDATE_TIME,
            ConnectorCapability.METADATA_REFRESH,
        ]
        if self.track_changes:
            capabilities.append(ConnectorCapability.PARTITION_CHANGE_TRACKING)
        return capabilities

    def add_database(self, database: Database) -> None:
        self.databases[database.name.lower()] = database

    def set_table_update_time(
        self, db_name: str, table_name: str, update_time: datetime
    ) -> None:
        self.update_times[(db_name.lower(), table_name.lower())] = update_time

    def list_database_names(self) -> List[str]:
        return [db.name for db in self.databases.values()]

    def get_database(self, db_name: str) -> Optional[Database]:
        return self.databases.get(db_name.lower())

    def list_table_names(self, db_name: str) -> List[str]:
        database = self.get_database(db_name)
        if database is None:
            return []
        return [table.name for table in database.tables.values()]

    def get_table(self, db_name: str, table_name: str) -> Optional[Table]:
        database = self.get_database(db_name)
        if database is None:
            return None
        return database.get_table(table_name)

    def list_partition_names(self, db_name: str, table_name: str) -> List[str]:
        table = self.get_table(db_name, table_name)
        if table is None:
            return []
        return [p.name for p in table.partitions_with_data()]

    def refresh_table(self, db_name: str, table: Table) -> Table:
        self.refreshed.append((db_name, table.name))
        current = self.get_table(db_name, table.name)
        if current is None:
            return table
        return current

    def get_table_update_time(self, db_name: str, table: Table) -> Optional[datetime]:
        key = (db_name.lower(), table.name.lower())
        if key in self.update_times:
            return self.update_times[key]
        return table.last_update_time()

    def get_changed_partitions(
        self,
        db_name: str,
        table: Table,
        since: datetime,
        tolerance_seconds: int,
    ) -> Optional[Set[str]]:
        if not self.track_changes or table.is_unpartitioned():
            return None

        threshold = _lookback(since, tolerance_seconds)
        changed = set()
        for partition in table.partitions_with_data():
            if partition.update_time > threshold:
                changed.add(partition.name)
        logger.debug(
            f"Connector {self.name}: {len(changed)} partitions of {table.name} "
            f"changed after {threshold}"
        )
        return changed


def _lookback(since: datetime, tolerance_seconds: int) -> datetime:
    """Move the watermark back by the tolerance without underflowing."""
    allowance = timedelta(seconds=tolerance_seconds)
    if since - datetime.min <= allowance:
        return datetime.min
    return since - allowance
