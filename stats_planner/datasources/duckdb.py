"""DuckDB connector exposing a DuckDB database as a federated catalog."""

from typing import Any, Dict, List, Optional
import duckdb
import logging

from ..catalog.schema import Column, Database, Table, TableKind
from ..catalog.types import map_type
from .base import ConnectorCapability, ConnectorError, ExternalConnector

logger = logging.getLogger(__name__)


class DuckDBConnector(ExternalConnector):
    """DuckDB catalog connector.

    Schemas are exposed as databases. DuckDB tables are unpartitioned and
    DuckDB keeps no modification timestamps, so update-time probing and
    partition change tracking are unsupported.
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """Initialize DuckDB connector.

        Config should include:
            - path: Path to DuckDB database file (or :memory: for in-memory)
            - read_only: Whether to open in read-only mode (default: True)
        """
        super().__init__(name, config)
        self.connection = None
        self.db_path = config.get("path", ":memory:")
        self.read_only = config.get("read_only", True)

    def connect(self) -> None:
        """Establish connection to DuckDB."""
        logger.info(f"Connecting to DuckDB at '{self.db_path}'")
        self.connection = duckdb.connect(self.db_path, read_only=self.read_only)
        self._connected = True

    def disconnect(self) -> None:
        """Close DuckDB connection."""
        if self.connection:
            self.connection.close()
            logger.info(f"Disconnected from DuckDB: {self.name}")
            self.connection = None
            self._connected = False

    def _query(self, sql: str, params: Optional[List[Any]] = None) -> List[tuple]:
        """Run a query on its own cursor.

        A DuckDB connection must not be used from several threads at once, so
        each call gets a cursor that is closed when the rows are fetched.
        """
        cursor = self.connection.cursor()
        try:
            if params is None:
                return cursor.execute(sql).fetchall()
            return cursor.execute(sql, params).fetchall()
        except duckdb.Error as exc:
            raise ConnectorError(f"DuckDB query failed on {self.name}: {exc}") from exc
        finally:
            cursor.close()

    def get_capabilities(self) -> List[ConnectorCapability]:
        return [ConnectorCapability.METADATA_REFRESH]

    def list_database_names(self) -> List[str]:
        """List schemas of the attached database."""
        result = self._query(
            """
            SELECT DISTINCT schema_name
            FROM information_schema.schemata
            WHERE catalog_name = current_database()
            ORDER BY schema_name
            """
        )
        names = []
        for row in result:
            names.append(row[0])
        return names

    def get_database(self, db_name: str) -> Optional[Database]:
        for name in self.list_database_names():
            if name.lower() == db_name.lower():
                return Database(id=0, name=name)
        return None

    def list_table_names(self, db_name: str) -> List[str]:
        """List base tables in a schema."""
        result = self._query(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_catalog = current_database()
              AND table_schema = ? AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            [db_name],
        )
        tables = []
        for row in result:
            tables.append(row[0])
        return tables

    def get_table(self, db_name: str, table_name: str) -> Optional[Table]:
        """Get table metadata with columns and row count."""
        result = self._query(
            """
            SELECT
                column_name,
                data_type,
                is_nullable
            FROM information_schema.columns
            WHERE table_catalog = current_database()
              AND table_schema = ? AND table_name = ?
            ORDER BY ordinal_position
            """,
            [db_name, table_name],
        )
        if not result:
            return None

        columns = []
        for row in result:
            columns.append(
                Column(
                    name=row[0],
                    data_type=map_type(row[1], dialect="duckdb"),
                    nullable=row[2] == "YES",
                )
            )

        return Table(
            id=0,
            name=table_name,
            columns=columns,
            kind=TableKind.EXTERNAL,
            row_count=self._count_rows(db_name, table_name),
        )

    def _count_rows(self, db_name: str, table_name: str) -> int:
        relation = f"{_quote(db_name)}.{_quote(table_name)}"
        rows = self._query(f"SELECT COUNT(*) FROM {relation}")
        return rows[0][0] if rows else 0

    def list_partition_names(self, db_name: str, table_name: str) -> List[str]:
        return []

    def refresh_table(self, db_name: str, table: Table) -> Table:
        logger.debug(f"Refreshing DuckDB table metadata: {db_name}.{table.name}")
        refreshed = self.get_table(db_name, table.name)
        if refreshed is None:
            return table
        return refreshed


def _quote(identifier: str) -> str:
    escaped = identifier.replace('"', '""')
    return f'"{escaped}"'
