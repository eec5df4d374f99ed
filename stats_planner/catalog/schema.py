"""Schema metadata classes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class DataType(Enum):
    """Column data types known to the statistics subsystem."""

    BOOLEAN = "BOOLEAN"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    LARGEINT = "LARGEINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    DATE = "DATE"
    DATETIME = "DATETIME"
    JSON = "JSON"
    ARRAY = "ARRAY"
    MAP = "MAP"
    STRUCT = "STRUCT"
    HLL = "HLL"
    BITMAP = "BITMAP"
    PERCENTILE = "PERCENTILE"
    UNKNOWN = "UNKNOWN"

    @property
    def is_collectible(self) -> bool:
        """Whether statistics can be collected for columns of this type."""
        return self not in _NON_COLLECTIBLE_TYPES


_NON_COLLECTIBLE_TYPES = frozenset(
    {
        DataType.JSON,
        DataType.ARRAY,
        DataType.MAP,
        DataType.STRUCT,
        DataType.HLL,
        DataType.BITMAP,
        DataType.PERCENTILE,
        DataType.UNKNOWN,
    }
)


class TableKind(Enum):
    """Storage kind of a table."""

    OLAP = "olap"
    CLOUD_NATIVE = "cloud_native"
    MATERIALIZED_VIEW = "materialized_view"
    VIEW = "view"
    EXTERNAL = "external"


class TableState(Enum):
    """Structural state of a table."""

    NORMAL = "normal"
    SCHEMA_CHANGE = "schema_change"
    ROLLUP = "rollup"
    RESTORE = "restore"


@dataclass
class Column:
    """Column metadata."""

    name: str
    data_type: DataType
    nullable: bool = True

    def __repr__(self) -> str:
        return f"Column({self.name}, {self.data_type.value})"


@dataclass
class Partition:
    """Point-in-time view of a single partition."""

    id: int
    name: str
    update_time: datetime
    data_size: int = 0
    row_count: int = 0
    has_data: bool = True

    def __repr__(self) -> str:
        return f"Partition({self.name}, size={self.data_size})"


@dataclass
class Table:
    """Table metadata."""

    id: int
    name: str
    columns: List[Column] = field(default_factory=list)
    partitions: List[Partition] = field(default_factory=list)
    kind: TableKind = TableKind.OLAP
    state: TableState = TableState.NORMAL
    is_temporary: bool = False
    row_count: Optional[int] = None  # None when the source cannot tell
    partition_columns: List[str] = field(default_factory=list)

    def get_column(self, name: str) -> Optional[Column]:
        """Get column by name."""
        for col in self.columns:
            if col.name.lower() == name.lower():
                return col
        return None

    def collectible_columns(self) -> List[Column]:
        """Columns whose type supports statistics collection."""
        return [col for col in self.columns if col.data_type.is_collectible]

    def partitions_with_data(self) -> List[Partition]:
        """Partitions that currently hold data."""
        return [p for p in self.partitions if p.has_data]

    def last_update_time(self) -> Optional[datetime]:
        """Latest update time across all partitions."""
        if not self.partitions:
            return None
        return max(p.update_time for p in self.partitions)

    def is_native_storage(self) -> bool:
        return self.kind in (
            TableKind.OLAP,
            TableKind.CLOUD_NATIVE,
            TableKind.MATERIALIZED_VIEW,
        )

    def is_empty(self) -> bool:
        """True only when the row count is known to be zero."""
        return self.row_count == 0

    def is_unpartitioned(self) -> bool:
        return not self.partition_columns

    def __repr__(self) -> str:
        return f"Table({self.name}, cols={len(self.columns)}, parts={len(self.partitions)})"


@dataclass
class Database:
    """Database metadata."""

    id: int
    name: str
    tables: Dict[str, Table] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return self.name

    def get_table(self, name: str) -> Optional[Table]:
        """Get table by name."""
        return self.tables.get(name.lower())

    def get_table_by_id(self, table_id: int) -> Optional[Table]:
        """Get table by id."""
        for table in self.tables.values():
            if table.id == table_id:
                return table
        return None

    def add_table(self, table: Table) -> None:
        """Add a table to this database."""
        self.tables[table.name.lower()] = table

    def __repr__(self) -> str:
        return f"Database({self.name}, tables={len(self.tables)})"
