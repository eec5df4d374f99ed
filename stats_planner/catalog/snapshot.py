"""Loading a metadata snapshot from YAML into in-memory collaborators."""

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..datasources.memory import InMemoryConnector
from ..errors import ConfigurationError
from ..statistics.meta import (
    BasicStatsMeta,
    ConnectorColumnStats,
    ExternalBasicStatsMeta,
    HistogramStatsMeta,
)
from ..statistics.store import InMemoryStatsMetaStore
from .catalog import Catalog
from .schema import Column, Database, Partition, Table, TableKind, TableState
from .types import map_type


@dataclass
class Snapshot:
    """Collaborators loaded from a snapshot file."""

    catalog: Catalog
    stats: InMemoryStatsMetaStore
    now: Optional[datetime] = None


def load_snapshot(snapshot_path: str) -> Snapshot:
    """Load a metadata snapshot from a YAML file.

    Args:
        snapshot_path: Path to the YAML snapshot

    Returns:
        Snapshot with catalog, stats store and optional fixed clock

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the snapshot is malformed

    Example YAML format:
        now: 2024-05-01 12:00:00
        databases:
          - id: 10
            name: sales
            tables:
              - id: 100
                name: orders
                row_count: 5000
                columns:
                  - {name: id, type: BIGINT}
                  - {name: amount, type: "DECIMAL(10, 2)"}
                partitions:
                  - {id: 1, name: p1, update_time: 2024-04-30 08:00:00, data_size: 1048576}
        stats:
          basic:
            - {db_id: 10, table_id: 100, update_time: 2024-04-29 00:00:00, healthy: 0.5}
        catalogs:
          lake:
            track_changes: false
            databases:
              - name: web
                tables:
                  - name: events
                    columns: [{name: ts, type: TIMESTAMP}]
    """
    path = Path(snapshot_path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {snapshot_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    try:
        return parse_snapshot(data)
    except ConfigurationError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Malformed snapshot {snapshot_path}: {exc!r}") from exc


def parse_snapshot(data: Dict[str, Any]) -> Snapshot:
    """Build collaborators from an already-parsed snapshot document."""
    catalog = Catalog()
    for db_data in data.get("databases") or []:
        catalog.add_database(_parse_database(db_data))

    for name, catalog_data in (data.get("catalogs") or {}).items():
        catalog.register_connector(_parse_connector(name, catalog_data or {}))

    stats = _parse_stats(data.get("stats") or {})
    now = data.get("now")
    return Snapshot(
        catalog=catalog,
        stats=stats,
        now=_parse_time(now) if now is not None else None,
    )


def _parse_database(db_data: Dict[str, Any]) -> Database:
    database = Database(id=db_data.get("id", 0), name=db_data["name"])
    for table_data in db_data.get("tables") or []:
        database.add_table(_parse_table(table_data))
    return database


def _parse_table(table_data: Dict[str, Any]) -> Table:
    columns = [
        Column(
            name=col["name"],
            data_type=map_type(col["type"]),
            nullable=col.get("nullable", True),
        )
        for col in table_data.get("columns") or []
    ]
    partitions = [_parse_partition(p) for p in table_data.get("partitions") or []]
    return Table(
        id=table_data.get("id", 0),
        name=table_data["name"],
        columns=columns,
        partitions=partitions,
        kind=TableKind(table_data.get("kind", "olap")),
        state=TableState(table_data.get("state", "normal")),
        is_temporary=table_data.get("temporary", False),
        row_count=table_data.get("row_count"),
        partition_columns=list(table_data.get("partition_columns") or []),
    )


def _parse_partition(partition_data: Dict[str, Any]) -> Partition:
    return Partition(
        id=partition_data["id"],
        name=partition_data.get("name", f"p{partition_data['id']}"),
        update_time=_parse_time(partition_data["update_time"]),
        data_size=partition_data.get("data_size", 0),
        row_count=partition_data.get("row_count", 0),
        has_data=partition_data.get("has_data", True),
    )


def _parse_connector(name: str, catalog_data: Dict[str, Any]) -> InMemoryConnector:
    connector = InMemoryConnector(name, {"track_changes": catalog_data.get("track_changes", True)})
    for db_data in catalog_data.get("databases") or []:
        database = _parse_database(db_data)
        for table in database.tables.values():
            table.kind = TableKind.EXTERNAL
        connector.add_database(database)
    for entry in catalog_data.get("update_times") or []:
        connector.set_table_update_time(
            entry["database"], entry["table"], _parse_time(entry["update_time"])
        )
    return connector


def _parse_stats(stats_data: Dict[str, Any]) -> InMemoryStatsMetaStore:
    store = InMemoryStatsMetaStore()
    for entry in stats_data.get("basic") or []:
        store.add_basic_stats_meta(
            BasicStatsMeta(
                db_id=entry["db_id"],
                table_id=entry["table_id"],
                update_time=_parse_time(entry["update_time"]),
                healthy=float(entry.get("healthy", 1.0)),
                is_init=entry.get("init", False),
            )
        )
    for entry in stats_data.get("histograms") or []:
        store.add_histogram_meta(
            HistogramStatsMeta(
                db_id=entry["db_id"],
                table_id=entry["table_id"],
                column=entry["column"],
                update_time=_parse_time(entry["update_time"]),
                is_init=entry.get("init", False),
            )
        )
    for entry in stats_data.get("external") or []:
        store.add_external_basic_stats_meta(
            ExternalBasicStatsMeta(
                catalog_name=entry["catalog"],
                db_name=entry["database"],
                table_name=entry["table"],
                update_time=_parse_time(entry["update_time"]),
            )
        )
    for entry in stats_data.get("column_stats") or []:
        store.add_connector_column_stats(
            entry["catalog"],
            entry["database"],
            entry["table"],
            ConnectorColumnStats(column=entry["column"], row_count=entry.get("row_count")),
        )
    return store


def _parse_time(value: Any) -> datetime:
    """Accept YAML timestamps, dates and ISO strings as naive datetimes."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value)
    else:
        raise ConfigurationError(f"Invalid timestamp: {value!r}")
    return parsed.replace(tzinfo=None)

