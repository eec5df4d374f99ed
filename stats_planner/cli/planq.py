"""Command line planner: prints the statistics jobs a request would run."""

from __future__ import annotations

import json
from typing import Dict, List, Optional, Tuple

import click
import pyarrow as pa

from ..catalog.catalog import Catalog
from ..catalog.snapshot import Snapshot, load_snapshot
from ..config import Config, ConnectorConfig, load_config
from ..datasources.base import ExternalConnector
from ..datasources.duckdb import DuckDBConnector
from ..datasources.memory import InMemoryConnector
from ..errors import ConfigurationError
from ..planner import (
    AUTO_COLLECT_INTERVAL,
    AUTO_COLLECT_RATIO,
    EXCLUDE_PATTERN,
    AnalyzeJobRequest,
    AnalyzeMethod,
    CollectJobFactory,
    CollectionJob,
    PlannerContext,
    ScheduleKind,
)
from ..utils.logging import setup_logging

MISSING_ID = -1


def build_jobs_table(jobs: List[CollectionJob]) -> pa.Table:
    """Convert planned jobs into an Arrow table for display."""
    methods = []
    tables = []
    partitions = []
    columns = []
    schedules = []
    for job in jobs:
        methods.append(job.method.value)
        tables.append(job.qualified_name)
        partitions.append(_describe_partitions(job))
        columns.append(", ".join(job.columns))
        schedules.append(job.schedule.value)
    return pa.Table.from_arrays(
        [
            pa.array(methods, type=pa.string()),
            pa.array(tables, type=pa.string()),
            pa.array(partitions, type=pa.string()),
            pa.array(columns, type=pa.string()),
            pa.array(schedules, type=pa.string()),
        ],
        names=["method", "table", "partitions", "columns", "schedule"],
    )


def _describe_partitions(job: CollectionJob) -> str:
    partitions = job.partitions()
    if partitions is None:
        return "all"
    return ", ".join(str(p) for p in partitions)


class JobPrinter:
    """Formats Arrow tables for CLI display."""

    def __init__(self, emit):
        self.emit = emit

    def display(self, table: pa.Table) -> None:
        headers = list(table.schema.names)
        rows = self._build_rows(table)
        for line in self._format_table(headers, rows):
            self.emit(line)
        self.emit(f"{table.num_rows} jobs planned")

    def _build_rows(self, table: pa.Table) -> List[List[str]]:
        columns = [table.column(i).to_pylist() for i in range(table.num_columns)]
        rows = []
        for row_index in range(table.num_rows):
            rows.append([self._stringify_cell(column[row_index]) for column in columns])
        return rows

    def _format_table(self, headers: List[str], rows: List[List[str]]) -> List[str]:
        widths = [len(header) for header in headers]
        for row in rows:
            for index, text in enumerate(row):
                if len(text) > widths[index]:
                    widths[index] = len(text)
        border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"
        lines = [border, self._format_row(headers, widths), border]
        for row in rows:
            lines.append(self._format_row(row, widths))
        lines.append(border)
        return lines

    def _format_row(self, values: List[str], widths: List[int]) -> str:
        cells = [f" {value.ljust(widths[index])} " for index, value in enumerate(values)]
        return "|" + "|".join(cells) + "|"

    def _stringify_cell(self, value: object) -> str:
        if value is None:
            return "NULL"
        return str(value)


def build_request(
    catalog: Catalog,
    catalog_name: Optional[str],
    database: Optional[str],
    table: Optional[str],
    columns: Tuple[str, ...],
    method: AnalyzeMethod,
    schedule: ScheduleKind,
    properties: Dict[str, str],
) -> AnalyzeJobRequest:
    """Translate CLI options into an analyze request.

    Native databases and tables are given by name on the command line and
    looked up by id; a name that does not resolve yields a request that
    plans nothing.
    """
    common = dict(
        method=method,
        schedule=schedule,
        columns=columns or None,
        properties=properties,
    )
    if table and not database:
        raise click.UsageError("--table requires --database")

    if catalog_name:
        if database is None:
            return AnalyzeJobRequest.external_catalog(catalog_name, **common)
        if table is None:
            return AnalyzeJobRequest.external_database(catalog_name, database, **common)
        return AnalyzeJobRequest.external_table(catalog_name, database, table, **common)

    if database is None:
        return AnalyzeJobRequest.all_databases(**common)

    native_db = catalog.get_database_by_name(database)
    db_id = native_db.id if native_db is not None else MISSING_ID
    if table is None:
        return AnalyzeJobRequest.database(db_id, **common)

    native_table = native_db.get_table(table) if native_db is not None else None
    table_id = native_table.id if native_table is not None else MISSING_ID
    return AnalyzeJobRequest.table(db_id, table_id, **common)


def _create_connector(connector_config: ConnectorConfig) -> ExternalConnector:
    if connector_config.type == "duckdb":
        return DuckDBConnector(connector_config.name, connector_config.config)
    if connector_config.type == "memory":
        return InMemoryConnector(connector_config.name, connector_config.config)
    raise ConfigurationError(f"Unsupported connector type: {connector_config.type}")


def _prepare_context(config: Config, snapshot: Snapshot) -> PlannerContext:
    for connector_config in config.connectors.values():
        connector = _create_connector(connector_config)
        connector.ensure_connected()
        snapshot.catalog.register_connector(connector)

    context = PlannerContext(
        catalog=snapshot.catalog,
        stats=snapshot.stats,
        config=config.statistics,
        planner=config.planner,
    )
    if snapshot.now is not None:
        fixed_now = snapshot.now
        context.clock = lambda: fixed_now
    return context


def _close_connectors(catalog: Catalog) -> None:
    for connector in catalog.connectors.values():
        if connector.is_connected():
            connector.disconnect()


def _collect_properties(
    exclude: Optional[str], interval: Optional[str], ratio: Optional[str]
) -> Dict[str, str]:
    properties = {}
    if exclude is not None:
        properties[EXCLUDE_PATTERN] = exclude
    if interval is not None:
        properties[AUTO_COLLECT_INTERVAL] = interval
    if ratio is not None:
        properties[AUTO_COLLECT_RATIO] = ratio
    return properties


@click.command()
@click.option(
    "-s",
    "--snapshot",
    "snapshot_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="YAML metadata snapshot (databases, tables, partitions, stats metas).",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="YAML config file with thresholds and connectors.",
)
@click.option("--catalog", "catalog_name", help="Federated catalog to plan for.")
@click.option("--database", help="Database name; all databases when omitted.")
@click.option("--table", help="Table name; all tables of the database when omitted.")
@click.option("--column", "columns", multiple=True, help="Column to collect (repeatable).")
@click.option(
    "--method",
    type=click.Choice([m.value for m in AnalyzeMethod]),
    default=AnalyzeMethod.FULL.value,
    show_default=True,
)
@click.option(
    "--schedule",
    type=click.Choice([s.value for s in ScheduleKind]),
    default=ScheduleKind.ONCE.value,
    show_default=True,
)
@click.option("--exclude", help="Regex of db.table names to leave out.")
@click.option("--interval", help="Override of the collection interval in seconds.")
@click.option("--ratio", help="Override of the collect health ratio (0-1).")
@click.option("--json", "as_json", is_flag=True, help="Print jobs as JSON.")
@click.option("--log-level", help="Logging level, overrides the config file.")
def cli(
    snapshot_path: str,
    config_path: Optional[str],
    catalog_name: Optional[str],
    database: Optional[str],
    table: Optional[str],
    columns: Tuple[str, ...],
    method: str,
    schedule: str,
    exclude: Optional[str],
    interval: Optional[str],
    ratio: Optional[str],
    as_json: bool,
    log_level: Optional[str],
) -> None:
    """Plan statistics collection jobs against a metadata snapshot."""
    try:
        config = load_config(config_path) if config_path else Config()
        snapshot = load_snapshot(snapshot_path)
    except ConfigurationError as exc:
        raise click.UsageError(str(exc))

    setup_logging(
        level=log_level or config.logging.level,
        structured=config.logging.structured,
        log_file=config.logging.log_file,
    )

    try:
        context = _prepare_context(config, snapshot)
        request = build_request(
            snapshot.catalog,
            catalog_name,
            database,
            table,
            columns,
            AnalyzeMethod(method),
            ScheduleKind(schedule),
            _collect_properties(exclude, interval, ratio),
        )
        jobs = CollectJobFactory(context).build_jobs(request)
    except ConfigurationError as exc:
        raise click.UsageError(str(exc))
    finally:
        _close_connectors(snapshot.catalog)

    if as_json:
        click.echo(json.dumps([job.to_dict() for job in jobs], indent=2))
        return
    JobPrinter(click.echo).display(build_jobs_table(jobs))
