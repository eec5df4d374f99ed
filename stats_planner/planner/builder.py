"""Assembly of immutable collection jobs."""

import logging
from typing import Dict, Iterable, Optional, Sequence, Tuple

from ..catalog.schema import DataType, Table
from ..datasources.base import ConnectorCapability, ConnectorError
from ..errors import JobBuildError
from .context import PlannerContext
from .jobs import CollectionJob, JobMethod
from .request import AnalyzeMethod, ScheduleKind
from .resolver import ResolvedTarget

logger = logging.getLogger(__name__)


class JobBuilder:
    """Builds fully-resolved jobs from current table metadata.

    Column types always come from the current schema, even when the request
    carried types. Either a complete job is returned or JobBuildError is
    raised.
    """

    def __init__(self, context: PlannerContext):
        self.context = context

    def build_native(
        self,
        target: ResolvedTarget,
        method: AnalyzeMethod,
        schedule: ScheduleKind,
        properties: Dict[str, str],
        partition_ids: Optional[Sequence[int]] = None,
    ) -> CollectionJob:
        """Build a job for a native table.

        Args:
            target: Resolved native table
            method: Collection method after all downgrades
            schedule: Schedule kind of the request
            properties: Properties carried by the job
            partition_ids: Explicit partition subset, None for the default

        Returns:
            Collection job

        Raises:
            JobBuildError: If a requested column no longer exists
        """
        table = target.table
        columns, column_types = resolve_columns(table, target.columns)

        if partition_ids is not None:
            partition_ids = _with_data(table, partition_ids)
        elif method == AnalyzeMethod.FULL:
            partition_ids = tuple(p.id for p in table.partitions_with_data())

        logger.debug(
            f"Statistics job work on table: {target.qualified_name}, type: {method.value}"
        )
        return CollectionJob(
            method=JobMethod.for_native(method),
            db_name=target.database.full_name,
            table_name=table.name,
            db_id=target.database.id,
            table_id=table.id,
            columns=columns,
            column_types=column_types,
            schedule=schedule,
            partition_ids=partition_ids,
            properties=tuple(sorted(properties.items())),
        )

    def build_external(
        self,
        target: ResolvedTarget,
        schedule: ScheduleKind,
        partition_names: Optional[Sequence[str]] = None,
    ) -> CollectionJob:
        """Build a FULL job for a federated table.

        When the connector supports it, the table metadata is refreshed from the
        source catalog first so that columns and partitions reflect schema or
        partition drift.

        Args:
            target: Resolved federated table
            schedule: Schedule kind of the request
            partition_names: Partitions to collect, None for every partition

        Returns:
            Collection job

        Raises:
            JobBuildError: If the refresh or partition listing fails, or a
                requested column no longer exists
        """
        connector = target.connector
        db_name = target.database.full_name
        table = target.table
        if connector.supports_capability(ConnectorCapability.METADATA_REFRESH):
            try:
                table = connector.refresh_table(db_name, table)
            except ConnectorError as exc:
                raise JobBuildError(
                    f"Failed to refresh {target.qualified_name}: {exc}", table.name
                ) from exc

        columns, column_types = resolve_columns(table, target.columns)

        if partition_names is None:
            if table.is_unpartitioned():
                partition_names = (table.name,)
            else:
                try:
                    partition_names = tuple(connector.list_partition_names(db_name, table.name))
                except ConnectorError as exc:
                    raise JobBuildError(
                        f"Failed to list partitions of {target.qualified_name}: {exc}",
                        table.name,
                    ) from exc

        logger.info(
            f"Create external full statistics job for table: {target.qualified_name}, "
            f"partitions: {len(partition_names)}"
        )
        return CollectionJob(
            method=JobMethod.EXTERNAL_FULL,
            db_name=db_name,
            table_name=table.name,
            catalog_name=target.catalog_name,
            columns=columns,
            column_types=column_types,
            schedule=schedule,
            partition_names=tuple(partition_names),
        )


def resolve_columns(
    table: Table, names: Optional[Iterable[str]]
) -> Tuple[Tuple[str, ...], Tuple[DataType, ...]]:
    """Resolve column names and their current types.

    Args:
        table: Table metadata
        names: Requested columns, None or empty for every collectible column

    Returns:
        Tuple of (column names, column types)

    Raises:
        JobBuildError: If a requested column is not in the schema
    """
    if not names:
        collectible = table.collectible_columns()
        return (
            tuple(col.name for col in collectible),
            tuple(col.data_type for col in collectible),
        )

    resolved = []
    for name in names:
        column = table.get_column(name)
        if column is None:
            raise JobBuildError(f"Column '{name}' not found in table {table.name}", table.name)
        resolved.append(column)
    return (
        tuple(col.name for col in resolved),
        tuple(col.data_type for col in resolved),
    )


def _with_data(table: Table, partition_ids: Sequence[int]) -> Tuple[int, ...]:
    with_data = {p.id for p in table.partitions_with_data()}
    return tuple(pid for pid in partition_ids if pid in with_data)
