"""Expansion of analyze requests into concrete table targets."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..catalog.schema import DataType, Database, Table, TableState
from ..datasources.base import ConnectorError, ExternalConnector
from .context import PlannerContext
from .request import AnalyzeJobRequest, AnalyzeScope, RequestOverrides

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTarget:
    """One table a request applies to, with the columns it asked for."""

    database: Database
    table: Table
    columns: Optional[Tuple[str, ...]] = None
    column_types: Optional[Tuple[DataType, ...]] = None
    catalog_name: Optional[str] = None
    connector: Optional[ExternalConnector] = None

    @property
    def is_external(self) -> bool:
        return self.catalog_name is not None

    @property
    def qualified_name(self) -> str:
        return f"{self.database.full_name}.{self.table.name}"


class TargetResolver:
    """Resolves the scope of a request against the catalog.

    Dropped databases and tables narrow the result instead of raising.
    """

    def __init__(self, context: PlannerContext):
        """Initialize resolver.

        Args:
            context: Planner collaborators
        """
        self.context = context

    def resolve(
        self, request: AnalyzeJobRequest, overrides: RequestOverrides
    ) -> List[ResolvedTarget]:
        """Expand a request into table targets in catalog order.

        Args:
            request: Analyze job request
            overrides: Parsed request overrides (exclusion pattern)

        Returns:
            Targets that passed every eligibility filter
        """
        if request.is_external:
            candidates = self._resolve_external(request)
        else:
            candidates = self._resolve_native(request)

        targets = []
        for target in candidates:
            if self._is_eligible(target, overrides):
                targets.append(target)
        return targets

    def _resolve_native(self, request: AnalyzeJobRequest) -> List[ResolvedTarget]:
        catalog = self.context.catalog
        candidates: List[ResolvedTarget] = []

        if request.scope == AnalyzeScope.ALL_DATABASES:
            for db_id in catalog.list_database_ids():
                database = catalog.get_database(db_id)
                if database is None or self.context.config.is_blacklisted(database.full_name):
                    continue
                for table in catalog.get_tables(db_id):
                    candidates.append(ResolvedTarget(database, table))
            return candidates

        database = catalog.get_database(request.db_id)
        if database is None:
            logger.debug(f"Database {request.db_id} no longer exists, nothing to plan")
            return candidates

        if request.scope == AnalyzeScope.ALL_TABLES:
            for table in catalog.get_tables(database.id):
                candidates.append(ResolvedTarget(database, table))
            return candidates

        table = catalog.get_table(database.id, request.table_id)
        if table is None:
            logger.debug(
                f"Table {request.table_id} in {database.full_name} no longer exists"
            )
            return candidates
        candidates.append(
            ResolvedTarget(database, table, request.columns, request.column_types)
        )
        return candidates

    def _resolve_external(self, request: AnalyzeJobRequest) -> List[ResolvedTarget]:
        catalog_name = request.catalog_name
        connector = self.context.catalog.get_connector(catalog_name)
        candidates: List[ResolvedTarget] = []
        if connector is None:
            logger.warning(f"No connector registered for catalog '{catalog_name}'")
            return candidates

        if request.scope == AnalyzeScope.ALL_DATABASES:
            for db_name in connector.list_database_names():
                database = connector.get_database(db_name)
                if database is None or self.context.config.is_blacklisted(database.full_name):
                    continue
                candidates.extend(self._external_tables(connector, database))
            return candidates

        database = connector.get_database(request.db_name)
        if database is None:
            return candidates

        if request.scope == AnalyzeScope.ALL_TABLES:
            return self._external_tables(connector, database)

        table = connector.get_table(database.full_name, request.table_name)
        if table is None:
            return candidates
        candidates.append(
            ResolvedTarget(
                database,
                table,
                request.columns,
                request.column_types,
                catalog_name=catalog_name,
                connector=connector,
            )
        )
        return candidates

    def _external_tables(
        self, connector: ExternalConnector, database: Database
    ) -> List[ResolvedTarget]:
        targets = []
        for table_name in connector.list_table_names(database.full_name):
            try:
                table = connector.get_table(database.full_name, table_name)
            except ConnectorError as exc:
                logger.warning(
                    f"Skipping {database.full_name}.{table_name} in catalog "
                    f"{connector.name}: {exc}"
                )
                continue
            if table is None:
                continue
            targets.append(
                ResolvedTarget(
                    database, table, catalog_name=connector.name, connector=connector
                )
            )
        return targets

    def _is_eligible(self, target: ResolvedTarget, overrides: RequestOverrides) -> bool:
        """Apply the per-table filters shared by native and federated targets."""
        table = target.table
        if not target.is_external and not table.is_native_storage():
            return False
        if table.state != TableState.NORMAL:
            logger.debug(f"Skipping {target.qualified_name}: state {table.state.value}")
            return False
        if table.is_temporary and not self.context.config.enable_temporary_table_collect:
            logger.debug(f"Skipping temporary table {target.qualified_name}")
            return False
        if table.is_empty():
            return False
        if overrides.is_excluded(target.qualified_name):
            logger.debug(
                f"Exclude pattern {overrides.exclude_pattern.pattern} hit table "
                f"{target.qualified_name}"
            )
            return False
        return True
