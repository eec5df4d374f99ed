"""Statistics metadata store interface and in-memory implementation."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from ..catalog.schema import Table
from .meta import (
    BasicStatsMeta,
    ConnectorColumnStats,
    ExternalBasicStatsMeta,
    HistogramStatsMeta,
)


class StatsMetaStore(ABC):
    """Read-only lookup of recorded statistics metadata."""

    @abstractmethod
    def get_basic_stats_meta(self, table_id: int) -> Optional[BasicStatsMeta]:
        """Get table-level stats meta of a native table.

        Args:
            table_id: Native table id

        Returns:
            Meta if the table was ever scheduled for collection, None otherwise
        """
        pass

    @abstractmethod
    def get_histogram_metas(self, table_id: int) -> List[HistogramStatsMeta]:
        """Get histogram metas of every analyzed column of a native table."""
        pass

    @abstractmethod
    def get_external_basic_stats_meta(
        self, catalog_name: str, db_name: str, table_name: str
    ) -> Optional[ExternalBasicStatsMeta]:
        """Get table-level stats meta of a federated table."""
        pass

    @abstractmethod
    def get_connector_column_statistics(
        self,
        catalog_name: str,
        db_name: str,
        table: Table,
        columns: Sequence[str],
    ) -> List[ConnectorColumnStats]:
        """Get collected column statistics of a federated table.

        Args:
            catalog_name: Catalog name
            db_name: Database name
            table: Table metadata
            columns: Columns to look up

        Returns:
            One entry per requested column, unknown entries for columns
            that have no statistics
        """
        pass


class InMemoryStatsMetaStore(StatsMetaStore):
    """Stats metadata held in dictionaries."""

    def __init__(self):
        self.basic: Dict[int, BasicStatsMeta] = {}
        self.histograms: Dict[int, Dict[str, HistogramStatsMeta]] = {}
        self.external: Dict[Tuple[str, str, str], ExternalBasicStatsMeta] = {}
        self.column_stats: Dict[Tuple[str, str, str], Dict[str, ConnectorColumnStats]] = {}

    def add_basic_stats_meta(self, meta: BasicStatsMeta) -> None:
        self.basic[meta.table_id] = meta

    def add_histogram_meta(self, meta: HistogramStatsMeta) -> None:
        self.histograms.setdefault(meta.table_id, {})[meta.column.lower()] = meta

    def add_external_basic_stats_meta(self, meta: ExternalBasicStatsMeta) -> None:
        key = _external_key(meta.catalog_name, meta.db_name, meta.table_name)
        self.external[key] = meta

    def add_connector_column_stats(
        self, catalog_name: str, db_name: str, table_name: str, stats: ConnectorColumnStats
    ) -> None:
        key = _external_key(catalog_name, db_name, table_name)
        self.column_stats.setdefault(key, {})[stats.column.lower()] = stats

    def get_basic_stats_meta(self, table_id: int) -> Optional[BasicStatsMeta]:
        return self.basic.get(table_id)

    def get_histogram_metas(self, table_id: int) -> List[HistogramStatsMeta]:
        return list(self.histograms.get(table_id, {}).values())

    def get_external_basic_stats_meta(
        self, catalog_name: str, db_name: str, table_name: str
    ) -> Optional[ExternalBasicStatsMeta]:
        return self.external.get(_external_key(catalog_name, db_name, table_name))

    def get_connector_column_statistics(
        self,
        catalog_name: str,
        db_name: str,
        table: Table,
        columns: Sequence[str],
    ) -> List[ConnectorColumnStats]:
        recorded = self.column_stats.get(
            _external_key(catalog_name, db_name, table.name), {}
        )
        result = []
        for column in columns:
            stats = recorded.get(column.lower())
            if stats is None:
                stats = ConnectorColumnStats(column=column)
            result.append(stats)
        return result

    def __repr__(self) -> str:
        return (
            f"InMemoryStatsMetaStore(basic={len(self.basic)}, "
            f"external={len(self.external)})"
        )


def _external_key(catalog_name: str, db_name: str, table_name: str) -> Tuple[str, str, str]:
    return (catalog_name, db_name.lower(), table_name.lower())
