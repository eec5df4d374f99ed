"""Per-table staleness signals."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..datasources.base import ConnectorCapability
from ..statistics.meta import BasicStatsMeta, HistogramStatsMeta
from .context import PlannerContext
from .request import AnalyzeMethod
from .resolver import ResolvedTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Staleness:
    """What the planner knows about a table's freshness.

    Attributes:
        table_update_time: Latest data change, None when it cannot be derived
        stats_update_time: Watermark of the last successful collection,
            ``datetime.min`` for init tables
        is_init: No real collection has ever completed
        has_stats_meta: Whether any stats meta was recorded at all
        healthy: Health ratio of the basic stats, 0.0 when unknown
        changed_data_size: Bytes in partitions changed after the watermark
            (native tables only)
        row_count: Row count known from collected column statistics
            (federated tables only)
    """

    table_update_time: Optional[datetime]
    stats_update_time: datetime
    is_init: bool
    has_stats_meta: bool = False
    healthy: float = 0.0
    changed_data_size: int = 0
    row_count: Optional[int] = None


class StalenessEvaluator:
    """Derives watermarks from table metadata and the stats store."""

    def __init__(self, context: PlannerContext):
        self.context = context

    def evaluate(self, target: ResolvedTarget, method: AnalyzeMethod) -> Staleness:
        """Evaluate a target for the requested method.

        Args:
            target: Resolved table target
            method: Requested analyze method

        Returns:
            Staleness signals for the table
        """
        if target.is_external:
            return self._evaluate_external(target)
        return self._evaluate_native(target, method)

    def _evaluate_native(self, target: ResolvedTarget, method: AnalyzeMethod) -> Staleness:
        table = target.table
        stats = self.context.stats
        basic_meta = stats.get_basic_stats_meta(table.id)

        if method == AnalyzeMethod.HISTOGRAM:
            histogram_metas = self._select_histograms(
                stats.get_histogram_metas(table.id), target.columns
            )
            watermark, is_init = _histogram_watermark(histogram_metas)
            has_meta = bool(histogram_metas)
        else:
            watermark, is_init = _basic_watermark(basic_meta)
            has_meta = basic_meta is not None

        return Staleness(
            table_update_time=table.last_update_time(),
            stats_update_time=watermark,
            is_init=is_init,
            has_stats_meta=has_meta,
            healthy=basic_meta.healthy if basic_meta is not None else 0.0,
            changed_data_size=_changed_data_size(target, watermark),
        )

    def _select_histograms(
        self, metas: List[HistogramStatsMeta], columns
    ) -> List[HistogramStatsMeta]:
        if not columns:
            return metas
        wanted = {column.lower() for column in columns}
        return [meta for meta in metas if meta.column.lower() in wanted]

    def _evaluate_external(self, target: ResolvedTarget) -> Staleness:
        db_name = target.database.full_name
        meta = self.context.stats.get_external_basic_stats_meta(
            target.catalog_name, db_name, target.table.name
        )
        if meta is None:
            return Staleness(
                table_update_time=None,
                stats_update_time=datetime.min,
                is_init=True,
            )

        return Staleness(
            table_update_time=self._source_update_time(target),
            stats_update_time=meta.update_time,
            is_init=False,
            has_stats_meta=True,
            row_count=self._known_row_count(target),
        )

    def _source_update_time(self, target: ResolvedTarget) -> Optional[datetime]:
        """Ask the connector for the table update time; failures mean unknown."""
        connector = target.connector
        if not connector.supports_capability(ConnectorCapability.TABLE_UPDATE_TIME):
            return None
        try:
            return connector.get_table_update_time(target.database.full_name, target.table)
        except Exception as exc:
            logger.warning(
                f"Could not read update time of {target.qualified_name} "
                f"from catalog {target.catalog_name}: {exc}"
            )
            return None

    def _known_row_count(self, target: ResolvedTarget) -> Optional[int]:
        """Row count from collected column statistics; failures mean unknown."""
        columns = target.columns
        if not columns:
            columns = tuple(col.name for col in target.table.collectible_columns())
        try:
            column_stats = self.context.stats.get_connector_column_statistics(
                target.catalog_name, target.database.full_name, target.table, columns
            )
        except Exception as exc:
            logger.warning(
                f"Could not read column statistics of {target.qualified_name} "
                f"from catalog {target.catalog_name}: {exc}"
            )
            return None
        for stats in column_stats:
            if not stats.is_unknown:
                return stats.row_count
        return None


def _basic_watermark(meta: Optional[BasicStatsMeta]):
    if meta is None:
        return datetime.min, True
    return meta.watermark, meta.is_init


def _histogram_watermark(metas: List[HistogramStatsMeta]):
    if not metas:
        return datetime.min, True
    watermark = min(meta.watermark for meta in metas)
    is_init = any(meta.is_init for meta in metas)
    return watermark, is_init


def _changed_data_size(target: ResolvedTarget, watermark: datetime) -> int:
    total = 0
    for partition in target.table.partitions:
        if partition.update_time > watermark:
            total += partition.data_size
    return total
