"""Incremental partition selection for FULL collection."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..config.config import StatisticsConfig
from ..datasources.base import ConnectorCapability, ConnectorError
from .request import AnalyzeMethod
from .resolver import ResolvedTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NativeSelection:
    """Partitions chosen for a native FULL request and the method to use."""

    partition_ids: Tuple[int, ...]
    method: AnalyzeMethod


class PartitionSelector:
    """Restricts FULL collection to partitions changed since the watermark."""

    def __init__(self, config: StatisticsConfig):
        self.config = config

    def select_native(
        self, target: ResolvedTarget, watermark: datetime
    ) -> Optional[NativeSelection]:
        """Select changed partitions of a native table.

        Args:
            target: Resolved native table
            watermark: Last successful collection, ``datetime.min`` if never

        Returns:
            Selection, or None when no partition with data changed. The method
            is downgraded to SAMPLE when any selected partition is larger than
            ``max_full_collect_data_size``; the partition set stays the same.
        """
        table = target.table
        selected = []
        for partition in table.partitions:
            if partition.has_data and partition.update_time > watermark:
                selected.append(partition)

        if not selected:
            logger.debug(f"No partition of {target.qualified_name} changed after {watermark}")
            return None

        limit = self.config.max_full_collect_data_size
        method = AnalyzeMethod.FULL
        if any(partition.data_size > limit for partition in selected):
            method = AnalyzeMethod.SAMPLE
            logger.debug(
                f"Statistics job choose sample on table: {target.qualified_name}, "
                f"partition data size greater than config: {limit}"
            )

        return NativeSelection(
            partition_ids=tuple(partition.id for partition in selected),
            method=method,
        )

    def select_external(
        self, target: ResolvedTarget, watermark: datetime
    ) -> Optional[Tuple[str, ...]]:
        """Select changed partitions of a federated table by name.

        Args:
            target: Resolved federated table
            watermark: Last successful collection, ``datetime.min`` if never

        Returns:
            Changed partition names, or None to cover every partition when
            the connector cannot track changes
        """
        connector = target.connector
        if not connector.supports_capability(ConnectorCapability.PARTITION_CHANGE_TRACKING):
            logger.info(
                f"Catalog {target.catalog_name} does not track partition changes, "
                f"collecting all partitions of {target.qualified_name}"
            )
            return None

        try:
            changed = connector.get_changed_partitions(
                target.database.full_name,
                target.table,
                watermark,
                self.config.external_partition_tolerance_seconds,
            )
        except ConnectorError as exc:
            logger.warning(
                f"Partition change lookup failed for {target.qualified_name}, "
                f"collecting all partitions: {exc}"
            )
            return None

        if changed is None:
            logger.info(
                f"Catalog {target.catalog_name} cannot track partition changes of "
                f"{target.qualified_name}, collecting all partitions"
            )
            return None
        return tuple(sorted(changed))
