"""Health and threshold gates deciding whether a table gets a job.

The gates run in a fixed order and the first one that trips suppresses
collection for the table:

1. freshness: the table changed after the last collection
2. rate limit: enough time elapsed since the last collection
3. health (native SAMPLE/FULL only): the health ratio dropped to the
   collect ratio, with a forced SAMPLE for large, quickly changing tables

Tables that were never collected bypass every gate.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from ..config.config import StatisticsConfig
from .context import PlannerContext
from .request import AnalyzeMethod, RequestOverrides
from .resolver import ResolvedTarget
from .staleness import Staleness

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    """Outcome of the gates for one table.

    ``select_partitions`` is set when the job must be restricted to the
    partitions changed since the watermark.
    """

    collect: bool
    reason: str
    method: Optional[AnalyzeMethod] = None
    select_partitions: bool = False

    @classmethod
    def skip(cls, reason: str) -> "Decision":
        return cls(collect=False, reason=reason)

    @classmethod
    def proceed(cls, method: AnalyzeMethod, reason: str) -> "Decision":
        return cls(
            collect=True,
            reason=reason,
            method=method,
            select_partitions=method == AnalyzeMethod.FULL,
        )


class CollectPolicy:
    """Applies the collection gates to native and federated tables."""

    def __init__(self, context: PlannerContext):
        self.context = context

    @property
    def config(self) -> StatisticsConfig:
        return self.context.config

    def decide(
        self,
        target: ResolvedTarget,
        staleness: Staleness,
        method: AnalyzeMethod,
        overrides: RequestOverrides,
    ) -> Decision:
        """Run the gates for a table.

        Args:
            target: Resolved table target
            staleness: Staleness signals of the table
            method: Requested analyze method
            overrides: Parsed request overrides

        Returns:
            Decision to skip the table or collect with a given method
        """
        if staleness.is_init:
            return Decision.proceed(method, "never collected")
        if target.is_external:
            return self._decide_external(target, staleness, method, overrides)
        return self._decide_native(target, staleness, method, overrides)

    def _decide_native(
        self,
        target: ResolvedTarget,
        staleness: Staleness,
        method: AnalyzeMethod,
        overrides: RequestOverrides,
    ) -> Decision:
        name = target.qualified_name
        if not self._changed_since_collection(staleness):
            logger.debug(
                f"Statistics job doesn't work on non-update table: {name}, "
                f"last update time: {staleness.table_update_time}, "
                f"last collect time: {staleness.stats_update_time}"
            )
            return Decision.skip("no update since last collection")

        interval = self.native_interval(staleness, method, overrides)
        if self._too_soon(staleness, interval):
            logger.debug(
                f"Statistics job doesn't work on the interval table: {name}, "
                f"last collect time: {staleness.stats_update_time}, interval: {interval}s, "
                f"changed size: {_to_mb(staleness.changed_data_size)}MB"
            )
            return Decision.skip("collection interval not elapsed")

        if method == AnalyzeMethod.HISTOGRAM:
            return Decision.proceed(method, "histogram due")

        ratio = self._collect_ratio(overrides)
        healthy = staleness.healthy
        if healthy > ratio:
            logger.debug(
                f"Statistics job doesn't work on health table: {name}, "
                f"healthy: {healthy}, collect healthy limit: <{ratio}"
            )
            return Decision.skip("statistics healthy")

        if (
            healthy < self.config.sample_threshold
            and staleness.changed_data_size > self.config.small_table_size
        ):
            logger.debug(
                f"Statistics job choose sample on real-time update table: {name}, "
                f"healthy: {healthy}, sample threshold: {self.config.sample_threshold}, "
                f"changed size: {_to_mb(staleness.changed_data_size)}MB"
            )
            return Decision(
                collect=True,
                reason="large unhealthy table, sampling",
                method=AnalyzeMethod.SAMPLE,
            )

        logger.debug(
            f"Statistics job work on un-health table: {name}, healthy: {healthy}, "
            f"method: {getattr(method, 'value', method)}"
        )
        return Decision.proceed(method, "statistics unhealthy")

    def _decide_external(
        self,
        target: ResolvedTarget,
        staleness: Staleness,
        method: AnalyzeMethod,
        overrides: RequestOverrides,
    ) -> Decision:
        name = target.qualified_name
        if not self._changed_since_collection(staleness):
            logger.info(
                f"Statistics job doesn't work on non-update table: {name}, "
                f"last update time: {staleness.table_update_time}, "
                f"last collect time: {staleness.stats_update_time}"
            )
            return Decision.skip("no update since last collection")

        row_count = staleness.row_count
        if row_count is None:
            row_count = self.config.small_table_rows - 1
        interval = self.external_interval(row_count, overrides)
        if self._too_soon(staleness, interval):
            logger.info(
                f"Statistics job doesn't work on the interval table: {name}, "
                f"last collect time: {staleness.stats_update_time}, interval: {interval}s, "
                f"table rows: {row_count}"
            )
            return Decision.skip("collection interval not elapsed")

        return Decision.proceed(method, "collection due")

    def native_interval(
        self,
        staleness: Staleness,
        method: AnalyzeMethod,
        overrides: RequestOverrides,
    ) -> int:
        """Minimum seconds between two collections of a native table."""
        if overrides.interval_seconds is not None:
            return overrides.interval_seconds
        if method == AnalyzeMethod.HISTOGRAM:
            return self.config.histogram_interval
        if staleness.changed_data_size > self.config.small_table_size:
            return self.config.large_table_interval
        return self.config.small_table_interval

    def external_interval(self, row_count: int, overrides: RequestOverrides) -> int:
        """Minimum seconds between two collections of a federated table."""
        if overrides.interval_seconds is not None:
            return overrides.interval_seconds
        if row_count < self.config.small_table_rows:
            return self.config.small_table_interval
        return self.config.large_table_interval

    def _collect_ratio(self, overrides: RequestOverrides) -> float:
        if overrides.collect_ratio is not None:
            return overrides.collect_ratio
        return self.config.auto_collect_ratio

    def _changed_since_collection(self, staleness: Staleness) -> bool:
        # An unknown update time leaves the decision to the interval gate
        if staleness.table_update_time is None:
            return True
        return staleness.table_update_time > staleness.stats_update_time

    def _too_soon(self, staleness: Staleness, interval: int) -> bool:
        elapsed = self.context.now() - staleness.stats_update_time
        return elapsed < timedelta(seconds=interval)


def _to_mb(size: int) -> int:
    return size // (1024 * 1024)
