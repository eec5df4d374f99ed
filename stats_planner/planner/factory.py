"""Planning entry point: from an analyze request to collection jobs."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..errors import TableEvaluationError, UnknownAnalyzeMethodError
from ..utils.logging import PlanningLogger, get_request_logger
from .builder import JobBuilder
from .context import PlannerContext
from .jobs import CollectionJob
from .partitions import PartitionSelector
from .policy import CollectPolicy, Decision
from .request import AnalyzeJobRequest, AnalyzeMethod, RequestOverrides
from .resolver import ResolvedTarget, TargetResolver
from .staleness import Staleness, StalenessEvaluator

logger = logging.getLogger(__name__)


class CollectJobFactory:
    """Plans statistics collection jobs for analyze requests.

    Planning only reads metadata, so calling ``build_jobs`` repeatedly on
    unchanged metadata returns equal job lists.
    """

    def __init__(self, context: PlannerContext):
        """Initialize factory.

        Args:
            context: Planner collaborators
        """
        self.context = context
        self.resolver = TargetResolver(context)
        self.evaluator = StalenessEvaluator(context)
        self.policy = CollectPolicy(context)
        self.selector = PartitionSelector(context.config)
        self.builder = JobBuilder(context)

    def build_jobs(self, request: AnalyzeJobRequest) -> List[CollectionJob]:
        """Plan the jobs for a request.

        Args:
            request: Analyze job request

        Returns:
            Jobs in resolution order, possibly empty

        Raises:
            ConfigurationError: If a property override is invalid
        """
        overrides = RequestOverrides.from_properties(request.properties)
        request_logger = get_request_logger(__name__, request.describe())

        targets = self.resolver.resolve(request, overrides)
        planned = self._plan_targets(request, overrides, targets, request_logger)

        jobs = []
        for target_jobs in planned:
            jobs.extend(target_jobs)
        request_logger.info(
            f"Planned {len(jobs)} statistics jobs over {len(targets)} candidate tables"
        )
        return jobs

    def _plan_targets(
        self,
        request: AnalyzeJobRequest,
        overrides: RequestOverrides,
        targets: List[ResolvedTarget],
        request_logger: PlanningLogger,
    ) -> List[List[CollectionJob]]:
        workers = self.context.planner.max_workers
        if workers <= 1 or len(targets) <= 1:
            return [
                self._plan_target(request, overrides, target, request_logger)
                for target in targets
            ]

        # map() yields in submission order, which keeps resolution order
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="stats-planner") as pool:
            return list(
                pool.map(
                    lambda target: self._plan_target(request, overrides, target, request_logger),
                    targets,
                )
            )

    def _plan_target(
        self,
        request: AnalyzeJobRequest,
        overrides: RequestOverrides,
        target: ResolvedTarget,
        request_logger: PlanningLogger,
    ) -> List[CollectionJob]:
        try:
            job = self._plan_table(request, overrides, target)
        except TableEvaluationError:
            request_logger.for_table(target.qualified_name).exception(
                f"Failed to plan statistics job for table {target.qualified_name}"
            )
            return []
        if job is None:
            return []
        return [job]

    def _plan_table(
        self,
        request: AnalyzeJobRequest,
        overrides: RequestOverrides,
        target: ResolvedTarget,
    ) -> Optional[CollectionJob]:
        method = request.method
        if not isinstance(method, AnalyzeMethod):
            raise UnknownAnalyzeMethodError(
                f"Unknown analyze method {method!r}", target.table.name
            )

        if target.is_external and method != AnalyzeMethod.FULL:
            logger.warning(
                f"Do not support analyze method: {method.value} "
                f"for external table: {target.qualified_name}"
            )
            return None

        staleness = self.evaluator.evaluate(target, method)
        decision = self.policy.decide(target, staleness, method, overrides)
        if not decision.collect:
            return None

        if target.is_external:
            return self._external_job(request, target, staleness)
        return self._native_job(request, target, staleness, decision)

    def _native_job(
        self,
        request: AnalyzeJobRequest,
        target: ResolvedTarget,
        staleness: Staleness,
        decision: Decision,
    ) -> Optional[CollectionJob]:
        if not decision.select_partitions:
            return self.builder.build_native(
                target, decision.method, request.schedule, request.properties
            )

        selection = self.selector.select_native(target, staleness.stats_update_time)
        if selection is None:
            return None
        return self.builder.build_native(
            target,
            selection.method,
            request.schedule,
            {},
            partition_ids=selection.partition_ids,
        )

    def _external_job(
        self,
        request: AnalyzeJobRequest,
        target: ResolvedTarget,
        staleness: Staleness,
    ) -> Optional[CollectionJob]:
        partitions = self.selector.select_external(target, staleness.stats_update_time)
        if partitions is not None and not partitions:
            logger.info(
                f"No partition of {target.qualified_name} changed after "
                f"{staleness.stats_update_time}"
            )
            return None
        return self.builder.build_external(target, request.schedule, partitions)


def build_collect_jobs(
    request: AnalyzeJobRequest, context: PlannerContext
) -> List[CollectionJob]:
    """Plan the jobs for a request with a one-off factory."""
    return CollectJobFactory(context).build_jobs(request)
