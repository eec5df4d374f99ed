"""Statistics collection planning."""

from .context import PlannerContext
from .factory import CollectJobFactory, build_collect_jobs
from .jobs import CollectionJob, JobMethod
from .request import (
    AUTO_COLLECT_INTERVAL,
    AUTO_COLLECT_RATIO,
    EXCLUDE_PATTERN,
    AnalyzeJobRequest,
    AnalyzeMethod,
    AnalyzeScope,
    RequestOverrides,
    ScheduleKind,
)
from .resolver import ResolvedTarget, TargetResolver

__all__ = [
    "AUTO_COLLECT_INTERVAL",
    "AUTO_COLLECT_RATIO",
    "EXCLUDE_PATTERN",
    "AnalyzeJobRequest",
    "AnalyzeMethod",
    "AnalyzeScope",
    "CollectJobFactory",
    "CollectionJob",
    "JobMethod",
    "PlannerContext",
    "RequestOverrides",
    "ResolvedTarget",
    "ScheduleKind",
    "TargetResolver",
    "build_collect_jobs",
]
