"""Collaborators shared by every stage of a planning run."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..catalog.catalog import MetadataProvider
from ..config.config import PlannerConfig, StatisticsConfig
from ..statistics.store import StatsMetaStore


@dataclass
class PlannerContext:
    """Read-only collaborators the planner consults.

    Attributes:
        catalog: Native metadata and registered federated connectors
        stats: Recorded statistics metadata
        config: Collection thresholds
        planner: Planning run settings
        clock: Returns the current time; replaced by a fixed clock in tests
    """

    catalog: MetadataProvider
    stats: StatsMetaStore
    config: StatisticsConfig = field(default_factory=StatisticsConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    clock: Callable[[], datetime] = datetime.now

    def now(self) -> datetime:
        return self.clock()
