"""Statistics metadata consumed by the planner."""

from .meta import (
    BasicStatsMeta,
    ConnectorColumnStats,
    ExternalBasicStatsMeta,
    HistogramStatsMeta,
)
from .store import InMemoryStatsMetaStore, StatsMetaStore

__all__ = [
    "BasicStatsMeta",
    "ConnectorColumnStats",
    "ExternalBasicStatsMeta",
    "HistogramStatsMeta",
    "InMemoryStatsMetaStore",
    "StatsMetaStore",
]
