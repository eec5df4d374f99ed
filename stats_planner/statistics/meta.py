"""Statistics metadata records read by the planner."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class BasicStatsMeta:
    """Table-level statistics metadata for a native table.

    ``healthy`` is the fraction of rows estimated unchanged since the last
    collection. An init meta stands for a table that was never really
    collected; its update time is treated as ``datetime.min``.
    """

    db_id: int
    table_id: int
    update_time: datetime
    healthy: float = 1.0
    is_init: bool = False

    @property
    def watermark(self) -> datetime:
        if self.is_init:
            return datetime.min
        return self.update_time


@dataclass(frozen=True)
class HistogramStatsMeta:
    """Histogram metadata for one analyzed column of a native table."""

    db_id: int
    table_id: int
    column: str
    update_time: datetime
    is_init: bool = False

    @property
    def watermark(self) -> datetime:
        if self.is_init:
            return datetime.min
        return self.update_time


@dataclass(frozen=True)
class ExternalBasicStatsMeta:
    """Table-level statistics metadata for a federated table."""

    catalog_name: str
    db_name: str
    table_name: str
    update_time: datetime


@dataclass(frozen=True)
class ConnectorColumnStats:
    """Column statistics previously collected for a federated table."""

    column: str
    row_count: Optional[int] = None

    @property
    def is_unknown(self) -> bool:
        return self.row_count is None
