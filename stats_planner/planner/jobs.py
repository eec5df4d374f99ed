"""Collection job descriptors produced by the planner."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..catalog.schema import DataType
from .request import AnalyzeMethod, ScheduleKind


class JobMethod(Enum):
    """How the executor collects statistics for a job."""

    SAMPLE = "sample"
    HISTOGRAM = "histogram"
    FULL = "full"
    EXTERNAL_FULL = "external_full"

    @classmethod
    def for_native(cls, method: AnalyzeMethod) -> "JobMethod":
        return cls(method.value)


@dataclass(frozen=True)
class CollectionJob:
    """Immutable, fully-resolved statistics collection job.

    ``partition_ids`` (native) and ``partition_names`` (federated) are None
    when the job covers every partition of the table.
    """

    method: JobMethod
    db_name: str
    table_name: str
    columns: Tuple[str, ...]
    column_types: Tuple[DataType, ...]
    schedule: ScheduleKind
    db_id: Optional[int] = None
    table_id: Optional[int] = None
    catalog_name: Optional[str] = None
    partition_ids: Optional[Tuple[int, ...]] = None
    partition_names: Optional[Tuple[str, ...]] = None
    properties: Tuple[Tuple[str, str], ...] = ()

    @property
    def is_external(self) -> bool:
        return self.catalog_name is not None

    @property
    def qualified_name(self) -> str:
        name = f"{self.db_name}.{self.table_name}"
        if self.catalog_name:
            return f"{self.catalog_name}.{name}"
        return name

    def property_map(self) -> Dict[str, str]:
        return dict(self.properties)

    def partitions(self) -> Optional[Tuple[Any, ...]]:
        """Partition identities covered by the job, None for all partitions."""
        if self.is_external:
            return self.partition_names
        return self.partition_ids

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view of the job."""
        partitions = self.partitions()
        return {
            "method": self.method.value,
            "catalog": self.catalog_name,
            "database": self.db_name,
            "table": self.table_name,
            "partitions": list(partitions) if partitions is not None else None,
            "columns": list(self.columns),
            "column_types": [t.value for t in self.column_types],
            "schedule": self.schedule.value,
            "properties": self.property_map(),
        }

    def __repr__(self) -> str:
        return f"CollectionJob({self.method.value}, {self.qualified_name})"
