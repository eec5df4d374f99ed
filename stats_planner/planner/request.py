"""Analyze job requests and their per-request overrides."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Pattern, Tuple

from ..catalog.schema import DataType
from ..errors import ConfigurationError

EXCLUDE_PATTERN = "statistic_exclude_pattern"
AUTO_COLLECT_INTERVAL = "statistic_auto_collect_interval"
AUTO_COLLECT_RATIO = "statistic_auto_collect_ratio"


class AnalyzeMethod(Enum):
    """Collection method requested by an analyze job."""

    SAMPLE = "sample"
    HISTOGRAM = "histogram"
    FULL = "full"

    @property
    def uses_basic_stats(self) -> bool:
        return self in (AnalyzeMethod.SAMPLE, AnalyzeMethod.FULL)


class ScheduleKind(Enum):
    """Whether the job runs once or on the background schedule."""

    ONCE = "once"
    SCHEDULE = "schedule"


class AnalyzeScope(Enum):
    """How far an analyze request fans out."""

    ALL_DATABASES = "all_databases"
    ALL_TABLES = "all_tables"
    SINGLE_TABLE = "single_table"


@dataclass(frozen=True)
class AnalyzeJobRequest:
    """A request to plan statistics collection.

    Native requests identify databases and tables by id. Federated requests
    set ``catalog_name`` and identify databases and tables by name.
    """

    scope: AnalyzeScope
    method: AnalyzeMethod = AnalyzeMethod.FULL
    schedule: ScheduleKind = ScheduleKind.SCHEDULE
    db_id: Optional[int] = None
    table_id: Optional[int] = None
    catalog_name: Optional[str] = None
    db_name: Optional[str] = None
    table_name: Optional[str] = None
    columns: Optional[Tuple[str, ...]] = None
    column_types: Optional[Tuple[DataType, ...]] = None
    properties: Dict[str, str] = field(default_factory=dict)

    @property
    def is_external(self) -> bool:
        return self.catalog_name is not None

    @classmethod
    def all_databases(cls, **kwargs) -> "AnalyzeJobRequest":
        return cls(scope=AnalyzeScope.ALL_DATABASES, **kwargs)

    @classmethod
    def database(cls, db_id: int, **kwargs) -> "AnalyzeJobRequest":
        return cls(scope=AnalyzeScope.ALL_TABLES, db_id=db_id, **kwargs)

    @classmethod
    def table(cls, db_id: int, table_id: int, **kwargs) -> "AnalyzeJobRequest":
        return cls(
            scope=AnalyzeScope.SINGLE_TABLE, db_id=db_id, table_id=table_id, **kwargs
        )

    @classmethod
    def external_catalog(cls, catalog_name: str, **kwargs) -> "AnalyzeJobRequest":
        return cls(scope=AnalyzeScope.ALL_DATABASES, catalog_name=catalog_name, **kwargs)

    @classmethod
    def external_database(
        cls, catalog_name: str, db_name: str, **kwargs
    ) -> "AnalyzeJobRequest":
        return cls(
            scope=AnalyzeScope.ALL_TABLES,
            catalog_name=catalog_name,
            db_name=db_name,
            **kwargs,
        )

    @classmethod
    def external_table(
        cls, catalog_name: str, db_name: str, table_name: str, **kwargs
    ) -> "AnalyzeJobRequest":
        return cls(
            scope=AnalyzeScope.SINGLE_TABLE,
            catalog_name=catalog_name,
            db_name=db_name,
            table_name=table_name,
            **kwargs,
        )

    def describe(self) -> Dict[str, str]:
        """Short description used as logging context."""
        target = self.catalog_name or "native"
        return {
            "catalog": target,
            "scope": self.scope.value,
            "method": getattr(self.method, "value", str(self.method)),
        }


@dataclass(frozen=True)
class RequestOverrides:
    """Parsed property overrides of a request."""

    exclude_pattern: Optional[Pattern] = None
    interval_seconds: Optional[int] = None
    collect_ratio: Optional[float] = None

    @classmethod
    def from_properties(cls, properties: Dict[str, str]) -> "RequestOverrides":
        """Parse recognized override properties.

        Args:
            properties: Request property map

        Returns:
            Parsed overrides

        Raises:
            ConfigurationError: If a value does not parse as the expected type
        """
        return cls(
            exclude_pattern=_parse_pattern(properties.get(EXCLUDE_PATTERN)),
            interval_seconds=_parse_interval(properties.get(AUTO_COLLECT_INTERVAL)),
            collect_ratio=_parse_ratio(properties.get(AUTO_COLLECT_RATIO)),
        )

    def is_excluded(self, qualified_name: str) -> bool:
        """Partial-match the exclusion pattern against ``db.table``."""
        if self.exclude_pattern is None:
            return False
        return self.exclude_pattern.search(qualified_name) is not None


def _parse_pattern(value: Optional[str]) -> Optional[Pattern]:
    if value is None or not value.strip():
        return None
    try:
        return re.compile(value)
    except re.error as exc:
        raise ConfigurationError(f"Invalid {EXCLUDE_PATTERN} '{value}': {exc}") from exc


def _parse_interval(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        interval = int(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"{AUTO_COLLECT_INTERVAL} must be an integer number of seconds, got '{value}'"
        ) from exc
    if interval < 0:
        raise ConfigurationError(f"{AUTO_COLLECT_INTERVAL} must not be negative, got {interval}")
    return interval


def _parse_ratio(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        ratio = float(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"{AUTO_COLLECT_RATIO} must be a number, got '{value}'"
        ) from exc
    if not 0.0 <= ratio <= 1.0:
        raise ConfigurationError(f"{AUTO_COLLECT_RATIO} must be within [0, 1], got {ratio}")
    return ratio
