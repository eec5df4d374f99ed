"""Configuration management for the statistics collection planner."""

from dataclasses import dataclass, field, fields
from typing import Dict, Any, List, Optional, Union, get_args, get_origin
import yaml
from pathlib import Path

from ..errors import ConfigurationError

GIB = 1024 * 1024 * 1024


@dataclass
class ConnectorConfig:
    """Configuration for a single federated catalog connector."""

    name: str
    type: str  # "duckdb", "memory"
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StatisticsConfig:
    """Thresholds driving automatic statistics collection.

    Sizes are in bytes and intervals in seconds. The interval and ratio
    thresholds can be overridden per request through job properties.
    """

    small_table_rows: int = 10_000_000
    small_table_size: int = 5 * GIB
    small_table_interval: int = 0
    large_table_interval: int = 12 * 60 * 60
    histogram_interval: int = 60 * 60
    auto_collect_ratio: float = 0.8
    sample_threshold: float = 0.3
    max_full_collect_data_size: int = 100 * GIB
    enable_temporary_table_collect: bool = False
    database_blacklist: List[str] = field(
        default_factory=lambda: [
            "_statistics_",
            "information_schema",
            "sys",
            "starrocks_monitor",
        ]
    )
    external_partition_tolerance_seconds: int = 60

    def is_blacklisted(self, db_name: str) -> bool:
        """Check whether a database is excluded from collection."""
        lowered = db_name.lower()
        for name in self.database_blacklist:
            if name.lower() == lowered:
                return True
        return False


@dataclass
class PlannerConfig:
    """Configuration for the planning run itself."""

    max_workers: int = 1  # Tables evaluated concurrently; 1 runs sequentially


@dataclass
class LoggingConfig:
    """Configuration for logging setup."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    connectors: Dict[str, ConnectorConfig] = field(default_factory=dict)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If a section contains unknown or invalid keys

    Example YAML format:
        statistics:
          small_table_size: 5368709120
          large_table_interval: 43200
          auto_collect_ratio: 0.8
          database_blacklist: [information_schema, sys]

        planner:
          max_workers: 4

        logging:
          level: DEBUG
          structured: true

        connectors:
          lake:
            type: duckdb
            path: /data/lake.duckdb
            read_only: true
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_path}")

    connectors = {}
    for name, connector_data in (data.get("connectors") or {}).items():
        connector_data = dict(connector_data or {})
        if "type" not in connector_data:
            raise ConfigurationError(f"Connector '{name}' is missing 'type'")
        connector_type = connector_data.pop("type")
        connectors[name] = ConnectorConfig(
            name=name, type=connector_type, config=connector_data
        )

    statistics = _build_section(StatisticsConfig, data.get("statistics"), "statistics")
    planner = _build_section(PlannerConfig, data.get("planner"), "planner")
    logging_config = _build_section(LoggingConfig, data.get("logging"), "logging")

    if planner.max_workers < 1:
        raise ConfigurationError("planner.max_workers must be at least 1")

    return Config(
        statistics=statistics,
        planner=planner,
        logging=logging_config,
        connectors=connectors,
    )


def _build_section(section_cls, section_data: Optional[Dict[str, Any]], name: str):
    """Instantiate a config dataclass, rejecting unknown keys and mistyped values."""
    section_data = section_data or {}
    if not isinstance(section_data, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping")
    known = {f.name: f.type for f in fields(section_cls)}
    unknown = sorted(set(section_data) - set(known))
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{name}' section: {', '.join(unknown)}")

    values = {}
    for key, value in section_data.items():
        values[key] = _coerce(value, known[key], f"{name}.{key}")
    return section_cls(**values)


def _coerce(value: Any, expected: Any, key: str) -> Any:
    """Check a YAML value against a field type; ints are accepted for floats."""
    origin = get_origin(expected)
    if origin is Union:
        allowed = [arg for arg in get_args(expected) if arg is not type(None)]
        if value is None:
            return None
        return _coerce(value, allowed[0], key)
    if origin is list:
        (item_type,) = get_args(expected)
        if not isinstance(value, list):
            raise ConfigurationError(f"{key} must be a list, got {value!r}")
        return [_coerce(item, item_type, key) for item in value]

    # bool is a subclass of int, so it is checked first
    if expected is bool:
        if isinstance(value, bool):
            return value
    elif expected is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif expected is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif isinstance(value, expected):
        return value
    raise ConfigurationError(
        f"{key} must be of type {expected.__name__}, got {value!r}"
    )
