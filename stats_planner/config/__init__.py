"""Configuration management."""

from .config import (
    Config,
    ConnectorConfig,
    StatisticsConfig,
    PlannerConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "Config",
    "ConnectorConfig",
    "StatisticsConfig",
    "PlannerConfig",
    "LoggingConfig",
    "load_config",
]
