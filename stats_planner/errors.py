"""Planner exception hierarchy."""


class PlannerError(Exception):
    """Base class for statistics planner errors."""


class ConfigurationError(PlannerError, ValueError):
    """A configuration value or request override is invalid."""


class TableEvaluationError(PlannerError):
    """Planning failed for a single table; the rest of the batch proceeds."""

    def __init__(self, message: str, table_name: str = ""):
        super().__init__(message)
        self.table_name = table_name


class UnknownAnalyzeMethodError(TableEvaluationError):
    """The request carries a method outside SAMPLE, HISTOGRAM and FULL."""


class JobBuildError(TableEvaluationError):
    """A collection job could not be assembled from current table metadata."""
