"""Logging setup for planning runs.

Records logged through a :class:`PlanningLogger` carry the analyze request
being planned (catalog, scope, method) and, once a table is being evaluated,
the qualified table name. Both formatters render that context.
"""

import logging
import sys
import json
from typing import Optional, Dict, Any
from datetime import datetime, timezone

CONTEXT_ATTR = "planning"


def _planning_context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, CONTEXT_ATTR, None) or {}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the planning context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        log_data.update(_planning_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter appending the planning context in brackets."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = _planning_context(record)
        if not context:
            return line
        fields = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{fields}]"


def setup_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger for a planning run.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Emit JSON lines instead of plain text
        log_file: Optional file receiving the same records
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if structured:
        formatter = JsonFormatter()
    else:
        formatter = ConsoleFormatter()

    # Logs go to stderr so planned jobs on stdout stay machine-readable
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,
    )

    logging.getLogger("duckdb").setLevel(logging.WARNING)
    logging.getLogger("sqlglot").setLevel(logging.WARNING)


class PlanningLogger(logging.LoggerAdapter):
    """Logger adapter attaching the request and table being planned."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        extra[CONTEXT_ATTR] = dict(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs

    def for_table(self, qualified_name: str) -> "PlanningLogger":
        """Return a logger that also names the table under evaluation."""
        context = dict(self.extra)
        context["table"] = qualified_name
        return PlanningLogger(self.logger, context)


def get_request_logger(name: str, request_context: Dict[str, Any]) -> PlanningLogger:
    """Get a logger bound to an analyze request.

    Args:
        name: Logger name (typically __name__)
        request_context: Request description, see ``AnalyzeJobRequest.describe``

    Returns:
        Logger adapter carrying the request context

    Example:
        >>> logger = get_request_logger(__name__, request.describe())
        >>> logger.for_table("sales.orders").warning("Column dropped")
    """
    return PlanningLogger(logging.getLogger(name), dict(request_context))
