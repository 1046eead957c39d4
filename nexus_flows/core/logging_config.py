"""
Logging setup for Nexus Flows

Two correlation ids travel with every log record:
- request_id: set by the API middleware for one HTTP request
- execution_id: set by the engine for the duration of one flow execution

Both live in contextvars, so they follow asyncio tasks (a flow queued by
a request keeps the execution id of its own run, not the request's).
A handler filter copies them onto each record; the formatters only read
record attributes.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
execution_id_var: ContextVar[Optional[str]] = ContextVar("execution_id", default=None)

CORRELATION_FIELDS = ("request_id", "execution_id")

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "celery.redirected")

_STANDARD_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"} | set(CORRELATION_FIELDS)


class CorrelationFilter(logging.Filter):
    """Stamp request_id / execution_id on records that don't carry them yet."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        if getattr(record, "execution_id", None) is None:
            record.execution_id = execution_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line (production).

    {"timestamp", "level", "logger", "message", "request_id"?, "execution_id"?,
     "exception"?, "context"?}

    Anything passed with `extra=` that is not a correlation id ends up in "context".
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in CORRELATION_FIELDS:
            value = getattr(record, field, None)
            if value:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        context = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_RECORD_KEYS}
        if context:
            entry["context"] = context

        return json.dumps(entry, ensure_ascii=True, default=str)


class StandardFormatter(logging.Formatter):
    """
    Human-readable lines (development):

        [2026-10-19 10:00:00] INFO     - nexus_flows.core.engine - Flow ... (execution_id=...)
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{timestamp}] {record.levelname:8s} - {record.name} - {record.getMessage()}"

        for field in CORRELATION_FIELDS:
            value = getattr(record, field, None)
            if value:
                line += f" ({field}={value})"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _build_handlers(formatter: logging.Formatter, level: int, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    correlation = CorrelationFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(correlation)
    return handlers


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Configure the root logger for the API or a worker process.

    LOG_LEVEL, JSON_LOGS and LOG_FILE override the arguments.
    Calling it again replaces the previous handlers.
    """
    level = os.getenv("LOG_LEVEL", level).upper()
    json_logs = os.getenv("JSON_LOGS", "true" if json_logs else "false").lower() == "true"
    log_file = os.getenv("LOG_FILE", log_file)

    numeric_level = getattr(logging, level, logging.INFO)
    formatter = JSONFormatter() if json_logs else StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in _build_handlers(formatter, numeric_level, log_file):
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"level": level, "json_logs": json_logs, "log_file": log_file or "none"},
    )


# =============================================================================
# Correlation ids
# =============================================================================

def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def clear_request_id() -> None:
    """Called by the middleware when the request is done."""
    request_id_var.set(None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def get_execution_id() -> Optional[str]:
    return execution_id_var.get()


@contextmanager
def execution_context(execution_id: str) -> Iterator[None]:
    """
    Tag every log record emitted inside the block with execution_id.

    Example:
        >>> with execution_context(execution.id):
        ...     await self._execute_node(trigger, run, ())
    """
    token = execution_id_var.set(execution_id)
    try:
        yield
    finally:
        execution_id_var.reset(token)
