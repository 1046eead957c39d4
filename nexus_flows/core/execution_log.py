"""
Execution Logger

Writes the persisted trace of one execution (FlowExecution.logs) and
mirrors each entry to the process logger at the matching level.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from .repository import FlowRepository

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ExecutionLogger:
    """
    Appends {timestamp, message, type} entries to an execution record.

    Example:
        >>> log = ExecutionLogger(repository)
        >>> log.info(execution_id, "Starting flow: Restock")
        >>> log.warning(execution_id, "Unknown node type: webhook")
    """

    def __init__(self, repository: FlowRepository):
        self.repository = repository

    def log(self, execution_id: str, message: str, type: str = "info") -> Dict[str, Any]:
        if type not in _LEVELS:
            raise ValueError(f"Invalid log type: {type}")

        entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "message": message,
            "type": type,
        }
        self.repository.append_log(execution_id, entry)

        logger.log(_LEVELS[type], message, extra={"execution_id": execution_id})
        return entry

    def info(self, execution_id: str, message: str) -> Dict[str, Any]:
        return self.log(execution_id, message, "info")

    def warning(self, execution_id: str, message: str) -> Dict[str, Any]:
        return self.log(execution_id, message, "warning")

    def error(self, execution_id: str, message: str) -> Dict[str, Any]:
        return self.log(execution_id, message, "error")
