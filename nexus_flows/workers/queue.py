"""
Execution Queue

Fire-and-forget hand-off of flow executions. Callers enqueue an
execution intent and return immediately; the outcome is only visible
in the execution record.

Backends (FLOW_QUEUE_BACKEND):
- local (default): worker thread per execution, tracked by an asyncio
  task on the API event loop and bounded by
  FLOW_MAX_CONCURRENT_EXECUTIONS
- celery: execute_flow_task on a Celery worker (Redis broker)
"""

import asyncio
import logging
import os
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import QueueFullError

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_EXECUTIONS = 10


class ExecutionQueue(ABC):

    @abstractmethod
    def enqueue(
        self,
        flow_id: str,
        organization_id: str,
        payload: Optional[Dict[str, Any]] = None,
        simulated: bool = False,
    ) -> str:
        """
        Schedule an execution.

        Returns:
            Task id

        Raises:
            QueueFullError: The execution was not accepted
        """
        pass


class CeleryExecutionQueue(ExecutionQueue):

    def enqueue(
        self,
        flow_id: str,
        organization_id: str,
        payload: Optional[Dict[str, Any]] = None,
        simulated: bool = False,
    ) -> str:
        from .tasks import execute_flow_task

        task = execute_flow_task.delay(
            flow_id=flow_id,
            organization_id=organization_id,
            payload=payload or {},
            simulated=simulated,
        )
        logger.info(f"Queued flow {flow_id} as Celery task {task.id}")
        return task.id


def _default_session_factory() -> Session:
    from ..database import get_db_session
    return get_db_session()


def _default_engine_factory(session: Session):
    from ..core.engine import FlowEngine
    return FlowEngine(session)


class LocalExecutionQueue(ExecutionQueue):
    """
    In-process queue for the API process.

    enqueue() must be called from code running on an event loop (e.g. an
    async FastAPI endpoint). Each execution runs in a worker thread with
    its own event loop and database session, so the synchronous
    SQLAlchemy work of a flow never blocks the caller's loop.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        engine_factory: Optional[Callable[[Session], Any]] = None,
        max_in_flight: Optional[int] = None,
    ):
        self.session_factory = session_factory or _default_session_factory
        self.engine_factory = engine_factory or _default_engine_factory
        self.max_in_flight = max_in_flight or int(
            os.getenv("FLOW_MAX_CONCURRENT_EXECUTIONS", DEFAULT_MAX_CONCURRENT_EXECUTIONS)
        )
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def enqueue(
        self,
        flow_id: str,
        organization_id: str,
        payload: Optional[Dict[str, Any]] = None,
        simulated: bool = False,
    ) -> str:
        if self.in_flight >= self.max_in_flight:
            raise QueueFullError(
                f"Too many executions in progress ({self.max_in_flight})",
                max_in_flight=self.max_in_flight,
            )

        loop = asyncio.get_running_loop()
        task_id = str(uuid.uuid4())
        task = loop.create_task(self._run(task_id, flow_id, organization_id, payload or {}, simulated))
        self._tasks[task_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(task_id, None))

        logger.info(f"Queued flow {flow_id} as local task {task_id}")
        return task_id

    async def _run(
        self,
        task_id: str,
        flow_id: str,
        organization_id: str,
        payload: Dict[str, Any],
        simulated: bool,
    ) -> None:
        try:
            await asyncio.to_thread(self._execute, task_id, flow_id, organization_id, payload, simulated)
        except Exception as e:
            # Nobody awaits this task: the failure is already on the execution record
            logger.exception(f"Task {task_id}: Flow {flow_id} failed: {e}")

    def _execute(
        self,
        task_id: str,
        flow_id: str,
        organization_id: str,
        payload: Dict[str, Any],
        simulated: bool,
    ) -> None:
        session = self.session_factory()
        try:
            engine = self.engine_factory(session)
            # Same hand-off as the Celery task: the async engine on a private loop
            result = asyncio.run(engine.execute_flow(flow_id, organization_id, payload, simulated))
            logger.info(f"Task {task_id}: Execution {result['execution_id']} finished with status {result['status']}")
        finally:
            session.close()

    async def drain(self) -> None:
        """Wait for every execution in flight (shutdown, tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)


def get_execution_queue(backend: Optional[str] = None) -> ExecutionQueue:
    """
    Create the queue for FLOW_QUEUE_BACKEND (local | celery).

    Raises:
        ValueError: Unknown backend
    """
    backend = (backend or os.getenv("FLOW_QUEUE_BACKEND") or "local").lower()
    if backend == "local":
        return LocalExecutionQueue()
    if backend == "celery":
        return CeleryExecutionQueue()
    raise ValueError(f"Unknown queue backend: '{backend}'. Supported: ['local', 'celery']")
