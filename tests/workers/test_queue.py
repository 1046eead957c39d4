"""
Tests for the execution queues
"""

import asyncio
import threading

import pytest
from unittest.mock import MagicMock, patch

from nexus_flows.core.exceptions import QueueFullError
from nexus_flows.workers.queue import (
    CeleryExecutionQueue,
    LocalExecutionQueue,
    get_execution_queue,
)

from tests.helpers import ORG_ID


class FakeEngine:
    """Engine double that records calls and can be held open"""

    def __init__(self, release=None, error=None):
        self.calls = []
        self.threads = []
        self.release = release
        self.error = error

    async def execute_flow(self, flow_id, organization_id, payload, simulated):
        self.calls.append((flow_id, organization_id, payload, simulated))
        self.threads.append(threading.get_ident())
        if self.release is not None:
            # Runs on the queue's worker thread: blocking here must not stall the caller's loop
            assert self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return {"execution_id": "exec-1", "status": "completed", "context": payload}


# ============================================================================
# LOCAL QUEUE
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_local_queue_runs_execution_in_background():
    engine = FakeEngine()
    session = MagicMock()
    queue = LocalExecutionQueue(session_factory=lambda: session, engine_factory=lambda s: engine)

    task_id = queue.enqueue("flow-1", ORG_ID, {"qty": 1}, simulated=True)
    assert task_id
    await queue.drain()

    assert engine.calls == [("flow-1", ORG_ID, {"qty": 1}, True)]
    assert queue.in_flight == 0
    session.close.assert_called_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_local_queue_rejects_when_full():
    release = threading.Event()
    engine = FakeEngine(release=release)
    queue = LocalExecutionQueue(session_factory=MagicMock, engine_factory=lambda s: engine, max_in_flight=2)

    queue.enqueue("flow-1", ORG_ID)
    queue.enqueue("flow-2", ORG_ID)

    with pytest.raises(QueueFullError) as exc_info:
        queue.enqueue("flow-3", ORG_ID)
    assert exc_info.value.max_in_flight == 2

    release.set()
    await queue.drain()

    # Capacity is available again
    queue.enqueue("flow-3", ORG_ID)
    await queue.drain()
    # flow-1 and flow-2 run on separate threads in either order
    assert sorted(call[0] for call in engine.calls) == ["flow-1", "flow-2", "flow-3"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_local_queue_keeps_event_loop_free():
    release = threading.Event()
    engine = FakeEngine(release=release)
    queue = LocalExecutionQueue(session_factory=MagicMock, engine_factory=lambda s: engine)

    queue.enqueue("flow-1", ORG_ID)

    # The loop keeps serving other work while the execution is blocked
    ticks = 0
    while not engine.calls and ticks < 500:
        await asyncio.sleep(0.01)
        ticks += 1
    assert engine.calls
    assert queue.in_flight == 1

    release.set()
    await queue.drain()

    assert engine.threads[0] != threading.get_ident()
    assert queue.in_flight == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_local_queue_failure_is_logged_not_raised(capture_logs):
    engine = FakeEngine(error=RuntimeError("boom"))
    session = MagicMock()
    queue = LocalExecutionQueue(session_factory=lambda: session, engine_factory=lambda s: engine)

    task_id = queue.enqueue("flow-1", ORG_ID)
    await queue.drain()

    assert f"Task {task_id}: Flow flow-1 failed: boom" in capture_logs.text
    session.close.assert_called_once()


@pytest.mark.unit
def test_local_queue_limit_from_environment(monkeypatch):
    monkeypatch.setenv("FLOW_MAX_CONCURRENT_EXECUTIONS", "3")
    assert LocalExecutionQueue().max_in_flight == 3


@pytest.mark.unit
def test_local_queue_requires_running_loop():
    queue = LocalExecutionQueue(session_factory=MagicMock, engine_factory=lambda s: FakeEngine())
    with pytest.raises(RuntimeError):
        queue.enqueue("flow-1", ORG_ID)


# ============================================================================
# CELERY QUEUE
# ============================================================================

@pytest.mark.unit
def test_celery_queue_sends_task(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    from nexus_flows.workers import tasks

    with patch.object(tasks, "execute_flow_task") as task:
        task.delay.return_value = MagicMock(id="celery-task-1")
        task_id = CeleryExecutionQueue().enqueue("flow-1", ORG_ID, None, simulated=True)

    assert task_id == "celery-task-1"
    task.delay.assert_called_once_with(flow_id="flow-1", organization_id=ORG_ID, payload={}, simulated=True)


# ============================================================================
# FACTORY
# ============================================================================

@pytest.mark.unit
def test_get_execution_queue(monkeypatch):
    monkeypatch.delenv("FLOW_QUEUE_BACKEND", raising=False)
    assert isinstance(get_execution_queue(), LocalExecutionQueue)
    assert isinstance(get_execution_queue("celery"), CeleryExecutionQueue)

    with pytest.raises(ValueError, match="Unknown queue backend"):
        get_execution_queue("sqs")
