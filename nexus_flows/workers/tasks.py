"""
Celery Tasks for Nexus Flows

- execute_flow_task: run one flow execution in a worker process
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from .celery_app import celery_app
from ..database import get_db
from ..core.engine import FlowEngine
from ..core.exceptions import FlowNotFoundError

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="execute_flow_task", max_retries=0)
def execute_flow_task(
    self,
    flow_id: str,
    organization_id: str,
    payload: Optional[Dict[str, Any]] = None,
    simulated: bool = False,
) -> Dict[str, Any]:
    """
    Execute a flow.

    Args:
        flow_id: Flow to run
        organization_id: Owner organization
        payload: Initial context
        simulated: Dry run

    Returns:
        {"execution_id": ..., "status": ...}

    Raises:
        FlowNotFoundError: The flow does not exist for the organization
        Exception: The error that failed the execution (already recorded on it)
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: Starting flow {flow_id} (organization {organization_id})")

    try:
        with get_db() as db:
            engine = FlowEngine(db)

            # FlowEngine.execute_flow is async, run it in its own event loop
            result = asyncio.run(engine.execute_flow(flow_id, organization_id, payload or {}, simulated))

            logger.info(f"Task {task_id}: Execution {result['execution_id']} finished with status {result['status']}")
            return {"execution_id": result["execution_id"], "status": result["status"]}

    except FlowNotFoundError as e:
        logger.error(f"Task {task_id}: {e.message}")
        raise

    except Exception as e:
        # Already recorded as failed on the execution; no retries
        logger.exception(f"Task {task_id}: Flow {flow_id} failed: {e}")
        raise
