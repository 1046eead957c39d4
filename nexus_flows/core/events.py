"""
Event Bus

Starts automation flows from system events. A flow subscribes to an
event through its trigger node config: {"eventType": "deal.created"}.
Only active flows of the emitting organization are started.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models import FlowDefinition
from .repository import FlowRepository

logger = logging.getLogger(__name__)


SYSTEM_EVENTS = (
    "customer.created",
    "customer.updated",
    "deal.created",
    "deal.status_changed",
    "sale.completed",
    "inventory.low",
    "production.order_created",
    "production.order_completed",
    "mrp.recommendation_created",
)


class EventBus:
    """
    Example:
        >>> bus = EventBus(FlowRepository(db), get_execution_queue())
        >>> bus.emit("org-1", "deal.created", {"dealId": "d-42"})
        ["3f1c..."]
    """

    def __init__(self, repository: FlowRepository, queue):
        self.repository = repository
        self.queue = queue

    def emit(self, organization_id: str, event_type: str, payload: Optional[Dict[str, Any]] = None) -> List[str]:
        """
        Enqueue one execution per matching flow.

        Returns:
            Task ids of the enqueued executions
        """
        return self.start(self.subscribed_flows(organization_id, event_type), organization_id, event_type, payload)

    def subscribed_flows(self, organization_id: str, event_type: str) -> List[FlowDefinition]:
        """Active flows of the organization listening to event_type (database only)"""
        logger.info(f"Emitting event: {event_type} for organization {organization_id}")
        if event_type not in SYSTEM_EVENTS:
            logger.warning(f"Event {event_type} is not a known system event")
        return list(self.repository.find_active_flows_for_event(organization_id, event_type))

    def start(
        self,
        flows: List[FlowDefinition],
        organization_id: str,
        event_type: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        """
        Enqueue an execution of each flow.

        Failures to enqueue one flow are logged and don't stop the others.
        """
        task_ids = []
        for flow in flows:
            logger.info(f"Triggering flow: {flow.name} ({flow.id})")
            try:
                task_ids.append(self.queue.enqueue(flow.id, organization_id, payload or {}))
            except Exception as e:
                logger.error(f"Could not start flow {flow.id} for event {event_type}: {e}")

        return task_ids
