"""
Flow Repository

All storage access of the automation engine goes through here:
- flow definitions with their graph (nodes + edges), always scoped to an organization
- execution records (creation, single terminal transition, log appends)

Works on a synchronous SQLAlchemy Session owned by the caller.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.attributes import flag_modified

from ..models import FlowDefinition, FlowNode, FlowEdge, FlowExecution
from ..models.execution import TERMINAL_STATUSES
from ..models.flow import FLOW_STATUSES
from .exceptions import GraphValidationError

logger = logging.getLogger(__name__)


DEFAULT_EXECUTIONS_LIMIT = 20


class FlowRepository:
    """
    Repository over flow definitions and executions.

    Example:
        >>> with get_db() as db:
        ...     repo = FlowRepository(db)
        ...     flow_id = repo.save_flow("org-1", name="Restock", nodes=[...], edges=[...])
        ...     flow = repo.load_flow_with_graph(flow_id, "org-1")
    """

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # Flow definitions
    # =========================================================================

    def load_flow_with_graph(self, flow_id: str, organization_id: str) -> Optional[FlowDefinition]:
        """
        Load a flow and its nodes/edges.

        A flow owned by another organization is reported as None,
        exactly like a missing one.
        """
        return (
            self.session.query(FlowDefinition)
            .options(selectinload(FlowDefinition.nodes), selectinload(FlowDefinition.edges))
            .filter(
                FlowDefinition.id == flow_id,
                FlowDefinition.organization_id == organization_id,
            )
            .first()
        )

    def list_flows(self, organization_id: str) -> List[FlowDefinition]:
        """All flows of the organization, most recently updated first."""
        return (
            self.session.query(FlowDefinition)
            .filter(FlowDefinition.organization_id == organization_id)
            .order_by(FlowDefinition.updated_at.desc())
            .all()
        )

    def save_flow(
        self,
        organization_id: str,
        name: str,
        nodes: List[Dict[str, Any]],
        edges: List[Dict[str, Any]],
        flow_id: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[str] = None,
        version: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> str:
        """
        Create or update a flow and replace its whole graph.

        The previous nodes and edges are deleted and the given ones inserted
        in the same transaction: after a successful save the stored graph is
        exactly the submitted one.

        Args:
            organization_id: Owner organization
            name: Flow name
            nodes: [{"id", "type", "config", "position"?, "metadata"?}, ...]
            edges: [{"id", "source"/"sourceNodeId", "target"/"targetNodeId", "conditionLabel"?}, ...]
            flow_id: Existing flow id (update) or None (create). An id unknown
                     for this organization creates a new flow with that id.

        Returns:
            The flow id

        Raises:
            GraphValidationError: Invalid status, duplicate node ids, or an
                                  edge pointing to a node that is not saved
        """
        if status is not None and status not in FLOW_STATUSES:
            raise GraphValidationError(f"Invalid flow status: {status}")

        node_rows = self._build_nodes(nodes)
        edge_rows = self._build_edges(edges, {row.id for row in node_rows})

        try:
            flow = None
            if flow_id:
                flow = (
                    self.session.query(FlowDefinition)
                    .filter(
                        FlowDefinition.id == flow_id,
                        FlowDefinition.organization_id == organization_id,
                    )
                    .first()
                )

            if flow is None:
                if flow_id and self.session.get(FlowDefinition, flow_id) is not None:
                    # Same id already used by another organization
                    raise GraphValidationError(f"Flow id already in use: {flow_id}")

                flow = FlowDefinition(
                    organization_id=organization_id,
                    name=name,
                    description=description,
                    status=status or "draft",
                    version=version or "1.0.0",
                    created_by=created_by,
                )
                if flow_id:
                    flow.id = flow_id
                self.session.add(flow)
                logger.info(f"Creating flow '{name}' for organization {organization_id}")
            else:
                flow.name = name
                flow.description = description
                if status is not None:
                    flow.status = status
                if version is not None:
                    flow.version = version
                flow.updated_at = datetime.utcnow()
                logger.info(f"Updating flow {flow.id} ({len(node_rows)} nodes, {len(edge_rows)} edges)")

            # Replace graph: delete old rows before inserting new ones with the same keys
            flow.nodes.clear()
            flow.edges.clear()
            self.session.flush()

            flow.nodes.extend(node_rows)
            flow.edges.extend(edge_rows)

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return flow.id

    def archive_flow(self, flow_id: str, organization_id: str) -> Optional[FlowDefinition]:
        """Set status to archived. Returns None when the flow is not found."""
        flow = self.load_flow_with_graph(flow_id, organization_id)
        if flow is None:
            return None

        flow.status = "archived"
        flow.updated_at = datetime.utcnow()
        self.session.commit()
        logger.info(f"Flow {flow_id} archived")
        return flow

    def find_active_flows_for_event(self, organization_id: str, event_type: str) -> List[FlowDefinition]:
        """
        Active flows of the organization whose trigger node listens to event_type
        (trigger config {"eventType": event_type}).
        """
        flows = (
            self.session.query(FlowDefinition)
            .options(selectinload(FlowDefinition.nodes))
            .filter(
                FlowDefinition.organization_id == organization_id,
                FlowDefinition.status == "active",
            )
            .order_by(FlowDefinition.created_at)
            .all()
        )

        matching = []
        for flow in flows:
            trigger = next((n for n in flow.nodes if n.type == "trigger"), None)
            if trigger is not None and (trigger.config or {}).get("eventType") == event_type:
                matching.append(flow)
        return matching

    @staticmethod
    def _build_nodes(nodes: List[Dict[str, Any]]) -> List[FlowNode]:
        rows = []
        seen = set()
        for index, node in enumerate(nodes):
            node_id = node.get("id")
            if not node_id:
                raise GraphValidationError(f"Node at position {index} has no id")
            if node_id in seen:
                raise GraphValidationError(f"Duplicate node id: {node_id}")
            if not node.get("type"):
                raise GraphValidationError(f"Node {node_id} has no type")
            seen.add(node_id)

            rows.append(FlowNode(
                id=node_id,
                type=node["type"],
                config=node.get("config") or {},
                position=node.get("position") or {"x": 0, "y": 0},
                node_metadata=node.get("metadata") or {},
                sort_order=index,
            ))
        return rows

    @staticmethod
    def _build_edges(edges: List[Dict[str, Any]], node_ids: set) -> List[FlowEdge]:
        rows = []
        seen = set()
        for index, edge in enumerate(edges):
            edge_id = edge.get("id")
            source = edge.get("sourceNodeId", edge.get("source"))
            target = edge.get("targetNodeId", edge.get("target"))

            if not edge_id:
                raise GraphValidationError(f"Edge at position {index} has no id")
            if edge_id in seen:
                raise GraphValidationError(f"Duplicate edge id: {edge_id}")
            if source not in node_ids:
                raise GraphValidationError(f"Edge {edge_id} references unknown source node: {source}")
            if target not in node_ids:
                raise GraphValidationError(f"Edge {edge_id} references unknown target node: {target}")
            seen.add(edge_id)

            rows.append(FlowEdge(
                id=edge_id,
                source_node_id=source,
                target_node_id=target,
                condition_label=edge.get("conditionLabel", edge.get("condition_label")),
                sort_order=index,
            ))
        return rows

    # =========================================================================
    # Executions
    # =========================================================================

    def insert_execution(
        self,
        flow_id: str,
        organization_id: str,
        status: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> FlowExecution:
        """Create an execution record (status "running" or "simulated")."""
        execution = FlowExecution(
            flow_id=flow_id,
            organization_id=organization_id,
            status=status,
            logs=[],
            context=context or {},
        )
        self.session.add(execution)
        self.session.commit()
        logger.info(f"Created execution {execution.id} for flow {flow_id} (status: {status})")
        return execution

    def get_execution_by_id(self, execution_id: str) -> Optional[FlowExecution]:
        """Unscoped lookup, used by the engine for its own execution."""
        return self.session.get(FlowExecution, execution_id)

    def get_execution(self, execution_id: str, organization_id: str) -> Optional[FlowExecution]:
        return (
            self.session.query(FlowExecution)
            .filter(
                FlowExecution.id == execution_id,
                FlowExecution.organization_id == organization_id,
            )
            .first()
        )

    def list_executions(
        self,
        flow_id: str,
        organization_id: str,
        limit: int = DEFAULT_EXECUTIONS_LIMIT,
    ) -> List[FlowExecution]:
        """Most recent executions of a flow, newest first."""
        return (
            self.session.query(FlowExecution)
            .filter(
                FlowExecution.flow_id == flow_id,
                FlowExecution.organization_id == organization_id,
            )
            .order_by(FlowExecution.started_at.desc())
            .limit(limit)
            .all()
        )

    def append_log(self, execution_id: str, entry: Dict[str, Any]) -> None:
        """
        Append one {timestamp, message, type} entry to the execution's logs.

        Entries are never rewritten or reordered.
        """
        execution = self.get_execution_by_id(execution_id)
        if execution is None:
            logger.warning(f"Cannot append log, execution {execution_id} not found")
            return

        # Reassign so the JSON column is detected as changed
        execution.logs = list(execution.logs or []) + [entry]
        self.session.commit()

    def update_execution_status(
        self,
        execution_id: str,
        status: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Move the execution to a terminal status (completed, failed, simulated).

        Terminal states are final: a second transition is refused.

        Returns:
            True if the transition was applied
        """
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Not a terminal status: {status}")

        execution = self.get_execution_by_id(execution_id)
        if execution is None:
            logger.warning(f"Cannot update status, execution {execution_id} not found")
            return False

        if execution.completed_at is not None:
            logger.warning(
                f"Execution {execution_id} already finished with status {execution.status}, "
                f"ignoring transition to {status}"
            )
            return False

        execution.status = status
        execution.completed_at = datetime.utcnow()
        if context is not None:
            execution.context = context
            flag_modified(execution, "context")
        self.session.commit()
        return True
