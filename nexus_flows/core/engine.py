"""
Flow Engine - Core execution engine for Nexus Flows

Responsibilities:
1. Load the flow graph (nodes + edges) of an organization
2. Create the execution record
3. Walk the graph from the trigger node, depth-first in edge order
4. Dispatch every node by type (trigger, action, condition, ai)
5. Record the trace in the execution logs
6. Set the terminal status (completed, failed, simulated) exactly once
"""

import asyncio
import logging
import os
import time
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy.orm import Session

from ..models import FlowDefinition
from .actions import ActionDispatcher
from .branching import BranchExecutor, get_branch_executor
from .conditions import evaluate, is_known_operator
from .context import ContextManager
from .exceptions import FlowCycleError, FlowLimitExceededError, FlowNotFoundError
from .execution_log import ExecutionLogger
from .logging_config import execution_context
from .integrations import Integrations
from .nodes import ActionNode, AiNode, ConditionNode, NodeType, TriggerNode, node_from_model
from .providers import ModelProvider, get_provider
from .repository import FlowRepository

logger = logging.getLogger(__name__)


SIMULATED_AI_RESPONSE = "Simulated AI response for Nexus Architect."

DEFAULT_MAX_DEPTH = 100
DEFAULT_MAX_NODE_VISITS = 1000


class Edge(NamedTuple):
    id: str
    source_node_id: str
    target_node_id: str
    condition_label: Optional[str] = None


class FlowGraph:
    """
    Parsed node/edge set of one flow, loaded once per execution.
    """

    def __init__(self, nodes: List[NodeType], edges: List[Edge]):
        self.nodes = nodes
        self.edges = edges
        self._by_id: Dict[str, NodeType] = {}
        for node in nodes:
            self._by_id.setdefault(node.id, node)

    @classmethod
    def from_flow(cls, flow: FlowDefinition) -> "FlowGraph":
        edges = [
            Edge(e.id, e.source_node_id, e.target_node_id, e.condition_label)
            for e in flow.edges
        ]
        return cls([node_from_model(n) for n in flow.nodes], edges)

    def find_trigger(self) -> Optional[TriggerNode]:
        return next((n for n in self.nodes if isinstance(n, TriggerNode)), None)

    def next_nodes(self, node_id: str, branch_label: Optional[str] = None) -> List[NodeType]:
        """
        Targets of the edges leaving node_id, in edge order.

        With branch_label, only edges whose condition_label equals it are followed.
        Edges pointing to unknown nodes are skipped.
        """
        result = []
        for edge in self.edges:
            if edge.source_node_id != node_id:
                continue
            if branch_label is not None and edge.condition_label != branch_label:
                continue
            target = self._by_id.get(edge.target_node_id)
            if target is not None:
                result.append(target)
        return result


class _Run:
    """Mutable state of one execution."""

    def __init__(self, execution_id: str, graph: FlowGraph, context: ContextManager, simulated: bool):
        self.execution_id = execution_id
        self.graph = graph
        self.context = context
        self.simulated = simulated
        self.visits = 0


class FlowEngine:
    """
    Main execution engine for automation flows.

    Example:
        >>> with get_db() as db:
        ...     engine = FlowEngine(db)
        ...     result = await engine.execute_flow(flow_id, "org-1", {"qty": 150})
        >>> result["status"]
        "completed"
    """

    def __init__(
        self,
        db_session: Session,
        integrations: Optional[Integrations] = None,
        provider: Optional[ModelProvider] = None,
        branch_executor: Optional[BranchExecutor] = None,
        max_depth: Optional[int] = None,
        max_node_visits: Optional[int] = None,
    ):
        """
        Initialize the engine.

        Args:
            db_session: SQLAlchemy session owned by this execution
            integrations: Collaborators for action nodes (default: SQL + WhatsApp/logging)
            provider: AI provider for ai nodes (default: from AI_PROVIDER)
            branch_executor: Fan-out strategy (default: from FLOW_BRANCH_MODE)
            max_depth: Longest allowed node path (default: FLOW_MAX_DEPTH or 100)
            max_node_visits: Node executions allowed per run (default: FLOW_MAX_NODE_VISITS or 1000)
        """
        self.db_session = db_session
        self.repository = FlowRepository(db_session)
        self.execution_log = ExecutionLogger(self.repository)
        self.integrations = integrations or Integrations.from_session(db_session)
        self.dispatcher = ActionDispatcher(self.repository, self.execution_log, self.integrations)
        self.provider = provider or get_provider()
        self.branch_executor = branch_executor or get_branch_executor()
        self.max_depth = max_depth or int(os.getenv("FLOW_MAX_DEPTH", DEFAULT_MAX_DEPTH))
        self.max_node_visits = max_node_visits or int(os.getenv("FLOW_MAX_NODE_VISITS", DEFAULT_MAX_NODE_VISITS))

    async def execute_flow(
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
            organization_id: Owner organization (flows of others are not found)
            payload: Initial context
            simulated: Dry run: actions are logged but not performed, AI is not called

        Returns:
            {"execution_id": ..., "status": ..., "context": {...}}

        Raises:
            FlowNotFoundError: Before any execution record is created
            Exception: Any error raised while walking the graph, after the
                       execution has been marked failed
        """
        flow = self.repository.load_flow_with_graph(flow_id, organization_id)
        if flow is None:
            raise FlowNotFoundError(flow_id, organization_id)

        payload = payload or {}
        execution = self.repository.insert_execution(
            flow_id,
            organization_id,
            status="simulated" if simulated else "running",
            context=payload,
        )
        execution_id = execution.id

        with execution_context(execution_id):
            return await self._walk(flow, execution_id, payload, simulated)

    async def _walk(
        self,
        flow: FlowDefinition,
        execution_id: str,
        payload: Dict[str, Any],
        simulated: bool,
    ) -> Dict[str, Any]:
        suffix = " (SIMULATION)" if simulated else ""
        self.execution_log.info(execution_id, f"Starting flow: {flow.name}{suffix}")

        context = ContextManager(payload)
        start_time = time.time()

        try:
            graph = FlowGraph.from_flow(flow)

            trigger = graph.find_trigger()
            if trigger is None:
                self.execution_log.error(execution_id, "No trigger node found")
                return self._finish(execution_id, "failed", context)

            run = _Run(execution_id, graph, context, simulated)
            await self._execute_node(trigger, run, ())

        except BaseException as e:  # cancellation too: never left "running"
            # A failed statement leaves the session unusable until rolled back
            self.db_session.rollback()
            if isinstance(e, asyncio.CancelledError):
                message = "execution cancelled"
            else:
                message = getattr(e, "message", None) or str(e) or type(e).__name__
            self.execution_log.error(execution_id, f"Execution failed: {message}")
            self._finish(execution_id, "failed", context)
            raise

        logger.info(
            f"Flow {flow.id} finished in {time.time() - start_time:.3f}s ({run.visits} nodes executed)",
        )
        return self._finish(execution_id, "simulated" if simulated else "completed", context)

    def _finish(self, execution_id: str, status: str, context: ContextManager) -> Dict[str, Any]:
        snapshot = context.snapshot()
        self.repository.update_execution_status(execution_id, status, snapshot)
        return {"execution_id": execution_id, "status": status, "context": snapshot}

    async def _execute_node(self, node: NodeType, run: _Run, path: Tuple[str, ...]) -> None:
        """
        Execute one node, then its successors through the branch executor.

        Args:
            node: Node to execute
            run: Execution state
            path: Ids of the ancestors of this node on the current path
        """
        if node.id in path:
            raise FlowCycleError(node.id, list(path))

        if len(path) >= self.max_depth:
            raise FlowLimitExceededError(
                f"Cycle/depth limit exceeded: path longer than {self.max_depth} nodes",
                limit=self.max_depth,
            )

        run.visits += 1
        if run.visits > self.max_node_visits:
            raise FlowLimitExceededError(
                f"Cycle/depth limit exceeded: more than {self.max_node_visits} node executions",
                limit=self.max_node_visits,
            )

        execution_id = run.execution_id
        self.execution_log.info(execution_id, f"Executing node: {node.id} ({node.type})")

        if isinstance(node, TriggerNode):
            next_nodes = run.graph.next_nodes(node.id)

        elif isinstance(node, ActionNode):
            await self.dispatcher.perform_action(node, run.context, execution_id, run.simulated)
            next_nodes = run.graph.next_nodes(node.id)

        elif isinstance(node, ConditionNode):
            if not is_known_operator(node.config.operator):
                self.execution_log.error(execution_id, f"Unknown condition operator: {node.config.operator}")
            branch = "true" if evaluate(node, run.context) else "false"
            self.execution_log.info(execution_id, f"Condition evaluated to: {branch}")
            next_nodes = run.graph.next_nodes(node.id, branch)

        elif isinstance(node, AiNode):
            output = await self._run_ai_node(node, run)
            run.context.set("aiOutput", output)
            next_nodes = run.graph.next_nodes(node.id)

        else:
            # webhook and types this engine doesn't know: dead end
            self.execution_log.warning(execution_id, f"Unknown node type: {node.type}")
            next_nodes = []

        if not next_nodes:
            return

        child_path = path + (node.id,)

        async def run_branch(next_node: NodeType) -> None:
            await self._execute_node(next_node, run, child_path)

        await self.branch_executor.run(next_nodes, run_branch)

    async def _run_ai_node(self, node: AiNode, run: _Run) -> str:
        config = node.config
        self.execution_log.info(
            run.execution_id,
            f"Invoking AI model {config.model or 'default'} with template...",
        )

        if run.simulated:
            return SIMULATED_AI_RESPONSE

        return await self.provider.complete(config.prompt_template or "", config.model, run.context.get_all())
