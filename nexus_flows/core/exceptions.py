"""
Custom Exceptions for Nexus Flows

Exception Hierarchy:
- FlowEngineException (base)
  - WorkflowError
    - GraphValidationError (don't retry)
    - FlowNotFoundError (don't retry)
    - FlowExecutionError
      - FlowCycleError (don't retry)
      - FlowLimitExceededError (don't retry)
  - ActionError
    - ActionConfigurationError (don't retry)
    - OrganizationContextError (don't retry)
    - ResourceNotFoundError (don't retry)
  - IntegrationError (retry)
  - QueueFullError (retry)
  - DatabaseError (retry)
"""


class FlowEngineException(Exception):
    """Base exception for all Nexus Flows errors"""

    def __init__(self, message: str, retry_allowed: bool = True):
        super().__init__(message)
        self.message = message
        self.retry_allowed = retry_allowed


# ============================================================================
# WORKFLOW ERRORS
# ============================================================================

class WorkflowError(FlowEngineException):
    """Base class for flow-related errors"""
    pass


class GraphValidationError(WorkflowError):
    """
    Flow structure is invalid (e.g., edge pointing to a node that is not
    part of the flow, malformed node config).
    Should NOT be retried - fix the flow definition.
    """

    def __init__(self, message: str):
        super().__init__(message, retry_allowed=False)


class FlowNotFoundError(WorkflowError):
    """
    Flow does not exist for the given organization.
    Flows of other organizations are reported the same way.
    """

    def __init__(self, flow_id: str, organization_id: str = None):
        super().__init__(f"Flow not found: {flow_id}", retry_allowed=False)
        self.flow_id = flow_id
        self.organization_id = organization_id


class FlowExecutionError(WorkflowError):
    """
    Flow execution failed while walking the graph.
    """

    def __init__(self, message: str, retry_allowed: bool = True):
        super().__init__(message, retry_allowed=retry_allowed)


class FlowCycleError(FlowExecutionError):
    """
    A node was reached again from its own ancestor path.
    """

    def __init__(self, node_id: str, path: list = None):
        path = path or []
        trail = " -> ".join(path + [node_id])
        super().__init__(f"Cycle detected at node {node_id}: {trail}", retry_allowed=False)
        self.node_id = node_id
        self.path = path


class FlowLimitExceededError(FlowExecutionError):
    """
    Traversal went deeper, or visited more nodes, than the configured limits.
    """

    def __init__(self, message: str, limit: int = None):
        super().__init__(message, retry_allowed=False)
        self.limit = limit


# ============================================================================
# ACTION ERRORS
# ============================================================================

class ActionError(FlowEngineException):
    """Base class for errors raised while performing an action node"""

    def __init__(self, message: str, action: str = None, retry_allowed: bool = False):
        super().__init__(message, retry_allowed=retry_allowed)
        self.action = action


class ActionConfigurationError(ActionError):
    """
    A known action is missing required params or has invalid ones.
    Should NOT be retried - fix the node config.
    """
    pass


class OrganizationContextError(ActionError):
    """
    The owning execution record (and so its organization) could not be resolved.
    """

    def __init__(self, execution_id: str):
        super().__init__("Organization context missing")
        self.execution_id = execution_id


class ResourceNotFoundError(ActionError):
    """
    The entity an action targets does not exist (e.g., product).
    """

    def __init__(self, message: str, resource_id: str = None, action: str = None):
        super().__init__(message, action=action)
        self.resource_id = resource_id


# ============================================================================
# INTEGRATION ERRORS
# ============================================================================

class IntegrationError(FlowEngineException):
    """
    An external collaborator (WhatsApp, AI provider, ...) failed.
    Usually transient.
    """

    def __init__(self, message: str, service: str = None, status_code: int = None):
        super().__init__(message, retry_allowed=True)
        self.service = service
        self.status_code = status_code


# ============================================================================
# QUEUE ERRORS
# ============================================================================

class QueueFullError(FlowEngineException):
    """
    Too many executions in flight; the intent was not accepted.
    """

    def __init__(self, message: str, max_in_flight: int = None):
        super().__init__(message, retry_allowed=True)
        self.max_in_flight = max_in_flight


# ============================================================================
# DATABASE ERRORS
# ============================================================================

class DatabaseError(FlowEngineException):
    """
    Database connection or query error.
    Should be retried (transient failures).
    """

    def __init__(self, message: str):
        super().__init__(message, retry_allowed=True)
