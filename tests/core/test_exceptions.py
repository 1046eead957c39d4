"""
Tests for the exception hierarchy
"""

import pytest

from nexus_flows.core.exceptions import (
    ActionConfigurationError,
    ActionError,
    FlowCycleError,
    FlowEngineException,
    FlowExecutionError,
    FlowLimitExceededError,
    FlowNotFoundError,
    GraphValidationError,
    IntegrationError,
    OrganizationContextError,
    QueueFullError,
    ResourceNotFoundError,
    WorkflowError,
)


@pytest.mark.unit
def test_hierarchy():
    assert issubclass(GraphValidationError, WorkflowError)
    assert issubclass(FlowCycleError, FlowExecutionError)
    assert issubclass(FlowLimitExceededError, FlowExecutionError)
    assert issubclass(OrganizationContextError, ActionError)
    assert issubclass(ResourceNotFoundError, ActionError)
    for cls in (WorkflowError, ActionError, IntegrationError, QueueFullError):
        assert issubclass(cls, FlowEngineException)


@pytest.mark.unit
def test_retry_flags():
    assert GraphValidationError("bad").retry_allowed is False
    assert FlowNotFoundError("f1").retry_allowed is False
    assert FlowCycleError("a", ["t1", "a"]).retry_allowed is False
    assert ActionConfigurationError("bad").retry_allowed is False
    assert IntegrationError("down").retry_allowed is True
    assert QueueFullError("full").retry_allowed is True


@pytest.mark.unit
def test_cycle_error_message_shows_path():
    error = FlowCycleError("a", ["t1", "a", "b"])
    assert error.node_id == "a"
    assert error.message == "Cycle detected at node a: t1 -> a -> b -> a"


@pytest.mark.unit
def test_organization_context_error_message():
    error = OrganizationContextError("exec-1")
    assert error.message == "Organization context missing"
    assert error.execution_id == "exec-1"


@pytest.mark.unit
def test_integration_error_details():
    error = IntegrationError("WhatsApp API error 500", service="whatsapp", status_code=500)
    assert str(error) == "WhatsApp API error 500"
    assert error.service == "whatsapp"
    assert error.status_code == 500
