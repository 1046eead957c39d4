"""
Tests for MetricsCollector
"""

import pytest

from nexus_flows.core.metrics import MetricsCollector

from tests.helpers import ORG_ID, OTHER_ORG_ID, trigger


@pytest.fixture
def executions(repository, save_flow):
    flow_id = save_flow([trigger()], [], status="active")
    foreign_id = save_flow([trigger()], [], organization_id=OTHER_ORG_ID)

    for status in ("completed", "completed", "completed", "failed"):
        execution = repository.insert_execution(flow_id, ORG_ID, status="running")
        repository.update_execution_status(execution.id, status)
    repository.insert_execution(flow_id, ORG_ID, status="running")
    repository.insert_execution(flow_id, ORG_ID, status="simulated")

    foreign = repository.insert_execution(foreign_id, OTHER_ORG_ID, status="running")
    repository.update_execution_status(foreign.id, "failed")


@pytest.mark.unit
def test_execution_stats_per_organization(db_session, executions):
    stats = MetricsCollector(db_session, organization_id=ORG_ID).get_execution_stats()

    assert stats["total"] == 6
    assert stats["completed"] == 3
    assert stats["failed"] == 1
    assert stats["running"] == 1
    assert stats["simulated"] == 1
    assert stats["success_rate"] == 75.0


@pytest.mark.unit
def test_error_rate_all_organizations(db_session, executions):
    error_rate = MetricsCollector(db_session).get_error_rate()

    assert error_rate["total_executions"] == 7
    assert error_rate["failed_executions"] == 2


@pytest.mark.unit
def test_flow_stats(db_session, executions):
    assert MetricsCollector(db_session, organization_id=ORG_ID).get_flow_stats() == {
        "total_flows": 1,
        "draft": 0,
        "active": 1,
        "archived": 0,
    }


@pytest.mark.unit
def test_all_metrics(db_session, executions):
    metrics = MetricsCollector(db_session).get_all_metrics()

    assert metrics["database"]["connected"] is True
    assert metrics["flows"]["total_flows"] == 2
    assert metrics["organization_id"] is None
