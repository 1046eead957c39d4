"""
Tests for ExecutionLogger
"""

import logging

import pytest

from nexus_flows.core.execution_log import ExecutionLogger

from tests.helpers import ORG_ID, trigger


@pytest.fixture
def execution(repository, save_flow):
    flow_id = save_flow([trigger()], [])
    return repository.insert_execution(flow_id, ORG_ID, status="running")


@pytest.mark.unit
def test_entries_are_appended_in_order(repository, execution):
    log = ExecutionLogger(repository)
    log.info(execution.id, "first")
    log.warning(execution.id, "second")
    log.error(execution.id, "third")

    stored = repository.get_execution_by_id(execution.id)
    assert [(e["message"], e["type"]) for e in stored.logs] == [
        ("first", "info"),
        ("second", "warning"),
        ("third", "error"),
    ]


@pytest.mark.unit
def test_entry_shape(repository, execution):
    entry = ExecutionLogger(repository).info(execution.id, "hello")

    assert set(entry) == {"timestamp", "message", "type"}
    assert "T" in entry["timestamp"]


@pytest.mark.unit
def test_invalid_type_is_rejected(repository, execution):
    with pytest.raises(ValueError):
        ExecutionLogger(repository).log(execution.id, "hello", type="debug")

    assert repository.get_execution_by_id(execution.id).logs == []


@pytest.mark.unit
def test_entries_are_mirrored_to_process_log(repository, execution, capture_logs):
    ExecutionLogger(repository).warning(execution.id, "Unknown node type: webhook")

    records = [r for r in capture_logs.records if r.getMessage() == "Unknown node type: webhook"]
    assert len(records) == 1
    assert records[0].levelno == logging.WARNING
    assert records[0].execution_id == execution.id
