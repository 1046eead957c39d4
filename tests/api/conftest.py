"""
Fixtures for the HTTP API tests

The app runs against a file-based SQLite database: requests and the
background executions of the local queue use different threads, each
with its own session.
"""

import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from nexus_flows.api.main import app, get_db, get_queue
from nexus_flows.core.branching import SequentialBranchExecutor
from nexus_flows.core.engine import FlowEngine
from nexus_flows.core.integrations import Integrations
from nexus_flows.core.providers import StaticProvider
from nexus_flows.models import Base
from nexus_flows.workers.queue import LocalExecutionQueue

from tests.helpers import ORG_ID


@pytest.fixture
def api_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'nexus_flows.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


@pytest.fixture
def execution_queue(api_session_factory, mock_messaging):
    def engine_factory(session):
        return FlowEngine(
            session,
            integrations=Integrations.from_session(session, messaging=mock_messaging),
            provider=StaticProvider(),
            branch_executor=SequentialBranchExecutor(),
        )

    return LocalExecutionQueue(session_factory=api_session_factory, engine_factory=engine_factory)


@pytest.fixture
def api_client(api_session_factory, execution_queue):
    """TestClient with the test database and queue, scoped to ORG_ID"""
    def override_get_db():
        db = api_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_queue] = lambda: execution_queue

    # The context manager keeps the event loop (and queued executions) alive between requests
    with TestClient(app, headers={"X-Organization-Id": ORG_ID}) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def wait_for_executions(api_client):
    """Poll the execution history until `count` executions are finished"""
    def _wait(flow_id, count=1, timeout=5.0):
        deadline = time.time() + timeout
        while True:
            executions = api_client.get(f"/flows/{flow_id}/executions").json()["executions"]
            finished = [e for e in executions if e["status"] != "running"]
            if len(finished) >= count:
                return executions
            if time.time() > deadline:
                raise AssertionError(f"Executions of flow {flow_id} did not finish: {executions}")
            time.sleep(0.05)

    return _wait
