"""
Pytest fixtures for Nexus Flows tests

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Mock collaborators (inventory, sales, notifications, messaging, CRM)
- Sample flow definitions
- Engine factory
"""

import os

# nexus_flows.database requires DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AI_PROVIDER", "static")
os.environ.setdefault("FLOW_QUEUE_BACKEND", "local")

import pytest
from unittest.mock import AsyncMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nexus_flows.models import Base, Product, Deal
from nexus_flows.core.engine import FlowEngine
from nexus_flows.core.branching import SequentialBranchExecutor
from nexus_flows.core.integrations import (
    Integrations,
    InventoryService,
    SalesService,
    NotificationService,
    MessagingService,
    CrmService,
)
from nexus_flows.core.providers import StaticProvider
from nexus_flows.core.repository import FlowRepository

from tests.helpers import ORG_ID, trigger, action, condition, edge


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """
    In-memory SQLite engine shared by every session of one test.
    Each test gets a fresh database that's torn down after the test.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repository(db_session):
    return FlowRepository(db_session)


@pytest.fixture
def org_id():
    return ORG_ID


@pytest.fixture
def product(db_session):
    """Product P with stock 5"""
    product = Product(id="prod-1", organization_id=ORG_ID, name="Widget", stock=5)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture
def deal(db_session):
    deal = Deal(id="deal-1", organization_id=ORG_ID, title="Big order", status="lead")
    db_session.add(deal)
    db_session.commit()
    return deal


# ============================================================================
# COLLABORATOR FIXTURES
# ============================================================================

@pytest.fixture
def mock_integrations():
    """
    Collaborators that record calls and do nothing.
    Use this for tests that check what the dispatcher asks for.
    """
    inventory = AsyncMock(spec=InventoryService)
    inventory.get_product.return_value = {"id": "prod-1", "name": "Widget", "stock": 5}

    sales = AsyncMock(spec=SalesService)
    sales.create_sale.return_value = {"id": "sale-1"}

    return Integrations(
        inventory=inventory,
        sales=sales,
        notifications=AsyncMock(spec=NotificationService),
        messaging=AsyncMock(spec=MessagingService),
        crm=AsyncMock(spec=CrmService),
    )


@pytest.fixture
def mock_messaging():
    return AsyncMock(spec=MessagingService)


@pytest.fixture
def make_engine(db_session, mock_messaging):
    """
    Factory for FlowEngine on the test session.

    Defaults: SQL collaborators, mocked messaging, static AI provider,
    sequential branches.
    """
    def _make(**kwargs):
        kwargs.setdefault("integrations", Integrations.from_session(db_session, messaging=mock_messaging))
        kwargs.setdefault("provider", StaticProvider())
        kwargs.setdefault("branch_executor", SequentialBranchExecutor())
        return FlowEngine(db_session, **kwargs)

    return _make


# ============================================================================
# FLOW DEFINITION FIXTURES
# ============================================================================

@pytest.fixture
def save_flow(repository):
    """Save a flow for ORG_ID and return its id"""
    def _save(nodes, edges, name="Test Flow", organization_id=ORG_ID, **kwargs):
        return repository.save_flow(organization_id, name=name, nodes=nodes, edges=edges, **kwargs)

    return _save


@pytest.fixture
def stock_flow():
    """Trigger → UPDATE_STOCK(prod-1, +10)"""
    return {
        "nodes": [
            trigger(),
            action("restock", "UPDATE_STOCK", productId="prod-1", quantity=10),
        ],
        "edges": [edge("e1", "t1", "restock")],
    }


@pytest.fixture
def condition_flow():
    """Trigger → condition(qty > 100) -true-> NOTIFY_USER; no false edge"""
    return {
        "nodes": [
            trigger(),
            condition("check_qty", "qty", "gt", 100),
            action("notify", "NOTIFY_USER", userId="u1", title="Big order", message="qty over 100"),
        ],
        "edges": [
            edge("e1", "t1", "check_qty"),
            edge("e2", "check_qty", "notify", "true"),
        ],
    }


# ============================================================================
# UTILITY FIXTURES
# ============================================================================

@pytest.fixture
def capture_logs(caplog):
    import logging
    caplog.set_level(logging.DEBUG)
    return caplog