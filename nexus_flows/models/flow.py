"""
Flow Models
Database models for automation flow definitions and their graph
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, JSON, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from . import Base


FLOW_STATUSES = ("draft", "active", "archived")
NODE_TYPES = ("trigger", "action", "condition", "ai", "webhook")


def generate_uuid() -> str:
    return str(uuid.uuid4())


class FlowDefinition(Base):
    """
    Flow Definition Model

    One automation graph owned by an organization. The graph itself
    lives in flow_nodes / flow_edges and is always replaced as a whole
    when the flow is saved.
    """
    __tablename__ = "flow_definitions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(255), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    version = Column(String(50), nullable=False, default="1.0.0")

    # draft, active, archived
    status = Column(String(20), nullable=False, default="draft", index=True)

    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    nodes = relationship(
        "FlowNode",
        back_populates="flow",
        cascade="all, delete-orphan",
        order_by="FlowNode.sort_order",
    )
    edges = relationship(
        "FlowEdge",
        back_populates="flow",
        cascade="all, delete-orphan",
        order_by="FlowEdge.sort_order",
    )
    executions = relationship("FlowExecution", back_populates="flow")

    def __repr__(self):
        return f"<FlowDefinition(id='{self.id}', name='{self.name}', status='{self.status}')>"


class FlowNode(Base):
    """
    Flow Node Model

    One step of the graph. `config` is interpreted per node type:
        action    -> {"action": "UPDATE_STOCK", "params": {...}}
        condition -> {"field": "qty", "operator": "gt", "value": 100}
        ai        -> {"promptTemplate": "...", "model": "gpt-4o-mini"}
        trigger   -> {"eventType": "deal.created"} (optional)
    """
    __tablename__ = "flow_nodes"

    # Node ids come from the editor and are only unique inside one flow
    flow_id = Column(String(36), ForeignKey("flow_definitions.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String(255), primary_key=True)

    type = Column(String(20), nullable=False)
    config = Column(JSON, nullable=False, default=dict)
    position = Column(JSON, nullable=False, default=lambda: {"x": 0, "y": 0})
    node_metadata = Column("metadata", JSON, nullable=True, default=dict)

    # Declaration order inside the saved snapshot
    sort_order = Column(Integer, nullable=False, default=0)

    flow = relationship("FlowDefinition", back_populates="nodes")

    def __repr__(self):
        return f"<FlowNode(id='{self.id}', flow_id='{self.flow_id}', type='{self.type}')>"


class FlowEdge(Base):
    """
    Flow Edge Model

    Directed connection between two nodes of the same flow. Only edges
    leaving a condition node use condition_label ("true" / "false").
    """
    __tablename__ = "flow_edges"

    flow_id = Column(String(36), ForeignKey("flow_definitions.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String(255), primary_key=True)

    source_node_id = Column(String(255), nullable=False)
    target_node_id = Column(String(255), nullable=False)
    condition_label = Column(Text, nullable=True)

    sort_order = Column(Integer, nullable=False, default=0)

    flow = relationship("FlowDefinition", back_populates="edges")

    def __repr__(self):
        return (
            f"<FlowEdge(id='{self.id}', {self.source_node_id} -> {self.target_node_id}, "
            f"label={self.condition_label!r})>"
        )
