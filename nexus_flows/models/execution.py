"""
Execution Model
Database model for flow execution records
"""

from datetime import datetime

from sqlalchemy import Column, String, JSON, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from . import Base
from .flow import generate_uuid


EXECUTION_STATUSES = ("running", "completed", "failed", "simulated")
TERMINAL_STATUSES = ("completed", "failed", "simulated")
LOG_TYPES = ("info", "warning", "error")


class FlowExecution(Base):
    """
    Flow Execution Model

    One run of a flow. Created as "running" (or "simulated" for dry runs),
    then moved exactly once to a terminal status.

    logs is an append-only list of entries:
        {"timestamp": "2026-01-01T10:00:00.000000", "message": "...", "type": "info"}
    """
    __tablename__ = "flow_executions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    flow_id = Column(String(36), ForeignKey("flow_definitions.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(String(255), nullable=False, index=True)

    # running, completed, failed, simulated
    status = Column(String(20), nullable=False, default="running", index=True)

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    logs = Column(JSON, nullable=False, default=list)

    # Runtime variables: initial payload, enriched by the nodes
    context = Column(JSON, nullable=False, default=dict)

    flow = relationship("FlowDefinition", back_populates="executions")

    def __repr__(self):
        return f"<FlowExecution(id='{self.id}', flow_id='{self.flow_id}', status='{self.status}')>"
