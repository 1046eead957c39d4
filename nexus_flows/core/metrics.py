"""
Metrics Collection for Nexus Flows

Provides:
- Flow execution statistics (optionally per organization)
- Error rates
- Flow counts by status
- Database connectivity
"""

import logging
import time
from typing import Dict, Any, Optional
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import func, text

from ..models import FlowDefinition, FlowExecution

logger = logging.getLogger(__name__)


class MetricsCollector:
    """
    Collects and aggregates metrics for the automation engine.

    Args:
        db_session: SQLAlchemy database session
        organization_id: Restrict every metric to one organization (None = all)
    """

    def __init__(self, db_session: Session, organization_id: Optional[str] = None):
        self.db_session = db_session
        self.organization_id = organization_id

    def _executions(self, since: datetime):
        query = self.db_session.query(FlowExecution).filter(FlowExecution.started_at >= since)
        if self.organization_id:
            query = query.filter(FlowExecution.organization_id == self.organization_id)
        return query

    def get_execution_stats(self, hours: int = 24) -> Dict[str, Any]:
        """
        Get flow execution statistics.

        Returns:
            Dict with execution stats:
            - total, completed, failed, simulated, running
            - success_rate: completed / (completed + failed), in percent
        """
        result = {
            "total": 0,
            "completed": 0,
            "failed": 0,
            "simulated": 0,
            "running": 0,
            "success_rate": 0.0,
        }

        try:
            since = datetime.utcnow() - timedelta(hours=hours)

            stats = (
                self._executions(since)
                .with_entities(FlowExecution.status, func.count(FlowExecution.id))
                .group_by(FlowExecution.status)
                .all()
            )

            for status, count in stats:
                result["total"] += count
                if status in result:
                    result[status] = count

            finished = result["completed"] + result["failed"]
            if finished > 0:
                result["success_rate"] = round((result["completed"] / finished) * 100, 2)

            return result

        except Exception as e:
            logger.error(f"Failed to get execution stats: {e}")
            return {**result, "error": str(e)}

    def get_error_rate(self, hours: int = 1) -> Dict[str, Any]:
        """
        Get error rate for recent executions.

        Returns:
            Dict with period_hours, total_executions, failed_executions, error_rate
        """
        try:
            since = datetime.utcnow() - timedelta(hours=hours)

            total = self._executions(since).count()
            failed = self._executions(since).filter(FlowExecution.status == "failed").count()

            error_rate = round((failed / total * 100), 2) if total > 0 else 0.0

            return {
                "period_hours": hours,
                "total_executions": total,
                "failed_executions": failed,
                "error_rate": error_rate,
            }

        except Exception as e:
            logger.error(f"Failed to get error rate: {e}")
            return {
                "period_hours": hours,
                "total_executions": 0,
                "failed_executions": 0,
                "error_rate": 0.0,
                "error": str(e),
            }

    def get_flow_stats(self) -> Dict[str, Any]:
        """Flow counts: total and per status (draft, active, archived)."""
        try:
            query = self.db_session.query(FlowDefinition.status, func.count(FlowDefinition.id))
            if self.organization_id:
                query = query.filter(FlowDefinition.organization_id == self.organization_id)
            counts = dict(query.group_by(FlowDefinition.status).all())

            return {
                "total_flows": sum(counts.values()),
                "draft": counts.get("draft", 0),
                "active": counts.get("active", 0),
                "archived": counts.get("archived", 0),
            }

        except Exception as e:
            logger.error(f"Failed to get flow stats: {e}")
            return {"total_flows": 0, "draft": 0, "active": 0, "archived": 0, "error": str(e)}

    def get_database_health(self) -> Dict[str, Any]:
        try:
            start = time.time()
            self.db_session.execute(text("SELECT 1")).fetchone()
            response_time = round((time.time() - start) * 1000, 2)

            return {
                "connected": True,
                "response_time_ms": response_time,
            }

        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "connected": False,
                "response_time_ms": None,
                "error": str(e),
            }

    def get_all_metrics(self) -> Dict[str, Any]:
        return {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "organization_id": self.organization_id,
            "executions": self.get_execution_stats(hours=24),
            "error_rate": self.get_error_rate(hours=1),
            "flows": self.get_flow_stats(),
            "database": self.get_database_health(),
        }
