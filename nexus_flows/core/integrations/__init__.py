"""
Integrations used by flow actions (inventory, sales, notifications,
messaging and CRM).
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from .base import InventoryService, SalesService, NotificationService, MessagingService, CrmService
from .database import SqlInventoryService, SqlSalesService, SqlNotificationService, SqlCrmService
from .whatsapp import WhatsAppCloudMessagingService, LoggingMessagingService, get_messaging_service


@dataclass
class Integrations:
    """Set of collaborators handed to the ActionDispatcher."""

    inventory: InventoryService
    sales: SalesService
    notifications: NotificationService
    messaging: MessagingService
    crm: CrmService

    @classmethod
    def from_session(cls, session: Session, messaging: Optional[MessagingService] = None) -> "Integrations":
        """Default wiring: SQL collaborators on the given session."""
        return cls(
            inventory=SqlInventoryService(session),
            sales=SqlSalesService(session),
            notifications=SqlNotificationService(session),
            messaging=messaging or get_messaging_service(),
            crm=SqlCrmService(session),
        )


__all__ = [
    "Integrations",
    "InventoryService",
    "SalesService",
    "NotificationService",
    "MessagingService",
    "CrmService",
    "SqlInventoryService",
    "SqlSalesService",
    "SqlNotificationService",
    "SqlCrmService",
    "WhatsAppCloudMessagingService",
    "LoggingMessagingService",
    "get_messaging_service",
]
