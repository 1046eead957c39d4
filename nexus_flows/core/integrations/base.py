"""
Collaborator Contracts

Services the action dispatcher talks to. All methods are async so
implementations may do network I/O; the SQL implementations simply
run on the execution's session.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class InventoryService(ABC):

    @abstractmethod
    async def get_product(self, organization_id: str, product_id: str) -> Optional[Dict[str, Any]]:
        """Return {"id", "name", "stock"} or None when the product does not exist."""
        pass

    @abstractmethod
    async def set_stock(self, organization_id: str, product_id: str, stock: int) -> None:
        pass

    @abstractmethod
    async def record_movement(
        self,
        organization_id: str,
        product_id: str,
        quantity: int,
        type: str,
        before_stock: int,
        after_stock: int,
        notes: str,
    ) -> None:
        pass


class SalesService(ABC):

    @abstractmethod
    async def create_sale(
        self,
        organization_id: str,
        product_id: str,
        quantity: int,
        customer_id: Optional[str],
        total_price: float,
        payment_status: str = "pending",
        delivery_status: str = "pending",
    ) -> Dict[str, Any]:
        """Create a sale and return it (at least {"id"})."""
        pass


class NotificationService(ABC):

    @abstractmethod
    async def create_notification(
        self,
        organization_id: str,
        user_id: str,
        title: str,
        message: str,
        priority: str = "normal",
    ) -> None:
        pass


class MessagingService(ABC):

    @abstractmethod
    async def send_message(self, to: str, text: str) -> None:
        """
        Send a text message.

        Raises:
            IntegrationError: If the message could not be delivered
        """
        pass


class CrmService(ABC):

    @abstractmethod
    async def update_deal_status(self, organization_id: str, deal_id: str, status: str) -> None:
        """Deals of other organizations are never touched."""
        pass
