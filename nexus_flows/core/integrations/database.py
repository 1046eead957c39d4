"""
SQL Collaborators

Default implementations of the collaborator contracts on top of the
commerce tables, sharing the execution's SQLAlchemy session.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ...models import Product, InventoryMovement, Sale, Notification, Deal
from ..exceptions import ResourceNotFoundError
from .base import InventoryService, SalesService, NotificationService, CrmService

logger = logging.getLogger(__name__)


class SqlInventoryService(InventoryService):

    def __init__(self, session: Session):
        self.session = session

    def _product(self, organization_id: str, product_id: str) -> Optional[Product]:
        return (
            self.session.query(Product)
            .filter(Product.id == product_id, Product.organization_id == organization_id)
            .first()
        )

    async def get_product(self, organization_id: str, product_id: str) -> Optional[Dict[str, Any]]:
        product = self._product(organization_id, product_id)
        if product is None:
            return None
        return {"id": product.id, "name": product.name, "stock": product.stock}

    async def set_stock(self, organization_id: str, product_id: str, stock: int) -> None:
        product = self._product(organization_id, product_id)
        if product is None:
            raise ResourceNotFoundError("Product not found", resource_id=product_id)
        product.stock = stock
        # Committed together with the movement in record_movement
        self.session.flush()

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
        self.session.add(InventoryMovement(
            organization_id=organization_id,
            product_id=product_id,
            quantity=quantity,
            type=type,
            before_stock=before_stock,
            after_stock=after_stock,
            notes=notes,
        ))
        self.session.commit()


class SqlSalesService(SalesService):

    def __init__(self, session: Session):
        self.session = session

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
        sale = Sale(
            organization_id=organization_id,
            product_id=product_id,
            customer_id=customer_id,
            quantity=quantity,
            total_price=total_price,
            payment_status=payment_status,
            delivery_status=delivery_status,
        )
        self.session.add(sale)
        self.session.commit()
        return {"id": sale.id, "totalPrice": sale.total_price}


class SqlNotificationService(NotificationService):

    def __init__(self, session: Session):
        self.session = session

    async def create_notification(
        self,
        organization_id: str,
        user_id: str,
        title: str,
        message: str,
        priority: str = "normal",
    ) -> None:
        self.session.add(Notification(
            organization_id=organization_id,
            user_id=user_id,
            title=title,
            message=message,
            priority=priority,
        ))
        self.session.commit()


class SqlCrmService(CrmService):

    def __init__(self, session: Session):
        self.session = session

    async def update_deal_status(self, organization_id: str, deal_id: str, status: str) -> None:
        deal = (
            self.session.query(Deal)
            .filter(Deal.id == deal_id, Deal.organization_id == organization_id)
            .first()
        )
        if deal is None:
            logger.warning(f"Deal {deal_id} not found for organization {organization_id}, status not changed")
            return

        deal.status = status
        deal.updated_at = datetime.utcnow()
        self.session.commit()
