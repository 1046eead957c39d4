"""
Commerce Models

Tables touched by the built-in flow actions (stock updates, sales,
notifications and CRM deals). They belong to other subsystems; only the
columns the automation engine reads or writes are mapped here.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, Float, Boolean

from . import Base
from .flow import generate_uuid


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Product(id='{self.id}', name='{self.name}', stock={self.stock})>"


class InventoryMovement(Base):
    """Stock change with a before/after snapshot."""
    __tablename__ = "inventory_movements"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(255), nullable=False, index=True)
    product_id = Column(String(36), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    # adjustment, production, sale, purchase
    type = Column(String(50), nullable=False, default="adjustment")
    before_stock = Column(Integer, nullable=True)
    after_stock = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return (
            f"<InventoryMovement(product_id='{self.product_id}', "
            f"{self.before_stock} -> {self.after_stock})>"
        )


class Sale(Base):
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(255), nullable=False, index=True)
    product_id = Column(String(36), nullable=True)
    customer_id = Column(String(36), nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    total_price = Column(Float, nullable=False, default=0)

    payment_status = Column(String(50), nullable=False, default="pending")
    delivery_status = Column(String(50), nullable=False, default="pending")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Sale(id='{self.id}', product_id='{self.product_id}', quantity={self.quantity})>"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(255), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    # low, normal, high, critical
    priority = Column(String(20), nullable=False, default="normal")
    read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Notification(user_id='{self.user_id}', title='{self.title}')>"


class Deal(Base):
    __tablename__ = "deals"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(50), nullable=False, default="lead")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Deal(id='{self.id}', status='{self.status}')>"
