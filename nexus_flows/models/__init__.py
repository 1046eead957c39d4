"""
Models module - SQLAlchemy database models
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import models after Base is defined to avoid circular imports
from .flow import FlowDefinition, FlowNode, FlowEdge  # noqa: E402
from .execution import FlowExecution  # noqa: E402
from .commerce import Product, InventoryMovement, Sale, Notification, Deal  # noqa: E402

__all__ = [
    "Base",
    "FlowDefinition",
    "FlowNode",
    "FlowEdge",
    "FlowExecution",
    "Product",
    "InventoryMovement",
    "Sale",
    "Notification",
    "Deal",
]
