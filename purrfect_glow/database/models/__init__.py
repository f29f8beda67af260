"""
Database models package initialization.

Models are imported here so they are registered with the Base metadata
before schema creation and relationship resolution.
"""

from purrfect_glow.database.base import Base, BaseModel, TimestampMixin, UUIDMixin
from purrfect_glow.database.models.order import Order, OrderItem, OrderStatus
from purrfect_glow.database.models.product import Product, Size
from purrfect_glow.database.models.shipping import (
    ShippingModality,
    ShippingRate,
    ShippingZone,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "Size",
    "ShippingModality",
    "ShippingRate",
    "ShippingZone",
]
