"""
Order Pydantic schemas for API request/response validation.

Checkout requests carry product ids and quantities only; prices come from
the catalog. Any price field a client sends is ignored. Money is serialized
as decimal strings.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator

from purrfect_glow.database.models.order import OrderStatus
from purrfect_glow.database.models.shipping import ShippingModality, ShippingZone
from purrfect_glow.schemas.base import CamelModel


class OrderItemRequest(CamelModel):
    """Single cart line."""

    product_id: UUID = Field(..., description="Product identifier")
    quantity: int = Field(..., ge=1, le=1000, description="Units ordered")


class OrderCreateRequest(CamelModel):
    """Checkout request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(..., min_length=1, max_length=255, description="Customer full name")
    dni: str = Field(..., min_length=1, max_length=20, description="Identity document number")
    phone: str = Field(..., min_length=1, max_length=30, description="Contact phone")
    address: str = Field(..., min_length=1, max_length=500, description="Delivery address")
    department: str = Field(..., min_length=1, max_length=100, description="Department")
    province: str = Field(..., min_length=1, max_length=100, description="Province")
    shipping_zone: ShippingZone = Field(..., description="Shipping zone")
    shipping_modality: ShippingModality = Field(..., description="Delivery modality")
    items: list[OrderItemRequest] = Field(
        ...,
        min_length=1,
        description="Cart lines",
    )

    @field_validator("shipping_zone", mode="before")
    @classmethod
    def parse_zone(cls, v):
        """Accept zone names in any case."""
        return ShippingZone.from_string(v) if isinstance(v, str) else v

    @field_validator("shipping_modality", mode="before")
    @classmethod
    def parse_modality(cls, v):
        """Accept modality names in any case."""
        return ShippingModality.from_string(v) if isinstance(v, str) else v


class OrderPlacementResponse(CamelModel):
    """Result of placing an order."""

    order_id: UUID
    subtotal: Decimal
    shipping_cost: Decimal
    total_amount: Decimal
    handoff_link: Optional[str] = None
    handoff_error: Optional[str] = None


class OrderStatusUpdateRequest(CamelModel):
    """Admin status change."""

    status: OrderStatus = Field(..., description="New order status")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        """Accept status names in any case."""
        return OrderStatus.from_string(v) if isinstance(v, str) else v


class OrderItemResponse(CamelModel):
    id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderResponse(CamelModel):
    """Full order representation."""

    id: UUID
    full_name: str
    dni: str
    phone: str
    address: str
    department: str
    province: str
    shipping_zone: ShippingZone
    shipping_modality: ShippingModality
    subtotal: Decimal
    shipping_cost: Decimal
    total_amount: Decimal
    estimated_days: str
    status: OrderStatus
    handoff_link: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse]


class OrderListResponse(CamelModel):
    """Paginated order listing."""

    orders: list[OrderResponse]
    total: int
    page: int
    limit: int
    pages: int


class HandoffLinkResponse(CamelModel):
    order_id: UUID
    handoff_link: str
