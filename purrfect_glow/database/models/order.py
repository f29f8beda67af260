"""
Order model for checkout and fulfillment tracking.

This module defines the Order and OrderItem models. Orders store the
customer's contact and address details, the shipping zone and modality chosen
at checkout, and the price breakdown computed by the order engine. Unit
prices, product names and the delivery estimate are snapshots taken at
checkout, so later catalog or rate changes never alter a placed order.
"""

import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from purrfect_glow.database.base import BaseModel
from purrfect_glow.database.models.shipping import ShippingModality, ShippingZone


class OrderStatus(str, Enum):
    """
    Order status enumeration for tracking order lifecycle.

    Attributes:
        PENDING: Order placed, awaiting WhatsApp confirmation and dispatch
        SHIPPED: Package handed to the carrier
        DELIVERED: Package received by the customer
    """

    PENDING = "PENDING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"

    @classmethod
    def from_string(cls, value: str) -> "OrderStatus":
        """
        Create OrderStatus from string value.

        Args:
            value: String representation of status, any case

        Returns:
            OrderStatus enum value

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.strip().upper())
        except (ValueError, AttributeError):
            raise ValueError(
                "Invalid status. Must be one of: "
                + ", ".join(status.value for status in cls)
            )

    @property
    def is_terminal(self) -> bool:
        """Check if status is terminal under forward-only progression."""
        return self == OrderStatus.DELIVERED


class Order(BaseModel):
    """
    Customer order placed through the storefront checkout.

    Attributes:
        id: Unique order identifier (UUID)
        full_name: Customer full name
        dni: Peruvian national identity document number
        phone: Contact phone number
        address: Delivery address
        department: Department as entered by the customer
        province: Province as entered by the customer
        shipping_zone: Zone used to price shipping
        shipping_modality: Delivery modality
        subtotal: Sum of item line totals
        shipping_cost: Rate charged for the zone and modality
        total_amount: subtotal + shipping_cost
        estimated_days: Delivery estimate snapshot
        status: Current order status
        handoff_link: WhatsApp deep link, null until generated
        items: Ordered lines in cart order
    """

    __tablename__ = "orders"

    # Customer
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Customer full name",
    )

    dni: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Customer identity document number",
    )

    phone: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="Customer contact phone",
    )

    # Delivery
    address: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Delivery address",
    )

    department: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Delivery department",
    )

    province: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Delivery province",
    )

    shipping_zone: Mapped[ShippingZone] = mapped_column(
        SQLEnum(ShippingZone, name="shipping_zone", create_constraint=True),
        nullable=False,
        comment="Shipping zone used for pricing",
    )

    shipping_modality: Mapped[ShippingModality] = mapped_column(
        SQLEnum(ShippingModality, name="shipping_modality", create_constraint=True),
        nullable=False,
        comment="Delivery modality",
    )

    # Pricing fields
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Sum of item line totals",
    )

    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Shipping charge",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Total order amount",
    )

    estimated_days: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Delivery estimate at checkout",
    )

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name="order_status", create_constraint=True),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
        comment="Current order status",
    )

    handoff_link: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="WhatsApp handoff deep link",
    )

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    __table_args__ = (
        Index(
            "ix_orders_status_created",
            "status",
            "created_at",
        ),
        Index("ix_orders_created_at", "created_at"),
        CheckConstraint(
            "subtotal >= 0",
            name="ck_orders_subtotal_non_negative",
        ),
        CheckConstraint(
            "shipping_cost >= 0",
            name="ck_orders_shipping_cost_non_negative",
        ),
        CheckConstraint(
            "total_amount >= 0",
            name="ck_orders_total_amount_non_negative",
        ),
        {"comment": "Customer orders with price breakdown and status"},
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, status={self.status.value}, "
            f"total_amount={self.total_amount})>"
        )

    def calculate_subtotal(self) -> Decimal:
        """Sum of the line totals of every item."""
        return sum((item.line_total for item in self.items), Decimal("0.00"))

    def validate_amounts(self) -> tuple[bool, list[str]]:
        """
        Validate order amounts against the price breakdown invariants.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if self.subtotal < 0:
            errors.append("Subtotal cannot be negative")

        if self.shipping_cost < 0:
            errors.append("Shipping cost cannot be negative")

        if self.total_amount != self.subtotal + self.shipping_cost:
            errors.append(
                f"Total amount mismatch: expected {self.subtotal + self.shipping_cost}, "
                f"got {self.total_amount}"
            )

        calculated_subtotal = self.calculate_subtotal()
        if self.subtotal != calculated_subtotal:
            errors.append(
                f"Subtotal mismatch: expected {calculated_subtotal}, got {self.subtotal}"
            )

        for item in self.items:
            if item.line_total != item.unit_price * item.quantity:
                errors.append(f"Line total mismatch for product {item.product_id}")

        return len(errors) == 0, errors


class OrderItem(BaseModel):
    """
    Single product line of an order.

    Attributes:
        order_id: Parent order
        product_id: Ordered product
        position: Zero-based position of the line in the cart
        product_name: Product name at checkout
        quantity: Units ordered
        unit_price: Product price at checkout
        line_total: unit_price * quantity
    """

    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Parent order identifier",
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Ordered product identifier",
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Line position in the cart",
    )

    product_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Product name at checkout",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Units ordered",
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price at checkout",
    )

    line_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price times quantity",
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="items",
    )

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_order_items_quantity_positive",
        ),
        CheckConstraint(
            "unit_price >= 0",
            name="ck_order_items_unit_price_non_negative",
        ),
        CheckConstraint(
            "line_total >= 0",
            name="ck_order_items_line_total_non_negative",
        ),
        {"comment": "Individual product lines of an order"},
    )

    def __repr__(self) -> str:
        return (
            f"<OrderItem(id={self.id}, order_id={self.order_id}, "
            f"product_id={self.product_id}, quantity={self.quantity})>"
        )
