"""
Catalog product and size models.

Products are owned by the catalog; the checkout engine only reads their
price and availability. Sizes carry informational inventory counts and are
rewritten as a set by the inventory reconciler.
"""

import uuid
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from purrfect_glow.database.base import BaseModel


class Product(BaseModel):
    """
    Skincare product offered in the storefront.

    Attributes:
        id: Unique product identifier (UUID)
        name: Display name, also snapshotted on order items
        price: Authoritative unit price
        is_available: Whether the product can be ordered
        sizes: Size variants with inventory counts
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Product display name",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price in soles",
    )

    is_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the product can be ordered",
    )

    sizes: Mapped[list["Size"]] = relationship(
        "Size",
        back_populates="product",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Size.value",
    )

    __table_args__ = (
        Index("ix_products_available", "is_available"),
        CheckConstraint(
            "price >= 0",
            name="ck_products_price_non_negative",
        ),
        {"comment": "Storefront products"},
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name!r}, price={self.price})>"


class Size(BaseModel):
    """
    Size variant of a product.

    Attributes:
        product_id: Owning product
        value: Size label, unique per product
        inventory: Units on hand, never negative
    """

    __tablename__ = "product_sizes"

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning product identifier",
    )

    value: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Size label, e.g. 30ml or M",
    )

    inventory: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Units on hand",
    )

    product: Mapped["Product"] = relationship(
        "Product",
        back_populates="sizes",
    )

    __table_args__ = (
        UniqueConstraint("product_id", "value", name="uq_product_sizes_product_value"),
        CheckConstraint(
            "inventory >= 0",
            name="ck_product_sizes_inventory_non_negative",
        ),
        {"comment": "Product size variants with inventory"},
    )

    def __repr__(self) -> str:
        return (
            f"<Size(product_id={self.product_id}, value={self.value!r}, "
            f"inventory={self.inventory})>"
        )
