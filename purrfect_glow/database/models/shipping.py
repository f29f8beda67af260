"""
Shipping zone, modality and rate models.

Zones group Peruvian departments by delivery difficulty; modalities are the
two Olva delivery options offered at checkout. The ShippingRate table holds
one row per configured (zone, modality) pair. Pairs without a row are not
offered.
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, Enum as SQLEnum, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from purrfect_glow.database.base import Base, TimestampMixin


class ShippingZone(str, Enum):
    """
    Delivery zone enumeration.

    Attributes:
        LIMA_LOCAL: Lima metropolitan area
        LIMA_PROVINCIAS: Callao and Lima provinces
        COSTA_NACIONAL: Coastal departments
        SIERRA_SELVA: Highland and jungle departments
        ZONAS_REMOTAS: Everything else, including unknown departments
    """

    LIMA_LOCAL = "LIMA_LOCAL"
    LIMA_PROVINCIAS = "LIMA_PROVINCIAS"
    COSTA_NACIONAL = "COSTA_NACIONAL"
    SIERRA_SELVA = "SIERRA_SELVA"
    ZONAS_REMOTAS = "ZONAS_REMOTAS"

    @classmethod
    def from_string(cls, value: str) -> "ShippingZone":
        """
        Create ShippingZone from string value.

        Raises:
            ValueError: If value is not a valid zone
        """
        try:
            return cls(value.strip().upper())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid shipping zone: {value}")

    @property
    def label(self) -> str:
        """Human readable zone name shown to customers."""
        return ZONE_LABELS[self]


class ShippingModality(str, Enum):
    """
    Delivery modality enumeration.

    Attributes:
        DOMICILIO: Home delivery
        AGENCIA: Pickup at a carrier office
    """

    DOMICILIO = "DOMICILIO"
    AGENCIA = "AGENCIA"

    @classmethod
    def from_string(cls, value: str) -> "ShippingModality":
        """
        Create ShippingModality from string value.

        Raises:
            ValueError: If value is not a valid modality
        """
        try:
            return cls(value.strip().upper())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid shipping modality: {value}")

    @property
    def label(self) -> str:
        """Human readable modality name shown to customers."""
        return MODALITY_LABELS[self]


ZONE_LABELS: dict[ShippingZone, str] = {
    ShippingZone.LIMA_LOCAL: "Lima Metropolitana",
    ShippingZone.LIMA_PROVINCIAS: "Lima Provincias y Callao",
    ShippingZone.COSTA_NACIONAL: "Costa Nacional",
    ShippingZone.SIERRA_SELVA: "Sierra y Selva",
    ShippingZone.ZONAS_REMOTAS: "Zonas Remotas",
}

MODALITY_LABELS: dict[ShippingModality, str] = {
    ShippingModality.DOMICILIO: "Envío a domicilio",
    ShippingModality.AGENCIA: "Recojo en agencia",
}


class ShippingRate(Base, TimestampMixin):
    """
    Configured shipping cost for a zone and modality.

    Attributes:
        zone: Delivery zone (part of the primary key)
        modality: Delivery modality (part of the primary key)
        cost: Shipping cost for a package of up to 1kg
        estimated_days: Free-text delivery estimate, e.g. "3 - 5 días"
    """

    __tablename__ = "shipping_rates"

    zone: Mapped[ShippingZone] = mapped_column(
        SQLEnum(ShippingZone, name="shipping_zone", create_constraint=True),
        primary_key=True,
        comment="Delivery zone",
    )

    modality: Mapped[ShippingModality] = mapped_column(
        SQLEnum(ShippingModality, name="shipping_modality", create_constraint=True),
        primary_key=True,
        comment="Delivery modality",
    )

    cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Shipping cost",
    )

    estimated_days: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Estimated delivery time shown to customers",
    )

    __table_args__ = (
        CheckConstraint(
            "cost >= 0",
            name="ck_shipping_rates_cost_non_negative",
        ),
        {"comment": "Shipping cost per zone and delivery modality"},
    )

    def __repr__(self) -> str:
        return (
            f"<ShippingRate(zone={self.zone.value}, modality={self.modality.value}, "
            f"cost={self.cost})>"
        )
