"""
Default shipping rate table.

Olva Courier rates for packages of up to 1kg, one row per offered
(zone, modality) pair. Home delivery is offered everywhere; agency pickup
only where Olva runs offices outside Lima.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from purrfect_glow.core.logging import get_logger
from purrfect_glow.database.models.shipping import (
    ShippingModality,
    ShippingRate,
    ShippingZone,
)

logger = get_logger(__name__)

DEFAULT_SHIPPING_RATES: tuple[tuple[ShippingZone, ShippingModality, Decimal, str], ...] = (
    (ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO, Decimal("10.00"), "24 - 48h"),
    (ShippingZone.LIMA_PROVINCIAS, ShippingModality.DOMICILIO, Decimal("13.00"), "48 - 72h"),
    (ShippingZone.COSTA_NACIONAL, ShippingModality.DOMICILIO, Decimal("15.00"), "3 - 5 días"),
    (ShippingZone.COSTA_NACIONAL, ShippingModality.AGENCIA, Decimal("12.00"), "3 - 4 días"),
    (ShippingZone.SIERRA_SELVA, ShippingModality.DOMICILIO, Decimal("20.00"), "3 - 6 días"),
    (ShippingZone.SIERRA_SELVA, ShippingModality.AGENCIA, Decimal("15.00"), "3 - 5 días"),
    (ShippingZone.ZONAS_REMOTAS, ShippingModality.DOMICILIO, Decimal("25.00"), "5 - 7 días"),
)


async def seed_shipping_rates(session: AsyncSession) -> int:
    """
    Insert default shipping rates that are not configured yet.

    Existing rows are left untouched so operator edits survive restarts.

    Args:
        session: Async database session

    Returns:
        Number of rows inserted
    """
    try:
        result = await session.execute(
            select(ShippingRate.zone, ShippingRate.modality)
        )
        existing = {(row.zone, row.modality) for row in result}

        inserted = 0
        for zone, modality, cost, estimated_days in DEFAULT_SHIPPING_RATES:
            if (zone, modality) in existing:
                continue
            session.add(
                ShippingRate(
                    zone=zone,
                    modality=modality,
                    cost=cost,
                    estimated_days=estimated_days,
                )
            )
            inserted += 1

        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Shipping rate seeding failed", error=str(e))
        raise

    logger.info("Shipping rates seeded", inserted=inserted)
    return inserted
