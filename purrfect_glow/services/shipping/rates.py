"""
Shipping rate lookup.

The order engine depends on the ShippingRateProvider protocol only. The SQL
implementation reads the ``shipping_rates`` table; the in-memory table is
used where a fixed set of rates is enough, such as tests. A missing
(zone, modality) pair is reported as None and never replaced by a fallback.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from purrfect_glow.core.exceptions import ShippingRateStoreError
from purrfect_glow.core.logging import get_logger
from purrfect_glow.database.models.shipping import (
    ShippingModality,
    ShippingRate,
    ShippingZone,
)
from purrfect_glow.services.orders.pricing import to_money

logger = get_logger(__name__)

RATE_DISCLAIMER = (
    "Tarifas basadas en paquetes de hasta 1kg. "
    "El monto final será revalidado al confirmar por WhatsApp."
)


@dataclass(frozen=True)
class ShippingRateQuote:
    """Cost and delivery estimate for one (zone, modality) pair."""

    zone: ShippingZone
    modality: ShippingModality
    cost: Decimal
    estimated_days: str


@dataclass(frozen=True)
class ZoneRates:
    """Both delivery options for a zone and the saving of agency pickup."""

    zone: ShippingZone
    domicilio: Optional[ShippingRateQuote]
    agencia: Optional[ShippingRateQuote]

    @property
    def savings(self) -> Optional[Decimal]:
        """How much cheaper agency pickup is, when both options exist."""
        if self.domicilio is None or self.agencia is None:
            return None
        return to_money(self.domicilio.cost - self.agencia.cost)


class ShippingRateProvider(Protocol):
    """Protocol for shipping rate sources.

    Implementations are read-only from the point of view of the order engine.
    """

    async def get_rate(
        self, zone: ShippingZone, modality: ShippingModality
    ) -> Optional[ShippingRateQuote]:
        """Return the rate for a pair, or None if it is not offered."""
        ...

    async def list_rates(self) -> list[ShippingRateQuote]:
        """Return every configured rate."""
        ...


class SqlShippingRateRepository:
    """
    Shipping rates backed by the ``shipping_rates`` table.

    Reads run inside the caller's session, so an order placement sees the
    rate table within its own transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_rate(
        self, zone: ShippingZone, modality: ShippingModality
    ) -> Optional[ShippingRateQuote]:
        """
        Get the rate for a zone and modality.

        Raises:
            ShippingRateStoreError: If the query fails
        """
        try:
            rate = await self.session.get(ShippingRate, (zone, modality))
        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch shipping rate",
                zone=zone.value,
                modality=modality.value,
                error=str(e),
            )
            raise ShippingRateStoreError(
                "Failed to fetch shipping rate",
                zone=zone.value,
                modality=modality.value,
            ) from e

        if rate is None:
            return None
        return _quote_from_row(rate)

    async def list_rates(self) -> list[ShippingRateQuote]:
        """
        List all configured rates ordered by zone and modality.

        Raises:
            ShippingRateStoreError: If the query fails
        """
        try:
            result = await self.session.execute(
                select(ShippingRate).order_by(ShippingRate.zone, ShippingRate.modality)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to list shipping rates", error=str(e))
            raise ShippingRateStoreError("Failed to list shipping rates") from e

        return [_quote_from_row(rate) for rate in rows]


class InMemoryShippingRateTable:
    """Fixed shipping rate table held in memory."""

    def __init__(
        self,
        rates: Iterable[tuple[ShippingZone, ShippingModality, Decimal, str]] = (),
    ):
        self._rates: dict[tuple[ShippingZone, ShippingModality], ShippingRateQuote] = {}
        for zone, modality, cost, estimated_days in rates:
            self._rates[(zone, modality)] = ShippingRateQuote(
                zone=zone,
                modality=modality,
                cost=to_money(cost),
                estimated_days=estimated_days,
            )

    async def get_rate(
        self, zone: ShippingZone, modality: ShippingModality
    ) -> Optional[ShippingRateQuote]:
        return self._rates.get((zone, modality))

    async def list_rates(self) -> list[ShippingRateQuote]:
        return list(self._rates.values())


def _quote_from_row(rate: ShippingRate) -> ShippingRateQuote:
    return ShippingRateQuote(
        zone=rate.zone,
        modality=rate.modality,
        cost=to_money(rate.cost),
        estimated_days=rate.estimated_days,
    )


async def get_zone_rates(
    provider: ShippingRateProvider, zone: ShippingZone
) -> ZoneRates:
    """
    Both delivery options for a zone.

    Args:
        provider: Rate source
        zone: Zone to look up

    Returns:
        ZoneRates with None for modalities the zone does not offer
    """
    return ZoneRates(
        zone=zone,
        domicilio=await provider.get_rate(zone, ShippingModality.DOMICILIO),
        agencia=await provider.get_rate(zone, ShippingModality.AGENCIA),
    )


async def summarize_rates(provider: ShippingRateProvider) -> list[ZoneRates]:
    """
    Rates for every zone that has at least one configured modality.

    Zones are returned in declaration order, from Lima outwards.
    """
    by_pair = {(quote.zone, quote.modality): quote for quote in await provider.list_rates()}

    summaries = []
    for zone in ShippingZone:
        domicilio = by_pair.get((zone, ShippingModality.DOMICILIO))
        agencia = by_pair.get((zone, ShippingModality.AGENCIA))
        if domicilio is None and agencia is None:
            continue
        summaries.append(ZoneRates(zone=zone, domicilio=domicilio, agencia=agencia))
    return summaries
