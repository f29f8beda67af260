"""Shipping rate and zone schemas."""

from decimal import Decimal
from typing import Optional

from purrfect_glow.database.models.shipping import ShippingZone
from purrfect_glow.schemas.base import CamelModel
from purrfect_glow.services.shipping.rates import (
    RATE_DISCLAIMER,
    ShippingRateQuote,
    ZoneRates,
)


class RateQuoteResponse(CamelModel):
    cost: Decimal
    estimated_days: str


def _quote(quote: Optional[ShippingRateQuote]) -> Optional[RateQuoteResponse]:
    return RateQuoteResponse.model_validate(quote) if quote is not None else None


class ZoneRatesResponse(CamelModel):
    """Both delivery options of a zone."""

    zone: ShippingZone
    zone_label: str
    domicilio: Optional[RateQuoteResponse] = None
    agencia: Optional[RateQuoteResponse] = None
    savings: Optional[Decimal] = None
    disclaimer: str = RATE_DISCLAIMER

    @classmethod
    def from_zone_rates(cls, rates: ZoneRates) -> "ZoneRatesResponse":
        return cls(
            zone=rates.zone,
            zone_label=rates.zone.label,
            domicilio=_quote(rates.domicilio),
            agencia=_quote(rates.agencia),
            savings=rates.savings,
        )


class ZoneSummaryResponse(CamelModel):
    """Cheapest-at-a-glance costs of a zone."""

    zone: ShippingZone
    zone_label: str
    domicilio_cost: Optional[Decimal] = None
    agencia_cost: Optional[Decimal] = None

    @classmethod
    def from_zone_rates(cls, rates: ZoneRates) -> "ZoneSummaryResponse":
        return cls(
            zone=rates.zone,
            zone_label=rates.zone.label,
            domicilio_cost=rates.domicilio.cost if rates.domicilio else None,
            agencia_cost=rates.agencia.cost if rates.agencia else None,
        )


class RateSummaryResponse(CamelModel):
    zones: list[ZoneSummaryResponse]
    disclaimer: str = RATE_DISCLAIMER


class ZoneResolutionResponse(CamelModel):
    department: str
    zone: ShippingZone
    zone_label: str
