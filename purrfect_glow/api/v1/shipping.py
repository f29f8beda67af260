"""
Shipping API endpoints.

Read-only views over the rate table and the department zone map, used by
the checkout form to show delivery options before an order is placed.
"""

from typing import Annotated, Optional, Union

from fastapi import APIRouter, Depends, Query

from purrfect_glow.api.deps import get_rate_repository
from purrfect_glow.database.models.shipping import ShippingZone
from purrfect_glow.schemas.shipping import (
    RateSummaryResponse,
    ZoneRatesResponse,
    ZoneResolutionResponse,
    ZoneSummaryResponse,
)
from purrfect_glow.services.shipping.rates import (
    SqlShippingRateRepository,
    get_zone_rates,
    summarize_rates,
)
from purrfect_glow.services.shipping.zones import resolve_zone

router = APIRouter(prefix="/shipping", tags=["Shipping"])

RateRepositoryDep = Annotated[SqlShippingRateRepository, Depends(get_rate_repository)]


@router.get(
    "/rates",
    response_model=Union[ZoneRatesResponse, RateSummaryResponse],
    summary="Shipping rates",
    description="Both modalities for one zone, or a per-zone summary when no zone is given",
)
async def get_rates(
    rates: RateRepositoryDep,
    zone: Optional[ShippingZone] = Query(None, description="Zone to look up"),
) -> Union[ZoneRatesResponse, RateSummaryResponse]:
    if zone is not None:
        return ZoneRatesResponse.from_zone_rates(await get_zone_rates(rates, zone))

    summaries = await summarize_rates(rates)
    return RateSummaryResponse(
        zones=[ZoneSummaryResponse.from_zone_rates(summary) for summary in summaries]
    )


@router.get(
    "/zone",
    response_model=ZoneResolutionResponse,
    summary="Resolve department zone",
)
async def get_zone(
    department: str = Query(..., max_length=100, description="Department name"),
) -> ZoneResolutionResponse:
    zone = resolve_zone(department)
    return ZoneResolutionResponse(department=department, zone=zone, zone_label=zone.label)
