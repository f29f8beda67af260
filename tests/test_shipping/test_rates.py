"""
Test suite for shipping rate lookup and the default rate table.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from purrfect_glow.core.exceptions import ShippingRateStoreError
from purrfect_glow.database.models.shipping import (
    ShippingModality,
    ShippingRate,
    ShippingZone,
)
from purrfect_glow.database.seed import DEFAULT_SHIPPING_RATES, seed_shipping_rates
from purrfect_glow.services.shipping.rates import (
    InMemoryShippingRateTable,
    SqlShippingRateRepository,
    get_zone_rates,
    summarize_rates,
)


# ============================================================================
# Seeding
# ============================================================================


async def test_seed_is_idempotent(db_session):
    assert await seed_shipping_rates(db_session) == 0

    rates = await SqlShippingRateRepository(db_session).list_rates()
    assert len(rates) == len(DEFAULT_SHIPPING_RATES) == 7


async def test_seed_keeps_operator_edits(db_session):
    rate = await db_session.get(
        ShippingRate, (ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO)
    )
    rate.cost = Decimal("11.50")
    await db_session.commit()

    await seed_shipping_rates(db_session)

    quote = await SqlShippingRateRepository(db_session).get_rate(
        ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO
    )
    assert quote.cost == Decimal("11.50")


# ============================================================================
# SQL repository
# ============================================================================


class TestSqlShippingRateRepository:
    """Test rate lookup against the shipping_rates table."""

    @pytest.mark.parametrize(
        "zone,modality,cost,days",
        [
            (ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO, "10.00", "24 - 48h"),
            (ShippingZone.LIMA_PROVINCIAS, ShippingModality.DOMICILIO, "13.00", "48 - 72h"),
            (ShippingZone.COSTA_NACIONAL, ShippingModality.AGENCIA, "12.00", "3 - 4 días"),
            (ShippingZone.SIERRA_SELVA, ShippingModality.DOMICILIO, "20.00", "3 - 6 días"),
            (ShippingZone.ZONAS_REMOTAS, ShippingModality.DOMICILIO, "25.00", "5 - 7 días"),
        ],
    )
    async def test_get_rate(self, db_session, zone, modality, cost, days):
        quote = await SqlShippingRateRepository(db_session).get_rate(zone, modality)

        assert quote is not None
        assert quote.zone == zone
        assert quote.modality == modality
        assert quote.cost == Decimal(cost)
        assert quote.estimated_days == days

    @pytest.mark.parametrize(
        "zone",
        [
            ShippingZone.LIMA_LOCAL,
            ShippingZone.LIMA_PROVINCIAS,
            ShippingZone.ZONAS_REMOTAS,
        ],
    )
    async def test_unoffered_agency_pickup_returns_none(self, db_session, zone):
        repository = SqlShippingRateRepository(db_session)

        assert await repository.get_rate(zone, ShippingModality.AGENCIA) is None

    async def test_database_error_is_wrapped(self):
        session = AsyncMock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(ShippingRateStoreError) as exc_info:
            await SqlShippingRateRepository(session).get_rate(
                ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO
            )

        assert exc_info.value.retryable is True
        assert exc_info.value.context["zone"] == "LIMA_LOCAL"


# ============================================================================
# Zone views
# ============================================================================


class TestZoneRates:
    """Test per-zone views over a rate provider."""

    async def test_zone_with_both_modalities_reports_savings(self, db_session):
        rates = await get_zone_rates(
            SqlShippingRateRepository(db_session), ShippingZone.COSTA_NACIONAL
        )

        assert rates.domicilio.cost == Decimal("15.00")
        assert rates.agencia.cost == Decimal("12.00")
        assert rates.savings == Decimal("3.00")

    async def test_zone_without_agency_has_no_savings(self, db_session):
        rates = await get_zone_rates(
            SqlShippingRateRepository(db_session), ShippingZone.LIMA_LOCAL
        )

        assert rates.domicilio.cost == Decimal("10.00")
        assert rates.agencia is None
        assert rates.savings is None

    async def test_summary_lists_zones_from_lima_outwards(self, db_session):
        summaries = await summarize_rates(SqlShippingRateRepository(db_session))

        assert [summary.zone for summary in summaries] == list(ShippingZone)
        sierra = summaries[3]
        assert sierra.domicilio.cost == Decimal("20.00")
        assert sierra.agencia.cost == Decimal("15.00")

    async def test_summary_skips_zones_without_rates(self):
        table = InMemoryShippingRateTable(
            [(ShippingZone.SIERRA_SELVA, ShippingModality.AGENCIA, Decimal("15"), "3 - 5 días")]
        )

        summaries = await summarize_rates(table)

        assert len(summaries) == 1
        assert summaries[0].zone == ShippingZone.SIERRA_SELVA
        assert summaries[0].domicilio is None


class TestInMemoryShippingRateTable:
    """Test the fixed in-memory rate table."""

    async def test_costs_are_quantized(self):
        table = InMemoryShippingRateTable(
            [(ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO, 10, "24 - 48h")]
        )

        quote = await table.get_rate(ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO)

        assert str(quote.cost) == "10.00"

    async def test_missing_pair_returns_none(self):
        table = InMemoryShippingRateTable(DEFAULT_SHIPPING_RATES)

        assert await table.get_rate(ShippingZone.LIMA_LOCAL, ShippingModality.AGENCIA) is None
        assert len(await table.list_rates()) == 7
