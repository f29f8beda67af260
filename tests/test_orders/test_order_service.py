"""
Test suite for OrderService.

Placement runs against the seeded test database so the transactional
guarantees (all rows or none) are exercised for real; rate providers and
renderers are swapped in where a test needs a specific failure.
"""

import uuid
from dataclasses import replace
from decimal import Decimal
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy.exc import OperationalError

from purrfect_glow.core.exceptions import (
    ItemsUnavailableError,
    OrderNotFoundError,
    OrderPersistenceError,
    OrderValidationError,
    ShippingRateNotFoundError,
    StatusTransitionError,
)
from purrfect_glow.database.models.order import OrderStatus
from purrfect_glow.database.models.shipping import ShippingModality, ShippingZone
from purrfect_glow.services.orders.handoff import HandoffRenderer
from purrfect_glow.services.orders.service import (
    CartItem,
    CustomerDetails,
    OrderService,
    merge_cart_items,
    validate_customer,
)
from purrfect_glow.services.orders.state_machine import OrderStatusLifecycle
from purrfect_glow.services.shipping.rates import InMemoryShippingRateTable


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def order_service(db_session, handoff_renderer) -> OrderService:
    return OrderService(db_session, handoff_renderer=handoff_renderer)


@pytest.fixture
def cart(catalog) -> list[CartItem]:
    """Two serums and one cream."""
    return [
        CartItem(product_id=catalog["serum"].id, quantity=2),
        CartItem(product_id=catalog["cream"].id, quantity=1),
    ]


async def place(service, customer, cart, zone=ShippingZone.LIMA_LOCAL,
                modality=ShippingModality.DOMICILIO):
    return await service.create_order(
        customer=customer,
        shipping_zone=zone,
        shipping_modality=modality,
        items=cart,
    )


def message_of(link: str) -> str:
    return parse_qs(urlsplit(link).query)["text"][0]


# ============================================================================
# Input validation
# ============================================================================


class TestValidateCustomer:
    """Test customer field validation."""

    def test_fields_are_trimmed(self, customer):
        cleaned = validate_customer(replace(customer, full_name="  Ana Torres "))

        assert cleaned.full_name == "Ana Torres"

    def test_blank_fields_are_listed(self, customer):
        with pytest.raises(OrderValidationError) as exc_info:
            validate_customer(replace(customer, dni="  ", province=""))

        assert exc_info.value.message == "Missing required fields: dni, province"
        assert exc_info.value.context["missing_fields"] == ["dni", "province"]


class TestMergeCartItems:
    """Test cart line validation and merging."""

    def test_repeated_products_are_summed_in_first_seen_order(self):
        a, b = uuid.uuid4(), uuid.uuid4()

        merged = merge_cart_items(
            [CartItem(a, 1), CartItem(b, 1), CartItem(a, 2)]
        )

        assert merged == [CartItem(a, 3), CartItem(b, 1)]

    def test_empty_cart_is_rejected(self):
        with pytest.raises(OrderValidationError, match="at least one item"):
            merge_cart_items([])

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
    def test_invalid_quantity_is_rejected(self, quantity):
        with pytest.raises(OrderValidationError):
            merge_cart_items([CartItem(uuid.uuid4(), quantity)])


# ============================================================================
# Placement
# ============================================================================


class TestCreateOrder:
    """Test order placement."""

    async def test_prices_order_from_catalog_and_rate_table(
        self, order_service, customer, cart, catalog
    ):
        placement = await place(order_service, customer, cart)

        assert placement.totals.subtotal == Decimal("300.00")
        assert placement.totals.shipping_cost == Decimal("10.00")
        assert placement.totals.total_amount == Decimal("310.00")
        assert placement.handoff_error is None

        order = await order_service.get_order(placement.order_id)
        assert order.status == OrderStatus.PENDING
        assert order.estimated_days == "24 - 48h"
        assert order.handoff_link == placement.handoff_link
        assert [(item.product_name, item.quantity, item.unit_price, item.line_total)
                for item in order.items] == [
            ("Sérum Vitamina C", 2, Decimal("85.00"), Decimal("170.00")),
            ("Crema Hidratante", 1, Decimal("130.00"), Decimal("130.00")),
        ]
        assert order.validate_amounts() == (True, [])

    async def test_handoff_link_carries_order_summary(self, order_service, customer, cart):
        placement = await place(order_service, customer, cart)

        assert placement.handoff_link.startswith("https://wa.me/51959619405?text=")
        message = message_of(placement.handoff_link)
        assert "Soy *Ana Torres*" in message
        assert "   • Sérum Vitamina C x2 — S/ 170.00" in message
        assert "💰 *TOTAL: S/ 310.00*" in message

    async def test_repeated_cart_lines_become_one_item(
        self, order_service, customer, catalog
    ):
        serum = catalog["serum"].id
        placement = await place(
            order_service, customer, [CartItem(serum, 1), CartItem(serum, 1)]
        )

        order = await order_service.get_order(placement.order_id)
        assert len(order.items) == 1
        assert order.items[0].quantity == 2
        assert placement.totals.subtotal == Decimal("170.00")

    async def test_zone_mismatch_is_accepted(self, order_service, customer, cart):
        cusco = replace(customer, department="Cusco", province="Cusco")

        placement = await place(
            order_service, cusco, cart, zone=ShippingZone.COSTA_NACIONAL,
            modality=ShippingModality.AGENCIA,
        )

        assert placement.totals.shipping_cost == Decimal("12.00")

    async def test_unavailable_product_leaves_no_rows(
        self, order_service, customer, cart, catalog, row_counts
    ):
        retired = catalog["retired"].id

        with pytest.raises(ItemsUnavailableError) as exc_info:
            await place(order_service, customer, cart + [CartItem(retired, 1)])

        assert exc_info.value.product_ids == [str(retired)]
        assert await row_counts() == (0, 0)

    async def test_unknown_product_leaves_no_rows(
        self, order_service, customer, cart, row_counts
    ):
        missing = uuid.uuid4()

        with pytest.raises(ItemsUnavailableError) as exc_info:
            await place(order_service, customer, cart + [CartItem(missing, 1)])

        assert exc_info.value.product_ids == [str(missing)]
        assert await row_counts() == (0, 0)

    async def test_missing_rate_leaves_no_rows(
        self, order_service, customer, cart, row_counts
    ):
        with pytest.raises(ShippingRateNotFoundError) as exc_info:
            await place(order_service, customer, cart, modality=ShippingModality.AGENCIA)

        assert exc_info.value.context == {
            "shipping_zone": "LIMA_LOCAL",
            "shipping_modality": "AGENCIA",
        }
        assert await row_counts() == (0, 0)

    async def test_injected_rate_provider(self, db_session, handoff_renderer, customer, cart):
        rates = InMemoryShippingRateTable(
            [(ShippingZone.LIMA_LOCAL, ShippingModality.DOMICILIO, Decimal("7.50"), "Hoy")]
        )
        service = OrderService(db_session, rate_provider=rates, handoff_renderer=handoff_renderer)

        placement = await place(service, customer, cart)

        assert placement.totals.total_amount == Decimal("307.50")
        assert "⏱️ Tiempo estimado: Hoy" in message_of(placement.handoff_link)

    async def test_commit_failure_is_retryable_and_leaves_no_rows(
        self, order_service, db_session, customer, cart, row_counts, monkeypatch
    ):
        monkeypatch.setattr(
            db_session,
            "commit",
            AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("timeout"))),
        )

        with pytest.raises(OrderPersistenceError) as exc_info:
            await place(order_service, customer, cart)

        assert exc_info.value.retryable is True
        assert await row_counts() == (0, 0)

    async def test_handoff_failure_keeps_order(
        self, db_session, customer, cart, row_counts, tmp_path
    ):
        broken = HandoffRenderer(whatsapp_number="51959619405", template_dir=tmp_path)
        service = OrderService(db_session, handoff_renderer=broken)

        placement = await place(service, customer, cart)

        assert placement.handoff_link is None
        assert placement.handoff_error
        assert await row_counts() == (1, 2)

    async def test_blank_customer_field_is_rejected(
        self, order_service, customer, cart, row_counts
    ):
        with pytest.raises(OrderValidationError):
            await place(order_service, replace(customer, phone=" "), cart)

        assert await row_counts() == (0, 0)


# ============================================================================
# Administration
# ============================================================================


class TestOrderAdministration:
    """Test lookup, listing, status changes and link regeneration."""

    async def test_get_unknown_order(self, order_service):
        with pytest.raises(OrderNotFoundError):
            await order_service.get_order(uuid.uuid4())

    async def test_list_orders_with_pagination(self, order_service, customer, cart):
        for _ in range(3):
            await place(order_service, customer, cart)

        page = await order_service.list_orders(page=2, limit=2)

        assert page.total == 3
        assert page.pages == 2
        assert len(page.orders) == 1

    async def test_list_orders_filtered_by_status(self, order_service, customer, cart):
        first = await place(order_service, customer, cart)
        await place(order_service, customer, cart)
        await order_service.set_status(first.order_id, OrderStatus.SHIPPED)

        page = await order_service.list_orders(status=OrderStatus.SHIPPED)

        assert page.total == 1
        assert page.orders[0].id == first.order_id

    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (1, 101)])
    async def test_list_orders_rejects_bad_paging(self, order_service, page, limit):
        with pytest.raises(OrderValidationError):
            await order_service.list_orders(page=page, limit=limit)

    async def test_status_counts_include_empty_statuses(self, order_service, customer, cart):
        placement = await place(order_service, customer, cart)
        await place(order_service, customer, cart)
        await order_service.set_status(placement.order_id, OrderStatus.DELIVERED)

        counts = await order_service.status_counts()

        assert counts == {
            OrderStatus.PENDING: 1,
            OrderStatus.SHIPPED: 0,
            OrderStatus.DELIVERED: 1,
        }

    async def test_set_status_keeps_amounts(self, order_service, customer, cart):
        placement = await place(order_service, customer, cart)

        order = await order_service.set_status(placement.order_id, OrderStatus.SHIPPED)

        assert order.status == OrderStatus.SHIPPED
        assert order.total_amount == Decimal("310.00")

    async def test_permissive_policy_allows_backwards_correction(
        self, order_service, customer, cart
    ):
        placement = await place(order_service, customer, cart)
        await order_service.set_status(placement.order_id, OrderStatus.DELIVERED)

        order = await order_service.set_status(placement.order_id, OrderStatus.PENDING)

        assert order.status == OrderStatus.PENDING

    async def test_forward_only_policy_rejects_skipping(
        self, db_session, handoff_renderer, customer, cart
    ):
        service = OrderService(
            db_session,
            handoff_renderer=handoff_renderer,
            lifecycle=OrderStatusLifecycle("forward_only"),
        )
        placement = await place(service, customer, cart)

        with pytest.raises(StatusTransitionError):
            await service.set_status(placement.order_id, OrderStatus.DELIVERED)

        order = await service.get_order(placement.order_id)
        assert order.status == OrderStatus.PENDING

    async def test_later_price_changes_keep_order_snapshots(
        self, order_service, db_session, session_factory, handoff_renderer,
        customer, cart, catalog
    ):
        placement = await place(order_service, customer, cart)
        catalog["serum"].price = Decimal("99.00")
        await db_session.commit()

        async with session_factory() as session:
            order = await OrderService(
                session, handoff_renderer=handoff_renderer
            ).get_order(placement.order_id)

            assert order.items[0].unit_price == Decimal("85.00")
            assert order.items[0].line_total == Decimal("170.00")
            assert order.subtotal == Decimal("300.00")
            assert order.total_amount == Decimal("310.00")

        link = await order_service.regenerate_handoff_link(placement.order_id)

        assert link == placement.handoff_link
        assert "S/ 170.00" in message_of(link)
