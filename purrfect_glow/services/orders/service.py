"""
Order service orchestrating checkout.

This module implements the OrderService class, which turns a cart and a
shipping address into a persisted order and hands the customer over to
WhatsApp for manual confirmation. It also serves the admin operations on
placed orders: lookup, listing, status counts, status changes and handoff
link regeneration.

Placement runs in a single transaction: products are read under a shared
row lock, every line is priced from the stored product price, shipping is
priced from the rate table, and order plus items are inserted and committed
together. Any failure before the commit leaves no rows behind.
"""

import asyncio
import math
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from purrfect_glow.core.config import get_settings
from purrfect_glow.core.exceptions import (
    CheckoutError,
    HandoffGenerationError,
    ItemsUnavailableError,
    OrderNotFoundError,
    OrderPersistenceError,
    OrderValidationError,
    ShippingRateNotFoundError,
)
from purrfect_glow.core.logging import get_logger, log_performance
from purrfect_glow.database.models.order import Order, OrderStatus
from purrfect_glow.database.models.shipping import ShippingModality, ShippingZone
from purrfect_glow.services.catalog.repository import CatalogRepository
from purrfect_glow.services.orders.handoff import HandoffRenderer, HandoffSummary
from purrfect_glow.services.orders.pricing import (
    OrderTotals,
    compute_totals,
    price_line,
)
from purrfect_glow.services.orders.repository import OrderRepository
from purrfect_glow.services.orders.state_machine import OrderStatusLifecycle
from purrfect_glow.services.shipping.rates import (
    ShippingRateProvider,
    SqlShippingRateRepository,
)
from purrfect_glow.services.shipping.zones import ZoneResolver

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class CustomerDetails:
    """Contact and delivery details entered at checkout."""

    full_name: str
    dni: str
    phone: str
    address: str
    department: str
    province: str


@dataclass(frozen=True)
class CartItem:
    product_id: uuid.UUID
    quantity: int


@dataclass(frozen=True)
class OrderPlacement:
    """
    Result of a successful placement.

    handoff_error is set when the order was committed but its WhatsApp link
    could not be generated or saved; the link can be regenerated later.
    """

    order_id: uuid.UUID
    totals: OrderTotals
    handoff_link: Optional[str]
    handoff_error: Optional[str] = None


@dataclass(frozen=True)
class OrderPage:
    orders: Sequence[Order]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


def validate_customer(customer: CustomerDetails) -> CustomerDetails:
    """
    Trim customer fields and require every one of them.

    Raises:
        OrderValidationError: If any field is blank
    """
    fields = {
        "full_name": customer.full_name,
        "dni": customer.dni,
        "phone": customer.phone,
        "address": customer.address,
        "department": customer.department,
        "province": customer.province,
    }
    cleaned = {
        name: value.strip() if isinstance(value, str) else ""
        for name, value in fields.items()
    }
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise OrderValidationError(
            "Missing required fields: " + ", ".join(missing),
            missing_fields=missing,
        )
    return CustomerDetails(**cleaned)


def merge_cart_items(items: Iterable[CartItem]) -> list[CartItem]:
    """
    Validate cart lines and merge repeated products.

    Quantities of repeated products are summed; lines keep the order in
    which each product first appeared.

    Raises:
        OrderValidationError: If the cart is empty or a quantity is below one
    """
    merged: dict[uuid.UUID, int] = {}
    for item in items:
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise OrderValidationError(
                "Quantity must be a positive integer",
                product_id=str(item.product_id),
                quantity=quantity,
            )
        merged[item.product_id] = merged.get(item.product_id, 0) + quantity

    if not merged:
        raise OrderValidationError("Order must have at least one item")

    return [CartItem(product_id=pid, quantity=qty) for pid, qty in merged.items()]


class OrderService:
    """
    Order service orchestrating checkout and order administration.

    Attributes:
        session: Unit-of-work session; the service commits and rolls back
        repository: Order repository for data access
        catalog: Product reads for pricing and availability
        rates: Shipping rate source
        zone_resolver: Department to zone lookup
        handoff: WhatsApp message renderer
        lifecycle: Status transition policy
    """

    def __init__(
        self,
        session: AsyncSession,
        rate_provider: Optional[ShippingRateProvider] = None,
        handoff_renderer: Optional[HandoffRenderer] = None,
        lifecycle: Optional[OrderStatusLifecycle] = None,
        zone_resolver: Optional[ZoneResolver] = None,
    ):
        """
        Initialize order service.

        Args:
            session: Async database session
            rate_provider: Rate source, defaults to the shipping_rates table
            handoff_renderer: Renderer, defaults to one built from settings
            lifecycle: Status policy, defaults to the configured policy
            zone_resolver: Zone lookup, defaults to the Peruvian department map
        """
        settings = get_settings()

        self.session = session
        self.repository = OrderRepository(session)
        self.catalog = CatalogRepository(session)
        self.rates = rate_provider or SqlShippingRateRepository(session)
        self.zone_resolver = zone_resolver or ZoneResolver()
        self.handoff = handoff_renderer or HandoffRenderer(
            whatsapp_number=settings.whatsapp_number,
            store_name=settings.store_contact_name,
            currency_symbol=settings.currency_symbol,
        )
        self.lifecycle = lifecycle or OrderStatusLifecycle(settings.order_status_policy)

    async def create_order(
        self,
        customer: CustomerDetails,
        shipping_zone: ShippingZone,
        shipping_modality: ShippingModality,
        items: Iterable[CartItem],
    ) -> OrderPlacement:
        """
        Place an order.

        Args:
            customer: Contact and delivery details
            shipping_zone: Zone chosen at checkout
            shipping_modality: Delivery modality chosen at checkout
            items: Cart lines; client prices are never accepted

        Returns:
            OrderPlacement with the new order id, totals and handoff link

        Raises:
            OrderValidationError: If the request is malformed
            ItemsUnavailableError: If a product is missing or unavailable
            ShippingRateNotFoundError: If the zone and modality have no rate
            OrderPersistenceError: If the transaction fails or times out
        """
        customer = validate_customer(customer)
        cart = merge_cart_items(items)

        resolved_zone = self.zone_resolver.resolve(customer.department)
        if resolved_zone != shipping_zone:
            logger.warning(
                "Shipping zone differs from department zone",
                department=customer.department,
                province=customer.province,
                requested_zone=shipping_zone.value,
                resolved_zone=resolved_zone.value,
            )

        logger.info(
            "Creating order",
            item_count=len(cart),
            shipping_zone=shipping_zone.value,
            shipping_modality=shipping_modality.value,
        )

        with log_performance(
            logger,
            "order_placement",
            item_count=len(cart),
            shipping_zone=shipping_zone.value,
        ):
            try:
                products = await self.catalog.get_products_for_order(
                    [item.product_id for item in cart]
                )

                unavailable = [
                    str(item.product_id)
                    for item in cart
                    if item.product_id not in products
                    or not products[item.product_id].is_available
                ]
                if unavailable:
                    raise ItemsUnavailableError(
                        "Some products are not available: " + ", ".join(unavailable),
                        product_ids=unavailable,
                    )

                lines = [
                    price_line(
                        product_id=item.product_id,
                        product_name=products[item.product_id].name,
                        unit_price=products[item.product_id].price,
                        quantity=item.quantity,
                    )
                    for item in cart
                ]

                rate = await self.rates.get_rate(shipping_zone, shipping_modality)
                if rate is None:
                    logger.error(
                        "Shipping rate not configured",
                        shipping_zone=shipping_zone.value,
                        shipping_modality=shipping_modality.value,
                    )
                    raise ShippingRateNotFoundError(
                        f"No shipping rate for {shipping_zone.value} - "
                        f"{shipping_modality.value}",
                        shipping_zone=shipping_zone.value,
                        shipping_modality=shipping_modality.value,
                    )

                totals = compute_totals(lines, rate.cost)

                order = await self.repository.create_order_with_items(
                    full_name=customer.full_name,
                    dni=customer.dni,
                    phone=customer.phone,
                    address=customer.address,
                    department=customer.department,
                    province=customer.province,
                    shipping_zone=shipping_zone,
                    shipping_modality=shipping_modality,
                    estimated_days=rate.estimated_days,
                    totals=totals,
                    lines=lines,
                )

                is_valid, errors = order.validate_amounts()
                if not is_valid:
                    raise OrderPersistenceError(
                        "Order amounts are inconsistent",
                        errors=errors,
                    )

                await self.session.commit()

            except CheckoutError:
                await self.session.rollback()
                raise
            except (SQLAlchemyError, asyncio.TimeoutError) as e:
                await self.session.rollback()
                logger.error(
                    "Order placement failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise OrderPersistenceError(
                    "Order could not be saved, please retry",
                    error_type=type(e).__name__,
                ) from e

        order_id = order.id
        logger.info(
            "Order created",
            order_id=str(order_id),
            subtotal=str(totals.subtotal),
            shipping_cost=str(totals.shipping_cost),
            total_amount=str(totals.total_amount),
        )

        handoff_link, handoff_error = await self._attach_handoff_link(order)

        return OrderPlacement(
            order_id=order_id,
            totals=totals,
            handoff_link=handoff_link,
            handoff_error=handoff_error,
        )

    async def _attach_handoff_link(
        self, order: Order
    ) -> tuple[Optional[str], Optional[str]]:
        """Generate and persist the link of a committed order without raising."""
        order_id = order.id
        try:
            link = self.handoff.order_link(HandoffSummary.from_order(order))
        except HandoffGenerationError as e:
            logger.error(
                "Handoff link generation failed",
                order_id=str(order_id),
                error=e.message,
            )
            return None, e.message

        try:
            order.handoff_link = link
            await self.repository.save(order)
            await self.session.commit()
        except (CheckoutError, SQLAlchemyError, asyncio.TimeoutError) as e:
            await self.session.rollback()
            logger.error(
                "Handoff link could not be saved",
                order_id=str(order_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return link, "Handoff link could not be saved"

        return link, None

    async def get_order(self, order_id: uuid.UUID) -> Order:
        """
        Get an order with its items.

        Raises:
            OrderNotFoundError: If the order does not exist
        """
        order = await self.repository.get_order_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(
                f"Order {order_id} not found",
                order_id=str(order_id),
            )
        return order

    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> OrderPage:
        """
        List orders newest first.

        Raises:
            OrderValidationError: If page or limit is out of range
        """
        if page < 1:
            raise OrderValidationError("Page must be at least 1", page=page)
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise OrderValidationError(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}",
                limit=limit,
            )

        orders, total = await self.repository.list_orders(
            status=status,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return OrderPage(orders=orders, total=total, page=page, limit=limit)

    async def status_counts(self) -> dict[OrderStatus, int]:
        """Count orders per status, including statuses with no orders."""
        return await self.repository.count_by_status()

    async def set_status(self, order_id: uuid.UUID, new_status: OrderStatus) -> Order:
        """
        Change the status of an order.

        Only status and updated_at change; amounts are never recomputed.

        Raises:
            OrderNotFoundError: If the order does not exist
            StatusTransitionError: If the configured policy rejects the change
            OrderPersistenceError: If the update fails
        """
        order = await self.get_order(order_id)
        old_status = order.status
        self.lifecycle.validate_transition(old_status, new_status)

        if old_status == new_status:
            logger.debug(
                "Order status unchanged",
                order_id=str(order_id),
                status=new_status.value,
            )
            return order

        try:
            order.status = new_status
            await self.repository.save(order)
            await self.session.commit()
        except CheckoutError:
            await self.session.rollback()
            raise
        except (SQLAlchemyError, asyncio.TimeoutError) as e:
            await self.session.rollback()
            logger.error(
                "Order status update failed",
                order_id=str(order_id),
                error=str(e),
            )
            raise OrderPersistenceError(
                "Order status could not be updated, please retry",
                order_id=str(order_id),
            ) from e

        logger.info(
            "Order status updated",
            order_id=str(order_id),
            old_status=old_status.value,
            new_status=new_status.value,
        )
        return order

    async def regenerate_handoff_link(self, order_id: uuid.UUID) -> str:
        """
        Rebuild and store the handoff link from the order's snapshots.

        The message is identical to the one generated at checkout, whatever
        happened to catalog prices or shipping rates since.

        Raises:
            OrderNotFoundError: If the order does not exist
            HandoffGenerationError: If the message cannot be rendered
            OrderPersistenceError: If the link cannot be saved
        """
        order = await self.get_order(order_id)
        link = self.handoff.order_link(HandoffSummary.from_order(order))

        try:
            order.handoff_link = link
            await self.repository.save(order)
            await self.session.commit()
        except CheckoutError:
            await self.session.rollback()
            raise
        except (SQLAlchemyError, asyncio.TimeoutError) as e:
            await self.session.rollback()
            raise OrderPersistenceError(
                "Handoff link could not be saved, please retry",
                order_id=str(order_id),
            ) from e

        logger.info("Handoff link regenerated", order_id=str(order_id))
        return link
