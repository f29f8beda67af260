"""
Order data access repository.

This module implements the OrderRepository class providing async methods for
inserting an order together with its items, fetching and listing orders,
counting orders per status and updating status and handoff links. The
repository never commits; the order service owns the transaction.
"""

import uuid
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from purrfect_glow.core.exceptions import OrderPersistenceError
from purrfect_glow.core.logging import get_logger
from purrfect_glow.database.models.order import Order, OrderItem, OrderStatus
from purrfect_glow.database.models.shipping import ShippingModality, ShippingZone
from purrfect_glow.services.orders.pricing import OrderTotals, PricedLine

logger = get_logger(__name__)


class OrderRepositoryError(OrderPersistenceError):
    """Raised when an order query or write fails."""

    pass


class OrderRepository:
    """
    Repository for order data access operations.

    Provides async methods for order creation, lookup, filtered pagination
    and status updates with structured logging. Writes are flushed, not
    committed.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize order repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def create_order_with_items(
        self,
        full_name: str,
        dni: str,
        phone: str,
        address: str,
        department: str,
        province: str,
        shipping_zone: ShippingZone,
        shipping_modality: ShippingModality,
        estimated_days: str,
        totals: OrderTotals,
        lines: Sequence[PricedLine],
    ) -> Order:
        """
        Insert an order and its items in the current transaction.

        Args:
            full_name: Customer full name
            dni: Customer identity document number
            phone: Customer phone
            address: Delivery address
            department: Delivery department
            province: Delivery province
            shipping_zone: Zone used to price shipping
            shipping_modality: Delivery modality
            estimated_days: Rate delivery estimate at checkout
            totals: Computed price breakdown
            lines: Priced lines in cart order

        Returns:
            Flushed order with items loaded

        Raises:
            OrderRepositoryError: If the insert fails
        """
        try:
            logger.debug(
                "Inserting order with items",
                item_count=len(lines),
                total_amount=str(totals.total_amount),
            )

            order = Order(
                full_name=full_name,
                dni=dni,
                phone=phone,
                address=address,
                department=department,
                province=province,
                shipping_zone=shipping_zone,
                shipping_modality=shipping_modality,
                estimated_days=estimated_days,
                subtotal=totals.subtotal,
                shipping_cost=totals.shipping_cost,
                total_amount=totals.total_amount,
                status=OrderStatus.PENDING,
                items=[
                    OrderItem(
                        product_id=line.product_id,
                        position=position,
                        product_name=line.product_name,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        line_total=line.line_total,
                    )
                    for position, line in enumerate(lines)
                ],
            )

            self.session.add(order)
            await self.session.flush()

            return order

        except IntegrityError as e:
            logger.error(
                "Order insert failed - integrity error",
                error=str(e),
            )
            raise OrderRepositoryError(
                "Order creation failed due to data integrity violation",
                error=str(e),
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                "Order insert failed - database error",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise OrderRepositoryError(
                "Order creation failed due to database error",
                error=str(e),
            ) from e

    async def get_order_by_id(self, order_id: uuid.UUID) -> Optional[Order]:
        """
        Get order by ID with its items.

        Returns:
            Order if found, None otherwise

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            result = await self.session.execute(
                select(Order).where(Order.id == order_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch order",
                order_id=str(order_id),
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to fetch order",
                order_id=str(order_id),
            ) from e

    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Order], int]:
        """
        List orders newest first with pagination.

        Args:
            status: Optional status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (orders, total_count)

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            conditions = []
            if status is not None:
                conditions.append(Order.status == status)

            stmt = (
                select(Order)
                .where(*conditions)
                .order_by(Order.created_at.desc())
                .offset(skip)
                .limit(limit)
            )
            count_stmt = select(func.count()).select_from(Order).where(*conditions)

            result = await self.session.execute(stmt)
            count_result = await self.session.execute(count_stmt)

            orders = result.scalars().all()
            total_count = count_result.scalar_one()

            logger.debug(
                "Orders fetched",
                status=status.value if status else None,
                count=len(orders),
                total=total_count,
            )

            return orders, total_count

        except SQLAlchemyError as e:
            logger.error("Failed to list orders", error=str(e))
            raise OrderRepositoryError("Failed to list orders") from e

    async def count_by_status(self) -> dict[OrderStatus, int]:
        """
        Count orders per status.

        Returns:
            Count for every status, zero where no order has it

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            result = await self.session.execute(
                select(Order.status, func.count()).group_by(Order.status)
            )
            counts = {status: 0 for status in OrderStatus}
            for status, count in result.all():
                counts[status] = count
            return counts
        except SQLAlchemyError as e:
            logger.error("Failed to count orders by status", error=str(e))
            raise OrderRepositoryError("Failed to count orders by status") from e

    async def save(self, order: Order) -> Order:
        """
        Flush pending changes of an order.

        Raises:
            OrderRepositoryError: If the update fails
        """
        try:
            await self.session.flush()
            return order
        except SQLAlchemyError as e:
            logger.error(
                "Failed to update order",
                order_id=str(order.id),
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to update order",
                order_id=str(order.id),
            ) from e

