"""
FastAPI dependencies for services and admin access.

This module wires request-scoped services onto the database session and
provides the admin access hook used by order administration and catalog
maintenance routes.
"""

import secrets
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from purrfect_glow.core.config import get_settings
from purrfect_glow.core.logging import get_logger
from purrfect_glow.database.connection import get_db
from purrfect_glow.services.catalog.repository import CatalogRepository
from purrfect_glow.services.inventory.reconciler import InventoryReconciler
from purrfect_glow.services.orders.handoff import HandoffRenderer
from purrfect_glow.services.orders.service import OrderService
from purrfect_glow.services.shipping.rates import SqlShippingRateRepository

logger = get_logger(__name__)

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_handoff_renderer() -> HandoffRenderer:
    """Handoff renderer configured from settings."""
    settings = get_settings()
    return HandoffRenderer(
        whatsapp_number=settings.whatsapp_number,
        store_name=settings.store_contact_name,
        currency_symbol=settings.currency_symbol,
    )


async def get_order_service(
    db: DbSession,
    renderer: Annotated[HandoffRenderer, Depends(get_handoff_renderer)],
) -> OrderService:
    return OrderService(db, handoff_renderer=renderer)


async def get_rate_repository(db: DbSession) -> SqlShippingRateRepository:
    return SqlShippingRateRepository(db)


async def get_catalog_repository(db: DbSession) -> CatalogRepository:
    return CatalogRepository(db)


async def get_inventory_reconciler(db: DbSession) -> InventoryReconciler:
    return InventoryReconciler(db)


async def require_admin(
    x_admin_key: Annotated[Optional[str], Header()] = None,
) -> None:
    """
    Guard admin routes.

    When an admin key is configured the X-Admin-Key header must match it.
    Without a configured key, access control is left to the authentication
    layer in front of this service.

    Raises:
        HTTPException: 401 if the configured key is missing or wrong
    """
    expected = get_settings().admin_api_key
    if not expected:
        return

    if x_admin_key is None or not secrets.compare_digest(
        x_admin_key.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Admin access denied", has_key=x_admin_key is not None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin credentials",
        )
