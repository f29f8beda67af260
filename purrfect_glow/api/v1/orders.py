"""
Order API endpoints.

This module implements the public checkout endpoint and the admin endpoints
for order lookup, listing, status counts, status changes and handoff link
regeneration. Domain errors propagate to the application-level CheckoutError
handler, which renders them with their status code.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from purrfect_glow.api.deps import get_order_service, require_admin
from purrfect_glow.core.config import get_settings
from purrfect_glow.core.rate_limit import limiter
from purrfect_glow.database.models.order import OrderStatus
from purrfect_glow.schemas.orders import (
    HandoffLinkResponse,
    OrderCreateRequest,
    OrderListResponse,
    OrderPlacementResponse,
    OrderResponse,
    OrderStatusUpdateRequest,
)
from purrfect_glow.services.orders.service import (
    CartItem,
    CustomerDetails,
    OrderService,
)

router = APIRouter(prefix="/orders", tags=["Orders"])

OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
AdminOnly = [Depends(require_admin)]


@router.post(
    "",
    response_model=OrderPlacementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description="Price the cart on the server, persist the order and return the WhatsApp handoff link",
)
@limiter.limit(get_settings().order_rate_limit)
async def create_order(
    request: Request,
    payload: OrderCreateRequest,
    service: OrderServiceDep,
) -> OrderPlacementResponse:
    """
    Place an order from a cart and shipping address.

    Args:
        request: HTTP request, used for rate limiting
        payload: Checkout request
        service: Order service

    Returns:
        Order id, totals and handoff link
    """
    placement = await service.create_order(
        customer=CustomerDetails(
            full_name=payload.full_name,
            dni=payload.dni,
            phone=payload.phone,
            address=payload.address,
            department=payload.department,
            province=payload.province,
        ),
        shipping_zone=payload.shipping_zone,
        shipping_modality=payload.shipping_modality,
        items=[
            CartItem(product_id=item.product_id, quantity=item.quantity)
            for item in payload.items
        ],
    )

    return OrderPlacementResponse(
        order_id=placement.order_id,
        subtotal=placement.totals.subtotal,
        shipping_cost=placement.totals.shipping_cost,
        total_amount=placement.totals.total_amount,
        handoff_link=placement.handoff_link,
        handoff_error=placement.handoff_error,
    )


@router.get(
    "",
    response_model=OrderListResponse,
    dependencies=AdminOnly,
    summary="List orders",
    description="Paginated order listing, newest first",
)
async def list_orders(
    service: OrderServiceDep,
    status_filter: Optional[OrderStatus] = Query(
        None, alias="status", description="Filter by order status"
    ),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Orders per page"),
) -> OrderListResponse:
    result = await service.list_orders(status=status_filter, page=page, limit=limit)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in result.orders],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get(
    "/status-counts",
    response_model=dict[str, int],
    dependencies=AdminOnly,
    summary="Count orders per status",
)
async def get_status_counts(service: OrderServiceDep) -> dict[str, int]:
    counts = await service.status_counts()
    return {order_status.value: count for order_status, count in counts.items()}


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    dependencies=AdminOnly,
    summary="Get order details",
)
async def get_order(order_id: UUID, service: OrderServiceDep) -> OrderResponse:
    order = await service.get_order(order_id)
    return OrderResponse.model_validate(order)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    dependencies=AdminOnly,
    summary="Update order status",
    description="Change the order status under the configured transition policy",
)
async def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdateRequest,
    service: OrderServiceDep,
) -> OrderResponse:
    """
    Update order status.

    Args:
        order_id: Order identifier
        payload: New status
        service: Order service

    Returns:
        Updated order
    """
    order = await service.set_status(order_id, payload.status)
    return OrderResponse.model_validate(order)


@router.post(
    "/{order_id}/handoff-link",
    response_model=HandoffLinkResponse,
    dependencies=AdminOnly,
    summary="Regenerate handoff link",
    description="Rebuild the WhatsApp handoff link from the order snapshot",
)
async def regenerate_handoff_link(
    order_id: UUID, service: OrderServiceDep
) -> HandoffLinkResponse:
    link = await service.regenerate_handoff_link(order_id)
    return HandoffLinkResponse(order_id=order_id, handoff_link=link)
