"""
Product endpoints owned by the checkout service.

Size reconciliation for the admin product editor and the WhatsApp inquiry
link shown on product pages. Catalog browsing is served elsewhere.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from purrfect_glow.api.deps import (
    get_catalog_repository,
    get_handoff_renderer,
    get_inventory_reconciler,
    require_admin,
)
from purrfect_glow.core.exceptions import ProductNotFoundError
from purrfect_glow.schemas.products import (
    InquiryLinkResponse,
    ReconciliationResponse,
    SizeResponse,
    SizesUpdateRequest,
)
from purrfect_glow.services.catalog.repository import CatalogRepository
from purrfect_glow.services.inventory.reconciler import (
    DesiredSize,
    InventoryReconciler,
)
from purrfect_glow.services.orders.handoff import HandoffRenderer

router = APIRouter(prefix="/products", tags=["Products"])


@router.put(
    "/{product_id}/sizes",
    response_model=ReconciliationResponse,
    dependencies=[Depends(require_admin)],
    summary="Replace product sizes",
    description="Reconcile the stored sizes of a product against the submitted list",
)
async def replace_sizes(
    product_id: UUID,
    payload: SizesUpdateRequest,
    reconciler: Annotated[InventoryReconciler, Depends(get_inventory_reconciler)],
) -> ReconciliationResponse:
    """
    Reconcile product sizes.

    Args:
        product_id: Product identifier
        payload: Complete desired size list
        reconciler: Inventory reconciler

    Returns:
        Applied changes and the resulting sizes
    """
    result = await reconciler.reconcile_sizes(
        product_id,
        [DesiredSize(value=size.value, inventory=size.inventory) for size in payload.sizes],
    )
    return ReconciliationResponse(
        product_id=result.product_id,
        created=result.created,
        updated=result.updated,
        unchanged=result.unchanged,
        deleted=result.deleted,
        sizes=[SizeResponse.model_validate(size) for size in result.sizes],
    )


@router.get(
    "/{product_id}/inquiry-link",
    response_model=InquiryLinkResponse,
    summary="Product inquiry link",
)
async def get_inquiry_link(
    product_id: UUID,
    catalog: Annotated[CatalogRepository, Depends(get_catalog_repository)],
    renderer: Annotated[HandoffRenderer, Depends(get_handoff_renderer)],
) -> InquiryLinkResponse:
    product = await catalog.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(
            f"Product {product_id} not found",
            product_id=str(product_id),
        )
    return InquiryLinkResponse(
        product_id=product_id,
        link=renderer.product_inquiry_link(product.name),
    )
