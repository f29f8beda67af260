"""
Catalog read access for checkout and inventory reconciliation.

The catalog itself is managed elsewhere; this repository only reads products
and takes the row locks the order engine and the reconciler need.
"""

import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from purrfect_glow.core.exceptions import CheckoutError
from purrfect_glow.core.logging import get_logger
from purrfect_glow.database.models.product import Product

logger = get_logger(__name__)


class CatalogRepositoryError(CheckoutError):
    """Raised when a catalog query fails."""

    kind = "persistence_error"
    retryable = True


class CatalogRepository:
    """Repository for product reads with optional row locking."""

    def __init__(self, session: AsyncSession):
        """
        Initialize catalog repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def get_products_for_order(
        self, product_ids: Sequence[uuid.UUID]
    ) -> dict[uuid.UUID, Product]:
        """
        Batch-read products under a shared row lock.

        The lock is held until the caller's transaction ends, so price and
        availability cannot change between the read and the order insert.

        Args:
            product_ids: Products referenced by the cart

        Returns:
            Mapping of found product id to product; missing ids are absent

        Raises:
            CatalogRepositoryError: If the query fails
        """
        if not product_ids:
            return {}

        try:
            stmt = (
                select(Product)
                .where(Product.id.in_(product_ids))
                .with_for_update(read=True)
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            products = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch products for order",
                product_count=len(product_ids),
                error=str(e),
            )
            raise CatalogRepositoryError(
                "Failed to fetch products",
                product_count=len(product_ids),
            ) from e

        logger.debug(
            "Products fetched for order",
            requested=len(product_ids),
            found=len(products),
        )
        return {product.id: product for product in products}

    async def get_product(
        self, product_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Product]:
        """
        Get a product with its sizes.

        Args:
            product_id: Product identifier
            for_update: Take an exclusive row lock for the rest of the transaction

        Returns:
            Product if found, None otherwise

        Raises:
            CatalogRepositoryError: If the query fails
        """
        try:
            stmt = select(Product).where(Product.id == product_id)
            if for_update:
                stmt = stmt.with_for_update().execution_options(populate_existing=True)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch product",
                product_id=str(product_id),
                error=str(e),
            )
            raise CatalogRepositoryError(
                "Failed to fetch product",
                product_id=str(product_id),
            ) from e
