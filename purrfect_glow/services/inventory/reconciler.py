"""
Product size reconciliation.

Admins edit a product's sizes as a whole list. The reconciler turns the
edited list into the minimal set of creates, updates and deletes against the
stored rows and applies them in one transaction while the product row is
locked, so concurrent edits serialize and no duplicate or orphan size rows
are left behind.
"""

import asyncio
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from purrfect_glow.core.exceptions import (
    CheckoutError,
    InventoryPersistenceError,
    ProductNotFoundError,
    SizeReconciliationConflictError,
    SizeValidationError,
)
from purrfect_glow.core.logging import get_logger, log_performance
from purrfect_glow.database.models.product import Size
from purrfect_glow.services.catalog.repository import CatalogRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class DesiredSize:
    """Size value and inventory requested by the admin."""

    value: str
    inventory: int


class SizeRow(Protocol):
    value: str
    inventory: int


@dataclass
class SizePlan:
    """Changes needed to turn the stored sizes into the desired ones."""

    create: list[DesiredSize] = field(default_factory=list)
    update: list[DesiredSize] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    delete: list[str] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    """Outcome of a reconciliation run."""

    product_id: uuid.UUID
    created: list[str]
    updated: list[str]
    unchanged: list[str]
    deleted: list[str]
    sizes: list[Size]


def normalize_desired_sizes(desired: Iterable[DesiredSize]) -> list[DesiredSize]:
    """
    Trim and validate the desired size list.

    Raises:
        SizeValidationError: If a value is blank or an inventory is negative
        SizeReconciliationConflictError: If a value appears more than once
    """
    normalized = []
    for entry in desired:
        value = entry.value.strip() if isinstance(entry.value, str) else ""
        if not value:
            raise SizeValidationError("Size value must not be blank")
        if isinstance(entry.inventory, bool) or not isinstance(entry.inventory, int):
            raise SizeValidationError(
                "Inventory must be an integer", value=value
            )
        if entry.inventory < 0:
            raise SizeValidationError(
                "Inventory must not be negative",
                value=value,
                inventory=entry.inventory,
            )
        normalized.append(DesiredSize(value=value, inventory=entry.inventory))

    counts = Counter(entry.value for entry in normalized)
    duplicates = sorted(value for value, count in counts.items() if count > 1)
    if duplicates:
        raise SizeReconciliationConflictError(
            "Duplicate size values: " + ", ".join(duplicates),
            duplicates=duplicates,
        )

    return normalized


def plan_size_changes(
    current: Sequence[SizeRow], desired: Sequence[DesiredSize]
) -> SizePlan:
    """
    Compute the reconciliation plan.

    Values are matched exactly. A value present in both lists is updated
    only if its inventory differs. Stored values missing from the desired
    list are deleted.

    Args:
        current: Stored sizes of the product
        desired: Validated desired sizes with unique values

    Returns:
        SizePlan listing each value once
    """
    stored = {row.value: row.inventory for row in current}
    desired_values = {entry.value for entry in desired}
    plan = SizePlan()

    for entry in desired:
        if entry.value not in stored:
            plan.create.append(entry)
        elif stored[entry.value] != entry.inventory:
            plan.update.append(entry)
        else:
            plan.unchanged.append(entry.value)

    plan.delete = [row.value for row in current if row.value not in desired_values]
    return plan


class InventoryReconciler:
    """Applies desired size sets to products transactionally."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.catalog = CatalogRepository(session)

    async def reconcile_sizes(
        self, product_id: uuid.UUID, desired: Iterable[DesiredSize]
    ) -> ReconciliationResult:
        """
        Make the product's sizes equal to the desired set.

        Args:
            product_id: Product whose sizes are edited
            desired: Complete desired size list; empty removes every size

        Returns:
            ReconciliationResult with the applied changes and final sizes

        Raises:
            SizeValidationError: If an entry is invalid
            SizeReconciliationConflictError: If values repeat
            ProductNotFoundError: If the product does not exist
            InventoryPersistenceError: If the transaction fails
        """
        sizes = normalize_desired_sizes(desired)

        with log_performance(
            logger,
            "size_reconciliation",
            product_id=str(product_id),
            desired_count=len(sizes),
        ):
            try:
                product = await self.catalog.get_product(product_id, for_update=True)
                if product is None:
                    raise ProductNotFoundError(
                        f"Product {product_id} not found",
                        product_id=str(product_id),
                    )

                plan = plan_size_changes(product.sizes, sizes)
                by_value = {row.value: row for row in product.sizes}

                for value in plan.delete:
                    product.sizes.remove(by_value[value])
                for entry in plan.update:
                    by_value[entry.value].inventory = entry.inventory
                for entry in plan.create:
                    product.sizes.append(
                        Size(value=entry.value, inventory=entry.inventory)
                    )

                await self.session.commit()

            except CheckoutError:
                await self.session.rollback()
                raise
            except (SQLAlchemyError, asyncio.TimeoutError) as e:
                await self.session.rollback()
                logger.error(
                    "Size reconciliation failed",
                    product_id=str(product_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise InventoryPersistenceError(
                    "Size reconciliation failed, no changes were applied",
                    product_id=str(product_id),
                ) from e

        logger.info(
            "Sizes reconciled",
            product_id=str(product_id),
            created=len(plan.create),
            updated=len(plan.update),
            unchanged=len(plan.unchanged),
            deleted=len(plan.delete),
        )

        return ReconciliationResult(
            product_id=product_id,
            created=[entry.value for entry in plan.create],
            updated=[entry.value for entry in plan.update],
            unchanged=list(plan.unchanged),
            deleted=list(plan.delete),
            sizes=sorted(product.sizes, key=lambda row: row.value),
        )
