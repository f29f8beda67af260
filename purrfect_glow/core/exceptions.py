"""
Checkout error hierarchy.

Every error raised by the order engine, the inventory reconciler and the
shipping lookups derives from CheckoutError. Each class carries a
machine-readable ``kind``, a ``retryable`` flag and the structured context
passed at raise time; the API layer renders all of them through a single
exception handler.
"""

from typing import Any


class CheckoutError(Exception):
    """Base exception for checkout and inventory errors."""

    kind = "checkout_error"
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class OrderValidationError(CheckoutError):
    """Raised when an order request is malformed."""

    kind = "validation_error"


class SizeValidationError(CheckoutError):
    """Raised when a desired size entry is blank or has negative inventory."""

    kind = "validation_error"


class ItemsUnavailableError(CheckoutError):
    """Raised when ordered products are missing or not available."""

    kind = "items_unavailable"

    def __init__(self, message: str, product_ids: list[str], **context: Any):
        super().__init__(message, product_ids=product_ids, **context)
        self.product_ids = product_ids


class ShippingRateNotFoundError(CheckoutError):
    """Raised when no rate is configured for a (zone, modality) pair."""

    kind = "shipping_rate_not_found"


class OrderPersistenceError(CheckoutError):
    """Raised when the order transaction fails or times out."""

    kind = "persistence_error"
    retryable = True


class InventoryPersistenceError(CheckoutError):
    """Raised when the size reconciliation transaction fails."""

    kind = "persistence_error"
    retryable = True


class ShippingRateStoreError(CheckoutError):
    """Raised when the shipping rate table cannot be read."""

    kind = "persistence_error"
    retryable = True


class SizeReconciliationConflictError(CheckoutError):
    """Raised when the desired size set repeats a value."""

    kind = "reconciliation_conflict"


class OrderNotFoundError(CheckoutError):
    """Raised when an order does not exist."""

    kind = "not_found"


class ProductNotFoundError(CheckoutError):
    """Raised when a product does not exist."""

    kind = "not_found"


class StatusTransitionError(CheckoutError):
    """Raised when the status policy rejects a transition."""

    kind = "invalid_status_transition"


class HandoffGenerationError(CheckoutError):
    """Raised when the WhatsApp handoff message cannot be rendered."""

    kind = "handoff_generation_failed"


ERROR_STATUS_CODES: dict[str, int] = {
    "validation_error": 400,
    "not_found": 404,
    "items_unavailable": 409,
    "reconciliation_conflict": 409,
    "invalid_status_transition": 409,
    "shipping_rate_not_found": 422,
    "handoff_generation_failed": 502,
    "persistence_error": 503,
}
