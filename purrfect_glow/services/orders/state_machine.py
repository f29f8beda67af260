"""Order status lifecycle policies.

Orders move PENDING -> SHIPPED -> DELIVERED. Admin tooling historically
allowed any status to be set, including corrections backwards, so the
permissive policy is the default; the forward-only policy can be enabled
through configuration.
"""

from typing import Literal

from purrfect_glow.core.exceptions import StatusTransitionError
from purrfect_glow.core.logging import get_logger
from purrfect_glow.database.models.order import OrderStatus

logger = get_logger(__name__)

StatusPolicy = Literal["permissive", "forward_only"]

FORWARD_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
}


class OrderStatusLifecycle:
    """Validates order status transitions under a configured policy.

    Setting an order to the status it already has is always allowed and
    changes nothing.
    """

    def __init__(self, policy: StatusPolicy = "permissive"):
        """Initialize lifecycle with a transition policy.

        Args:
            policy: "permissive" allows any transition between known
                statuses, "forward_only" allows one step forward at a time

        Raises:
            ValueError: If policy is unknown
        """
        if policy not in ("permissive", "forward_only"):
            raise ValueError(f"Unknown status policy: {policy}")
        self.policy = policy

    def allowed_targets(self, current: OrderStatus) -> frozenset[OrderStatus]:
        """Statuses reachable from the current one, excluding itself."""
        if self.policy == "permissive":
            return frozenset(status for status in OrderStatus if status != current)
        return FORWARD_TRANSITIONS[current]

    def can_transition(self, current: OrderStatus, target: OrderStatus) -> bool:
        """Check whether a transition is permitted."""
        return current == target or target in self.allowed_targets(current)

    def validate_transition(self, current: OrderStatus, target: OrderStatus) -> None:
        """Validate a transition.

        Raises:
            StatusTransitionError: If the policy rejects the transition
        """
        if self.can_transition(current, target):
            return

        allowed = sorted(status.value for status in self.allowed_targets(current))
        logger.warning(
            "Order status transition rejected",
            from_status=current.value,
            to_status=target.value,
            policy=self.policy,
        )
        raise StatusTransitionError(
            f"Cannot change order status from {current.value} to {target.value}",
            from_status=current.value,
            to_status=target.value,
            allowed=allowed,
            policy=self.policy,
        )
