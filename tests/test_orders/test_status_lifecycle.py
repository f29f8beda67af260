"""
Test suite for order status lifecycle policies.
"""

import pytest

from purrfect_glow.core.exceptions import StatusTransitionError
from purrfect_glow.database.models.order import OrderStatus
from purrfect_glow.services.orders.state_machine import OrderStatusLifecycle


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def permissive() -> OrderStatusLifecycle:
    return OrderStatusLifecycle("permissive")


@pytest.fixture
def forward_only() -> OrderStatusLifecycle:
    return OrderStatusLifecycle("forward_only")


# ============================================================================
# Policies
# ============================================================================


class TestPermissivePolicy:
    """Any known status may be set, including backwards corrections."""

    @pytest.mark.parametrize("current", list(OrderStatus))
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_every_transition_is_allowed(self, permissive, current, target):
        assert permissive.can_transition(current, target)
        permissive.validate_transition(current, target)

    def test_is_the_default(self):
        assert OrderStatusLifecycle().policy == "permissive"


class TestForwardOnlyPolicy:
    """Statuses advance one step at a time."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.DELIVERED, OrderStatus.DELIVERED),
        ],
    )
    def test_allowed_transitions(self, forward_only, current, target):
        forward_only.validate_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.DELIVERED),
            (OrderStatus.SHIPPED, OrderStatus.PENDING),
            (OrderStatus.DELIVERED, OrderStatus.SHIPPED),
        ],
    )
    def test_rejected_transitions(self, forward_only, current, target):
        with pytest.raises(StatusTransitionError) as exc_info:
            forward_only.validate_transition(current, target)

        error = exc_info.value
        assert error.kind == "invalid_status_transition"
        assert error.context["from_status"] == current.value
        assert error.context["to_status"] == target.value
        assert error.context["policy"] == "forward_only"

    def test_delivered_is_terminal(self, forward_only):
        assert forward_only.allowed_targets(OrderStatus.DELIVERED) == frozenset()
        assert OrderStatus.DELIVERED.is_terminal


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        OrderStatusLifecycle("anything_goes")


class TestOrderStatusParsing:
    """Test status parsing from admin input."""

    @pytest.mark.parametrize("raw", ["shipped", " SHIPPED ", "Shipped"])
    def test_parses_case_insensitively(self, raw):
        assert OrderStatus.from_string(raw) == OrderStatus.SHIPPED

    def test_unknown_status(self):
        with pytest.raises(ValueError, match="Must be one of: PENDING, SHIPPED, DELIVERED"):
            OrderStatus.from_string("CANCELLED")
