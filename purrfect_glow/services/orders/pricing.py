"""
Order pricing with fixed-point money.

All amounts are Decimals quantized to cents with ROUND_HALF_UP. Floats are
rejected outright so binary rounding never reaches a price.
"""

import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

MONEY_QUANTUM = Decimal("0.01")

MoneyInput = Union[Decimal, int, str]


def to_money(value: MoneyInput) -> Decimal:
    """
    Quantize a value to cents.

    Args:
        value: Decimal, integer or decimal string

    Returns:
        Decimal with exactly two decimal places

    Raises:
        TypeError: If value is a float
    """
    if isinstance(value, float):
        raise TypeError("Money amounts must not be floats")
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    """One order line priced from the server-held product price."""

    product_id: uuid.UUID
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class OrderTotals:
    """Price breakdown of an order."""

    subtotal: Decimal
    shipping_cost: Decimal
    total_amount: Decimal


def price_line(
    product_id: uuid.UUID,
    product_name: str,
    unit_price: MoneyInput,
    quantity: int,
) -> PricedLine:
    """
    Price a single line.

    Raises:
        ValueError: If quantity is below one
    """
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")
    price = to_money(unit_price)
    return PricedLine(
        product_id=product_id,
        product_name=product_name,
        quantity=quantity,
        unit_price=price,
        line_total=to_money(price * quantity),
    )


def compute_totals(lines: Iterable[PricedLine], shipping_cost: MoneyInput) -> OrderTotals:
    """
    Compute subtotal, shipping and total for priced lines.

    Example:
        >>> lines = [price_line(a, "Serum", "85.00", 2), price_line(b, "Crema", "130.00", 1)]
        >>> compute_totals(lines, "10.00").total_amount
        Decimal('310.00')
    """
    subtotal = to_money(sum((line.line_total for line in lines), Decimal("0")))
    shipping = to_money(shipping_cost)
    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping,
        total_amount=subtotal + shipping,
    )
