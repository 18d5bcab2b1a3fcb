"""
Order total arithmetic.

All values are ``Decimal`` in major currency units and stay unrounded; round
with :func:`display_amount` for presentation and :func:`to_minor_units` for
the payment processor, which takes integer cents.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

DELIVERY_FEE = Decimal("5.00")
TAX_RATE = Decimal("0.08")

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal

    @property
    def amount_minor_units(self) -> int:
        return to_minor_units(self.total)

    def as_display(self) -> dict:
        return {
            "subtotal": display_amount(self.subtotal),
            "deliveryFee": display_amount(self.delivery_fee),
            "tax": display_amount(self.tax),
            "total": display_amount(self.total),
        }


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 2.99 as 2.99 instead of its binary float expansion
    return Decimal(str(value))


def _line_value(line: Any, name: str) -> Any:
    if isinstance(line, Mapping):
        return line[name]
    return getattr(line, name)


def subtotal_of(lines: Iterable[Any]) -> Decimal:
    """Sum of price * quantity over lines exposing ``price`` and ``quantity``."""
    total = Decimal("0")
    for line in lines:
        total += to_decimal(_line_value(line, "price")) * int(_line_value(line, "quantity"))
    return total


def compute_totals(lines: Iterable[Any]) -> OrderTotals:
    subtotal = subtotal_of(lines)
    tax = subtotal * TAX_RATE
    return OrderTotals(
        subtotal=subtotal,
        delivery_fee=DELIVERY_FEE,
        tax=tax,
        total=subtotal + DELIVERY_FEE + tax,
    )


def display_amount(value: Any) -> Decimal:
    return to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def to_minor_units(value: Any) -> int:
    return int((to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
