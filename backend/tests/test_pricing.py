from decimal import Decimal

from freshcart.pricing import compute_totals, display_amount, to_minor_units

CART = [{"price": 2.99, "quantity": 2}, {"price": "5.00", "quantity": 1}]


def test_totals_match_worked_example():
    totals = compute_totals(CART)
    assert totals.subtotal == Decimal("10.98")
    assert totals.tax == Decimal("0.8784")
    assert totals.delivery_fee == Decimal("5.00")
    assert totals.total == Decimal("16.8584")


def test_rounding_happens_only_at_the_edges():
    totals = compute_totals(CART)
    assert display_amount(totals.total) == Decimal("16.86")
    assert totals.as_display()["tax"] == Decimal("0.88")
    assert totals.amount_minor_units == 1686


def test_minor_units_round_half_up():
    assert to_minor_units(Decimal("0.005")) == 1
    assert to_minor_units("19.994") == 1999


def test_empty_cart_still_has_delivery_fee():
    totals = compute_totals([])
    assert totals.subtotal == 0
    assert totals.total == Decimal("5.00")
