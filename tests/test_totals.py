from __future__ import annotations

import math

from fatura.core.models import LineItem, new_invoice
from fatura.core.totals import compute, compute_for


def test_totals_example() -> None:
    items = [LineItem(quantity=2, rate=50)]
    t = compute(items, 18, 5)
    assert t.subtotal == 100
    assert t.tax_amount == 18
    assert t.total == 113


def test_totals_are_not_rounded() -> None:
    t = compute([LineItem(quantity=3, rate=0.333)], 10, 0)
    assert math.isclose(t.subtotal, 0.999)
    assert math.isclose(t.tax_amount, 0.0999)
    assert math.isclose(t.total, 1.0989)


def test_empty_items_and_zero_rates() -> None:
    t = compute([], 0, 0)
    assert (t.subtotal, t.tax_amount, t.total) == (0, 0, 0)


def test_discount_can_make_total_negative() -> None:
    t = compute([LineItem(quantity=1, rate=10)], 0, 25)
    assert t.total == -15


def test_non_finite_and_missing_values_count_as_zero() -> None:
    items = [
        {"quantity": float("nan"), "rate": 10},
        {"quantity": 2, "rate": float("inf")},
        {"quantity": "3", "rate": "4"},
        {"description": "no numbers"},
    ]
    t = compute(items, None, "abc")
    assert t.subtotal == 12
    assert t.tax_amount == 0
    assert t.total == 12


def test_compute_for_reads_invoice_fields() -> None:
    inv = new_invoice(items=(LineItem(quantity=4, rate=25),), tax_rate=20.0, discount=10.0)
    t = compute_for(inv)
    assert (t.subtotal, t.tax_amount, t.total) == (100, 20, 110)
