"""Invoice totals.

subtotal = sum(quantity * rate), tax = subtotal * tax_rate / 100,
total = subtotal + tax - discount. Nothing is rounded here; rounding to two
decimals happens only when a value is rendered or denormalized for listing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from fatura.core.currency import to_number


@dataclass(frozen=True)
class Totals:
    subtotal: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0


def _field(item: Any, name: str) -> object:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def compute(items: Iterable[Any], tax_rate: object, discount: object) -> Totals:
    """Totals for a sequence of line items (LineItem or dicts).

    Missing or non-finite quantity, rate, tax rate or discount count as 0.
    Never raises.
    """
    subtotal = 0.0
    for item in items or ():
        subtotal += to_number(_field(item, "quantity")) * to_number(_field(item, "rate"))
    tax_amount = subtotal * to_number(tax_rate) / 100
    total = subtotal + tax_amount - to_number(discount)
    return Totals(subtotal=subtotal, tax_amount=tax_amount, total=total)


def compute_for(invoice: Any) -> Totals:
    return compute(invoice.items, invoice.tax_rate, invoice.discount)
