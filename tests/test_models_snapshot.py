import json
from dataclasses import replace
from datetime import date

import pytest

from fatura.core.models import InvoiceData, LineItem, new_invoice, parse_snapshot


def test_new_invoice_defaults() -> None:
    inv = new_invoice(today=date(2024, 3, 7))
    assert inv.date == "2024-03-07"
    assert inv.currency == "EUR"
    assert inv.tax_rate == 18.0
    assert inv.theme_color == "gray"
    assert len(inv.items) == 1
    assert (inv.items[0].quantity, inv.items[0].rate) == (1.0, 0.0)


def test_edits_are_copy_on_write() -> None:
    inv = new_invoice()
    changed = replace(inv, sender_name="Acme")
    assert inv.sender_name == ""
    assert changed.sender_name == "Acme"


def test_parse_camel_case_snapshot() -> None:
    raw = json.dumps({
        "invoiceNumber": "INV-1",
        "senderId": "B",
        "taxRate": "20",
        "currency": "usd",
        "themeColor": "Blue",
        "logo": "",
        "items": [{"id": "a", "description": "Work", "quantity": "2", "rate": 50}, "junk"],
        "unknown": 1,
    })
    inv = parse_snapshot(raw)
    assert inv.invoice_number == "INV-1"
    assert inv.sender_id == "B"
    assert inv.tax_rate == 20.0
    assert inv.currency == "USD"
    assert inv.theme_color == "blue"
    assert inv.logo is None
    assert inv.items == (LineItem(id="a", description="Work", quantity=2.0, rate=50.0),)


def test_snapshot_round_trips_through_json() -> None:
    inv = new_invoice(sender_name="Acme", discount=5, items=(LineItem(id="a", quantity=3, rate=1.5),))
    assert parse_snapshot(inv.to_json()) == inv


def test_missing_keys_fall_back_to_defaults() -> None:
    inv = parse_snapshot({"senderName": "Acme"})
    assert inv.sender_name == "Acme"
    assert inv.currency == "EUR"
    assert inv.theme_color == "gray"


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", None, 42, "null"])
def test_unusable_snapshot(raw) -> None:
    assert parse_snapshot(raw) is None


def test_item_values_are_sanitized() -> None:
    item = LineItem.from_dict({"qty": "-3", "rate": "abc"})
    assert item.quantity == 0.0
    assert item.rate == 0.0
    assert item.id


def test_blank_document_is_constructible() -> None:
    assert InvoiceData().items == ()
