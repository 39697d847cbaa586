import pytest

from fatura.core.errors import AppMessages, ErrorKind, FaturaError
from fatura.core.models import Business, Client, SavedInvoice, new_invoice
from fatura.core.templates import (
    find_business,
    hydrate,
    invoice_from_business,
    invoice_from_client,
    resolve_logo,
)

LOGO_A = "data:image/jpeg;base64,AAAA"
LOGO_B = "data:image/jpeg;base64,BBBB"


def _biz(id: str, **kw) -> Business:
    kw.setdefault("name", f"Business {id}")
    return Business(id=id, **kw)


def test_tax_id_match_wins_over_email() -> None:
    businesses = [
        _biz("1", tax_id="A", email="x@x", logo=LOGO_A),
        _biz("2", tax_id="B", email="y@y", logo=LOGO_B),
    ]
    snap = new_invoice(sender_id="B", sender_email="x@x")
    assert find_business(snap, businesses).id == "2"
    assert resolve_logo(snap, businesses) == LOGO_B


def test_email_then_name_fallback() -> None:
    businesses = [_biz("1", email="x@x", logo=LOGO_A), _biz("2", name="Acme", logo=LOGO_B)]
    assert find_business(new_invoice(sender_email="x@x"), businesses).id == "1"
    assert find_business(new_invoice(sender_name="Acme"), businesses).id == "2"
    assert find_business(new_invoice(sender_name="Nobody"), businesses) is None


def test_first_match_in_input_order() -> None:
    businesses = [_biz("1", tax_id="A", logo=LOGO_A), _biz("2", tax_id="A", logo=LOGO_B)]
    snap = new_invoice(sender_id="A")
    assert find_business(snap, businesses).id == "1"
    assert find_business(snap, list(reversed(businesses))).id == "2"


def test_blank_fields_never_match() -> None:
    businesses = [_biz("1", name="", tax_id="", email="", logo=LOGO_A)]
    assert find_business(new_invoice(sender_name=""), businesses) is None
    assert resolve_logo(new_invoice(), businesses) is None


def test_snapshot_logo_wins() -> None:
    businesses = [_biz("1", tax_id="A", logo=LOGO_A)]
    snap = new_invoice(sender_id="A", logo=LOGO_B)
    assert resolve_logo(snap, businesses) == LOGO_B


def test_logo_falls_through_to_next_field() -> None:
    # the tax-id match has no logo; the email match does
    businesses = [_biz("1", tax_id="A"), _biz("2", email="x@x", logo=LOGO_B)]
    snap = new_invoice(sender_id="A", sender_email="x@x")
    assert resolve_logo(snap, businesses) == LOGO_B


def test_hydrate_restores_logo() -> None:
    snap = new_invoice(sender_id="A", invoice_number="INV-1")
    saved = SavedInvoice(id="s1", number="INV-1", client="C", date="2024-01-01", amount=10, snapshot=snap)
    inv = hydrate(saved, [_biz("1", tax_id="A", logo=LOGO_A)])
    assert inv.logo == LOGO_A
    assert inv.invoice_number == "INV-1"


@pytest.mark.parametrize("for_print,message", [
    (False, AppMessages.NO_SNAPSHOT_EDIT),
    (True, AppMessages.NO_SNAPSHOT_PRINT),
])
def test_hydrate_without_snapshot(for_print, message) -> None:
    saved = SavedInvoice(id="s1", number="INV-1", client="C", date="2024-01-01", amount=10)
    with pytest.raises(FaturaError) as exc:
        hydrate(saved, [], for_print=for_print)
    assert exc.value.kind is ErrorKind.MISSING_SNAPSHOT
    assert exc.value.message == message


def test_business_and_client_templates() -> None:
    base = new_invoice(invoice_number="INV-9", receiver_name="Kept")
    inv = invoice_from_business(_biz("1", name="Acme", tax_id="T1", bank="IBAN", logo=LOGO_A), base)
    assert (inv.sender_name, inv.sender_id, inv.sender_bank, inv.logo) == ("Acme", "T1", "IBAN", LOGO_A)
    assert inv.receiver_name == "Kept"
    assert inv.invoice_number == "INV-9"

    inv = invoice_from_client(Client(id="c", name="Client Ltd", tax_id="K1", address="Tirana"), inv)
    assert (inv.receiver_name, inv.receiver_id, inv.receiver_address) == ("Client Ltd", "K1", "Tirana")
    assert inv.sender_name == "Acme"


def test_business_without_logo_clears_logo() -> None:
    inv = invoice_from_business(_biz("1"), new_invoice(logo=LOGO_B))
    assert inv.logo is None
