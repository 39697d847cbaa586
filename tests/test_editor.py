from dataclasses import replace

import pytest

from fatura.core.editor import EditorSession, load_with_retry
from fatura.core.errors import AppMessages, ErrorKind, FaturaError
from fatura.core.models import AppUser, Business, Client, LineItem, SavedInvoice, new_invoice

USER = AppUser(id="1", name="Ana", email="ana@example.com")


class FakeStore:
    """In-memory stand-in for RecordStore; `fail` makes every write raise."""

    def __init__(self, fail: FaturaError = None, transient_failures: int = 0) -> None:
        self.fail = fail
        self.transient_failures = transient_failures
        self.invoices = []
        self.businesses = []
        self.clients = []
        self.list_calls = 0
        self._next = 0

    def _id(self) -> str:
        self._next += 1
        return str(self._next)

    def _check(self) -> None:
        if self.fail is not None:
            raise self.fail

    def list_businesses(self):
        self.list_calls += 1
        if self.transient_failures:
            self.transient_failures -= 1
            raise FaturaError.transient(AppMessages.NO_CURRENT_USER)
        return list(self.businesses)

    def list_clients(self):
        return list(self.clients)

    def list_invoices(self):
        return list(self.invoices)

    def add_invoice(self, invoice):
        self._check()
        saved = SavedInvoice(id=self._id(), number=invoice.invoice_number or "INV-X", client=invoice.receiver_name,
                             date=invoice.date, amount=1.0, snapshot=invoice)
        self.invoices.insert(0, saved)
        return saved

    def update_invoice(self, invoice_id, invoice):
        self._check()
        return SavedInvoice(id=invoice_id, number=invoice.invoice_number, client=invoice.receiver_name,
                            date=invoice.date, amount=2.0, snapshot=invoice)

    def delete_invoice(self, invoice_id):
        self._check()

    def add_business(self, values):
        self._check()
        return Business(id=self._id(), **values)

    def update_business(self, business_id, values):
        self._check()
        return Business(id=business_id, **values)

    def delete_business(self, business_id):
        self._check()

    def add_client(self, values):
        self._check()
        return Client(id=self._id(), **values)

    def update_client(self, client_id, values):
        self._check()
        return Client(id=client_id, **values)

    def delete_client(self, client_id):
        self._check()


def test_field_edits_are_normalized() -> None:
    s = EditorSession()
    s.set_field("tax_rate", "20")
    s.set_field("currency", "usd")
    s.set_field("theme_color", "nope")
    s.set_field("logo", "")
    s.set_field("notes", None)
    inv = s.invoice
    assert (inv.tax_rate, inv.currency, inv.theme_color, inv.logo, inv.notes) == (20.0, "USD", "gray", None, "")
    with pytest.raises(FaturaError):
        s.set_field("items", ())


def test_item_edits_update_totals() -> None:
    s = EditorSession(new_invoice(items=(), tax_rate=0))
    a = s.add_item("Work", 2, 50)
    b = s.add_item()
    s.update_item(b.id, "rate", "10")
    s.update_item(b.id, "quantity", -4)
    assert s.totals.subtotal == 100.0
    s.update_item(b.id, "quantity", 3)
    assert s.totals.subtotal == 130.0
    s.remove_item(a.id)
    assert [it.id for it in s.invoice.items] == [b.id]
    assert s.page.find(f"items.row.{b.id}") is not None
    with pytest.raises(FaturaError):
        s.update_item(b.id, "id", "x")


def test_save_requires_user() -> None:
    s = EditorSession()
    store = FakeStore()
    assert s.save(store, None) is None
    assert s.message == AppMessages.SIGN_IN_TO_SAVE
    assert s.error is True
    assert store.invoices == []


def test_save_then_update() -> None:
    s = EditorSession(new_invoice(invoice_number="INV-1"))
    store = FakeStore()
    saved = s.save(store, USER)
    assert s.message == AppMessages.INVOICE_SAVED
    assert s.account.invoices == (saved,)

    s.open_for_edit(saved)
    assert s.editing_invoice_id == saved.id
    s.set_field("receiver_name", "New")
    updated = s.save(store, USER)
    assert s.message == AppMessages.INVOICE_UPDATED
    assert s.account.invoices == (updated,)
    assert s.editing_invoice_id is None


def test_failed_save_keeps_document() -> None:
    s = EditorSession(new_invoice(invoice_number="INV-7", sender_name="Acme"))
    before = s.invoice
    store = FakeStore(fail=FaturaError.collaborator("Disk full."))
    assert s.save(store, USER) is None
    assert s.invoice == before
    assert s.message == "Disk full."
    assert s.error is True
    assert s.account.invoices == ()


def test_load_retries_transient_failures() -> None:
    sleeps = []
    store = FakeStore(transient_failures=2)
    store.clients = [Client(id="c", name="C")]
    s = EditorSession()
    assert s.load_account_data(store, retries=2, delay=0.6, sleep=sleeps.append) is True
    assert sleeps == [0.6, 0.6]
    assert store.list_calls == 3
    assert s.account.clients == (Client(id="c", name="C"),)


def test_load_gives_up_after_retries() -> None:
    sleeps = []
    s = EditorSession()
    assert s.load_account_data(FakeStore(transient_failures=5), retries=2, sleep=sleeps.append) is False
    assert len(sleeps) == 2
    assert s.error is True
    assert s.message == AppMessages.NO_CURRENT_USER


def test_non_transient_errors_are_not_retried() -> None:
    calls = []

    def load():
        calls.append(1)
        raise FaturaError.collaborator("boom")

    with pytest.raises(FaturaError) as exc:
        load_with_retry(load, retries=3, sleep=lambda _d: None)
    assert exc.value.kind is ErrorKind.COLLABORATOR
    assert len(calls) == 1


def test_missing_snapshot_leaves_document() -> None:
    s = EditorSession(new_invoice(sender_name="Current"))
    saved = SavedInvoice(id="9", number="INV-9", client="C", date="2024-01-01", amount=1.0)
    assert s.open_for_edit(saved) is False
    assert s.message == AppMessages.NO_SNAPSHOT_EDIT
    assert s.open_for_print(saved) is None
    assert s.message == AppMessages.NO_SNAPSHOT_PRINT
    assert s.invoice.sender_name == "Current"
    assert s.editing_invoice_id is None


def test_open_for_print_does_not_replace_document() -> None:
    s = EditorSession(new_invoice(sender_name="Current"))
    snap = new_invoice(sender_name="Printed", items=(LineItem(id="p", quantity=1, rate=5),))
    page = s.open_for_print(SavedInvoice(id="1", number="INV-1", client="", date="", amount=5.0, snapshot=snap))
    assert page.find("sender.heading").text == "Printed"
    assert s.invoice.sender_name == "Current"


def test_open_for_edit_restores_logo_from_business() -> None:
    s = EditorSession()
    s.account = replace(s.account, businesses=(Business(id="b", name="Acme", tax_id="T", logo="data:x"),))
    snap = new_invoice(sender_id="T")
    assert s.open_for_edit(SavedInvoice(id="1", number="INV-1", client="", date="", amount=0, snapshot=snap))
    assert s.invoice.logo == "data:x"


def test_business_and_client_crud_keeps_account_in_step() -> None:
    s = EditorSession()
    store = FakeStore()
    b = s.add_business(store, {"name": "Acme"})
    c = s.add_client(store, {"name": "Client"})
    assert s.account.businesses == (b,)
    assert s.account.clients == (c,)

    b2 = s.update_business(store, b.id, {"name": "Acme 2"})
    assert s.account.businesses == (b2,)
    assert s.delete_client(store, c.id) is True
    assert s.account.clients == ()
    assert s.message == "Client deleted."

    store.fail = FaturaError.validation("Business name is required.")
    assert s.add_business(store, {"name": ""}) is None
    assert s.error is True
    assert s.message == "Business name is required."
    assert s.delete_business(store, b.id) is False
    assert s.account.businesses == (b2,)


def test_delete_invoice_and_sign_out() -> None:
    s = EditorSession(new_invoice(sender_name="Acme"))
    store = FakeStore()
    saved = s.save(store, USER)
    s.open_for_edit(saved)
    assert s.delete_invoice(store, saved.id) is True
    assert s.account.invoices == ()
    assert s.editing_invoice_id is None

    s.sign_out()
    assert s.message == AppMessages.SIGNED_OUT
    assert s.invoice.sender_name == ""


def test_save_with_huge_amounts(temp_db) -> None:
    from fatura.data.repo import RecordStore

    s = EditorSession(new_invoice(invoice_number="INV-BIG", items=(LineItem(id="big", quantity=1, rate=1e27),)))
    saved = s.save(RecordStore("owner-1"), USER)
    assert saved is not None
    assert s.error is False
    assert s.message == AppMessages.INVOICE_SAVED
    assert saved.amount == pytest.approx(1.18e27)
