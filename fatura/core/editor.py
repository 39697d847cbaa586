from __future__ import annotations

import logging
import time
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Optional, Tuple

from fatura.core.currency import normalize_currency, to_number
from fatura.core.errors import AppMessages, ErrorKind, FaturaError, message_for
from fatura.core.models import (
    AppUser,
    Business,
    Client,
    InvoiceData,
    LineItem,
    SavedInvoice,
    new_invoice,
    normalize_theme,
    replace_by_id,
    without_id,
)
from fatura.core.templates import hydrate
from fatura.core.totals import Totals, compute_for
from fatura.preview.layout import render
from fatura.preview.page import PageDescription

logger = logging.getLogger(__name__)

_INVOICE_FIELDS = {f.name for f in fields(InvoiceData)} - {"items"}
_ITEM_FIELDS = ("description", "quantity", "rate")


@dataclass(frozen=True)
class AccountData:
    businesses: Tuple[Business, ...] = ()
    clients: Tuple[Client, ...] = ()
    invoices: Tuple[SavedInvoice, ...] = ()


def load_with_retry(
    load: Callable[[], Any],
    retries: int = 2,
    delay: float = 0.6,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """Call load(); retry up to `retries` times when the session is not ready yet."""
    attempt = 0
    while True:
        try:
            return load()
        except FaturaError as e:
            if e.kind is not ErrorKind.TRANSIENT or attempt >= retries:
                raise
            attempt += 1
            logger.info("Session not ready, retry %d/%d in %.1fs", attempt, retries, delay)
            sleep(delay)


class EditorSession:
    """State of one editing session.

    The document is replaced wholesale on every edit; totals and the page
    description are derived on every read. Collaborator failures end up in
    `message` (with `error` set) and never touch the document.
    """

    def __init__(self, invoice: Optional[InvoiceData] = None) -> None:
        self.invoice: InvoiceData = invoice if invoice is not None else new_invoice()
        self.editing_invoice_id: Optional[str] = None
        self.message: str = ""
        self.error: bool = False
        self.account = AccountData()

    # ----- derived -----
    @property
    def totals(self) -> Totals:
        return compute_for(self.invoice)

    @property
    def page(self) -> PageDescription:
        return render(self.invoice, self.totals)

    def _notify(self, message: str, error: bool = False) -> None:
        self.message = message
        self.error = error

    # ----- document edits -----
    def set_field(self, name: str, value: Any) -> InvoiceData:
        if name not in _INVOICE_FIELDS:
            raise FaturaError.validation(f"Unknown invoice field: {name}")
        if name in ("tax_rate", "discount"):
            value = to_number(value)
        elif name == "currency":
            value = normalize_currency(value)
        elif name == "theme_color":
            value = normalize_theme(value)
        elif name == "logo":
            value = value or None
        else:
            value = "" if value is None else str(value)
        self.invoice = replace(self.invoice, **{name: value})
        return self.invoice

    def add_item(self, description: str = "", quantity: float = 1.0, rate: float = 0.0) -> LineItem:
        item = LineItem(description=description, quantity=max(0.0, to_number(quantity)), rate=max(0.0, to_number(rate)))
        self.invoice = replace(self.invoice, items=self.invoice.items + (item,))
        return item

    def remove_item(self, item_id: str) -> None:
        self.invoice = replace(self.invoice, items=tuple(it for it in self.invoice.items if it.id != item_id))

    def update_item(self, item_id: str, name: str, value: Any) -> None:
        if name not in _ITEM_FIELDS:
            raise FaturaError.validation(f"Unknown line item field: {name}")
        if name == "description":
            value = "" if value is None else str(value)
        else:
            value = max(0.0, to_number(value))
        self.invoice = replace(
            self.invoice,
            items=tuple(replace(it, **{name: value}) if it.id == item_id else it for it in self.invoice.items),
        )

    # ----- session flows -----
    def start_new(self, template: Optional[InvoiceData] = None) -> None:
        self.invoice = template if template is not None else new_invoice()
        self.editing_invoice_id = None

    def open_for_edit(self, saved: SavedInvoice) -> bool:
        try:
            doc = hydrate(saved, self.account.businesses)
        except FaturaError as e:
            self._notify(e.message, error=True)
            return False
        self.invoice = doc
        self.editing_invoice_id = saved.id
        self._notify(f"Editing invoice {saved.number}.")
        return True

    def open_for_print(self, saved: SavedInvoice) -> Optional[PageDescription]:
        """Page description of a saved invoice, leaving the current document alone."""
        try:
            doc = hydrate(saved, self.account.businesses, for_print=True)
        except FaturaError as e:
            self._notify(e.message, error=True)
            return None
        self._notify(f"Print preview for {saved.number}.")
        return render(doc)

    def load_account_data(self, store: Any, retries: int = 2, delay: float = 0.6, sleep: Callable[[float], None] = time.sleep) -> bool:
        def load() -> AccountData:
            return AccountData(
                businesses=tuple(store.list_businesses()),
                clients=tuple(store.list_clients()),
                invoices=tuple(store.list_invoices()),
            )

        try:
            self.account = load_with_retry(load, retries=retries, delay=delay, sleep=sleep)
        except FaturaError as e:
            logger.warning("Loading account data failed: %s", e.message)
            self._notify(message_for(e, AppMessages.LOAD_FAILED), error=True)
            return False
        self._notify("")
        return True

    def clear_account(self) -> None:
        self.account = AccountData()

    def save(self, store: Any, user: Optional[AppUser]) -> Optional[SavedInvoice]:
        """Create or update the saved copy of the current document."""
        if user is None:
            self._notify(AppMessages.SIGN_IN_TO_SAVE, error=True)
            return None
        try:
            if self.editing_invoice_id:
                saved = store.update_invoice(self.editing_invoice_id, self.invoice)
                invoices = replace_by_id(self.account.invoices, saved)
                note = AppMessages.INVOICE_UPDATED
            else:
                saved = store.add_invoice(self.invoice)
                invoices = (saved,) + self.account.invoices
                note = AppMessages.INVOICE_SAVED
        except FaturaError as e:
            self._notify(message_for(e, AppMessages.SAVE_FAILED), error=True)
            return None
        self.account = replace(self.account, invoices=invoices)
        self.editing_invoice_id = None
        self._notify(note)
        return saved

    def delete_invoice(self, store: Any, invoice_id: str) -> bool:
        try:
            store.delete_invoice(invoice_id)
        except FaturaError as e:
            self._notify(e.message, error=True)
            return False
        self.account = replace(self.account, invoices=without_id(self.account.invoices, invoice_id))
        if self.editing_invoice_id == invoice_id:
            self.editing_invoice_id = None
        self._notify(AppMessages.INVOICE_DELETED)
        return True

    def sign_out(self) -> None:
        self.invoice = new_invoice()
        self.editing_invoice_id = None
        self.clear_account()
        self._notify(AppMessages.SIGNED_OUT)

    # ----- businesses / clients -----
    def _record_call(self, call: Callable[[], Any], fallback: str) -> Any:
        try:
            return call()
        except FaturaError as e:
            self._notify(message_for(e, fallback), error=True)
            return None

    def add_business(self, store: Any, values: dict) -> Optional[Business]:
        b = self._record_call(lambda: store.add_business(values), "The business was not saved.")
        if b is not None:
            self.account = replace(self.account, businesses=(b,) + self.account.businesses)
            self._notify(f"Business {b.name} saved.")
        return b

    def update_business(self, store: Any, business_id: str, values: dict) -> Optional[Business]:
        b = self._record_call(lambda: store.update_business(business_id, values), "The business was not updated.")
        if b is not None:
            self.account = replace(self.account, businesses=replace_by_id(self.account.businesses, b))
            self._notify(f"Business {b.name} updated.")
        return b

    def delete_business(self, store: Any, business_id: str) -> bool:
        if self._record_call(lambda: store.delete_business(business_id) or True, "The business was not deleted.") is None:
            return False
        self.account = replace(self.account, businesses=without_id(self.account.businesses, business_id))
        self._notify("Business deleted.")
        return True

    def add_client(self, store: Any, values: dict) -> Optional[Client]:
        c = self._record_call(lambda: store.add_client(values), "The client was not saved.")
        if c is not None:
            self.account = replace(self.account, clients=(c,) + self.account.clients)
            self._notify(f"Client {c.name} saved.")
        return c

    def update_client(self, store: Any, client_id: str, values: dict) -> Optional[Client]:
        c = self._record_call(lambda: store.update_client(client_id, values), "The client was not updated.")
        if c is not None:
            self.account = replace(self.account, clients=replace_by_id(self.account.clients, c))
            self._notify(f"Client {c.name} updated.")
        return c

    def delete_client(self, store: Any, client_id: str) -> bool:
        if self._record_call(lambda: store.delete_client(client_id) or True, "The client was not deleted.") is None:
            return False
        self.account = replace(self.account, clients=without_id(self.account.clients, client_id))
        self._notify("Client deleted.")
        return True
