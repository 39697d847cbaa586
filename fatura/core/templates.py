from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from fatura.core.errors import AppMessages, FaturaError
from fatura.core.models import Business, Client, InvoiceData, SavedInvoice, new_invoice


def invoice_from_business(business: Business, base: Optional[InvoiceData] = None) -> InvoiceData:
    """A new invoice with the sender block (and logo) taken from a business."""
    return replace(
        base if base is not None else new_invoice(),
        sender_name=business.name,
        sender_id=business.tax_id,
        sender_address=business.address,
        sender_bank=business.bank,
        sender_email=business.email,
        logo=business.logo or None,
    )


def invoice_from_client(client: Client, base: Optional[InvoiceData] = None) -> InvoiceData:
    """A new invoice with the receiver block taken from a client."""
    return replace(
        base if base is not None else new_invoice(),
        receiver_name=client.name,
        receiver_id=client.tax_id,
        receiver_address=client.address,
        receiver_email=client.email,
    )


def _first(businesses: Iterable[Business], attr: str, wanted: str) -> Optional[Business]:
    if not wanted:
        return None
    for b in businesses:
        if (getattr(b, attr, "") or "").strip() == wanted:
            return b
    return None


def find_business(snapshot: InvoiceData, businesses: Iterable[Business]) -> Optional[Business]:
    """Best-effort match of a snapshot's sender against known businesses.

    Priority is tax id, then email, then name; within a field the first business
    in input order wins. Blank snapshot fields never match.
    """
    candidates = list(businesses)
    return (
        _first(candidates, "tax_id", (snapshot.sender_id or "").strip())
        or _first(candidates, "email", (snapshot.sender_email or "").strip())
        or _first(candidates, "name", (snapshot.sender_name or "").strip())
    )


def resolve_logo(snapshot: InvoiceData, businesses: Iterable[Business]) -> Optional[str]:
    """The snapshot's own logo, else the logo of the matched business."""
    if snapshot.logo:
        return snapshot.logo
    # Each field is tried in turn until a matching business carries a logo
    candidates = list(businesses)
    for attr, wanted in (
        ("tax_id", (snapshot.sender_id or "").strip()),
        ("email", (snapshot.sender_email or "").strip()),
        ("name", (snapshot.sender_name or "").strip()),
    ):
        b = _first(candidates, attr, wanted)
        if b is not None and b.logo:
            return b.logo
    return None


def hydrate(saved: SavedInvoice, businesses: Iterable[Business], *, for_print: bool = False) -> InvoiceData:
    """Rebuild an editable document from a saved invoice.

    Raises FaturaError(MISSING_SNAPSHOT) when the record carries no snapshot.
    """
    if saved.snapshot is None:
        raise FaturaError.missing_snapshot(
            AppMessages.NO_SNAPSHOT_PRINT if for_print else AppMessages.NO_SNAPSHOT_EDIT
        )
    snap = saved.snapshot
    return replace(snap, logo=resolve_logo(snap, businesses))
