from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, Generator, List, Mapping, Optional
import logging

from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError

from fatura.data.db import session_scope, get_session
from fatura.data.models import BusinessRecord, ClientRecord, InvoiceRecord
from fatura.core.currency import round_money, normalize_currency
from fatura.core.errors import AppMessages, FaturaError
from fatura.core.models import Business, Client, InvoiceData, SavedInvoice, parse_snapshot
from fatura.core.numbering import effective_number
from fatura.core.totals import compute_for

logger = logging.getLogger(__name__)

# Snapshot logos longer than this are dropped rather than failing the save
SNAPSHOT_LOGO_LIMIT = 120_000
UNNAMED_CLIENT = "Unnamed client"


@contextmanager
def _store_call(action: str, fallback: str) -> Generator[None, None, None]:
	"""Turn storage errors into collaborator failures carrying a readable message."""
	try:
		yield
	except FaturaError:
		raise
	except SQLAlchemyError as e:
		logger.exception("Record store failed to %s", action)
		raise FaturaError.collaborator(fallback) from e


def _require_owner(owner: Optional[str]) -> str:
	o = (owner or "").strip()
	if not o:
		raise FaturaError.transient(AppMessages.NO_CURRENT_USER)
	return o


def _text(fields: Mapping[str, Any], key: str) -> str:
	return str(fields.get(key) or "").strip()


def _optional(fields: Mapping[str, Any], key: str) -> Optional[str]:
	return _text(fields, key) or None


def _get_owned(s, model, owner: str, record_id: Any, fallback: str):
	try:
		pk = int(record_id)
	except (TypeError, ValueError):
		raise FaturaError.collaborator(fallback) from None
	row = s.get(model, pk)
	if row is None or row.owner != owner:
		raise FaturaError.collaborator(fallback)
	return row


# ===== Businesses =====
def _to_business(row: BusinessRecord) -> Business:
	return Business(
		id=str(row.id),
		name=row.name,
		tax_id=row.tax_id or "",
		address=row.address or "",
		bank=row.bank or "",
		email=row.email or "",
		logo=row.logo or "",
	)


def _business_values(fields: Mapping[str, Any]) -> Dict[str, Any]:
	name = _text(fields, "name")
	if not name:
		raise FaturaError.validation("Business name is required.")
	return {
		"name": name,
		"tax_id": _text(fields, "tax_id"),
		"address": _text(fields, "address"),
		"bank": _optional(fields, "bank"),
		"email": _optional(fields, "email"),
		"logo": _optional(fields, "logo"),
	}


def list_businesses(owner: str) -> List[Business]:
	"""Businesses of owner, newest first."""
	o = _require_owner(owner)
	with _store_call("list businesses", "Could not load businesses."):
		with get_session() as s:
			stmt = select(BusinessRecord).where(BusinessRecord.owner == o).order_by(BusinessRecord.id.desc())
			return [_to_business(r) for r in s.exec(stmt).all()]


def add_business(owner: str, fields: Mapping[str, Any]) -> Business:
	o = _require_owner(owner)
	values = _business_values(fields)
	with _store_call("add business", "The business was not saved."):
		with session_scope() as s:
			row = BusinessRecord(owner=o, **values)
			s.add(row)
			s.flush()
			s.refresh(row)
			return _to_business(row)


def update_business(owner: str, business_id: str, fields: Mapping[str, Any]) -> Business:
	o = _require_owner(owner)
	values = _business_values(fields)
	fallback = "The business was not updated."
	with _store_call("update business", fallback):
		with session_scope() as s:
			row = _get_owned(s, BusinessRecord, o, business_id, fallback)
			for k, v in values.items():
				setattr(row, k, v)
			s.add(row)
			s.flush()
			return _to_business(row)


def delete_business(owner: str, business_id: str) -> None:
	o = _require_owner(owner)
	fallback = "The business was not deleted."
	with _store_call("delete business", fallback):
		with session_scope() as s:
			s.delete(_get_owned(s, BusinessRecord, o, business_id, fallback))


# ===== Clients =====
def _to_client(row: ClientRecord) -> Client:
	return Client(
		id=str(row.id),
		name=row.name,
		tax_id=row.tax_id or "",
		address=row.address or "",
		email=row.email or "",
	)


def _client_values(fields: Mapping[str, Any]) -> Dict[str, Any]:
	name = _text(fields, "name")
	if not name:
		raise FaturaError.validation("Client name is required.")
	return {
		"name": name,
		"tax_id": _optional(fields, "tax_id"),
		"address": _optional(fields, "address"),
		"email": _optional(fields, "email"),
	}


def list_clients(owner: str) -> List[Client]:
	"""Clients of owner, newest first."""
	o = _require_owner(owner)
	with _store_call("list clients", "Could not load clients."):
		with get_session() as s:
			stmt = select(ClientRecord).where(ClientRecord.owner == o).order_by(ClientRecord.id.desc())
			return [_to_client(r) for r in s.exec(stmt).all()]


def add_client(owner: str, fields: Mapping[str, Any]) -> Client:
	o = _require_owner(owner)
	values = _client_values(fields)
	with _store_call("add client", "The client was not saved."):
		with session_scope() as s:
			row = ClientRecord(owner=o, **values)
			s.add(row)
			s.flush()
			s.refresh(row)
			return _to_client(row)


def update_client(owner: str, client_id: str, fields: Mapping[str, Any]) -> Client:
	o = _require_owner(owner)
	values = _client_values(fields)
	fallback = "The client was not updated."
	with _store_call("update client", fallback):
		with session_scope() as s:
			row = _get_owned(s, ClientRecord, o, client_id, fallback)
			for k, v in values.items():
				setattr(row, k, v)
			s.add(row)
			s.flush()
			return _to_client(row)


def delete_client(owner: str, client_id: str) -> None:
	o = _require_owner(owner)
	fallback = "The client was not deleted."
	with _store_call("delete client", fallback):
		with session_scope() as s:
			s.delete(_get_owned(s, ClientRecord, o, client_id, fallback))


# ===== Invoices =====
def _to_saved(row: InvoiceRecord) -> SavedInvoice:
	return SavedInvoice(
		id=str(row.id),
		number=row.number,
		client=row.client,
		date=row.date,
		amount=float(row.amount or 0.0),
		currency=normalize_currency(row.currency),
		snapshot=parse_snapshot(row.snapshot) if row.snapshot else None,
	)


def snapshot_json(invoice: InvoiceData, logo_limit: int = SNAPSHOT_LOGO_LIMIT) -> str:
	"""Serialize the full document for storage, without a logo above logo_limit characters."""
	if invoice.logo and len(invoice.logo) > logo_limit:
		# TODO: tell the user the logo was left out of the saved copy
		logger.warning(
			"Dropping %d-character logo from invoice %r snapshot (limit %d)",
			len(invoice.logo), invoice.invoice_number, logo_limit,
		)
		invoice = replace(invoice, logo=None)
	return invoice.to_json()


def _invoice_values(invoice: InvoiceData, logo_limit: int) -> Dict[str, Any]:
	totals = compute_for(invoice)
	return {
		"number": effective_number(invoice.invoice_number),
		"client": (invoice.receiver_name or "").strip() or UNNAMED_CLIENT,
		"date": invoice.date,
		"amount": round_money(totals.total),
		"currency": normalize_currency(invoice.currency),
		"snapshot": snapshot_json(invoice, logo_limit),
	}


def list_invoices(owner: str) -> List[SavedInvoice]:
	"""Saved invoices of owner, newest first."""
	o = _require_owner(owner)
	with _store_call("list invoices", "Could not load invoices."):
		with get_session() as s:
			stmt = select(InvoiceRecord).where(InvoiceRecord.owner == o).order_by(InvoiceRecord.id.desc())
			return [_to_saved(r) for r in s.exec(stmt).all()]


def get_invoice(owner: str, invoice_id: str) -> SavedInvoice:
	o = _require_owner(owner)
	fallback = "Invoice not found."
	with _store_call("get invoice", fallback):
		with get_session() as s:
			return _to_saved(_get_owned(s, InvoiceRecord, o, invoice_id, fallback))


def add_invoice(owner: str, invoice: InvoiceData, *, logo_limit: int = SNAPSHOT_LOGO_LIMIT) -> SavedInvoice:
	"""Persist a new invoice: summary fields plus the full snapshot."""
	o = _require_owner(owner)
	values = _invoice_values(invoice, logo_limit)
	with _store_call("add invoice", AppMessages.SAVE_FAILED):
		with session_scope() as s:
			row = InvoiceRecord(owner=o, **values)
			s.add(row)
			s.flush()
			s.refresh(row)
			logger.info("Saved invoice %s (%s %.2f)", row.number, row.currency, row.amount)
			return _to_saved(row)


def update_invoice(owner: str, invoice_id: str, invoice: InvoiceData, *, logo_limit: int = SNAPSHOT_LOGO_LIMIT) -> SavedInvoice:
	o = _require_owner(owner)
	values = _invoice_values(invoice, logo_limit)
	with _store_call("update invoice", AppMessages.UPDATE_FAILED):
		with session_scope() as s:
			row = _get_owned(s, InvoiceRecord, o, invoice_id, AppMessages.UPDATE_FAILED)
			for k, v in values.items():
				setattr(row, k, v)
			s.add(row)
			s.flush()
			logger.info("Updated invoice %s", row.number)
			return _to_saved(row)


def delete_invoice(owner: str, invoice_id: str) -> None:
	o = _require_owner(owner)
	fallback = "The invoice was not deleted."
	with _store_call("delete invoice", fallback):
		with session_scope() as s:
			s.delete(_get_owned(s, InvoiceRecord, o, invoice_id, fallback))


class RecordStore:
	"""The record store bound to one owner; what the editing session talks to."""

	def __init__(self, owner: str, logo_limit: int = SNAPSHOT_LOGO_LIMIT) -> None:
		self.owner = owner
		self.logo_limit = logo_limit

	def list_businesses(self) -> List[Business]:
		return list_businesses(self.owner)

	def add_business(self, fields: Mapping[str, Any]) -> Business:
		return add_business(self.owner, fields)

	def update_business(self, business_id: str, fields: Mapping[str, Any]) -> Business:
		return update_business(self.owner, business_id, fields)

	def delete_business(self, business_id: str) -> None:
		delete_business(self.owner, business_id)

	def list_clients(self) -> List[Client]:
		return list_clients(self.owner)

	def add_client(self, fields: Mapping[str, Any]) -> Client:
		return add_client(self.owner, fields)

	def update_client(self, client_id: str, fields: Mapping[str, Any]) -> Client:
		return update_client(self.owner, client_id, fields)

	def delete_client(self, client_id: str) -> None:
		delete_client(self.owner, client_id)

	def list_invoices(self) -> List[SavedInvoice]:
		return list_invoices(self.owner)

	def get_invoice(self, invoice_id: str) -> SavedInvoice:
		return get_invoice(self.owner, invoice_id)

	def add_invoice(self, invoice: InvoiceData) -> SavedInvoice:
		return add_invoice(self.owner, invoice, logo_limit=self.logo_limit)

	def update_invoice(self, invoice_id: str, invoice: InvoiceData) -> SavedInvoice:
		return update_invoice(self.owner, invoice_id, invoice, logo_limit=self.logo_limit)

	def delete_invoice(self, invoice_id: str) -> None:
		delete_invoice(self.owner, invoice_id)
