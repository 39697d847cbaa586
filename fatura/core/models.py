from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, fields, replace, asdict
from datetime import date
from typing import Any, Dict, Iterable, Optional, Tuple

from fatura.core.currency import to_number, normalize_currency
from fatura.core.dates import today_iso


THEME_NAMES = ("gray", "red", "blue", "orange", "yellow", "green")
DEFAULT_THEME = "gray"
DEFAULT_TAX_RATE = 18.0


def new_item_id() -> str:
	return uuid.uuid4().hex


def normalize_theme(name: object) -> str:
	n = str(name or "").strip().lower()
	return n if n in THEME_NAMES else DEFAULT_THEME


@dataclass(frozen=True)
class LineItem:
	id: str = field(default_factory=new_item_id)
	description: str = ""
	quantity: float = 1.0
	rate: float = 0.0

	@property
	def amount(self) -> float:
		return to_number(self.quantity) * to_number(self.rate)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
		return cls(
			id=str(data.get("id") or new_item_id()),
			description=str(data.get("description") or ""),
			quantity=max(0.0, to_number(data.get("quantity", data.get("qty")))),
			rate=max(0.0, to_number(data.get("rate"))),
		)


# Keys used by snapshots written with camelCase names
_CAMEL_KEYS = {
	"invoiceNumber": "invoice_number",
	"dueDate": "due_date",
	"poNumber": "po_number",
	"senderName": "sender_name",
	"senderId": "sender_id",
	"senderBank": "sender_bank",
	"senderAddress": "sender_address",
	"senderEmail": "sender_email",
	"receiverName": "receiver_name",
	"receiverId": "receiver_id",
	"receiverBank": "receiver_bank",
	"receiverAddress": "receiver_address",
	"receiverEmail": "receiver_email",
	"taxRate": "tax_rate",
	"themeColor": "theme_color",
}


@dataclass(frozen=True)
class InvoiceData:
	"""The editable invoice document.

	Frozen: every edit goes through dataclasses.replace() and yields a new value,
	so totals and layout always read a consistent snapshot.
	"""

	invoice_number: str = ""
	date: str = ""
	due_date: str = ""
	po_number: str = ""

	sender_name: str = ""
	sender_id: str = ""
	sender_bank: str = ""
	sender_address: str = ""
	sender_email: str = ""

	receiver_name: str = ""
	receiver_id: str = ""
	receiver_bank: str = ""
	receiver_address: str = ""
	receiver_email: str = ""

	currency: str = "EUR"
	tax_rate: float = DEFAULT_TAX_RATE
	discount: float = 0.0

	logo: Optional[str] = None
	theme_color: str = DEFAULT_THEME

	notes: str = ""
	terms: str = ""

	items: Tuple[LineItem, ...] = ()

	def to_dict(self) -> Dict[str, Any]:
		d = asdict(self)
		d["items"] = [asdict(it) for it in self.items]
		return d

	def to_json(self) -> str:
		return json.dumps(self.to_dict(), ensure_ascii=False)

	@classmethod
	def from_dict(cls, data: Dict[str, Any], base: Optional["InvoiceData"] = None) -> "InvoiceData":
		"""Merge a stored snapshot over base (or the empty document); unknown keys are ignored."""
		base = base if base is not None else cls()
		known = {f.name for f in fields(cls)}
		values: Dict[str, Any] = {}
		for key, value in (data or {}).items():
			name = _CAMEL_KEYS.get(key, key)
			if name in known:
				values[name] = value

		for name in ("tax_rate", "discount"):
			if name in values:
				values[name] = to_number(values[name])
		if "currency" in values:
			values["currency"] = normalize_currency(values["currency"])
		if "theme_color" in values:
			values["theme_color"] = normalize_theme(values["theme_color"])
		if "logo" in values:
			values["logo"] = values["logo"] or None
		if "items" in values:
			raw = values["items"] or []
			values["items"] = tuple(
				LineItem.from_dict(it) for it in raw if isinstance(it, dict)
			)
		for name, value in list(values.items()):
			if name not in ("tax_rate", "discount", "items", "logo") and not isinstance(value, str):
				values[name] = "" if value is None else str(value)
		return replace(base, **values)


def new_invoice(today: Optional[date] = None, **overrides: Any) -> InvoiceData:
	"""A fresh document: dated today, EUR, 18% tax, one empty line item."""
	inv = InvoiceData(
		date=today_iso(today),
		items=(LineItem(description="", quantity=1.0, rate=0.0),),
	)
	return replace(inv, **overrides) if overrides else inv


def parse_snapshot(raw: object) -> Optional[InvoiceData]:
	"""Decode a stored snapshot (JSON text or mapping); None when there is nothing usable."""
	if isinstance(raw, (str, bytes)):
		try:
			raw = json.loads(raw)
		except ValueError:
			return None
	if not isinstance(raw, dict):
		return None
	return InvoiceData.from_dict(raw, base=new_invoice())


@dataclass(frozen=True)
class Business:
	id: str
	name: str
	tax_id: str = ""
	address: str = ""
	bank: str = ""
	email: str = ""
	logo: str = ""


@dataclass(frozen=True)
class Client:
	id: str
	name: str
	tax_id: str = ""
	address: str = ""
	email: str = ""


@dataclass(frozen=True)
class SavedInvoice:
	id: str
	number: str
	client: str
	date: str
	amount: float
	currency: str = "EUR"
	snapshot: Optional[InvoiceData] = None


@dataclass(frozen=True)
class AppUser:
	id: str
	name: str
	email: str


def replace_by_id(records: Iterable[Any], updated: Any) -> Tuple[Any, ...]:
	return tuple(updated if r.id == updated.id else r for r in records)


def without_id(records: Iterable[Any], record_id: str) -> Tuple[Any, ...]:
	return tuple(r for r in records if r.id != record_id)
