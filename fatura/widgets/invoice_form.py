from __future__ import annotations

import logging
from typing import Any

from PySide6.QtCore import Qt, QDate, Signal
from PySide6.QtWidgets import (
	QWidget,
	QGroupBox,
	QFormLayout,
	QLineEdit,
	QTextEdit,
	QDateEdit,
	QComboBox,
	QDoubleSpinBox,
	QFileDialog,
	QVBoxLayout,
	QHBoxLayout,
	QLabel,
	QPushButton,
)

from fatura.core.currency import CURRENCIES, money_with_symbol
from fatura.core.editor import EditorSession
from fatura.core.errors import AppMessages, FaturaError
from fatura.core.models import THEME_NAMES, InvoiceData
from fatura.core.settings import Settings, load_settings
from fatura.core.templates import invoice_from_business, invoice_from_client
from fatura.services.images import compress_logo
from fatura.widgets.line_items_widget import LineItemsWidget

logger = logging.getLogger(__name__)

ISO_QT = "yyyy-MM-dd"

# widget attribute -> invoice field, for the plain one-line text inputs
_LINE_FIELDS = {
	"inv_number": "invoice_number",
	"po_edit": "po_number",
	"due_edit": "due_date",
	"sender_name": "sender_name",
	"sender_id": "sender_id",
	"sender_bank": "sender_bank",
	"sender_email": "sender_email",
	"receiver_name": "receiver_name",
	"receiver_id": "receiver_id",
	"receiver_bank": "receiver_bank",
	"receiver_email": "receiver_email",
}
_TEXT_FIELDS = {
	"sender_address": "sender_address",
	"receiver_address": "receiver_address",
	"notes_edit": "notes",
	"terms_edit": "terms",
}


class InvoiceForm(QWidget):
	"""Editing form for the session's document.

	Every input writes through the EditorSession (copy-on-write) and then
	emits documentChanged; load() pushes a whole document back into the
	inputs without echoing edits.
	"""

	documentChanged = Signal()
	messageChanged = Signal(str, bool)

	def __init__(self, session: EditorSession, parent=None, settings: Settings | None = None) -> None:
		super().__init__(parent)
		self.session = session
		self.settings = settings or load_settings()
		self._loading = False

		root = QVBoxLayout(self)
		root.setContentsMargins(0, 0, 0, 0)
		root.setSpacing(8)

		# Templates
		tpl = QHBoxLayout()
		self.business_combo = QComboBox()
		self.client_combo = QComboBox()
		self.btn_new = QPushButton("New invoice")
		tpl.addWidget(QLabel("Business"))
		tpl.addWidget(self.business_combo, 1)
		tpl.addWidget(QLabel("Client"))
		tpl.addWidget(self.client_combo, 1)
		tpl.addWidget(self.btn_new)
		root.addLayout(tpl)

		# Invoice info
		info_group = QGroupBox("Invoice Info")
		info_form = QFormLayout(info_group)
		info_form.setLabelAlignment(Qt.AlignRight)
		self.inv_number = QLineEdit()
		self.inv_number.setPlaceholderText("Generated on save")
		self.date_edit = QDateEdit()
		self.date_edit.setCalendarPopup(True)
		self.date_edit.setDisplayFormat("dd/MM/yyyy")
		self.due_edit = QLineEdit()
		self.due_edit.setPlaceholderText("YYYY-MM-DD")
		self.po_edit = QLineEdit()
		info_form.addRow("Number", self.inv_number)
		info_form.addRow("Date", self.date_edit)
		info_form.addRow("Due", self.due_edit)
		info_form.addRow("PO #", self.po_edit)

		# Look
		look_group = QGroupBox("Currency && Style")
		look_form = QFormLayout(look_group)
		look_form.setLabelAlignment(Qt.AlignRight)
		self.currency_combo = QComboBox()
		self.currency_combo.addItems(list(CURRENCIES))
		self.theme_combo = QComboBox()
		self.theme_combo.addItems(list(THEME_NAMES))
		self.tax_spin = QDoubleSpinBox()
		self.tax_spin.setRange(0.0, 100.0)
		self.tax_spin.setDecimals(2)
		self.tax_spin.setSuffix(" %")
		self.discount_spin = QDoubleSpinBox()
		self.discount_spin.setRange(0.0, 1_000_000_000)
		self.discount_spin.setDecimals(2)
		logo_row = QHBoxLayout()
		self.btn_logo = QPushButton("Upload logo…")
		self.btn_logo_clear = QPushButton("Remove")
		logo_row.addWidget(self.btn_logo)
		logo_row.addWidget(self.btn_logo_clear)
		look_form.addRow("Currency", self.currency_combo)
		look_form.addRow("Theme", self.theme_combo)
		look_form.addRow("Tax rate", self.tax_spin)
		look_form.addRow("Discount", self.discount_spin)
		look_form.addRow("Logo", logo_row)

		top = QHBoxLayout()
		top.setSpacing(12)
		top.addWidget(info_group, 1)
		top.addWidget(look_group, 1)
		root.addLayout(top)

		# Parties
		parties = QHBoxLayout()
		parties.setSpacing(12)
		parties.addWidget(self._party_group("FROM", "sender"), 1)
		parties.addWidget(self._party_group("TO", "receiver"), 1)
		root.addLayout(parties)

		# Line items
		self.items = LineItemsWidget(self)
		root.addWidget(self.items)

		# Totals area (right aligned)
		totals_row = QHBoxLayout()
		totals_row.addStretch(1)
		totals_box = QFormLayout()
		self.subtotal_lbl = QLabel()
		self.tax_lbl = QLabel()
		self.total_lbl = QLabel()
		self.total_lbl.setStyleSheet("font-weight: 700; font-size: 14px;")
		for lbl in (self.subtotal_lbl, self.tax_lbl, self.total_lbl):
			lbl.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
		totals_box.addRow("Subtotal:", self.subtotal_lbl)
		totals_box.addRow("Tax:", self.tax_lbl)
		totals_box.addRow("Total:", self.total_lbl)
		totals_row.addLayout(totals_box)
		root.addLayout(totals_row)

		# Notes / terms
		foot = QHBoxLayout()
		self.notes_edit = QTextEdit()
		self.notes_edit.setPlaceholderText("Notes")
		self.notes_edit.setFixedHeight(60)
		self.terms_edit = QTextEdit()
		self.terms_edit.setPlaceholderText("Terms")
		self.terms_edit.setFixedHeight(60)
		foot.addWidget(self.notes_edit)
		foot.addWidget(self.terms_edit)
		root.addLayout(foot)

		self._wire()
		self.load(self.session.invoice)

	def _party_group(self, title: str, prefix: str) -> QGroupBox:
		group = QGroupBox(title)
		form = QFormLayout(group)
		form.setLabelAlignment(Qt.AlignRight)
		name, tax_id, bank, email = QLineEdit(), QLineEdit(), QLineEdit(), QLineEdit()
		address = QTextEdit()
		address.setFixedHeight(60)
		form.addRow("Name", name)
		form.addRow("Tax ID", tax_id)
		form.addRow("Bank account", bank)
		form.addRow("Address", address)
		form.addRow("Email", email)
		setattr(self, f"{prefix}_name", name)
		setattr(self, f"{prefix}_id", tax_id)
		setattr(self, f"{prefix}_bank", bank)
		setattr(self, f"{prefix}_address", address)
		setattr(self, f"{prefix}_email", email)
		return group

	# ----- wiring -----
	def _wire(self) -> None:
		for attr, name in _LINE_FIELDS.items():
			getattr(self, attr).textEdited.connect(lambda t, n=name: self._set(n, t))
		for attr, name in _TEXT_FIELDS.items():
			edit: QTextEdit = getattr(self, attr)
			edit.textChanged.connect(lambda e=edit, n=name: self._set(n, e.toPlainText()))
		self.date_edit.dateChanged.connect(lambda d: self._set("date", d.toString(ISO_QT)))
		self.currency_combo.currentTextChanged.connect(lambda t: self._set("currency", t))
		self.theme_combo.currentTextChanged.connect(lambda t: self._set("theme_color", t))
		self.tax_spin.valueChanged.connect(lambda v: self._set("tax_rate", v))
		self.discount_spin.valueChanged.connect(lambda v: self._set("discount", v))
		self.btn_logo.clicked.connect(self._choose_logo)
		self.btn_logo_clear.clicked.connect(lambda: self._set("logo", None))

		self.items.itemChanged.connect(self._on_item_changed)
		self.items.itemRemoved.connect(self._on_item_removed)
		self.items.addRequested.connect(self._on_item_added)

		self.business_combo.activated.connect(self._apply_business)
		self.client_combo.activated.connect(self._apply_client)
		self.btn_new.clicked.connect(self.start_new)

	def _set(self, name: str, value: Any) -> None:
		if self._loading:
			return
		self.session.set_field(name, value)
		self._changed()

	def _changed(self) -> None:
		self._refresh_totals()
		self.documentChanged.emit()

	def _on_item_changed(self, item_id: str, field: str, value: Any) -> None:
		if self._loading:
			return
		self.session.update_item(item_id, field, value)
		self.items.set_items(self.session.invoice.items)
		self._changed()

	def _on_item_removed(self, item_id: str) -> None:
		self.session.remove_item(item_id)
		self.items.set_items(self.session.invoice.items)
		self._changed()

	def _on_item_added(self) -> None:
		self.session.add_item()
		self.items.set_items(self.session.invoice.items)
		self._changed()

	def _choose_logo(self) -> None:
		path, _ = QFileDialog.getOpenFileName(self, "Choose logo", "", "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp)")
		if path:
			self.set_logo_from_file(path)

	def set_logo_from_file(self, path: str) -> bool:
		try:
			data_url = compress_logo(path, self.settings)
		except FaturaError as e:
			logger.warning("Logo rejected: %s", e.message)
			self.messageChanged.emit(e.message or AppMessages.IMAGE_UNREADABLE, True)
			return False
		self._set("logo", data_url)
		return True

	# ----- templates -----
	def refresh_templates(self) -> None:
		account = self.session.account
		self.business_combo.clear()
		self.business_combo.addItem("Choose business…", None)
		for b in account.businesses:
			self.business_combo.addItem(b.name, b.id)
		self.client_combo.clear()
		self.client_combo.addItem("Choose client…", None)
		for c in account.clients:
			self.client_combo.addItem(c.name, c.id)

	def _apply_business(self, index: int) -> None:
		bid = self.business_combo.itemData(index)
		match = next((b for b in self.session.account.businesses if b.id == bid), None)
		if match is not None:
			self.session.invoice = invoice_from_business(match, self.session.invoice)
			self.load(self.session.invoice)
			self._changed()

	def _apply_client(self, index: int) -> None:
		cid = self.client_combo.itemData(index)
		match = next((c for c in self.session.account.clients if c.id == cid), None)
		if match is not None:
			self.session.invoice = invoice_from_client(match, self.session.invoice)
			self.load(self.session.invoice)
			self._changed()

	def start_new(self) -> None:
		s = self.settings
		self.session.start_new()
		self.session.set_field("currency", s.default_currency)
		self.session.set_field("tax_rate", s.default_tax_rate)
		self.session.set_field("theme_color", s.default_theme)
		self.load(self.session.invoice)
		self._changed()

	# ----- document -> widgets -----
	def load(self, inv: InvoiceData) -> None:
		self._loading = True
		try:
			for attr, name in _LINE_FIELDS.items():
				getattr(self, attr).setText(getattr(inv, name) or "")
			for attr, name in _TEXT_FIELDS.items():
				getattr(self, attr).setPlainText(getattr(inv, name) or "")
			d = QDate.fromString(inv.date or "", ISO_QT)
			self.date_edit.setDate(d if d.isValid() else QDate.currentDate())
			self.currency_combo.setCurrentText(inv.currency)
			self.theme_combo.setCurrentText(inv.theme_color)
			self.tax_spin.setValue(inv.tax_rate)
			self.discount_spin.setValue(inv.discount)
			self.btn_logo_clear.setEnabled(bool(inv.logo))
			self.items.set_items(inv.items, rebuild=True)
		finally:
			self._loading = False
		self._refresh_totals()

	def _refresh_totals(self) -> None:
		t = self.session.totals
		cur = self.session.invoice.currency
		self.subtotal_lbl.setText(money_with_symbol(t.subtotal, cur))
		self.tax_lbl.setText(money_with_symbol(t.tax_amount, cur))
		self.total_lbl.setText(money_with_symbol(t.total, cur))
		self.btn_logo_clear.setEnabled(bool(self.session.invoice.logo))
