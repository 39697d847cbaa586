from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from fatura.core.currency import money_with_symbol
from fatura.core.dates import fmt_date
from fatura.core.editor import EditorSession
from fatura.core.errors import FaturaError
from fatura.core.models import Business, Client, SavedInvoice
from fatura.core.settings import Settings, load_settings
from fatura.services.images import compress_logo

# (field, label, multiline)
BUSINESS_FIELDS: Tuple[Tuple[str, str, bool], ...] = (
    ("name", "Name", False),
    ("tax_id", "Tax ID", False),
    ("address", "Address", True),
    ("bank", "Bank account", False),
    ("email", "Email", False),
)
CLIENT_FIELDS: Tuple[Tuple[str, str, bool], ...] = (
    ("name", "Name", False),
    ("tax_id", "Tax ID", False),
    ("address", "Address", True),
    ("email", "Email", False),
)


class RecordDialog(QDialog):
    """Add / edit form for a business or client record."""

    def __init__(self, title: str, fields: Sequence[Tuple[str, str, bool]], record: Any = None, with_logo: bool = False, parent: Optional[QWidget] = None, settings: Optional[Settings] = None) -> None:
        super().__init__(parent)
        self.settings = settings or load_settings()
        self.setWindowTitle(title)
        self.setModal(True)
        self.resize(420, 0)
        self._edits: Dict[str, Any] = {}
        self.logo: str = getattr(record, "logo", "") or ""

        form = QFormLayout()
        form.setLabelAlignment(Qt.AlignRight)
        for name, label, multiline in fields:
            value = str(getattr(record, name, "") or "")
            if multiline:
                edit = QTextEdit()
                edit.setPlainText(value)
                edit.setFixedHeight(60)
            else:
                edit = QLineEdit(value)
            self._edits[name] = edit
            form.addRow(label, edit)

        if with_logo:
            row = QHBoxLayout()
            self.logo_lbl = QLabel("Logo set" if self.logo else "No logo")
            btn = QPushButton("Choose…")
            btn.clicked.connect(self._choose_logo)
            row.addWidget(self.logo_lbl, 1)
            row.addWidget(btn)
            form.addRow("Logo", row)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._accept)
        buttons.rejected.connect(self.reject)

        root = QVBoxLayout(self)
        root.addLayout(form)
        root.addWidget(buttons)

    def _choose_logo(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Choose logo", "", "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp)")
        if path:
            self.set_logo_from_file(path)

    def set_logo_from_file(self, path: str) -> bool:
        try:
            self.logo = compress_logo(path, self.settings)
        except FaturaError as e:
            QMessageBox.warning(self, "Logo", e.message)
            return False
        self.logo_lbl.setText("Logo set")
        return True

    def values(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name, edit in self._edits.items():
            out[name] = (edit.toPlainText() if isinstance(edit, QTextEdit) else edit.text()).strip()
        if hasattr(self, "logo_lbl"):
            out["logo"] = self.logo
        return out

    def _accept(self) -> None:
        if not self.values().get("name"):
            QMessageBox.information(self, self.windowTitle(), "Name is required.")
            return
        self.accept()


def _fill(table: QTableWidget, rows: List[Tuple[Any, List[str]]]) -> None:
    table.setRowCount(0)
    for record, cells in rows:
        r = table.rowCount()
        table.insertRow(r)
        for c, text in enumerate(cells):
            table.setItem(r, c, QTableWidgetItem(text))
        # stash the record on the first column
        table.item(r, 0).setData(Qt.UserRole, record)


def _table(headers: List[str]) -> QTableWidget:
    t = QTableWidget(0, len(headers))
    t.setHorizontalHeaderLabels(headers)
    t.horizontalHeader().setStretchLastSection(True)
    t.verticalHeader().setVisible(False)
    t.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
    t.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
    t.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
    return t


def _selected(table: QTableWidget) -> Any:
    r = table.currentRow()
    if r < 0:
        return None
    item = table.item(r, 0)
    return item.data(Qt.UserRole) if item else None


class Dashboard(QWidget):
    """Businesses, clients and saved invoices of the signed-in account.

    Record edits go through the EditorSession so its cached account data stays
    in step with the store. Template / edit / print requests are signalled.
    """

    useBusiness = Signal(object)
    useClient = Signal(object)
    editInvoice = Signal(object)
    printInvoice = Signal(object)
    messageChanged = Signal(str, bool)

    def __init__(self, session: EditorSession, store: Callable[[], Any], parent: Optional[QWidget] = None, settings: Optional[Settings] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.settings = settings or load_settings()
        self._store = store

        root = QVBoxLayout(self)
        self.tabs = QTabWidget()
        root.addWidget(self.tabs, 1)

        # Businesses
        self.business_table = _table(["Name", "Tax ID", "Email"])
        self.btn_business_add = QPushButton("Add")
        self.btn_business_edit = QPushButton("Edit")
        self.btn_business_delete = QPushButton("Delete")
        self.btn_business_use = QPushButton("Use as sender")
        self.tabs.addTab(self._tab(self.business_table, [self.btn_business_add, self.btn_business_edit, self.btn_business_delete, self.btn_business_use]), "Businesses")

        # Clients
        self.client_table = _table(["Name", "Tax ID", "Email"])
        self.btn_client_add = QPushButton("Add")
        self.btn_client_edit = QPushButton("Edit")
        self.btn_client_delete = QPushButton("Delete")
        self.btn_client_use = QPushButton("Use as receiver")
        self.tabs.addTab(self._tab(self.client_table, [self.btn_client_add, self.btn_client_edit, self.btn_client_delete, self.btn_client_use]), "Clients")

        # Invoices
        self.invoice_table = _table(["Number", "Client", "Date", "Amount"])
        self.btn_invoice_edit = QPushButton("Edit")
        self.btn_invoice_print = QPushButton("Print")
        self.btn_invoice_delete = QPushButton("Delete")
        self.tabs.addTab(self._tab(self.invoice_table, [self.btn_invoice_edit, self.btn_invoice_print, self.btn_invoice_delete]), "Invoices")

        self.btn_business_add.clicked.connect(self._add_business)
        self.btn_business_edit.clicked.connect(self._edit_business)
        self.btn_business_delete.clicked.connect(self._delete_business)
        self.btn_business_use.clicked.connect(lambda: self._emit_selected(self.business_table, self.useBusiness))
        self.btn_client_add.clicked.connect(self._add_client)
        self.btn_client_edit.clicked.connect(self._edit_client)
        self.btn_client_delete.clicked.connect(self._delete_client)
        self.btn_client_use.clicked.connect(lambda: self._emit_selected(self.client_table, self.useClient))
        self.btn_invoice_edit.clicked.connect(lambda: self._emit_selected(self.invoice_table, self.editInvoice))
        self.btn_invoice_print.clicked.connect(lambda: self._emit_selected(self.invoice_table, self.printInvoice))
        self.btn_invoice_delete.clicked.connect(self._delete_invoice)
        self.invoice_table.doubleClicked.connect(lambda _i: self._emit_selected(self.invoice_table, self.editInvoice))

    @staticmethod
    def _tab(table: QTableWidget, buttons: List[QPushButton]) -> QWidget:
        w = QWidget()
        v = QVBoxLayout(w)
        row = QHBoxLayout()
        for b in buttons:
            row.addWidget(b)
        row.addStretch(1)
        v.addLayout(row)
        v.addWidget(table, 1)
        return w

    def refresh(self) -> None:
        account = self.session.account
        _fill(self.business_table, [(b, [b.name, b.tax_id, b.email]) for b in account.businesses])
        _fill(self.client_table, [(c, [c.name, c.tax_id, c.email]) for c in account.clients])
        _fill(self.invoice_table, [
            (i, [i.number, i.client, fmt_date(i.date), money_with_symbol(i.amount, i.currency)])
            for i in account.invoices
        ])

    def _emit_selected(self, table: QTableWidget, signal) -> None:
        record = _selected(table)
        if record is not None:
            signal.emit(record)

    def _store_or_warn(self) -> Any:
        store = self._store()
        if store is None:
            self.messageChanged.emit("Sign in to manage your records.", True)
        return store

    def _after(self) -> None:
        self.refresh()
        self.messageChanged.emit(self.session.message, self.session.error)

    # ----- businesses -----
    def _add_business(self) -> None:
        store = self._store_or_warn()
        if store is None:
            return
        dlg = RecordDialog("Add business", BUSINESS_FIELDS, with_logo=True, parent=self, settings=self.settings)
        if dlg.exec() == QDialog.Accepted:
            self.session.add_business(store, dlg.values())
            self._after()

    def _edit_business(self) -> None:
        store = self._store_or_warn()
        b: Optional[Business] = _selected(self.business_table)
        if store is None or b is None:
            return
        dlg = RecordDialog("Edit business", BUSINESS_FIELDS, record=b, with_logo=True, parent=self, settings=self.settings)
        if dlg.exec() == QDialog.Accepted:
            self.session.update_business(store, b.id, dlg.values())
            self._after()

    def _delete_business(self) -> None:
        store = self._store_or_warn()
        b: Optional[Business] = _selected(self.business_table)
        if store is None or b is None or not self._confirm(f"Delete business '{b.name}'?"):
            return
        self.session.delete_business(store, b.id)
        self._after()

    # ----- clients -----
    def _add_client(self) -> None:
        store = self._store_or_warn()
        if store is None:
            return
        dlg = RecordDialog("Add client", CLIENT_FIELDS, parent=self)
        if dlg.exec() == QDialog.Accepted:
            self.session.add_client(store, dlg.values())
            self._after()

    def _edit_client(self) -> None:
        store = self._store_or_warn()
        c: Optional[Client] = _selected(self.client_table)
        if store is None or c is None:
            return
        dlg = RecordDialog("Edit client", CLIENT_FIELDS, record=c, parent=self)
        if dlg.exec() == QDialog.Accepted:
            self.session.update_client(store, c.id, dlg.values())
            self._after()

    def _delete_client(self) -> None:
        store = self._store_or_warn()
        c: Optional[Client] = _selected(self.client_table)
        if store is None or c is None or not self._confirm(f"Delete client '{c.name}'?"):
            return
        self.session.delete_client(store, c.id)
        self._after()

    # ----- invoices -----
    def _delete_invoice(self) -> None:
        store = self._store_or_warn()
        inv: Optional[SavedInvoice] = _selected(self.invoice_table)
        if store is None or inv is None or not self._confirm(f"Delete invoice {inv.number}? This cannot be undone."):
            return
        self.session.delete_invoice(store, inv.id)
        self._after()

    def _confirm(self, text: str) -> bool:
        reply = QMessageBox.question(self, "Confirm Delete", text, QMessageBox.Yes | QMessageBox.No, QMessageBox.No)
        return reply == QMessageBox.Yes
