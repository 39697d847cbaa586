from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QScrollArea,
    QSplitter,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from fatura.core.editor import EditorSession
from fatura.core.errors import AppMessages
from fatura.core.models import AppUser, Business, Client, SavedInvoice
from fatura.core.numbering import effective_number
from fatura.core.settings import Settings, load_settings, save_settings
from fatura.core.templates import invoice_from_business, invoice_from_client
from fatura.data.repo import RecordStore
from fatura.pdf.pdf_draw import build_invoice_pdf
from fatura.preview.page import PageDescription
from fatura.printing.print_windows import open_file, print_page
from fatura.services.auth import IdentityService
from fatura.styles.themes import light_qss
from fatura.widgets.auth_dialog import AuthDialog
from fatura.widgets.dashboard import Dashboard
from fatura.widgets.invoice_form import InvoiceForm
from fatura.widgets.preview_frame import A4PreviewFrame

logger = logging.getLogger(__name__)

DEFAULT_PDF_DIR = Path.home() / "Documents" / "Fatura"
VIEW_EDITOR, VIEW_DASHBOARD = 0, 1


class NavRail(QWidget):
    navigate = Signal(int)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("NavRail")
        v = QVBoxLayout(self)
        v.setContentsMargins(8, 12, 8, 12)
        v.setSpacing(4)

        def make_btn(text: str, idx: int) -> QPushButton:
            b = QPushButton(text)
            b.setObjectName("NavButton")
            b.setCheckable(True)
            b.clicked.connect(lambda: self.navigate.emit(idx))
            b.setCursor(Qt.PointingHandCursor)
            b.setMinimumHeight(32)
            return b

        self.btn_editor = make_btn("Invoice", VIEW_EDITOR)
        self.btn_dashboard = make_btn("Dashboard", VIEW_DASHBOARD)
        self.buttons = [self.btn_editor, self.btn_dashboard]
        for b in self.buttons:
            v.addWidget(b)
        v.addStretch(1)
        self.select(VIEW_EDITOR)

    def select(self, idx: int) -> None:
        for i, b in enumerate(self.buttons):
            b.setChecked(i == idx)


class MainWindow(QMainWindow):
    """Editor (form + live A4 preview) and dashboard, behind a nav rail."""

    def __init__(self, settings: Optional[Settings] = None, identity: Optional[IdentityService] = None) -> None:
        super().__init__()
        self.setWindowTitle("Fatura")
        self.settings: Settings = settings or load_settings()
        self.identity = identity or IdentityService()
        self.user: Optional[AppUser] = None
        self.store: Optional[RecordStore] = None
        self.session = EditorSession()

        root = QWidget(self)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        # Header
        header = QHBoxLayout()
        header.setContentsMargins(12, 8, 12, 8)
        title = QLabel("Fatura")
        f = QFont()
        f.setPointSize(14)
        f.setBold(True)
        title.setFont(f)
        self.user_label = QLabel("")
        self.btn_account = QPushButton("Sign in")
        header.addWidget(title)
        header.addStretch(1)
        header.addWidget(self.user_label)
        header.addWidget(self.btn_account)
        layout.addLayout(header)

        # Body: nav rail + views
        body = QHBoxLayout()
        body.setContentsMargins(0, 0, 0, 0)
        body.setSpacing(0)
        self.nav = NavRail()
        self.nav.navigate.connect(self.show_view)
        body.addWidget(self.nav)

        self.stack = QStackedWidget()
        self.form = InvoiceForm(self.session, settings=self.settings)
        form_scroll = QScrollArea()
        form_scroll.setWidgetResizable(True)
        form_scroll.setWidget(self.form)
        self.preview = A4PreviewFrame(
            settle_ms=self.settings.preview_settle_ms,
            epsilon=self.settings.preview_scale_epsilon,
        )
        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(form_scroll)
        splitter.addWidget(self.preview)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 1)
        self.stack.addWidget(splitter)

        self.dashboard = Dashboard(self.session, lambda: self.store, settings=self.settings)
        self.stack.addWidget(self.dashboard)
        body.addWidget(self.stack, 1)
        layout.addLayout(body, 1)

        # Footer: status line + actions
        self.footer = QWidget()
        self.footer.setObjectName("FooterBar")
        fh = QHBoxLayout(self.footer)
        fh.setContentsMargins(12, 8, 12, 8)
        self.status = QLabel("")
        self.status.setObjectName("StatusMessage")
        fh.addWidget(self.status, 1)
        self.btn_save = QPushButton("Save")
        self.btn_save.setObjectName("Primary")
        self.btn_save_pdf = QPushButton("Save PDF")
        self.btn_print = QPushButton("Print")
        for b in (self.btn_save, self.btn_save_pdf, self.btn_print):
            fh.addWidget(b)
        layout.addWidget(self.footer)

        self.setCentralWidget(root)
        self.setStyleSheet(light_qss())

        # Wire
        self.form.documentChanged.connect(self.refresh_preview)
        self.form.messageChanged.connect(self.show_message)
        self.dashboard.messageChanged.connect(self.show_message)
        self.dashboard.useBusiness.connect(self.use_business)
        self.dashboard.useClient.connect(self.use_client)
        self.dashboard.editInvoice.connect(self.edit_saved)
        self.dashboard.printInvoice.connect(self.print_saved)
        self.btn_account.clicked.connect(self.toggle_account)
        self.btn_save.clicked.connect(self.save_invoice)
        self.btn_save_pdf.clicked.connect(self.save_pdf)
        self.btn_print.clicked.connect(self.print_current)

        self.form.start_new()
        self.refresh_preview()

    # ----- views -----
    def show_view(self, idx: int) -> None:
        self.nav.select(idx)
        self.stack.setCurrentIndex(idx)
        if idx == VIEW_DASHBOARD:
            self.dashboard.refresh()

    def refresh_preview(self) -> None:
        self.preview.set_page(self.session.page)

    def show_message(self, text: str, error: bool = False) -> None:
        self.status.setText(text)
        self.status.setProperty("error", error)
        self.status.style().unpolish(self.status)
        self.status.style().polish(self.status)

    def _session_message(self) -> None:
        self.show_message(self.session.message, self.session.error)

    def _reload_document(self) -> None:
        self.form.load(self.session.invoice)
        self.refresh_preview()

    # ----- account -----
    def toggle_account(self) -> None:
        if self.user is None:
            dlg = AuthDialog(self.identity, parent=self)
            if dlg.exec() and dlg.user is not None:
                self.sign_in(dlg.user)
        else:
            self.sign_out()

    def sign_in(self, user: AppUser) -> None:
        self.user = user
        self.store = RecordStore(user.id, logo_limit=self.settings.snapshot_logo_limit)
        self.user_label.setText(user.name)
        self.btn_account.setText("Sign out")
        self.session.load_account_data(
            self.store,
            retries=self.settings.session_retries,
            delay=self.settings.session_retry_delay,
        )
        if not self.session.error:
            self.session.message = AppMessages.SIGNED_IN
        self.form.refresh_templates()
        self.dashboard.refresh()
        self._session_message()

    def sign_out(self) -> None:
        self.identity.logout()
        self.user = None
        self.store = None
        self.user_label.setText("")
        self.btn_account.setText("Sign in")
        self.session.sign_out()
        self.form.refresh_templates()
        self.dashboard.refresh()
        self._reload_document()
        self._session_message()

    # ----- templates / saved invoices -----
    def use_business(self, business: Business) -> None:
        self.session.invoice = invoice_from_business(business, self.session.invoice)
        self._reload_document()
        self.show_view(VIEW_EDITOR)

    def use_client(self, client: Client) -> None:
        self.session.invoice = invoice_from_client(client, self.session.invoice)
        self._reload_document()
        self.show_view(VIEW_EDITOR)

    def edit_saved(self, saved: SavedInvoice) -> None:
        if self.session.open_for_edit(saved):
            self._reload_document()
            self.show_view(VIEW_EDITOR)
        self._session_message()

    def print_saved(self, saved: SavedInvoice) -> None:
        page = self.session.open_for_print(saved)
        self._session_message()
        if page is not None:
            self._print(page, saved.number)

    # ----- actions -----
    def save_invoice(self) -> None:
        self.session.save(self.store, self.user)
        self.dashboard.refresh()
        self._session_message()

    def _pdf_title(self) -> str:
        return effective_number(self.session.invoice.invoice_number)

    def save_pdf(self) -> None:
        start = Path(self.settings.last_pdf_dir) if self.settings.last_pdf_dir else DEFAULT_PDF_DIR
        title = self._pdf_title()
        path, _ = QFileDialog.getSaveFileName(self, "Save PDF", str(start / f"{title}.pdf"), "PDF (*.pdf)")
        if not path:
            return
        try:
            build_invoice_pdf(path, self.session.page, title=title, author=self.session.invoice.sender_name)
        except OSError as e:
            logger.exception("Could not write %s", path)
            self.show_message(f"Could not write the PDF: {e}", error=True)
            return
        self.settings.last_pdf_dir = str(Path(path).parent)
        save_settings(self.settings)
        self.show_message(f"Saved {path}")
        open_file(path)

    def print_current(self) -> None:
        self._print(self.session.page, self._pdf_title())

    def _print(self, page: PageDescription, title: str) -> None:
        try:
            print_page(page, title=title)
        except OSError as e:
            logger.exception("Could not print %s", title)
            self.show_message(f"Could not print the invoice: {e}", error=True)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.preview.teardown()
        super().closeEvent(event)


def create_main_window(settings: Optional[Settings] = None) -> MainWindow:
    QApplication.setStyle("Fusion")
    return MainWindow(settings=settings)
