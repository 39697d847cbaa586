from __future__ import annotations

import base64
import io

import pytest

pytest.importorskip("pytestqt")

from fatura.core.errors import AppMessages
from fatura.core.models import LineItem, new_invoice
from fatura.core.settings import Settings
from fatura.preview.layout import render
from fatura.services.auth import IdentityService
from fatura.services.images import DATA_URL_PREFIX
from fatura.widgets.page_view import natural_size
from fatura.widgets.preview_frame import FRAME_PADDING, A4PreviewFrame


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(db_path=str(tmp_path / "ui.db"), last_pdf_dir=str(tmp_path), preview_settle_ms=0)


def _page():
    return render(new_invoice(sender_name="Acme", items=(LineItem(id="a", quantity=2, rate=50),)))


def test_preview_shrinks_to_fit(qtbot) -> None:
    frame = A4PreviewFrame(settle_ms=0)
    qtbot.addWidget(frame)
    page = _page()
    natural = natural_size(page)

    frame.set_page(page)
    frame.resize(natural.width() // 2 + 2 * FRAME_PADDING, natural.height() + 2 * FRAME_PADDING)
    frame.show()
    qtbot.waitUntil(lambda: abs(frame.scale() - 0.5) < 0.01)
    assert frame.view.width() == pytest.approx(natural.width() / 2, abs=2)

    # a roomy frame never enlarges the page past 1:1
    with qtbot.waitSignal(frame.scaleChanged):
        frame.resize(natural.width() * 2, natural.height() * 2)
    assert frame.scale() == 1.0
    assert frame.view.size() == natural


def test_preview_ignores_resizes_after_teardown(qtbot) -> None:
    frame = A4PreviewFrame(settle_ms=0)
    qtbot.addWidget(frame)
    frame.set_page(_page())
    frame.resize(2000, 2000)
    frame.show()
    qtbot.waitUntil(lambda: frame.scale() == 1.0)

    frame.teardown()
    frame.resize(300, 300)
    qtbot.wait(20)
    assert frame.scale() == 1.0
    assert frame.scaler.closed


def test_main_window_edit_save_and_sign_out(qtbot, temp_db, settings) -> None:
    from fatura.ui_main import MainWindow

    identity = IdentityService()
    step = identity.register("Ana", "ana@example.com", "secret-123")
    identity.confirm("ana@example.com", step.code)
    user = identity.login("ana@example.com", "secret-123")

    win = MainWindow(settings=settings, identity=identity)
    qtbot.addWidget(win)

    # saving without an account is refused and reported
    win.save_invoice()
    assert win.status.text() == AppMessages.SIGN_IN_TO_SAVE

    win.sign_in(user)
    assert win.status.text() == AppMessages.SIGNED_IN
    assert win.user_label.text() == "Ana"

    win.form.sender_name.setText("Acme")
    win.form.sender_name.textEdited.emit("Acme")
    assert win.session.invoice.sender_name == "Acme"
    assert win.preview.view.page().find("sender.heading").text == "Acme"

    win.save_invoice()
    assert win.status.text() == AppMessages.INVOICE_SAVED
    assert win.dashboard.invoice_table.rowCount() == 1

    win.sign_out()
    assert win.status.text() == AppMessages.SIGNED_OUT
    assert win.dashboard.invoice_table.rowCount() == 0
    assert win.session.invoice.sender_name == ""


def test_form_item_edits_reach_totals(qtbot, settings) -> None:
    from fatura.core.editor import EditorSession
    from fatura.widgets.invoice_form import InvoiceForm

    session = EditorSession()
    form = InvoiceForm(session, settings=settings)
    qtbot.addWidget(form)
    form.start_new()

    item_id = session.invoice.items[0].id
    with qtbot.waitSignal(form.documentChanged):
        form.items.itemChanged.emit(item_id, "rate", 50.0)
    assert form.subtotal_lbl.text() == "50.00 €"

    with qtbot.waitSignal(form.documentChanged):
        form.items.addRequested.emit()
    assert len(form.items.item_ids()) == 2

    with qtbot.waitSignal(form.documentChanged):
        form.items.itemRemoved.emit(item_id)
    assert form.items.item_ids() == [session.invoice.items[0].id]
    assert form.total_lbl.text() == "0.00 €"


def test_unreadable_logo_is_reported(qtbot, settings, tmp_path) -> None:
    from fatura.core.editor import EditorSession
    from fatura.widgets.invoice_form import InvoiceForm

    bad = tmp_path / "logo.png"
    bad.write_bytes(b"not an image")
    form = InvoiceForm(EditorSession(), settings=settings)
    qtbot.addWidget(form)
    with qtbot.waitSignal(form.messageChanged) as blocker:
        assert form.set_logo_from_file(str(bad)) is False
    assert blocker.args == [AppMessages.IMAGE_UNREADABLE, True]


def test_settle_pass_is_scheduled_once(qtbot, monkeypatch) -> None:
    from fatura.widgets import preview_frame

    calls = []

    class _Timer:
        @staticmethod
        def singleShot(ms, callback):
            calls.append(ms)

    monkeypatch.setattr(preview_frame, "QTimer", _Timer)
    frame = A4PreviewFrame(settle_ms=25)
    qtbot.addWidget(frame)
    for _ in range(3):
        frame.set_page(_page())
    assert calls == [25]


def test_print_failure_is_reported(qtbot, temp_db, settings, monkeypatch) -> None:
    from fatura import ui_main
    from fatura.core.models import SavedInvoice

    def fail(page, title="Invoice", out_dir=None):
        raise OSError("disk full")

    monkeypatch.setattr(ui_main, "print_page", fail)
    win = ui_main.MainWindow(settings=settings, identity=IdentityService())
    qtbot.addWidget(win)

    win.print_current()
    assert "disk full" in win.status.text()
    assert win.status.property("error") is True

    win.show_message("")
    win.print_saved(SavedInvoice(id="1", number="INV-1", client="", date="", amount=0, snapshot=new_invoice()))
    assert "disk full" in win.status.text()


def test_business_logo_uses_configured_budget(qtbot, tmp_path) -> None:
    from PIL import Image

    from fatura.widgets.dashboard import BUSINESS_FIELDS, RecordDialog

    path = tmp_path / "logo.png"
    Image.new("RGB", (600, 300), (10, 120, 200)).save(path)
    dlg = RecordDialog("Add business", BUSINESS_FIELDS, with_logo=True,
                       settings=Settings(image_max_side=100, last_pdf_dir=str(tmp_path)))
    qtbot.addWidget(dlg)
    assert dlg.set_logo_from_file(str(path)) is True

    raw = base64.b64decode(dlg.values()["logo"][len(DATA_URL_PREFIX):])
    assert Image.open(io.BytesIO(raw)).size == (100, 50)
