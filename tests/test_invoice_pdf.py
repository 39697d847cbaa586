from __future__ import annotations

from pathlib import Path

import math

from pypdf import PdfReader

from fatura.core.models import LineItem, new_invoice
from fatura.pdf.pdf_draw import build_invoice_pdf
from fatura.preview.layout import render
from fatura.printing import print_windows
from fatura.services.images import compress_image


def _a4_size_points() -> tuple[float, float]:
    # ReportLab A4 in points
    return (595.2755905511812, 841.8897637795277)


def _assert_single_a4(path: Path) -> PdfReader:
    reader = PdfReader(str(path))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    width = float(box.right - box.left)
    height = float(box.top - box.bottom)
    a4w, a4h = _a4_size_points()
    # Allow a small tolerance for float conversions
    assert math.isclose(width, a4w, rel_tol=0, abs_tol=1.0)
    assert math.isclose(height, a4h, rel_tol=0, abs_tol=1.0)
    return reader


def _sample(**kw):
    kw.setdefault("items", (LineItem(id="a", description="Consulting", quantity=2, rate=50),))
    return new_invoice(
        invoice_number="INV-240307-0001",
        date="2024-03-07",
        due_date="2024-04-07",
        sender_name="Acme Sh.p.k.",
        sender_id="L12345678A",
        receiver_name="Test Customer",
        receiver_address="Line 1\nLine 2",
        tax_rate=18,
        discount=5,
        notes="Thank you for your business.",
        **kw,
    )


def test_invoice_pdf_drawn(tmp_path: Path) -> None:
    out_pdf = tmp_path / "drawn.pdf"
    build_invoice_pdf(out_pdf, render(_sample()), title="INV-240307-0001", author="Acme Sh.p.k.")

    reader = _assert_single_a4(out_pdf)
    text = reader.pages[0].extract_text()
    for expected in ("INVOICE", "INV-240307-0001", "07/03/2024", "Description", "Qty", "Rate", "Amount",
                     "Consulting", "Subtotal", "100.00", "113.00", "Prepared by:", "Thank you for your business."):
        assert expected in text
    assert reader.metadata.title == "INV-240307-0001"
    assert reader.metadata.author == "Acme Sh.p.k."


def test_long_invoice_still_one_page(tmp_path: Path) -> None:
    items = tuple(LineItem(id=str(i), description=f"Line item {i}", quantity=1, rate=10) for i in range(70))
    page = render(_sample(items=items))
    assert page.print_scale < 1.0

    out_pdf = tmp_path / "long.pdf"
    build_invoice_pdf(out_pdf, page)
    reader = _assert_single_a4(out_pdf)
    text = reader.pages[0].extract_text()
    assert "Line item 69" in text
    assert "821.00" in text  # 700 + 18% - 5


def test_logo_is_embedded(tmp_path: Path) -> None:
    from PIL import Image

    logo_png = tmp_path / "logo.png"
    Image.new("RGB", (200, 80), (20, 80, 160)).save(logo_png)
    page = render(_sample(logo=compress_image(logo_png)))

    out_pdf = tmp_path / "logo.pdf"
    build_invoice_pdf(out_pdf, page)
    reader = _assert_single_a4(out_pdf)
    assert len(reader.pages[0].images) == 1


def test_bad_logo_is_skipped(tmp_path: Path) -> None:
    out_pdf = tmp_path / "bad-logo.pdf"
    build_invoice_pdf(out_pdf, render(_sample(logo="not a data url")))
    _assert_single_a4(out_pdf)


def test_print_page_falls_back_to_viewer(tmp_path: Path, monkeypatch) -> None:
    opened = []
    monkeypatch.setattr(print_windows, "print_pdf", lambda path: False)
    monkeypatch.setattr(print_windows, "open_file", lambda path: opened.append(path) or True)

    path = print_windows.print_page(render(_sample()), title="INV/1 draft", out_dir=tmp_path)
    assert path == tmp_path / "INV_1_draft.pdf"
    assert opened == [str(path)]
    _assert_single_a4(path)
