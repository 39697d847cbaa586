from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Optional, Tuple

from reportlab.pdfbase import pdfmetrics

from fatura.core.currency import fmt_money, fmt_number, money_with_symbol, to_number
from fatura.core.dates import fmt_date
from fatura.core.models import InvoiceData
from fatura.core.totals import Totals, compute_for
from fatura.preview.page import (
    Column,
    Field,
    Image,
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
    MM_PER_PT,
    PageDescription,
    Rule,
    Section,
    Spacer,
    Table,
    TableRow,
    Text,
    TextStyle,
)
from fatura.styles.themes import invoice_theme
from fatura.styles.tokens import Colors


# ===== Layout constants (tweak here) =====
MARGIN = 20.0
CONTENT_WIDTH = PAGE_WIDTH_MM - 2 * MARGIN

HEADER_COL_W = CONTENT_WIDTH / 2
PARTY_COL_W = 80.0
SIGN_COL_W = 68.0
TOTALS_W = CONTENT_WIDTH / 2

LOGO_MAX_W = 80.0
LOGO_H = 30.0

GAP_AFTER_HEADER = 12.0
GAP_AFTER_PARTIES = 12.0
GAP_AFTER_TABLE = 8.0
GAP_AFTER_TOTALS = 10.0
GAP_AFTER_SIGNATURES = 6.0

# Description / Qty / Rate / Amount
COLUMN_SHARES = (0.45, 0.15, 0.20, 0.20)
CELL_PAD_X = 4.0
CELL_PAD_Y = 2.6
TABLE_HEADER_H = 8.0

HEADING = TextStyle(size=22, bold=True, color="#111827")
TITLE = TextStyle(size=26, color=Colors.ink_faint, align="right")
META_LABEL = TextStyle(size=10, color="#6b7280", align="right")
META_VALUE = TextStyle(size=10, align="right")
BADGE = TextStyle(size=7.5, bold=True, color="#111827", background=Colors.badge_bg, border=Colors.badge_border)
PARTY_NAME = TextStyle(size=12, bold=True)
PARTY_DETAIL = TextStyle(size=8, color=Colors.ink_muted)
PARTY_TEXT = TextStyle(size=9.5, color=Colors.ink_muted)
TABLE_HEAD = TextStyle(size=9.5, bold=True, color="#ffffff")
TABLE_BODY = TextStyle(size=9.5)
TOTAL_ROW = TextStyle(size=10, color=Colors.ink_muted, align="justify")
SIGN_LABEL = TextStyle(size=10, bold=True)
FOOTER_HEAD = TextStyle(size=8, bold=True)
FOOTER_TEXT = TextStyle(size=8, color=Colors.ink_muted)


def _str(v: Any) -> str:
    return "" if v is None else str(v)


def _with(style: TextStyle, **kw: Any) -> TextStyle:
    return replace(style, **kw)


def _width_mm(text: str, style: TextStyle) -> float:
    return pdfmetrics.stringWidth(text, style.font, style.size) * MM_PER_PT


def _break_word(word: str, max_width: float, style: TextStyle) -> List[str]:
    """Split a word wider than max_width into chunks that fit (never truncate)."""
    chunks: List[str] = []
    cur = ""
    for ch in word:
        if cur and _width_mm(cur + ch, style) > max_width:
            chunks.append(cur)
            cur = ch
        else:
            cur += ch
    if cur:
        chunks.append(cur)
    return chunks


def wrap_text(text: str, max_width: float, style: TextStyle) -> Tuple[str, ...]:
    """Word-wrap text into lines no wider than max_width (mm).

    Explicit newlines are kept as paragraph breaks; words longer than a line are
    broken across lines. Blank input wraps to no lines at all.
    """
    text = _str(text).replace("\r", "")
    if not text.strip():
        return ()
    lines: List[str] = []
    for para in text.split("\n"):
        words = para.split()
        if not words:
            lines.append("")
            continue
        line: List[str] = []
        for w in words:
            pieces = [w] if _width_mm(w, style) <= max_width else _break_word(w, max_width, style)
            for piece in pieces:
                trial = " ".join(line + [piece])
                if not line or _width_mm(trial, style) <= max_width:
                    line.append(piece)
                else:
                    lines.append(" ".join(line))
                    line = [piece]
        if line:
            lines.append(" ".join(line))
    # trailing blank paragraphs collapse
    while lines and not lines[-1]:
        lines.pop()
    return tuple(lines)


def _stack_height(children: Tuple[Any, ...]) -> float:
    return sum(c.height for c in children)


def _section(key: str, x: float, y: float, width: float, children: List[Any]) -> Section:
    kids = tuple(children)
    return Section(key=key, x=x, y=y, width=width, height=_stack_height(kids), children=kids)


def _columns(key: str, y: float, cols: List[Section]) -> Section:
    """Side-by-side columns: the row is as tall as its tallest column."""
    height = max((c.height for c in cols), default=0.0)
    return Section(key=key, x=MARGIN, y=y, width=CONTENT_WIDTH, height=height, children=tuple(cols))


class PreviewLayoutEngine:
    """Maps an invoice and its totals to a one-page PageDescription.

    Total over any InvoiceData: blank strings, empty item lists and zero rates
    all lay out; nothing here raises.
    """

    def render(self, invoice: InvoiceData, totals: Optional[Totals] = None) -> PageDescription:
        totals = totals if totals is not None else compute_for(invoice)
        theme = invoice_theme(getattr(invoice, "theme_color", None))
        currency = getattr(invoice, "currency", None)

        sections: List[Section] = []
        y = MARGIN

        header = self._header(invoice, y)
        sections.append(header)
        y += header.height + GAP_AFTER_HEADER

        parties = self._parties(invoice, y)
        sections.append(parties)
        y += parties.height + GAP_AFTER_PARTIES

        items = self._items(invoice, y, theme.background)
        sections.append(items)
        y += items.height + GAP_AFTER_TABLE

        block = self._totals(invoice, totals, currency, theme.text, y)
        sections.append(block)
        y += block.height + GAP_AFTER_TOTALS

        signs = self._signatures(y)
        sections.append(signs)
        y += signs.height

        footer = self._footer(invoice, y + GAP_AFTER_SIGNATURES)
        if footer is not None:
            sections.append(footer)
            y = footer.y + footer.height

        height = max(PAGE_HEIGHT_MM, y + MARGIN)
        return PageDescription(
            width=PAGE_WIDTH_MM,
            height=height,
            margin=MARGIN,
            theme=theme.name,
            sections=tuple(sections),
        )

    # ----- header -----
    def _header(self, inv: InvoiceData, y: float) -> Section:
        left: List[Any] = []
        logo = _str(getattr(inv, "logo", None)).strip()
        if logo:
            left.append(Image(key="sender.logo", source=logo, width=LOGO_MAX_W, height_mm=LOGO_H))
        else:
            name = _str(inv.sender_name).strip() or "Company Name"
            left.append(Text(key="sender.heading", lines=wrap_text(name, HEADER_COL_W, HEADING), style=HEADING))

        right: List[Any] = [
            Text(key="meta.title", lines=("INVOICE",), style=TITLE, space_after=3.0),
            self._meta("meta.number", "Invoice No", _str(inv.invoice_number)),
            self._meta("meta.date", "Date", fmt_date(inv.date)),
        ]
        if _str(inv.due_date).strip():
            right.append(self._meta("meta.due_date", "Due", fmt_date(inv.due_date)))
        if _str(inv.po_number).strip():
            right.append(self._meta("meta.po_number", "PO #", _str(inv.po_number)))

        return _columns("header", y, [
            _section("header.left", MARGIN, y, HEADER_COL_W, left),
            _section("header.right", MARGIN + HEADER_COL_W, y, HEADER_COL_W, right),
        ])

    @staticmethod
    def _meta(key: str, label: str, value: str) -> Field:
        return Field(key=key, label=label, value=value, style=META_VALUE, label_style=META_LABEL, space_after=1.0)

    # ----- sender / receiver -----
    def _party(self, prefix: str, title: str, x: float, y: float, inv: InvoiceData, align: str) -> Section:
        get = lambda name: _str(getattr(inv, f"{prefix}_{name}", "")).strip()  # noqa: E731
        name_style = _with(PARTY_NAME, align=align)
        detail_style = _with(PARTY_DETAIL, align=align)
        text_style = _with(PARTY_TEXT, align=align)

        children: List[Any] = [
            Text(key=f"{prefix}.badge", lines=(title,), style=_with(BADGE, align=align), space_after=3.0),
        ]
        if get("name"):
            children.append(Text(key=f"{prefix}.name", lines=wrap_text(get("name"), PARTY_COL_W, name_style), style=name_style, space_after=1.0))
        if get("id"):
            children.append(Field(key=f"{prefix}.tax_id", label="Tax ID", value=get("id"), style=detail_style, space_after=0.8))
        if get("bank"):
            children.append(Field(key=f"{prefix}.bank", label="Bank account", value=get("bank"), style=detail_style, space_after=0.8))
        address = wrap_text(get("address"), PARTY_COL_W, text_style)
        if address:
            children.append(Text(key=f"{prefix}.address", lines=address, style=text_style))
        if get("email"):
            children.append(Text(key=f"{prefix}.email", lines=wrap_text(get("email"), PARTY_COL_W, text_style), style=text_style))
        return _section(f"{prefix}.block", x, y, PARTY_COL_W, children)

    def _parties(self, inv: InvoiceData, y: float) -> Section:
        return _columns("parties", y, [
            self._party("sender", "FROM", MARGIN, y, inv, "left"),
            self._party("receiver", "TO", MARGIN + CONTENT_WIDTH - PARTY_COL_W, y, inv, "right"),
        ])

    # ----- line items -----
    def _items(self, inv: InvoiceData, y: float, band: str) -> Section:
        widths = [CONTENT_WIDTH * s for s in COLUMN_SHARES]
        columns = (
            Column("Description", widths[0], "left"),
            Column("Qty", widths[1], "right"),
            Column("Rate", widths[2], "right"),
            Column("Amount", widths[3], "right"),
        )
        desc_width = widths[0] - 2 * CELL_PAD_X
        rows: List[TableRow] = []
        for index, item in enumerate(getattr(inv, "items", ()) or ()):
            qty = to_number(getattr(item, "quantity", 0))
            rate = to_number(getattr(item, "rate", 0))
            desc = wrap_text(_str(getattr(item, "description", "")), desc_width, TABLE_BODY) or ("",)
            cells = (desc, (fmt_number(qty),), (fmt_money(rate),), (fmt_money(qty * rate),))
            height = len(desc) * TABLE_BODY.leading_mm + 2 * CELL_PAD_Y
            rows.append(TableRow(key=f"items.row.{getattr(item, 'id', index)}", cells=cells, height=height))

        table = Table(
            key="items.table",
            columns=columns,
            rows=tuple(rows),
            header_height=TABLE_HEADER_H,
            header_background=band,
            header_style=TABLE_HEAD,
            body_style=TABLE_BODY,
            padding_x=CELL_PAD_X,
            padding_y=CELL_PAD_Y,
        )
        return _section("items", MARGIN, y, CONTENT_WIDTH, [table])

    # ----- totals -----
    def _totals(self, inv: InvoiceData, totals: Totals, currency: Any, accent: str, y: float) -> Section:
        rate_label = fmt_number(getattr(inv, "tax_rate", 0))
        discount = to_number(getattr(inv, "discount", 0))
        children: List[Any] = [
            Field(key="totals.subtotal", label="Subtotal", value=money_with_symbol(totals.subtotal, currency), style=TOTAL_ROW, space_after=1.5),
            Field(key="totals.tax", label=f"Tax ({rate_label}%)", value=money_with_symbol(totals.tax_amount, currency), style=TOTAL_ROW, space_after=1.5),
        ]
        if discount > 0:
            children.append(Field(
                key="totals.discount",
                label="Discount",
                value=f"-{money_with_symbol(discount, currency)}",
                style=_with(TOTAL_ROW, color=Colors.discount),
                space_after=1.5,
            ))
        children.append(Spacer(1.5))
        children.append(Field(
            key="totals.total",
            label="Total",
            value=money_with_symbol(totals.total, currency),
            style=TextStyle(size=13, bold=True, color=accent, align="justify"),
        ))
        return _section("totals", MARGIN + CONTENT_WIDTH - TOTALS_W, y, TOTALS_W, children)

    # ----- signatures -----
    def _signatures(self, y: float) -> Section:
        def block(key: str, label: str, x: float) -> Section:
            return _section(key, x, y, SIGN_COL_W, [
                Text(key=f"{key}.label", lines=(label,), style=SIGN_LABEL, space_after=8.0),
                Rule(key=f"{key}.line", color="#9ca3af", dashed=True),
            ])

        return _columns("signatures", y, [
            block("signatures.prepared", "Prepared by:", MARGIN),
            block("signatures.received", "Received by:", MARGIN + CONTENT_WIDTH - SIGN_COL_W),
        ])

    # ----- notes / terms -----
    def _footer(self, inv: InvoiceData, y: float) -> Optional[Section]:
        notes = wrap_text(_str(getattr(inv, "notes", "")), CONTENT_WIDTH, FOOTER_TEXT)
        terms = wrap_text(_str(getattr(inv, "terms", "")), CONTENT_WIDTH, FOOTER_TEXT)
        if not notes and not terms:
            return None
        children: List[Any] = [Rule(key="footer.rule", color=Colors.row_rule, space_after=5.0)]
        if notes:
            children.append(Text(key="footer.notes.title", lines=("NOTES",), style=FOOTER_HEAD, space_after=0.8))
            children.append(Text(key="footer.notes", lines=notes, style=FOOTER_TEXT, space_after=4.0))
        if terms:
            children.append(Text(key="footer.terms.title", lines=("TERMS",), style=FOOTER_HEAD, space_after=0.8))
            children.append(Text(key="footer.terms", lines=terms, style=FOOTER_TEXT))
        return _section("footer", MARGIN, y, CONTENT_WIDTH, children)


_ENGINE = PreviewLayoutEngine()


def render(invoice: InvoiceData, totals: Optional[Totals] = None) -> PageDescription:
    return _ENGINE.render(invoice, totals)
