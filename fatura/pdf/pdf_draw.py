from __future__ import annotations

from io import BytesIO
from pathlib import Path
import logging

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen.canvas import Canvas

from fatura.preview.page import (
    ASCENT,
    Field,
    Image,
    MM_PER_PT,
    PageDescription,
    Rule,
    Table,
    Text,
    TextStyle,
)
from fatura.services.images import decode_data_url

logger = logging.getLogger(__name__)


# ===== Layout constants (tweak here) =====
PAGE_SIZE = A4
PAGE_WIDTH, PAGE_HEIGHT = PAGE_SIZE

BADGE_PAD_X = 2.2  # mm
BADGE_PAD_Y = 0.8  # mm
DASH = (3, 2)


def _color(value: str):
    return colors.HexColor(value)


class _PageCanvas:
    """Draws PageDescription leaves onto a canvas whose y axis runs down in mm."""

    def __init__(self, c: Canvas, page: PageDescription) -> None:
        self.c = c
        self.page_height = page.height

    # mm, top-left origin -> points, bottom-left origin
    def X(self, x: float) -> float:
        return x * mm

    def Y(self, y: float) -> float:
        return (self.page_height - y) * mm

    def _string(self, text: str, x: float, y: float, width: float, style: TextStyle, align: str) -> None:
        c = self.c
        c.setFont(style.font, style.size)
        c.setFillColor(_color(style.color))
        if align == "right":
            c.drawRightString(self.X(x + width), self.Y(y), text)
        elif align == "center":
            c.drawCentredString(self.X(x + width / 2), self.Y(y), text)
        else:
            c.drawString(self.X(x), self.Y(y), text)

    def _text_width(self, text: str, style: TextStyle) -> float:
        return pdfmetrics.stringWidth(text, style.font, style.size) * MM_PER_PT

    # ----- leaves -----
    def text(self, node: Text, x: float, y: float, width: float) -> None:
        style = node.style
        if style.background and node.lines:
            self._badge(node, x, y, width)
            return
        for i, line in enumerate(node.lines):
            self._string(line, x, style.baseline(y, i), width, style, style.align)

    def _badge(self, node: Text, x: float, y: float, width: float) -> None:
        style = node.style
        label = node.lines[0]
        w = self._text_width(label, style) + 2 * BADGE_PAD_X
        h = style.size * MM_PER_PT + 2 * BADGE_PAD_Y
        left = x + width - w if style.align == "right" else x
        c = self.c
        c.setFillColor(_color(style.background))
        c.setStrokeColor(_color(style.border or style.background))
        c.setLineWidth(0.5)
        c.roundRect(self.X(left), self.Y(y + h), w * mm, h * mm, 1.2 * mm, stroke=1, fill=1)
        self._string(label, left + BADGE_PAD_X, y + BADGE_PAD_Y + style.size * ASCENT * MM_PER_PT, w, style, "left")

    def field(self, node: Field, x: float, y: float, width: float) -> None:
        style = node.style
        label_style = node.label_style or style
        base = style.baseline(y)
        if style.align == "justify":
            self._string(node.label, x, base, width, label_style, "left")
            self._string(node.value, x, base, width, style, "right")
        elif style.align == "right":
            value_w = self._text_width(node.value, style)
            self._string(node.value, x, base, width, style, "right")
            self._string(f"{node.label}: ", x, base, width - value_w, label_style, "right")
        else:
            self._string(node.text, x, base, width, style, "left")

    def image(self, node: Image, x: float, y: float, width: float) -> None:
        raw = decode_data_url(node.source)
        if raw is None:
            logger.warning("Skipping logo %r: not an embeddable image", node.key)
            return
        try:
            reader = ImageReader(BytesIO(raw))
        except OSError:
            logger.warning("Skipping logo %r: unreadable image data", node.key)
            return
        self.c.drawImage(
            reader,
            self.X(x),
            self.Y(y + node.height_mm),
            width=node.width * mm,
            height=node.height_mm * mm,
            preserveAspectRatio=True,
            anchor="nw",
            mask="auto",
        )

    def rule(self, node: Rule, x: float, y: float, width: float) -> None:
        c = self.c
        c.saveState()
        c.setStrokeColor(_color(node.color))
        c.setLineWidth(node.thickness)
        if node.dashed:
            c.setDash(*DASH)
        c.line(self.X(x), self.Y(y), self.X(x + width), self.Y(y))
        c.restoreState()

    def table(self, node: Table, x: float, y: float, width: float) -> None:
        c = self.c
        c.setFillColor(_color(node.header_background))
        c.rect(self.X(x), self.Y(y + node.header_height), node.width * mm, node.header_height * mm, stroke=0, fill=1)

        head = node.header_style
        head_top = y + (node.header_height - head.leading_mm) / 2
        cx = x
        for col in node.columns:
            self._string(col.title, cx + node.padding_x, head.baseline(head_top), col.width - 2 * node.padding_x, head, col.align)
            cx += col.width

        body = node.body_style
        row_top = y + node.header_height
        c.setStrokeColor(_color(node.row_rule))
        c.setLineWidth(0.5)
        for row in node.rows:
            cx = x
            for col, lines in zip(node.columns, row.cells):
                for i, line in enumerate(lines):
                    self._string(line, cx + node.padding_x, body.baseline(row_top + node.padding_y, i), col.width - 2 * node.padding_x, body, col.align)
                cx += col.width
            row_top += row.height
            c.line(self.X(x), self.Y(row_top), self.X(x + node.width), self.Y(row_top))


def draw_page(c: Canvas, page: PageDescription) -> None:
    """Draw one PageDescription on the current canvas page, shrunk to fit A4 when needed."""
    scale = page.print_scale
    pc = _PageCanvas(c, page)
    c.saveState()
    # centre horizontally once shrunk, keep the top edge on the sheet's top edge
    c.translate((PAGE_WIDTH - page.width * mm * scale) / 2, PAGE_HEIGHT - page.height * mm * scale)
    c.scale(scale, scale)
    for node, x, y, width in page.placed():
        if isinstance(node, Text):
            pc.text(node, x, y, width)
        elif isinstance(node, Field):
            pc.field(node, x, y, width)
        elif isinstance(node, Image):
            pc.image(node, x, y, width)
        elif isinstance(node, Rule):
            pc.rule(node, x, y, width)
        elif isinstance(node, Table):
            pc.table(node, x, y, width)
    c.restoreState()


def build_invoice_pdf(out_path: Path | str, page: PageDescription, *, title: str = "", author: str = "") -> None:
    """Write a one-page A4 PDF of the page description to out_path."""
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    c = Canvas(str(out), pagesize=PAGE_SIZE)
    c.setAuthor(author or "Fatura")
    c.setTitle(title or "Invoice")
    draw_page(c, page)
    c.showPage()
    c.save()
    logger.info("Wrote %s (scale %.3f)", out, page.print_scale)
