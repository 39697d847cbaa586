from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QImage, QPainter, QPen
from PySide6.QtWidgets import QSizePolicy, QWidget

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
from fatura.styles.tokens import Colors

# 96 dpi: 1 mm on screen at scale 1.0
PX_PER_MM = 96.0 / 25.4
BADGE_PAD_X = 2.2
BADGE_PAD_Y = 0.8


def natural_size(page: PageDescription) -> QSize:
	"""Pixel size of the page at scale 1.0."""
	return QSize(round(page.width * PX_PER_MM), round(page.height * PX_PER_MM))


class PageView(QWidget):
	"""Paints a PageDescription with QPainter at a given uniform scale."""

	def __init__(self, parent: Optional[QWidget] = None) -> None:
		super().__init__(parent)
		self._page: Optional[PageDescription] = None
		self._scale = 1.0
		self._images: dict = {}
		self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
		self.setAttribute(Qt.WA_OpaquePaintEvent, True)

	def page(self) -> Optional[PageDescription]:
		return self._page

	def scale(self) -> float:
		return self._scale

	def set_page(self, page: PageDescription) -> None:
		self._page = page
		self._apply_size()
		self.update()

	def set_scale(self, scale: float) -> None:
		self._scale = scale
		self._apply_size()
		self.update()

	def _apply_size(self) -> None:
		if self._page is None:
			return
		self.setFixedSize(
			round(self._page.width * PX_PER_MM * self._scale),
			round(self._page.height * PX_PER_MM * self._scale),
		)

	def sizeHint(self) -> QSize:  # type: ignore[override]
		return self.size()

	# ----- painting -----
	def _k(self) -> float:
		return PX_PER_MM * self._scale

	def _pt(self, x: float, y: float) -> QPointF:
		k = self._k()
		return QPointF(x * k, y * k)

	def _font(self, style: TextStyle) -> QFont:
		f = QFont("Helvetica")
		f.setStyleHint(QFont.SansSerif)
		f.setBold(style.bold)
		# style sizes are points on paper; convert to on-screen pixels at the current scale
		f.setPixelSize(max(1, round(style.size * MM_PER_PT * self._k())))
		return f

	def _string(self, p: QPainter, text: str, x: float, baseline: float, width: float, style: TextStyle, align: str) -> None:
		font = self._font(style)
		p.setFont(font)
		p.setPen(QColor(style.color))
		w = QFontMetricsF(font).horizontalAdvance(text) / self._k()
		if align == "right":
			x = x + width - w
		elif align == "center":
			x = x + (width - w) / 2
		p.drawText(self._pt(x, baseline), text)

	def _text_width(self, text: str, style: TextStyle) -> float:
		return QFontMetricsF(self._font(style)).horizontalAdvance(text) / self._k()

	def paintEvent(self, event) -> None:  # type: ignore[override]
		p = QPainter(self)
		p.setRenderHint(QPainter.Antialiasing, True)
		p.setRenderHint(QPainter.TextAntialiasing, True)
		p.fillRect(self.rect(), QColor(Colors.page))
		if self._page is not None:
			for node, x, y, width in self._page.placed():
				if isinstance(node, Text):
					self._text(p, node, x, y, width)
				elif isinstance(node, Field):
					self._field(p, node, x, y, width)
				elif isinstance(node, Image):
					self._image(p, node, x, y)
				elif isinstance(node, Rule):
					self._rule(p, node, x, y, width)
				elif isinstance(node, Table):
					self._table(p, node, x, y)
		p.end()

	def _text(self, p: QPainter, node: Text, x: float, y: float, width: float) -> None:
		style = node.style
		if style.background and node.lines:
			label = node.lines[0]
			w = self._text_width(label, style) + 2 * BADGE_PAD_X
			h = style.size * MM_PER_PT + 2 * BADGE_PAD_Y
			left = x + width - w if style.align == "right" else x
			k = self._k()
			p.setPen(QPen(QColor(style.border or style.background), 1))
			p.setBrush(QColor(style.background))
			p.drawRoundedRect(QRectF(left * k, y * k, w * k, h * k), 1.2 * k, 1.2 * k)
			self._string(p, label, left + BADGE_PAD_X, y + BADGE_PAD_Y + style.size * ASCENT * MM_PER_PT, w, style, "left")
			return
		for i, line in enumerate(node.lines):
			self._string(p, line, x, style.baseline(y, i), width, style, style.align)

	def _field(self, p: QPainter, node: Field, x: float, y: float, width: float) -> None:
		style = node.style
		label_style = node.label_style or style
		base = style.baseline(y)
		if style.align == "justify":
			self._string(p, node.label, x, base, width, label_style, "left")
			self._string(p, node.value, x, base, width, style, "right")
		elif style.align == "right":
			value_w = self._text_width(node.value, style)
			self._string(p, node.value, x, base, width, style, "right")
			self._string(p, f"{node.label}: ", x, base, width - value_w, label_style, "right")
		else:
			self._string(p, node.text, x, base, width, style, "left")

	def _image(self, p: QPainter, node: Image, x: float, y: float) -> None:
		img = self._images.get(node.source)
		if img is None:
			img = QImage()
			raw = decode_data_url(node.source)
			if raw is not None:
				img.loadFromData(raw)
			self._images = {node.source: img}
		if img.isNull():
			return
		k = self._k()
		box_w, box_h = node.width * k, node.height_mm * k
		fit = min(box_w / img.width(), box_h / img.height())
		p.drawImage(QRectF(x * k, y * k, img.width() * fit, img.height() * fit), img)

	def _rule(self, p: QPainter, node: Rule, x: float, y: float, width: float) -> None:
		pen = QPen(QColor(node.color), max(1.0, node.thickness * MM_PER_PT * self._k()))
		if node.dashed:
			pen.setStyle(Qt.DashLine)
		p.setPen(pen)
		p.drawLine(self._pt(x, y), self._pt(x + width, y))

	def _table(self, p: QPainter, node: Table, x: float, y: float) -> None:
		k = self._k()
		p.fillRect(QRectF(x * k, y * k, node.width * k, node.header_height * k), QColor(node.header_background))
		head = node.header_style
		head_top = y + (node.header_height - head.leading_mm) / 2
		cx = x
		for col in node.columns:
			self._string(p, col.title, cx + node.padding_x, head.baseline(head_top), col.width - 2 * node.padding_x, head, col.align)
			cx += col.width

		body = node.body_style
		row_top = y + node.header_height
		for row in node.rows:
			cx = x
			for col, lines in zip(node.columns, row.cells):
				for i, line in enumerate(lines):
					self._string(p, line, cx + node.padding_x, body.baseline(row_top + node.padding_y, i), col.width - 2 * node.padding_x, body, col.align)
				cx += col.width
			row_top += row.height
			p.setPen(QPen(QColor(node.row_rule), 1))
			p.drawLine(self._pt(x, row_top), self._pt(x + node.width, row_top))
