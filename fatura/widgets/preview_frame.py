from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QSize, Qt, QTimer, Signal
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLayout, QVBoxLayout, QWidget

from fatura.preview.page import PageDescription
from fatura.preview.scaler import DEFAULT_EPSILON, AutoFitScaler
from fatura.widgets.page_view import PageView, natural_size

logger = logging.getLogger(__name__)

FRAME_PADDING = 16


class A4PreviewFrame(QFrame):
	"""Hosts the on-screen page, shrunk uniformly to fit and centred horizontally.

	The scale is recomputed when the frame resizes, when the page content
	changes size, and once more after a short settle delay so that late layout
	passes are picked up. Nothing is observed after the frame is torn down.
	"""

	scaleChanged = Signal(float)

	def __init__(self, parent: Optional[QWidget] = None, settle_ms: int = 80, epsilon: float = DEFAULT_EPSILON) -> None:
		super().__init__(parent)
		self.setObjectName("PreviewFrame")
		self._settle_ms = settle_ms
		self._settle_armed = False
		self.scaler = AutoFitScaler(self._on_scale, epsilon=epsilon)

		self.view = PageView(self)
		row = QHBoxLayout()
		row.setContentsMargins(0, 0, 0, 0)
		row.addStretch(1)
		row.addWidget(self.view, 0, Qt.AlignTop)
		row.addStretch(1)
		outer = QVBoxLayout(self)
		# the fixed-size view must not set the frame's minimum size
		outer.setSizeConstraint(QLayout.SetNoConstraint)
		outer.setContentsMargins(FRAME_PADDING, FRAME_PADDING, FRAME_PADDING, FRAME_PADDING)
		outer.addLayout(row)
		outer.addStretch(1)

		scaler = self.scaler
		self.destroyed.connect(lambda *_: scaler.close())

	# ----- public API -----
	def scale(self) -> float:
		return self.scaler.scale

	def minimumSizeHint(self) -> QSize:  # type: ignore[override]
		return QSize(2 * FRAME_PADDING, 2 * FRAME_PADDING)

	def set_page(self, page: PageDescription) -> None:
		if self.scaler.closed:
			return
		self.view.set_page(page)
		size = natural_size(page)
		self.scaler.content_resized(size.width(), size.height())
		self.view.set_scale(self.scaler.scale)
		if not self._settle_armed:
			# one late pass after the first page is mounted
			self._settle_armed = True
			QTimer.singleShot(self._settle_ms, self._settle)

	def teardown(self) -> None:
		self.scaler.close()

	# ----- observation -----
	def _viewport(self):
		return (
			self.width() - 2 * FRAME_PADDING,
			self.height() - 2 * FRAME_PADDING,
		)

	def _settle(self) -> None:
		if self.scaler.closed:
			return
		self.scaler.viewport_resized(*self._viewport())

	def _on_scale(self, scale: float) -> None:
		logger.debug("Preview scale %.3f", scale)
		self.view.set_scale(scale)
		self.scaleChanged.emit(scale)

	def resizeEvent(self, event) -> None:  # type: ignore[override]
		super().resizeEvent(event)
		if not self.scaler.closed:
			self.scaler.viewport_resized(*self._viewport())

	def closeEvent(self, event) -> None:  # type: ignore[override]
		self.teardown()
		super().closeEvent(event)
