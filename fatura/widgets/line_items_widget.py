from __future__ import annotations

from typing import Dict, List, Sequence

from PySide6.QtCore import Qt, Signal, QLocale
from PySide6.QtGui import QValidator
from PySide6.QtWidgets import (
    QWidget,
    QHBoxLayout,
    QVBoxLayout,
    QLabel,
    QLineEdit,
    QDoubleSpinBox,
    QPushButton,
    QFrame,
    QAbstractSpinBox,
)

from fatura.core.currency import fmt_money
from fatura.core.models import LineItem


class BlankZeroDoubleSpinBox(QDoubleSpinBox):
    """QDoubleSpinBox that shows blank at zero and never goes negative.
    - Shows blank when value == minimum (0.0) using non-empty specialValueText.
    - C locale, no group separators, caret kept at the end while typing.
    """

    def __init__(self, decimals: int = 2, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setDecimals(decimals)
        self.setMinimum(0.0)
        self.setMaximum(1_000_000_000)
        self.setSingleStep(1.0)
        self.setKeyboardTracking(False)
        self.setSpecialValueText(" ")  # non-empty to take effect
        self.setLocale(QLocale.c())
        self.setGroupSeparatorShown(False)
        self.setButtonSymbols(QAbstractSpinBox.ButtonSymbols.NoButtons)
        self.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        le = self.lineEdit()
        if le is not None:
            le.setLayoutDirection(Qt.LeftToRight)

    def focusInEvent(self, event) -> None:  # type: ignore[override]
        super().focusInEvent(event)
        le = self.lineEdit()
        if le is not None:
            le.setCursorPosition(len(le.text()))

    def textFromValue(self, value: float) -> str:  # type: ignore[override]
        if value <= self.minimum() + 1e-12:
            return self.specialValueText() or ""
        # trim trailing zeros so "2" does not come back as "2.00" mid-edit
        return f"{value:.{self.decimals()}f}".rstrip("0").rstrip(".")

    def valueFromText(self, text: str) -> float:  # type: ignore[override]
        s = text.strip().replace(",", ".")
        if not s or s == self.specialValueText().strip():
            return self.minimum()
        try:
            return max(self.minimum(), min(self.maximum(), float(s)))
        except ValueError:
            return self.minimum()

    def validate(self, text: str, pos: int):  # type: ignore[override]
        s = text.strip().replace(",", ".")
        if not s:
            return (QValidator.Intermediate, text, pos)
        if any(ch not in "0123456789." for ch in s) or s.count(".") > 1:
            return (QValidator.Invalid, text, pos)
        if "." in s:
            left, right = s.split(".", 1)
            if len(right) > self.decimals():
                return (QValidator.Invalid, text, pos)
            if left == "":
                return (QValidator.Intermediate, text, pos)
        return (QValidator.Acceptable, text, pos)


class LineItemRow(QWidget):
    """One editable line item row bound to a LineItem id.

    Emits:
      - changed(item_id, field, value): description / quantity / rate edits
      - removed(item_id): when the row's remove button is pressed
    """

    changed = Signal(str, str, object)
    removed = Signal(str)

    def __init__(self, item: LineItem, row_number: int, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.item_id = item.id

        row = QHBoxLayout()
        row.setContentsMargins(0, 0, 0, 0)
        row.setSpacing(8)

        self.lbl_sl = QLabel(str(row_number))
        self.lbl_sl.setFixedWidth(24)
        self.lbl_sl.setAlignment(Qt.AlignCenter)
        row.addWidget(self.lbl_sl)

        self.desc_edit = QLineEdit(item.description)
        self.desc_edit.setPlaceholderText("Description")
        row.addWidget(self.desc_edit, 1)

        self.qty_spin = BlankZeroDoubleSpinBox(decimals=4)
        self.qty_spin.setValue(item.quantity)
        self.qty_spin.setFixedWidth(80)
        row.addWidget(self.qty_spin)

        self.rate_spin = BlankZeroDoubleSpinBox(decimals=2)
        self.rate_spin.setValue(item.rate)
        self.rate_spin.setFixedWidth(100)
        row.addWidget(self.rate_spin)

        self.amount_lbl = QLabel(fmt_money(item.amount))
        self.amount_lbl.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        self.amount_lbl.setFixedWidth(100)
        row.addWidget(self.amount_lbl)

        self.remove_btn = QPushButton("X")
        self.remove_btn.setFixedWidth(28)
        self.remove_btn.setToolTip("Remove line")
        self.remove_btn.clicked.connect(lambda: self.removed.emit(self.item_id))
        row.addWidget(self.remove_btn)

        self.desc_edit.textEdited.connect(lambda t: self.changed.emit(self.item_id, "description", t))
        self.qty_spin.valueChanged.connect(lambda v: self.changed.emit(self.item_id, "quantity", v))
        self.rate_spin.valueChanged.connect(lambda v: self.changed.emit(self.item_id, "rate", v))

        frame = QFrame(self)
        frame.setObjectName("CardRow")
        inner = QVBoxLayout(frame)
        inner.setContentsMargins(0, 0, 0, 0)
        inner.addLayout(row)

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.addWidget(frame)

    def set_amount(self, amount: float) -> None:
        self.amount_lbl.setText(fmt_money(amount))


class LineItemsWidget(QWidget):
    """The list of LineItemRow widgets with a header and an add button.

    Holds no item state of its own: set_items() mirrors the invoice's items,
    and every edit is forwarded as a signal.
    """

    itemChanged = Signal(str, str, object)
    itemRemoved = Signal(str)
    addRequested = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._rows: Dict[str, LineItemRow] = {}

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(6)

        header = QHBoxLayout()
        header.setSpacing(8)
        header.addWidget(QLabel("#"), 0)
        header.addWidget(QLabel("Description"), 1)
        for title, width in (("Qty", 80), ("Rate", 100), ("Amount", 100)):
            lbl = QLabel(title)
            lbl.setFixedWidth(width)
            lbl.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
            header.addWidget(lbl, 0)
        header.addSpacing(28)  # remove button column
        root.addLayout(header)

        self.rows_container = QWidget()
        self.vbox = QVBoxLayout(self.rows_container)
        self.vbox.setContentsMargins(0, 0, 0, 0)
        self.vbox.setSpacing(6)
        root.addWidget(self.rows_container)

        self.btn_add = QPushButton("+ Add line")
        self.btn_add.clicked.connect(lambda: self.addRequested.emit())
        root.addWidget(self.btn_add, 0, Qt.AlignLeft)

    def item_ids(self) -> List[str]:
        return list(self._rows)

    def row(self, item_id: str) -> LineItemRow:
        return self._rows[item_id]

    def set_items(self, items: Sequence[LineItem], rebuild: bool = False) -> None:
        """Mirror items; rows are rebuilt when asked or when the set or order of ids changes."""
        ids = [it.id for it in items]
        if rebuild or ids != list(self._rows):
            self._rebuild(items)
            return
        for it in items:
            self._rows[it.id].set_amount(it.amount)

    def _rebuild(self, items: Sequence[LineItem]) -> None:
        for row in self._rows.values():
            self.vbox.removeWidget(row)
            row.setParent(None)
            row.deleteLater()
        self._rows = {}
        for n, it in enumerate(items, start=1):
            row = LineItemRow(it, n)
            row.changed.connect(self.itemChanged)
            row.removed.connect(self.itemRemoved)
            self.vbox.addWidget(row)
            self._rows[it.id] = row
