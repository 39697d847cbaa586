from __future__ import annotations

from dataclasses import dataclass

from fatura.core.models import DEFAULT_THEME, normalize_theme
from fatura.styles.tokens import Colors, Radius, Space


@dataclass(frozen=True)
class InvoiceTheme:
    name: str
    background: str  # table header band
    text: str        # grand total emphasis


INVOICE_THEMES = {
    "gray": InvoiceTheme("gray", "#1f2937", "#111827"),
    "red": InvoiceTheme("red", "#b91c1c", "#b91c1c"),
    "blue": InvoiceTheme("blue", "#1d4ed8", "#1d4ed8"),
    "orange": InvoiceTheme("orange", "#ea580c", "#ea580c"),
    "yellow": InvoiceTheme("yellow", "#f59e0b", "#d97706"),
    "green": InvoiceTheme("green", "#047857", "#047857"),
}


def invoice_theme(name: object) -> InvoiceTheme:
    """Color pair for a theme name; unknown or missing names fall back to gray."""
    return INVOICE_THEMES.get(normalize_theme(name), INVOICE_THEMES[DEFAULT_THEME])


def light_qss() -> str:
    c = Colors
    r = Radius
    s = Space
    return f"""
    QWidget {{ font-size: 13px; background: {c.bg}; color: {c.text}; }}
    QFrame#Card {{ border: 1px solid {c.border}; border-radius: {r.md}px; background: {c.card}; }}
    QLabel#SectionTitle {{ font-size: 14px; font-weight: 700; color: {c.subtext}; padding: 2px 2px 0 2px; }}
    QLabel#StatusMessage {{ color: {c.subtext}; padding: 4px 8px; }}
    QLabel#StatusMessage[error="true"] {{ color: {c.error}; }}
    QLineEdit, QTextEdit, QPlainTextEdit, QDateEdit, QDoubleSpinBox, QComboBox {{
        border: 1px solid {c.input_border}; border-radius: {r.sm}px; padding: {s.xs}px; background: {c.card};
    }}
    QLineEdit:focus, QTextEdit:focus, QPlainTextEdit:focus, QDoubleSpinBox:focus, QComboBox:focus {{ border: 1px solid {c.primary}; }}
    QPushButton {{ padding: 7px 14px; border-radius: {r.sm}px; border: 1px solid {c.border}; background: {c.card}; }}
    QPushButton:hover {{ background: #eff6ff; border-color: #bfdbfe; }}
    QPushButton#Primary {{ background: {c.primary}; color: #ffffff; border-color: {c.primary}; }}
    QWidget#PreviewFrame {{ background: {c.stage}; }}
    QWidget#NavRail {{ background: #ffffff; border-right: 1px solid {c.border}; }}
    QPushButton#NavButton {{ border:none; text-align:left; padding:8px 12px; border-radius:{r.sm}px; }}
    QPushButton#NavButton:checked {{ background:#dbeafe; font-weight:600; }}
    """
