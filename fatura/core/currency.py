from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, localcontext
from typing import Optional


CURRENCIES = ("EUR", "ALL", "USD")
DEFAULT_CURRENCY = "EUR"

# Display symbol appended after every money value
CURRENCY_SYMBOLS = {
	"EUR": "€",
	"ALL": "Lek",
	"USD": "$",
}


def to_number(x: object) -> float:
	"""Best-effort conversion to a finite float.

	Editors may transiently hold invalid input (blank fields, "1e999", None);
	anything that is not a finite number becomes 0.0.
	"""
	if isinstance(x, bool):
		return 0.0
	try:
		if isinstance(x, str):
			x = x.strip().replace(",", ".")
		v = float(x)  # type: ignore[arg-type]
	except (TypeError, ValueError, OverflowError):
		return 0.0
	return v if math.isfinite(v) else 0.0


def to_decimal(x: object) -> Decimal:
	"""Best-effort conversion to Decimal via str to avoid binary float artifacts."""
	try:
		return Decimal(str(to_number(x)))
	except (InvalidOperation, ValueError, TypeError):
		return Decimal("0")


def _cents(d: Decimal) -> Decimal:
	# quantize needs room for every integer digit plus two decimals
	with localcontext() as ctx:
		ctx.prec = max(28, d.adjusted() + 3)
		return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def round_money(x: float | Decimal) -> float:
	"""Round to 2 decimals (half away from zero) and return float.

	Only presentation and denormalized summaries round; totals stay unrounded.
	"""
	q = _cents(to_decimal(x))
	return float(q)


def fmt_money(x: float | Decimal, width: Optional[int] = None) -> str:
	"""
	Format monetary value with exactly two decimals. If width is provided, return a right-aligned string.
	"""
	q = _cents(to_decimal(x))
	if q == 0:
		# never render "-0.00"
		q = Decimal("0.00")
	s = f"{q:.2f}"
	return s.rjust(width) if isinstance(width, int) and width > 0 else s


def fmt_number(x: object, max_decimals: int = 4) -> str:
	"""Format a plain number with up to max_decimals, no trailing zeros (18 -> "18", 2.5 -> "2.5")."""
	v = to_number(x)
	s = f"{v:.{max_decimals}f}".rstrip("0").rstrip(".")
	return "0" if s in ("", "-0") else s


def normalize_currency(code: object) -> str:
	c = str(code or "").strip().upper()
	return c if c in CURRENCIES else DEFAULT_CURRENCY


def currency_symbol(code: object) -> str:
	return CURRENCY_SYMBOLS[normalize_currency(code)]


def money_with_symbol(x: float | Decimal, code: object) -> str:
	"""Two-decimal amount followed by the currency symbol, e.g. "100.00 €"."""
	return f"{fmt_money(x)} {currency_symbol(code)}"
