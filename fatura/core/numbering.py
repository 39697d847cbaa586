from __future__ import annotations

import random
from datetime import date
from typing import Optional


PREFIX = "INV-"


def generate_invoice_number(today: Optional[date] = None, rng: Optional[random.Random] = None) -> str:
	"""Number used when an invoice is saved without one: 'INV-YYMMDD-NNNN' (NNNN random, 1000-9999)."""
	d = today or date.today()
	r = rng or random
	suffix = r.randint(1000, 9999)
	return f"{PREFIX}{d:%y%m%d}-{suffix}"


def effective_number(invoice_number: str, today: Optional[date] = None) -> str:
	n = (invoice_number or "").strip()
	return n or generate_invoice_number(today)
