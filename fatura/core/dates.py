from __future__ import annotations

from datetime import date, datetime
from typing import Optional


ISO_FORMAT = "%Y-%m-%d"
DISPLAY_FORMAT = "%d/%m/%Y"


def today_iso(today: Optional[date] = None) -> str:
    return (today or date.today()).strftime(ISO_FORMAT)


def parse_iso(value: object) -> Optional[date]:
    """Parse a stored YYYY-MM-DD string; None when blank or malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value or "").strip()
    if not s:
        return None
    try:
        return datetime.strptime(s[:10], ISO_FORMAT).date()
    except ValueError:
        return None


def fmt_date(value: object) -> str:
    """Display an ISO date as DD/MM/YYYY.

    Blank input renders as "". Input that is not a real calendar date is
    re-ordered field by field rather than dropped, so a half-typed value stays visible.
    """
    d = parse_iso(value)
    if d is not None:
        return d.strftime(DISPLAY_FORMAT)
    s = str(value or "").strip()
    if not s:
        return ""
    parts = s.split("-")
    if len(parts) == 3:
        y, m, dd = parts
        return f"{dd}/{m}/{y}"
    return s
