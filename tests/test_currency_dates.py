from __future__ import annotations

from datetime import date

import pytest

from fatura.core.currency import (
    currency_symbol,
    fmt_money,
    fmt_number,
    money_with_symbol,
    normalize_currency,
    round_money,
    to_number,
)
from fatura.core.dates import fmt_date, parse_iso, today_iso


@pytest.mark.parametrize("code,symbol", [("EUR", "€"), ("ALL", "Lek"), ("USD", "$"), ("usd", "$"), ("GBP", "€"), (None, "€")])
def test_currency_symbols(code, symbol) -> None:
    assert currency_symbol(code) == symbol


def test_normalize_currency_falls_back_to_eur() -> None:
    assert normalize_currency("all") == "ALL"
    assert normalize_currency("") == "EUR"


def test_money_formatting() -> None:
    assert fmt_money(100) == "100.00"
    assert fmt_money(2.005) == "2.01"
    assert fmt_money(-0.001) == "0.00"
    assert money_with_symbol(113, "EUR") == "113.00 €"
    assert money_with_symbol(1500, "ALL") == "1500.00 Lek"


def test_money_formatting_of_huge_amounts() -> None:
    assert fmt_money(1e27) == "1000000000000000000000000000.00"
    assert round_money(1e27) == 1e27
    assert fmt_money(1.5e300).endswith(".00")


def test_round_money_half_up() -> None:
    assert round_money(0.125) == 0.13
    assert round_money(1.0989) == 1.1


def test_fmt_number_strips_trailing_zeros() -> None:
    assert fmt_number(18) == "18"
    assert fmt_number(2.5) == "2.5"
    assert fmt_number(7.125) == "7.125"
    assert fmt_number(float("nan")) == "0"


def test_to_number_is_total() -> None:
    assert to_number("3,5") == 3.5
    assert to_number(" 12 ") == 12
    assert to_number(None) == 0
    assert to_number("1e999") == 0
    assert to_number(True) == 0
    assert to_number(object()) == 0


def test_dates_display_as_day_month_year() -> None:
    assert fmt_date("2024-03-05") == "05/03/2024"
    assert fmt_date("") == ""
    assert fmt_date(None) == ""
    # not a real date: still shown, re-ordered
    assert fmt_date("2024-13-45") == "45/13/2024"


def test_parse_and_today() -> None:
    assert parse_iso("2024-03-05") == date(2024, 3, 5)
    assert parse_iso("nope") is None
    assert today_iso(date(2025, 1, 2)) == "2025-01-02"
