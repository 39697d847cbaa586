import json
import random
from datetime import date

from fatura.core.numbering import effective_number, generate_invoice_number
from fatura.core.settings import Settings, load_settings, save_settings


def test_missing_file_writes_defaults(tmp_path) -> None:
    path = tmp_path / "settings.json"
    settings = load_settings(path)
    assert settings == Settings()
    assert json.loads(path.read_text(encoding="utf-8"))["default_currency"] == "EUR"


def test_values_merge_over_defaults(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"default_tax_rate": 20, "session_retries": 5, "bogus": 1}), encoding="utf-8")
    settings = load_settings(path)
    assert settings.default_tax_rate == 20
    assert settings.session_retries == 5
    assert settings.preview_settle_ms == 80


def test_corrupt_file_falls_back_without_overwriting(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_settings(path) == Settings()
    assert path.read_text(encoding="utf-8") == "{not json"


def test_save_round_trip(tmp_path) -> None:
    path = tmp_path / "nested" / "settings.json"
    save_settings(Settings(last_pdf_dir="/tmp/pdfs", snapshot_logo_limit=5000), path)
    loaded = load_settings(path)
    assert loaded.last_pdf_dir == "/tmp/pdfs"
    assert loaded.snapshot_logo_limit == 5000


def test_generated_invoice_number() -> None:
    n = generate_invoice_number(date(2024, 3, 7), random.Random(1))
    assert n.startswith("INV-240307-")
    assert 1000 <= int(n.rsplit("-", 1)[1]) <= 9999
    assert effective_number(" INV-7 ") == "INV-7"
    assert effective_number("", date(2024, 3, 7)).startswith("INV-240307-")
