from __future__ import annotations

import os
from pathlib import Path

import pytest

from fatura.data import db

# Widget tests run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def temp_db(tmp_path: Path):
    """A fresh SQLite file per test; the default location is restored afterwards."""
    path = db.configure(tmp_path / "fatura-test.db")
    db.create_db_and_tables()
    yield path
    db.configure()
