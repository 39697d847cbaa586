from __future__ import annotations

# Allow running this file directly (python fatura/main.py) by ensuring the project root is on sys.path
import os
import sys
if __package__ in (None, ""):
    sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import logging

from PySide6.QtWidgets import QApplication

from fatura.core.settings import load_settings
from fatura.data import db
from fatura.ui_main import create_main_window

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level = os.environ.get("FATURA_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    _configure_logging()
    app = QApplication(sys.argv)
    settings = load_settings()
    path = db.configure(settings.db_path)
    db.create_db_and_tables()
    logger.info("Using database %s", path)

    win = create_main_window(settings)
    win.resize(1400, 900)
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
