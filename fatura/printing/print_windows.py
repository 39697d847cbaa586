import logging
import os
import subprocess
import sys
import tempfile
from pathlib import Path

from fatura.pdf.pdf_draw import build_invoice_pdf

logger = logging.getLogger(__name__)


def print_pdf(path):
	"""Send a PDF to the default printer; only Windows has a shell verb for it."""
	if sys.platform != "win32":
		return False
	try:
		os.startfile(path, "print")
		return True
	except OSError:
		logger.exception("Failed to print PDF: %s", path)
		return False


def open_file(path):
	try:
		if sys.platform == "win32":
			os.startfile(path)
		elif sys.platform == "darwin":
			subprocess.Popen(["open", str(path)])
		else:
			subprocess.Popen(["xdg-open", str(path)])
		return True
	except OSError:
		logger.exception("Failed to open file: %s", path)
		return False


def print_page(page, title="Invoice", out_dir=None):
	"""Render the page to a one-page PDF and hand it to the printer.

	Where printing is not available the PDF is opened in the system viewer so
	the user can print from there. Returns the written path.
	"""
	folder = Path(out_dir) if out_dir else Path(tempfile.gettempdir()) / "fatura-print"
	safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in title) or "invoice"
	path = folder / f"{safe}.pdf"
	build_invoice_pdf(path, page, title=title)
	if not print_pdf(str(path)):
		logger.info("Printing unavailable, opening %s instead", path)
		open_file(str(path))
	return path
