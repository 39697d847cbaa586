from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import logging

from fatura.core.paths import settings_path

logger = logging.getLogger(__name__)

# Path to the settings.json (runtime-aware)
SETTINGS_PATH = settings_path()


@dataclass
class Settings:
	default_currency: str = "EUR"
	default_tax_rate: float = 18.0
	default_theme: str = "gray"
	# SQLite file for businesses, clients, invoices and accounts; None -> next to settings.json
	db_path: Optional[str] = None
	# Snapshot logos longer than this (characters of the embeddable string) are not persisted
	snapshot_logo_limit: int = 120_000
	# Logo ingestion
	image_max_side: int = 1024
	image_target_bytes: int = 180 * 1024
	image_start_quality: int = 85
	image_min_quality: int = 50
	# Retries for data requested before the session is established
	session_retries: int = 2
	session_retry_delay: float = 0.6
	# Live preview
	preview_settle_ms: int = 80
	preview_scale_epsilon: float = 1e-3
	# Remember last used folder for "Save PDF" dialog
	last_pdf_dir: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Settings":
		# Merge provided values over defaults, ignore unknown keys
		defaults = asdict(cls())
		merged: Dict[str, Any] = {**defaults, **{k: v for k, v in data.items() if k in defaults}}
		return cls(**merged)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


def _coerce_path(path: Optional[Union[str, Path]]) -> Path:
	return Path(path) if path is not None else SETTINGS_PATH


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
	"""
	Load settings from JSON (UTF-8). If the file is missing, write defaults and return them.
	"""
	p = _coerce_path(path)
	if not p.exists():
		settings = Settings()
		try:
			save_settings(settings, p)
		except OSError:
			logger.warning("Could not write default settings to %s", p)
		return settings

	try:
		with p.open("r", encoding="utf-8") as f:
			raw: Dict[str, Any] = json.load(f)
	except (json.JSONDecodeError, OSError):
		# If unreadable/corrupt, fall back to defaults (do not overwrite automatically)
		logger.warning("Settings file %s is unreadable; using defaults", p)
		return Settings()

	return Settings.from_dict(raw if isinstance(raw, dict) else {})


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> None:
	"""Save settings to JSON (UTF-8), creating parent dirs if needed."""
	p = _coerce_path(path)
	p.parent.mkdir(parents=True, exist_ok=True)
	tmp = p.with_suffix(p.suffix + ".tmp")
	with tmp.open("w", encoding="utf-8", newline="\n") as f:
		json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
		f.write("\n")
	tmp.replace(p)
