from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator, Optional, Union
from contextlib import contextmanager

from sqlmodel import SQLModel, Session, create_engine

from fatura.core.paths import default_db_path

logger = logging.getLogger(__name__)

DB_PATH = default_db_path()

_ENGINE = None


def configure(db_path: Optional[Union[str, Path]] = None) -> Path:
	"""Point the store at a SQLite file (default: next to settings.json) and drop any cached engine."""
	global DB_PATH, _ENGINE
	DB_PATH = Path(db_path) if db_path else default_db_path()
	if _ENGINE is not None:
		_ENGINE.dispose()
	_ENGINE = None
	return DB_PATH


def get_engine(echo: bool = False):
	"""Return a singleton SQLAlchemy engine for the configured SQLite DB."""
	global _ENGINE
	if _ENGINE is None:
		# Use posix path for SQLAlchemy URL compatibility on Windows
		url = f"sqlite:///{DB_PATH.as_posix()}"
		_ENGINE = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
	return _ENGINE


def create_db_and_tables(echo: bool = False) -> None:
	"""Create the SQLite database file and all SQLModel tables."""
	# Ensure models are imported so metadata has all tables
	import fatura.data.models  # noqa: F401

	DB_PATH.parent.mkdir(parents=True, exist_ok=True)
	engine = get_engine(echo=echo)
	SQLModel.metadata.create_all(engine)
	logger.info("Database ready at %s", DB_PATH)


def get_session(echo: bool = False) -> Session:
	"""Create a new SQLModel Session bound to the project engine.

	expire_on_commit=False so returned instances keep attribute values after commit
	(avoids refresh on closed sessions when callers use detached instances).
	"""
	return Session(get_engine(echo=echo), expire_on_commit=False)


@contextmanager
def session_scope(echo: bool = False) -> Generator[Session, None, None]:
	"""Transactional scope: commit on success, roll back and re-raise on error.

	Usage:
		with session_scope() as s:
			... use s ...
	"""
	session = get_session(echo=echo)
	try:
		yield session
		session.commit()
	except Exception:
		session.rollback()
		raise
	finally:
		session.close()
