"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from ledgerkit.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "LEDGERKIT_DB_PATH"
DEFAULT_DB_DIR = Path.home() / ".ledgerkit"


def default_database_path() -> Path:
    """Location of the ledger when neither an option nor the environment names one."""
    return DEFAULT_DB_DIR / "ledgerkit.db"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite ledger database.

    The path is taken from the argument, then ``LEDGERKIT_DB_PATH``, then
    :func:`default_database_path`. Missing parent directories are created.
    ``":memory:"`` gives a throwaway in-memory ledger.
    """
    path = database_path or os.environ.get(DB_PATH_ENV)
    if path == ":memory:":
        return SQLAlchemyDatabase("sqlite://")

    db_file = Path(path) if path else default_database_path()
    db_file.parent.mkdir(parents=True, exist_ok=True)
    return SQLAlchemyDatabase(f"sqlite:///{db_file}")
