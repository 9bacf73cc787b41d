"""Blob store factory functions."""

import os
from pathlib import Path
from typing import Optional

from cafebooks.database.sqlalchemy_db import SQLAlchemyBlobStore

DB_PATH_ENV = "CAFEBOOKS_DB_PATH"


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyBlobStore:
    """Create a SQLite blob store.

    Args:
        database_path: Path to SQLite database file. If None, checks CAFEBOOKS_DB_PATH
            environment variable, then defaults to ~/.cafebooks/cafebooks.db

    Returns:
        SQLAlchemyBlobStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        db_dir = Path.home() / ".cafebooks"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "cafebooks.db")

    return SQLAlchemyBlobStore(f"sqlite:///{database_path}")
