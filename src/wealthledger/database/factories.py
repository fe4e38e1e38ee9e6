"""Database factory functions for creating database instances."""

import os
from typing import Optional

from wealthledger.config import LedgerSettings, default_database_path, sqlite_url
from wealthledger.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(
    database_path: Optional[str] = None, lock_timeout: Optional[float] = None
) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks WEALTHLEDGER_DB_PATH
            environment variable, then defaults to ~/.wealthledger/wealthledger.db
        lock_timeout: Seconds a writer waits on a locked database

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("WEALTHLEDGER_DB_PATH")

    if database_path is None:
        database_path = default_database_path()

    return SQLAlchemyDatabase(sqlite_url(database_path), lock_timeout=lock_timeout)


def create_database(settings: LedgerSettings) -> SQLAlchemyDatabase:
    """Create a database instance for any SQLAlchemy URL in settings."""
    return SQLAlchemyDatabase(settings.database_url, lock_timeout=settings.lock_timeout)
