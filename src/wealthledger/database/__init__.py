"""Database layer for wealthledger application."""

from wealthledger.database.base import Database
from wealthledger.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
