"""Runtime settings for wealthledger, read from the environment."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

DEFAULT_DB_DIR = ".wealthledger"
DEFAULT_DB_NAME = "wealthledger.db"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LedgerSettings:
    """Resolved configuration for one process."""

    database_url: str
    base_currency: str = "USD"
    lock_timeout: float = 5.0
    max_retries: int = 3
    actor: str = "system"
    log_level: str = "WARNING"
    log_json: bool = False

    def with_overrides(self, **changes) -> "LedgerSettings":
        """Return a copy with the non-None values in changes applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def default_database_path() -> str:
    """Return ~/.wealthledger/wealthledger.db, creating the directory."""
    db_dir = Path.home() / DEFAULT_DB_DIR
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / DEFAULT_DB_NAME)


def sqlite_url(database_path: str) -> str:
    return f"sqlite:///{database_path}"


def load_settings(database_path: Optional[str] = None) -> LedgerSettings:
    """Build settings from WEALTHLEDGER_* environment variables.

    Args:
        database_path: SQLite file to use. Takes precedence over
            WEALTHLEDGER_DATABASE_URL and WEALTHLEDGER_DB_PATH.

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    if database_path is not None:
        database_url = sqlite_url(database_path)
    else:
        database_url = os.environ.get("WEALTHLEDGER_DATABASE_URL")
        if not database_url:
            path = os.environ.get("WEALTHLEDGER_DB_PATH") or default_database_path()
            database_url = sqlite_url(path)

    try:
        lock_timeout = float(os.environ.get("WEALTHLEDGER_LOCK_TIMEOUT", "5"))
        max_retries = int(os.environ.get("WEALTHLEDGER_MAX_RETRIES", "3"))
    except ValueError as e:
        raise ValueError(f"Invalid numeric setting: {e}") from e
    if max_retries < 0:
        raise ValueError("WEALTHLEDGER_MAX_RETRIES must not be negative")

    return LedgerSettings(
        database_url=database_url,
        base_currency=os.environ.get("WEALTHLEDGER_BASE_CURRENCY", "USD").upper(),
        lock_timeout=lock_timeout,
        max_retries=max_retries,
        actor=os.environ.get("WEALTHLEDGER_ACTOR", "system"),
        log_level=os.environ.get("WEALTHLEDGER_LOG_LEVEL", "WARNING").upper(),
        log_json=os.environ.get("WEALTHLEDGER_LOG_JSON", "").lower() in _TRUTHY,
    )
