"""Shared pytest fixtures for wealthledger tests."""

import logging
import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from wealthledger.database.factories import create_sqlite_database
from wealthledger.domain.account import AccountService
from wealthledger.domain.audit import AuditRecorder
from wealthledger.domain.balance_sheet import BalanceSheetService
from wealthledger.domain.currency import ExchangeRateService
from wealthledger.domain.entities import AccountType, EntityType, SecurityType
from wealthledger.domain.entity import EntityService
from wealthledger.domain.holding import HoldingService
from wealthledger.domain.networth import NetWorthService
from wealthledger.domain.posting import TransactionPoster
from wealthledger.domain.transaction import TransactionService

ACTOR = "tester"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep user environment variables out of the tests."""
    for name in (
        "WEALTHLEDGER_DB_PATH",
        "WEALTHLEDGER_DATABASE_URL",
        "WEALTHLEDGER_BASE_CURRENCY",
        "WEALTHLEDGER_LOCK_TIMEOUT",
        "WEALTHLEDGER_MAX_RETRIES",
        "WEALTHLEDGER_ACTOR",
        "WEALTHLEDGER_LOG_LEVEL",
        "WEALTHLEDGER_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path, lock_timeout=10)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def recorder(temp_db):
    """Create an AuditRecorder with a temporary database."""
    return AuditRecorder(temp_db)


@pytest.fixture
def entity_service(temp_db):
    """Create an EntityService with a temporary database."""
    return EntityService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def holding_service(temp_db):
    """Create a HoldingService with a temporary database."""
    return HoldingService(temp_db)


@pytest.fixture
def balance_sheet_service(temp_db):
    """Create a BalanceSheetService with a temporary database."""
    return BalanceSheetService(temp_db)


@pytest.fixture
def rate_service(temp_db):
    """Create an ExchangeRateService with a temporary database."""
    return ExchangeRateService(temp_db, base_currency="USD")


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def poster(temp_db, rate_service):
    """Create a TransactionPoster with no retry delay."""
    return TransactionPoster(temp_db, rates=rate_service, retry_delay=0)


@pytest.fixture
def networth_service(temp_db, rate_service):
    """Create a NetWorthService with a temporary database."""
    return NetWorthService(temp_db, rates=rate_service)


@pytest.fixture
def sample_entity(entity_service):
    """Create a sample person entity."""
    entity_id = entity_service.create_entity(
        EntityType.PERSON, "Jane Doe", actor=ACTOR, entity_code="JANE"
    )
    return entity_service.get_entity(entity_id)


@pytest.fixture
def sample_account(account_service, sample_entity):
    """Create a sample USD checking account with a 1000.00 opening balance."""
    account_id = account_service.create_account(
        entity_id=sample_entity.id,
        account_number="CHK-001",
        account_name="Everyday",
        bank_name="Test Bank",
        account_type=AccountType.CHECKING,
        actor=ACTOR,
        opening_balance=Decimal("1000.00"),
        opening_date=date(2024, 1, 1),
    )
    return account_service.get_account(account_id)


@pytest.fixture
def sample_holding(holding_service, sample_entity):
    """Create a sample holding of 10 units at 100.00."""
    holding_id = holding_service.create_holding(
        entity_id=sample_entity.id,
        symbol="ACME",
        security_name="Acme Corp",
        security_type=SecurityType.STOCK,
        actor=ACTOR,
        quantity=Decimal("10"),
        average_cost_price=Decimal("100.00"),
        current_market_price=Decimal("100.00"),
    )
    return holding_service.get_holding(holding_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def restore_root_logger():
    """Put back the root logger handlers replaced by configure_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for h in root.handlers[:]:
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
