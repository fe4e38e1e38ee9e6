"""SQLAlchemy models for the wealthledger database."""

from datetime import datetime, UTC
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.types import TypeDecorator

from wealthledger.domain.precision import to_decimal

Base = declarative_base()


class FixedDecimal(TypeDecorator):
    """Exact fixed-point column.

    Values are rounded half-up to the column scale on the way in. SQLite
    has no exact numeric storage (NUMERIC affinity keeps a binary double),
    so there the value is stored as its decimal text.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            # digits, sign and decimal point
            return dialect.type_descriptor(String(self.impl.precision + 2))
        return dialect.type_descriptor(Numeric(self.impl.precision, self.impl.scale, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        quantum = Decimal(1).scaleb(-self.impl.scale)
        fixed = to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
        if dialect.name == "sqlite":
            return format(fixed, "f")
        return fixed

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


# Column precisions: money/prices 4dp, quantities 8dp, rates 6dp
MONEY = FixedDecimal(20, 4)
QUANTITY = FixedDecimal(18, 8)
RATE = FixedDecimal(12, 6)


def _now() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """Creation/update timestamps plus the explicit actor for each."""

    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)


class Entity(TimestampMixin, Base):
    """Entity model (person, company, fund...)."""

    __tablename__ = "entities"

    id = Column(Integer, primary_key=True)
    entity_type = Column(String(20), nullable=False)
    entity_name = Column(String(255), nullable=False, index=True)
    entity_code = Column(String(50), unique=True, nullable=True)
    tax_identification_number = Column(String(50), nullable=True)
    country = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    bank_accounts = relationship("BankAccount", back_populates="entity")
    holdings = relationship("Holding", back_populates="entity")


class BankAccount(TimestampMixin, Base):
    """Bank account model with an incrementally maintained balance."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    account_number = Column(String(50), nullable=False)
    account_name = Column(String(255), nullable=False)
    bank_name = Column(String(255), nullable=False)
    account_type = Column(String(20), nullable=False)
    currency_code = Column(String(3), default="USD", nullable=False)
    opening_balance = Column(MONEY, default=0, nullable=False)
    current_balance = Column(MONEY, default=0, nullable=False)
    opening_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    version_id = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("entity_id", "account_number", name="uq_entity_account"),
        Index("idx_active_accounts", "is_active", "entity_id"),
    )
    # Optimistic lock: a stale UPDATE raises StaleDataError
    __mapper_args__ = {"version_id_col": version_id}

    # Relationships
    entity = relationship("Entity", back_populates="bank_accounts")
    transactions = relationship("Transaction", back_populates="account")


class Holding(TimestampMixin, Base):
    """Investment holding model. Market value and gains are derived on read."""

    __tablename__ = "holdings"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    symbol = Column(String(20), nullable=False, index=True)
    security_name = Column(String(255), nullable=False)
    security_type = Column(String(20), nullable=False)
    exchange = Column(String(50), nullable=True)
    currency_code = Column(String(3), default="USD", nullable=False)
    quantity = Column(QUANTITY, default=0, nullable=False)
    average_cost_price = Column(MONEY, default=0, nullable=False)
    current_market_price = Column(MONEY, default=0, nullable=False)
    purchase_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    version_id = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("entity_id", "symbol", "security_type", name="uq_entity_symbol"),
        Index("idx_active_holdings", "is_active", "entity_id"),
    )
    __mapper_args__ = {"version_id_col": version_id}

    # Relationships
    entity = relationship("Entity", back_populates="holdings")
    asset_transactions = relationship("AssetTransaction", back_populates="holding")


class AssetLiability(TimestampMixin, Base):
    """Non-investment asset or liability item."""

    __tablename__ = "assets_and_liabilities"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    category = Column(String(10), nullable=False)
    subcategory = Column(String(100), nullable=False)
    item_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    original_value = Column(MONEY, default=0, nullable=False)
    current_value = Column(MONEY, default=0, nullable=False)
    currency_code = Column(String(3), default="USD", nullable=False)
    valuation_method = Column(String(20), default="Cost", nullable=False)
    purchase_date = Column(Date, nullable=True)
    last_valuation_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("idx_active_assets", "is_active", "entity_id", "category"),)


class Liability(TimestampMixin, Base):
    """Loan, mortgage or credit card liability."""

    __tablename__ = "liabilities"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    liability_type = Column(String(20), nullable=False)
    liability_name = Column(String(255), nullable=False)
    principal_amount = Column(MONEY, nullable=False)
    outstanding_balance = Column(MONEY, nullable=False)
    interest_rate = Column(FixedDecimal(8, 4), nullable=True)
    emi_amount = Column(MONEY, nullable=True)
    start_date = Column(Date, nullable=False)
    maturity_date = Column(Date, nullable=True)
    payment_frequency = Column(String(20), default="Monthly", nullable=False)
    next_payment_date = Column(Date, nullable=True)
    lender_entity_id = Column(Integer, ForeignKey("entities.id"), nullable=True)
    currency_code = Column(String(3), default="USD", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("idx_active_liabilities", "is_active", "entity_id"),)


class Transaction(TimestampMixin, Base):
    """Master ledger transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    transaction_reference = Column(String(100), unique=True, nullable=True)
    transaction_date = Column(Date, nullable=False)
    value_date = Column(Date, nullable=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    counterparty_entity_id = Column(Integer, ForeignKey("entities.id"), nullable=True)
    account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True)
    category = Column(String(20), nullable=False)
    transaction_type = Column(String(20), nullable=False)
    subcategory = Column(String(100), nullable=True)
    amount = Column(MONEY, nullable=False)
    currency_code = Column(String(3), default="USD", nullable=False)
    exchange_rate = Column(RATE, default=1, nullable=False)
    tax_amount = Column(MONEY, default=0, nullable=False)
    description = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    reconciliation_status = Column(String(20), default="Unreconciled", nullable=False)
    reconciled_date = Column(Date, nullable=True)
    reverses_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, unique=True)

    __table_args__ = (Index("idx_entity_date", "entity_id", "transaction_date"),)

    # Relationships
    account = relationship("BankAccount", back_populates="transactions")
    asset_transaction = relationship("AssetTransaction", back_populates="transaction", uselist=False)


class AssetTransaction(Base):
    """Investment trade detail for a transaction."""

    __tablename__ = "asset_transactions"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, unique=True)
    holding_id = Column(Integer, ForeignKey("holdings.id"), nullable=True, index=True)
    asset_liability_id = Column(Integer, ForeignKey("assets_and_liabilities.id"), nullable=True)
    action = Column(String(20), nullable=False)
    quantity = Column(QUANTITY, default=0, nullable=False)
    price_per_unit = Column(MONEY, default=0, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    fees_and_charges = Column(MONEY, default=0, nullable=False)
    realized_gain_loss = Column(MONEY, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    transaction = relationship("Transaction", back_populates="asset_transaction")
    holding = relationship("Holding", back_populates="asset_transactions")


class NetWorthSnapshot(TimestampMixin, Base):
    """Historical net worth snapshot, one per entity and date."""

    __tablename__ = "networth"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    calculation_date = Column(Date, nullable=False, index=True)
    total_assets = Column(MONEY, default=0, nullable=False)
    total_liabilities = Column(MONEY, default=0, nullable=False)
    currency_code = Column(String(3), default="USD", nullable=False)
    calculation_method = Column(String(20), default="Automatic", nullable=False)
    includes_unrealized_gains = Column(Boolean, default=True, nullable=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("entity_id", "calculation_date", name="uq_entity_date"),)


class ExchangeRate(Base):
    """Currency conversion rate for a date."""

    __tablename__ = "exchange_rates"

    id = Column(Integer, primary_key=True)
    from_currency = Column(String(3), nullable=False)
    to_currency = Column(String(3), nullable=False)
    rate = Column(RATE, nullable=False)
    rate_date = Column(Date, nullable=False)
    source = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", "rate_date", name="uq_currencies_date"),
    )


class AuditRecord(Base):
    """Append-only change history."""

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True)
    table_name = Column(String(100), nullable=False)
    record_id = Column(BigInteger, nullable=False)
    action = Column(String(10), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    changed_by = Column(String(100), nullable=False)
    change_timestamp = Column(DateTime, default=_now, nullable=False)
    session_id = Column(String(100), nullable=True)

    __table_args__ = (Index("idx_table_record", "table_name", "record_id"),)


def create_session_factory(
    database_url: str, lock_timeout: Optional[float] = None
) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    Args:
        database_url: SQLAlchemy database URL
        lock_timeout: Seconds a writer waits on a locked SQLite database
    """
    connect_args = {}
    if database_url.startswith("sqlite") and lock_timeout is not None:
        connect_args["timeout"] = lock_timeout
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
