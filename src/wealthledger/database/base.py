"""Abstract database interface (the ledger store)."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from wealthledger.domain.entities import (
    Entity,
    BankAccount,
    Holding,
    AssetLiability,
    Liability,
    Transaction,
    AssetTransaction,
    NetWorthSnapshot,
    ExchangeRate,
    AuditRecord,
)


class Database(ABC):
    """Abstract database interface for wealthledger.

    Every mutating method commits on its own when called outside a unit of
    work. Inside ``unit_of_work()`` the changes are only flushed, and the
    whole block commits or rolls back together.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[Any]:
        """Return a context manager that makes the enclosed calls atomic.

        Raises:
            ConcurrencyConflict: On a stale write or a lock timeout
            ConflictError: On a uniqueness violation
            StorageError: When the store is unavailable
        """
        pass

    # Entity operations
    @abstractmethod
    def create_entity(
        self,
        entity_type: str,
        entity_name: str,
        entity_code: Optional[str] = None,
        tax_identification_number: Optional[str] = None,
        country: Optional[str] = None,
        email: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> int:
        """Create an entity. Returns entity ID."""
        pass

    @abstractmethod
    def get_entity(self, entity_id: int) -> Optional[Entity]:
        """Get entity by ID."""
        pass

    @abstractmethod
    def get_entity_by_code(self, entity_code: str) -> Optional[Entity]:
        """Get entity by its unique code."""
        pass

    @abstractmethod
    def list_entities(self, active_only: bool = False) -> list[Entity]:
        """List entities."""
        pass

    @abstractmethod
    def set_entity_active(self, entity_id: int, is_active: bool, actor: str) -> None:
        """Activate or soft-deactivate an entity."""
        pass

    # Bank account operations
    @abstractmethod
    def create_bank_account(
        self,
        entity_id: int,
        account_number: str,
        account_name: str,
        bank_name: str,
        account_type: str,
        currency_code: str = "USD",
        opening_balance: Decimal = Decimal("0"),
        opening_date: Optional[date] = None,
        actor: Optional[str] = None,
    ) -> int:
        """Create a bank account whose current balance starts at the opening balance."""
        pass

    @abstractmethod
    def get_bank_account(self, account_id: int, for_update: bool = False) -> Optional[BankAccount]:
        """Get bank account by ID, optionally locking the row for update."""
        pass

    @abstractmethod
    def list_bank_accounts(
        self, entity_id: Optional[int] = None, active_only: bool = False
    ) -> list[BankAccount]:
        """List bank accounts, optionally filtered by entity."""
        pass

    @abstractmethod
    def set_bank_account_balance(self, account_id: int, current_balance: Decimal, actor: str) -> None:
        """Write a new current balance (read-modify-write under the row lock)."""
        pass

    @abstractmethod
    def set_bank_account_active(self, account_id: int, is_active: bool, actor: str) -> None:
        """Activate or soft-deactivate a bank account."""
        pass

    # Holding operations
    @abstractmethod
    def create_holding(
        self,
        entity_id: int,
        symbol: str,
        security_name: str,
        security_type: str,
        exchange: Optional[str] = None,
        currency_code: str = "USD",
        quantity: Decimal = Decimal("0"),
        average_cost_price: Decimal = Decimal("0"),
        current_market_price: Decimal = Decimal("0"),
        purchase_date: Optional[date] = None,
        actor: Optional[str] = None,
    ) -> int:
        """Create a holding. Returns holding ID."""
        pass

    @abstractmethod
    def get_holding(self, holding_id: int, for_update: bool = False) -> Optional[Holding]:
        """Get holding by ID, optionally locking the row for update."""
        pass

    @abstractmethod
    def get_holding_by_key(self, entity_id: int, symbol: str, security_type: str) -> Optional[Holding]:
        """Get holding by its unique (entity, symbol, security type) key."""
        pass

    @abstractmethod
    def list_holdings(self, entity_id: Optional[int] = None, active_only: bool = False) -> list[Holding]:
        """List holdings, optionally filtered by entity."""
        pass

    @abstractmethod
    def update_holding_position(
        self, holding_id: int, quantity: Decimal, average_cost_price: Decimal, actor: str
    ) -> None:
        """Write a holding's quantity and average cost."""
        pass

    @abstractmethod
    def update_holding_market_price(self, holding_id: int, current_market_price: Decimal, actor: str) -> None:
        """Write a holding's current market price."""
        pass

    @abstractmethod
    def set_holding_active(self, holding_id: int, is_active: bool, actor: str) -> None:
        """Activate or soft-deactivate a holding."""
        pass

    # Asset/liability item operations
    @abstractmethod
    def create_asset_liability(
        self,
        entity_id: int,
        category: str,
        subcategory: str,
        item_name: str,
        original_value: Decimal,
        current_value: Decimal,
        valuation_method: str = "Cost",
        description: Optional[str] = None,
        currency_code: str = "USD",
        purchase_date: Optional[date] = None,
        last_valuation_date: Optional[date] = None,
        actor: Optional[str] = None,
    ) -> int:
        """Create an asset or liability item. Returns item ID."""
        pass

    @abstractmethod
    def get_asset_liability(self, item_id: int) -> Optional[AssetLiability]:
        """Get asset/liability item by ID."""
        pass

    @abstractmethod
    def list_asset_liabilities(
        self,
        entity_id: Optional[int] = None,
        category: Optional[str] = None,
        active_only: bool = False,
    ) -> list[AssetLiability]:
        """List asset/liability items."""
        pass

    @abstractmethod
    def update_asset_liability_value(
        self,
        item_id: int,
        current_value: Decimal,
        valuation_method: Optional[str],
        last_valuation_date: Optional[date],
        actor: str,
    ) -> None:
        """Record an externally determined valuation."""
        pass

    @abstractmethod
    def set_asset_liability_active(self, item_id: int, is_active: bool, actor: str) -> None:
        """Activate or soft-deactivate an asset/liability item."""
        pass

    # Loan operations
    @abstractmethod
    def create_liability(
        self,
        entity_id: int,
        liability_type: str,
        liability_name: str,
        principal_amount: Decimal,
        outstanding_balance: Decimal,
        start_date: date,
        interest_rate: Optional[Decimal] = None,
        emi_amount: Optional[Decimal] = None,
        maturity_date: Optional[date] = None,
        payment_frequency: str = "Monthly",
        next_payment_date: Optional[date] = None,
        lender_entity_id: Optional[int] = None,
        currency_code: str = "USD",
        actor: Optional[str] = None,
    ) -> int:
        """Create a loan liability. Returns liability ID."""
        pass

    @abstractmethod
    def get_liability(self, liability_id: int) -> Optional[Liability]:
        """Get loan liability by ID."""
        pass

    @abstractmethod
    def list_liabilities(self, entity_id: Optional[int] = None, active_only: bool = False) -> list[Liability]:
        """List loan liabilities."""
        pass

    @abstractmethod
    def update_liability_balance(self, liability_id: int, outstanding_balance: Decimal, actor: str) -> None:
        """Write a loan's outstanding balance."""
        pass

    @abstractmethod
    def set_liability_active(self, liability_id: int, is_active: bool, actor: str) -> None:
        """Activate or soft-deactivate a loan."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        entity_id: int,
        transaction_date: date,
        category: str,
        transaction_type: str,
        amount: Decimal,
        currency_code: str = "USD",
        exchange_rate: Decimal = Decimal("1"),
        tax_amount: Decimal = Decimal("0"),
        account_id: Optional[int] = None,
        counterparty_entity_id: Optional[int] = None,
        transaction_reference: Optional[str] = None,
        value_date: Optional[date] = None,
        subcategory: Optional[str] = None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
        reverses_transaction_id: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def transaction_reference_exists(self, transaction_reference: str) -> bool:
        """Check if a transaction with the given reference exists."""
        pass

    @abstractmethod
    def get_reversal_of(self, transaction_id: int) -> Optional[Transaction]:
        """Get the transaction that reverses the given one, if any."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        entity_id: Optional[int] = None,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first."""
        pass

    @abstractmethod
    def update_transaction_annotations(
        self,
        transaction_id: int,
        actor: str,
        description: Optional[str] = None,
        notes: Optional[str] = None,
        reconciliation_status: Optional[str] = None,
        reconciled_date: Optional[date] = None,
    ) -> None:
        """Update the non-financial fields of a posted transaction."""
        pass

    @abstractmethod
    def create_asset_transaction(
        self,
        transaction_id: int,
        action: str,
        quantity: Decimal,
        price_per_unit: Decimal,
        total_amount: Decimal,
        fees_and_charges: Decimal = Decimal("0"),
        realized_gain_loss: Decimal = Decimal("0"),
        holding_id: Optional[int] = None,
        asset_liability_id: Optional[int] = None,
    ) -> int:
        """Create the investment detail of a transaction. Returns its ID."""
        pass

    @abstractmethod
    def get_asset_transaction(self, transaction_id: int) -> Optional[AssetTransaction]:
        """Get the investment detail attached to a transaction."""
        pass

    @abstractmethod
    def list_asset_transactions(self, holding_id: int) -> list[AssetTransaction]:
        """List investment details posted against a holding, oldest first."""
        pass

    # Net worth snapshot operations
    @abstractmethod
    def get_networth_snapshot(self, entity_id: int, calculation_date: date) -> Optional[NetWorthSnapshot]:
        """Get the snapshot for an entity and date."""
        pass

    @abstractmethod
    def upsert_networth_snapshot(
        self,
        entity_id: int,
        calculation_date: date,
        total_assets: Decimal,
        total_liabilities: Decimal,
        currency_code: str,
        calculation_method: str,
        includes_unrealized_gains: bool,
        notes: Optional[str],
        actor: str,
    ) -> tuple[int, bool]:
        """Insert or overwrite the snapshot for (entity, date).

        Returns:
            Tuple of (snapshot ID, True if a new row was inserted)
        """
        pass

    @abstractmethod
    def list_networth_snapshots(
        self,
        entity_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[NetWorthSnapshot]:
        """List snapshots for an entity, oldest first."""
        pass

    # Exchange rate operations
    @abstractmethod
    def set_exchange_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate_date: date,
        rate: Decimal,
        source: Optional[str] = None,
    ) -> int:
        """Insert or overwrite a rate for (pair, date). Returns rate ID."""
        pass

    @abstractmethod
    def get_exchange_rate(self, from_currency: str, to_currency: str, rate_date: date) -> Optional[ExchangeRate]:
        """Get the rate for a pair on a date, or the latest one before it."""
        pass

    # Audit operations
    @abstractmethod
    def add_audit_record(
        self,
        table_name: str,
        record_id: int,
        action: str,
        old_values: Optional[dict[str, Any]],
        new_values: Optional[dict[str, Any]],
        changed_by: str,
        session_id: Optional[str] = None,
    ) -> int:
        """Append an audit record. Returns audit record ID."""
        pass

    @abstractmethod
    def list_audit_records(
        self,
        table_name: Optional[str] = None,
        record_id: Optional[int] = None,
        changed_by: Optional[str] = None,
    ) -> list[AuditRecord]:
        """List audit records, oldest first."""
        pass
