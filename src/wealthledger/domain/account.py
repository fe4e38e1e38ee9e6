"""Bank account domain service."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from wealthledger.database.base import Database
from wealthledger.domain import audit, errors
from wealthledger.domain.audit import AuditRecorder
from wealthledger.domain.entities import AccountType, BankAccount
from wealthledger.domain.entity import require_active_entity
from wealthledger.domain.errors import ConflictError, NotFoundError, ValidationError
from wealthledger.domain.precision import quantize_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceVerification:
    """Stored balance compared with the balance implied by the ledger."""

    account_id: int
    recorded_balance: Decimal
    expected_balance: Decimal
    transaction_count: int

    @property
    def difference(self) -> Decimal:
        return self.recorded_balance - self.expected_balance

    @property
    def is_consistent(self) -> bool:
        return self.difference == 0


class AccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database, recorder: Optional[AuditRecorder] = None):
        """Initialize account service.

        Args:
            db: Database instance
            recorder: Audit recorder (one is created on db if omitted)
        """
        self.db = db
        self.recorder = recorder or AuditRecorder(db)

    def create_account(
        self,
        entity_id: int,
        account_number: str,
        account_name: str,
        bank_name: str,
        account_type: AccountType,
        actor: str,
        currency_code: str = "USD",
        opening_balance: Decimal = Decimal("0"),
        opening_date: Optional[date] = None,
    ) -> int:
        """Create a new bank account.

        Args:
            entity_id: Owning entity
            account_number: Account number, unique per entity
            account_name: Display name
            bank_name: Bank name
            account_type: Savings, Checking, ...
            actor: Who creates the account
            currency_code: ISO currency of the account
            opening_balance: Balance at opening; current balance starts here
            opening_date: Optional opening date

        Returns:
            Account ID

        Raises:
            ValidationError: If the entity is missing or inactive
            ConflictError: If the entity already has this account number
        """
        require_active_entity(self.db, entity_id)
        account_type = AccountType(account_type)
        for acc in self.db.list_bank_accounts(entity_id=entity_id):
            if acc.account_number == account_number:
                raise ConflictError(
                    f"Account number '{account_number}' already exists for entity {entity_id}"
                )

        with self.db.unit_of_work():
            account_id = self.db.create_bank_account(
                entity_id=entity_id,
                account_number=account_number,
                account_name=account_name,
                bank_name=bank_name,
                account_type=account_type.value,
                currency_code=currency_code.upper(),
                opening_balance=quantize_money(to_decimal(opening_balance)),
                opening_date=opening_date,
                actor=actor,
            )
            self.recorder.record_insert(audit.BANK_ACCOUNTS, self.db.get_bank_account(account_id), actor)
        logger.info("Created bank account %s for entity %s", account_id, entity_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        return self.db.get_bank_account(account_id)

    def list_accounts(self, entity_id: Optional[int] = None, active_only: bool = False) -> list[BankAccount]:
        """List bank accounts, optionally for one entity."""
        return self.db.list_bank_accounts(entity_id=entity_id, active_only=active_only)

    def deactivate_account(self, account_id: int, actor: str) -> None:
        """Soft-deactivate a bank account.

        Raises:
            NotFoundError: If account not found
        """
        with self.db.unit_of_work():
            account = self.db.get_bank_account(account_id, for_update=True)
            if account is None:
                raise NotFoundError(errors.account_not_found(account_id))
            if not account.is_active:
                return
            self.db.set_bank_account_active(account_id, False, actor)
            self.recorder.record_update(
                audit.BANK_ACCOUNTS, account, self.db.get_bank_account(account_id), actor
            )

    def verify_balance(self, account_id: int) -> BalanceVerification:
        """Recompute an account's balance from its posted transactions.

        Raises:
            NotFoundError: If account not found
        """
        account = self.db.get_bank_account(account_id)
        if account is None:
            raise NotFoundError(errors.account_not_found(account_id))

        transactions = self.db.list_transactions(account_id=account_id)
        expected = account.opening_balance + sum(
            (txn.signed_balance_effect for txn in transactions), Decimal("0")
        )
        return BalanceVerification(
            account_id=account_id,
            recorded_balance=quantize_money(account.current_balance),
            expected_balance=quantize_money(expected),
            transaction_count=len(transactions),
        )


def require_account_for(db: Database, account_id: int, entity_id: int, for_update: bool = False) -> BankAccount:
    """Return an active account owned by entity_id, optionally row-locked."""
    account = db.get_bank_account(account_id, for_update=for_update)
    if account is None:
        raise NotFoundError(errors.account_not_found(account_id))
    if not account.is_active:
        raise ValidationError(errors.account_inactive(account_id))
    if account.entity_id != entity_id:
        raise ValidationError(errors.not_owned_by("Bank account", account_id, entity_id))
    return account
