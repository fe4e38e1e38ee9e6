"""Transaction domain service.

Posting lives in TransactionPoster. This service reads the ledger and edits
the fields that stay editable after posting: description, notes and the
reconciliation status.
"""

from typing import Optional, Any
from datetime import date

from wealthledger.database.base import Database
from wealthledger.domain import audit, errors
from wealthledger.domain.audit import AuditRecorder
from wealthledger.domain.entities import (
    AssetTransaction,
    ReconciliationStatus,
    Transaction as TransactionEntity,
    TransactionCategory,
)
from wealthledger.domain.errors import ImmutableRecordError, NotFoundError, ValidationError

# Fields fixed once a transaction is posted
FINANCIAL_FIELDS = frozenset(
    {
        "amount",
        "transaction_date",
        "value_date",
        "category",
        "transaction_type",
        "account_id",
        "entity_id",
        "counterparty_entity_id",
        "currency_code",
        "exchange_rate",
        "tax_amount",
        "transaction_reference",
    }
)
EDITABLE_FIELDS = frozenset({"description", "notes"})


class TransactionService:
    """Service for reading and annotating posted transactions."""

    def __init__(self, db: Database, recorder: Optional[AuditRecorder] = None):
        """Initialize transaction service.

        Args:
            db: Database instance
            recorder: Audit recorder (one is created on db if omitted)
        """
        self.db = db
        self.recorder = recorder or AuditRecorder(db)

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def get_asset_detail(self, transaction_id: int) -> Optional[AssetTransaction]:
        """Get the investment detail of a transaction, if it has one."""
        return self.db.get_asset_transaction(transaction_id)

    def list_transactions(
        self,
        entity_id: Optional[int] = None,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[TransactionCategory] = None,
    ) -> list[TransactionEntity]:
        """List transactions with optional filters, newest first."""
        return self.db.list_transactions(
            entity_id=entity_id,
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            category=TransactionCategory(category).value if category is not None else None,
        )

    def update_transaction(self, transaction_id: int, actor: str, **changes: Any) -> TransactionEntity:
        """Edit the non-financial fields of a posted transaction.

        Args:
            transaction_id: Transaction ID to update
            actor: Who makes the change
            **changes: description and/or notes

        Raises:
            NotFoundError: If the transaction doesn't exist
            ImmutableRecordError: If a financial field is among the changes
            ValidationError: If an unknown field is among the changes
        """
        immutable = [name for name in changes if name in FINANCIAL_FIELDS]
        if immutable:
            raise ImmutableRecordError(errors.immutable_fields(transaction_id, immutable))
        unknown = [name for name in changes if name not in EDITABLE_FIELDS]
        if unknown:
            raise ValidationError(f"Unknown transaction fields: {', '.join(sorted(unknown))}")

        with self.db.unit_of_work():
            before = self._require(transaction_id)
            self.db.update_transaction_annotations(
                transaction_id,
                actor,
                description=changes.get("description"),
                notes=changes.get("notes"),
            )
            after = self.db.get_transaction(transaction_id)
            self.recorder.record_update(audit.TRANSACTIONS, before, after, actor)
        return after

    def reconcile(
        self,
        transaction_id: int,
        actor: str,
        status: ReconciliationStatus = ReconciliationStatus.RECONCILED,
        reconciled_date: Optional[date] = None,
    ) -> TransactionEntity:
        """Set the reconciliation status of a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        status = ReconciliationStatus(status)
        if status == ReconciliationStatus.RECONCILED and reconciled_date is None:
            reconciled_date = date.today()
        if status != ReconciliationStatus.RECONCILED:
            reconciled_date = None

        with self.db.unit_of_work():
            before = self._require(transaction_id)
            self.db.update_transaction_annotations(
                transaction_id,
                actor,
                reconciliation_status=status.value,
                reconciled_date=reconciled_date,
            )
            after = self.db.get_transaction(transaction_id)
            self.recorder.record_update(audit.TRANSACTIONS, before, after, actor)
        return after

    def _require(self, transaction_id: int) -> TransactionEntity:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(errors.transaction_not_found(transaction_id))
        return txn
