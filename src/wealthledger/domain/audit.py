"""Audit trail domain service."""

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from wealthledger.database.base import Database
from wealthledger.domain.entities import AuditAction, AuditRecord
from wealthledger.domain.errors import ValidationError

logger = logging.getLogger(__name__)

# Audited table names, matching the store's table names
ENTITIES = "entities"
BANK_ACCOUNTS = "bank_accounts"
HOLDINGS = "holdings"
ASSETS_AND_LIABILITIES = "assets_and_liabilities"
LIABILITIES = "liabilities"
TRANSACTIONS = "transactions"
NETWORTH = "networth"


def serialize_value(value: Any) -> Any:
    """Convert a value to a JSON-safe primitive."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def record_values(record: Any, exclude: tuple[str, ...] = ("created_at",)) -> dict[str, Any]:
    """Serialize a domain dataclass (or dict) into audit values."""
    if dataclasses.is_dataclass(record):
        values = {f.name: getattr(record, f.name) for f in dataclasses.fields(record)}
    else:
        values = dict(record)
    return {k: serialize_value(v) for k, v in values.items() if k not in exclude}


class AuditRecorder:
    """Append-only recorder of before/after state for tracked mutations.

    Records are written through the same store session as the mutation they
    describe, so inside a unit of work they commit or roll back with it.
    """

    def __init__(self, db: Database, session_id: Optional[str] = None):
        """Initialize audit recorder.

        Args:
            db: Database instance
            session_id: Optional identifier stamped on every record
        """
        self.db = db
        self.session_id = session_id

    def record(
        self,
        table_name: str,
        record_id: int,
        action: AuditAction,
        old_values: Optional[dict[str, Any]],
        new_values: Optional[dict[str, Any]],
        actor: str,
    ) -> int:
        """Append one audit record.

        Args:
            table_name: Table of the mutated record
            record_id: Primary key of the mutated record
            action: INSERT, UPDATE or DELETE
            old_values: State before the change (None for INSERT)
            new_values: State after the change (None for DELETE)
            actor: Who made the change

        Returns:
            Audit record ID

        Raises:
            ValidationError: If the values do not fit the action or actor is empty
            StorageError: If the store cannot persist the record
        """
        action = AuditAction(action)
        if not actor:
            raise ValidationError("Audit records require an actor")
        if action == AuditAction.INSERT and old_values is not None:
            raise ValidationError("INSERT audit records cannot carry old values")
        if action == AuditAction.DELETE and new_values is not None:
            raise ValidationError("DELETE audit records cannot carry new values")
        if action != AuditAction.DELETE and new_values is None:
            raise ValidationError(f"{action.value} audit records require new values")

        audit_id = self.db.add_audit_record(
            table_name=table_name,
            record_id=record_id,
            action=action.value,
            old_values=serialize_value(old_values) if old_values is not None else None,
            new_values=serialize_value(new_values) if new_values is not None else None,
            changed_by=actor,
            session_id=self.session_id,
        )
        logger.debug("Audit %s %s/%s by %s", action.value, table_name, record_id, actor)
        return audit_id

    def record_insert(self, table_name: str, record: Any, actor: str, **extra: Any) -> int:
        """Record the creation of a domain record."""
        values = record_values(record)
        values.update(serialize_value(extra))
        return self.record(table_name, record.id, AuditAction.INSERT, None, values, actor)

    def record_update(self, table_name: str, before: Any, after: Any, actor: str) -> Optional[int]:
        """Record a change between two states of the same record.

        Returns:
            Audit record ID, or None when nothing changed
        """
        old_values = record_values(before)
        new_values = record_values(after)
        if old_values == new_values:
            return None
        return self.record(table_name, after.id, AuditAction.UPDATE, old_values, new_values, actor)

    def history(self, table_name: str, record_id: int) -> list[AuditRecord]:
        """Get the audit history of one record, oldest first."""
        return self.db.list_audit_records(table_name=table_name, record_id=record_id)

    def list_by_actor(self, actor: str) -> list[AuditRecord]:
        """Get every audit record written by an actor, oldest first."""
        return self.db.list_audit_records(changed_by=actor)
