"""Entity domain service."""

import logging
from typing import Optional

from wealthledger.database.base import Database
from wealthledger.domain import audit, errors
from wealthledger.domain.audit import AuditRecorder
from wealthledger.domain.entities import Entity as EntityRecord, EntityType
from wealthledger.domain.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def require_active_entity(db: Database, entity_id: int) -> EntityRecord:
    """Return an entity, failing if it is missing or deactivated."""
    entity = db.get_entity(entity_id)
    if entity is None:
        raise NotFoundError(errors.entity_not_found(entity_id))
    if not entity.is_active:
        raise ValidationError(errors.entity_inactive(entity_id))
    return entity


class EntityService:
    """Service for managing entities (owners of positions)."""

    def __init__(self, db: Database, recorder: Optional[AuditRecorder] = None):
        """Initialize entity service.

        Args:
            db: Database instance
            recorder: Audit recorder (one is created on db if omitted)
        """
        self.db = db
        self.recorder = recorder or AuditRecorder(db)

    def create_entity(
        self,
        entity_type: EntityType,
        entity_name: str,
        actor: str,
        entity_code: Optional[str] = None,
        tax_identification_number: Optional[str] = None,
        country: Optional[str] = None,
        email: Optional[str] = None,
    ) -> int:
        """Create a new entity.

        Returns:
            Entity ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If entity_code is already used
        """
        entity_type = EntityType(entity_type)
        if not entity_name or not entity_name.strip():
            raise ValidationError("Entity name cannot be empty")
        if entity_code is not None and self.db.get_entity_by_code(entity_code) is not None:
            raise ConflictError(f"Entity with code '{entity_code}' already exists")

        with self.db.unit_of_work():
            entity_id = self.db.create_entity(
                entity_type=entity_type.value,
                entity_name=entity_name.strip(),
                entity_code=entity_code,
                tax_identification_number=tax_identification_number,
                country=country,
                email=email,
                actor=actor,
            )
            self.recorder.record_insert(audit.ENTITIES, self.db.get_entity(entity_id), actor)
        logger.info("Created entity %s", entity_id)
        return entity_id

    def get_entity(self, entity_id: int) -> Optional[EntityRecord]:
        """Get entity by ID."""
        return self.db.get_entity(entity_id)

    def get_entity_by_code(self, entity_code: str) -> Optional[EntityRecord]:
        """Get entity by its unique code."""
        return self.db.get_entity_by_code(entity_code)

    def list_entities(self, active_only: bool = False) -> list[EntityRecord]:
        """List entities."""
        return self.db.list_entities(active_only=active_only)

    def deactivate_entity(self, entity_id: int, actor: str) -> int:
        """Soft-deactivate an entity and everything it owns.

        Bank accounts, holdings, asset/liability items and loans of the
        entity are deactivated in the same unit of work, each audited.

        Returns:
            Number of rows deactivated, the entity included

        Raises:
            NotFoundError: If the entity does not exist
        """
        changed = 0
        with self.db.unit_of_work():
            entity = self.db.get_entity(entity_id)
            if entity is None:
                raise NotFoundError(errors.entity_not_found(entity_id))
            for account in self.db.list_bank_accounts(entity_id=entity_id, active_only=True):
                account = self.db.get_bank_account(account.id, for_update=True)
                self.db.set_bank_account_active(account.id, False, actor)
                self._audit(audit.BANK_ACCOUNTS, account, self.db.get_bank_account(account.id), actor)
                changed += 1
            for holding in self.db.list_holdings(entity_id=entity_id, active_only=True):
                holding = self.db.get_holding(holding.id, for_update=True)
                self.db.set_holding_active(holding.id, False, actor)
                self._audit(audit.HOLDINGS, holding, self.db.get_holding(holding.id), actor)
                changed += 1
            for item in self.db.list_asset_liabilities(entity_id=entity_id, active_only=True):
                self.db.set_asset_liability_active(item.id, False, actor)
                self._audit(audit.ASSETS_AND_LIABILITIES, item, self.db.get_asset_liability(item.id), actor)
                changed += 1
            for loan in self.db.list_liabilities(entity_id=entity_id, active_only=True):
                self.db.set_liability_active(loan.id, False, actor)
                self._audit(audit.LIABILITIES, loan, self.db.get_liability(loan.id), actor)
                changed += 1
            if entity.is_active:
                self.db.set_entity_active(entity_id, False, actor)
                self._audit(audit.ENTITIES, entity, self.db.get_entity(entity_id), actor)
                changed += 1

        logger.info("Deactivated entity %s (%d rows)", entity_id, changed)
        return changed

    def _audit(self, table_name: str, before, after, actor: str) -> None:
        self.recorder.record_update(table_name, before, after, actor)
