"""Investment holding domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from wealthledger.database.base import Database
from wealthledger.domain import audit, errors
from wealthledger.domain.audit import AuditRecorder
from wealthledger.domain.entities import Holding, SecurityType
from wealthledger.domain.entity import require_active_entity
from wealthledger.domain.errors import ConflictError, NotFoundError, ValidationError
from wealthledger.domain.precision import ZERO, quantize_money, quantize_quantity, to_decimal

logger = logging.getLogger(__name__)


class HoldingService:
    """Service for registering holdings and recording market prices.

    Quantity and average cost change only through the transaction poster.
    """

    def __init__(self, db: Database, recorder: Optional[AuditRecorder] = None):
        self.db = db
        self.recorder = recorder or AuditRecorder(db)

    def create_holding(
        self,
        entity_id: int,
        symbol: str,
        security_name: str,
        security_type: SecurityType,
        actor: str,
        exchange: Optional[str] = None,
        currency_code: str = "USD",
        quantity: Decimal = ZERO,
        average_cost_price: Decimal = ZERO,
        current_market_price: Decimal = ZERO,
        purchase_date: Optional[date] = None,
    ) -> int:
        """Register a holding.

        Returns:
            Holding ID

        Raises:
            ValidationError: If the entity is unusable or a value is negative
            ConflictError: If (entity, symbol, security type) already exists
        """
        require_active_entity(self.db, entity_id)
        security_type = SecurityType(security_type)
        symbol = symbol.strip().upper()
        if not symbol:
            raise ValidationError("Symbol cannot be empty")

        quantity = quantize_quantity(to_decimal(quantity))
        average_cost_price = quantize_money(to_decimal(average_cost_price))
        current_market_price = quantize_money(to_decimal(current_market_price))
        if quantity < ZERO or average_cost_price < ZERO or current_market_price < ZERO:
            raise ValidationError("Holding quantity and prices cannot be negative")

        if self.db.get_holding_by_key(entity_id, symbol, security_type.value) is not None:
            raise ConflictError(errors.duplicate_holding(entity_id, symbol, security_type.value))

        with self.db.unit_of_work():
            holding_id = self.db.create_holding(
                entity_id=entity_id,
                symbol=symbol,
                security_name=security_name,
                security_type=security_type.value,
                exchange=exchange,
                currency_code=currency_code.upper(),
                quantity=quantity,
                average_cost_price=average_cost_price,
                current_market_price=current_market_price,
                purchase_date=purchase_date,
                actor=actor,
            )
            self.recorder.record_insert(audit.HOLDINGS, self.db.get_holding(holding_id), actor)
        logger.info("Created holding %s (%s) for entity %s", holding_id, symbol, entity_id)
        return holding_id

    def get_holding(self, holding_id: int) -> Optional[Holding]:
        return self.db.get_holding(holding_id)

    def list_holdings(self, entity_id: Optional[int] = None, active_only: bool = False) -> list[Holding]:
        return self.db.list_holdings(entity_id=entity_id, active_only=active_only)

    def update_market_price(self, holding_id: int, price: Decimal, actor: str) -> Holding:
        """Record an externally sourced market price.

        Raises:
            NotFoundError: If holding not found
            ValidationError: If the price is negative
        """
        price = quantize_money(to_decimal(price))
        if price < ZERO:
            raise ValidationError(f"Market price cannot be negative, got {price}")

        with self.db.unit_of_work():
            before = self.db.get_holding(holding_id, for_update=True)
            if before is None:
                raise NotFoundError(errors.holding_not_found(holding_id))
            self.db.update_holding_market_price(holding_id, price, actor)
            after = self.db.get_holding(holding_id)
            self.recorder.record_update(audit.HOLDINGS, before, after, actor)
        return after

    def deactivate_holding(self, holding_id: int, actor: str) -> None:
        """Soft-deactivate a holding.

        Raises:
            NotFoundError: If holding not found
        """
        with self.db.unit_of_work():
            holding = self.db.get_holding(holding_id, for_update=True)
            if holding is None:
                raise NotFoundError(errors.holding_not_found(holding_id))
            if not holding.is_active:
                return
            self.db.set_holding_active(holding_id, False, actor)
            self.recorder.record_update(audit.HOLDINGS, holding, self.db.get_holding(holding_id), actor)


def require_holding_for(db: Database, holding_id: int, entity_id: int, for_update: bool = False) -> Holding:
    """Return an active holding owned by entity_id, optionally row-locked."""
    holding = db.get_holding(holding_id, for_update=for_update)
    if holding is None:
        raise NotFoundError(errors.holding_not_found(holding_id))
    if not holding.is_active:
        raise ValidationError(errors.holding_inactive(holding_id))
    if holding.entity_id != entity_id:
        raise ValidationError(errors.not_owned_by("Holding", holding_id, entity_id))
    return holding
