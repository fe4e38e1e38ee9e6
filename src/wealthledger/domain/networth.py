"""Net worth aggregation and snapshots."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from wealthledger.database.base import Database
from wealthledger.domain import audit
from wealthledger.domain.audit import AuditRecorder, record_values
from wealthledger.domain.currency import ExchangeRateService
from wealthledger.domain.entities import (
    AuditAction,
    CalculationMethod,
    ItemCategory,
    NetWorthBreakdown,
    NetWorthSnapshot,
)
from wealthledger.domain.entity import require_active_entity
from wealthledger.domain.errors import ConflictError, ValidationError
from wealthledger.domain.precision import ZERO, quantize_money

logger = logging.getLogger(__name__)


class NetWorthService:
    """Aggregates an entity's positions into dated net worth snapshots.

    Only active records count. Everything is converted to the base currency
    using the rate on or before the calculation date.
    """

    def __init__(
        self,
        db: Database,
        recorder: Optional[AuditRecorder] = None,
        rates: Optional[ExchangeRateService] = None,
        base_currency: str = "USD",
    ):
        self.db = db
        self.recorder = recorder or AuditRecorder(db)
        self.rates = rates or ExchangeRateService(db, base_currency=base_currency)

    @property
    def base_currency(self) -> str:
        return self.rates.base_currency

    def _to_base(self, value: Decimal, currency_code: str, as_of_date: date) -> Decimal:
        if currency_code == self.base_currency:
            return value
        return value * self.rates.resolve_rate(currency_code, as_of_date)

    def calculate(
        self, entity_id: int, as_of_date: date, include_unrealized: bool = True
    ) -> NetWorthBreakdown:
        """Compute net worth components without persisting anything.

        Args:
            entity_id: Entity to aggregate
            as_of_date: Date used for currency conversion
            include_unrealized: Value holdings at market price when True,
                at average cost otherwise

        Raises:
            ValidationError: If the entity is missing or inactive, or a rate is missing
        """
        require_active_entity(self.db, entity_id)

        cash = ZERO
        accounts = self.db.list_bank_accounts(entity_id=entity_id, active_only=True)
        for account in accounts:
            cash += self._to_base(account.current_balance, account.currency_code, as_of_date)

        investments = ZERO
        holdings = self.db.list_holdings(entity_id=entity_id, active_only=True)
        for holding in holdings:
            value = holding.market_value if include_unrealized else holding.cost_basis
            investments += self._to_base(value, holding.currency_code, as_of_date)

        other_assets = ZERO
        other_liabilities = ZERO
        items = self.db.list_asset_liabilities(entity_id=entity_id, active_only=True)
        for item in items:
            value = self._to_base(item.current_value, item.currency_code, as_of_date)
            if item.category == ItemCategory.ASSET:
                other_assets += value
            else:
                other_liabilities += value

        loans = ZERO
        liabilities = self.db.list_liabilities(entity_id=entity_id, active_only=True)
        for loan in liabilities:
            loans += self._to_base(loan.outstanding_balance, loan.currency_code, as_of_date)

        return NetWorthBreakdown(
            cash=quantize_money(cash),
            investments=quantize_money(investments),
            other_assets=quantize_money(other_assets),
            other_liabilities=quantize_money(other_liabilities),
            loans=quantize_money(loans),
            items_counted={
                "bank_accounts": len(accounts),
                "holdings": len(holdings),
                "assets_and_liabilities": len(items),
                "liabilities": len(liabilities),
            },
        )

    def compute_and_snapshot(
        self,
        entity_id: int,
        as_of_date: date,
        include_unrealized: bool = True,
        actor: str = "system",
        calculation_method: CalculationMethod = CalculationMethod.AUTOMATIC,
        notes: Optional[str] = None,
    ) -> NetWorthSnapshot:
        """Compute net worth and upsert the snapshot for (entity, date).

        Re-running with unchanged state leaves one identical row and writes
        no audit record.

        Returns:
            The stored snapshot
        """
        if not actor:
            raise ValidationError("Actor is required")
        calculation_method = CalculationMethod(calculation_method)

        try:
            snapshot, created = self._snapshot_once(
                entity_id, as_of_date, include_unrealized, actor, calculation_method, notes
            )
        except ConflictError:
            # Another writer inserted the (entity, date) row first; now it exists, so update it
            logger.warning(
                "Net worth snapshot for entity %s on %s was created concurrently, retrying",
                entity_id,
                as_of_date.isoformat(),
            )
            snapshot, created = self._snapshot_once(
                entity_id, as_of_date, include_unrealized, actor, calculation_method, notes
            )

        logger.info(
            "Net worth snapshot %s for entity %s on %s (%s)",
            snapshot.id,
            entity_id,
            as_of_date.isoformat(),
            "created" if created else "refreshed",
        )
        return snapshot

    def _snapshot_once(
        self,
        entity_id: int,
        as_of_date: date,
        include_unrealized: bool,
        actor: str,
        calculation_method: CalculationMethod,
        notes: Optional[str],
    ) -> tuple[NetWorthSnapshot, bool]:
        with self.db.unit_of_work():
            breakdown = self.calculate(entity_id, as_of_date, include_unrealized)
            before = self.db.get_networth_snapshot(entity_id, as_of_date)
            snapshot_id, created = self.db.upsert_networth_snapshot(
                entity_id=entity_id,
                calculation_date=as_of_date,
                total_assets=breakdown.total_assets,
                total_liabilities=breakdown.total_liabilities,
                currency_code=self.base_currency,
                calculation_method=calculation_method.value,
                includes_unrealized_gains=include_unrealized,
                notes=notes,
                actor=actor,
            )
            snapshot = self.db.get_networth_snapshot(entity_id, as_of_date)
            if created:
                self.recorder.record(
                    audit.NETWORTH, snapshot_id, AuditAction.INSERT, None, record_values(snapshot), actor
                )
            else:
                self.recorder.record_update(audit.NETWORTH, before, snapshot, actor)
        return snapshot, created

    def get_snapshot(self, entity_id: int, as_of_date: date) -> Optional[NetWorthSnapshot]:
        """Get the stored snapshot for an entity and date."""
        return self.db.get_networth_snapshot(entity_id, as_of_date)

    def list_snapshots(
        self,
        entity_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[NetWorthSnapshot]:
        """List snapshots for an entity, oldest first."""
        return self.db.list_networth_snapshots(entity_id, start_date=start_date, end_date=end_date)
