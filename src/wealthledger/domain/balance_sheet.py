"""Service for non-tradable assets, generic liabilities and loans."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from wealthledger.database.base import Database
from wealthledger.domain import audit, errors
from wealthledger.domain.audit import AuditRecorder
from wealthledger.domain.entities import (
    AssetLiability,
    ItemCategory,
    Liability,
    LiabilityType,
    PaymentFrequency,
    ValuationMethod,
)
from wealthledger.domain.entity import require_active_entity
from wealthledger.domain.errors import NotFoundError, ValidationError
from wealthledger.domain.precision import ZERO, quantize_money, to_decimal

logger = logging.getLogger(__name__)


def _non_negative_money(value: Decimal, name: str) -> Decimal:
    amount = quantize_money(to_decimal(value))
    if amount < ZERO:
        raise ValidationError(f"{name} cannot be negative, got {amount}")
    return amount


class BalanceSheetService:
    """Registers and revalues items that carry an externally set value."""

    def __init__(self, db: Database, recorder: Optional[AuditRecorder] = None):
        self.db = db
        self.recorder = recorder or AuditRecorder(db)

    def add_item(
        self,
        entity_id: int,
        category: ItemCategory,
        subcategory: str,
        item_name: str,
        current_value: Decimal,
        actor: str,
        original_value: Optional[Decimal] = None,
        valuation_method: ValuationMethod = ValuationMethod.COST,
        description: Optional[str] = None,
        currency_code: str = "USD",
        purchase_date: Optional[date] = None,
        last_valuation_date: Optional[date] = None,
    ) -> int:
        """Register an asset or liability item.

        Args:
            entity_id: Owning entity
            category: Asset or Liability
            subcategory: Free-form grouping (Real Estate, Vehicle, ...)
            item_name: Display name
            current_value: Externally determined value
            actor: Who registers the item
            original_value: Acquisition value, defaults to current_value

        Returns:
            Item ID

        Raises:
            ValidationError: If the entity is unusable or a value is negative
        """
        require_active_entity(self.db, entity_id)
        category = ItemCategory(category)
        valuation_method = ValuationMethod(valuation_method)
        current = _non_negative_money(current_value, "Current value")
        original = current if original_value is None else _non_negative_money(original_value, "Original value")

        with self.db.unit_of_work():
            item_id = self.db.create_asset_liability(
                entity_id=entity_id,
                category=category.value,
                subcategory=subcategory,
                item_name=item_name,
                original_value=original,
                current_value=current,
                valuation_method=valuation_method.value,
                description=description,
                currency_code=currency_code.upper(),
                purchase_date=purchase_date,
                last_valuation_date=last_valuation_date,
                actor=actor,
            )
            self.recorder.record_insert(
                audit.ASSETS_AND_LIABILITIES, self.db.get_asset_liability(item_id), actor
            )
        logger.info("Added %s item %s for entity %s", category.value, item_id, entity_id)
        return item_id

    def add_asset(self, entity_id: int, subcategory: str, item_name: str, current_value: Decimal, actor: str, **kwargs) -> int:
        return self.add_item(entity_id, ItemCategory.ASSET, subcategory, item_name, current_value, actor, **kwargs)

    def add_liability(self, entity_id: int, subcategory: str, item_name: str, current_value: Decimal, actor: str, **kwargs) -> int:
        return self.add_item(entity_id, ItemCategory.LIABILITY, subcategory, item_name, current_value, actor, **kwargs)

    def revalue_item(
        self,
        item_id: int,
        current_value: Decimal,
        actor: str,
        valuation_method: Optional[ValuationMethod] = None,
        valuation_date: Optional[date] = None,
    ) -> AssetLiability:
        """Record a new externally determined value for an item.

        Raises:
            NotFoundError: If the item does not exist
            ValidationError: If the value is negative
        """
        value = _non_negative_money(current_value, "Current value")
        method = ValuationMethod(valuation_method).value if valuation_method is not None else None
        with self.db.unit_of_work():
            before = self.db.get_asset_liability(item_id)
            if before is None:
                raise NotFoundError(errors.asset_liability_not_found(item_id))
            self.db.update_asset_liability_value(item_id, value, method, valuation_date, actor)
            after = self.db.get_asset_liability(item_id)
            self.recorder.record_update(audit.ASSETS_AND_LIABILITIES, before, after, actor)
        return after

    def deactivate_item(self, item_id: int, actor: str) -> None:
        with self.db.unit_of_work():
            item = self.db.get_asset_liability(item_id)
            if item is None:
                raise NotFoundError(errors.asset_liability_not_found(item_id))
            if not item.is_active:
                return
            self.db.set_asset_liability_active(item_id, False, actor)
            self.recorder.record_update(
                audit.ASSETS_AND_LIABILITIES, item, self.db.get_asset_liability(item_id), actor
            )

    def list_items(
        self,
        entity_id: Optional[int] = None,
        category: Optional[ItemCategory] = None,
        active_only: bool = False,
    ) -> list[AssetLiability]:
        return self.db.list_asset_liabilities(
            entity_id=entity_id,
            category=ItemCategory(category).value if category is not None else None,
            active_only=active_only,
        )

    def add_loan(
        self,
        entity_id: int,
        liability_type: LiabilityType,
        liability_name: str,
        principal_amount: Decimal,
        start_date: date,
        actor: str,
        outstanding_balance: Optional[Decimal] = None,
        interest_rate: Optional[Decimal] = None,
        emi_amount: Optional[Decimal] = None,
        maturity_date: Optional[date] = None,
        payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
        next_payment_date: Optional[date] = None,
        lender_entity_id: Optional[int] = None,
        currency_code: str = "USD",
    ) -> int:
        """Register a loan. Outstanding balance defaults to the principal.

        Raises:
            ValidationError: If the entity or lender is unusable, or an amount is negative
        """
        require_active_entity(self.db, entity_id)
        if lender_entity_id is not None:
            require_active_entity(self.db, lender_entity_id)
        liability_type = LiabilityType(liability_type)
        payment_frequency = PaymentFrequency(payment_frequency)
        principal = _non_negative_money(principal_amount, "Principal")
        outstanding = principal if outstanding_balance is None else _non_negative_money(
            outstanding_balance, "Outstanding balance"
        )
        if maturity_date is not None and maturity_date < start_date:
            raise ValidationError("Maturity date cannot precede start date")

        with self.db.unit_of_work():
            liability_id = self.db.create_liability(
                entity_id=entity_id,
                liability_type=liability_type.value,
                liability_name=liability_name,
                principal_amount=principal,
                outstanding_balance=outstanding,
                start_date=start_date,
                interest_rate=to_decimal(interest_rate) if interest_rate is not None else None,
                emi_amount=quantize_money(to_decimal(emi_amount)) if emi_amount is not None else None,
                maturity_date=maturity_date,
                payment_frequency=payment_frequency.value,
                next_payment_date=next_payment_date,
                lender_entity_id=lender_entity_id,
                currency_code=currency_code.upper(),
                actor=actor,
            )
            self.recorder.record_insert(audit.LIABILITIES, self.db.get_liability(liability_id), actor)
        logger.info("Added loan %s for entity %s", liability_id, entity_id)
        return liability_id

    def update_loan_balance(self, liability_id: int, outstanding_balance: Decimal, actor: str) -> Liability:
        """Record an externally maintained outstanding balance."""
        balance = _non_negative_money(outstanding_balance, "Outstanding balance")
        with self.db.unit_of_work():
            before = self.db.get_liability(liability_id)
            if before is None:
                raise NotFoundError(errors.liability_not_found(liability_id))
            self.db.update_liability_balance(liability_id, balance, actor)
            after = self.db.get_liability(liability_id)
            self.recorder.record_update(audit.LIABILITIES, before, after, actor)
        return after

    def deactivate_loan(self, liability_id: int, actor: str) -> None:
        with self.db.unit_of_work():
            loan = self.db.get_liability(liability_id)
            if loan is None:
                raise NotFoundError(errors.liability_not_found(liability_id))
            if not loan.is_active:
                return
            self.db.set_liability_active(liability_id, False, actor)
            self.recorder.record_update(audit.LIABILITIES, loan, self.db.get_liability(liability_id), actor)

    def list_loans(self, entity_id: Optional[int] = None, active_only: bool = False) -> list[Liability]:
        return self.db.list_liabilities(entity_id=entity_id, active_only=active_only)
