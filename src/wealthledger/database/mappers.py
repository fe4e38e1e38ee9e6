"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic: enum columns are stored as their
string values and turned back into domain enums here, so the ORM models stay
free of domain types.
"""

from typing import Any

from wealthledger.domain import entities as domain
from wealthledger.database.models import (
    Entity as ORMEntity,
    BankAccount as ORMBankAccount,
    Holding as ORMHolding,
    AssetLiability as ORMAssetLiability,
    Liability as ORMLiability,
    Transaction as ORMTransaction,
    AssetTransaction as ORMAssetTransaction,
    NetWorthSnapshot as ORMNetWorthSnapshot,
    ExchangeRate as ORMExchangeRate,
    AuditRecord as ORMAuditRecord,
)


def entity_to_domain(orm_entity: ORMEntity) -> domain.Entity:
    """Convert SQLAlchemy Entity model to domain Entity."""
    return domain.Entity(
        id=orm_entity.id,
        entity_type=domain.EntityType(orm_entity.entity_type),
        entity_name=orm_entity.entity_name,
        entity_code=orm_entity.entity_code,
        tax_identification_number=orm_entity.tax_identification_number,
        country=orm_entity.country,
        email=orm_entity.email,
        is_active=orm_entity.is_active,
        created_at=orm_entity.created_at,
        created_by=orm_entity.created_by,
        updated_by=orm_entity.updated_by,
    )


def bank_account_to_domain(orm_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount."""
    return domain.BankAccount(
        id=orm_account.id,
        entity_id=orm_account.entity_id,
        account_number=orm_account.account_number,
        account_name=orm_account.account_name,
        bank_name=orm_account.bank_name,
        account_type=domain.AccountType(orm_account.account_type),
        currency_code=orm_account.currency_code,
        opening_balance=orm_account.opening_balance,
        current_balance=orm_account.current_balance,
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
        opening_date=orm_account.opening_date,
        updated_by=orm_account.updated_by,
    )


def holding_to_domain(orm_holding: ORMHolding) -> domain.Holding:
    """Convert SQLAlchemy Holding model to domain Holding."""
    return domain.Holding(
        id=orm_holding.id,
        entity_id=orm_holding.entity_id,
        symbol=orm_holding.symbol,
        security_name=orm_holding.security_name,
        security_type=domain.SecurityType(orm_holding.security_type),
        quantity=orm_holding.quantity,
        average_cost_price=orm_holding.average_cost_price,
        current_market_price=orm_holding.current_market_price,
        is_active=orm_holding.is_active,
        created_at=orm_holding.created_at,
        exchange=orm_holding.exchange,
        currency_code=orm_holding.currency_code,
        purchase_date=orm_holding.purchase_date,
        updated_by=orm_holding.updated_by,
    )


def asset_liability_to_domain(orm_item: ORMAssetLiability) -> domain.AssetLiability:
    """Convert SQLAlchemy AssetLiability model to domain AssetLiability."""
    return domain.AssetLiability(
        id=orm_item.id,
        entity_id=orm_item.entity_id,
        category=domain.ItemCategory(orm_item.category),
        subcategory=orm_item.subcategory,
        item_name=orm_item.item_name,
        original_value=orm_item.original_value,
        current_value=orm_item.current_value,
        valuation_method=domain.ValuationMethod(orm_item.valuation_method),
        is_active=orm_item.is_active,
        created_at=orm_item.created_at,
        description=orm_item.description,
        currency_code=orm_item.currency_code,
        purchase_date=orm_item.purchase_date,
        last_valuation_date=orm_item.last_valuation_date,
    )


def liability_to_domain(orm_liability: ORMLiability) -> domain.Liability:
    """Convert SQLAlchemy Liability model to domain Liability."""
    return domain.Liability(
        id=orm_liability.id,
        entity_id=orm_liability.entity_id,
        liability_type=domain.LiabilityType(orm_liability.liability_type),
        liability_name=orm_liability.liability_name,
        principal_amount=orm_liability.principal_amount,
        outstanding_balance=orm_liability.outstanding_balance,
        start_date=orm_liability.start_date,
        is_active=orm_liability.is_active,
        created_at=orm_liability.created_at,
        interest_rate=orm_liability.interest_rate,
        emi_amount=orm_liability.emi_amount,
        maturity_date=orm_liability.maturity_date,
        payment_frequency=domain.PaymentFrequency(orm_liability.payment_frequency),
        next_payment_date=orm_liability.next_payment_date,
        lender_entity_id=orm_liability.lender_entity_id,
        currency_code=orm_liability.currency_code,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction."""
    return domain.Transaction(
        id=orm_transaction.id,
        transaction_reference=orm_transaction.transaction_reference,
        transaction_date=orm_transaction.transaction_date,
        entity_id=orm_transaction.entity_id,
        category=domain.TransactionCategory(orm_transaction.category),
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        amount=orm_transaction.amount,
        currency_code=orm_transaction.currency_code,
        exchange_rate=orm_transaction.exchange_rate,
        tax_amount=orm_transaction.tax_amount,
        created_at=orm_transaction.created_at,
        counterparty_entity_id=orm_transaction.counterparty_entity_id,
        account_id=orm_transaction.account_id,
        value_date=orm_transaction.value_date,
        subcategory=orm_transaction.subcategory,
        description=orm_transaction.description,
        notes=orm_transaction.notes,
        reconciliation_status=domain.ReconciliationStatus(orm_transaction.reconciliation_status),
        reconciled_date=orm_transaction.reconciled_date,
        reverses_transaction_id=orm_transaction.reverses_transaction_id,
        created_by=orm_transaction.created_by,
    )


def asset_transaction_to_domain(orm_detail: ORMAssetTransaction) -> domain.AssetTransaction:
    """Convert SQLAlchemy AssetTransaction model to domain AssetTransaction."""
    return domain.AssetTransaction(
        id=orm_detail.id,
        transaction_id=orm_detail.transaction_id,
        action=domain.AssetAction(orm_detail.action),
        quantity=orm_detail.quantity,
        price_per_unit=orm_detail.price_per_unit,
        total_amount=orm_detail.total_amount,
        fees_and_charges=orm_detail.fees_and_charges,
        realized_gain_loss=orm_detail.realized_gain_loss,
        holding_id=orm_detail.holding_id,
        asset_liability_id=orm_detail.asset_liability_id,
    )


def networth_snapshot_to_domain(orm_snapshot: ORMNetWorthSnapshot) -> domain.NetWorthSnapshot:
    """Convert SQLAlchemy NetWorthSnapshot model to domain NetWorthSnapshot."""
    return domain.NetWorthSnapshot(
        id=orm_snapshot.id,
        entity_id=orm_snapshot.entity_id,
        calculation_date=orm_snapshot.calculation_date,
        total_assets=orm_snapshot.total_assets,
        total_liabilities=orm_snapshot.total_liabilities,
        currency_code=orm_snapshot.currency_code,
        calculation_method=domain.CalculationMethod(orm_snapshot.calculation_method),
        includes_unrealized_gains=orm_snapshot.includes_unrealized_gains,
        notes=orm_snapshot.notes,
        created_by=orm_snapshot.created_by,
        updated_by=orm_snapshot.updated_by,
    )


def exchange_rate_to_domain(orm_rate: ORMExchangeRate) -> domain.ExchangeRate:
    """Convert SQLAlchemy ExchangeRate model to domain ExchangeRate."""
    return domain.ExchangeRate(
        id=orm_rate.id,
        from_currency=orm_rate.from_currency,
        to_currency=orm_rate.to_currency,
        rate=orm_rate.rate,
        rate_date=orm_rate.rate_date,
        source=orm_rate.source,
    )


def audit_record_to_domain(orm_record: ORMAuditRecord) -> domain.AuditRecord:
    """Convert SQLAlchemy AuditRecord model to domain AuditRecord."""
    return domain.AuditRecord(
        id=orm_record.id,
        table_name=orm_record.table_name,
        record_id=orm_record.record_id,
        action=domain.AuditAction(orm_record.action),
        old_values=_copy_values(orm_record.old_values),
        new_values=_copy_values(orm_record.new_values),
        changed_by=orm_record.changed_by,
        change_timestamp=orm_record.change_timestamp,
        session_id=orm_record.session_id,
    )


def _copy_values(values: Any) -> Any:
    # Domain records must not share the mutable JSON dict held by the session
    if values is None:
        return None
    return dict(values)
