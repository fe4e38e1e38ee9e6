"""Tests for the transaction poster."""

from datetime import date
from decimal import Decimal

import pytest

from wealthledger.domain.entities import (
    AccountType,
    AssetAction,
    AssetDetail,
    AuditAction,
    EntityType,
    NewTransaction,
    TransactionCategory,
    TransactionType,
)
from wealthledger.domain.errors import (
    ConcurrencyConflict,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from wealthledger.domain.posting import TransactionPoster

from conftest import ACTOR

D = Decimal


def cash(entity_id, account_id, category, amount, **kwargs):
    return NewTransaction(
        entity_id=entity_id,
        transaction_date=kwargs.pop("transaction_date", date(2024, 3, 1)),
        category=category,
        transaction_type=kwargs.pop("transaction_type", TransactionType.OTHER),
        amount=D(amount),
        account_id=account_id,
        **kwargs,
    )


def trade(entity_id, holding_id, action, quantity, price, category=TransactionCategory.PURCHASE, **kwargs):
    quantity, price = D(quantity), D(price)
    return NewTransaction(
        entity_id=entity_id,
        transaction_date=date(2024, 3, 1),
        category=category,
        transaction_type=TransactionType.INVESTMENT,
        amount=quantity * price if quantity * price > 0 else D("0.01"),
        asset_detail=AssetDetail(action=action, quantity=quantity, price_per_unit=price, holding_id=holding_id),
        **kwargs,
    )


class TestCashPosting:
    """Tests for balance effects of cash transactions."""

    @pytest.mark.parametrize(
        "category,expected",
        [
            (TransactionCategory.DEPOSIT, D("1250.50")),
            (TransactionCategory.INTEREST, D("1250.50")),
            (TransactionCategory.DIVIDEND, D("1250.50")),
            (TransactionCategory.WITHDRAWAL, D("749.50")),
            (TransactionCategory.FEE, D("749.50")),
            (TransactionCategory.PAYMENT, D("749.50")),
            (TransactionCategory.TRANSFER, D("1000.00")),
            (TransactionCategory.PURCHASE, D("1000.00")),
            (TransactionCategory.SALE, D("1000.00")),
        ],
    )
    def test_balance_effect_by_category(self, poster, temp_db, sample_entity, sample_account, category, expected):
        posted = poster.post(cash(sample_entity.id, sample_account.id, category, "250.50"), actor=ACTOR)

        assert posted.account.current_balance == expected
        assert temp_db.get_bank_account(sample_account.id).current_balance == expected
        assert posted.transaction.category == category
        assert posted.transaction.currency_code == "USD"
        assert posted.transaction.exchange_rate == D("1")

    def test_posting_without_account(self, poster, sample_entity):
        posted = poster.post(
            NewTransaction(
                entity_id=sample_entity.id,
                transaction_date=date(2024, 3, 1),
                category=TransactionCategory.FEE,
                transaction_type=TransactionType.EXPENSE,
                amount=D("15"),
            ),
            actor=ACTOR,
        )
        assert posted.account is None
        assert posted.transaction.account_id is None

    def test_derived_amounts(self, poster, sample_entity, sample_account):
        posted = poster.post(
            cash(sample_entity.id, sample_account.id, TransactionCategory.DIVIDEND, "100", tax_amount=D("15")),
            actor=ACTOR,
        )
        assert posted.transaction.net_amount == D("85")
        assert posted.transaction.amount_base_currency == D("100")

    def test_negative_amount_rejected(self, poster, sample_entity, sample_account):
        with pytest.raises(ValidationError, match="negative"):
            poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "-5"), actor=ACTOR)

    def test_zero_amount_rejected_except_other(self, poster, sample_entity, sample_account):
        with pytest.raises(ValidationError, match="positive"):
            poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "0"), actor=ACTOR)

        posted = poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.OTHER, "0"), actor=ACTOR)
        assert posted.transaction.amount == 0
        assert posted.account.current_balance == D("1000")

    def test_actor_required(self, poster, sample_entity, sample_account):
        with pytest.raises(ValidationError, match="Actor"):
            poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "5"), actor="")

    def test_missing_entity(self, poster, sample_account):
        with pytest.raises(NotFoundError, match="Entity 999"):
            poster.post(cash(999, sample_account.id, TransactionCategory.DEPOSIT, "5"), actor=ACTOR)

    def test_missing_account(self, poster, sample_entity):
        with pytest.raises(NotFoundError, match="Bank account 999"):
            poster.post(cash(sample_entity.id, 999, TransactionCategory.DEPOSIT, "5"), actor=ACTOR)

    def test_inactive_account(self, poster, account_service, sample_entity, sample_account):
        account_service.deactivate_account(sample_account.id, actor=ACTOR)
        with pytest.raises(ValidationError, match="inactive"):
            poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "5"), actor=ACTOR)

    def test_account_of_other_entity(self, poster, entity_service, sample_account):
        other_id = entity_service.create_entity(EntityType.COMPANY, "Other Co", actor=ACTOR)
        with pytest.raises(ValidationError, match="does not belong"):
            poster.post(cash(other_id, sample_account.id, TransactionCategory.DEPOSIT, "5"), actor=ACTOR)

    def test_inactive_counterparty(self, poster, entity_service, sample_entity, sample_account):
        other_id = entity_service.create_entity(EntityType.BANK, "Old Bank", actor=ACTOR)
        entity_service.deactivate_entity(other_id, actor=ACTOR)
        with pytest.raises(ValidationError, match="inactive"):
            poster.post(
                cash(
                    sample_entity.id,
                    sample_account.id,
                    TransactionCategory.DEPOSIT,
                    "5",
                    counterparty_entity_id=other_id,
                ),
                actor=ACTOR,
            )

    def test_currency_mismatch(self, poster, temp_db, sample_entity, sample_account):
        with pytest.raises(ValidationError, match="EUR"):
            poster.post(
                cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "5", currency_code="EUR"),
                actor=ACTOR,
            )
        assert temp_db.list_transactions() == []

    def test_duplicate_reference(self, poster, temp_db, sample_entity, sample_account):
        poster.post(
            cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "5", transaction_reference="REF-1"),
            actor=ACTOR,
        )
        audit_count = len(temp_db.list_audit_records())

        with pytest.raises(ConflictError, match="REF-1"):
            poster.post(
                cash(
                    sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "7", transaction_reference="REF-1"
                ),
                actor=ACTOR,
            )
        assert len(temp_db.list_transactions()) == 1
        assert len(temp_db.list_audit_records()) == audit_count
        assert temp_db.get_bank_account(sample_account.id).current_balance == D("1005")


class TestExchangeRates:
    """Tests for exchange rate resolution."""

    @pytest.fixture
    def eur_account(self, account_service, sample_entity):
        account_id = account_service.create_account(
            entity_id=sample_entity.id,
            account_number="EUR-001",
            account_name="Euro",
            bank_name="Test Bank",
            account_type=AccountType.SAVINGS,
            actor=ACTOR,
            currency_code="EUR",
        )
        return account_service.get_account(account_id)

    def test_rate_looked_up_for_foreign_currency(self, poster, rate_service, sample_entity, eur_account):
        rate_service.set_rate("EUR", "USD", date(2024, 2, 1), D("1.1"))
        rate_service.set_rate("EUR", "USD", date(2024, 4, 1), D("1.3"))

        posted = poster.post(
            cash(sample_entity.id, eur_account.id, TransactionCategory.DEPOSIT, "100"), actor=ACTOR
        )
        assert posted.transaction.currency_code == "EUR"
        assert posted.transaction.exchange_rate == D("1.1")
        assert posted.transaction.amount_base_currency == D("110")

    def test_explicit_rate_wins(self, poster, rate_service, sample_entity, eur_account):
        rate_service.set_rate("EUR", "USD", date(2024, 2, 1), D("1.1"))
        posted = poster.post(
            cash(sample_entity.id, eur_account.id, TransactionCategory.DEPOSIT, "100", exchange_rate=D("1.2")),
            actor=ACTOR,
        )
        assert posted.transaction.exchange_rate == D("1.2")

    def test_missing_rate(self, poster, sample_entity, eur_account):
        with pytest.raises(ValidationError, match="No exchange rate"):
            poster.post(cash(sample_entity.id, eur_account.id, TransactionCategory.DEPOSIT, "100"), actor=ACTOR)


class TestInvestmentPosting:
    """Tests for transactions with asset detail."""

    def test_buy_then_sell(self, poster, temp_db, sample_entity, sample_holding):
        bought = poster.post(trade(sample_entity.id, sample_holding.id, AssetAction.BUY, "5", "150"), actor=ACTOR)
        assert bought.holding.quantity == D("15")
        assert bought.holding.average_cost_price == D("116.6667")
        assert bought.asset_transaction.total_amount == D("750")
        assert bought.asset_transaction.realized_gain_loss == 0

        sold = poster.post(
            trade(sample_entity.id, sample_holding.id, AssetAction.SELL, "6", "140", category=TransactionCategory.SALE),
            actor=ACTOR,
        )
        holding = temp_db.get_holding(sample_holding.id)
        assert holding.quantity == D("9")
        assert holding.average_cost_price == D("116.6667")
        assert abs(sold.asset_transaction.realized_gain_loss - D("140.00")) <= D("0.001")

    def test_oversell_leaves_state_unchanged(self, poster, temp_db, sample_entity, sample_holding):
        audit_count = len(temp_db.list_audit_records())

        with pytest.raises(ValidationError, match="Cannot sell 11"):
            poster.post(
                trade(
                    sample_entity.id, sample_holding.id, AssetAction.SELL, "11", "120", category=TransactionCategory.SALE
                ),
                actor=ACTOR,
            )

        holding = temp_db.get_holding(sample_holding.id)
        assert holding.quantity == D("10")
        assert holding.average_cost_price == D("100")
        assert temp_db.list_transactions() == []
        assert len(temp_db.list_audit_records()) == audit_count

    def test_purchase_with_account_and_holding(self, poster, temp_db, sample_entity, sample_account, sample_holding):
        posted = poster.post(
            NewTransaction(
                entity_id=sample_entity.id,
                transaction_date=date(2024, 3, 1),
                category=TransactionCategory.PAYMENT,
                transaction_type=TransactionType.INVESTMENT,
                amount=D("500"),
                account_id=sample_account.id,
                asset_detail=AssetDetail(
                    action=AssetAction.BUY,
                    quantity=D("5"),
                    price_per_unit=D("100"),
                    fees_and_charges=D("2.50"),
                    holding_id=sample_holding.id,
                ),
            ),
            actor=ACTOR,
        )
        assert posted.account.current_balance == D("500")
        assert posted.holding.quantity == D("15")
        assert posted.asset_transaction.net_amount == D("497.50")

    def test_holding_of_other_entity(self, poster, entity_service, sample_holding):
        other_id = entity_service.create_entity(EntityType.PERSON, "John", actor=ACTOR)
        with pytest.raises(ValidationError, match="does not belong"):
            poster.post(trade(other_id, sample_holding.id, AssetAction.BUY, "1", "1"), actor=ACTOR)

    def test_detail_requires_target(self, poster, sample_entity):
        with pytest.raises(ValidationError, match="requires a holding"):
            poster.post(trade(sample_entity.id, None, AssetAction.BUY, "1", "1"), actor=ACTOR)

    def test_dividend_detail_keeps_position(self, poster, sample_entity, sample_account, sample_holding):
        posted = poster.post(
            NewTransaction(
                entity_id=sample_entity.id,
                transaction_date=date(2024, 3, 1),
                category=TransactionCategory.DIVIDEND,
                transaction_type=TransactionType.INCOME,
                amount=D("20"),
                account_id=sample_account.id,
                asset_detail=AssetDetail(action=AssetAction.DIVIDEND, holding_id=sample_holding.id),
            ),
            actor=ACTOR,
        )
        assert posted.holding.quantity == D("10")
        assert posted.account.current_balance == D("1020")
        assert posted.asset_transaction.action == AssetAction.DIVIDEND

    def test_detail_on_asset_item(self, poster, balance_sheet_service, sample_entity):
        item_id = balance_sheet_service.add_asset(sample_entity.id, "Art", "Painting", D("5000"), actor=ACTOR)
        posted = poster.post(
            NewTransaction(
                entity_id=sample_entity.id,
                transaction_date=date(2024, 3, 1),
                category=TransactionCategory.PURCHASE,
                transaction_type=TransactionType.INVESTMENT,
                amount=D("5000"),
                asset_detail=AssetDetail(
                    action=AssetAction.BUY, quantity=D("1"), price_per_unit=D("5000"), asset_liability_id=item_id
                ),
            ),
            actor=ACTOR,
        )
        assert posted.holding is None
        assert posted.asset_transaction.asset_liability_id == item_id


class TestAuditOnPost:
    """Tests for audit records written by postings."""

    def test_one_insert_per_posting(self, poster, temp_db, sample_entity, sample_account, sample_holding):
        posted = poster.post(
            NewTransaction(
                entity_id=sample_entity.id,
                transaction_date=date(2024, 3, 1),
                category=TransactionCategory.PAYMENT,
                transaction_type=TransactionType.INVESTMENT,
                amount=D("750"),
                account_id=sample_account.id,
                transaction_reference="BUY-1",
                asset_detail=AssetDetail(
                    action=AssetAction.BUY, quantity=D("5"), price_per_unit=D("150"), holding_id=sample_holding.id
                ),
            ),
            actor=ACTOR,
        )

        inserts = [
            r for r in temp_db.list_audit_records(table_name="transactions") if r.action == AuditAction.INSERT
        ]
        assert len(inserts) == 1
        record = inserts[0]
        assert record.record_id == posted.transaction.id
        assert record.old_values is None
        assert record.changed_by == ACTOR
        assert record.new_values["amount"] == "750.0000"
        assert record.new_values["category"] == "Payment"
        assert record.new_values["transaction_date"] == "2024-03-01"
        assert record.new_values["asset_detail"]["action"] == "Buy"
        assert record.new_values["asset_detail"]["quantity"] == "5.00000000"

        account_updates = [
            r for r in temp_db.list_audit_records(table_name="bank_accounts", record_id=sample_account.id)
            if r.action == AuditAction.UPDATE
        ]
        assert len(account_updates) == 1
        assert account_updates[0].old_values["current_balance"] == "1000.0000"
        assert account_updates[0].new_values["current_balance"] == "250.0000"

        holding_updates = [
            r for r in temp_db.list_audit_records(table_name="holdings", record_id=sample_holding.id)
            if r.action == AuditAction.UPDATE
        ]
        assert len(holding_updates) == 1
        assert holding_updates[0].new_values["quantity"] == "15.00000000"

    def test_no_account_update_for_zero_effect(self, poster, temp_db, sample_entity, sample_account):
        poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.TRANSFER, "10"), actor=ACTOR)
        updates = [
            r for r in temp_db.list_audit_records(table_name="bank_accounts") if r.action == AuditAction.UPDATE
        ]
        assert updates == []

    def test_audit_failure_rolls_back_posting(self, temp_db, rate_service, sample_entity, sample_account):
        class FailingRecorder:
            def record_insert(self, *args, **kwargs):
                raise StorageError("audit log unavailable")

            def record_update(self, *args, **kwargs):
                raise StorageError("audit log unavailable")

        poster = TransactionPoster(temp_db, recorder=FailingRecorder(), rates=rate_service, retry_delay=0)
        with pytest.raises(StorageError):
            poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "10"), actor=ACTOR)

        assert temp_db.list_transactions() == []
        assert temp_db.get_bank_account(sample_account.id).current_balance == D("1000")


class TestRetries:
    """Tests for retry on concurrency conflicts."""

    def test_conflict_retried(self, poster, sample_entity, sample_account, monkeypatch):
        original = poster._post_once
        calls = []

        def flaky(*args):
            calls.append(1)
            if len(calls) < 3:
                raise ConcurrencyConflict("simulated")
            return original(*args)

        monkeypatch.setattr(poster, "_post_once", flaky)
        posted = poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "10"), actor=ACTOR)

        assert len(calls) == 3
        assert posted.account.current_balance == D("1010")

    def test_conflict_surfaces_after_max_retries(self, temp_db, sample_entity, sample_account, monkeypatch):
        poster = TransactionPoster(temp_db, max_retries=2, retry_delay=0)
        calls = []

        def always_conflicts(*args):
            calls.append(1)
            raise ConcurrencyConflict("simulated")

        monkeypatch.setattr(poster, "_post_once", always_conflicts)
        with pytest.raises(ConcurrencyConflict):
            poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "10"), actor=ACTOR)
        assert len(calls) == 3

    def test_validation_errors_not_retried(self, poster, sample_entity, sample_account, monkeypatch):
        calls = []

        def invalid(*args):
            calls.append(1)
            raise ValidationError("bad")

        monkeypatch.setattr(poster, "_post_once", invalid)
        with pytest.raises(ValidationError):
            poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "10"), actor=ACTOR)
        assert len(calls) == 1


class TestCorporateActionOnHolding:
    """Tests for applying actions without a transaction row."""

    def test_split(self, poster, temp_db, sample_holding):
        result = poster.apply_corporate_action(sample_holding.id, AssetAction.SPLIT, D("2"), D("0"), actor=ACTOR)

        assert result.quantity == D("20")
        holding = temp_db.get_holding(sample_holding.id)
        assert holding.quantity == D("20")
        assert holding.average_cost_price == D("50")
        assert temp_db.list_transactions() == []

        updates = temp_db.list_audit_records(table_name="holdings", record_id=sample_holding.id)
        assert [r.action for r in updates] == [AuditAction.INSERT, AuditAction.UPDATE]

    def test_pass_through_writes_no_audit(self, poster, temp_db, sample_holding):
        poster.apply_corporate_action(sample_holding.id, AssetAction.RIGHTS, D("1"), D("1"), actor=ACTOR)
        records = temp_db.list_audit_records(table_name="holdings", record_id=sample_holding.id)
        assert len(records) == 1

    def test_missing_holding(self, poster):
        with pytest.raises(NotFoundError):
            poster.apply_corporate_action(999, AssetAction.SPLIT, D("2"), D("0"), actor=ACTOR)


class TestReversal:
    """Tests for reversing posted transactions."""

    def test_reverse_deposit(self, poster, temp_db, account_service, sample_entity, sample_account):
        posted = poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "200"), actor=ACTOR)
        assert posted.account.current_balance == D("1200")

        reversal = poster.reverse(posted.transaction.id, actor=ACTOR, reversal_date=date(2024, 3, 5))

        assert reversal.transaction.reverses_transaction_id == posted.transaction.id
        assert reversal.transaction.category == TransactionCategory.DEPOSIT
        assert reversal.transaction.transaction_date == date(2024, 3, 5)
        assert reversal.account.current_balance == D("1000")
        assert account_service.verify_balance(sample_account.id).is_consistent

    def test_reverse_withdrawal(self, poster, sample_entity, sample_account):
        posted = poster.post(
            cash(sample_entity.id, sample_account.id, TransactionCategory.WITHDRAWAL, "300"), actor=ACTOR
        )
        reversal = poster.reverse(posted.transaction.id, actor=ACTOR)
        assert reversal.account.current_balance == D("1000")

    def test_reverse_only_once(self, poster, sample_entity, sample_account):
        posted = poster.post(cash(sample_entity.id, sample_account.id, TransactionCategory.DEPOSIT, "200"), actor=ACTOR)
        reversal = poster.reverse(posted.transaction.id, actor=ACTOR)

        with pytest.raises(ConflictError, match="already been reversed"):
            poster.reverse(posted.transaction.id, actor=ACTOR)
        with pytest.raises(ValidationError, match="itself a reversal"):
            poster.reverse(reversal.transaction.id, actor=ACTOR)

    def test_cannot_reverse_holding_change(self, poster, sample_entity, sample_holding):
        posted = poster.post(trade(sample_entity.id, sample_holding.id, AssetAction.BUY, "5", "150"), actor=ACTOR)
        with pytest.raises(ValidationError, match="compensating"):
            poster.reverse(posted.transaction.id, actor=ACTOR)

    def test_reverse_missing(self, poster):
        with pytest.raises(NotFoundError):
            poster.reverse(12345, actor=ACTOR)
