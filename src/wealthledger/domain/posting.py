"""Transaction posting.

A posting is one unit of work: the transaction row, the bank balance
adjustment, the holding update, the asset detail and the audit records all
commit together or not at all.
"""

import logging
import time
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, TypeVar

from wealthledger.database.base import Database
from wealthledger.domain import audit, errors
from wealthledger.domain.account import require_account_for
from wealthledger.domain.audit import AuditRecorder, record_values
from wealthledger.domain.corporate_actions import (
    POSITION_ACTIONS,
    CorporateActionResult,
    apply_corporate_action,
)
from wealthledger.domain.currency import ExchangeRateService, normalize_currency
from wealthledger.domain.entities import (
    AssetAction,
    AssetDetail,
    NewTransaction,
    PostedTransaction,
    TransactionCategory,
    TransactionType,
    balance_effect,
)
from wealthledger.domain.entity import require_active_entity
from wealthledger.domain.errors import (
    ConcurrencyConflict,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from wealthledger.domain.holding import require_holding_for
from wealthledger.domain.precision import (
    ZERO,
    quantize_money,
    quantize_quantity,
    quantize_rate,
    to_decimal,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _decimal(value, name: str) -> Decimal:
    try:
        return to_decimal(value)
    except (TypeError, InvalidOperation) as e:
        raise ValidationError(f"Invalid {name}: {value!r}") from e


class TransactionPoster:
    """Validates and posts transactions against accounts and holdings."""

    def __init__(
        self,
        db: Database,
        recorder: Optional[AuditRecorder] = None,
        rates: Optional[ExchangeRateService] = None,
        base_currency: str = "USD",
        max_retries: int = 3,
        retry_delay: float = 0.05,
    ):
        """Initialize transaction poster.

        Args:
            db: Database instance
            recorder: Audit recorder (one is created on db if omitted)
            rates: Exchange rate lookup (one is created on db if omitted)
            base_currency: Currency that amount_base_currency is expressed in
            max_retries: Retries after a concurrency conflict before giving up
            retry_delay: Seconds of backoff per attempt (linear)
        """
        self.db = db
        self.recorder = recorder or AuditRecorder(db)
        self.rates = rates or ExchangeRateService(db, base_currency=base_currency)
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @property
    def base_currency(self) -> str:
        return self.rates.base_currency

    def _with_retry(self, operation: Callable[[], T], description: str) -> T:
        attempt = 0
        while True:
            try:
                return operation()
            except ConcurrencyConflict:
                if attempt >= self.max_retries:
                    logger.error("%s failed after %d retries", description, attempt)
                    raise
                attempt += 1
                logger.warning("%s hit a concurrency conflict, retrying (%d/%d)", description, attempt, self.max_retries)
                time.sleep(self.retry_delay * attempt)

    def post(self, new_transaction: NewTransaction, actor: str) -> PostedTransaction:
        """Post a transaction.

        Args:
            new_transaction: Transaction to post
            actor: Who posts it

        Returns:
            PostedTransaction with the stored transaction, asset detail and
            the account/holding state after posting

        Raises:
            ValidationError: If the amount is invalid, a referenced record is
                missing, inactive or owned by another entity, the currencies
                differ, or a sell exceeds the held quantity
            ConflictError: If the transaction reference is already used
            ConcurrencyConflict: If conflicts persist after max_retries
        """
        if not actor:
            raise ValidationError("Actor is required")
        amount, tax_amount = self._validate_amounts(new_transaction)
        return self._with_retry(
            lambda: self._post_once(new_transaction, amount, tax_amount, actor),
            "Posting",
        )

    def _validate_amounts(self, txn: NewTransaction) -> tuple[Decimal, Decimal]:
        category = TransactionCategory(txn.category)
        amount = quantize_money(_decimal(txn.amount, "amount"))
        if amount < ZERO:
            raise ValidationError(f"Amount cannot be negative, got {amount}")
        if amount == ZERO and category != TransactionCategory.OTHER:
            raise ValidationError(f"Amount must be positive for {category.value} transactions")
        tax_amount = quantize_money(_decimal(txn.tax_amount, "tax amount"))
        if tax_amount < ZERO:
            raise ValidationError(f"Tax amount cannot be negative, got {tax_amount}")
        return amount, tax_amount

    def _post_once(
        self, txn: NewTransaction, amount: Decimal, tax_amount: Decimal, actor: str
    ) -> PostedTransaction:
        category = TransactionCategory(txn.category)
        transaction_type = TransactionType(txn.transaction_type)
        detail = txn.asset_detail

        with self.db.unit_of_work():
            require_active_entity(self.db, txn.entity_id)
            if txn.counterparty_entity_id is not None:
                require_active_entity(self.db, txn.counterparty_entity_id)
            if txn.transaction_reference and self.db.transaction_reference_exists(txn.transaction_reference):
                raise ConflictError(errors.duplicate_transaction_reference(txn.transaction_reference))

            # Lock order: account, then holding
            account = None
            if txn.account_id is not None:
                account = require_account_for(self.db, txn.account_id, txn.entity_id, for_update=True)

            if txn.currency_code:
                currency = normalize_currency(txn.currency_code)
            elif account is not None:
                currency = account.currency_code
            else:
                currency = self.base_currency
            if account is not None and account.currency_code != currency:
                raise ValidationError(
                    f"Bank account {account.id} is in {account.currency_code}, transaction is in {currency}"
                )

            holding = None
            action_result: Optional[CorporateActionResult] = None
            if detail is not None:
                holding = self._validate_detail_target(detail, txn.entity_id)
                if holding is not None:
                    action_result = self._run_action(holding, detail)

            rate = self._resolve_rate(txn, currency)

            transaction_id = self.db.create_transaction(
                entity_id=txn.entity_id,
                transaction_date=txn.transaction_date,
                category=category.value,
                transaction_type=transaction_type.value,
                amount=amount,
                currency_code=currency,
                exchange_rate=rate,
                tax_amount=tax_amount,
                account_id=txn.account_id,
                counterparty_entity_id=txn.counterparty_entity_id,
                transaction_reference=txn.transaction_reference,
                value_date=txn.value_date,
                subcategory=txn.subcategory,
                description=txn.description,
                notes=txn.notes,
                actor=actor,
            )

            updates = []
            account_after = account
            effect = balance_effect(category, amount)
            if account is not None and effect != ZERO:
                self.db.set_bank_account_balance(
                    account.id, quantize_money(account.current_balance + effect), actor
                )
                account_after = self.db.get_bank_account(account.id)
                updates.append((audit.BANK_ACCOUNTS, account, account_after))

            holding_after = holding
            asset_transaction = None
            if detail is not None:
                if holding is not None and action_result is not None:
                    if (
                        action_result.quantity != holding.quantity
                        or action_result.average_cost != holding.average_cost_price
                    ):
                        self.db.update_holding_position(
                            holding.id, action_result.quantity, action_result.average_cost, actor
                        )
                        holding_after = self.db.get_holding(holding.id)
                        updates.append((audit.HOLDINGS, holding, holding_after))
                asset_transaction = self._create_detail(transaction_id, detail, action_result)

            transaction = self.db.get_transaction(transaction_id)
            extra = {}
            if asset_transaction is not None:
                extra["asset_detail"] = record_values(asset_transaction)
            self.recorder.record_insert(audit.TRANSACTIONS, transaction, actor, **extra)
            for table_name, before, after in updates:
                self.recorder.record_update(table_name, before, after, actor)

        logger.info(
            "Posted transaction %s (%s) for entity %s by %s",
            transaction.id,
            category.value,
            transaction.entity_id,
            actor,
        )
        return PostedTransaction(
            transaction=transaction,
            asset_transaction=asset_transaction,
            account=account_after,
            holding=holding_after,
        )

    def _validate_detail_target(self, detail: AssetDetail, entity_id: int):
        """Check the holding or item a detail points at. Returns the locked holding, if any."""
        if detail.holding_id is not None:
            return require_holding_for(self.db, detail.holding_id, entity_id, for_update=True)
        if detail.asset_liability_id is not None:
            item = self.db.get_asset_liability(detail.asset_liability_id)
            if item is None:
                raise NotFoundError(errors.asset_liability_not_found(detail.asset_liability_id))
            if not item.is_active:
                raise ValidationError(f"Asset/liability item {item.id} is inactive")
            if item.entity_id != entity_id:
                raise ValidationError(errors.not_owned_by("Asset/liability item", item.id, entity_id))
            return None
        raise ValidationError("Asset detail requires a holding or an asset/liability item")

    def _run_action(self, holding, detail: AssetDetail) -> CorporateActionResult:
        action = AssetAction(detail.action)
        quantity = _decimal(detail.quantity, "quantity")
        if action == AssetAction.SELL and quantity > holding.quantity:
            raise ValidationError(errors.oversell(holding.id, quantity, holding.quantity))
        return apply_corporate_action(
            holding.quantity,
            holding.average_cost_price,
            action,
            quantity,
            _decimal(detail.price_per_unit, "price per unit"),
        )

    def _resolve_rate(self, txn: NewTransaction, currency: str) -> Decimal:
        if txn.exchange_rate is not None:
            rate = quantize_rate(_decimal(txn.exchange_rate, "exchange rate"))
            if rate <= ZERO:
                raise ValidationError(f"Exchange rate must be positive, got {rate}")
            return rate
        if currency == self.base_currency:
            return Decimal("1")
        return self.rates.resolve_rate(currency, txn.transaction_date)

    def _create_detail(
        self, transaction_id: int, detail: AssetDetail, action_result: Optional[CorporateActionResult]
    ):
        quantity = quantize_quantity(_decimal(detail.quantity, "quantity"))
        price = quantize_money(_decimal(detail.price_per_unit, "price per unit"))
        fees = quantize_money(_decimal(detail.fees_and_charges, "fees"))
        if fees < ZERO:
            raise ValidationError(f"Fees cannot be negative, got {fees}")
        if detail.total_amount is not None:
            total = quantize_money(_decimal(detail.total_amount, "total amount"))
        else:
            total = quantize_money(quantity * price)
        self.db.create_asset_transaction(
            transaction_id=transaction_id,
            action=AssetAction(detail.action).value,
            quantity=quantity,
            price_per_unit=price,
            total_amount=total,
            fees_and_charges=fees,
            realized_gain_loss=action_result.realized_gain_loss if action_result else ZERO,
            holding_id=detail.holding_id,
            asset_liability_id=detail.asset_liability_id,
        )
        return self.db.get_asset_transaction(transaction_id)

    def apply_corporate_action(
        self,
        holding_id: int,
        action: AssetAction,
        quantity: Decimal,
        price: Decimal,
        actor: str,
    ) -> CorporateActionResult:
        """Apply an action directly to a stored holding, without a transaction row.

        Used to reprocess or backfill holding state. The change is audited.

        Raises:
            ValidationError: If the holding is missing or inactive, or the action is invalid
            ConcurrencyConflict: If conflicts persist after max_retries
        """
        if not actor:
            raise ValidationError("Actor is required")
        action = AssetAction(action)
        return self._with_retry(
            lambda: self._apply_action_once(holding_id, action, quantity, price, actor),
            "Corporate action",
        )

    def _apply_action_once(
        self, holding_id: int, action: AssetAction, quantity: Decimal, price: Decimal, actor: str
    ) -> CorporateActionResult:
        with self.db.unit_of_work():
            holding = self.db.get_holding(holding_id, for_update=True)
            if holding is None:
                raise NotFoundError(errors.holding_not_found(holding_id))
            if not holding.is_active:
                raise ValidationError(errors.holding_inactive(holding_id))
            result = self._run_action(holding, AssetDetail(action=action, quantity=quantity, price_per_unit=price))
            if result.quantity != holding.quantity or result.average_cost != holding.average_cost_price:
                self.db.update_holding_position(holding_id, result.quantity, result.average_cost, actor)
                self.recorder.record_update(audit.HOLDINGS, holding, self.db.get_holding(holding_id), actor)
        logger.info("Applied %s to holding %s by %s", action.value, holding_id, actor)
        return result

    def reverse(
        self, transaction_id: int, actor: str, reversal_date: Optional[date] = None
    ) -> PostedTransaction:
        """Post an offsetting transaction that undoes a cash transaction.

        The reversal keeps the original category and amount, references the
        original through reverses_transaction_id and applies the inverse
        balance effect.

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: If it is itself a reversal or it changed a holding
            ConflictError: If it has already been reversed
        """
        if not actor:
            raise ValidationError("Actor is required")
        return self._with_retry(
            lambda: self._reverse_once(transaction_id, actor, reversal_date or date.today()),
            "Reversal",
        )

    def _reverse_once(self, transaction_id: int, actor: str, reversal_date: date) -> PostedTransaction:
        with self.db.unit_of_work():
            original = self.db.get_transaction(transaction_id)
            if original is None:
                raise NotFoundError(errors.transaction_not_found(transaction_id))
            if original.is_reversal:
                raise ValidationError(f"Transaction {transaction_id} is itself a reversal")
            if self.db.get_reversal_of(transaction_id) is not None:
                raise ConflictError(f"Transaction {transaction_id} has already been reversed")
            detail = self.db.get_asset_transaction(transaction_id)
            if detail is not None and detail.holding_id is not None and detail.action in POSITION_ACTIONS:
                raise ValidationError(
                    f"Transaction {transaction_id} changed holding {detail.holding_id}; "
                    "post a compensating action instead"
                )

            account = None
            if original.account_id is not None:
                account = require_account_for(
                    self.db, original.account_id, original.entity_id, for_update=True
                )

            reversal_id = self.db.create_transaction(
                entity_id=original.entity_id,
                transaction_date=reversal_date,
                category=original.category.value,
                transaction_type=original.transaction_type.value,
                amount=original.amount,
                currency_code=original.currency_code,
                exchange_rate=original.exchange_rate,
                tax_amount=original.tax_amount,
                account_id=original.account_id,
                counterparty_entity_id=original.counterparty_entity_id,
                subcategory=original.subcategory,
                description=f"Reversal of transaction {transaction_id}",
                reverses_transaction_id=transaction_id,
                actor=actor,
            )
            reversal = self.db.get_transaction(reversal_id)

            account_after = account
            if account is not None and reversal.signed_balance_effect != ZERO:
                self.db.set_bank_account_balance(
                    account.id, quantize_money(account.current_balance + reversal.signed_balance_effect), actor
                )
                account_after = self.db.get_bank_account(account.id)

            self.recorder.record_insert(audit.TRANSACTIONS, reversal, actor)
            if account_after is not account:
                self.recorder.record_update(audit.BANK_ACCOUNTS, account, account_after, actor)

        logger.info("Reversed transaction %s with %s by %s", transaction_id, reversal_id, actor)
        return PostedTransaction(transaction=reversal, account=account_after)
