"""Domain model entities for wealthledger.

These are pure data classes representing business concepts, independent of
database schema. Derived values (market value, base-currency amount, net
worth) are properties recomputed on every read and are never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from wealthledger.domain.precision import quantize_money


class EntityType(str, Enum):
    PERSON = "Person"
    COMPANY = "Company"
    BANK = "Bank"
    GOVERNMENT = "Government"
    INVESTMENT_FUND = "Investment_Fund"
    OTHER = "Other"


class AccountType(str, Enum):
    SAVINGS = "Savings"
    CHECKING = "Checking"
    CREDIT = "Credit"
    INVESTMENT = "Investment"
    LOAN = "Loan"
    OTHER = "Other"


class SecurityType(str, Enum):
    STOCK = "Stock"
    BOND = "Bond"
    MUTUAL_FUND = "MutualFund"
    ETF = "ETF"
    CRYPTO = "Crypto"
    COMMODITY = "Commodity"
    OPTION = "Option"
    FUTURE = "Future"
    OTHER = "Other"


class ItemCategory(str, Enum):
    """Side of the balance sheet for non-tradable items."""

    ASSET = "Asset"
    LIABILITY = "Liability"


class ValuationMethod(str, Enum):
    COST = "Cost"
    MARKET = "Market"
    APPRAISAL = "Appraisal"
    DEPRECIATED = "Depreciated"


class LiabilityType(str, Enum):
    MORTGAGE = "Mortgage"
    PERSONAL_LOAN = "PersonalLoan"
    CREDIT_CARD = "CreditCard"
    AUTO_LOAN = "AutoLoan"
    STUDENT_LOAN = "StudentLoan"
    BUSINESS_LOAN = "BusinessLoan"
    OTHER = "Other"


class PaymentFrequency(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUALLY = "SemiAnnually"
    ANNUALLY = "Annually"
    OTHER = "Other"


class TransactionCategory(str, Enum):
    PURCHASE = "Purchase"
    SALE = "Sale"
    TRANSFER = "Transfer"
    DIVIDEND = "Dividend"
    INTEREST = "Interest"
    FEE = "Fee"
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    PAYMENT = "Payment"
    OTHER = "Other"


class TransactionType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"
    INVESTMENT = "Investment"
    LOAN = "Loan"
    TRANSFER = "Transfer"
    TAX = "Tax"
    OTHER = "Other"


class ReconciliationStatus(str, Enum):
    UNRECONCILED = "Unreconciled"
    RECONCILED = "Reconciled"
    DISPUTED = "Disputed"


class AssetAction(str, Enum):
    """Corporate-action style event applied to a holding."""

    BUY = "Buy"
    SELL = "Sell"
    SPLIT = "Split"
    BONUS = "Bonus"
    DIVIDEND = "Dividend"
    RIGHTS = "Rights"
    MERGER = "Merger"
    SPINOFF = "Spinoff"
    OTHER = "Other"


class CalculationMethod(str, Enum):
    MANUAL = "Manual"
    AUTOMATIC = "Automatic"
    HYBRID = "Hybrid"


class AuditAction(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# Signed effect of a posted transaction on its bank account balance
CREDIT_CATEGORIES = frozenset(
    {TransactionCategory.DEPOSIT, TransactionCategory.INTEREST, TransactionCategory.DIVIDEND}
)
DEBIT_CATEGORIES = frozenset(
    {TransactionCategory.WITHDRAWAL, TransactionCategory.FEE, TransactionCategory.PAYMENT}
)


def balance_effect(category: TransactionCategory, amount: Decimal) -> Decimal:
    """Return the signed change a transaction makes to its account balance."""
    if category in CREDIT_CATEGORIES:
        return amount
    if category in DEBIT_CATEGORIES:
        return -amount
    return Decimal("0")


@dataclass(frozen=True)
class Entity:
    """Owner of financial positions (person, company, fund...)."""

    id: int
    entity_type: EntityType
    entity_name: str
    entity_code: Optional[str]
    tax_identification_number: Optional[str]
    country: Optional[str]
    email: Optional[str]
    is_active: bool
    created_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class BankAccount:
    """Cash position owned by exactly one entity."""

    id: int
    entity_id: int
    account_number: str
    account_name: str
    bank_name: str
    account_type: AccountType
    currency_code: str
    opening_balance: Decimal
    current_balance: Decimal
    is_active: bool
    created_at: datetime
    opening_date: Optional[date] = None
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class Holding:
    """Investment position keyed by (entity, symbol, security type)."""

    id: int
    entity_id: int
    symbol: str
    security_name: str
    security_type: SecurityType
    quantity: Decimal
    average_cost_price: Decimal
    current_market_price: Decimal
    is_active: bool
    created_at: datetime
    exchange: Optional[str] = None
    currency_code: str = "USD"
    purchase_date: Optional[date] = None
    updated_by: Optional[str] = None

    @property
    def market_value(self) -> Decimal:
        return quantize_money(self.quantity * self.current_market_price)

    @property
    def cost_basis(self) -> Decimal:
        return quantize_money(self.quantity * self.average_cost_price)

    @property
    def unrealized_gain_loss(self) -> Decimal:
        return self.market_value - self.cost_basis


@dataclass(frozen=True)
class AssetLiability:
    """Non-tradable item such as real estate, a vehicle or a generic liability."""

    id: int
    entity_id: int
    category: ItemCategory
    subcategory: str
    item_name: str
    original_value: Decimal
    current_value: Decimal
    valuation_method: ValuationMethod
    is_active: bool
    created_at: datetime
    description: Optional[str] = None
    currency_code: str = "USD"
    purchase_date: Optional[date] = None
    last_valuation_date: Optional[date] = None


@dataclass(frozen=True)
class Liability:
    """Loan, mortgage or credit line. outstanding_balance is maintained externally."""

    id: int
    entity_id: int
    liability_type: LiabilityType
    liability_name: str
    principal_amount: Decimal
    outstanding_balance: Decimal
    start_date: date
    is_active: bool
    created_at: datetime
    interest_rate: Optional[Decimal] = None
    emi_amount: Optional[Decimal] = None
    maturity_date: Optional[date] = None
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    next_payment_date: Optional[date] = None
    lender_entity_id: Optional[int] = None
    currency_code: str = "USD"


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger entry."""

    id: int
    transaction_reference: Optional[str]
    transaction_date: date
    entity_id: int
    category: TransactionCategory
    transaction_type: TransactionType
    amount: Decimal
    currency_code: str
    exchange_rate: Decimal
    tax_amount: Decimal
    created_at: datetime
    counterparty_entity_id: Optional[int] = None
    account_id: Optional[int] = None
    value_date: Optional[date] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    reconciliation_status: ReconciliationStatus = ReconciliationStatus.UNRECONCILED
    reconciled_date: Optional[date] = None
    reverses_transaction_id: Optional[int] = None
    created_by: Optional[str] = None

    @property
    def amount_base_currency(self) -> Decimal:
        return quantize_money(self.amount * self.exchange_rate)

    @property
    def net_amount(self) -> Decimal:
        return self.amount - self.tax_amount

    @property
    def is_reconciled(self) -> bool:
        return self.reconciliation_status == ReconciliationStatus.RECONCILED

    @property
    def is_reversal(self) -> bool:
        return self.reverses_transaction_id is not None

    @property
    def signed_balance_effect(self) -> Decimal:
        """Change this transaction made to its account balance."""
        effect = balance_effect(self.category, self.amount)
        # A reversal keeps the original category and undoes its effect
        return -effect if self.is_reversal else effect


@dataclass(frozen=True)
class AssetTransaction:
    """Investment detail of a transaction, linked to a holding or an item."""

    id: int
    transaction_id: int
    action: AssetAction
    quantity: Decimal
    price_per_unit: Decimal
    total_amount: Decimal
    fees_and_charges: Decimal
    realized_gain_loss: Decimal
    holding_id: Optional[int] = None
    asset_liability_id: Optional[int] = None

    @property
    def net_amount(self) -> Decimal:
        return self.total_amount - self.fees_and_charges


@dataclass(frozen=True)
class NetWorthSnapshot:
    """Dated, idempotent aggregation of an entity's assets and liabilities."""

    id: int
    entity_id: int
    calculation_date: date
    total_assets: Decimal
    total_liabilities: Decimal
    currency_code: str
    calculation_method: CalculationMethod
    includes_unrealized_gains: bool
    notes: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    @property
    def net_worth(self) -> Decimal:
        return self.total_assets - self.total_liabilities


@dataclass(frozen=True)
class ExchangeRate:
    """Conversion rate for a currency pair on a date."""

    id: int
    from_currency: str
    to_currency: str
    rate: Decimal
    rate_date: date
    source: Optional[str] = None


@dataclass(frozen=True)
class AuditRecord:
    """Append-only before/after record of a tracked mutation."""

    id: int
    table_name: str
    record_id: int
    action: AuditAction
    old_values: Optional[dict[str, Any]]
    new_values: Optional[dict[str, Any]]
    changed_by: str
    change_timestamp: datetime
    session_id: Optional[str] = None


# Input records for the poster. These are not persisted as-is.


@dataclass(frozen=True)
class AssetDetail:
    """Investment detail supplied with a new transaction."""

    action: AssetAction
    quantity: Decimal = Decimal("0")
    price_per_unit: Decimal = Decimal("0")
    fees_and_charges: Decimal = Decimal("0")
    total_amount: Optional[Decimal] = None
    holding_id: Optional[int] = None
    asset_liability_id: Optional[int] = None


@dataclass(frozen=True)
class NewTransaction:
    """A transaction submitted for posting."""

    entity_id: int
    transaction_date: date
    category: TransactionCategory
    transaction_type: TransactionType
    amount: Decimal
    currency_code: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    tax_amount: Decimal = Decimal("0")
    account_id: Optional[int] = None
    counterparty_entity_id: Optional[int] = None
    transaction_reference: Optional[str] = None
    value_date: Optional[date] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    asset_detail: Optional[AssetDetail] = None


@dataclass(frozen=True)
class PostedTransaction:
    """Result of a successful posting."""

    transaction: Transaction
    asset_transaction: Optional[AssetTransaction] = None
    account: Optional[BankAccount] = None
    holding: Optional[Holding] = None


@dataclass(frozen=True)
class NetWorthBreakdown:
    """Components of a net worth calculation."""

    cash: Decimal
    investments: Decimal
    other_assets: Decimal
    other_liabilities: Decimal
    loans: Decimal
    items_counted: dict[str, int] = field(default_factory=dict)

    @property
    def total_assets(self) -> Decimal:
        return self.cash + self.investments + self.other_assets

    @property
    def total_liabilities(self) -> Decimal:
        return self.other_liabilities + self.loans

    @property
    def net_worth(self) -> Decimal:
        return self.total_assets - self.total_liabilities
