"""Exchange rate lookup.

Rates are consumed, not sourced: they are recorded by the caller and looked
up by date, falling back to the most recent earlier rate.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from wealthledger.database.base import Database
from wealthledger.domain.errors import ValidationError
from wealthledger.domain.precision import ZERO, quantize_rate, to_decimal

ONE = Decimal("1")


def normalize_currency(code: str) -> str:
    code = (code or "").strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValidationError(f"Invalid currency code '{code}'")
    return code


class ExchangeRateService:
    """Records and resolves currency conversion rates."""

    def __init__(self, db: Database, base_currency: str = "USD"):
        self.db = db
        self.base_currency = normalize_currency(base_currency)

    def set_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate_date: date,
        rate: Decimal,
        source: Optional[str] = None,
    ) -> int:
        """Record the rate for a currency pair on a date, replacing any existing one.

        Raises:
            ValidationError: If a code is malformed or the rate is not positive
        """
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)
        if from_currency == to_currency:
            raise ValidationError("Cannot record a rate between a currency and itself")
        rate = quantize_rate(to_decimal(rate))
        if rate <= ZERO:
            raise ValidationError(f"Exchange rate must be positive, got {rate}")
        return self.db.set_exchange_rate(from_currency, to_currency, rate_date, rate, source)

    def find_rate(self, from_currency: str, to_currency: str, on_date: date) -> Optional[Decimal]:
        """Return the rate on or before on_date, trying the inverse pair too."""
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)
        if from_currency == to_currency:
            return ONE

        direct = self.db.get_exchange_rate(from_currency, to_currency, on_date)
        if direct is not None:
            return direct.rate
        inverse = self.db.get_exchange_rate(to_currency, from_currency, on_date)
        if inverse is not None:
            return quantize_rate(ONE / inverse.rate)
        return None

    def resolve_rate(self, currency_code: str, on_date: date) -> Decimal:
        """Return the rate converting currency_code into the base currency.

        Raises:
            ValidationError: If no rate is recorded on or before on_date
        """
        rate = self.find_rate(currency_code, self.base_currency, on_date)
        if rate is None:
            raise ValidationError(
                f"No exchange rate {currency_code}/{self.base_currency} on or before {on_date.isoformat()}"
            )
        return rate
