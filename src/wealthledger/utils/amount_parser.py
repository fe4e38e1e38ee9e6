"""Amount and quantity parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

from wealthledger.domain.precision import quantize_money, quantize_quantity, quantize_rate


def _clean(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"Empty {what} string")

    # Remove currency symbols, thousands separators and whitespace
    value = re.sub(r"[$€£¥₹]", "", value.strip())
    return value.replace(",", "").replace("_", "").strip()


def _to_decimal(value: str, what: str) -> Decimal:
    cleaned = _clean(value, what)
    try:
        result = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse {what} '{value}'") from e
    if not result.is_finite():
        raise ValueError(f"Could not parse {what} '{value}': not a finite number")
    return result


def parse_amount(amount_str: str) -> Decimal:
    """Parse a money amount into a Decimal with 4 fractional digits.

    Handles "123.45", "$1,234.56" and "-123.45". Amounts are never parsed
    through float.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    return quantize_money(_to_decimal(amount_str, "amount"))


def parse_quantity(quantity_str: str) -> Decimal:
    """Parse a unit quantity or split ratio into a Decimal with 8 fractional digits.

    A ratio may also be written as "N:M" (e.g. "2:1" for a two-for-one split).

    Raises:
        ValueError: If the string cannot be parsed
    """
    if quantity_str and ":" in quantity_str:
        new, _, old = quantity_str.partition(":")
        denominator = _to_decimal(old, "ratio")
        if denominator == 0:
            raise ValueError(f"Could not parse ratio '{quantity_str}': zero denominator")
        return quantize_quantity(_to_decimal(new, "ratio") / denominator)
    return quantize_quantity(_to_decimal(quantity_str, "quantity"))


def parse_rate(rate_str: str) -> Decimal:
    """Parse an exchange rate into a Decimal with 6 fractional digits."""
    return quantize_rate(_to_decimal(rate_str, "rate"))
