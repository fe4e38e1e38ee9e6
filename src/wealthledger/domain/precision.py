"""Fixed-point precision helpers.

Every stored number is a Decimal with a fixed number of fractional digits:
money and prices carry 4, quantities 8 and exchange rates 6.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

MONEY_PLACES = Decimal("0.0001")
QUANTITY_PLACES = Decimal("0.00000001")
RATE_PLACES = Decimal("0.000001")

ZERO = Decimal("0")

Number = Union[Decimal, int, str]


def to_decimal(value: Number) -> Decimal:
    """Convert an int, str or Decimal to Decimal. Floats are refused."""
    if isinstance(value, float):
        raise TypeError("Binary floats are not accepted; pass a Decimal or a string")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def quantize_money(value: Number) -> Decimal:
    """Round to 4 fractional digits (amounts, prices, cost)."""
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def quantize_quantity(value: Number) -> Decimal:
    """Round to 8 fractional digits (holding quantities)."""
    return to_decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def quantize_rate(value: Number) -> Decimal:
    """Round to 6 fractional digits (exchange rates)."""
    return to_decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
