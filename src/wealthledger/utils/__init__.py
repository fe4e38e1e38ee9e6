"""Utility functions for wealthledger."""

from wealthledger.utils.date_parser import parse_date
from wealthledger.utils.amount_parser import parse_amount, parse_quantity, parse_rate

__all__ = ["parse_date", "parse_amount", "parse_quantity", "parse_rate"]
