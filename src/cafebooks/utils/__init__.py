"""Utility functions for cafebooks."""

from cafebooks.utils.date_parser import parse_date
from cafebooks.utils.amount_parser import parse_amount, to_money

__all__ = ["parse_date", "parse_amount", "to_money"]
