"""Utility functions for flockbook."""

from flockbook.utils.date_parser import parse_date, get_period_range
from flockbook.utils.amount_parser import parse_amount, parse_weight

__all__ = ["parse_date", "get_period_range", "parse_amount", "parse_weight"]
