"""Utility functions for ledgerline."""

from ledgerline.utils.date_parser import parse_date, parse_source_date, format_source_date
from ledgerline.utils.amount_parser import parse_amount
from ledgerline.utils.id_list import parse_id_list

__all__ = [
    "parse_date",
    "parse_source_date",
    "format_source_date",
    "parse_amount",
    "parse_id_list",
]
