"""Composable receipt text parser components."""

from .classifier import classify_line, looks_like_metadata
from .common import clean_item_name, normalize_line, normalize_lines
from .dedupe import dedupe_items
from .items_text_parser import fallback_items, is_likely_item_name, parse_item_line, parse_items
from .money import find_money_amounts, parse_currency
from .totals_parser import extract_receipt_total

__all__ = [
    "classify_line",
    "clean_item_name",
    "dedupe_items",
    "extract_receipt_total",
    "fallback_items",
    "find_money_amounts",
    "is_likely_item_name",
    "looks_like_metadata",
    "normalize_line",
    "normalize_lines",
    "parse_currency",
    "parse_item_line",
    "parse_items",
]
