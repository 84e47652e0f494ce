"""Shared constants and helpers for receipt text parsing."""

import re

WHITESPACE_RUN = re.compile(r"\s+")
LEADING_NON_WORD = re.compile(r"^\W+")

# Characters trimmed from both ends of an item name
NAME_EDGE_CHARS = "-:|_ \t"

# Receipt boilerplate keywords. Alphabetic keywords must start a word but may run
# on into digits or a suffix ("TAX1", "VISA1234", "Taxable"); "Vegetable" does not
# hit "table".
NON_ITEM_WORD_KEYWORDS = (
    "subtotal",
    "sub total",
    "grand total",
    "total",
    "total due",
    "amount due",
    "balance due",
    "tax",
    "taxes",
    "tip",
    "tips",
    "gratuity",
    "change",
    "cash",
    "payment",
    "tender",
    "tendered",
    "visa",
    "mastercard",
    "amex",
    "discover",
    "debit",
    "credit",
    "receipt",
    "invoice",
    "merchant",
    "terminal",
    "auth",
    "authorization",
    "approval",
    "approved",
    "reference",
    "ticket",
    "table",
    "guest",
    "guests",
    "server",
    "cashier",
    "store",
    "location",
    "phone",
    "tel",
    "address",
    "thank you",
    "survey",
    "visit us",
    "loyalty",
    "rewards",
)
NON_ITEM_SUBSTRING_KEYWORDS = ("ref#", "ref #", "order #", "www.", ".com", "http")

NON_ITEM_KEYWORD_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(word) for word in NON_ITEM_WORD_KEYWORDS) + ")"
    + "|"
    + "|".join(re.escape(token) for token in NON_ITEM_SUBSTRING_KEYWORDS),
    re.IGNORECASE,
)

# Street words that never belong in an item name
ADDRESS_NAME_WORDS = ("street", "avenue", "suite")


def normalize_line(text: str) -> str:
    """Trim a raw line and collapse internal whitespace runs to single spaces."""
    if not text:
        return ""
    return WHITESPACE_RUN.sub(" ", text.strip())


def normalize_lines(lines: list[str]) -> list[str]:
    """Normalize every line and drop the ones that end up empty."""
    normalized = (normalize_line(line) for line in lines)
    return [line for line in normalized if line]


def clean_item_name(text: str) -> str:
    """Clean an item name candidate from stray separators and leading symbols."""
    cleaned = normalize_line(text).strip(NAME_EDGE_CHARS)
    cleaned = LEADING_NON_WORD.sub("", cleaned)
    return cleaned.strip()


def contains_non_item_keyword(text: str) -> bool:
    """Return True if the text mentions receipt boilerplate (totals, payment, footer)."""
    return NON_ITEM_KEYWORD_PATTERN.search(text) is not None
