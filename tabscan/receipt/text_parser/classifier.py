"""Item vs. metadata classification for normalized receipt lines."""

import re

from tabscan.domain.extraction import ClassificationLabel

from .common import contains_non_item_keyword

TIME_PATTERN = re.compile(r"\b\d{1,2}:\d{2}\s?(am|pm)?\b", re.IGNORECASE)
DATE_PATTERN = re.compile(r"\b(\d{1,4}[/-]\d{1,2}[/-]\d{1,4})\b")
PHONE_PATTERN = re.compile(r"(?:\+?1[-.\s]?)?(?:\(\d{3}\)|\b\d{3})[-.\s]?\d{3}[-.\s]?\d{4}\b")
ADDRESS_PATTERN = re.compile(
    r"^\d+\s+.*\b(st|street|ave|avenue|rd|road|blvd|boulevard|dr|drive|ln|lane|way|hwy|highway|suite|ste)\b",
    re.IGNORECASE,
)
# Bare reference numbers like "#004512" or "20231104"
REFERENCE_NUMBER_PATTERN = re.compile(r"^#?\d{4,}$")
URL_LIKE_TOKENS = ("www.", "http", ".com", "@")


def looks_like_metadata(line: str) -> bool:
    """Return True if the line is receipt boilerplate rather than a purchase."""
    if TIME_PATTERN.search(line):
        return True
    if DATE_PATTERN.search(line):
        return True
    if PHONE_PATTERN.search(line):
        return True
    if ADDRESS_PATTERN.search(line):
        return True

    lower = line.lower()
    if any(token in lower for token in URL_LIKE_TOKENS):
        return True
    if REFERENCE_NUMBER_PATTERN.match(line):
        return True

    return contains_non_item_keyword(lower)


def classify_line(line: str) -> ClassificationLabel:
    """Label a normalized line as an item candidate or metadata."""
    return "metadata" if looks_like_metadata(line) else "item"
