"""Text-line based receipt item extraction."""

import re

from tabscan.domain.extraction import ExtractedItem

from .classifier import classify_line
from .common import ADDRESS_NAME_WORDS, clean_item_name, contains_non_item_keyword, normalize_line
from .dedupe import dedupe_items
from .money import find_money_amounts

LEADING_QUANTITY_PATTERN = re.compile(r"^(\d{1,3})\s*[xX]?\s+")

MAX_NAME_TOKENS = 8
MAX_FALLBACK_ITEMS = 12


def is_likely_item_name(name: str) -> bool:
    """Return True if the cleaned name is plausible as a purchasable item."""
    trimmed = clean_item_name(name)
    if len(trimmed) < 2:
        return False
    if not any(ch.isalpha() for ch in trimmed):
        return False
    if len(trimmed.split(" ")) > MAX_NAME_TOKENS:
        return False

    lower = trimmed.lower()
    if contains_non_item_keyword(lower):
        return False
    if any(word in lower for word in ADDRESS_NAME_WORDS):
        return False
    return True


def _split_leading_quantity(text: str) -> tuple[int, str]:
    """Consume a leading "2", "2x" or "2 x" quantity token from the text."""
    match = LEADING_QUANTITY_PATTERN.match(text)
    if not match:
        return 1, text
    return max(1, int(match.group(1))), text[match.end() :]


def parse_item_line(line: str) -> ExtractedItem | None:
    """
    Parse a single line as "[qty] name price".

    The rightmost amount is taken as the line total; anything after it is ignored.

    Returns:
        The parsed item, or None if the line has no positive price or an implausible name.
    """
    normalized = normalize_line(line)
    if len(normalized) <= 2:
        return None
    if classify_line(normalized) == "metadata":
        return None

    amounts = find_money_amounts(normalized)
    if not amounts or amounts[-1].amount <= 0:
        return None
    price = amounts[-1]

    quantity, name = _split_leading_quantity(normalized[: price.start])
    cleaned = clean_item_name(name)
    if not is_likely_item_name(cleaned):
        return None
    return ExtractedItem(name=cleaned, quantity=quantity, price=price.amount)


def parse_items(lines: list[str]) -> list[ExtractedItem]:
    """Primary pass: parse every priced item line, then drop duplicates."""
    parsed: list[ExtractedItem] = []
    for line in lines:
        item = parse_item_line(line)
        if item is not None:
            parsed.append(item)
    return dedupe_items(parsed)


def fallback_items(lines: list[str]) -> list[ExtractedItem]:
    """
    Permissive pass used only when the primary pass finds nothing.

    Every non-metadata line becomes a quantity-1 candidate, with the rightmost
    amount as its price when one exists. Capped to bound noise from bad scans.
    """
    candidates: list[ExtractedItem] = []
    for line in lines:
        normalized = normalize_line(line)
        if not normalized:
            continue
        if classify_line(normalized) == "metadata":
            continue

        amounts = find_money_amounts(normalized)
        name = normalized
        price = None
        if amounts:
            price = amounts[-1].amount
            name = normalized[: amounts[-1].start]

        cleaned = clean_item_name(name)
        if not is_likely_item_name(cleaned):
            continue
        candidates.append(ExtractedItem(name=cleaned, quantity=1, price=price))

    return dedupe_items(candidates)[:MAX_FALLBACK_ITEMS]
