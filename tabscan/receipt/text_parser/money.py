"""Money amount matching and separator-aware parsing."""

import re
from decimal import Decimal, InvalidOperation

from tabscan.domain.extraction import MoneyAmount

# Optional "$", 1-6 integer digits, then either thousands groups with an
# optional two-digit fraction, or a bare two-digit fraction.
MONEY_PATTERN = re.compile(
    r"(?:\$\s*)?(?<!\d)\d{1,6}(?:(?:[.,]\d{3})+(?:[.,]\d{2})?|[.,]\d{2})(?!\d)"
)


def parse_currency(raw: str) -> Decimal | None:
    """
    Convert a currency-like string to a Decimal.

    Separator rules:
    - both "," and "." present: whichever occurs last is the decimal separator
    - only ",": decimal when exactly two digits follow the final comma
    - only ".": decimal when exactly two digits follow the final dot
    - neither: plain integer

    Returns:
        Parsed amount, or None if the cleaned text is not a number.
    """
    cleaned = raw.replace("$", "").replace(" ", "").replace("'", "")
    if not cleaned:
        return None

    has_comma = "," in cleaned
    has_dot = "." in cleaned
    if has_comma and has_dot:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif has_comma:
        if len(cleaned.rsplit(",", 1)[1]) == 2:
            head, tail = cleaned.rsplit(",", 1)
            cleaned = head.replace(",", "") + "." + tail
        else:
            cleaned = cleaned.replace(",", "")
    elif has_dot:
        if len(cleaned.rsplit(".", 1)[1]) == 2:
            head, tail = cleaned.rsplit(".", 1)
            cleaned = head.replace(".", "") + "." + tail
        else:
            cleaned = cleaned.replace(".", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def find_money_amounts(line: str) -> list[MoneyAmount]:
    """Return every money amount in the line, left to right."""
    amounts: list[MoneyAmount] = []
    for match in MONEY_PATTERN.finditer(line):
        amount = parse_currency(match.group(0))
        if amount is None:
            continue
        amounts.append(MoneyAmount(start=match.start(), end=match.end(), amount=amount))
    return amounts


def rightmost_amount(line: str) -> MoneyAmount | None:
    """Return the last money amount in the line, if any."""
    amounts = find_money_amounts(line)
    return amounts[-1] if amounts else None
