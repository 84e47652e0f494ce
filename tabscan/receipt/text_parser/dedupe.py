"""Duplicate collapsing for extracted items."""

from collections.abc import Hashable, Iterable

from tabscan.domain.extraction import ExtractedItem


def dedupe_key(item: ExtractedItem) -> Hashable:
    """Key identifying repeated items; None stands in for a missing price."""
    # Decimal("9.0") and Decimal("9.00") compare and hash equal.
    return (item.name.lower(), item.quantity, item.price)


def dedupe_items(items: Iterable[ExtractedItem]) -> list[ExtractedItem]:
    """Keep the first occurrence of each key, preserving order."""
    seen: set[Hashable] = set()
    deduped: list[ExtractedItem] = []
    for item in items:
        key = dedupe_key(item)
        if key in seen:
            continue
        seen.add(key)
        deduped.append(item)
    return deduped
