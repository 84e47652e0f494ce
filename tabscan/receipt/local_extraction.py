"""Local heuristic pipeline: recognized lines -> Extraction."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import cmp_to_key

from tabscan.domain.extraction import Extraction, RawTextLine

from .text_parser import extract_receipt_total, fallback_items, normalize_lines, parse_items

# Lines whose vertical centers differ by less than this are treated as one row
SAME_ROW_Y_TOLERANCE = 0.015


@dataclass(frozen=True)
class LocalPipelineResult:
    """Outcome of the local pipeline, with whether the permissive pass produced the items."""

    extraction: Extraction
    used_fallback_pass: bool


def _compare_reading_order(lhs: RawTextLine, rhs: RawTextLine) -> int:
    if lhs.page_index != rhs.page_index:
        return -1 if lhs.page_index < rhs.page_index else 1
    if abs(lhs.y - rhs.y) > SAME_ROW_Y_TOLERANCE:
        return -1 if lhs.y < rhs.y else 1
    if lhs.x != rhs.x:
        return -1 if lhs.x < rhs.x else 1
    return 0


def order_text_lines(lines: Iterable[RawTextLine]) -> list[RawTextLine]:
    """Sort lines by page, then top to bottom, then left to right within a row."""
    return sorted(lines, key=cmp_to_key(_compare_reading_order))


def run_local_pipeline(lines: list[str]) -> LocalPipelineResult:
    """
    Run normalize -> classify -> parse -> dedupe, plus total extraction.

    The permissive fallback pass runs only if the primary pass found no items.
    """
    normalized = normalize_lines(lines)
    items = parse_items(normalized)
    used_fallback_pass = False
    if not items:
        items = fallback_items(normalized)
        used_fallback_pass = True

    extraction = Extraction(
        items=tuple(items),
        receipt_total=extract_receipt_total(normalized),
    )
    return LocalPipelineResult(extraction=extraction, used_fallback_pass=used_fallback_pass)


def extract_from_lines(lines: list[str]) -> Extraction:
    """Extract items and total from plain text lines already in reading order."""
    return run_local_pipeline(lines).extraction


def extract_from_text_lines(lines: Iterable[RawTextLine]) -> Extraction:
    """Extract items and total from positioned lines of one or more pages."""
    return extract_from_lines([line.text for line in order_text_lines(lines)])
