from decimal import Decimal

from tabscan.receipt.text_parser import extract_receipt_total
from tabscan.receipt.text_parser.totals_parser import score_total_line


def test_total_beats_subtotal_and_tax() -> None:
    assert extract_receipt_total(["Subtotal 10.00", "Tax 1.00", "Total 11.00"]) == Decimal("11.00")


def test_grand_total_outranks_plain_total() -> None:
    lines = ["Total 18.00", "Tip 3.00", "Grand Total 21.00", "Cash 25.00", "Change 4.00"]

    assert extract_receipt_total(lines) == Decimal("21.00")


def test_amount_due_scores_above_total() -> None:
    assert score_total_line("Amount Due 9.00", 0) == 120
    assert score_total_line("Total 9.00", 0) == 90
    assert score_total_line("Subtotal 9.00", 3) == 3 + 90 - 120


def test_equal_scores_prefer_larger_amount() -> None:
    # "Amount Due" at index 0 and "Total" at index 30 both score 120.
    lines = ["Amount Due 8.00"] + ["Thanks"] * 29 + ["Total 6.00"]

    assert extract_receipt_total(lines) == Decimal("8.00")


def test_bottom_half_fallback_when_every_candidate_is_penalized() -> None:
    lines = ["Tax 1.00", "Tip 2.00", "Cash 40.00"]

    assert extract_receipt_total(lines) == Decimal("40.00")


def test_no_amounts_means_no_total() -> None:
    assert extract_receipt_total(["Cafe Luna", "Thank you"]) is None
    assert extract_receipt_total([]) is None
