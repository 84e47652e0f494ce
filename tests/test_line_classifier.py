import pytest

from tabscan.receipt.text_parser import classify_line, looks_like_metadata, parse_item_line


@pytest.mark.parametrize(
    "line",
    [
        "(555) 123-4567",
        "+1 555-123-4567",
        "555.123.4567",
        "123 Main St",
        "12:30 PM",
        "14:05",
        "11/04/2023",
        "2023-11-04",
        "www.cafeluna.com",
        "hello@cafeluna.ca",
        "#004512",
        "20231104",
        "Subtotal 13.25",
        "Tax 1.06",
        "Total 14.31",
        "VISA ****1234",
        "Thank you for visiting",
    ],
)
def test_metadata_lines(line: str) -> None:
    assert classify_line(line) == "metadata"
    assert parse_item_line(line) is None


@pytest.mark.parametrize("line", ["TAX1 1.06", "VISA1234 14.31", "Taxable Amt 12.00", "Cashback 20.00"])
def test_keywords_glued_to_digits_or_suffixes_are_metadata(line: str) -> None:
    assert classify_line(line) == "metadata"
    assert parse_item_line(line) is None


@pytest.mark.parametrize("line", ["2 Latte 9.00", "Croissant 4.25", "Vegetable Soup 5.50"])
def test_item_lines(line: str) -> None:
    assert classify_line(line) == "item"


def test_keyword_match_is_case_insensitive() -> None:
    assert looks_like_metadata("GRAND TOTAL 20.00")
    assert looks_like_metadata("Change Due 0.50")
