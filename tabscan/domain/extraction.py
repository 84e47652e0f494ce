"""Data models for receipt text extraction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

ClassificationLabel = Literal["item", "metadata"]


@dataclass(frozen=True)
class RawTextLine:
    """A single recognized text line before normalization."""

    text: str
    page_index: int = 0
    # Relative position on the page in [0, 1], origin top-left.
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class MoneyAmount:
    """A currency-like substring found in a line, with its parsed value."""

    start: int
    end: int
    amount: Decimal


@dataclass(frozen=True)
class ExtractedItem:
    """A purchasable line item."""

    name: str
    quantity: int = 1
    # Line total for `quantity`, not a unit price.
    price: Decimal | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("item name must not be empty")
        if self.quantity < 1:
            raise ValueError(f"item quantity must be >= 1, got {self.quantity}")
        if self.price is not None and self.price < 0:
            raise ValueError(f"item price must be >= 0, got {self.price}")


@dataclass(frozen=True)
class Extraction:
    """Structured result of parsing one receipt scan."""

    items: tuple[ExtractedItem, ...] = ()
    receipt_total: Decimal | None = None
    merchant_name: str | None = None
    subtotal: Decimal | None = None
    tax: Decimal | None = None
    gratuity: Decimal | None = None

    @classmethod
    def empty(cls) -> Extraction:
        return cls()


@dataclass(frozen=True)
class LocationHint:
    """Where the receipt was captured, forwarded to the remote service."""

    latitude: float
    longitude: float
    captured_at: datetime
    horizontal_accuracy_meters: float | None = None


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def extraction_to_dict(extraction: Extraction) -> dict[str, Any]:
    """Render an Extraction as a JSON-ready dict."""
    return {
        "items": [
            {"name": item.name, "quantity": item.quantity, "price": _money(item.price)} for item in extraction.items
        ],
        "receiptTotal": _money(extraction.receipt_total),
        "merchantName": extraction.merchant_name,
        "subtotal": _money(extraction.subtotal),
        "tax": _money(extraction.tax),
        "gratuity": _money(extraction.gratuity),
    }
