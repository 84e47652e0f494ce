"""Core domain models for receipt text extraction.

This module provides the data models used throughout the project:
- RawTextLine: recognized text with page and position
- ExtractedItem, Extraction: extraction results
- LocationHint: capture location forwarded to the remote service

Usage:
    from tabscan.domain import Extraction, ExtractedItem
"""

from tabscan.domain.extraction import (
    ClassificationLabel,
    ExtractedItem,
    Extraction,
    LocationHint,
    MoneyAmount,
    RawTextLine,
    extraction_to_dict,
)

__all__ = [
    "ClassificationLabel",
    "ExtractedItem",
    "Extraction",
    "LocationHint",
    "MoneyAmount",
    "RawTextLine",
    "extraction_to_dict",
]
