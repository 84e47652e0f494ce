"""Receipt workflows."""

from tabscan.application.receipts.extract import (
    ExtractionRequest,
    ExtractionRun,
    extract_receipt,
    extract_receipt_sync,
    run_extraction,
)

__all__ = [
    "ExtractionRequest",
    "ExtractionRun",
    "run_extraction",
    "extract_receipt",
    "extract_receipt_sync",
]
