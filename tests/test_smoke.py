"""Public smoke tests for basic module wiring.

Keep these minimal and free of any real-world data.
"""

from __future__ import annotations


def test_imports() -> None:
    import tabscan.application.receipts
    import tabscan.cli.main
    import tabscan.domain
    import tabscan.receipt.text_parser
    import tabscan.runtime
    import tabscan.runtime.extraction_server

    assert tabscan.application.receipts is not None
    assert tabscan.cli.main is not None
    assert tabscan.domain is not None
    assert tabscan.receipt.text_parser is not None
    assert tabscan.runtime is not None
    assert tabscan.runtime.extraction_server.app is not None
