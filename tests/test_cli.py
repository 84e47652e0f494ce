import json
from pathlib import Path

import pytest

from tabscan.cli.main import main
from tabscan.domain.extraction import RawTextLine


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    assert "Commands:" in capsys.readouterr().out


def test_parse_lines_from_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "receipt.txt"
    source.write_text("Cafe Luna\n123 Main St\n2 Latte 9.00\nCroissant 4.25\nTotal 14.31\n")

    assert main(["parse-lines", str(source)]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["items"] == [
        {"name": "Latte", "quantity": 2, "price": 9.0},
        {"name": "Croissant", "quantity": 1, "price": 4.25},
    ]
    assert output["receiptTotal"] == 14.31


def test_parse_lines_missing_file(tmp_path: Path) -> None:
    assert main(["parse-lines", str(tmp_path / "missing.txt")]) == 1


def test_endpoints_lists_candidates(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("TABSCAN_RECEIPT_PROCESSING_URL", "https://receipts.example.com")

    assert main(["endpoints"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["processingEndpoints"] == ["https://receipts.example.com/process-receipt"]
    assert output["ocrServiceUrl"] == "http://localhost:8001"


def test_endpoints_set_persists_url(isolated_settings: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["endpoints", "--set", "receipts.example.com"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["processingEndpoints"] == ["https://receipts.example.com/process-receipt"]
    assert "receipts.example.com" in (isolated_settings / "settings.toml").read_text()


def test_endpoints_set_rejects_invalid_url() -> None:
    assert main(["endpoints", "--set", "ftp://example.com"]) == 1


def test_extract_missing_image(tmp_path: Path) -> None:
    assert main(["extract", str(tmp_path / "missing.jpg"), "--local-only"]) == 1


def test_extract_requires_both_coordinates(tmp_path: Path, receipt_png: bytes) -> None:
    image = tmp_path / "receipt.png"
    image.write_bytes(receipt_png)

    assert main(["extract", str(image), "--lat", "43.6"]) == 1


def test_extract_local_only(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, receipt_png: bytes, capsys: pytest.CaptureFixture[str]
) -> None:
    class FakeRecognizer:
        def __init__(self, ocr_url: str | None = None) -> None:
            self.ocr_url = ocr_url

        async def recognize(self, image_bytes: bytes, page_index: int = 0) -> list[RawTextLine]:
            return [RawTextLine("Croissant 4.25", page_index=page_index), RawTextLine("Total 4.25", y=0.5)]

    monkeypatch.setattr("tabscan.runtime.text_recognition.OcrServiceRecognizer", FakeRecognizer)
    image = tmp_path / "receipt.png"
    image.write_bytes(receipt_png)

    assert main(["extract", str(image), "--local-only"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["items"] == [{"name": "Croissant", "quantity": 1, "price": 4.25}]
    assert output["receiptTotal"] == 4.25
