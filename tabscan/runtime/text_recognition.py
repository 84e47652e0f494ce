"""Text recognition backed by the local PaddleOCR service."""

from __future__ import annotations

import time
from typing import Protocol

import httpx

from tabscan.domain.errors import LocalRecognitionFailure
from tabscan.domain.extraction import RawTextLine
from tabscan.receipt.ocr_helpers import OCR_IMAGE_PADDING, detections_to_text_lines, prepare_receipt_jpeg
from tabscan.runtime.endpoints import resolve_ocr_service_url
from tabscan.runtime.logging import get_logger
from tabscan.runtime.settings import bundled_seconds

logger = get_logger(__name__)

DEFAULT_OCR_TIMEOUT_SECONDS = 60.0


class TextRecognizer(Protocol):
    """Anything that turns one page image into positioned text lines."""

    async def recognize(self, image_bytes: bytes, page_index: int = 0) -> list[RawTextLine]: ...


class OcrServiceRecognizer:
    """Recognizes text by posting each page to the OCR service's /ocr route."""

    def __init__(
        self,
        ocr_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.ocr_url = (ocr_url or resolve_ocr_service_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else bundled_seconds(
            "ocr_service", "timeout_seconds", DEFAULT_OCR_TIMEOUT_SECONDS
        )
        self._transport = transport

    async def recognize(self, image_bytes: bytes, page_index: int = 0) -> list[RawTextLine]:
        """
        Recognize one page.

        Raises:
            InvalidImageInput: If the bytes are not a decodable image.
            LocalRecognitionFailure: If the service fails or finds no text.
        """
        padded_bytes = prepare_receipt_jpeg(image_bytes, padding=OCR_IMAGE_PADDING)
        logger.info("Sending page %d to OCR service at %s...", page_index, self.ocr_url)

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.ocr_url}/ocr",
                    files={"file": (f"page_{page_index}.jpg", padded_bytes, "image/jpeg")},
                )
        except httpx.HTTPError as e:
            logger.error("Failed to connect to OCR service: %s", e)
            raise LocalRecognitionFailure(f"Failed to connect to OCR service: {e}") from e
        logger.info("OCR service returned in %.2f seconds", time.time() - start_time)

        if response.status_code != 200:
            logger.error("OCR service error: %s", response.status_code)
            raise LocalRecognitionFailure(f"OCR service error: {response.status_code}")

        try:
            raw_result = response.json()
        except ValueError as e:
            raise LocalRecognitionFailure("OCR service returned invalid JSON") from e
        if not isinstance(raw_result, dict):
            raise LocalRecognitionFailure("OCR service returned an unexpected payload")

        try:
            lines = detections_to_text_lines(raw_result, page_index=page_index)
        except (KeyError, TypeError, ValueError) as e:
            raise LocalRecognitionFailure(f"OCR service returned malformed detections: {e}") from e
        if not lines:
            raise LocalRecognitionFailure(f"no text recognized on page {page_index}")
        return lines
