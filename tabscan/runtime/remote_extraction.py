"""Client for the remote receipt processing service."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from tabscan.domain.errors import BadStatus, ExtractionError, MalformedResponse, NetworkFailure, NoProcessingEndpoint
from tabscan.domain.extraction import ExtractedItem, Extraction, LocationHint
from tabscan.receipt.text_parser import clean_item_name
from tabscan.runtime.endpoints import resolve_processing_endpoints
from tabscan.runtime.logging import get_logger
from tabscan.runtime.settings import bundled_seconds

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 35.0
UPLOAD_FIELD_NAME = "receipt"
UPLOAD_FILENAME = "receipt.jpg"
UPLOAD_CONTENT_TYPE = "image/jpeg"
PREVIEW_MAX_LENGTH = 220
TRACE_HEADERS = ("x-request-id", "x-vercel-id", "cf-ray")
PAYLOAD_KEYS = frozenset({"items", "total", "merchantName"})


def location_hint_form_fields(hint: LocationHint | None) -> dict[str, str]:
    """Build the optional location text fields sent alongside the image."""
    if hint is None:
        return {}

    captured_at = hint.captured_at.astimezone(timezone.utc)
    fields = {
        "location_hint": f"{hint.latitude:.6f},{hint.longitude:.6f}",
        "location_latitude": repr(float(hint.latitude)),
        "location_longitude": repr(float(hint.longitude)),
        "location_timestamp": captured_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
    }
    if hint.horizontal_accuracy_meters is not None:
        fields["location_accuracy_meters"] = repr(float(hint.horizontal_accuracy_meters))
    return dict(sorted(fields.items()))


def response_preview(body: bytes, max_length: int = PREVIEW_MAX_LENGTH) -> str | None:
    """Short printable preview of a response body for logs and errors."""
    if not body:
        return None
    try:
        decoded = body.decode("utf-8").strip()
    except UnicodeDecodeError:
        return f"<{len(body)} bytes binary>"
    if not decoded:
        return f"<{len(body)} bytes binary>"
    if len(decoded) <= max_length:
        return decoded
    return f"{decoded[:max_length]}..."


def _response_trace(response: httpx.Response) -> str | None:
    parts = [f"{name}={response.headers[name]}" for name in TRACE_HEADERS if response.headers.get(name)]
    return ", ".join(parts) if parts else None


def _decimal(value: Any, field: str) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise MalformedResponse(f"{field} is not a number: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise MalformedResponse(f"{field} is not a number: {value!r}") from exc
    if not amount.is_finite():
        raise MalformedResponse(f"{field} is not finite: {value!r}")
    return amount


def _quantity(value: Any) -> int:
    if value is None:
        return 1
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise MalformedResponse(f"quantity is not a number: {value!r}")
    return max(1, int(value))


def _remote_item(raw: Any) -> ExtractedItem | None:
    """Convert one service item; items without a usable name are dropped."""
    if not isinstance(raw, dict):
        raise MalformedResponse(f"item is not an object: {raw!r}")

    name = clean_item_name(str(raw.get("name") or ""))
    if not name:
        return None

    quantity = _quantity(raw.get("quantity"))
    unit_price = _decimal(raw.get("unitPrice"), "unitPrice") or Decimal("0")
    total_price = _decimal(raw.get("totalPrice"), "totalPrice") or Decimal("0")
    if total_price > 0:
        price: Decimal | None = total_price
    elif unit_price > 0:
        price = unit_price * quantity
    else:
        price = None
    return ExtractedItem(name=name, quantity=quantity, price=price)


def _non_negative(value: Decimal | None) -> Decimal | None:
    return value if value is not None and value >= 0 else None


def parse_remote_payload(data: dict[str, Any]) -> Extraction:
    """Convert the service's data object into an Extraction."""
    raw_items = data.get("items") or []
    if not isinstance(raw_items, list):
        raise MalformedResponse("items is not a list")
    items = tuple(item for item in (_remote_item(raw) for raw in raw_items) if item is not None)

    total = _decimal(data.get("total"), "total")
    merchant = data.get("merchantName")
    merchant_name = merchant.strip() if isinstance(merchant, str) and merchant.strip() else None

    return Extraction(
        items=items,
        receipt_total=total if total is not None and total > 0 else None,
        merchant_name=merchant_name,
        subtotal=_non_negative(_decimal(data.get("subtotal"), "subtotal")),
        tax=_non_negative(_decimal(data.get("tax"), "tax")),
        gratuity=_non_negative(_decimal(data.get("gratuity"), "gratuity")),
    )


def decode_response_body(body: bytes) -> Any:
    """Decode JSON with exact decimals."""
    try:
        return json.loads(body, parse_float=Decimal)
    except ValueError as exc:
        raise MalformedResponse(f"response is not JSON: {response_preview(body)}") from exc


def parse_remote_response(status_code: int, body: bytes) -> Extraction:
    """
    Validate a service response and convert it.

    Accepts the {success, data, error} envelope, and a bare data object.

    Raises:
        BadStatus: For non-2xx statuses.
        MalformedResponse: For undecodable bodies or success=false.
    """
    if not 200 <= status_code < 300:
        raise BadStatus(status_code, response_preview(body))

    payload = decode_response_body(body)
    if not isinstance(payload, dict):
        raise MalformedResponse(f"unexpected response shape: {response_preview(body)}")

    if "success" in payload:
        if payload.get("success") is not True:
            message = payload.get("error") or response_preview(body)
            run_id = payload.get("runId")
            if run_id:
                message = f"{message} (runId={run_id})"
            raise MalformedResponse(f"service reported failure: {message}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise MalformedResponse("successful response without data")
        return parse_remote_payload(data)

    if PAYLOAD_KEYS & payload.keys():
        return parse_remote_payload(payload)

    raise MalformedResponse(f"unexpected response shape: {response_preview(body)}")


class RemoteExtractionClient:
    """Uploads the first receipt page to the processing service.

    Each candidate endpoint gets exactly one attempt; there are no retries.
    """

    def __init__(
        self,
        endpoints: Sequence[str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoints = list(endpoints) if endpoints is not None else None
        self.timeout = timeout if timeout is not None else bundled_seconds(
            "receipt_processing", "timeout_seconds", DEFAULT_TIMEOUT_SECONDS
        )
        self._transport = transport

    @property
    def endpoints(self) -> list[str]:
        if self._endpoints is None:
            return resolve_processing_endpoints()
        return list(self._endpoints)

    async def extract(self, jpeg_bytes: bytes, location_hint: LocationHint | None = None) -> Extraction:
        """
        Send the image and return the service's extraction.

        Raises:
            ExtractionError: The last endpoint's failure when every endpoint failed.
        """
        endpoints = self.endpoints
        if not endpoints:
            raise NoProcessingEndpoint("no receipt processing endpoint configured")

        fields = location_hint_form_fields(location_hint)
        last_error: ExtractionError | None = None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for endpoint in endpoints:
                try:
                    return await self._post(client, endpoint, jpeg_bytes, fields)
                except ExtractionError as exc:
                    last_error = exc
                    logger.warning("Receipt endpoint %s failed: %s", endpoint, exc)

        logger.info("Tried receipt endpoints: %s", ", ".join(endpoints))
        if last_error is None:
            raise NoProcessingEndpoint("no receipt processing endpoint answered")
        raise last_error

    async def _post(
        self, client: httpx.AsyncClient, endpoint: str, jpeg_bytes: bytes, fields: dict[str, str]
    ) -> Extraction:
        logger.info("Sending receipt to processing service at %s...", endpoint)
        try:
            response = await client.post(
                endpoint,
                files={UPLOAD_FIELD_NAME: (UPLOAD_FILENAME, jpeg_bytes, UPLOAD_CONTENT_TYPE)},
                data=fields,
            )
        except httpx.TimeoutException as exc:
            raise NetworkFailure(f"request to {endpoint} timed out after {self.timeout:.0f}s") from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"failed to connect to {endpoint}: {exc}") from exc

        try:
            extraction = parse_remote_response(response.status_code, response.content)
        except ExtractionError:
            trace = _response_trace(response)
            if trace:
                logger.warning("Receipt service trace: %s", trace)
            raise

        logger.debug("Receipt service returned %d items", len(extraction.items))
        return extraction
