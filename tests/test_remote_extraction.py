import asyncio
import json
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from tabscan.domain.errors import BadStatus, MalformedResponse, NetworkFailure, NoProcessingEndpoint
from tabscan.domain.extraction import ExtractedItem, LocationHint
from tabscan.runtime.remote_extraction import (
    RemoteExtractionClient,
    location_hint_form_fields,
    parse_remote_response,
    response_preview,
)

ENDPOINT = "https://receipts.example.com/process-receipt"

SUCCESS_BODY = {
    "success": True,
    "runId": "run-123",
    "data": {
        "merchantName": "  Cafe Luna ",
        "total": 14.31,
        "subtotal": 13.25,
        "tax": 1.06,
        "items": [
            {"name": "Latte", "quantity": 2, "unitPrice": 4.5, "totalPrice": 9.0},
            {"name": "Croissant", "quantity": 1, "unitPrice": 4.25, "totalPrice": 0},
            {"name": "Water", "quantity": 0, "unitPrice": 0, "totalPrice": 0},
            {"name": "  -- ", "quantity": 1, "unitPrice": 3, "totalPrice": 3},
        ],
    },
}


def _client(
    handler: Callable[[httpx.Request], httpx.Response], endpoints: list[str] | None = None
) -> RemoteExtractionClient:
    return RemoteExtractionClient(
        endpoints=[ENDPOINT] if endpoints is None else endpoints,
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def test_location_hint_form_fields() -> None:
    hint = LocationHint(
        latitude=43.65107,
        longitude=-79.347015,
        captured_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        horizontal_accuracy_meters=12.5,
    )

    fields = location_hint_form_fields(hint)

    assert list(fields) == sorted(fields)
    assert fields["location_hint"] == "43.651070,-79.347015"
    assert fields["location_latitude"] == "43.65107"
    assert fields["location_longitude"] == "-79.347015"
    assert fields["location_timestamp"] == "2024-05-01T12:30:00Z"
    assert fields["location_accuracy_meters"] == "12.5"


def test_location_hint_without_accuracy_omits_field() -> None:
    hint = LocationHint(latitude=1.0, longitude=2.0, captured_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

    assert "location_accuracy_meters" not in location_hint_form_fields(hint)
    assert location_hint_form_fields(None) == {}


def test_parse_success_envelope_applies_item_price_rules() -> None:
    extraction = parse_remote_response(200, json.dumps(SUCCESS_BODY).encode())

    assert extraction.items == (
        ExtractedItem(name="Latte", quantity=2, price=Decimal("9.0")),
        ExtractedItem(name="Croissant", quantity=1, price=Decimal("4.25")),
        ExtractedItem(name="Water", quantity=1, price=None),
    )
    assert extraction.receipt_total == Decimal("14.31")
    assert extraction.merchant_name == "Cafe Luna"
    assert extraction.subtotal == Decimal("13.25")
    assert extraction.tax == Decimal("1.06")
    assert extraction.gratuity is None


def test_unit_price_is_multiplied_by_quantity() -> None:
    body = {"items": [{"name": "Bagel", "quantity": 3, "unitPrice": 1.5, "totalPrice": 0}]}

    extraction = parse_remote_response(200, json.dumps(body).encode())

    assert extraction.items[0].price == Decimal("4.5")


def test_bare_payload_without_envelope_is_accepted() -> None:
    body = {"merchantName": "", "total": 0, "items": []}

    extraction = parse_remote_response(200, json.dumps(body).encode())

    assert extraction.items == ()
    assert extraction.receipt_total is None
    assert extraction.merchant_name is None


def test_unsuccessful_envelope_is_malformed() -> None:
    body = {"success": False, "error": "could not read receipt", "runId": "run-9"}

    with pytest.raises(MalformedResponse, match="could not read receipt"):
        parse_remote_response(200, json.dumps(body).encode())


@pytest.mark.parametrize("body", [b"<html>oops</html>", b"[]", b'{"hello": "world"}', b'{"success": true}'])
def test_undecodable_or_unexpected_bodies_are_malformed(body: bytes) -> None:
    with pytest.raises(MalformedResponse):
        parse_remote_response(200, body)


def test_non_2xx_status_raises_bad_status_with_preview() -> None:
    with pytest.raises(BadStatus) as excinfo:
        parse_remote_response(502, b"upstream down")

    assert excinfo.value.status_code == 502
    assert excinfo.value.body_preview == "upstream down"


def test_response_preview_truncates_long_bodies() -> None:
    preview = response_preview(b"x" * 500)

    assert preview is not None
    assert preview.endswith("...")
    assert len(preview) == 223
    assert response_preview(b"") is None


def test_extract_posts_multipart_upload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=SUCCESS_BODY)

    hint = LocationHint(latitude=43.65107, longitude=-79.347015, captured_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
    extraction = asyncio.run(_client(handler).extract(b"\xff\xd8fake-jpeg", hint))

    assert len(extraction.items) == 3
    [request] = seen
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    body = request.content
    assert b'name="receipt"; filename="receipt.jpg"' in body
    assert b"Content-Type: image/jpeg" in body
    assert b"\xff\xd8fake-jpeg" in body
    assert b'name="location_hint"' in body
    assert b"43.651070,-79.347015" in body
    assert b"2024-05-01T00:00:00Z" in body
    assert b"location_accuracy_meters" not in body


def test_transport_error_becomes_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkFailure):
        asyncio.run(_client(handler).extract(b"jpeg"))


def test_timeout_becomes_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(NetworkFailure, match="timed out"):
        asyncio.run(_client(handler).extract(b"jpeg"))


def test_endpoints_are_tried_in_order_until_one_succeeds() -> None:
    hosts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        if request.url.host == "localhost":
            return httpx.Response(503, text="starting up")
        return httpx.Response(200, json=SUCCESS_BODY)

    client = _client(handler, endpoints=["http://localhost:3000/process-receipt", ENDPOINT])
    extraction = asyncio.run(client.extract(b"jpeg"))

    assert hosts == ["localhost", "receipts.example.com"]
    assert extraction.merchant_name == "Cafe Luna"


def test_last_error_is_raised_when_every_endpoint_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "localhost":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(500, text="boom")

    client = _client(handler, endpoints=["http://localhost:3000/process-receipt", ENDPOINT])

    with pytest.raises(BadStatus) as exc_info:
        asyncio.run(client.extract(b"jpeg"))

    assert exc_info.value.status_code == 500
    assert exc_info.value.body_preview == "boom"


def test_no_endpoints_raises() -> None:
    with pytest.raises(NoProcessingEndpoint):
        asyncio.run(_client(lambda request: httpx.Response(200), endpoints=[]).extract(b"jpeg"))
