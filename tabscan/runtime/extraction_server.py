"""FastAPI server that extracts receipts uploaded from a phone."""

from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import FormData

from tabscan.application.receipts.extract import ExtractionRequest, RemoteExtractor, run_extraction
from tabscan.domain.extraction import LocationHint, extraction_to_dict
from tabscan.runtime.logging import get_logger
from tabscan.runtime.text_recognition import TextRecognizer

logger = get_logger(__name__)


def _optional_float(form: FormData, key: str) -> float | None:
    raw = form.get(key)
    if not isinstance(raw, str) or not raw.strip():
        return None
    return float(raw)


def location_hint_from_form(form: FormData) -> LocationHint | None:
    """
    Build a LocationHint from latitude/longitude/accuracy form fields.

    Raises:
        ValueError: If a coordinate is not a number, or only one is given.
    """
    latitude = _optional_float(form, "latitude")
    longitude = _optional_float(form, "longitude")
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise ValueError("latitude and longitude must be sent together")
    return LocationHint(
        latitude=latitude,
        longitude=longitude,
        captured_at=datetime.now(timezone.utc),
        horizontal_accuracy_meters=_optional_float(form, "accuracy"),
    )


def create_app(
    remote_client: RemoteExtractor | None = None,
    text_recognizer: TextRecognizer | None = None,
) -> FastAPI:
    """Build the upload app; clients default to the configured services."""
    app = FastAPI(title="Receipt Extraction")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/extract")
    async def extract(request: Request) -> JSONResponse:
        """Receive one or more receipt page images and return the extraction."""
        form = await request.form()

        images: list[bytes] = []
        for key, value in form.multi_items():
            if hasattr(value, "read"):
                logger.debug("Form file field: key=%r, filename=%r", key, getattr(value, "filename", None))
                images.append(await value.read())

        if not images:
            return JSONResponse({"status": "error", "message": "No image found in request"}, status_code=400)

        try:
            location_hint = location_hint_from_form(form)
        except ValueError as exc:
            return JSONResponse({"status": "error", "message": f"Invalid location: {exc}"}, status_code=400)

        run = await run_extraction(
            ExtractionRequest(
                images=images,
                location_hint=location_hint,
                remote_client=remote_client,
                text_recognizer=text_recognizer,
            )
        )
        logger.info("Extracted %d items from %d page(s)", len(run.extraction.items), len(images))

        body: dict[str, Any] = {
            "status": "ok",
            "extraction": extraction_to_dict(run.extraction),
            "states": list(run.states),
            "remoteError": run.remote_error,
        }
        return JSONResponse(body)

    return app


app = create_app()
