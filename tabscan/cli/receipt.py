"""Receipt command handlers used by the unified CLI."""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tabscan.domain.extraction import LocationHint, extraction_to_dict
from tabscan.runtime import get_logger

logger = get_logger(__name__)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _location_hint_from_args(args: argparse.Namespace) -> LocationHint | None:
    if args.lat is None and args.lon is None:
        return None
    if args.lat is None or args.lon is None:
        raise ValueError("--lat and --lon must be given together")
    return LocationHint(
        latitude=args.lat,
        longitude=args.lon,
        captured_at=datetime.now(timezone.utc),
        horizontal_accuracy_meters=args.accuracy,
    )


def cmd_extract(args: argparse.Namespace) -> int:
    """Extract items and total from one or more receipt page images."""
    import asyncio

    from tabscan.application.receipts.extract import ExtractionRequest, run_extraction
    from tabscan.runtime.text_recognition import OcrServiceRecognizer

    images: list[bytes] = []
    for image in args.images:
        image_path = Path(image)
        if not image_path.is_file():
            print(f"Error: Receipt file not found: {image_path}", file=sys.stderr)
            return 1
        images.append(image_path.read_bytes())

    try:
        location_hint = _location_hint_from_args(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    run = asyncio.run(
        run_extraction(
            ExtractionRequest(
                images=images,
                location_hint=location_hint,
                text_recognizer=OcrServiceRecognizer(args.ocr_url),
                use_remote=not args.local_only,
            )
        )
    )
    logger.info("Extraction states: %s", " -> ".join(run.states))
    if run.remote_error:
        logger.info("Remote extraction error: %s", run.remote_error)
    for page_error in run.page_errors:
        logger.warning("%s", page_error)

    _print_json(extraction_to_dict(run.extraction))
    return 0


def cmd_parse_lines(args: argparse.Namespace) -> int:
    """Run the local pipeline over already-recognized text lines."""
    from tabscan.receipt.local_extraction import extract_from_lines

    if args.source == "-":
        text = sys.stdin.read()
    else:
        source = Path(args.source)
        if not source.is_file():
            print(f"Error: Text file not found: {source}", file=sys.stderr)
            return 1
        text = source.read_text(encoding="utf-8")

    _print_json(extraction_to_dict(extract_from_lines(text.splitlines())))
    return 0


def cmd_endpoints(args: argparse.Namespace) -> int:
    """Show (and optionally persist) the service endpoints extraction will use."""
    from tabscan.runtime.endpoints import (
        normalize_processing_url,
        resolve_ocr_service_url,
        resolve_processing_endpoints,
    )
    from tabscan.runtime.settings import USER_PROCESSING_URL_KEY, save_user_setting

    if args.set_url is not None:
        url = normalize_processing_url(args.set_url)
        if url is None:
            print(f"Error: Not a valid http(s) endpoint: {args.set_url}", file=sys.stderr)
            return 1
        saved_to = save_user_setting(USER_PROCESSING_URL_KEY, url)
        logger.info("Saved receipt processing URL to %s", saved_to)

    _print_json(
        {
            "processingEndpoints": resolve_processing_endpoints(),
            "ocrServiceUrl": resolve_ocr_service_url(),
        }
    )
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the FastAPI server for receiving receipt uploads."""
    import uvicorn

    from tabscan.runtime import extraction_server as server

    print(f"Starting receipt extraction server on {args.host}:{args.port}")
    print(f"Upload endpoint: http://{args.host}:{args.port}/extract")
    print("Press Ctrl+C to stop")

    uvicorn.run(server.app, host=args.host, port=args.port)
    return 0
