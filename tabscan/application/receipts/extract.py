"""Receipt extraction workflow orchestration.

Remote service first, then the local heuristic pipeline over every page,
then an empty result. Recoverable failures never leave this module; only
task cancellation does.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from itertools import chain
from typing import Literal, Protocol

from tabscan.domain.errors import ExtractionError
from tabscan.domain.extraction import Extraction, LocationHint, RawTextLine
from tabscan.receipt.local_extraction import order_text_lines, run_local_pipeline
from tabscan.receipt.ocr_helpers import prepare_receipt_jpeg
from tabscan.runtime.logging import get_logger
from tabscan.runtime.remote_extraction import RemoteExtractionClient
from tabscan.runtime.text_recognition import OcrServiceRecognizer, TextRecognizer

logger = get_logger(__name__)

ExtractionState = Literal[
    "not_started",
    "remote_attempted",
    "local_pipeline_run",
    "fallback",
    "done",
]


class RemoteExtractor(Protocol):
    async def extract(self, jpeg_bytes: bytes, location_hint: LocationHint | None = None) -> Extraction: ...


@dataclass(frozen=True)
class ExtractionRequest:
    """Inputs for one extraction call. Pages are in capture order."""

    images: Sequence[bytes]
    location_hint: LocationHint | None = None
    remote_client: RemoteExtractor | None = None
    text_recognizer: TextRecognizer | None = None
    use_remote: bool = True


@dataclass(frozen=True)
class ExtractionRun:
    """Outcome of an extraction call with the states it went through."""

    extraction: Extraction
    states: tuple[ExtractionState, ...]
    remote_error: str | None = None
    page_errors: tuple[str, ...] = ()


@dataclass
class _Progress:
    states: list[ExtractionState] = field(default_factory=lambda: ["not_started"])
    remote: Extraction | None = None
    remote_error: str | None = None
    page_errors: list[str] = field(default_factory=list)

    def enter(self, state: ExtractionState) -> None:
        logger.debug("Extraction state: %s -> %s", self.states[-1], state)
        self.states.append(state)

    def finish(self, extraction: Extraction) -> ExtractionRun:
        self.enter("done")
        return ExtractionRun(
            extraction=extraction,
            states=tuple(self.states),
            remote_error=self.remote_error,
            page_errors=tuple(self.page_errors),
        )


def has_items(extraction: Extraction | None) -> bool:
    return extraction is not None and bool(extraction.items)


@dataclass(frozen=True)
class ExtractionStrategy:
    """A named extraction step and the predicate that ends the cascade."""

    name: str
    run: Callable[[ExtractionRequest, _Progress], Awaitable[Extraction | None]]
    succeeded: Callable[[Extraction | None], bool] = has_items


def merge_remote_total(local: Extraction, remote: Extraction | None) -> Extraction:
    """Fill a missing local total (and merchant) from a remote result with a positive total."""
    if local.receipt_total is not None or remote is None:
        return local
    if remote.receipt_total is None or remote.receipt_total <= 0:
        return local
    return dataclasses.replace(
        local,
        receipt_total=remote.receipt_total,
        merchant_name=remote.merchant_name or local.merchant_name,
    )


async def _try_remote(request: ExtractionRequest, progress: _Progress) -> Extraction | None:
    progress.enter("remote_attempted")
    client = request.remote_client or RemoteExtractionClient()
    try:
        jpeg_bytes = prepare_receipt_jpeg(request.images[0])
        extraction = await client.extract(jpeg_bytes, request.location_hint)
    except ExtractionError as exc:
        logger.warning("Remote extraction failed, falling back to local pipeline: %s", exc)
        progress.remote_error = str(exc)
        return None
    except Exception as exc:
        logger.exception("Unexpected remote extraction error")
        progress.remote_error = f"unexpected error: {exc}"
        return None

    progress.remote = extraction
    if not extraction.items:
        logger.info("Remote extraction returned no items, running local pipeline")
    return extraction


async def _recognize_page(
    recognizer: TextRecognizer, image: bytes, page_index: int, progress: _Progress
) -> list[RawTextLine]:
    try:
        return await recognizer.recognize(image, page_index)
    except ExtractionError as exc:
        logger.warning("Text recognition failed for page %d: %s", page_index, exc)
        progress.page_errors.append(f"page {page_index}: {exc}")
    except Exception as exc:
        logger.exception("Unexpected text recognition error on page %d", page_index)
        progress.page_errors.append(f"page {page_index}: unexpected error: {exc}")
    return []


async def _run_local(request: ExtractionRequest, progress: _Progress) -> Extraction:
    recognizer = request.text_recognizer or OcrServiceRecognizer()
    pages = await asyncio.gather(
        *(_recognize_page(recognizer, image, index, progress) for index, image in enumerate(request.images))
    )
    ordered = order_text_lines(chain.from_iterable(pages))

    result = run_local_pipeline([line.text for line in ordered])
    progress.enter("local_pipeline_run")
    if result.used_fallback_pass:
        progress.enter("fallback")
    logger.debug(
        "Local pipeline found %d items (fallback pass: %s)", len(result.extraction.items), result.used_fallback_pass
    )
    return merge_remote_total(result.extraction, progress.remote)


EXTRACTION_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ExtractionStrategy("remote", _try_remote),
    ExtractionStrategy("local", _run_local),
)


def _strategies_for(request: ExtractionRequest) -> tuple[ExtractionStrategy, ...]:
    if request.use_remote:
        return EXTRACTION_STRATEGIES
    return tuple(strategy for strategy in EXTRACTION_STRATEGIES if strategy.name != "remote")


async def run_extraction(request: ExtractionRequest) -> ExtractionRun:
    """Run the remote -> local -> empty cascade and report how it went."""
    progress = _Progress()
    if not request.images:
        logger.info("No receipt images supplied")
        return progress.finish(Extraction.empty())

    extraction: Extraction | None = None
    for strategy in _strategies_for(request):
        extraction = await strategy.run(request, progress)
        if strategy.succeeded(extraction):
            logger.info("Receipt extracted by %s strategy", strategy.name)
            break

    return progress.finish(extraction or Extraction.empty())


async def extract_receipt(request: ExtractionRequest) -> Extraction:
    """Extract a receipt; never raises except on cancellation."""
    run = await run_extraction(request)
    return run.extraction


def extract_receipt_sync(request: ExtractionRequest) -> Extraction:
    """Blocking wrapper around extract_receipt for callers without an event loop."""
    return asyncio.run(extract_receipt(request))
