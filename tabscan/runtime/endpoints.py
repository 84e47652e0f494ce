"""Endpoint resolution for the remote receipt service and the local OCR service.

Lookup order for the receipt processing endpoint:
1. TABSCAN_RECEIPT_PROCESSING_URL (or legacy TABBY_RECEIPT_PROCESSING_URL)
2. receipt_processing_url in the user's settings.toml
3. [receipt_processing] url in the bundled defaults.toml
4. the loopback development server
5. the public production service and its www. host

A configured non-loopback endpoint is used alone. A loopback one (or none)
is followed by the remaining candidates so that both a local development
server and a physical device without one end up somewhere useful.
"""

from __future__ import annotations

import ipaddress
import os

import httpx

from tabscan.runtime.logging import get_logger
from tabscan.runtime.settings import USER_OCR_URL_KEY, USER_PROCESSING_URL_KEY, bundled_setting, user_setting

logger = get_logger(__name__)

PROCESSING_URL_ENV_KEYS = ("TABSCAN_RECEIPT_PROCESSING_URL", "TABBY_RECEIPT_PROCESSING_URL")
OCR_URL_ENV_KEY = "TABSCAN_OCR_SERVICE_URL"

DEFAULT_PROCESSING_PATH = "/process-receipt"
LOOPBACK_PROCESSING_URLS = (
    "http://localhost:3000/process-receipt",
    "http://127.0.0.1:3000/process-receipt",
)
PRODUCTION_PROCESSING_URL = "https://splt.money/process-receipt"
PRODUCTION_PROCESSING_FALLBACK_URL = "https://www.splt.money/process-receipt"
DEFAULT_OCR_SERVICE_URL = "http://localhost:8001"

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def _is_ipv4(host: str) -> bool:
    try:
        ipaddress.IPv4Address(host)
    except ValueError:
        return False
    return True


def _looks_like_local_host(value: str) -> bool:
    """Return True for scheme-less values pointing at a LAN/loopback host."""
    host_port = value.split("/", 1)[0]
    if host_port.startswith("[") and "]" in host_port:
        host = host_port[1 : host_port.index("]")]
    else:
        host = host_port.split(":", 1)[0]
    host = host.strip().lower()
    if not host:
        return False
    if host in LOOPBACK_HOSTS or host.endswith(".local"):
        return True
    return _is_ipv4(host)


def is_loopback_url(url: str) -> bool:
    """Return True if the URL's host is localhost, 127.0.0.1 or ::1."""
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        return False
    return host.lower() in LOOPBACK_HOSTS


def normalize_processing_url(raw: str) -> str | None:
    """
    Turn a configured value into a usable processing endpoint.

    Scheme-less values get http:// for local hosts and https:// otherwise.
    An empty path becomes /process-receipt. Non-http(s) values are rejected.
    """
    trimmed = raw.strip()
    if not trimmed:
        return None

    if "://" in trimmed:
        candidate = trimmed
    elif _looks_like_local_host(trimmed):
        candidate = f"http://{trimmed}"
    else:
        candidate = f"https://{trimmed}"

    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL:
        return None
    if url.scheme not in ("http", "https") or not url.host:
        return None
    if url.path in ("", "/"):
        url = url.copy_with(path=DEFAULT_PROCESSING_PATH)
    return str(url)


def _configured_sources() -> list[tuple[str, str | None]]:
    sources: list[tuple[str, str | None]] = [(key, os.environ.get(key)) for key in PROCESSING_URL_ENV_KEYS]
    sources.append(("user settings", user_setting(USER_PROCESSING_URL_KEY)))
    sources.append(("bundled defaults", bundled_setting("receipt_processing", "url")))
    return sources


def configured_processing_url() -> str | None:
    """Return the first valid explicitly configured processing endpoint."""
    for source, raw in _configured_sources():
        if not raw:
            continue
        url = normalize_processing_url(raw)
        if url is not None:
            return url
        logger.warning("Ignoring invalid receipt processing URL from %s: %r", source, raw)
    return None


def resolve_processing_endpoints() -> list[str]:
    """Return processing endpoints to try, in order, without duplicates."""
    configured = configured_processing_url()
    if configured is not None and not is_loopback_url(configured):
        return [configured]

    candidates: list[str] = []
    if configured is not None:
        candidates.append(configured)
    candidates.extend(LOOPBACK_PROCESSING_URLS)
    candidates.extend((PRODUCTION_PROCESSING_URL, PRODUCTION_PROCESSING_FALLBACK_URL))

    seen: set[str] = set()
    endpoints: list[str] = []
    for candidate in candidates:
        if candidate in seen:
            continue
        seen.add(candidate)
        endpoints.append(candidate)
    return endpoints


def resolve_ocr_service_url() -> str:
    """Return the local OCR service base URL."""
    for raw in (
        os.environ.get(OCR_URL_ENV_KEY),
        user_setting(USER_OCR_URL_KEY),
        bundled_setting("ocr_service", "url"),
    ):
        if raw and raw.strip():
            return raw.strip().rstrip("/")
    return DEFAULT_OCR_SERVICE_URL
