"""Shared pytest fixtures for tabscan tests."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from tabscan.runtime.paths import reset_paths
from tabscan.runtime.settings import load_toml_settings

_ISOLATED_ENV_KEYS = (
    "TABSCAN_RECEIPT_PROCESSING_URL",
    "TABBY_RECEIPT_PROCESSING_URL",
    "TABSCAN_OCR_SERVICE_URL",
    "XDG_CONFIG_HOME",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Point user settings at a temp dir and drop endpoint overrides from the environment."""
    for key in _ISOLATED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    config_dir = tmp_path / "config"
    monkeypatch.setenv("TABSCAN_CONFIG_DIR", str(config_dir))
    reset_paths()
    load_toml_settings.cache_clear()
    yield config_dir
    reset_paths()
    load_toml_settings.cache_clear()


def _make_image_bytes(size: tuple[int, int] = (120, 200), image_format: str = "PNG") -> bytes:
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    return _make_image_bytes


@pytest.fixture
def receipt_png() -> bytes:
    return _make_image_bytes()
