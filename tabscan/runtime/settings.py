"""Runtime loaders for bundled and per-user TOML settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from tabscan.runtime.logging import get_logger
from tabscan.runtime.paths import get_paths

logger = get_logger(__name__)

USER_PROCESSING_URL_KEY = "receipt_processing_url"
USER_OCR_URL_KEY = "ocr_service_url"


@lru_cache(maxsize=8)
def load_toml_settings(path: str) -> dict[str, Any]:
    """Load a TOML file; missing or unreadable files map to an empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    settings_path = Path(path)
    if not settings_path.exists():
        return {}

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", settings_path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _string_value(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def user_setting(key: str) -> str | None:
    """Return a persisted per-user string setting, if set."""
    return _string_value(load_toml_settings(str(get_paths().user_settings)).get(key))


def bundled_setting(section: str, key: str) -> str | None:
    """Return a string value from the bundled defaults.toml, if set."""
    config = load_toml_settings(str(get_paths().bundled_defaults))
    table = config.get(section, {})
    if not isinstance(table, dict):
        return None
    return _string_value(table.get(key))


def bundled_seconds(section: str, key: str, default: float) -> float:
    """Return a positive numeric value from defaults.toml, or the default."""
    table = load_toml_settings(str(get_paths().bundled_defaults)).get(section, {})
    value = table.get(key) if isinstance(table, dict) else None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return float(value)
    return default


def save_user_setting(key: str, value: str) -> Path:
    """Persist a string setting to the user's settings.toml, keeping other keys."""
    path = get_paths().user_settings
    # Only flat string keys are written back.
    current = {name: val for name, val in load_toml_settings(str(path)).items() if isinstance(val, str)}
    current[key] = value

    path.parent.mkdir(parents=True, exist_ok=True)
    body = "".join(f"{name} = {_toml_string(val)}\n" for name, val in sorted(current.items()))
    path.write_text(body)
    load_toml_settings.cache_clear()
    logger.debug("Saved %s to %s", key, path)
    return path


def _toml_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
