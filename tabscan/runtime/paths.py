"""Centralized path management for tabscan.

Single source of truth for where bundled defaults and per-user settings live.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_DIR_ENV_KEY = "TABSCAN_CONFIG_DIR"


def _get_package_root() -> Path:
    # tabscan/runtime/paths.py -> tabscan/runtime -> tabscan
    return Path(__file__).resolve().parent.parent


def _get_user_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV_KEY, "").strip()
    if override:
        return Path(override).expanduser()
    xdg_home = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg_home).expanduser() if xdg_home else Path("~/.config").expanduser()
    return base / "tabscan"


@dataclass
class ProjectPaths:
    """Container for configuration paths."""

    package_root: Path = field(default_factory=_get_package_root)
    user_config_dir: Path = field(default_factory=_get_user_config_dir)

    @property
    def bundled_defaults(self) -> Path:
        """Configuration shipped with the package (config/defaults.toml)."""
        return self.package_root / "config" / "defaults.toml"

    @property
    def user_settings(self) -> Path:
        """Persisted per-user settings (settings.toml)."""
        return self.user_config_dir / "settings.toml"


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Forget the cached paths so environment changes are picked up."""
    global _paths
    _paths = None
