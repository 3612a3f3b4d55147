"""JSON-backed configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from devsweep.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "devsweep"
_SETTINGS_FILE = "settings.json"

DEFAULTS: dict[str, Any] = {
    "scan": {"root": None, "queue_size": 10},
    "progress": {"tick_ms": 200},
    "select": {"min_size_mb": 100},
    "scanners": {"paths": []},
}


class Settings:
    """Read-only settings loaded from a JSON file, layered over ``DEFAULTS``.

    Uses dot-notation keys for nested access:
        settings.get("select.min_size_mb")  # reads data["select"]["min_size_mb"]
    """

    def __init__(self, path: Path | None = None, overrides: dict[str, Any] | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()
        for key, value in (overrides or {}).items():
            self._set(key, value)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, falling back to DEFAULTS."""
        for source in (self._data, DEFAULTS):
            node = _lookup(source, key)
            if node is not _MISSING:
                return node
        return default

    def get_int(self, key: str) -> int:
        """Get a positive integer setting, falling back to its default if invalid."""
        value = self.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        log.warning("Invalid value for %s: %r, using default", key, value)
        return _lookup(DEFAULTS, key)

    def _set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Ignoring settings file %s: top level is not an object", self._path)
            return
        self._data = data


_MISSING = object()


def _lookup(data: dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node
