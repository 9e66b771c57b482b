"""JSON-backed settings store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from safeclean.models.category import Category
from safeclean.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "safeclean"
_SETTINGS_FILE = "settings.json"

DEFAULTS: dict[str, Any] = {
    "scan.categories": [],
    "history.enabled": True,
}


class Settings:
    """Persistent settings backed by a JSON file.

    Uses dot-notation keys for nested access:
        settings.get("scan.categories")  # reads data["scan"]["categories"]
        settings.set("scan.categories", ["rust", "node"])  # writes + saves
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, falling back to the built-in default."""
        if default is None:
            default = DEFAULTS.get(key)
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    def enabled_categories(self) -> set[Category]:
        """Categories to scan when none are requested explicitly.

        Unknown ids are logged and ignored; an empty result means all.
        """
        categories: set[Category] = set()
        for category_id in self.get("scan.categories") or []:
            try:
                categories.add(Category.from_id(str(category_id)))
            except ValueError:
                log.warning("Ignoring unknown category in settings: %s", category_id)
        return categories

    def history_enabled(self) -> bool:
        """Whether cleaning sessions are recorded. Non-boolean values fall back to the default."""
        value = self.get("history.enabled")
        if not isinstance(value, bool):
            log.warning("Ignoring non-boolean history.enabled in settings: %r", value)
            return DEFAULTS["history.enabled"]
        return value

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if isinstance(data, dict):
            self._data = data
        else:
            log.warning("Ignoring settings file %s: top level is not an object", self._path)

    def _save(self) -> None:
        """Persist settings to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)
