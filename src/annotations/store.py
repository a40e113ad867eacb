"""Local aliases and tags keyed by monitor id.

Annotations never leave the machine. They live in a small key-value store
whose values are strings; each of the two records (aliases, tags) is one
JSON-encoded map. Entries for monitors that no longer exist are left alone.
"""

from __future__ import annotations

import abc
import json
from collections.abc import Iterable
from pathlib import Path

import structlog

from src.alerts.sorter import display_name
from src.core.config import StorageConfig, get_settings
from src.core.types import Monitor

logger = structlog.stdlib.get_logger()

ALIASES_KEY = "monitor-aliases"
TAGS_KEY = "monitor-tags"


class KeyValueStore(abc.ABC):
    """String-valued persistent storage."""

    @abc.abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value or None."""

    @abc.abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*."""

    @abc.abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete *key* if present."""


class MemoryStore(KeyValueStore):
    """In-process store, used by tests and as a throwaway backend."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStore(KeyValueStore):
    """All items in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError):
            logger.warning("annotation_file_unreadable", path=str(self._path))
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def _save(self, items: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(items, f, indent=2, sort_keys=True)
        tmp.replace(self._path)

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if items.pop(key, None) is not None:
            self._save(items)


class AnnotationStore:
    """Read-modify-write access to the alias and tag maps."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @classmethod
    def from_config(cls, config: StorageConfig | None = None) -> AnnotationStore:
        cfg = config or get_settings().storage
        return cls(JsonFileStore(cfg.path))

    def _read_map(self, key: str) -> dict[str, object]:
        raw = self._store.get_item(key)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("annotation_record_corrupt", key=key)
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def _write_map(self, key: str, data: dict[str, object]) -> None:
        self._store.set_item(key, json.dumps(data))

    # ── Aliases ──────────────────────────────────────────────────

    def all_aliases(self) -> dict[str, str]:
        return {k: v for k, v in self._read_map(ALIASES_KEY).items() if isinstance(v, str)}

    def get_alias(self, monitor_id: str) -> str | None:
        return self.all_aliases().get(monitor_id)

    def set_alias(self, monitor_id: str, alias: str) -> None:
        """Store a trimmed alias; a blank alias removes the entry."""
        aliases = self._read_map(ALIASES_KEY)
        cleaned = alias.strip()
        if cleaned:
            aliases[monitor_id] = cleaned
        else:
            aliases.pop(monitor_id, None)
        self._write_map(ALIASES_KEY, aliases)
        logger.debug("alias_updated", monitor_id=monitor_id, cleared=not cleaned)

    def delete_alias(self, monitor_id: str) -> None:
        aliases = self._read_map(ALIASES_KEY)
        aliases.pop(monitor_id, None)
        self._write_map(ALIASES_KEY, aliases)

    # ── Tags ─────────────────────────────────────────────────────

    def all_tags(self) -> dict[str, list[str]]:
        tags: dict[str, list[str]] = {}
        for monitor_id, value in self._read_map(TAGS_KEY).items():
            if isinstance(value, list):
                tags[monitor_id] = [str(t) for t in value]
        return tags

    def get_tags(self, monitor_id: str) -> list[str]:
        return self.all_tags().get(monitor_id, [])

    def set_tags(self, monitor_id: str, tags: Iterable[str]) -> None:
        """Store trimmed, non-empty tags; an empty result removes the entry."""
        all_tags = self._read_map(TAGS_KEY)
        cleaned = [t.strip() for t in tags if t.strip()]
        if cleaned:
            all_tags[monitor_id] = cleaned
        else:
            all_tags.pop(monitor_id, None)
        self._write_map(TAGS_KEY, all_tags)
        logger.debug("tags_updated", monitor_id=monitor_id, tag_count=len(cleaned))

    def delete_tags(self, monitor_id: str) -> None:
        all_tags = self._read_map(TAGS_KEY)
        all_tags.pop(monitor_id, None)
        self._write_map(TAGS_KEY, all_tags)

    def unique_tag_names(self) -> list[str]:
        names = {tag for tags in self.all_tags().values() for tag in tags}
        return sorted(names)

    def display_name(self, monitor: Monitor) -> str:
        return display_name(monitor, self.all_aliases())
