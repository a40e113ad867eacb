"""Local, never-synced monitor annotations (aliases and tags)."""

from src.annotations.store import (
    ALIASES_KEY,
    TAGS_KEY,
    AnnotationStore,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
)

__all__ = [
    "ALIASES_KEY",
    "TAGS_KEY",
    "AnnotationStore",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
]
