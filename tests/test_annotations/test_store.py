"""Tests for local alias/tag annotations and their key-value backends."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.annotations.store import (
    ALIASES_KEY,
    TAGS_KEY,
    AnnotationStore,
    JsonFileStore,
    MemoryStore,
)
from src.core.config import StorageConfig
from src.core.types import Monitor


@pytest.fixture
def store() -> AnnotationStore:
    return AnnotationStore(MemoryStore())


class TestAliases:
    def test_set_and_get(self, store: AnnotationStore) -> None:
        store.set_alias("m1", "  CPU load  ")
        assert store.get_alias("m1") == "CPU load"
        assert store.all_aliases() == {"m1": "CPU load"}

    def test_blank_alias_removes_entry(self, store: AnnotationStore) -> None:
        store.set_alias("m1", "CPU")
        store.set_alias("m1", "   ")
        assert store.get_alias("m1") is None

    def test_delete(self, store: AnnotationStore) -> None:
        store.set_alias("m1", "CPU")
        store.set_alias("m2", "Disk")
        store.delete_alias("m1")
        assert store.all_aliases() == {"m2": "Disk"}

    def test_delete_missing_is_noop(self, store: AnnotationStore) -> None:
        store.delete_alias("nope")
        assert store.all_aliases() == {}

    def test_display_name(self, store: AnnotationStore) -> None:
        monitor = Monitor(id="m1", display_name="cpu_load")
        assert store.display_name(monitor) == "cpu_load"
        store.set_alias("m1", "CPU")
        assert store.display_name(monitor) == "CPU"


class TestTags:
    def test_set_trims_and_drops_empty(self, store: AnnotationStore) -> None:
        store.set_tags("m1", [" infra ", "", "  ", "prod"])
        assert store.get_tags("m1") == ["infra", "prod"]

    def test_empty_list_removes_entry(self, store: AnnotationStore) -> None:
        store.set_tags("m1", ["infra"])
        store.set_tags("m1", [])
        assert store.all_tags() == {}

    def test_delete(self, store: AnnotationStore) -> None:
        store.set_tags("m1", ["infra"])
        store.delete_tags("m1")
        assert store.get_tags("m1") == []

    def test_unique_tag_names_sorted(self, store: AnnotationStore) -> None:
        store.set_tags("m1", ["prod", "infra"])
        store.set_tags("m2", ["infra", "db"])
        assert store.unique_tag_names() == ["db", "infra", "prod"]

    def test_dangling_entries_tolerated(self, store: AnnotationStore) -> None:
        store.set_tags("deleted-monitor", ["old"])
        assert store.all_tags() == {"deleted-monitor": ["old"]}


class TestCorruptRecords:
    def test_corrupt_alias_record_reads_empty(self) -> None:
        store = AnnotationStore(MemoryStore({ALIASES_KEY: "{not json"}))
        assert store.all_aliases() == {}

    def test_non_object_record_reads_empty(self) -> None:
        store = AnnotationStore(MemoryStore({TAGS_KEY: "[1, 2, 3]"}))
        assert store.all_tags() == {}

    def test_wrong_value_types_skipped(self) -> None:
        raw = json.dumps({"m1": "ok", "m2": 5})
        store = AnnotationStore(MemoryStore({ALIASES_KEY: raw}))
        assert store.all_aliases() == {"m1": "ok"}

    def test_write_after_corrupt_recovers(self) -> None:
        store = AnnotationStore(MemoryStore({ALIASES_KEY: "garbage"}))
        store.set_alias("m1", "CPU")
        assert store.all_aliases() == {"m1": "CPU"}


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "annotations.json"
        AnnotationStore(JsonFileStore(path)).set_alias("m1", "CPU")

        reopened = AnnotationStore(JsonFileStore(path))
        assert reopened.get_alias("m1") == "CPU"
        assert ALIASES_KEY in json.loads(path.read_text())

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        kv = JsonFileStore(tmp_path / "absent.json")
        assert kv.get_item(ALIASES_KEY) is None

    def test_unreadable_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "annotations.json"
        path.write_text("{{{")
        assert JsonFileStore(path).get_item(ALIASES_KEY) is None

    def test_remove_item(self, tmp_path: Path) -> None:
        kv = JsonFileStore(tmp_path / "a.json")
        kv.set_item("k", "v")
        kv.remove_item("k")
        assert kv.get_item("k") is None

    def test_from_config(self, tmp_path: Path) -> None:
        path = tmp_path / "cfg.json"
        store = AnnotationStore.from_config(StorageConfig(path=str(path)))
        store.set_tags("m1", ["x"])
        assert path.exists()
