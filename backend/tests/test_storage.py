import json
import logging

import pytest

from meditrack.exceptions import StorageError
from meditrack.storage import InMemoryStore, KeyValueStorage

SNAPSHOT_KEY = "meditrack_patients"


@pytest.fixture
def storage(tmp_path):
    return KeyValueStorage(tmp_path / "storage.json")


@pytest.fixture
def broken_storage(tmp_path):
    #parent "directory" is a regular file, so nothing can be written
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    return KeyValueStorage(blocker / "storage.json")


def test_set_get_remove(storage):
    assert storage.get_item("missing") is None
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    assert storage.get_item("a") == "1"
    storage.remove_item("a")
    assert storage.get_item("a") is None
    assert storage.get_item("b") == "2"


def test_probe_leaves_no_trace(storage):
    assert storage.is_available() is True
    assert storage.get_item(storage.probe_key) is None


def test_unwritable_storage_is_unavailable(broken_storage):
    assert broken_storage.is_available() is False
    with pytest.raises(StorageError):
        broken_storage.set_item("a", "1")


def test_corrupt_file_raises_storage_error(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json")
    with pytest.raises(StorageError):
        KeyValueStorage(path).get_item("a")


def test_append_assigns_monotonic_ids_and_timestamps(storage):
    store = InMemoryStore(storage, SNAPSHOT_KEY)
    first = store.append({"first_name": "Ann"})
    second = store.append({"first_name": "Ben"})
    assert (first["id"], second["id"]) == (1, 2)
    assert first["created_at"] == first["updated_at"]
    assert json.loads(storage.get_item(SNAPSHOT_KEY))[1]["first_name"] == "Ben"


def test_snapshot_shared_between_stores(storage):
    writer = InMemoryStore(storage, SNAPSHOT_KEY)
    reader = InMemoryStore(storage, SNAPSHOT_KEY)
    writer.append({"first_name": "Ann"})
    assert len(reader) == 0
    assert reader.load_snapshot() is True
    assert [row["first_name"] for row in reader.records] == ["Ann"]
    assert reader.append({"first_name": "Ben"})["id"] == 2


def test_ids_continue_after_legacy_snapshot(storage):
    storage.set_item(SNAPSHOT_KEY, json.dumps([{"id": 1712345678901, "first_name": "Old"}]))
    store = InMemoryStore(storage, SNAPSHOT_KEY)
    store.load_snapshot()
    assert store.append({"first_name": "New"})["id"] == 1712345678902


def test_missing_or_malformed_snapshot_keeps_rows(storage, caplog):
    store = InMemoryStore(storage, SNAPSHOT_KEY)
    store.append({"first_name": "Ann"})
    storage.remove_item(SNAPSHOT_KEY)
    assert store.load_snapshot() is False
    storage.set_item(SNAPSHOT_KEY, "{broken")
    with caplog.at_level(logging.ERROR):
        assert store.load_snapshot() is False
    assert len(store) == 1
    assert "Error reading patient snapshot" in caplog.text


def test_write_failure_is_logged_and_row_kept(broken_storage, caplog):
    store = InMemoryStore(broken_storage, SNAPSHOT_KEY)
    with caplog.at_level(logging.ERROR):
        record = store.append({"first_name": "Ann"})
    assert record["id"] == 1
    assert len(store) == 1
    assert "Error saving patient snapshot" in caplog.text


def test_newest_first(storage):
    store = InMemoryStore(storage, SNAPSHOT_KEY)
    for name in ("Ann", "Ben", "Cat"):
        store.append({"first_name": name})
    assert [row["first_name"] for row in store.newest_first()] == ["Cat", "Ben", "Ann"]
