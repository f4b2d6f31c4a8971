import json

import pytest

from ui_blob_store import JsonBlobStore


def test_missing_file_reads_as_empty(tmp_path):
    store = JsonBlobStore(tmp_path / "nested" / "storage.json")

    assert store.get("chatSessions") is None


def test_set_get_remove(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    store = JsonBlobStore(path)

    store.set("chatSessions", "[]")
    store.set("other", "x")

    assert store.get("chatSessions") == "[]"
    assert json.loads(path.read_text(encoding="utf-8")) == {"chatSessions": "[]", "other": "x"}

    store.remove("chatSessions")

    assert store.get("chatSessions") is None
    assert store.get("other") == "x"


def test_remove_absent_key_does_not_create_file(tmp_path):
    store = JsonBlobStore(tmp_path / "storage.json")

    store.remove("chatSessions")

    assert not store.path.exists()


def test_writes_leave_no_temp_files(tmp_path):
    store = JsonBlobStore(tmp_path / "storage.json")

    store.set("a", "1")
    store.set("a", "2")

    assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]


def test_corrupt_file_raises_on_read(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[1, 2", encoding="utf-8")

    with pytest.raises(ValueError):
        JsonBlobStore(path).get("chatSessions")


def test_non_object_file_raises_on_read(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError):
        JsonBlobStore(path).get("chatSessions")


def test_corrupt_file_is_replaced_on_write(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("garbage", encoding="utf-8")
    store = JsonBlobStore(path)

    store.set("chatSessions", "[]")

    assert store.get("chatSessions") == "[]"


def test_non_string_values_read_as_none(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"chatSessions": [1, 2]}), encoding="utf-8")

    assert JsonBlobStore(path).get("chatSessions") is None
