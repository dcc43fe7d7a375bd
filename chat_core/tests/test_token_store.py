import json

import pytest

from chat_core.domain.exceptions import StoreError
from chat_core.domain.session import SESSION_ID_KEY
from chat_core.infrastructure.storage.token_store import JsonTokenStore, MemoryTokenStore


def test_json_token_store_empty(tmp_path):
    store = JsonTokenStore(root=tmp_path / ".storage")
    assert store.load() is None


def test_json_token_store_survives_new_instance(tmp_path):
    root = tmp_path / ".storage"
    JsonTokenStore(root=root).save("abc123")
    assert JsonTokenStore(root=root).load() == "abc123"

    data = json.loads((root / "session.json").read_text(encoding="utf-8"))
    assert data == {SESSION_ID_KEY: "abc123"}


def test_json_token_store_overwrites_and_leaves_no_temp_files(tmp_path):
    store = JsonTokenStore(root=tmp_path)
    store.save("first")
    store.save("second")
    assert store.load() == "second"
    assert [p.name for p in tmp_path.iterdir()] == ["session.json"]


def test_json_token_store_corrupt_file(tmp_path):
    store = JsonTokenStore(root=tmp_path)
    store.path.write_text("{broken", encoding="utf-8")
    with pytest.raises(StoreError) as exc_info:
        store.load()
    assert exc_info.value.code == "STORE_READ_ERROR"


def test_json_token_store_ignores_foreign_keys(tmp_path):
    store = JsonTokenStore(root=tmp_path)
    store.path.write_text(json.dumps({"other": "x"}), encoding="utf-8")
    assert store.load() is None


def test_memory_token_store():
    store = MemoryTokenStore()
    assert store.load() is None
    store.save("t")
    assert store.load() == "t"


def test_json_token_store_unusable_root(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(StoreError) as exc_info:
        JsonTokenStore(root=blocker / ".storage")
    assert exc_info.value.code == "STORE_INIT_ERROR"


def test_json_token_store_failed_replace_cleans_temp_file(tmp_path, monkeypatch):
    store = JsonTokenStore(root=tmp_path)
    store.save("first")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("chat_core.infrastructure.storage.token_store.os.replace", broken_replace)
    with pytest.raises(StoreError) as exc_info:
        store.save("second")

    assert exc_info.value.code == "STORE_WRITE_ERROR"
    assert [p.name for p in tmp_path.iterdir()] == ["session.json"]
    assert store.load() == "first"
