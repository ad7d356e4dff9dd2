"""Tests for codeflow.store."""

from pathlib import Path
import tempfile

import pytest

from codeflow.store import JsonFileBackend, Key, MemoryBackend, Store


@pytest.fixture
def temp_persist_path():
    """Create a temporary file path for store persistence."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=".json") as f:
        path = Path(f.name)
    path.unlink()
    yield path
    if path.exists():
        path.unlink()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return Store(backend)


def test_get_missing_returns_fallback(store):
    assert store.get(Key.TASKS, []) == []
    assert store.get(Key.ACTIVE_PROJECT) is None


def test_set_then_get(store):
    store.set(Key.PROJECTS, [{"id": "p1", "name": "A", "color": "#fff"}])
    assert store.get(Key.PROJECTS, []) == [{"id": "p1", "name": "A", "color": "#fff"}]


def test_keys_are_prefixed(store, backend):
    store.set(Key.ACTIVE_PROJECT, "p1")
    assert backend.items == {"cf_activeProject": '"p1"'}


def test_corrupt_value_returns_fallback(store, backend):
    backend.set_item("cf_tasks", "{not json")
    assert store.get(Key.TASKS, []) == []


def test_stored_null_returns_fallback(store, backend):
    backend.set_item("cf_users", "null")
    assert store.get(Key.USERS, {}) == {}


def test_delete(store):
    store.set(Key.TOKEN, "abc")
    store.delete(Key.TOKEN)
    assert store.get(Key.TOKEN) is None


def test_delete_missing_is_noop(store):
    store.delete(Key.TOKEN)
    assert store.get(Key.TOKEN) is None


def test_file_backend_survives_new_instance(temp_persist_path):
    Store(JsonFileBackend(temp_persist_path)).set(Key.TASKS, [{"id": "t1"}])

    reopened = Store(JsonFileBackend(temp_persist_path))
    assert reopened.get(Key.TASKS, []) == [{"id": "t1"}]


def test_file_backend_corrupt_file_is_empty(temp_persist_path):
    temp_persist_path.write_text("this is not json")
    store = Store(JsonFileBackend(temp_persist_path))

    assert store.get(Key.PROJECTS, "fallback") == "fallback"

    store.set(Key.PROJECTS, [])
    assert store.get(Key.PROJECTS) == []


def test_file_backend_non_object_is_empty(temp_persist_path):
    temp_persist_path.write_text("[1, 2, 3]")
    assert Store(JsonFileBackend(temp_persist_path)).get(Key.TASKS, []) == []


def test_store_at_empty_path_is_memory():
    store = Store.at("")
    store.set(Key.TOKEN, "x")
    assert store.get(Key.TOKEN) == "x"
